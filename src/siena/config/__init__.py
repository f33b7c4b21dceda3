"""Configuration — defaults, layered loading, and the validated settings model."""
