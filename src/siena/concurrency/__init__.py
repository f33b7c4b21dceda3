"""Concurrency — bounded async pool for batch document processing."""

from siena.concurrency.pool import ConcurrencyPool

__all__ = ["ConcurrencyPool"]
