"""Error handling — exception hierarchy for resolution, generation, and documents."""

from siena.errors.exceptions import (
    ConfigError,
    DocumentError,
    GenerationError,
    ResolutionError,
    SienaError,
)

__all__ = [
    "SienaError",
    "ResolutionError",
    "GenerationError",
    "DocumentError",
    "ConfigError",
]
