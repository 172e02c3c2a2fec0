# Core package: configuration, logging, errors and shared HTTP helpers

from . import config, exceptions

__all__ = [
    "config",
    "exceptions",
]
