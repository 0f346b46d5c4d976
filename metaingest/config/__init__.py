"""Configuration loading and validation module."""

from metaingest.config.loader import ConfigLoader, ConfigValidationError


__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
]
