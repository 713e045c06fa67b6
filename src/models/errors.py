"""
Error types shared across the animation packages
"""


class ConfigurationError(ValueError):
    """
    Invalid or missing mandatory configuration.

    Raised synchronously at construction time (frame configs, frames,
    YAML documents). Runtime setters reject bad values by returning False
    instead of raising.
    """
