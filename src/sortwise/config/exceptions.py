"""Configuration errors."""


class ConfigError(Exception):
    """Raised when configuration files, environment overrides, or values are invalid."""
