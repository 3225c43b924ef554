"""Custom exceptions for configuration management."""


class ConfigError(Exception):
    """Raised when configuration data cannot be loaded, merged, or validated."""

    code = "config_error"
