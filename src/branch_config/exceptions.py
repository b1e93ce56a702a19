"""Exceptions for branch-config."""


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigResolutionError(ConfigError):
    """Configuration path could not be determined."""

    pass


class ConfigFileError(ConfigError):
    """Error creating, reading or writing configuration file."""

    pass


class ConfigSerializationError(ConfigError):
    """Value could not be encoded as YAML."""

    pass


class ConfigEditorError(ConfigError):
    """No usable editor, or the editor exited with an error."""

    pass


class QueryEvaluationError(ConfigError):
    """Selector is malformed or could not be evaluated.

    Raised by evaluators only. ``query`` logs it and returns an empty string.
    """

    pass
