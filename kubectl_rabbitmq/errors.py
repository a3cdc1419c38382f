from __future__ import annotations


class PluginError(Exception):
    """Base class for errors raised by the plugin itself."""


class UsageError(PluginError):
    """Raised when arguments do not match a command's expected shape."""


class MissingOptionValue(UsageError):
    def __init__(self, option: str) -> None:
        super().__init__(f"Option {option} requires a value")
        self.option = option


class SecretFieldMissing(PluginError):
    def __init__(self, secret: str, field: str) -> None:
        super().__init__(f"[Secrets] Secret {secret} has no field={field}")
        self.secret = secret
        self.field = field


class PrerequisiteMissing(PluginError):
    """Raised when a required executable is not on PATH."""


class InstallError(PluginError):
    """Raised when the fetched operator source is not laid out as expected."""


class ConfigError(PluginError):
    pass
