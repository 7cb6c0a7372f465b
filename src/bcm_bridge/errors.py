class BridgeError(Exception):
    """Base class for bcm-bridge errors."""


class ConfigError(BridgeError):
    """Raised when the config file cannot be read or parsed."""


class AbortedError(BridgeError):
    """Reason attached to a signal aborted without an explicit reason."""


class RequestTimeout(BridgeError):
    """Reason attached to a signal fired by its deadline."""
