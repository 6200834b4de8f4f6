"""Typed exceptions raised by the plugin construction engine.

Build-time failures (conversion problems, missing required inputs, errors
raised by user construction code) never leave the orchestrator: they are
logged and turned into diagnostics. Only contract violations and
registration problems reach the caller.
"""


class PluginError(Exception):
    """Base exception for all plugin construction errors."""


class PluginContractError(PluginError):
    """Raised when a build is requested without a configuration or a node."""


class PluginRegistrationError(PluginError):
    """Raised when a plugin class cannot be registered.

    This covers ambiguous entry points (several builder factories or
    factories on one class), duplicate plugin names and registration
    attempts on a frozen registry.
    """


class ConversionError(PluginError):
    """Raised when a configuration string cannot be converted to a type."""

    def __init__(self, value, target, reason=None):
        """Initialize with the offending value and the requested type.

        Parameters
        ----------
        value : str
            Configuration value which could not be converted
        target : type
            Type the value was supposed to be converted to
        reason : str, optional
            Additional explanation of the failure
        """
        self.value = value
        self.target = target
        name = getattr(target, "__name__", str(target))
        msg = f"Cannot convert {value!r} to {name}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class MissingInputError(PluginError):
    """Raised when an input marked as required receives no value."""
