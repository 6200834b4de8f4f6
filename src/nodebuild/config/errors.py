"""Typed exceptions raised while loading configuration files.

Errors met while building the loaded tree are not exceptions: they are
reported as diagnostics by :class:`~nodebuild.config.Configuration`.
"""

from typing import List, Optional


class ConfigError(Exception):
    """Base exception for all configuration loading errors."""


class ConfigIncludeError(ConfigError):
    """Raised when a configuration file or one of its includes is missing."""

    def __init__(self, path: str, included_from: Optional[str] = None):
        """Initialize with the missing path.

        Parameters
        ----------
        path : str
            Path of the file which could not be found
        included_from : str, optional
            Path of the file holding the `!include` tag, if any
        """
        self.path = path
        self.included_from = included_from
        msg = f"Configuration file not found: {path}"
        if included_from is not None:
            msg += f" (included from {included_from})"
        super().__init__(msg)


class ConfigCycleError(ConfigError):
    """Raised when `!include` tags form a cycle."""

    def __init__(self, cycle_path: List[str]):
        """Initialize with the cycle path.

        Parameters
        ----------
        cycle_path : List[str]
            File paths along the cycle, the repeated one last
        """
        self.cycle_path = cycle_path
        super().__init__(f"Circular include detected: {' -> '.join(cycle_path)}")


class ConfigTypeError(ConfigError):
    """Raised when a YAML block cannot be mapped onto configuration nodes."""
