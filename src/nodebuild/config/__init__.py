"""Configuration loading, property substitution and tree assembly.

Main Entry Points
-----------------
load_node : Load a YAML configuration file into a node tree
Configuration : Resolve and build every plugin of a node tree
"""

from .configuration import Configuration
from .errors import ConfigCycleError, ConfigError, ConfigIncludeError, ConfigTypeError
from .loader import load_node, loads_node, node_from_dict
from .substitution import Substitutor

__all__ = [
    "Configuration",
    "Substitutor",
    "load_node",
    "loads_node",
    "node_from_dict",
    "ConfigError",
    "ConfigIncludeError",
    "ConfigCycleError",
    "ConfigTypeError",
]
