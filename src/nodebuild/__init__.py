"""Top-level module of the nodebuild source code."""

from .version import __version__

# Import the main entry points
from .config import Configuration, load_node, loads_node
from .node import Node
from .plugins import (
    Aliases,
    Attribute,
    BuildResult,
    ConfigurationRef,
    Element,
    NodeRef,
    PluginBuilder,
    PluginRegistry,
    PluginType,
    Value,
    build_plugin,
    builder_factory,
    default_registry,
    factory,
    plugin,
)
