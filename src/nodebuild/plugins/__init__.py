"""Plugin declaration and construction engine.

- `inputs`: Input markers (`Attribute`, `Element`, ...) and their collection
- `types`: Plugin type descriptors and construction entry points
- `convert`: Conversion of configuration strings to typed values
- `visitors`: Input visitors and their registry
- `consumption`: Tracking of the configuration data used by a build
- `binder`: Binding of inputs to configuration values
- `builder`: Build orchestration with builder/factory fallback
- `registry`: Registry of known plugin types
"""

from .builder import BuildResult, PluginBuilder, build_plugin
from .consumption import Diagnostic
from .convert import TypeConverterRegistry
from .inputs import Aliases, Attribute, ConfigurationRef, Element, NodeRef, Value
from .registry import PluginRegistry, default_registry
from .types import PluginType, builder_factory, factory, plugin
from .visitors import PluginVisitor, VisitorRegistry, default_visitors

__all__ = [
    "Aliases",
    "Attribute",
    "BuildResult",
    "ConfigurationRef",
    "Diagnostic",
    "Element",
    "NodeRef",
    "PluginBuilder",
    "PluginRegistry",
    "PluginType",
    "PluginVisitor",
    "TypeConverterRegistry",
    "Value",
    "VisitorRegistry",
    "build_plugin",
    "builder_factory",
    "default_registry",
    "default_visitors",
    "factory",
    "plugin",
]
