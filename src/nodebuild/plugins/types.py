"""Plugin type descriptors and construction entry points.

A plugin class exposes one or both of the following entry points:

- a *builder factory*: a static, zero-argument method decorated with
  :func:`builder_factory` which returns a builder object. The builder carries
  its inputs as annotated class attributes and has a `build()` method which
  returns the plugin instance;
- a *factory*: a static method decorated with :func:`factory` whose
  parameters carry the inputs.

The entry points of a class are resolved once, when its :class:`PluginType`
is created, and stored as a :class:`Strategy`.
"""

import inspect
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from nodebuild.errors import PluginRegistrationError
from nodebuild.utils.logger import logger

from .inputs import InputSpec, collect_parameter_inputs

__all__ = [
    "builder_factory",
    "factory",
    "plugin",
    "plugin_type_of",
    "resolve_strategy",
    "PluginType",
    "Strategy",
]

# Attribute used to tag entry point functions
_ENTRY_ATTR = "_nodebuild_entry"

# Attribute used to attach the type descriptor to a plugin class
_TYPE_ATTR = "_nodebuild_plugin_type"

BUILDER_FACTORY = "builder_factory"
FACTORY = "factory"


def _tag(obj, kind):
    """Tags a (possibly static or class) method as an entry point."""
    func = getattr(obj, "__func__", obj)
    setattr(func, _ENTRY_ATTR, kind)
    return obj


def builder_factory(obj):
    """Marks a static method as the builder factory of a plugin.

    Can be stacked above or below `@staticmethod`.
    """
    return _tag(obj, BUILDER_FACTORY)


def factory(obj):
    """Marks a static method as the factory of a plugin.

    Can be stacked above or below `@staticmethod`.
    """
    return _tag(obj, FACTORY)


@dataclass(frozen=True)
class Strategy:
    """Construction strategy of a plugin class, resolved once.

    Attributes
    ----------
    builder_factory : callable, optional
        Zero-argument callable which returns a builder object
    factory : callable, optional
        Callable which returns the plugin instance from positional arguments
    factory_inputs : Tuple[InputSpec]
        Inputs of the factory, in parameter order
    """

    builder_factory: Optional[Callable] = None
    factory: Optional[Callable] = None
    factory_inputs: Tuple[InputSpec, ...] = ()

    @property
    def empty(self):
        return self.builder_factory is None and self.factory is None


def _find_entries(cls, kind):
    """Lists the names of the class methods tagged with a given entry kind,
    in declaration order."""
    names = []
    for name, attr in vars(cls).items():
        func = getattr(attr, "__func__", attr)
        if getattr(func, _ENTRY_ATTR, None) != kind:
            continue
        if not isinstance(attr, (staticmethod, classmethod)):
            raise PluginRegistrationError(
                f"The {kind} `{cls.__name__}.{name}` must be a static or "
                "class method."
            )
        names.append(name)

    if len(names) > 1:
        raise PluginRegistrationError(
            f"Class {cls.__name__} declares more than one {kind}: {names}. "
            "Only one is allowed."
        )

    return names[0] if names else None


def resolve_strategy(cls):
    """Resolves the construction entry points of a plugin class.

    Parameters
    ----------
    cls : type
        Plugin class

    Returns
    -------
    Strategy
        Resolved construction strategy

    Raises
    ------
    PluginRegistrationError
        If an entry point is ambiguous or malformed
    """
    builder_name = _find_entries(cls, BUILDER_FACTORY)
    factory_name = _find_entries(cls, FACTORY)

    builder_func = None
    if builder_name is not None:
        builder_func = getattr(cls, builder_name)
        params = inspect.signature(builder_func).parameters.values()
        required = [p.name for p in params if p.default is p.empty]
        if required:
            raise PluginRegistrationError(
                f"The builder factory `{cls.__name__}.{builder_name}` must "
                f"not take arguments, got {required}."
            )
        logger.debug("Found builder factory method %s.%s.", cls.__name__, builder_name)

    factory_func, factory_inputs = None, ()
    if factory_name is not None:
        factory_func = getattr(cls, factory_name)
        factory_inputs = collect_parameter_inputs(factory_func)
        logger.debug("Found factory method %s.%s.", cls.__name__, factory_name)

    return Strategy(builder_func, factory_func, factory_inputs)


@dataclass(frozen=True)
class PluginType:
    """Descriptor of a buildable plugin class.

    Attributes
    ----------
    plugin_class : type
        Class of the plugin
    name : str
        Name of the plugin, used to match configuration elements
    category : str
        Category of the plugin
    element_name : str
        Element type name used in diagnostics
    defer_children : bool
        If `True`, the plugin consumes its child nodes itself and unused
        children are never reported
    aliases : Tuple[str]
        Deprecated alternate names of the plugin
    strategy : Strategy
        Resolved construction entry points
    """

    plugin_class: type
    name: str
    category: str = "core"
    element_name: str = ""
    defer_children: bool = False
    aliases: Tuple[str, ...] = ()
    strategy: Strategy = field(default_factory=Strategy, repr=False)

    @classmethod
    def for_class(
        cls,
        plugin_class,
        name=None,
        category="core",
        element_type=None,
        defer_children=False,
        aliases=(),
    ):
        """Builds the descriptor of a class, resolving its entry points.

        Parameters
        ----------
        plugin_class : type
            Class of the plugin
        name : str, optional
            Plugin name. Defaults to the class name.
        category : str, default 'core'
            Plugin category
        element_type : str, optional
            Element type name. Defaults to the plugin name.
        defer_children : bool, default False
            Whether the plugin consumes its children itself
        aliases : List[str], optional
            Deprecated alternate names of the plugin

        Returns
        -------
        PluginType
            Plugin type descriptor
        """
        name = name or plugin_class.__name__
        return cls(
            plugin_class=plugin_class,
            name=name,
            category=category,
            element_name=element_type or name,
            defer_children=defer_children,
            aliases=tuple(aliases),
            strategy=resolve_strategy(plugin_class),
        )


def plugin(name=None, category="core", element_type=None, defer_children=False, aliases=()):
    """Class decorator which declares a plugin.

    See :meth:`PluginType.for_class` for the meaning of the arguments.
    """

    def wrap(cls):
        plugin_type = PluginType.for_class(
            cls,
            name=name,
            category=category,
            element_type=element_type,
            defer_children=defer_children,
            aliases=aliases,
        )
        setattr(cls, _TYPE_ATTR, plugin_type)
        return cls

    return wrap


def plugin_type_of(cls):
    """Returns the descriptor attached to a plugin class, or `None`."""
    return vars(cls).get(_TYPE_ATTR) if isinstance(cls, type) else None
