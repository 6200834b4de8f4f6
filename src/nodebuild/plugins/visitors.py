"""Visitors which extract the value of one input from a configuration node.

A visitor is dispatched on the kind tag of an input marker. It is created
fresh for every input it binds, configured through its setters and then
visited once with the configuration, a consumption-tracking view of the node
and the optional runtime event.
"""

import typing

from nodebuild.errors import MissingInputError, PluginRegistrationError
from nodebuild.utils.logger import logger

from .convert import CONVERTERS

__all__ = [
    "PluginVisitor",
    "AttributeVisitor",
    "ElementVisitor",
    "ValueVisitor",
    "NodeVisitor",
    "ConfigurationVisitor",
    "VisitorRegistry",
    "default_visitors",
]

# Placeholder shown in debug traces instead of sensitive values
MASK = "*****"


class PluginVisitor:
    """Base class of all input visitors.

    Attributes
    ----------
    kind : str
        Kind tag of the input markers handled by the visitor
    aliases : Tuple[str]
        Alternate names of the input, tried before its primary name
    marker : InputMarker
        Marker which triggered the visitor
    conversion_type : type
        Type the value must be converted to
    substitutor : Substitutor
        String substitution service of the configuration
    """

    kind = ""

    def __init__(self, converters=None):
        self.aliases = ()
        self.marker = None
        self.conversion_type = str
        self.substitutor = None
        self.converters = converters if converters is not None else CONVERTERS

    def set_aliases(self, aliases):
        self.aliases = tuple(aliases or ())
        return self

    def set_marker(self, marker):
        self.marker = marker
        return self

    def set_conversion_type(self, conversion_type):
        self.conversion_type = conversion_type
        return self

    def set_substitutor(self, substitutor):
        self.substitutor = substitutor
        return self

    @property
    def names(self):
        """Names to match in the configuration, aliases first."""
        return (*self.aliases, self.marker.name)

    def substitute(self, value, event=None):
        if self.substitutor is None or not isinstance(value, str):
            return value
        return self.substitutor.replace(value, event)

    def convert(self, value):
        return self.converters.convert(value, self.conversion_type)

    def visit(self, configuration, node, event=None):
        """Produces the value of the input.

        Parameters
        ----------
        configuration : Configuration
            Configuration the node belongs to
        node : TrackedNode
            Consumption-tracking view of the node being built
        event : Mapping[str, Any], optional
            Runtime event used for context-sensitive substitution

        Returns
        -------
        object
            Value of the input
        """
        raise NotImplementedError


class AttributeVisitor(PluginVisitor):
    """Reads an input from an attribute of the node."""

    kind = "attribute"

    def visit(self, configuration, node, event=None):
        found = node.take_attribute(self.names)
        raw = found[1] if found is not None else self.marker.default
        value = self.substitute(raw, event) if self.marker.substitute else raw

        shown = MASK if self.marker.sensitive and value is not None else value
        logger.debug("%s(%s=\"%s\")", node.name, self.marker.name, shown)

        if value is None and self.marker.required:
            raise MissingInputError(
                f"{node.name} is missing the required attribute `{self.marker.name}`"
            )

        return self.convert(value)


class ElementVisitor(PluginVisitor):
    """Collects the objects built from the matching child nodes.

    If the conversion type is a list or a tuple, every matching child is
    consumed. Otherwise only the first one is.
    """

    kind = "element"

    def visit(self, configuration, node, event=None):
        target = self.conversion_type
        origin = typing.get_origin(target) or target
        many = origin in (list, tuple)

        children = node.take_children(self.names, first_only=not many)
        if not children and self.marker.required:
            raise MissingInputError(
                f"{node.name} is missing the required element `{self.marker.name}`"
            )

        values = [child.instance for child in children]
        logger.debug("%s(%s=%s)", node.name, self.marker.name, values)
        if many:
            return tuple(values) if origin is tuple else values

        return values[0] if values else None


class ValueVisitor(PluginVisitor):
    """Reads the text value of the node, or an attribute standing for it."""

    kind = "value"

    def visit(self, configuration, node, event=None):
        raw = node.value
        if raw is None:
            found = node.take_attribute(self.names)
            raw = found[1] if found is not None else self.marker.default

        value = self.substitute(raw, event) if self.marker.substitute else raw
        if value is None and self.marker.required:
            raise MissingInputError(f"{node.name} is missing a value")

        return self.convert(value)


class NodeVisitor(PluginVisitor):
    """Injects the configuration node itself."""

    kind = "node"

    def visit(self, configuration, node, event=None):
        return getattr(node, "node", node)


class ConfigurationVisitor(PluginVisitor):
    """Injects the configuration the node belongs to."""

    kind = "configuration"

    def visit(self, configuration, node, event=None):
        return configuration


class VisitorRegistry:
    """Maps input kind tags onto visitor classes.

    The registry must be filled before builds start. Once frozen, it can no
    longer be modified and may be shared between concurrent builds.
    """

    def __init__(self, visitors=None):
        self._visitors = {}
        self._frozen = False
        for visitor_cls in visitors or ():
            self.register(visitor_cls)

    def register(self, visitor_cls, kind=None):
        """Registers a visitor class.

        Parameters
        ----------
        visitor_cls : type
            Subclass of :class:`PluginVisitor`
        kind : str, optional
            Kind tag to register it under. Defaults to `visitor_cls.kind`.
        """
        if self._frozen:
            raise PluginRegistrationError(
                "Cannot register a visitor once the registry is frozen."
            )
        kind = kind or visitor_cls.kind
        assert kind, f"Visitor {visitor_cls.__name__} does not define a kind."
        self._visitors[kind] = visitor_cls

    def freeze(self):
        self._frozen = True
        return self

    @property
    def frozen(self):
        return self._frozen

    def find(self, kind):
        """Returns a new visitor for a kind tag, or `None` if unknown."""
        visitor_cls = self._visitors.get(kind)
        if visitor_cls is None:
            return None
        return visitor_cls()

    def kinds(self):
        return list(self._visitors)


def default_visitors():
    """Returns a registry loaded with the built-in visitors."""
    return VisitorRegistry(
        [
            AttributeVisitor,
            ElementVisitor,
            ValueVisitor,
            NodeVisitor,
            ConfigurationVisitor,
        ]
    )
