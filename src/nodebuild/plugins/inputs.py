"""Declaration of plugin inputs.

Plugin inputs are declared with :data:`typing.Annotated`. The first argument
is the type the configuration value is converted to, the following ones are
input markers which tell the engine where the value comes from:

.. code-block:: python

    class Builder:
        name: Annotated[str, Attribute(required=True)]
        rate: Annotated[float, Attribute(default="1.0"), Aliases("refRate")]
        layout: Annotated[Layout, Element()]

    @factory
    @staticmethod
    def create(name: Annotated[str, Attribute()], layout: Annotated[Layout, Element()]):
        ...

The markers of a class or function are collected once into a tuple of
:class:`InputSpec` objects which the binder then iterates over.
"""

import dataclasses
import inspect
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, ClassVar, Optional, Tuple

__all__ = [
    "InputMarker",
    "Attribute",
    "Element",
    "Value",
    "NodeRef",
    "ConfigurationRef",
    "Aliases",
    "InputSpec",
    "collect_field_inputs",
    "collect_parameter_inputs",
]


@dataclass(frozen=True)
class InputMarker:
    """Base class of all input markers.

    Attributes
    ----------
    kind : str
        Tag used to dispatch the input to a visitor
    name : str, optional
        Primary name of the input in the configuration. Defaults to the name
        of the field or parameter which carries the marker.
    """

    kind: ClassVar[str] = ""

    name: Optional[str] = None


@dataclass(frozen=True)
class Attribute(InputMarker):
    """Value taken from an attribute of the configuration node.

    Attributes
    ----------
    default : str, optional
        Value used when the attribute is absent. Goes through substitution
        and conversion like a configured value.
    required : bool, default False
        If `True`, a missing value fails the build
    sensitive : bool, default False
        If `True`, the value is masked in debug traces
    substitute : bool, default True
        If `True`, `${...}` tokens in the value are substituted
    """

    kind: ClassVar[str] = "attribute"

    default: Any = None
    required: bool = False
    sensitive: bool = False
    substitute: bool = True


@dataclass(frozen=True)
class Element(InputMarker):
    """Object(s) built from child nodes of the configuration node.

    Attributes
    ----------
    required : bool, default False
        If `True`, the absence of a matching child fails the build
    """

    kind: ClassVar[str] = "element"

    required: bool = False


@dataclass(frozen=True)
class Value(InputMarker):
    """Text value of the configuration node.

    Falls back on an attribute named after the input (`value` by default).
    """

    kind: ClassVar[str] = "value"

    name: Optional[str] = "value"
    default: Any = None
    required: bool = False
    substitute: bool = True


@dataclass(frozen=True)
class NodeRef(InputMarker):
    """The configuration node itself."""

    kind: ClassVar[str] = "node"


@dataclass(frozen=True)
class ConfigurationRef(InputMarker):
    """The configuration the node belongs to."""

    kind: ClassVar[str] = "configuration"


class Aliases:
    """Ordered list of alternate names of an input.

    Aliases are matched against the configuration before the primary name.
    """

    def __init__(self, *names):
        self.names = tuple(names)

    def __repr__(self):
        return f"Aliases{self.names!r}"


@dataclass(frozen=True)
class InputSpec:
    """One input of a construction path.

    Attributes
    ----------
    name : str
        Name of the builder field or factory parameter
    markers : Tuple[InputMarker]
        Input markers carried by the input, with their name resolved
    aliases : Tuple[str]
        Alternate names of the input, in matching order
    conversion_type : type
        Type the configuration value is converted to
    position : int, optional
        Position of the parameter in the factory signature
    """

    name: str
    markers: Tuple[InputMarker, ...]
    aliases: Tuple[str, ...] = ()
    conversion_type: Any = str
    position: Optional[int] = None


def _split_hint(name, hint, position=None):
    """Turns one annotation into an input specification.

    Returns `None` if the annotation carries no input marker.
    """
    # Older interpreters wrap `x: Annotated[...] = None` into an Optional
    if typing.get_origin(hint) is typing.Union:
        inner = [a for a in typing.get_args(hint) if typing.get_origin(a) is typing.Annotated]
        if inner:
            hint = inner[0]

    if typing.get_origin(hint) is not typing.Annotated:
        return None

    conversion_type, *metadata = typing.get_args(hint)
    aliases = ()
    markers = []
    for meta in metadata:
        if isinstance(meta, Aliases):
            aliases = meta.names
        elif isinstance(meta, InputMarker):
            if meta.name is None:
                meta = dataclasses.replace(meta, name=name)
            markers.append(meta)

    if not markers:
        return None

    return InputSpec(name, tuple(markers), aliases, conversion_type, position)


@lru_cache(maxsize=None)
def collect_field_inputs(cls):
    """Collects the inputs declared as class annotations of a builder class.

    Annotations of base classes come first, then the ones of the class
    itself, each in declaration order. The result is cached per class.

    Parameters
    ----------
    cls : type
        Builder class

    Returns
    -------
    Tuple[InputSpec]
        Input specifications of the builder fields
    """
    hints = typing.get_type_hints(cls, include_extras=True)
    inputs = []
    for name, hint in hints.items():
        spec = _split_hint(name, hint)
        if spec is not None:
            inputs.append(spec)

    return tuple(inputs)


def collect_parameter_inputs(func):
    """Collects the inputs declared on the parameters of a factory.

    Every parameter gets an entry, in signature order, so that the argument
    list built from them lines up with the signature. Parameters without a
    marker get an entry with no markers.

    Parameters
    ----------
    func : callable
        Factory function (plain, static or bound class method)

    Returns
    -------
    Tuple[InputSpec]
        Input specifications of the factory parameters
    """
    hints = typing.get_type_hints(getattr(func, "__func__", func), include_extras=True)
    inputs = []
    for i, param in enumerate(inspect.signature(func).parameters.values()):
        hint = hints.get(param.name, Any)
        spec = _split_hint(param.name, hint, position=i)
        if spec is None:
            spec = InputSpec(param.name, (), position=i)
        inputs.append(spec)

    return tuple(inputs)
