"""Configuration node model.

A configuration file is parsed into a tree of :class:`Node` objects. Each
node corresponds to one element of the configuration: it carries the element
name, a flat mapping of string attributes, an ordered list of child nodes and
an optional text value. The construction engine only reads this tree; which
pieces of it were used is recorded on the side.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

__all__ = ["Node"]


@dataclass(eq=False)
class Node:
    """One element of a parsed configuration tree.

    Attributes
    ----------
    name : str
        Element name, as written in the configuration
    attributes : Dict[str, str]
        Attribute values keyed by attribute name (keys are unique)
    children : List[Node]
        Ordered list of child elements
    value : str, optional
        Text value of the element, if any
    plugin_type : PluginType, optional
        Descriptor of the plugin this element maps onto, once resolved
    parent : Node, optional
        Parent element (`None` for the root)
    instance : object, optional
        Object built from this element, once built
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)
    value: Optional[str] = None
    plugin_type: Any = None
    parent: Optional["Node"] = field(default=None, repr=False)
    instance: Any = field(default=None, repr=False)

    def __post_init__(self):
        """Attach the children to their parent."""
        for child in self.children:
            child.parent = self

    @property
    def element_name(self) -> str:
        """Element name of the plugin type, or the node name if unresolved."""
        if self.plugin_type is not None:
            return self.plugin_type.element_name
        return self.name

    def add_child(self, child: "Node") -> "Node":
        """Appends a child element and returns it.

        Parameters
        ----------
        child : Node
            Child node to append

        Returns
        -------
        Node
            The appended child
        """
        child.parent = self
        self.children.append(child)
        return child

    def has_children(self) -> bool:
        return len(self.children) > 0

    def walk(self) -> Iterator["Node"]:
        """Iterates over the subtree, children first (post-order)."""
        for child in self.children:
            yield from child.walk()
        yield self

    def find(self, name: str) -> Optional["Node"]:
        """Returns the first direct child with a given name (case-insensitive)."""
        for child in self.children:
            if child.name.lower() == name.lower():
                return child
        return None
