"""Bookkeeping of the configuration data used by a build.

Each build attempt owns a :class:`ConsumptionState`. Visitors do not see the
raw :class:`~nodebuild.node.Node`: they get a :class:`TrackedNode` view which
records every attribute and child they claim. Once all the inputs are bound,
:func:`check_consumption` reports whatever was left over.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from nodebuild.utils.logger import logger

__all__ = ["ConsumptionState", "TrackedNode", "Diagnostic", "check_consumption"]

# Map of diagnostic level names onto logging levels
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    """Message produced while building a plugin.

    Attributes
    ----------
    level : str
        Logging level name ('debug' or 'error')
    kind : str
        One of 'resolution_miss', 'invocation_failure', 'unused_attribute',
        'unused_child' or 'missing_plugin'
    message : str
        Human-readable message, identical to the logged one
    element : str
        Name of the node the message is about
    """

    level: str
    kind: str
    message: str
    element: str

    def emit(self, stacklevel=2):
        """Sends the diagnostic to the package logger.

        Parameters
        ----------
        stacklevel : int, default 2
            Stack frame the log record is attributed to (the caller by default)
        """
        logger.log(_LEVELS[self.level], self.message, stacklevel=stacklevel)
        return self


@dataclass
class ConsumptionState:
    """Attributes and children claimed during one build attempt.

    Attributes
    ----------
    attributes : Set[str]
        Claimed attribute keys, spelled as in the node
    children : Set[int]
        Positions of the claimed children in the node
    """

    attributes: Set[str] = field(default_factory=set)
    children: Set[int] = field(default_factory=set)

    def claim_attribute(self, key):
        """Marks an attribute key as consumed.

        Returns
        -------
        bool
            `False` if the key had already been consumed
        """
        if key in self.attributes:
            return False
        self.attributes.add(key)
        return True

    def claim_child(self, index):
        self.children.add(index)

    def unused_attributes(self, node):
        return [k for k in node.attributes if k not in self.attributes]

    def unused_children(self, node):
        return [c for i, c in enumerate(node.children) if i not in self.children]


class TrackedNode:
    """Read-only view of a node which records what is consumed through it.

    Attributes which have been claimed once are no longer visible to
    subsequent lookups.
    """

    def __init__(self, node, state=None):
        """Initialize the view.

        Parameters
        ----------
        node : Node
            Configuration node to wrap
        state : ConsumptionState, optional
            Consumption state to record into. A new one is created if not
            provided.
        """
        self.node = node
        self.state = state if state is not None else ConsumptionState()

    @property
    def name(self):
        return self.node.name

    @property
    def value(self):
        return self.node.value

    @property
    def children(self):
        return self.node.children

    @property
    def element_name(self):
        return self.node.element_name

    def peek_attribute(self, names) -> Optional[Tuple[str, str]]:
        """Finds the first unclaimed attribute matching one of the names.

        Names are tried in order; matching is case-insensitive.

        Parameters
        ----------
        names : List[str]
            Candidate names, in order of precedence

        Returns
        -------
        Tuple[str, str]
            Key (as spelled in the node) and value, or `None`
        """
        available = {
            k.lower(): k for k in self.node.attributes if k not in self.state.attributes
        }
        for name in names:
            key = available.get(name.lower())
            if key is not None:
                return key, self.node.attributes[key]

        return None

    def take_attribute(self, names) -> Optional[Tuple[str, str]]:
        """Finds and claims the first unclaimed attribute matching a name.

        See :meth:`peek_attribute`.
        """
        found = self.peek_attribute(names)
        if found is not None:
            self.state.claim_attribute(found[0])

        return found

    def take_children(self, names, first_only=False) -> List:
        """Claims the children whose name matches one of the names.

        Names are tried in order and the first name which matches anything
        wins. Matching is case-insensitive.

        Parameters
        ----------
        names : List[str]
            Candidate element names, in order of precedence
        first_only : bool, default False
            If `True`, only claim the first matching child

        Returns
        -------
        List[Node]
            Claimed children, in node order
        """
        for name in names:
            matches = [
                (i, c)
                for i, c in enumerate(self.node.children)
                if i not in self.state.children and c.name.lower() == name.lower()
            ]
            if matches:
                if first_only:
                    matches = matches[:1]
                for i, _ in matches:
                    self.state.claim_child(i)
                return [c for _, c in matches]

        return []


def _node_label(node):
    """Name of a node as it appears in unused-children messages."""
    element = node.element_name
    if element == node.name:
        return node.name
    return f"{element} {node.name}"


def check_consumption(node, state, defer_children=False) -> List[Diagnostic]:
    """Reports the attributes and children of a node nobody consumed.

    Unused attributes are reported in a single message. Unused children are
    reported one by one, unless the plugin defers its children. The checks
    are advisory: the diagnostics are at error level but never fail the
    build. They are returned unlogged, so that the caller only emits the
    ones of the attempt which produced an instance.

    Parameters
    ----------
    node : Node
        Configuration node which was just bound
    state : ConsumptionState
        Consumption state of the build attempt
    defer_children : bool, default False
        If `True`, skip the children check

    Returns
    -------
    List[Diagnostic]
        Diagnostics to emit
    """
    diagnostics = []
    unused = state.unused_attributes(node)
    if unused:
        keys = ", ".join(f'"{k}"' for k in unused)
        if len(unused) == 1:
            msg = f"{node.name} contains an invalid element or attribute {keys}"
        else:
            msg = f"{node.name} contains invalid attributes {keys}"
        diagnostics.append(Diagnostic("error", "unused_attribute", msg, node.name))

    if not defer_children:
        label = _node_label(node)
        for child in state.unused_children(node):
            msg = f"{label} has no parameter that matches element {child.name}"
            diagnostics.append(
                Diagnostic("error", "unused_child", msg, node.name)
            )

    return diagnostics
