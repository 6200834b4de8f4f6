"""Assembly of a full configuration tree into plugin instances."""

from typing import Any, Dict, List, Mapping, Optional

from nodebuild.node import Node
from nodebuild.plugins.builder import DEFAULT_VISITORS, BuildResult, build_plugin
from nodebuild.plugins.consumption import Diagnostic
from nodebuild.plugins.registry import default_registry
from nodebuild.utils.logger import logger

from .substitution import Substitutor

__all__ = ["Configuration"]

# Reserved element holding the configuration properties
PROPERTIES = "properties"


class Configuration:
    """Configuration tree together with the services needed to build it.

    Building happens in two steps:

    - :meth:`setup` maps every element onto a registered plugin type;
    - :meth:`build` builds the elements bottom-up, so that the instances of
      the children are available when their parent is built.

    The root element itself is a container: it is only built if its name
    maps onto a plugin.
    """

    def __init__(
        self,
        root: Node,
        registry=None,
        properties: Optional[Mapping[str, Any]] = None,
        visitors=None,
    ):
        """Initialize the configuration.

        Parameters
        ----------
        root : Node
            Root node of the configuration tree
        registry : PluginRegistry, optional
            Plugin types available. Defaults to the process-wide registry.
        properties : Mapping[str, Any], optional
            Properties which take precedence over the ones in the file
        visitors : VisitorRegistry, optional
            Input visitors. Defaults to the built-in visitors.
        """
        self.root = root
        self.registry = registry if registry is not None else default_registry()
        self.visitors = visitors if visitors is not None else DEFAULT_VISITORS
        self.substitutor = Substitutor()
        self.results: List[BuildResult] = []
        self.diagnostics: List[Diagnostic] = []
        self._resolved = False

        self._read_properties(dict(properties or {}))

    @property
    def name(self):
        return self.root.attributes.get("name", self.root.name)

    @property
    def properties(self) -> Dict[str, Any]:
        return self.substitutor.properties

    @property
    def ok(self):
        return all(result.ok for result in self.results)

    def _read_properties(self, overrides):
        """Loads the `Properties` block, then applies the overrides.

        Each property may refer to the ones declared before it.
        """
        block = self.root.find(PROPERTIES)
        if block is not None:
            for prop in block.children:
                name = prop.attributes.get("name")
                if name is None:
                    logger.error("Property without a name in %s", self.name)
                    continue
                value = prop.value if prop.value is not None else prop.attributes.get("value", "")
                self.properties[name] = self.substitutor.replace(value)

        self.properties.update(overrides)

    def _element_nodes(self):
        """Top-level elements to build, the properties block excluded."""
        return [c for c in self.root.children if c.name.lower() != PROPERTIES]

    def setup(self):
        """Resolves the plugin type of every element of the tree.

        Elements under a plugin which defers its children are left alone.
        Unknown elements are reported, not built.

        Returns
        -------
        Configuration
            This configuration
        """
        root_type = self.registry.get(self.root.name)
        if root_type is not None:
            self.root.plugin_type = root_type

        pending = self._element_nodes()
        while pending:
            node = pending.pop(0)
            node.plugin_type = self.registry.get(node.name)
            if node.plugin_type is None:
                msg = f"Unable to locate plugin type for {node.name}"
                self.diagnostics.append(
                    Diagnostic("error", "missing_plugin", msg, node.name).emit()
                )
            elif node.plugin_type.defer_children:
                continue

            pending.extend(node.children)

        self._resolved = True
        return self

    def build(self, event=None):
        """Builds every resolved element of the tree, children first.

        A failed element leaves `None` in its `instance` slot; the rest of
        the tree is still built.

        Parameters
        ----------
        event : Mapping[str, Any], optional
            Runtime event used for `${event:...}` substitutions

        Returns
        -------
        Configuration
            This configuration
        """
        if not self._resolved:
            self.setup()

        for node in self._element_nodes():
            self._build_node(node, event)

        if self.root.plugin_type is not None:
            self._build_one(self.root, event, reserved=(PROPERTIES,))

        failed = [r for r in self.results if not r.ok]
        logger.info(
            "Built %d element(s) of %s, %d failure(s)",
            len(self.results),
            self.name,
            len(failed),
        )
        return self

    def _build_node(self, node, event):
        plugin_type = node.plugin_type
        if plugin_type is None or not plugin_type.defer_children:
            for child in node.children:
                self._build_node(child, event)

        if plugin_type is not None:
            self._build_one(node, event)

    def _build_one(self, node, event, reserved=()):
        result = build_plugin(
            node.plugin_type, node, self, event, self.visitors, reserved
        )
        node.instance = result.instance
        self.results.append(result)
        self.diagnostics.extend(result.diagnostics)

    def instance(self, name):
        """Returns the instance built from the first element with a given
        `name` attribute (or element name), or `None`.

        Parameters
        ----------
        name : str
            Value of the `name` attribute, or element name

        Returns
        -------
        object
            Built instance
        """
        for node in self.root.walk():
            if name in (node.attributes.get("name"), node.name):
                if node.instance is not None:
                    return node.instance

        return None
