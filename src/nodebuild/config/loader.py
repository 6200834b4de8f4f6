"""YAML configuration loader.

Configuration files describe a tree of elements:

.. code-block:: yaml

    Configuration:
      name: demo
      Properties:
        Property:
          - name: level
            value: debug
      Appenders:
        Console:
          name: STDOUT
          Layout: !include layout.yaml

Mapping keys are element names. In the mapping of an element:

- a scalar value is an attribute (booleans are written `true`/`false`);
- a mapping value is a child element;
- a list value is one child element per item, all with the same name; a
  scalar item gives a child whose text value is the scalar;
- a null value is an empty child element.

The top level of a file must hold exactly one element, the root.
"""

import os
from typing import Any, Dict, TextIO, Tuple, cast

import yaml

from nodebuild.node import Node

from .errors import ConfigCycleError, ConfigIncludeError, ConfigTypeError

__all__ = ["ConfigLoader", "load_node", "loads_node", "node_from_dict"]


class ConfigLoader(yaml.SafeLoader):
    """YAML loader with !include tag support.

    This loader extends yaml.SafeLoader to support inline file includes
    using the !include tag. Include cycles are detected.
    """

    def __init__(self, stream: TextIO, stack: Tuple[str, ...] = ()) -> None:
        """Initialize the loader.

        Parameters
        ----------
        stream : TextIO
            File stream (from `open()`) or string
        stack : Tuple[str]
            Absolute paths of the files currently being included
        """
        name = getattr(stream, "name", None)
        if isinstance(name, str):
            self._root = os.path.dirname(os.path.abspath(name))
            self._stack = stack + (os.path.abspath(name),)
        else:
            self._root = os.getcwd()
            self._stack = stack
        super().__init__(stream)

    def include(self, node: yaml.Node) -> Any:
        """Load and include a YAML file inline.

        Parameters
        ----------
        node : yaml.Node
            YAML node containing the filename, relative to the including file

        Returns
        -------
        Any
            Loaded configuration content
        """
        filename = self.construct_scalar(cast(yaml.ScalarNode, node))
        path = os.path.abspath(os.path.join(self._root, filename))
        if path in self._stack:
            raise ConfigCycleError([*self._stack, path])
        if not os.path.isfile(path):
            raise ConfigIncludeError(path, self._stack[-1] if self._stack else None)

        with open(path, "r", encoding="utf-8") as f:
            loader = ConfigLoader(f, self._stack)
            try:
                return loader.get_single_data()
            finally:
                loader.dispose()


# Register the !include constructor
ConfigLoader.add_constructor("!include", ConfigLoader.include)


def _to_str(value: Any) -> str:
    """Renders a YAML scalar as a configuration string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def node_from_dict(name: str, data: Any) -> Node:
    """Builds a node tree from parsed YAML content.

    Parameters
    ----------
    name : str
        Element name of the node
    data : Any
        Content of the element (mapping, scalar or `None`)

    Returns
    -------
    Node
        Node tree
    """
    node = Node(name)
    if data is None:
        return node

    if not isinstance(data, dict):
        if isinstance(data, list):
            raise ConfigTypeError(f"Element {name} cannot be a list at this level")
        node.value = _to_str(data)
        return node

    for key, value in data.items():
        key = str(key)
        if isinstance(value, dict) or value is None:
            node.add_child(node_from_dict(key, value))
        elif isinstance(value, list):
            for item in value:
                node.add_child(node_from_dict(key, item))
        else:
            node.attributes[key] = _to_str(value)

    return node


def _root_from_content(content: Any, source: str) -> Node:
    if not isinstance(content, dict) or len(content) != 1:
        raise ConfigTypeError(
            f"The configuration in {source} must contain exactly one root element."
        )
    (name, data), = content.items()
    return node_from_dict(str(name), data)


def loads_node(text: str) -> Node:
    """Loads a node tree from a YAML string.

    Relative includes are resolved against the current directory.

    Parameters
    ----------
    text : str
        YAML content

    Returns
    -------
    Node
        Root node
    """
    content: Dict[str, Any] = yaml.load(text, Loader=ConfigLoader)
    return _root_from_content(content, "<string>")


def load_node(cfg_path: str) -> Node:
    """Loads a node tree from a YAML file.

    Parameters
    ----------
    cfg_path : str
        Path to the configuration file

    Returns
    -------
    Node
        Root node

    Raises
    ------
    ConfigIncludeError
        If the file or one of its includes does not exist
    ConfigCycleError
        If the includes form a cycle
    ConfigTypeError
        If the file does not contain exactly one root element
    """
    if not os.path.isfile(cfg_path):
        raise ConfigIncludeError(cfg_path)

    with open(cfg_path, "r", encoding="utf-8") as f:
        content = yaml.load(f, Loader=ConfigLoader)

    return _root_from_content(content, cfg_path)
