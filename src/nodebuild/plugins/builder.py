"""Construction of plugin instances from configuration nodes.

The builder first tries the builder path of the plugin type (builder factory,
field injection, `build()`), then falls back on its factory path (factory
method called with positional arguments). Failures are logged and returned
as diagnostics; they never propagate to the caller, so that one misconfigured
element does not prevent the rest of a configuration from being built.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from nodebuild.errors import PluginContractError
from nodebuild.utils.logger import logger

from .binder import InputBinder
from .consumption import ConsumptionState, Diagnostic, TrackedNode, check_consumption
from .visitors import default_visitors

__all__ = ["BuildResult", "PluginBuilder", "build_plugin"]

# Visitors used when the configuration does not provide its own registry
DEFAULT_VISITORS = default_visitors().freeze()


@dataclass
class BuildResult:
    """Outcome of one build.

    Attributes
    ----------
    instance : object, optional
        Built plugin instance, `None` on failure
    ok : bool
        Whether an instance was built
    path : str, optional
        Construction path which produced the instance ('builder' or
        'factory')
    diagnostics : List[Diagnostic]
        Everything that was logged while building
    """

    instance: Any = None
    ok: bool = False
    path: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def errors(self):
        return [d for d in self.diagnostics if d.level == "error"]

    def add(self, diagnostic):
        self.diagnostics.append(diagnostic)


class PluginBuilder:
    """Builds one plugin instance from one configuration node.

    Usage:

    .. code-block:: python

        result = (
            PluginBuilder(plugin_type)
            .with_configuration(configuration)
            .with_configuration_node(node)
            .for_event(event)
            .build()
        )
    """

    def __init__(self, plugin_type, visitors=None):
        """Initialize the builder.

        Parameters
        ----------
        plugin_type : PluginType
            Descriptor of the plugin to build
        visitors : VisitorRegistry, optional
            Input visitors. Defaults to the registry of the configuration,
            or to the built-in visitors.
        """
        self.plugin_type = plugin_type
        self.visitors = visitors
        self.configuration = None
        self.node = None
        self.event = None
        self.reserved = ()

    def with_configuration(self, configuration):
        self.configuration = configuration
        return self

    def with_configuration_node(self, node):
        self.node = node
        return self

    def for_event(self, event):
        """Sets the runtime event used for `${event:...}` substitutions."""
        self.event = event
        return self

    def with_reserved_children(self, names):
        """Sets the names of the child elements which belong to the
        configuration itself. They are neither bound nor reported as unused."""
        self.reserved = tuple(name.lower() for name in names)
        return self

    def _verify(self):
        if self.plugin_type is None:
            raise PluginContractError("No plugin type was set.")
        if self.configuration is None:
            raise PluginContractError("No configuration object was set.")
        if self.node is None:
            raise PluginContractError("No node object was set.")

    def _state(self):
        state = ConsumptionState()
        for i, child in enumerate(self.node.children):
            if child.name.lower() in self.reserved:
                state.claim_child(i)
        return state

    def _report(self, result, diagnostics):
        for diagnostic in diagnostics:
            result.add(diagnostic.emit(stacklevel=3))

    def _binder(self, state):
        visitors = (
            self.visitors
            or getattr(self.configuration, "visitors", None)
            or DEFAULT_VISITORS
        )
        tracked = TrackedNode(self.node, state)
        return InputBinder(visitors, self.configuration, tracked, self.event)

    def build(self):
        """Builds the plugin.

        Returns
        -------
        BuildResult
            Built instance (if any) and diagnostics

        Raises
        ------
        PluginContractError
            If the configuration or the node was not provided
        """
        self._verify()
        result = BuildResult()

        # First try to use a builder class if one is available
        done, instance = self._build_from_builder(result)
        if done:
            result.instance, result.ok, result.path = instance, instance is not None, "builder"
            return result

        # Otherwise fall back on the factory method
        done, instance = self._build_from_factory(result)
        if done:
            result.instance, result.ok, result.path = instance, instance is not None, "factory"

        return result

    def _miss(self, result, kind):
        cls = self.plugin_type.plugin_class
        msg = f"No compatible method decorated with @{kind} found in class {cls.__name__}."
        miss = Diagnostic("debug", "resolution_miss", msg, self.node.name)
        result.add(miss.emit(stacklevel=3))

    def _fail(self, result, msg):
        # Keep the traceback at debug level, the summary at error level
        logger.debug("Exception raised while building %s", self.node.name, exc_info=True)
        failure = Diagnostic("error", "invocation_failure", msg, self.node.name)
        result.add(failure.emit(stacklevel=3))

    def _build_from_builder(self, result):
        """Runs the builder path.

        Returns
        -------
        Tuple[bool, object]
            Whether the path went through, and the built instance
        """
        cls = self.plugin_type.plugin_class
        create = self.plugin_type.strategy.builder_factory
        if create is None:
            self._miss(result, "builder_factory")
            return False, None

        try:
            builder = create()
            if builder is None:
                logger.debug("Builder factory of %s returned None.", cls.__name__)
                return False, None

            state = self._state()
            self._binder(state).inject(builder)
            unused = check_consumption(self.node, state, self.plugin_type.defer_children)
            instance = builder.build()

            # Leftovers only count for the attempt which produced the instance
            self._report(result, unused)
            return True, instance

        except Exception as err:
            self._fail(
                result,
                f"Unable to inject fields into builder class for plugin type "
                f"{cls.__name__}, element {self.node.name}: {err}",
            )
            return False, None

    def _build_from_factory(self, result):
        """Runs the factory path.

        Returns
        -------
        Tuple[bool, object]
            Whether the path went through, and the built instance
        """
        cls = self.plugin_type.plugin_class
        strategy = self.plugin_type.strategy
        if strategy.factory is None:
            self._miss(result, "factory")
            return False, None

        try:
            state = self._state()
            args = self._binder(state).arguments(strategy.factory_inputs)
            unused = check_consumption(self.node, state, self.plugin_type.defer_children)
            instance = strategy.factory(*args)

            self._report(result, unused)
            return True, instance

        except Exception as err:
            self._fail(
                result,
                f"Unable to invoke factory method in class {cls.__name__} "
                f"for element {self.node.name}: {err}",
            )
            return False, None


def build_plugin(
    plugin_type, node, configuration, event=None, visitors=None, reserved=()
):
    """Builds one plugin instance from one configuration node.

    Parameters
    ----------
    plugin_type : PluginType
        Descriptor of the plugin to build
    node : Node
        Configuration node of the plugin
    configuration : Configuration
        Configuration the node belongs to
    event : Mapping[str, Any], optional
        Runtime event used for `${event:...}` substitutions
    visitors : VisitorRegistry, optional
        Input visitors to use instead of the configuration's
    reserved : Iterable[str], optional
        Names of child elements which are neither bound nor reported

    Returns
    -------
    BuildResult
        Built instance (if any) and diagnostics
    """
    return (
        PluginBuilder(plugin_type, visitors)
        .with_configuration(configuration)
        .with_configuration_node(node)
        .for_event(event)
        .with_reserved_children(reserved)
        .build()
    )
