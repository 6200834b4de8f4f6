"""Binding of plugin inputs to configuration values."""

from nodebuild.utils.logger import logger

from .inputs import collect_field_inputs

__all__ = ["InputBinder"]


class InputBinder:
    """Resolves the inputs of a construction path from a configuration node.

    A binder is created per build attempt. It dispatches every marker of
    every input to the visitor registered for its kind; markers nobody
    handles are ignored, since they may belong to another subsystem.
    """

    def __init__(self, visitors, configuration, node, event=None):
        """Initialize the binder.

        Parameters
        ----------
        visitors : VisitorRegistry
            Registry of input visitors
        configuration : Configuration
            Configuration the node belongs to
        node : TrackedNode
            Consumption-tracking view of the node being built
        event : Mapping[str, Any], optional
            Runtime event used for context-sensitive substitution
        """
        self.visitors = visitors
        self.configuration = configuration
        self.node = node
        self.event = event

    def resolve(self, spec):
        """Resolves the value of one input.

        Parameters
        ----------
        spec : InputSpec
            Input specification

        Returns
        -------
        Tuple[bool, object]
            Whether a visitor handled the input, and the value it produced.
            When several markers are handled, the last value wins.
        """
        handled, value = False, None
        for marker in spec.markers:
            visitor = self.visitors.find(marker.kind)
            if visitor is None:
                continue

            value = (
                visitor.set_aliases(spec.aliases)
                .set_marker(marker)
                .set_conversion_type(spec.conversion_type)
                .set_substitutor(self.configuration.substitutor)
                .visit(self.configuration, self.node, self.event)
            )
            handled = True

        return handled, value

    def inject(self, builder):
        """Sets the annotated fields of a builder object.

        Fields which no visitor handles keep their current value.

        Parameters
        ----------
        builder : object
            Builder returned by a builder factory
        """
        for spec in collect_field_inputs(type(builder)):
            handled, value = self.resolve(spec)
            if handled:
                setattr(builder, spec.name, value)

    def arguments(self, inputs):
        """Computes the positional arguments of a factory.

        Parameters with no handled marker receive `None`.

        Parameters
        ----------
        inputs : Tuple[InputSpec]
            Factory inputs, in parameter order

        Returns
        -------
        List[object]
            Positional arguments
        """
        args = [None] * len(inputs)
        for spec in inputs:
            _, args[spec.position] = self.resolve(spec)

        logger.debug("Arguments for %s: %d parameter(s)", self.node.name, len(args))
        return args
