"""Tests of the plugin build orchestration."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Annotated

import pytest

from plugin_samples import (
    Broken,
    Console,
    Fallback,
    Filter,
    Layout,
    Level,
    Nothing,
    Rate,
    Script,
)
from nodebuild.errors import PluginContractError
from nodebuild.node import Node
from nodebuild.plugins import (
    Attribute,
    PluginBuilder,
    PluginType,
    VisitorRegistry,
    build_plugin,
    builder_factory,
    factory,
    plugin,
)
from nodebuild.plugins.types import plugin_type_of


def build(cls, node, configuration, **kwargs):
    """Builds a sample plugin class from a node."""
    return build_plugin(plugin_type_of(cls), node, configuration, **kwargs)


class Counter:
    """Records the calls made to the entry points of the counted plugins."""

    builder_calls = 0
    factory_calls = 0
    factory_args = None


@plugin("Counted")
class Counted:
    def __init__(self, host):
        self.host = host

    class Builder:
        host: Annotated[str, Attribute()]

        def build(self):
            return Counted(self.host)

    @builder_factory
    @staticmethod
    def new_builder():
        Counter.builder_calls += 1
        return Counted.Builder()


@plugin("Pair")
class Pair:
    def __init__(self, a, b):
        self.a = a
        self.b = b

    @factory
    @staticmethod
    def create(a: Annotated[int, Attribute()], b: Annotated[str, Attribute()]):
        Counter.factory_calls += 1
        Counter.factory_args = (a, b)
        return Pair(a, b)


@pytest.fixture(name="counter", autouse=True)
def fixture_counter():
    """Resets the entry point counters before each test."""
    Counter.builder_calls = 0
    Counter.factory_calls = 0
    Counter.factory_args = None

    return Counter


class TestBuilderPath:
    """Builds through a builder factory."""

    def test_builder_called_once(self, configuration, counter):
        """The builder factory is invoked exactly once per build."""
        result = build(Counted, Node("Counted", {"host": "localhost"}), configuration)

        assert result.ok
        assert result.path == "builder"
        assert isinstance(result.instance, Counted)
        assert result.instance.host == "localhost"
        assert counter.builder_calls == 1

    def test_builder_fields(self, configuration):
        """Attributes and child elements are injected into the builder."""
        layout_node = Node("Layout", {"pattern": "%d %m"})
        layout_node.instance = Layout("%d %m", "UTF-8")
        filter_nodes = [Node("Filter"), Node("filter")]
        for i, filter_node in enumerate(filter_nodes):
            filter_node.instance = Filter(Level.DEBUG if i else Level.ERROR)

        node = Node(
            "Console",
            {"name": "STDOUT", "level": "Debug", "immediateFlush": "false"},
            [layout_node, *filter_nodes],
        )
        result = build(Console, node, configuration)

        assert result.ok
        assert result.errors == []
        console = result.instance
        assert console.name == "STDOUT"
        assert console.target == "stdout"
        assert console.level is Level.DEBUG
        assert console.immediate_flush is False
        assert console.layout is layout_node.instance
        assert [f.level for f in console.filters] == [Level.ERROR, Level.DEBUG]

    def test_builder_failure_falls_back(self, configuration, debug_logs):
        """A failing builder hands over to the factory path."""
        result = build(Fallback, Node("Fallback", {"size": "3"}), configuration)

        assert result.ok
        assert result.path == "factory"
        assert result.instance.path == "factory"
        assert result.instance.size == 3

        failures = [d for d in result.diagnostics if d.kind == "invocation_failure"]
        assert len(failures) == 1
        assert "Unable to inject fields into builder class" in failures[0].message
        assert "out of order" in failures[0].message

        # The traceback is kept at debug level
        assert any(r.levelno == logging.DEBUG and r.exc_info for r in debug_logs.records)

    def test_required_attribute(self, configuration):
        """A missing required attribute fails the build without raising."""
        result = build(Console, Node("Console"), configuration)

        assert not result.ok
        assert result.instance is None
        assert any("required attribute `name`" in d.message for d in result.errors)


class TestFactoryPath:
    """Builds through a factory."""

    def test_positional_arguments(self, configuration, counter):
        """The factory receives one argument per parameter, in order."""
        result = build(Pair, Node("Pair", {"b": "two", "a": "1"}), configuration)

        assert result.ok
        assert result.path == "factory"
        assert counter.factory_calls == 1
        assert counter.factory_args == (1, "two")

    def test_missing_attributes_are_none(self, configuration, counter):
        """Absent attributes without a default resolve to `None`."""
        result = build(Pair, Node("Pair"), configuration)

        assert result.ok
        assert counter.factory_args == (None, None)

    def test_factory_failure(self, configuration):
        """An exception in the factory turns into a failed result."""
        result = build(Broken, Node("Broken", {"name": "x"}), configuration)

        assert not result.ok
        assert result.instance is None
        assert len(result.errors) == 1
        assert "Unable to invoke factory method in class Broken" in result.errors[0].message
        assert "cannot build x" in result.errors[0].message

    def test_conversion_failure(self, configuration):
        """A value which cannot be converted fails the build."""
        result = build(Pair, Node("Pair", {"a": "one", "b": "two"}), configuration)

        assert not result.ok
        assert "Cannot convert 'one' to int" in result.errors[0].message


class TestAliases:
    """Inputs matched through their aliases."""

    def test_alias_matches(self, configuration):
        """An attribute named after an alias feeds the input."""
        result = build(Rate, Node("Rate", {"refRate": "0.5"}), configuration)

        assert result.ok
        assert result.instance.rate == 0.5
        assert result.errors == []

    def test_primary_name_matches(self, configuration):
        """The primary name still works when no alias is present."""
        result = build(Rate, Node("Rate", {"rate": "0.5"}), configuration)

        assert result.ok
        assert result.instance.rate == 0.5
        assert result.errors == []

    def test_alias_before_primary(self, configuration):
        """Aliases are tried before the primary name; the loser is unused."""
        result = build(Rate, Node("Rate", {"rate": "1", "refRate": "3"}), configuration)

        assert result.instance.rate == 3.0
        assert len(result.errors) == 1
        assert result.errors[0].message == (
            'Rate contains an invalid element or attribute "rate"'
        )

    def test_case_insensitive(self, configuration):
        """Attribute names are matched regardless of case."""
        result = build(Rate, Node("Rate", {"REFRATE": "4", "Burst": "2"}), configuration)

        assert result.instance.rate == 4.0
        assert result.instance.burst == 2
        assert result.errors == []


class TestConsumption:
    """Reporting of unused configuration data."""

    def test_one_unused_attribute(self, configuration):
        """Exactly one diagnostic names the single unused attribute."""

        @plugin("Point")
        class Point:
            @factory
            @staticmethod
            def create(x: Annotated[int, Attribute()]):
                return Point()

        result = build(Point, Node("Point", {"x": "1", "y": "2"}), configuration)

        assert result.ok
        unused = [d for d in result.diagnostics if d.kind == "unused_attribute"]
        assert len(unused) == 1
        assert unused[0].level == "error"
        assert unused[0].message == 'Point contains an invalid element or attribute "y"'

    def test_several_unused_attributes(self, configuration):
        """Several unused attributes are reported together."""
        result = build(Rate, Node("Rate", {"rate": "1", "a": "1", "b": "2"}), configuration)

        unused = [d for d in result.diagnostics if d.kind == "unused_attribute"]
        assert len(unused) == 1
        assert unused[0].message == 'Rate contains invalid attributes "a", "b"'

    def test_unused_children(self, configuration):
        """Each unmatched child is reported individually."""
        node = Node("Rate", {"rate": "1"}, [Node("A"), Node("B")])
        result = build(Rate, node, configuration)

        assert result.ok
        messages = [d.message for d in result.diagnostics if d.kind == "unused_child"]
        assert messages == [
            "Rate has no parameter that matches element A",
            "Rate has no parameter that matches element B",
        ]

    def test_unused_children_label(self, configuration):
        """The element type prefixes the node name when they differ."""
        node = Node("Throttle", {"rate": "1"}, [Node("A")])
        node.plugin_type = plugin_type_of(Rate)
        result = build(Rate, node, configuration)

        messages = [d.message for d in result.diagnostics if d.kind == "unused_child"]
        assert messages == ["Rate Throttle has no parameter that matches element A"]

    def test_deferred_children(self, configuration):
        """Plugins deferring their children never report them."""
        node = Node("Script", {}, [Node("Line", value=f"print({i})") for i in range(3)])
        result = build(Script, node, configuration)

        assert result.ok
        assert [d for d in result.diagnostics if d.kind == "unused_child"] == []
        assert result.instance.lines == ["print(0)", "print(1)", "print(2)"]

    def test_fallback_reports_once(self, configuration, caplog):
        """Leftovers of a failed builder attempt are not reported."""
        node = Node("Fallback", {"size": "3", "extra": "x"})
        result = build(Fallback, node, configuration)

        assert result.path == "factory"
        unused = [d for d in result.diagnostics if d.kind == "unused_attribute"]
        assert [d.message for d in unused] == [
            'Fallback contains an invalid element or attribute "extra"'
        ]
        records = [r for r in caplog.records if "invalid element" in r.getMessage()]
        assert len(records) == 1
        assert records[0].funcName == "_build_from_factory"

    def test_reserved_children(self, configuration):
        """Reserved children are neither bound nor reported."""
        node = Node("Rate", {"rate": "1"}, [Node("Properties"), Node("A")])
        result = build(Rate, node, configuration, reserved=("properties",))

        messages = [d.message for d in result.diagnostics if d.kind == "unused_child"]
        assert messages == ["Rate has no parameter that matches element A"]

    def test_node_untouched(self, configuration):
        """Building does not modify the node."""
        node = Node("Rate", {"rate": "1", "extra": "2"}, [Node("A")])
        build(Rate, node, configuration)

        assert node.attributes == {"rate": "1", "extra": "2"}
        assert [c.name for c in node.children] == ["A"]


class TestResolution:
    """Plugins without usable entry points."""

    def test_no_entry_point(self, configuration, debug_logs):
        """Both paths miss: failure, two debug-level resolution misses."""
        result = build(Nothing, Node("Nothing"), configuration)

        assert not result.ok
        assert result.instance is None

        misses = [d for d in result.diagnostics if d.kind == "resolution_miss"]
        assert len(misses) == 2
        assert all(d.level == "debug" for d in misses)

        records = [
            r for r in debug_logs.records if "No compatible method decorated" in r.getMessage()
        ]
        assert len(records) == 2
        assert all(r.levelno == logging.DEBUG for r in records)

    def test_contract(self, configuration):
        """A build without node or configuration is a programming error."""
        plugin_type = plugin_type_of(Rate)
        with pytest.raises(PluginContractError):
            PluginBuilder(plugin_type).with_configuration(configuration).build()
        with pytest.raises(PluginContractError):
            PluginBuilder(plugin_type).with_configuration_node(Node("Rate")).build()

    def test_unknown_marker_kind(self, configuration):
        """Markers without a visitor leave the input at its default."""
        empty = VisitorRegistry().freeze()
        result = build(Rate, Node("Rate", {"rate": "1"}), configuration, visitors=empty)

        assert result.ok
        assert result.instance.rate is None
        assert result.instance.burst is None

    def test_plain_class(self, configuration):
        """A descriptor can be made for an undecorated class."""

        class Bare:
            @factory
            @staticmethod
            def create(size: Annotated[int, Attribute()]):
                return size * 2

        result = build_plugin(
            PluginType.for_class(Bare), Node("Bare", {"size": "21"}), configuration
        )

        assert result.instance == 42


class TestSubstitution:
    """Property and event substitution at build time."""

    def test_property(self, configuration):
        """`${...}` tokens are resolved against the configuration properties."""
        result = build(Rate, Node("Rate", {"rate": "${rate}"}), configuration)

        assert result.instance.rate == 2.5

    def test_event(self, configuration):
        """Event tokens are resolved against the event of the build."""
        node = Node("Pair", {"a": "${event:count}", "b": "${event:who:-nobody}"})
        result = build(Pair, node, configuration, event={"count": 7})

        assert result.instance.a == 7
        assert result.instance.b == "nobody"


class TestIsolation:
    """Builds do not share state."""

    def test_idempotent(self, configuration):
        """Two builds of the same node give equivalent instances."""
        node = Node("Rate", {"refRate": "1.5", "burst": "4"})
        first = build(Rate, node, configuration)
        second = build(Rate, node, configuration)

        assert first.instance is not second.instance
        assert vars(first.instance) == vars(second.instance)
        assert first.diagnostics == second.diagnostics

    def test_concurrent(self, configuration, workers):
        """Concurrent builds of distinct nodes do not interfere."""
        nodes = [Node("Rate", {"rate": str(i), "extra": "x"}) for i in range(64)]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda n: build(Rate, n, configuration), nodes))

        assert [r.instance.rate for r in results] == [float(i) for i in range(64)]
        assert all(len(r.errors) == 1 for r in results)
