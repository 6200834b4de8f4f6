"""Sets up fixtures general to the entire test suite of this package.

This file is read during the collection phase of pytest when running anything
inside this directory.
"""

import logging

import pytest

import plugin_samples
from nodebuild.config import Configuration
from nodebuild.node import Node
from nodebuild.plugins import PluginRegistry


def pytest_addoption(parser):
    """Defines testing command line arguments that can be passed to any
    test scripts inside the general test directory.
    """
    # Optional command line argument to change the number of concurrent builds
    parser.addoption(
        "--workers",
        type=int,
        action="store",
        default=8,
        help="Number of threads used by the concurrent build tests (default: 8)",
    )


def pytest_generate_tests(metafunc):
    """Appends general parameters to all tests."""
    # If a test requires the fixture workers, use the command line option.
    if "workers" in metafunc.fixturenames:
        metafunc.parametrize("workers", [metafunc.config.getoption("--workers")])


@pytest.fixture(name="registry")
def fixture_registry():
    """Registry loaded with all the sample plugins, frozen."""
    registry = PluginRegistry()
    registry.register_module(plugin_samples)

    return registry.freeze()


@pytest.fixture(name="configuration")
def fixture_configuration(registry):
    """Empty configuration with a couple of properties.

    Parameters
    ----------
    registry : PluginRegistry
       Registry of the sample plugins
    """
    root = Node("Configuration", {"name": "test"})

    return Configuration(root, registry=registry, properties={"app": "demo", "rate": "2.5"})


@pytest.fixture(name="debug_logs")
def fixture_debug_logs(caplog):
    """Captures the package logs down to the debug level.

    Parameters
    ----------
    caplog : LogCaptureFixture
       Generic pytest fixture used to capture logs
    """
    caplog.set_level(logging.DEBUG, logger="nodebuild")

    return caplog
