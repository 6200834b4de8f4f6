#!/usr/bin/env python3
"""Command line entry point which builds a configuration file."""

import argparse
import importlib
import sys
from typing import List, Optional

from nodebuild.config import Configuration, load_node
from nodebuild.plugins.registry import PluginRegistry
from nodebuild.utils.logger import logger, set_log_level
from nodebuild.version import __version__


def parse_overrides(overrides):
    """Parses `key=value` command line overrides into a dictionary.

    Parameters
    ----------
    overrides : List[str]
        List of overrides in the form "key=value"

    Returns
    -------
    Dict[str, str]
        Properties to override
    """
    properties = {}
    for override in overrides or []:
        if "=" not in override:
            raise ValueError(
                f"Invalid --set format: '{override}'. Expected format: 'key=value'"
            )

        key, value = override.split("=", 1)
        properties[key.strip()] = value.strip()

    return properties


def main(
    config: str,
    modules: List[str],
    config_overrides: List[str],
    strict: bool = False,
) -> int:
    """Loads a configuration file and builds all of its elements.

    Parameters
    ----------
    config : str
        Path to the configuration file
    modules : List[str]
        Modules whose plugins must be registered
    config_overrides : List[str]
        List of property overrides in the form "key=value"
    strict : bool, default False
        If `True`, any error-level diagnostic makes the run fail

    Returns
    -------
    int
        Exit code
    """
    # Register the plugins of the requested modules
    registry = PluginRegistry()
    for name in modules or []:
        registry.register_module(importlib.import_module(name))
    registry.freeze()
    logger.debug("Registered plugins: %s", registry.names())

    # Load and build the configuration
    root = load_node(config)
    configuration = Configuration(
        root, registry=registry, properties=parse_overrides(config_overrides)
    )
    configuration.build()

    errors = [d for d in configuration.diagnostics if d.level == "error"]
    logger.info(
        "%s: %d element(s) built, %d error(s)",
        configuration.name,
        sum(r.ok for r in configuration.results),
        len(errors),
    )

    if not configuration.ok or (strict and errors):
        return 1

    return 0


def cli(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="nodebuild - build plugin objects from a configuration file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  nodebuild --version                                   Show version information
  nodebuild -c config.yaml -m myapp.plugins             Build a configuration
  nodebuild -c config.yaml -m myapp.plugins --set level=debug --strict
""",
    )

    parser.add_argument(
        "--version", "-v", action="version", version=f"nodebuild {__version__}"
    )

    parser.add_argument(
        "-c", "--config", required=True, help="Path to the configuration file"
    )

    parser.add_argument(
        "-m",
        "--module",
        dest="modules",
        action="append",
        default=[],
        help="Module whose plugins must be registered (can be repeated)",
    )

    parser.add_argument(
        "--set",
        dest="config_overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a configuration property (can be repeated)",
    )

    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Verbosity of the diagnostics (default: info)",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any error-level diagnostic is produced",
    )

    args = parser.parse_args(argv)

    set_log_level(args.log_level)

    sys.exit(
        main(
            config=args.config,
            modules=args.modules,
            config_overrides=args.config_overrides,
            strict=args.strict,
        )
    )


if __name__ == "__main__":
    cli()
