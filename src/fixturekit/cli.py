#!/usr/bin/env python
import ast
import importlib
import logging
import os
import sys

import click

from .common.logging_config import configure_from
from .config.loader import load_config
from .exceptions import FixtureKitError
from .names import resolve_names
from .registry import FixtureRegistry

logger = logging.getLogger(__name__)


def _load_registry(target: str) -> FixtureRegistry:
    """Import ``module:attribute`` and return the registry it names."""
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"expected 'module:attribute', got '{target}'", param_hint="TARGET")

    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import '{module_name}': {e}", param_hint="TARGET")

    registry = getattr(module, attr, None)
    if not isinstance(registry, FixtureRegistry):
        raise click.BadParameter(f"'{target}' is not a FixtureRegistry", param_hint="TARGET")
    return registry


@click.group()
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False), help="Path to a fixturekit.yaml file.")
@click.option("-V", "--verbose", is_flag=True, help="Enable verbose (DEBUG level) logging.")
@click.pass_context
def cli(ctx, config_path, verbose):
    """fixturekit command-line tool"""
    try:
        config = load_config(config_path)
    except FixtureKitError as e:
        raise click.ClickException(e.detail)
    if verbose:
        config.logging.level = "DEBUG"
    configure_from(config.logging)
    ctx.obj = config


@cli.command()
@click.argument("source_file", type=click.File("r"))
@click.option("-f", "--function", "function_name", help="Resolve this function instead of the first one in the file.")
def names(source_file, function_name):
    """Print the fixture names a function declares."""
    source = source_file.read()
    if function_name:
        try:
            tree = ast.parse(source)
        except SyntaxError as e:
            raise click.ClickException(f"cannot parse {source_file.name}: {e}")
        nodes = [
            node for node in ast.walk(tree)
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == function_name
        ]
        if not nodes:
            raise click.ClickException(f"function '{function_name}' not found in {source_file.name}")
        source = ast.get_source_segment(source, nodes[0], padded=True) or ""

    for name in resolve_names(source):
        click.echo(name)


@cli.command()
@click.argument("target")
@click.argument("requested", nargs=-1, required=True)
def order(target, requested):
    """Print the setup order for REQUESTED fixtures of the registry at TARGET (module:attribute)."""
    registry = _load_registry(target)
    try:
        for name in registry.order(requested):
            marker = "" if name in registry else "  (unregistered)"
            click.echo(f"{name}{marker}")
    except FixtureKitError as e:
        logger.debug(f"Ordering failed for {list(requested)}: {e}")
        raise click.ClickException(e.detail)


if __name__ == "__main__":
    cli()
