"""Shared CLI utilities for SQLOrder."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import click
from rich.console import Console

from sqlorder.config import get_config
from sqlorder.db import ConnectionManager

# Single console instance reused across CLI modules
console = Console()


def print_exception(message: str, error: Exception, verbose: bool = False) -> None:
    """Render a formatted exception message.

    Args:
        message: Friendly context message to display before the exception.
        error: Original exception instance.
        verbose: When True, render the full traceback for debugging.
    """
    from rich import print as rprint

    rprint(f"[red]{message}: {error}[/red]")
    if verbose:
        import traceback

        console.print(f"[dim]{traceback.format_exc()}[/dim]")


def get_manager(ctx: click.Context) -> ConnectionManager:
    """Build a connection manager for this invocation.

    Connections are closed when the click context tears down.
    """
    config = get_config(ctx.obj.get("config"))
    manager = ConnectionManager(config)
    ctx.call_on_close(manager.close_all_connections)
    return manager


def _parse_value(raw: str) -> Any:
    if raw.lower() == "null":
        return None
    try:
        return int(raw)
    except ValueError:
        return raw


def parse_where(pairs: Iterable[str]) -> Optional[Dict[str, Any]]:
    """Turn repeated ``col=value`` options into an equality filter.

    ``null`` means SQL NULL and integer-looking values are bound as integers.

    Raises:
        click.BadParameter: If a pair has no ``=``.
    """
    filters: Dict[str, Any] = {}
    for pair in pairs:
        column, sep, raw = pair.partition("=")
        if not sep or not column.strip():
            raise click.BadParameter(f"Expected COLUMN=VALUE, got '{pair}'", param_hint="--where")
        filters[column.strip()] = _parse_value(raw.strip())
    return filters or None
