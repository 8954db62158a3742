"""Main CLI entry point for SQLOrder."""

from __future__ import annotations

import logging

import click
from rich.panel import Panel
from rich.text import Text

from sqlorder import __version__
from sqlorder.cli.commands import register_commands
from sqlorder.cli.commands.configuration import config_group
from sqlorder.cli.commands.database import db_group
from sqlorder.cli.commands.positions import pos_group
from sqlorder.cli.commands.rows import rows_group
from sqlorder.cli.utils import console
from sqlorder.config import EnvironmentSettings


def _setup_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else EnvironmentSettings().log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--db", help="Database connection name")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    config: str,
    db: str,
    verbose: bool,
) -> None:
    """SQLOrder - Scoped row ordering for SQL tables."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        {
            "config": config,
            "db": db,
            "verbose": verbose,
        }
    )
    _setup_logging(verbose)

    if version:
        console.print(f"SQLOrder v{__version__}")
        return

    if ctx.invoked_subcommand is None:
        show_dashboard()


# Registered in workflow order: row work first, then environment tools.
COMMAND_REGISTRY = [
    pos_group,
    rows_group,
    db_group,
    config_group,
]

register_commands(cli, COMMAND_REGISTRY)


def show_dashboard() -> None:
    """Display the main dashboard."""
    title = Text("SQLOrder", style="bold blue")
    subtitle = Text("Scoped row ordering for SQL tables", style="italic")

    dashboard_content = Text()
    dashboard_content.append("🔢 Rebuild & Move Positions\n", style="bold")
    dashboard_content.append("📋 List Rows\n", style="bold")
    dashboard_content.append("🗄️  Test Connections\n", style="bold")
    dashboard_content.append("⚙️  Configure Settings\n", style="bold")
    dashboard_content.append("\nRun 'sqlorder --help' for available commands", style="dim")

    panel = Panel(
        dashboard_content,
        title=title,
        subtitle=subtitle,
        border_style="blue",
        padding=(1, 2),
    )

    console.print(panel)


if __name__ == "__main__":
    cli()
