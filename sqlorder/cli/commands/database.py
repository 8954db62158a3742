"""Database management CLI commands."""

from __future__ import annotations

from typing import Optional

import click
from rich.table import Table

from sqlorder.cli.utils import console, get_manager
from sqlorder.exceptions import ConfigurationError, DatabaseError


@click.group(name="db")
@click.pass_context
def db_group(ctx: click.Context) -> None:
    """🗄️  Database connection management."""
    pass


@db_group.command(name="test")
@click.option("--database", "-d", help="Specific database to test (default: all)")
@click.pass_context
def test_connection_command(ctx: click.Context, database: Optional[str]) -> None:
    """Test database connections."""
    try:
        manager = get_manager(ctx)
        database = database or ctx.obj.get("db")

        console.print("[bold blue]Testing Database Connections[/bold blue]\n")

        if database:
            results = {database: manager.test_connection(database)}
        else:
            results = manager.test_all_connections()

        for result in results.values():
            _show_connection_result(result)
            console.print()

        if any(result['status'] != 'success' for result in results.values()):
            raise SystemExit(1)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except SystemExit:
        raise
    except Exception as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise SystemExit(1) from exc


@db_group.command(name="tables")
@click.option("--database", "-d", help="Database to list tables from (default: default database)")
@click.option("--schema", "-s", help="Schema to list tables from (database-specific)")
@click.pass_context
def tables_command(ctx: click.Context, database: Optional[str], schema: Optional[str]) -> None:
    """List tables in database."""
    try:
        manager = get_manager(ctx)

        db_name = database or ctx.obj.get("db") or manager.config.default_database
        adapter = manager.get_adapter(db_name)
        schema_info = f" (schema: {schema})" if schema else ""
        console.print(f"[bold blue]Tables in {db_name}{schema_info}[/bold blue]\n")

        tables_list = adapter.get_table_names(schema)
        if tables_list:
            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("#", style="dim", width=4)
            table.add_column("Table Name", style="cyan")
            for i, table_name in enumerate(tables_list, start=1):
                table.add_row(str(i), table_name)
            console.print(table)
            console.print(f"\n[dim]Total: {len(tables_list)} table(s)[/dim]")
        else:
            console.print("[yellow]No tables found[/yellow]")
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except DatabaseError as exc:
        console.print(f"[red]Database Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except Exception as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise SystemExit(1) from exc


def _show_connection_result(result: dict) -> None:
    status_color = "green" if result['status'] == 'success' else "red"
    console.print(f"Database: [cyan]{result['database']}[/cyan]")
    console.print(f"Status: [{status_color}]{result['status'].upper()}[/{status_color}]")
    console.print(f"Message: {result.get('message', 'No message provided')}")
    console.print(f"Response Time: {result.get('response_time', 0)} ms")
