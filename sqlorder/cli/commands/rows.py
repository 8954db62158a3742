"""Row listing CLI commands."""

from __future__ import annotations

from typing import Optional, Tuple

import click
import pandas as pd
from rich.table import Table

from sqlorder.cli.utils import console, get_manager, parse_where
from sqlorder.exceptions import ConfigurationError, DatabaseError, QueryError


@click.group(name="rows")
def rows_group() -> None:
    """📋 Inspect table rows."""
    pass


@rows_group.command(name="list")
@click.argument("table_name")
@click.option("--where", "-w", "where", multiple=True, help="Equality filter as COLUMN=VALUE (repeatable)")
@click.option("--order", "-o", help="Ordering, e.g. 'pos ASC, id'")
@click.option("--limit", "-n", type=int, default=50, show_default=True, help="Maximum rows to show")
@click.option("--offset", type=int, default=0, help="Rows to skip")
@click.option("--database", "-d", help="Database to use (default: default database)")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "csv", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
def list_command(
    ctx: click.Context,
    table_name: str,
    where: Tuple[str, ...],
    order: Optional[str],
    limit: int,
    offset: int,
    database: Optional[str],
    output_format: str,
) -> None:
    """List rows of TABLE_NAME."""
    try:
        manager = get_manager(ctx)
        store = manager.get_store(database or ctx.obj.get("db"))
        rows = store.table_list(table_name, parse_where(where), order, limit=limit, offset=offset)

        if output_format == "csv":
            click.echo(pd.DataFrame.from_records(rows).to_csv(index=False), nl=False)
            return
        if output_format == "json":
            click.echo(pd.DataFrame.from_records(rows).to_json(orient="records"))
            return

        if not rows:
            console.print(f"[yellow]No rows found in {table_name}[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta", title=table_name)
        for column in rows[0]:
            table.add_column(str(column), style="cyan")
        for row in rows:
            table.add_row(*("" if value is None else str(value) for value in row.values()))
        console.print(table)
        console.print(f"\n[dim]Shown: {len(rows)} row(s)[/dim]")
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except (DatabaseError, QueryError) as exc:
        console.print(f"[red]Database Error: {exc}[/red]")
        raise SystemExit(1) from exc
    except click.BadParameter:
        raise
    except Exception as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise SystemExit(1) from exc
