"""Position maintenance CLI commands."""

from __future__ import annotations

from typing import Optional, Tuple

import click

from sqlorder.cli.utils import console, get_manager, parse_where, print_exception
from sqlorder.exceptions import ConfigurationError, DatabaseError, PositionError, QueryError
from sqlorder.modules.positions import Direction

_where_option = click.option(
    "--where", "-w", "where", multiple=True, help="Scope filter as COLUMN=VALUE (repeatable)"
)
_column_option = click.option("--column", "-c", help="Position column (default: configured)")
_primary_option = click.option("--primary", "-p", help="Primary key column (default: configured)")
_database_option = click.option("--database", "-d", help="Database to use (default: default database)")


def _position_manager(ctx: click.Context, database: Optional[str]):
    manager = get_manager(ctx)
    return manager.get_position_manager(database or ctx.obj.get("db"))


def _fail(exc: Exception, verbose: bool = False) -> None:
    if isinstance(exc, ConfigurationError):
        console.print(f"[red]Configuration Error: {exc}[/red]")
    elif isinstance(exc, (DatabaseError, QueryError)):
        console.print(f"[red]Database Error: {exc}[/red]")
    elif isinstance(exc, PositionError):
        console.print(f"[red]Position Error: {exc}[/red]")
    else:
        print_exception("Error", exc, verbose)
    raise SystemExit(1) from exc


@click.group(name="pos")
def pos_group() -> None:
    """🔢 Maintain ordinal position columns."""
    pass


@pos_group.command(name="rebuild")
@click.argument("table_name")
@_where_option
@click.option("--order", "-o", help="Ordering for the new positions (default: position, then key)")
@_column_option
@_primary_option
@_database_option
@click.pass_context
def rebuild_command(
    ctx: click.Context,
    table_name: str,
    where: Tuple[str, ...],
    order: Optional[str],
    column: Optional[str],
    primary: Optional[str],
    database: Optional[str],
) -> None:
    """Renumber the scoped rows of TABLE_NAME as 1..N."""
    scope = parse_where(where)
    try:
        positions = _position_manager(ctx, database)
        count = positions.rebuild_pos(table_name, scope, order, column=column, primary=primary)
        console.print(f"[green]✅ Renumbered {count} row(s) in {table_name}[/green]")
    except Exception as exc:
        _fail(exc, ctx.obj.get("verbose", False))


@pos_group.command(name="reset")
@click.argument("table_name")
@click.option("--order", "-o", help="Ordering for the new positions (default: primary key)")
@_column_option
@_primary_option
@_database_option
@click.pass_context
def reset_command(
    ctx: click.Context,
    table_name: str,
    order: Optional[str],
    column: Optional[str],
    primary: Optional[str],
    database: Optional[str],
) -> None:
    """Renumber every row of TABLE_NAME as 1..N."""
    try:
        positions = _position_manager(ctx, database)
        count = positions.reset_pos(table_name, order, column=column, primary=primary)
        console.print(f"[green]✅ Reset positions of {count} row(s) in {table_name}[/green]")
    except Exception as exc:
        _fail(exc, ctx.obj.get("verbose", False))


@pos_group.command(name="max")
@click.argument("table_name")
@_where_option
@_column_option
@_database_option
@click.pass_context
def max_command(
    ctx: click.Context,
    table_name: str,
    where: Tuple[str, ...],
    column: Optional[str],
    database: Optional[str],
) -> None:
    """Print the highest position in the scope (0 when empty)."""
    scope = parse_where(where)
    try:
        positions = _position_manager(ctx, database)
        click.echo(positions.max_pos(table_name, scope, column=column))
    except Exception as exc:
        _fail(exc, ctx.obj.get("verbose", False))


@pos_group.command(name="move")
@click.argument("table_name")
@click.argument("pos_from", type=int)
@click.argument("pos_to", type=int)
@_where_option
@_column_option
@_primary_option
@_database_option
@click.pass_context
def move_command(
    ctx: click.Context,
    table_name: str,
    pos_from: int,
    pos_to: int,
    where: Tuple[str, ...],
    column: Optional[str],
    primary: Optional[str],
    database: Optional[str],
) -> None:
    """Move the row at POS_FROM to POS_TO, shifting the rows between."""
    scope = parse_where(where)
    try:
        positions = _position_manager(ctx, database)
        moved = positions.change_pos_from_to(
            table_name, scope, pos_from, pos_to, column=column, primary=primary
        )
    except Exception as exc:
        _fail(exc, ctx.obj.get("verbose", False))
        return

    if moved:
        console.print(f"[green]✅ Moved position {pos_from} to {pos_to} in {table_name}[/green]")
    else:
        console.print(f"[yellow]Nothing moved: no row at position {pos_from} or positions invalid[/yellow]")


@pos_group.command(name="change")
@click.argument("table_name")
@click.argument("row_id")
@click.argument("direction", type=click.Choice(Direction.values()))
@_where_option
@click.option("--order", "-o", help="Ordering used to rebuild the scope first")
@_column_option
@_primary_option
@_database_option
@click.pass_context
def change_command(
    ctx: click.Context,
    table_name: str,
    row_id: str,
    direction: str,
    where: Tuple[str, ...],
    order: Optional[str],
    column: Optional[str],
    primary: Optional[str],
    database: Optional[str],
) -> None:
    """Move ROW_ID one step (up, down) or to an end (dup, ddown)."""
    scope = parse_where(where)
    row_key = int(row_id) if row_id.isdigit() else row_id
    try:
        positions = _position_manager(ctx, database)
        moved = positions.change_pos(
            table_name, scope, row_key, direction, order, column=column, primary=primary
        )
    except Exception as exc:
        _fail(exc, ctx.obj.get("verbose", False))
        return

    if moved:
        console.print(f"[green]✅ Moved row {row_id} {direction} in {table_name}[/green]")
    else:
        console.print(f"[yellow]Row {row_id} was not moved[/yellow]")
