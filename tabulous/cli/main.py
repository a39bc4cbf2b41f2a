"""Tabulous command-line interface.

Postprocesses table files and reports on the result, and exposes the unit
engine for quick conversions and unit string checks.
"""

import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from tabulous.core.context import TableContext
from tabulous.model.define import TableFormat
from tabulous.utils.exceptions import TableError
from tabulous.utils.settings import init_context

app = typer.Typer(help="Typed table postprocessing tools", no_args_is_help=True)


def setup_logger(level: str) -> None:
    """Send log records at ``level`` and above to stderr."""
    logger.remove()
    logger.add(sys.stderr, level=level, format="<level>{level: <8}</level> | {message}")


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="show debug messages")
    ] = False,
    env_file: Annotated[
        Path | None, typer.Option("--env-file", help="additional .env settings file")
    ] = None,
) -> None:
    """Typed table postprocessing tools."""
    settings = init_context(Path.cwd(), env_file)
    setup_logger("DEBUG" if verbose else settings.log_level)


@app.command()
def load(
    paths: Annotated[
        list[Path], typer.Argument(help="table files or directories, in load order")
    ],
    wiki: Annotated[
        bool | None, typer.Option("--wiki/--no-wiki", help="build the wiki lookup")
    ] = None,
    precisions: Annotated[
        bool | None,
        typer.Option("--precisions/--no-precisions", help="record float precisions"),
    ] = None,
    table: Annotated[
        str | None, typer.Option("--table", "-t", help="print the rows of one table")
    ] = None,
) -> None:
    """Postprocess table files and print a summary or the rows of one table."""
    context = TableContext()
    try:
        store = context.postprocess(
            paths, enable_wiki=wiki, enable_precisions=precisions
        )
    except (TableError, FileNotFoundError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e

    if table is None:
        for name, table_format in store.table_formats.items():
            if table_format is TableFormat.ENUM_X_ENUM:
                grid = store.tables[name]
                size = f"{len(grid)} x {len(grid[0]) if grid else 0}"
                typer.echo(f"{name}\t{table_format}\t{size}")
            elif table_format is TableFormat.WIKI_LOOKUP:
                typer.echo(f"{name}\t{table_format}")
            else:
                fields = ", ".join(store.field_types.get(name, {}))
                typer.echo(
                    f"{name}\t{table_format}\t{store.table_n_rows[name]} rows\t{fields}"
                )
        if store.wiki_lookup:
            typer.echo(f"wiki lookup\t{len(store.wiki_lookup)} entries")
        return

    access = context.access
    if not access.has_table(table) or table not in store.field_types:
        logger.error(f"No DB table {table!r}")
        raise typer.Exit(code=1)
    for row in access.build_dictionaries(table):
        typer.echo("\t".join(f"{k}={v}" for k, v in row.items()))


@app.command()
def convert(
    value: Annotated[float, typer.Argument(help="value to convert")],
    unit: Annotated[str, typer.Argument(help="unit symbol or expression")],
    from_internal: Annotated[
        bool,
        typer.Option("--from-internal", help="convert from internal units to UNIT"),
    ] = False,
) -> None:
    """Convert a value between UNIT and internal (SI) units."""
    try:
        units = TableContext().create_unit_converter()
        result = units.convert(value, unit, to_internal=not from_internal)
    except TableError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e
    typer.echo(repr(result))


@app.command("check-unit")
def check_unit(
    unit: Annotated[str, typer.Argument(help="unit symbol or expression")],
) -> None:
    """Exit with code 0 if UNIT can be resolved, 1 otherwise."""
    if TableContext().create_unit_converter().is_valid_unit(unit):
        typer.echo(f"{unit}: valid")
        return
    typer.echo(f"{unit}: invalid")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
