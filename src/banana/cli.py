#!/usr/bin/env python3
"""Banana CLI for browsing mapped tables and running one-off statements."""

import argparse
import importlib
import logging

import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from banana import db
from banana.adapter import Statement, get_adapter
from banana.config import config
from banana.entity import mapping_for
from banana.repository import Repository

console = Console()


def load_entity(path: str) -> type:
    """Import a mapped entity class from a "module:Class" path."""
    module_name, _, class_name = path.partition(":")
    if not class_name:
        raise argparse.ArgumentTypeError(f"Expected module:Class, got '{path}'")
    cls = getattr(importlib.import_module(module_name), class_name)
    mapping_for(cls)
    return cls


def parse_params(pairs: list[str]) -> dict:
    """Turn ["name=Ann", "age=3"] into {"name": "Ann", "age": "3"}."""
    params = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Expected key=value, got '{pair}'")
        params[key] = value
    return params


def parse_key(value: str):
    return int(value) if value.isdigit() else value


def render(entity: type, rows: list, title: str = None) -> None:
    mapping = mapping_for(entity)
    table = Table(title=title)
    for column in mapping.columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(getattr(row, c)) for c in mapping.columns))
    console.print(table)


def show_page(args) -> None:
    entity = load_entity(args.entity)
    params = parse_params(args.param)
    with db.get_connection(args.url) as conn:
        repo = Repository(entity, connection=conn)
        rows = repo.query_page(
            args.page, args.size, args.where, params, order=args.order, asc=args.asc
        )
        total = repo.count(args.where, params)
    render(entity, rows, title=f"{repo.table_name} (page {args.page}, {total} rows)")


def show_row(args) -> None:
    entity = load_entity(args.entity)
    with db.get_connection(args.url) as conn:
        row = Repository(entity, connection=conn).query(parse_key(args.id))
    if row is None:
        console.print(f"[red]No {entity.__name__} with key {args.id}.[/]")
        return
    render(entity, [row])


def show_count(args) -> None:
    entity = load_entity(args.entity)
    with db.get_connection(args.url) as conn:
        total = Repository(entity, connection=conn).count(args.where, parse_params(args.param))
    console.print(f"{total}")


def execute_statement(args) -> None:
    params = parse_params(args.param) or None
    console.print(f"[yellow]Will execute:[/] {args.sql}")
    if not args.yes and not questionary.confirm("Proceed with these changes?").ask():
        console.print("[dim]Cancelled.[/]")
        return

    # Ad-hoc SQL has no mapped entity, so there is no Repository to own it.
    # get_connection still commits on success and rolls back on failure.
    with db.get_connection(args.url) as conn:
        adapter = get_adapter(db.dialect_of(conn))
        rowcount = adapter.execute(conn, Statement(args.sql, params))
    console.print(f"[green]Rows affected: {rowcount}[/]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Banana CLI")
    parser.add_argument("--url", default=None, help="Database URL (default: DATABASE_URL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    page = subparsers.add_parser("page", help="Show one page of a table")
    page.add_argument("entity", help="Mapped entity as module:Class")
    page.add_argument("--page", type=int, default=1)
    page.add_argument("--size", type=int, default=config.page_size)
    page.add_argument("--where", default=None, help="Filter without the WHERE keyword")
    page.add_argument("--param", action="append", help="Filter parameter as key=value")
    page.add_argument("--order", default=None, help="Sort column (default: primary key)")
    page.add_argument("--asc", action="store_true", help="Sort ascending")
    page.set_defaults(handler=show_page)

    get = subparsers.add_parser("get", help="Show one row by primary key")
    get.add_argument("entity", help="Mapped entity as module:Class")
    get.add_argument("id")
    get.set_defaults(handler=show_row)

    count = subparsers.add_parser("count", help="Count rows")
    count.add_argument("entity", help="Mapped entity as module:Class")
    count.add_argument("--where", default=None)
    count.add_argument("--param", action="append")
    count.set_defaults(handler=show_count)

    execute = subparsers.add_parser("execute", help="Run a parameterized statement")
    execute.add_argument("sql")
    execute.add_argument("--param", action="append")
    execute.add_argument("--yes", action="store_true", help="Skip confirmation")
    execute.set_defaults(handler=execute_statement)

    return parser


def main(argv: list[str] = None):
    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    args = build_parser().parse_args(argv)
    args.handler(args)


if __name__ == "__main__":
    main()
