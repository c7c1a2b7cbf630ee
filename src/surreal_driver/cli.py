#!/usr/bin/env python3
"""
surreal-driver CLI

Run queries against a SurrealDB server.

Usage:
    surreal-driver query "SELECT * FROM person"   - Execute a query
    surreal-driver select person [tobie]          - Select a table or a record
    surreal-driver status                         - Show connection readiness
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click

from .client import Client
from .config import configure, configure_from_env
from .errors import SurrealError
from .ws import SurrealWS


# Color codes for terminal output
class Colors:
    RESET = "\x1b[0m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    CYAN = "\x1b[36m"


def print_error(message: str, error: Exception | None = None) -> None:
    """Print error message."""
    click.echo(f"{Colors.RED}Error:{Colors.RESET} {message}", err=True)
    if error and str(error):
        click.echo(str(error), err=True)


def print_success(message: str) -> None:
    """Print success message."""
    click.echo(f"{Colors.GREEN}[ok]{Colors.RESET} {message}")


def print_json(value: Any) -> None:
    click.echo(json.dumps(value, indent=2, default=str))


def run_async(coro: Any) -> Any:
    """Run an async function synchronously, exiting 1 on driver errors."""
    try:
        return asyncio.run(coro)
    except SurrealError as e:
        print_error("Request failed", e)
        sys.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Log protocol traffic")
@click.option("--url", help="Server URL (ws://, wss://, http:// or https://)")
@click.option("--ns", "namespace", help="Namespace")
@click.option("--db", "database", help="Database")
@click.option("--user", "username", help="Username")
@click.option("--pass", "password", help="Password")
@click.option("--timeout", type=float, help="Seconds to wait for each reply")
def cli(
    debug: bool,
    url: str | None,
    namespace: str | None,
    database: str | None,
    username: str | None,
    password: str | None,
    timeout: float | None,
) -> None:
    """surreal-driver CLI - query a SurrealDB server."""
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    configure_from_env()
    configure(
        url=url,
        namespace=namespace,
        database=database,
        username=username,
        password=password,
    )
    if timeout is not None:
        configure(timeout=timeout)


@cli.command()
@click.argument("query")
def query(query: str) -> None:
    """Execute QUERY and print the statement results."""
    run_async(query_command(query))


@cli.command()
@click.argument("table")
@click.argument("key", required=False, default="")
def select(table: str, key: str) -> None:
    """Select all records in TABLE, or the record TABLE:KEY."""
    run_async(select_command(table, key))


@cli.command()
def status() -> None:
    """Connect and show whether the connection is ready."""
    run_async(status_command())


async def query_command(query: str) -> None:
    async with Client() as db:
        response = await db.execute(query)
        print_json(response.result)


async def select_command(table: str, key: str) -> None:
    async with Client() as db:
        response = await (db.select_one(table, key) if key else db.select_all(table))
        print_json(response.data)


async def status_command() -> None:
    async with Client() as db:
        if not isinstance(db.transport, SurrealWS):
            print_success(f"{db.transport.url} (stateless, no handshake)")
            return

        ws = db.transport
        await ws.wait_until_ready()
        print_success(f"Connected to {ws.url}")
        click.echo(f"  State:              {ws.state.value}")
        click.echo(f"  Authenticated:      {ws.authenticated} ({ws.username})")
        click.echo(f"  Namespace selected: {ws.namespace_selected} ({ws.namespace}/{ws.database})")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
