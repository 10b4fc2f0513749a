"""CLI application and commands for rqrs."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import tomllib
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from rqrs import __version__
from rqrs.config import (
    CONFIG_FILE,
    ENV_DEBUG,
    ENV_URL,
    Bot,
    debug_from_env,
    from_env_handler,
    load_config,
    save_config,
)
from rqrs.display import display_request, display_response
from rqrs.errors import RqrsError
from rqrs.request import RequestBuilder

logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        print(f"rqrs {__version__}")
        raise typer.Exit


app = typer.Typer(
    name="rqrs",
    help="Build and send HTTP requests, print the JSON response.",
    no_args_is_help=True,
)


@app.callback()
def _main(
    _version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=_version_callback, is_eager=True, help="Show version and exit."),
    ] = False,
) -> None:
    """Build and send HTTP requests, print the JSON response."""


console = Console()
err_console = Console(stderr=True)


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _config_error(e: Exception) -> typer.Exit:
    err_console.print(f"[red]Error: bad configuration in {CONFIG_FILE}: {escape(str(e))}[/red]")
    return typer.Exit(1)


def _load_bot() -> Bot:
    try:
        return from_env_handler(CONFIG_FILE)
    except (RqrsError, tomllib.TOMLDecodeError) as e:
        raise _config_error(e) from e


def _load_debug() -> bool:
    try:
        return debug_from_env(CONFIG_FILE)
    except tomllib.TOMLDecodeError as e:
        raise _config_error(e) from e


def _split_pair(raw: str, sep: str, what: str) -> tuple[str, str]:
    if sep not in raw:
        err_console.print(f"[red]Error: {what} must look like NAME{sep}VALUE, got {escape(repr(raw))}[/red]")
        raise typer.Exit(1)
    key, value = raw.split(sep, 1)
    return key.strip(), value.strip()


def _build(
    base_url: str,
    path: str,
    method: str,
    headers: list[str],
    secrets: list[str],
    params: list[str],
    body: Any,
) -> RequestBuilder:
    rq = RequestBuilder.from_static(base_url).uri(path).method(method)
    for raw in secrets:
        rq = rq.add_secret_header(*_split_pair(raw, ":", "secret header"))
    for raw in headers:
        rq = rq.add_header(*_split_pair(raw, ":", "header"))
    rq = rq.add_params(_split_pair(raw, "=", "param") for raw in params)
    if body is not None:
        rq = rq.with_json().load_payload(body)
    return rq


@app.command()
def send(
    path: Annotated[str, typer.Argument(help="Path appended to the base URL")] = "",
    url: Annotated[str | None, typer.Option("--url", "-u", help=f"Base URL (default: ${ENV_URL} or config)")] = None,
    method: Annotated[str, typer.Option("--method", "-X", help="HTTP method")] = "GET",
    header: Annotated[list[str] | None, typer.Option("--header", "-H", help="Header as NAME:VALUE")] = None,
    secret: Annotated[
        list[str] | None, typer.Option("--secret", "-S", help="Secret header as NAME:VALUE, masked in output")
    ] = None,
    param: Annotated[list[str] | None, typer.Option("--param", "-p", help="Query parameter as KEY=VALUE")] = None,
    json_body: Annotated[str | None, typer.Option("--json", "-d", help="JSON request body")] = None,
    show_request: Annotated[bool, typer.Option("--show-request", help="Print the request before sending")] = False,
    show_headers: Annotated[bool, typer.Option("--include", "-i", help="Print response headers")] = False,
    debug: Annotated[bool, typer.Option("--debug", help=f"Debug logging (also ${ENV_DEBUG})")] = False,
) -> None:
    """Send a request and pretty-print the JSON response."""
    if url is None:
        bot = _load_bot()
        url = str(bot.url)
        debug = debug or bot.debug
    else:
        debug = debug or _load_debug()
    _setup_logging(debug)
    logger.debug("base url: %s", url)

    body = None
    if json_body is not None:
        try:
            body = json.loads(json_body)
        except json.JSONDecodeError as e:
            err_console.print(f"[red]Error: --json is not valid JSON: {escape(str(e))}[/red]")
            raise typer.Exit(1) from e

    try:
        rq = _build(url, path, method, header or [], secret or [], param or [], body)
        if show_request:
            display_request(rq.build(), console)
        rs = asyncio.run(rq.apply())
    except RqrsError as e:
        err_console.print(f"[red]Error ({type(e).__name__}): {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    display_response(rs, console, show_headers=show_headers)


@app.command()
def config(
    show: Annotated[bool, typer.Option("--show", help="Show current config")] = False,
    set_url: Annotated[str | None, typer.Option("--set-url", help="Set default base URL")] = None,
    set_debug: Annotated[
        bool | None, typer.Option("--set-debug/--unset-debug", help="Enable or disable debug logging")
    ] = None,
) -> None:
    """Manage configuration."""
    if set_url is not None or set_debug is not None:
        try:
            cfg = load_config(CONFIG_FILE)
        except tomllib.TOMLDecodeError as e:
            raise _config_error(e) from e
        section = cfg.setdefault("default", {})
        if set_url is not None:
            try:
                base_url = RequestBuilder.from_static(set_url).base_url
            except RqrsError as e:
                err_console.print(f"[red]Error: {escape(str(e))}[/red]")
                raise typer.Exit(1) from e
            section["url"] = str(base_url)
        if set_debug is not None:
            section["debug"] = set_debug
        save_config(cfg, CONFIG_FILE)
        console.print(f"[green]Config saved to {CONFIG_FILE}[/green]")
        if not show:
            return

    bot = _load_bot()
    console.print(f"[bold]Config file:[/bold] {CONFIG_FILE}")
    console.print(f"[bold]Config exists:[/bold] {CONFIG_FILE.exists()}")
    console.print(f"[bold]Base URL:[/bold] {bot.url}")
    console.print(f"[bold]Debug:[/bold] {bot.debug}")
    console.print()
    console.print("[dim]Set URL with:   rqrs config --set-url https://example.com[/dim]")
    console.print(f"[dim]Override with:  {ENV_URL}=... {ENV_DEBUG}=true[/dim]")


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    sys.exit(main())
