"""Rich table display functions for the rqrs CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

from rqrs.headers import SecretHeader

if TYPE_CHECKING:
    from rich.console import Console

    from rqrs.request import PreparedRequest
    from rqrs.response import Response

# Status code thresholds for coloring
HTTP_OK_MIN = 200
HTTP_REDIRECT_MIN = 300
HTTP_CLIENT_ERROR_MIN = 400


def _status_style(status: int) -> str:
    if status < HTTP_OK_MIN:
        return "cyan"
    if status < HTTP_REDIRECT_MIN:
        return "green"
    if status < HTTP_CLIENT_ERROR_MIN:
        return "yellow"
    return "red"


def request_table(request: PreparedRequest) -> Table:
    """Build a table describing a request. Secret header values are masked."""
    table = Table(title="Request", show_header=True, header_style="bold magenta", expand=True)
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", overflow="fold")

    table.add_row("Method", request.method.value)
    table.add_row("URL", escape(str(request.url)))
    for header in request.headers:
        value = escape(header.display_value)
        if isinstance(header, SecretHeader):
            value = f"[dim]{value}[/dim]"
        table.add_row(f"Header {header.name}", value)
    for key, value in request.params:
        table.add_row(f"Param {escape(key)}", escape(value))
    if request.payload is not None:
        table.add_row("Body", "JSON")
    elif request.content is not None:
        table.add_row("Body", f"{len(request.content)} bytes")
    return table


def display_request(request: PreparedRequest, console: Console) -> None:
    console.print()
    console.print(request_table(request))


def display_response(response: Response[Any], console: Console, show_headers: bool = False) -> None:
    """Print status line, optional headers and the pretty JSON body."""
    style = _status_style(response.status)
    console.print(f"[bold]Status:[/bold] [{style}]{response.status}[/{style}]")

    if show_headers:
        table = Table(title="Response Headers", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Value", style="green", overflow="fold")
        for name, value in response.headers.multi_items():
            table.add_row(escape(name), escape(value))
        console.print(table)

    console.print_json(data=response.to_jsonable())
