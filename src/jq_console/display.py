# display.py
# All terminal output for the jq console.
#
# This module owns presentation entirely. The provisioner and pipeline never
# format strings for the terminal; they call named functions here. It also
# doubles as the default notification collaborator for the pipeline
# (provisioning_started / provisioning_succeeded / provisioning_failed).
#
# Colour language:
#   cyan: session / routing events
#   yellow: provisioning in progress, warnings
#   green: success / confirmed
#   red: failures

from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from jq_console.models import DetailKind, Details

console = Console()

PROMPT = "[bold cyan]jq>[/bold cyan] "

_BORDERS = {
    DetailKind.DOCUMENT_ERROR: "red",
    DetailKind.LOADING: "yellow",
    DetailKind.EMPTY_CLIPBOARD: "yellow",
    DetailKind.QUERY_ERROR: "red",
    DetailKind.RESULT: "green",
    DetailKind.AWAITING_QUERY: "cyan",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def banner(version: str, binary_path: Path) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]jq console[/bold cyan]\n"
            "[dim]Query the JSON document on your clipboard[/dim]\n\n"
            f"[dim]jq      :[/dim] [white]{version}[/white]\n"
            f"[dim]binary  :[/dim] [white]{binary_path}[/white]\n\n"
            "[dim]Type a query and press enter. "
            ":copy copies the result, :copy-query the query, :quit exits.[/dim]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def read_query() -> str:
    """Blocking prompt for the next edit. Raises EOFError on end of input."""
    return console.input(PROMPT)


def session_closed() -> None:
    console.print()
    console.print(Rule("[cyan]SESSION CLOSED[/cyan]", style="cyan"))


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def provisioning_started() -> None:
    console.print(_label("JQ", "yellow"), "[yellow] Checking jq availability…[/yellow]")


def provisioning_succeeded(version: str) -> None:
    console.print(_label("JQ", "green"), f"[green] Ready:[/green] [white]{version}[/white]")


def provisioning_failed(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]jq is not available.[/bold red]\n\n[white]{reason}[/white]\n"
            "[dim]Queries are disabled for this session. Restart to retry.[/dim]",
            title=_label("PROVISIONING FAILED ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def downloading(url: str) -> None:
    console.print(f"  [yellow]↳ Downloading[/yellow] [dim]{_mono(url)}[/dim]")


def stale_artifact_not_removed(path: Path, error: OSError) -> None:
    console.print(
        f"  [yellow]! Could not remove stale binary[/yellow] [dim]{path}: {error}[/dim]"
    )


# ---------------------------------------------------------------------------
# Details
# ---------------------------------------------------------------------------


def details(block: Details) -> None:
    border = _BORDERS[block.kind]
    console.print()
    console.print(
        Panel(
            Markdown(block.markdown),
            title=_label(block.kind.value.replace("_", " ").upper(), border),
            border_style=border,
            padding=(0, 2),
        )
    )


def copied(what: str, length: int) -> None:
    console.print(f"  [bold green]✓ Copied {what}[/bold green]  [dim]{length} characters[/dim]")


def nothing_to_copy(what: str) -> None:
    console.print(f"  [yellow]Nothing to copy: no {what} yet.[/yellow]")


def unknown_command(command: str) -> None:
    console.print(f"  [yellow]Unknown command[/yellow] [white]{command!r}[/white]")


def halt(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{reason}[/bold white]",
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
