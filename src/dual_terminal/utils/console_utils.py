"""
Helper utilities for Rich-based console UI for the Dual Terminal.

Includes common components like `console`, the `show_approval_panel`
helper and renderers for outcomes, reasoning and replies.
"""

import time
from typing import Any, Dict, List

from rich.align import Align
from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from dual_terminal.actions.models import ExecutionReport, Outcome

# Global Console object
console = Console()

STATUS_STYLES = {
    "ok": ("✔", "green"),
    "failed": ("✗", "red"),
    "warning": ("⚠", "yellow"),
    "info": ("", "white"),
}


def _file_preview(record: Dict[str, Any]) -> Syntax:
    lexer = Syntax.guess_lexer(record["name"], code=record.get("content", ""))
    return Syntax(record.get("content", ""), lexer, line_numbers=True, word_wrap=True)


def show_approval_panel(records: List[Dict[str, Any]]) -> None:
    """Render the “Actions Require Approval” panel with subtle visual effect.

    Args:
        records: Ordered approval records (``{"type": "file", ...}`` /
            ``{"type": "operation", ...}``) in execution order.
    """
    table = Table(show_header=True, header_style="bold", expand=False)
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Action")
    for index, record in enumerate(records, start=1):
        if record.get("type") == "file":
            lines = record.get("content", "").count("\n") + 1
            label = f"{escape(record['name'])} ({lines} lines)"
            table.add_row(str(index), "file", label)
        else:
            command = escape(str(record.get("command", "")))
            table.add_row(str(index), "operation", command)

    header = Panel.fit(
        "⚠️  [bold yellow]Actions Require Approval[/bold yellow]",
        style="bold yellow",
        border_style="yellow",
    )
    block = Align.left(Panel.fit(table, border_style="yellow", title="Pending Batch"))

    console.print()  # blank line
    console.print(header)
    time.sleep(0.08)
    with Live(block, console=console, transient=True, refresh_per_second=20):
        time.sleep(0.18)
    console.print(block)

    for record in records:
        if record.get("type") == "file":
            console.print(
                Panel(
                    _file_preview(record),
                    title=escape(record["name"]),
                    border_style="dim",
                    title_align="left",
                )
            )


def show_reasoning(thoughts: List[str]) -> None:
    """Render reasoning blocks dimmed, separate from the reply."""
    for thought in thoughts:
        if thought:
            console.print(
                Panel(
                    escape(thought),
                    title="Reasoning",
                    border_style="dim",
                    style="dim italic",
                )
            )


def show_reply(text: str) -> None:
    if text:
        console.print(Panel.fit(escape(text), border_style="cyan", title="Assistant"))


def show_outcome(outcome: Outcome) -> None:
    """Print one outcome line (or block) coloured by status."""
    if outcome.status == "clear":
        console.clear()
        return
    icon, color = STATUS_STYLES.get(outcome.status, ("", "white"))
    prefix = f"{icon} " if icon else ""
    console.print(f"[{color}]{prefix}{escape(outcome.message)}[/{color}]")


def show_report(report: ExecutionReport) -> None:
    """Print the summary line after a batch has been resolved."""
    color = "green" if report.approved else "yellow"
    console.print(f"\n[{color}]{escape(report.summary)}[/{color}]")
