"""
Command-line entry point for the Dual Terminal.

This module runs an interactive human-in-the-loop (HITL) session built by
`dual_terminal.builder.build_session`.

Slash commands run immediately. In agent mode, file writes and operations
proposed by the model are staged and only applied after the operator
approves the whole batch.
"""

import asyncio
import logging

from rich.markup import escape
from rich.panel import Panel

from dual_terminal.builder import build_session
from dual_terminal.core.config import AppConfig
from dual_terminal.core.logging import setup_logging
from dual_terminal.session import AgentSession, TurnResult
from dual_terminal.utils.console_utils import (
    console,
    show_approval_panel,
    show_outcome,
    show_reasoning,
    show_reply,
    show_report,
)


def parse_decision(answer: str) -> bool:
    """Interpret the operator's answer; anything but approve rejects.

    Args:
        answer: Raw input, e.g. ``"a"``, ``"approve"``, ``"1"``.

    Returns:
        bool: True when the batch should run.
    """
    normalized = answer.strip().lower()
    return normalized.startswith("a") or normalized in {"1", "y", "yes"}


def render_turn(result: TurnResult) -> None:
    """Print everything a turn produced except the approval prompt."""
    show_reasoning(result.reasoning)
    if result.kind == "error" and result.text:
        console.print(f"[red]✗ {escape(result.text)}[/red]")
    else:
        show_reply(result.text)
    for outcome in result.outcomes:
        show_outcome(outcome)


async def prompt_decision(session: AgentSession, result: TurnResult) -> None:
    """Show the staged batch, ask for one decision and run it."""
    console.print("[yellow]━━━ ACTIONS DETECTED ━━━[/yellow]")
    show_approval_panel(result.approval_request)

    try:
        answer = input("Decision ([a]pprove/[r]eject): ")
    except (EOFError, KeyboardInterrupt):
        answer = ""
    approved = parse_decision(answer)
    if not approved and answer.strip().lower() not in {"r", "reject", "2", "n", "no"}:
        console.print("[yellow]Unrecognized decision; defaulting to reject.[/yellow]")

    with console.status("[bold cyan]Applying your decision…[/bold cyan]", spinner="dots"):
        report = await session.decide(approved, on_outcome=show_outcome)
    show_report(report)


async def run() -> None:
    """Run the interactive command-line interface for the Dual Terminal.

    Example:
        ```bash
        dual-terminal
        ```
    """
    setup_logging()

    cfg = AppConfig.from_env()
    session = build_session(cfg, session_id="console")

    console.print(
        Panel.fit(
            "[bold green]>_ Dual Terminal[/bold green]\n"
            f"Chat model: [bold]{cfg.llm.chat_model}[/bold]  "
            f"Agent model: [bold]{cfg.llm.agent_model}[/bold]\n"
            f"Workspace: {escape(str(session.state.working_directory))}\n\n"
            "Type /help for commands, '/mode agent' to let the model propose "
            "file changes, 'exit' to quit.",
            border_style="green",
        )
    )

    while True:
        try:
            user_input = input(f"[{session.state.mode}] > ").strip()
        except (EOFError, KeyboardInterrupt):
            break

        if not user_input:
            continue
        if user_input.lower() in {"exit", "quit"}:
            break

        if user_input.startswith("/"):
            result = await session.submit(user_input)
        else:
            with console.status("[bold cyan]Thinking…[/bold cyan]", spinner="dots"):
                result = await session.submit(user_input)

        render_turn(result)
        if result.kind == "approval":
            await prompt_decision(session, result)

    console.print("\n[cyan]👋 Session ended. Goodbye![/cyan]")
    logging.getLogger(__name__).info("Console session closed")


def agent() -> None:
    """Entry point for the Dual Terminal (sync wrapper)."""
    asyncio.run(run())


if __name__ == "__main__":
    agent()
