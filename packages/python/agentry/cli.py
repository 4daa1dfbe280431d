"""Interactive command line: pick an agent profile and chat with it."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from . import common
from .agent.factory import create_chat_for_agent
from .agent.profiles import AGENTS, get_agent
from .console import ConsoleObserver, console_approval_gate
from .llm.errors import CompletionError

logger = logging.getLogger(__name__)

app = typer.Typer(help="Tool-using chat agent")
console = Console()

EXIT_WORDS = ("exit", "quit")


@app.command()
def agents():
    """List the available agent profiles"""
    for key, profile in AGENTS.items():
        console.print(f"[bold]{key}[/bold]  {profile.name} ({profile.provider_key}) - {profile.description}")


async def _repl(agent: str, max_iterations: int | None, auto_approve: bool) -> None:
    profile = get_agent(agent)
    session = create_chat_for_agent(
        agent,
        max_iterations=max_iterations,
        approval_gate=console_approval_gate(console),
        auto_approve=auto_approve or None,
        observer=ConsoleObserver(console),
    )
    provider = profile.provider
    console.print(f"\n🤖 {profile.name} ({provider.display_name} {provider.model})")
    console.print('Type your questions. "exit" to quit.\n')

    while True:
        try:
            question = console.input("[bold green]You:[/bold green] ").strip()
        except (EOFError, KeyboardInterrupt):
            question = ""
        if not question or question.lower() in EXIT_WORDS:
            console.print("👋 Goodbye!")
            return

        try:
            answer = await session.chat(question)
        except CompletionError as e:
            console.print(f"Error: {escape(str(e))}", style="red")
            continue

        console.rule()
        console.print(answer, markup=False)
        console.rule()
        console.print()


@app.command()
def chat(
    agent: str = typer.Option("research", "--agent", "-a", help="Agent profile: " + ", ".join(AGENTS)),
    max_iterations: Optional[int] = typer.Option(None, "--max-iterations", help="Iteration ceiling per message"),
    auto_approve: bool = typer.Option(False, "--auto-approve", help="Run file writes without asking"),
):
    """Start an interactive chat session"""
    if agent not in AGENTS:
        console.print(f"Unknown agent '{agent}'. Choose one of: {', '.join(AGENTS)}", style="red")
        raise typer.Exit(code=2)
    common.setup(interactive=True)
    try:
        asyncio.run(_repl(agent, max_iterations, auto_approve))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, exiting")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
