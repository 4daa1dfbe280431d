"""
Terminal presentation: a rich-based ChatObserver and the console approval prompt.
"""
from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape

from .agent.approval import ApprovalPreview, PromptApprovalGate
from .agent.observer import ChatObserver
from .llm.types import Usage
from .llm.usage import UsageTotals

THOUGHT_PREVIEW_CHARS = 100


class ConsoleObserver(ChatObserver):
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._pending_usage: str | None = None

    def on_round_start(self, round_number: int) -> None:
        self.console.print(f"  ● Step {round_number} " + "─" * 40, style="dim")

    def on_usage(self, usage: Usage, cache_rate: float) -> None:
        # Printed after the round's tools, matching the order things happened on screen
        self._pending_usage = (
            f"    {usage.prompt_tokens:,} in │ {usage.completion_tokens:,} out │ {cache_rate:.0%} cached"
        )

    def on_tool_start(self, name: str, arguments: dict[str, Any]) -> None:
        if name == "think":
            thought = str(arguments.get("thought") or "")
            more = "[dim]...[/dim]" if len(thought) > THOUGHT_PREVIEW_CHARS else ""
            self.console.print(f"    💭 [magenta]{escape(thought[:THOUGHT_PREVIEW_CHARS])}[/magenta]{more}")
        elif name == "web_search":
            self.console.print(f'    🔍 [cyan]"{escape(str(arguments.get("query", "")))}"[/cyan]')
        else:
            self.console.print(f"    🔧 [yellow]{name}[/yellow]({escape(json.dumps(arguments)[:200])})")

    def on_tool_end(self, name: str, elapsed: float, result: str) -> None:
        if name != "think":
            self.console.print(f"    ✓ {elapsed:.2f}s", style="dim")
        self._flush_usage()

    def on_tool_denied(self, name: str, target: str) -> None:
        self.console.print("    ✗ Denied", style="red")
        self._flush_usage()

    def on_tool_error(self, name: str, message: str) -> None:
        self.console.print(f"    ✗ {escape(message)}", style="red")
        self._flush_usage()

    def on_done(self, rounds: int, elapsed: float, totals: UsageTotals) -> None:
        self._pending_usage = None
        self.console.print()
        self.console.print(f"  ✅ Done in {rounds} steps ({elapsed:.1f}s)", style="green")
        self._print_totals(totals)

    def on_exhausted(self, rounds: int, elapsed: float, totals: UsageTotals) -> None:
        self._flush_usage()
        self.console.print()
        self.console.print(f"  ⚠️  Stopped after {rounds} steps ({elapsed:.1f}s)", style="yellow")
        self._print_totals(totals)

    def _flush_usage(self) -> None:
        if self._pending_usage:
            self.console.print(self._pending_usage, style="dim")
            self._pending_usage = None

    def _print_totals(self, totals: UsageTotals) -> None:
        line = (
            f"  Total: {totals.input_tokens:,} in │ {totals.output_tokens:,} out │ "
            f"{totals.cache_rate:.0%} cached"
        )
        if totals.cost_usd:
            line += f" │ ~${totals.cost_usd:.4f}"
        self.console.print(line, style="dim")
        self.console.print()


def console_approval_gate(console: Console | None = None) -> PromptApprovalGate:
    """Approval gate that previews the write on the console and reads y/n."""
    con = console or Console()

    def show(preview: ApprovalPreview) -> None:
        con.print(f"    ⚠️  {escape(preview.headline)}", style="yellow")
        con.print(f"    Preview: {escape(preview.body)}", style="dim")

    def ask(prompt: str) -> str:
        return con.input(f"    [yellow]{prompt}[/yellow]")

    return PromptApprovalGate(ask=ask, show=show)
