"""Rich console output and markdown file save for team runs."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from src.models import Author, Outcome, OutcomeKind, SolveResult, Turn

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_BORDER_STYLES = {
    Author.LEADER: "cyan",
    Author.MEMBER1: "magenta",
    Author.MEMBER2: "yellow",
}

_OUTCOME_TITLES = {
    OutcomeKind.FINALIZED: "Solution Finalized",
    OutcomeKind.FALLBACK: "Unresolved, Best Attempt",
    OutcomeKind.ERROR: "Run Failed",
}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def print_turn(turn: Turn) -> None:
    """Print one transcript turn as a panel."""
    console.print(
        Panel(
            Markdown(turn.text),
            title=f"[bold]{turn.display_name}[/bold]",
            border_style=_BORDER_STYLES.get(turn.author, "dim"),
        )
    )


def print_round_header(round_number: int, phase_label: str) -> None:
    console.print(Rule(f"[bold cyan]Round {round_number}[/bold cyan] [dim]({phase_label})[/dim]"))


def print_outcome(outcome: Outcome, rounds_run: int, duration_sec: float) -> None:
    """Print the final outcome using Rich markdown."""
    style = "bold green" if outcome.kind is OutcomeKind.FINALIZED else "bold red"
    console.print(Rule(f"[{style}]{_OUTCOME_TITLES[outcome.kind]}[/{style}]"))
    console.print(Text(f"Rounds: {rounds_run} | Duration: {duration_sec:.1f}s", style="dim"))
    console.print(Markdown(outcome.final_solution))


def save_to_file(result: SolveResult, output_dir: Path) -> Path:
    """Save the full team transcript as a markdown file.

    Args:
        result: The completed SolveResult.
        output_dir: Directory to save the file in.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{_slug(result.problem)}.md"

    team_str = ", ".join(f"{m.display_name} ({m.model})" for m in result.team) or "n/a"

    lines: list[str] = [
        f"# AI Team: {result.problem[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Team:** {team_str}",
        f"**Rounds:** {result.rounds_run}",
        f"**Duration:** {result.total_duration_sec:.1f}s",
        f"**Outcome:** {result.outcome.kind.value}",
        "",
        "---",
        "",
        "## Conversation",
        "",
    ]

    for turn in result.transcript.turns:
        lines.append(f"### {turn.display_name}")
        lines.append("")
        lines.append(turn.text)
        lines.append("")

    lines += [
        f"## {_OUTCOME_TITLES[result.outcome.kind]}",
        "",
        result.outcome.final_solution,
        "",
    ]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Transcript saved to: %s", filepath)
    return filepath
