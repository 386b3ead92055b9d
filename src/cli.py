"""Click CLI — config loading, team assembly, live console run, HTTP server."""

import asyncio
import logging
import sys
from pathlib import Path

import click
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from src.api import create_app
from src.coordinator import run_team
from src.emitter import collect_result
from src.healthcheck import run_health_checks
from src.models import (
    LeaderMissed,
    OutcomeKind,
    Phase,
    PhaseDecided,
    SolveResult,
    Team,
    TeamEvent,
    TurnAppended,
)
from src.output import print_outcome, print_round_header, print_turn, save_to_file
from src.providers.base import AIProvider, ProviderError
from src.team import build_providers, build_team
from src.validation import ProblemValidationError, validate_problem

console = Console(legacy_windows=False)

_PHASE_LABELS = {
    Phase.DELEGATION: "delegation",
    Phase.APPROVAL_REQUEST: "approval requested",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _load_or_exit() -> AppConfig:
    try:
        return load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)


def _build_or_exit(config: AppConfig) -> tuple[Team, dict[str, AIProvider]]:
    team = build_team(config)
    try:
        providers = build_providers(config, team)
    except (ProviderError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}. Check API keys in .env.")
        sys.exit(1)
    return team, providers


def _print_health(results: dict[str, tuple[bool, str]]) -> list[str]:
    """Print OK/FAIL per member. Returns the names that failed."""
    failed: list[str] = []
    for name, (ok, err) in results.items():
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed.append(name)
    return failed


def _print_backends(config: AppConfig) -> None:
    """Print which configured backends have an API key in the environment."""
    for name, backend in sorted(config.backends.items()):
        if name in config.available_backends:
            console.print(f"  [green]KEY [/green] {name}")
        else:
            console.print(f"  [yellow]NONE[/yellow] {name}: set {backend.api_key_env}")


def _check_team_or_exit(team: Team, providers: dict[str, AIProvider]) -> None:
    """Run health checks and ask whether to continue when a member is down."""
    console.print("\n[bold]Checking team...[/bold]")
    results = asyncio.run(run_health_checks(team, providers))
    failed = _print_health(results)
    console.print()
    if not failed:
        return
    if team.leader.display_name in failed:
        console.print("[bold red]Error:[/bold red] The Leader is unreachable; no run is possible.")
        sys.exit(1)
    if not click.confirm(f"{', '.join(failed)} unreachable. Continue anyway?", default=True):
        sys.exit(0)


def _print_event(event: TeamEvent) -> None:
    if isinstance(event, TurnAppended):
        print_turn(event.turn)
    elif isinstance(event, PhaseDecided):
        print_round_header(event.round_number, _PHASE_LABELS[event.phase])
    elif isinstance(event, LeaderMissed):
        console.print(f"[yellow]Leader did not respond in round {event.round_number}[/yellow]")


async def _run_solve(
    problem: str,
    config: AppConfig,
    team: Team,
    providers: dict[str, AIProvider],
    max_rounds: int,
    require_approval: bool,
) -> SolveResult:
    """Run one problem through the team, printing every turn as it lands."""
    console.print(
        f"\n[bold cyan]AI Team[/bold cyan] — up to {max_rounds} rounds "
        f"[{'strict' if require_approval else 'permissive'} approval]"
    )
    console.print("Team: " + ", ".join(f"{m.display_name} ({m.model})" for m in team.roster()))
    console.print(f"Problem: [italic]{problem[:80]}{'...' if len(problem) > 80 else ''}[/italic]\n")

    return await collect_result(
        problem,
        run_team(
            problem,
            team,
            providers,
            config.prompts,
            max_rounds=max_rounds,
            require_approval=require_approval,
        ),
        team=team,
        on_event=_print_event,
    )


@click.group()
def main() -> None:
    """AI Team -- a Leader and two Members negotiate a ratified answer."""
    # Model replies often carry Unicode; keep the Windows console from choking on it.
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")
    load_dotenv()


@main.command()
@click.argument("problem", required=False)
@click.option("--file", "problem_file", type=click.Path(exists=True), help="Read the problem from a file")
@click.option("--rounds", default=None, type=int, help="Maximum rounds (default: from config, never above 5)")
@click.option("--permissive", is_flag=True, default=False,
              help="Accept a finalized answer even without both approvals")
@click.option("--output", "output_path", default=None, help="Save the transcript as markdown in this directory")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def solve(
    problem: str | None,
    problem_file: str | None,
    rounds: int | None,
    permissive: bool,
    output_path: str | None,
    skip_health_check: bool,
    verbose: bool,
) -> None:
    """Solve PROBLEM with the team and print the conversation live.

    \b
    Examples:
      ai-team solve "What is 2+2?"
      ai-team solve --file problem.md --rounds 3 --output ./transcripts
    """
    _setup_logging(verbose)

    if problem_file:
        problem = Path(problem_file).read_text(encoding="utf-8")
    try:
        problem = validate_problem(problem)
    except ProblemValidationError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}. Provide a PROBLEM argument or --file.")
        sys.exit(1)

    config = _load_or_exit()
    team, providers = _build_or_exit(config)

    if not skip_health_check:
        _check_team_or_exit(team, providers)

    result = asyncio.run(
        _run_solve(
            problem,
            config,
            team,
            providers,
            max_rounds=rounds if rounds is not None else config.protocol.max_rounds,
            require_approval=config.protocol.require_approval and not permissive,
        )
    )

    print_outcome(result.outcome, result.rounds_run, result.total_duration_sec)

    if output_path:
        saved_path = save_to_file(result, Path(output_path))
        console.print(f"\n[dim]Saved to: {saved_path}[/dim]")

    if result.outcome.kind is OutcomeKind.ERROR:
        sys.exit(1)


@main.command()
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def check(verbose: bool) -> None:
    """Report which backends have API keys, then ping every team member's model."""
    _setup_logging(verbose)
    config = _load_or_exit()
    console.print("\n[bold]API keys[/bold]")
    _print_backends(config)
    team, providers = _build_or_exit(config)
    console.print("\n[bold]Team[/bold]")
    results = asyncio.run(run_health_checks(team, providers))
    if _print_health(results):
        sys.exit(1)


@main.command()
@click.option("--host", default=None, help="Bind address (default: from config)")
@click.option("--port", default=None, type=int, help="Port (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def serve(host: str | None, port: int | None, verbose: bool) -> None:
    """Serve the HTTP API (batch and streaming endpoints)."""
    _setup_logging(verbose)
    config = _load_or_exit()
    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
