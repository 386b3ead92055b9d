"""Deliver coordinator events as one batch result or as a server-sent event stream."""

import json
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing

from src.models import (
    Author,
    LeaderMissed,
    OutcomeKind,
    OutcomeReached,
    SolveResult,
    Team,
    TeamEvent,
    Transcript,
    Turn,
    TurnAppended,
)

logger = logging.getLogger(__name__)

EXHAUSTED_NOTICE = "Max rounds reached without a final solution."
TEAM_RUN_FAILED = "Team run failed"


def conversation_payload(transcript: Transcript) -> list[dict[str, str]]:
    return [
        {"role": t.chat_role, "member": t.display_name, "content": t.text}
        for t in transcript.turns
    ]


async def collect_result(
    problem: str,
    events: AsyncIterator[TeamEvent],
    team: Team | None = None,
    on_event: Callable[[TeamEvent], None] | None = None,
) -> SolveResult:
    """Drain the event stream and assemble the batch result.

    The transcript is rebuilt from TurnAppended events, so it is exactly
    what a streaming consumer would have seen (plus the user's problem,
    which is never emitted as an event).

    Raises:
        RuntimeError: If the stream ends without an outcome.
    """
    start = time.monotonic()
    transcript = Transcript()
    transcript.append(Turn(Author.USER, "User", problem))
    outcome_event: OutcomeReached | None = None

    async with aclosing(events):
        async for event in events:
            if isinstance(event, TurnAppended):
                transcript.append(event.turn)
            elif isinstance(event, OutcomeReached):
                outcome_event = event
            if on_event:
                on_event(event)

    if outcome_event is None:
        raise RuntimeError("Team run ended without an outcome")

    return SolveResult(
        problem=problem,
        transcript=transcript,
        outcome=outcome_event.outcome,
        rounds_run=outcome_event.rounds_run,
        total_duration_sec=time.monotonic() - start,
        team=team.roster() if team else [],
    )


def sse_event(payload: dict) -> str:
    """Format one server-sent event frame."""
    return f"data: {json.dumps(payload)}\n\n"


async def stream_events(events: AsyncIterator[TeamEvent]) -> AsyncIterator[str]:
    """Translate coordinator events into SSE frames, ending with a completed marker.

    Closing this generator (client disconnect) closes the coordinator run too.
    A coordinator exception becomes an {error} frame; the completed marker
    is still sent.
    """
    try:
        async with aclosing(events):
            async for event in events:
                if isinstance(event, TurnAppended):
                    yield sse_event({"member": event.turn.display_name, "content": event.turn.text})
                elif isinstance(event, LeaderMissed):
                    yield sse_event({"error": "Leader failed to respond"})
                elif isinstance(event, OutcomeReached):
                    outcome = event.outcome
                    if outcome.kind is OutcomeKind.FINALIZED:
                        yield sse_event({"final_solution": outcome.text})
                    elif outcome.kind is OutcomeKind.FALLBACK:
                        yield sse_event({"error": EXHAUSTED_NOTICE})
                    else:
                        yield sse_event({"error": outcome.text})
    except Exception as exc:
        logger.error("Team run failed mid-stream: %s", exc)
        yield sse_event({"error": TEAM_RUN_FAILED})
    yield sse_event({"status": "completed"})
    logger.debug("Event stream completed")
