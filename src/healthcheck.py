"""Team health checks — ping each member's model before starting a run."""

import asyncio
import logging

from src.models import Team, TeamMember
from src.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_SYSTEM = "You are a connectivity check."
_PING_MESSAGES = [{"role": "user", "content": "Reply with the word OK only."}]
_TIMEOUT_SEC = 15.0


async def _check_one(member: TeamMember, provider: AIProvider) -> tuple[str, bool, str]:
    """Ping a single member's model. Returns (display_name, ok, error_message)."""
    try:
        await asyncio.wait_for(
            provider.generate(_PING_SYSTEM, _PING_MESSAGES, member.model),
            timeout=_TIMEOUT_SEC,
        )
        return member.display_name, True, ""
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", member.display_name, exc)
        return member.display_name, False, str(exc) or type(exc).__name__


async def run_health_checks(
    team: Team,
    providers: dict[str, AIProvider],
) -> dict[str, tuple[bool, str]]:
    """Ping every team member in parallel.

    Returns:
        Dict mapping display name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(
        *(_check_one(m, providers[m.sdk]) for m in team.roster())
    )
    return {name: (ok, err) for name, ok, err in results}
