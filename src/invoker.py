"""Agent invocation: one reply from one team member, never raising."""

import logging

from src.models import TeamMember, Transcript
from src.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)

_RETRY_TIMEOUT_FACTOR = 1.5


async def _generate_text(
    provider: AIProvider,
    system_prompt: str,
    messages: list[dict[str, str]],
    member: TeamMember,
) -> str:
    """Call the provider, retrying once on timeout with 1.5x the timeout."""
    try:
        response = await provider.generate(system_prompt, messages, member.model)
    except ProviderError as exc:
        if "timed out" not in str(exc).lower():
            raise
        retry_timeout = provider.timeout_sec() * _RETRY_TIMEOUT_FACTOR
        logger.warning(
            "%s (%s) timed out, retrying with %.0fs (1.5x)",
            member.display_name, member.model, retry_timeout,
        )
        response = await provider.generate(
            system_prompt, messages, member.model, timeout_sec=retry_timeout
        )
    return response.content


async def invoke_agent(
    provider: AIProvider,
    system_prompt: str,
    transcript: Transcript,
    member: TeamMember,
) -> str | None:
    """Ask one team member for its next turn.

    The transcript is rendered once, before the call, so concurrent
    invocations see the same snapshot.

    Never raises. Returns None when the call fails or the reply is blank.
    """
    messages = transcript.as_messages()
    try:
        content = await _generate_text(provider, system_prompt, messages, member)
    except ProviderError as exc:
        logger.warning("%s (%s) failed to respond: %s", member.display_name, member.model, exc)
        return None
    except Exception as exc:
        logger.warning(
            "%s (%s) unexpected failure: %s", member.display_name, member.model, exc
        )
        return None

    text = (content or "").strip()
    if not text:
        logger.warning("%s (%s) returned no usable content", member.display_name, member.model)
        return None
    return text
