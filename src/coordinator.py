"""Round coordination: Leader/Member turns, approval tracking, finalization, termination."""

import asyncio
import logging
from collections.abc import AsyncIterator

from config.config_loader import PromptsConfig
from src.invoker import invoke_agent
from src.models import (
    Author,
    LeaderMissed,
    Outcome,
    OutcomeKind,
    OutcomeReached,
    Phase,
    PhaseDecided,
    RoundState,
    Team,
    TeamEvent,
    TeamMember,
    Transcript,
    Turn,
    TurnAppended,
)
from src.protocol import classify_phase, is_approval
from src.providers.base import AIProvider

logger = logging.getLogger(__name__)

# Hard cap on rounds per request; configuration may only lower it.
MAX_ROUNDS = 5

LEADER_FAILED = "Leader failed to respond"


def _provider_for(member: TeamMember, providers: dict[str, AIProvider]) -> AIProvider:
    try:
        return providers[member.sdk]
    except KeyError:
        raise ValueError(f"No provider '{member.sdk}' for {member.display_name}") from None


async def run_team(
    problem: str,
    team: Team,
    providers: dict[str, AIProvider],
    prompts: PromptsConfig,
    max_rounds: int = MAX_ROUNDS,
    require_approval: bool = True,
) -> AsyncIterator[TeamEvent]:
    """Drive one problem through the Leader/Member negotiation.

    Yields TurnAppended for every transcript append in append order,
    PhaseDecided at the start of each round, LeaderMissed when the Leader
    skips a round, and exactly one OutcomeReached as the final event.

    Args:
        problem: The user's (already validated) problem text.
        team: Leader and the two Members.
        providers: Backends keyed by sdk name.
        prompts: Leader instructions and the Member template.
        max_rounds: Rounds to run, capped at MAX_ROUNDS.
        require_approval: Only accept a finalized Leader turn when both
            Members approved in the same round.

    Raises:
        ValueError: If a team member's sdk has no provider.
    """
    rounds = min(max_rounds, MAX_ROUNDS)
    leader_provider = _provider_for(team.leader, providers)
    member_providers = [_provider_for(m, providers) for m in team.members]
    member_prompts = [prompts.member.format(member_name=m.display_name) for m in team.members]

    transcript = Transcript()
    transcript.append(Turn(Author.USER, "User", problem))

    def _append(member: TeamMember, text: str) -> TurnAppended:
        turn = Turn(member.author, member.display_name, text)
        transcript.append(turn)
        return TurnAppended(turn)

    leader_text = await invoke_agent(leader_provider, prompts.leader, transcript, team.leader)
    if leader_text is None:
        logger.error("Leader (%s) failed to respond to the problem", team.leader.model)
        yield OutcomeReached(Outcome(OutcomeKind.ERROR, LEADER_FAILED), rounds_run=0)
        return
    yield _append(team.leader, leader_text)

    if not require_approval:
        opening = classify_phase(leader_text)
        if opening.is_finalized and opening.finalized_body is not None:
            logger.info("Leader finalized in its opening turn")
            yield OutcomeReached(Outcome(OutcomeKind.FINALIZED, opening.finalized_body), rounds_run=0)
            return

    for round_number in range(1, rounds + 1):
        decision = classify_phase(leader_text)
        state = RoundState(
            round_number=round_number,
            phase=Phase.APPROVAL_REQUEST if decision.is_approval_request else Phase.DELEGATION,
        )
        logger.debug("Round %d phase: %s", round_number, state.phase.value)
        yield PhaseDecided(round_number, state.phase)

        # Both members see the same snapshot; neither sees the other's reply this round.
        snapshot = Transcript(list(transcript.turns))
        tasks = [
            asyncio.create_task(invoke_agent(provider, prompt, snapshot, member))
            for provider, prompt, member in zip(member_providers, member_prompts, team.members)
        ]
        approvals = [False, False]
        try:
            for index, (member, task) in enumerate(zip(team.members, tasks)):
                reply = await task
                if reply is None:
                    continue
                if state.phase is Phase.APPROVAL_REQUEST:
                    approvals[index] = is_approval(reply)
                yield _append(member, reply)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        state.member1_approved, state.member2_approved = approvals
        if state.phase is Phase.APPROVAL_REQUEST:
            logger.info(
                "Round %d approvals: %s=%s, %s=%s",
                round_number,
                team.member1.display_name, state.member1_approved,
                team.member2.display_name, state.member2_approved,
            )

        leader_reply = await invoke_agent(leader_provider, prompts.leader, transcript, team.leader)
        if leader_reply is None:
            logger.warning("Leader missed round %d, continuing", round_number)
            yield LeaderMissed(round_number)
            continue
        leader_text = leader_reply
        yield _append(team.leader, leader_text)

        final = classify_phase(leader_text)
        if final.is_finalized and final.finalized_body is None:
            logger.info("Round %d: finalization markers present but body is empty", round_number)
        elif final.is_finalized:
            if require_approval and not state.both_approved:
                logger.info(
                    "Round %d: Leader finalized without approval from both members, continuing",
                    round_number,
                )
            else:
                logger.info("Solution finalized in round %d", round_number)
                yield OutcomeReached(
                    Outcome(OutcomeKind.FINALIZED, final.finalized_body), rounds_run=round_number
                )
                return

        logger.info("Round %d complete: transcript has %d turns", round_number, len(transcript))

    logger.warning("No finalized solution after %d rounds", rounds)
    yield OutcomeReached(Outcome(OutcomeKind.FALLBACK, leader_text), rounds_run=rounds)
