"""Dataclasses for the team negotiation protocol: turns, transcript, rounds, outcomes, events."""

from dataclasses import dataclass, field
from enum import Enum


class Author(str, Enum):
    USER = "User"
    LEADER = "Leader"
    MEMBER1 = "Member1"
    MEMBER2 = "Member2"


class Phase(str, Enum):
    DELEGATION = "delegation"
    APPROVAL_REQUEST = "approval_request"


class OutcomeKind(str, Enum):
    FINALIZED = "finalized"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass(frozen=True)
class TeamMember:
    author: Author
    display_name: str
    model: str
    sdk: str = "openai"


@dataclass(frozen=True)
class Team:
    leader: TeamMember
    member1: TeamMember
    member2: TeamMember

    @property
    def members(self) -> tuple[TeamMember, TeamMember]:
        return (self.member1, self.member2)

    def roster(self) -> list[TeamMember]:
        return [self.leader, self.member1, self.member2]


@dataclass(frozen=True)
class Turn:
    author: Author
    display_name: str      # "User" or the team member's display name
    text: str

    @property
    def chat_role(self) -> str:
        return "user" if self.author is Author.USER else "assistant"


@dataclass
class Transcript:
    """Append-only record of turns. First turn is always the user's problem."""

    turns: list[Turn] = field(default_factory=list)

    def append(self, turn: Turn) -> None:
        if not self.turns and turn.author is not Author.USER:
            raise ValueError("Transcript must start with the user's problem")
        self.turns.append(turn)

    def as_messages(self) -> list[dict[str, str]]:
        """Render as ordered chat messages ({role, content})."""
        return [{"role": t.chat_role, "content": t.text} for t in self.turns]

    def __len__(self) -> int:
        return len(self.turns)


@dataclass
class ModelResponse:
    provider: str          # backend name: "openai", "anthropic", "gemini"
    model: str             # actual model string used
    content: str
    latency_sec: float
    token_count: int | None


@dataclass
class RoundState:
    round_number: int
    phase: Phase = Phase.DELEGATION
    member1_approved: bool = False
    member2_approved: bool = False

    @property
    def both_approved(self) -> bool:
        return self.member1_approved and self.member2_approved


@dataclass(frozen=True)
class PhaseDecision:
    is_approval_request: bool
    is_finalized: bool
    finalized_body: str | None


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    text: str              # solution, last leader text, or error reason

    @property
    def final_solution(self) -> str:
        """Text handed back to the caller as the answer."""
        if self.kind is OutcomeKind.FALLBACK:
            return f"Unable to fully resolve. Last attempt:\n{self.text}"
        return self.text


# --- Coordinator events, emitted in order; OutcomeReached is always last ---


@dataclass(frozen=True)
class TurnAppended:
    turn: Turn


@dataclass(frozen=True)
class PhaseDecided:
    round_number: int
    phase: Phase


@dataclass(frozen=True)
class LeaderMissed:
    round_number: int


@dataclass(frozen=True)
class OutcomeReached:
    outcome: Outcome
    rounds_run: int


TeamEvent = TurnAppended | PhaseDecided | LeaderMissed | OutcomeReached


@dataclass
class SolveResult:
    problem: str
    transcript: Transcript
    outcome: Outcome
    rounds_run: int
    total_duration_sec: float
    team: list[TeamMember] = field(default_factory=list)
