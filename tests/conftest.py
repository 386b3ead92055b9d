"""Shared pytest fixtures."""

import asyncio

import pytest

from config.config_loader import (
    AppConfig,
    BackendConfig,
    MemberConfig,
    PromptsConfig,
    ProtocolConfig,
)
from src.models import Author, ModelResponse, Team, TeamMember
from src.providers.base import AIProvider, ProviderError

LEADER_MODEL = "leader-model"
MEMBER1_MODEL = "member1-model"
MEMBER2_MODEL = "member2-model"

APPROVAL_REQUEST = "Member1, Member2, please confirm this solution is accurate: 2+2 = 4"
FINALIZED = "SOLUTION FINALIZED: 2+2 = 4 x019898199281x7: basic addition"


class MockProvider(AIProvider):
    """Test double AIProvider with scripted replies per model.

    Each script entry is consumed in call order: a string is returned as the
    reply, an Exception is raised, None raises an empty-content ProviderError.
    Once a model's script runs out, `default_reply` is returned.
    Models listed in `cancelled` were cancelled while sleeping in `delays`.
    """

    def __init__(
        self,
        scripts: dict[str, list] | None = None,
        provider_name: str = "openai",
        default_reply: str = "Mock response",
        delays: dict[str, float] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._name = provider_name
        self._scripts = {model: list(replies) for model, replies in (scripts or {}).items()}
        self._default_reply = default_reply
        self._delays = delays or {}
        self._timeout = timeout
        self.calls: list[dict] = []
        self.cancelled: list[str] = []

    def name(self) -> str:
        return self._name

    def timeout_sec(self) -> float:
        return self._timeout

    def calls_for(self, model: str) -> list[dict]:
        return [c for c in self.calls if c["model"] == model]

    async def generate(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        model: str,
        timeout_sec: float | None = None,
    ) -> ModelResponse:
        self.calls.append({
            "model": model,
            "system_prompt": system_prompt,
            "messages": [dict(m) for m in messages],
            "timeout_sec": timeout_sec,
        })
        if model in self._delays:
            try:
                await asyncio.sleep(self._delays[model])
            except asyncio.CancelledError:
                self.cancelled.append(model)
                raise
        script = self._scripts.get(model)
        reply = script.pop(0) if script else self._default_reply
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise ProviderError(self._name, f"Empty response content from {model}")
        return ModelResponse(
            provider=self._name,
            model=model,
            content=reply,
            latency_sec=0.01,
            token_count=10,
        )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        leader="You lead the team.",
        member="You are {member_name}.",
    )


@pytest.fixture
def sample_team() -> Team:
    return Team(
        leader=TeamMember(Author.LEADER, "Leader", LEADER_MODEL),
        member1=TeamMember(Author.MEMBER1, "Member1", MEMBER1_MODEL),
        member2=TeamMember(Author.MEMBER2, "Member2", MEMBER2_MODEL),
    )


@pytest.fixture
def sample_app_config(sample_prompts_config: PromptsConfig) -> AppConfig:
    return AppConfig(
        backends={
            "openai": BackendConfig(
                name="openai",
                api_key_env="TEST_OPENROUTER_KEY",
                timeout_sec=30,
                base_url="https://openrouter.ai/api/v1",
            )
        },
        team={
            "leader": MemberConfig("leader", "Leader", LEADER_MODEL),
            "member1": MemberConfig("member1", "Member1", MEMBER1_MODEL),
            "member2": MemberConfig("member2", "Member2", MEMBER2_MODEL),
        },
        protocol=ProtocolConfig(max_rounds=5, require_approval=True, max_problem_chars=5000),
        prompts=sample_prompts_config,
    )

