"""Build the fixed team and the chat backends it needs from AppConfig."""

import logging

from config.config_loader import AppConfig
from src.models import Author, Team, TeamMember
from src.providers.anthropic import AnthropicProvider
from src.providers.base import AIProvider
from src.providers.gemini import GeminiProvider
from src.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}

_ROLE_AUTHORS = {
    "leader": Author.LEADER,
    "member1": Author.MEMBER1,
    "member2": Author.MEMBER2,
}


def build_team(config: AppConfig) -> Team:
    members = {
        role: TeamMember(
            author=_ROLE_AUTHORS[role],
            display_name=cfg.display_name,
            model=cfg.model,
            sdk=cfg.sdk,
        )
        for role, cfg in config.team.items()
    }
    return Team(leader=members["leader"], member1=members["member1"], member2=members["member2"])


def build_providers(config: AppConfig, team: Team) -> dict[str, AIProvider]:
    """Instantiate one provider per backend the team uses. Returns dict keyed by sdk name.

    Raises:
        ProviderError: If a needed backend has no API key.
        ValueError: If a team member names an unknown sdk.
    """
    providers: dict[str, AIProvider] = {}
    for member in team.roster():
        if member.sdk in providers:
            continue
        if member.sdk not in PROVIDER_CLASSES:
            raise ValueError(f"Unknown sdk '{member.sdk}' for {member.display_name}")
        providers[member.sdk] = PROVIDER_CLASSES[member.sdk](config.backends[member.sdk])
        logger.info("Backend ready: %s", member.sdk)
    return providers
