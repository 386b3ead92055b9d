"""Load settings.yaml into typed dataclasses. Reports available backends at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

TEAM_ROLES = ("leader", "member1", "member2")


@dataclass
class BackendConfig:
    name: str              # "openai", "anthropic", "gemini"
    api_key_env: str
    timeout_sec: int
    base_url: str | None = None


@dataclass
class MemberConfig:
    role: str              # "leader", "member1", "member2"
    display_name: str
    model: str
    sdk: str = "openai"


@dataclass
class ProtocolConfig:
    max_rounds: int = 5
    require_approval: bool = True
    max_problem_chars: int = 5000


@dataclass
class PromptsConfig:
    leader: str
    member: str            # formatted with {member_name}


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class AppConfig:
    backends: dict[str, BackendConfig]
    team: dict[str, MemberConfig]
    protocol: ProtocolConfig
    prompts: PromptsConfig
    server: ServerConfig = field(default_factory=ServerConfig)
    available_backends: set[str] = field(default_factory=set)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError if the team
    section does not name exactly a leader and two members.
    Logs which backends have API keys but does not raise; providers raise
    ProviderError when they are built without one.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    llm_raw = raw["llm"]
    backends: dict[str, BackendConfig] = {
        "openai": BackendConfig(
            name="openai",
            api_key_env=llm_raw["api_key_env"],
            timeout_sec=int(llm_raw["timeout_sec"]),
            base_url=llm_raw.get("base_url"),
        )
    }
    for backend_name, backend_raw in (llm_raw.get("backends") or {}).items():
        backends[backend_name] = BackendConfig(
            name=backend_name,
            api_key_env=backend_raw["api_key_env"],
            timeout_sec=int(backend_raw.get("timeout_sec", llm_raw["timeout_sec"])),
            base_url=backend_raw.get("base_url"),
        )

    team_raw = raw["team"]
    if set(team_raw) != set(TEAM_ROLES):
        raise ValueError(f"team must define exactly {', '.join(TEAM_ROLES)}; got {sorted(team_raw)}")

    team: dict[str, MemberConfig] = {}
    for role in TEAM_ROLES:
        member_raw = team_raw[role]
        sdk = str(member_raw.get("sdk", "openai"))
        if sdk not in backends:
            raise ValueError(f"team.{role} uses sdk '{sdk}' but no such backend is configured")
        team[role] = MemberConfig(
            role=role,
            display_name=str(member_raw["display_name"]),
            model=str(member_raw["model"]),
            sdk=sdk,
        )

    protocol_raw = raw.get("protocol", {})
    protocol = ProtocolConfig(
        max_rounds=int(protocol_raw.get("max_rounds", 5)),
        require_approval=bool(protocol_raw.get("require_approval", True)),
        max_problem_chars=int(protocol_raw.get("max_problem_chars", 5000)),
    )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        leader=prompts_raw["leader"],
        member=prompts_raw["member"],
    )

    server_raw = raw.get("server", {})
    server = ServerConfig(
        host=str(server_raw.get("host", "127.0.0.1")),
        port=int(server_raw.get("port", 8000)),
    )

    available_backends: set[str] = set()
    for backend in backends.values():
        api_key = os.environ.get(backend.api_key_env, "").strip()
        if api_key:
            available_backends.add(backend.name)
            logger.info("Backend available: %s", backend.name)
        else:
            logger.info(
                "Backend has no API key: %s — set %s in .env",
                backend.name,
                backend.api_key_env,
            )

    return AppConfig(
        backends=backends,
        team=team,
        protocol=protocol,
        prompts=prompts,
        server=server,
        available_backends=available_backends,
    )
