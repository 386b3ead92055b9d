"""Abstract base for all chat-completion backends."""

from abc import ABC, abstractmethod

from src.models import ModelResponse

# Sampling settings shared by every agent invocation.
TEMPERATURE = 0.4
MAX_OUTPUT_TOKENS = 4000


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Abstract base for all chat-completion backends."""

    @abstractmethod
    def name(self) -> str:
        """Return the short backend name (e.g. 'openai', 'anthropic')."""
        ...

    @abstractmethod
    def timeout_sec(self) -> float:
        """Return the configured per-request timeout."""
        ...

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        model: str,
        timeout_sec: float | None = None,
    ) -> ModelResponse:
        """Generate one reply for a conversation.

        Args:
            system_prompt: Role instructions sent ahead of the conversation.
            messages: Ordered {role, content} dicts, role is "user" or "assistant".
            model: Model identifier to call.
            timeout_sec: Override for the configured timeout (used on retry).

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...
