"""OpenAI-compatible provider (OpenRouter by default) using openai SDK with native async."""

import asyncio
import logging
import os
import time

from openai import AsyncOpenAI

from config.config_loader import BackendConfig
from src.models import ModelResponse
from src.providers.base import MAX_OUTPUT_TOKENS, TEMPERATURE, AIProvider, ProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """OpenAI-compatible chat completions via openai SDK."""

    def __init__(self, config: BackendConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)

    def name(self) -> str:
        return self._config.name

    def timeout_sec(self) -> float:
        return self._config.timeout_sec

    async def generate(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        model: str,
        timeout_sec: float | None = None,
    ) -> ModelResponse:
        timeout = timeout_sec if timeout_sec is not None else self._config.timeout_sec
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=model,
                    messages=[{"role": "system", "content": system_prompt}, *messages],
                    temperature=TEMPERATURE,
                    max_tokens=MAX_OUTPUT_TOKENS,
                ),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {timeout}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, f"Empty response content from {model}")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info("%s replied: %.2fs, %s tokens", model, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=model,
            content=choice.message.content,
            latency_sec=latency,
            token_count=token_count,
        )
