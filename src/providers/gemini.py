"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import os
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import BackendConfig
from src.models import ModelResponse
from src.providers.base import MAX_OUTPUT_TOKENS, TEMPERATURE, AIProvider, ProviderError

logger = logging.getLogger(__name__)


def _to_contents(messages: list[dict[str, str]]) -> list[genai_types.Content]:
    """Gemini names the assistant role 'model'."""
    return [
        genai_types.Content(
            role="user" if m["role"] == "user" else "model",
            parts=[genai_types.Part(text=m["content"])],
        )
        for m in messages
    ]


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: BackendConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

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
                self._client.aio.models.generate_content(
                    model=model,
                    contents=_to_contents(messages),
                    config=genai_types.GenerateContentConfig(
                        system_instruction=system_prompt,
                        temperature=TEMPERATURE,
                        max_output_tokens=MAX_OUTPUT_TOKENS,
                    ),
                ),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {timeout}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info("%s replied: %.2fs, %s tokens", model, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=model,
            content=response.text,
            latency_sec=latency,
            token_count=token_count,
        )
