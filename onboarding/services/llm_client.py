"""
LLM Client for the trip planner chat.
Any OpenAI-compatible provider works (OpenAI, Mistral, OpenRouter, Ollama);
the 'mock' provider answers offline with keyword replies.
"""
import logging
from typing import Optional

import httpx
from openai import AsyncOpenAI

from ..config import Settings, get_llm_config

logger = logging.getLogger(__name__)


class LLMClient:
    """Chat completions for the planner, backed by a provider or the mock."""

    def __init__(self, config: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None):
        llm_config = get_llm_config(config)
        self.provider = llm_config["provider"]
        self.model = llm_config["model"]
        self.temperature = llm_config["temperature"]
        self.max_tokens = llm_config["max_tokens"]

        if self.provider == "mock":
            from .mock_llm import MockLLMClient
            self._mock = MockLLMClient()
            self.model = self._mock.model
            self.client = None
        else:
            self._mock = None
            self.client = AsyncOpenAI(
                api_key=llm_config["api_key"],
                base_url=llm_config["base_url"],
                http_client=http_client,
            )
        logger.info(f"Planner LLM: provider={self.provider} model={self.model}")

    @property
    def is_mock(self) -> bool:
        return self._mock is not None

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Override default temperature
            max_tokens: Override default max tokens

        Returns:
            The assistant's reply text, "" when the provider sent none
        """
        if self._mock is not None:
            return await self._mock.chat(messages, temperature, max_tokens)

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.max_tokens,
        )
        if not response.choices:
            logger.warning(f"Provider {self.provider} returned no choices")
            return ""
        return response.choices[0].message.content or ""


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Planner LLM client built from the global settings, created on first use."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
