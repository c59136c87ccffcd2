"""
Store Review Insights LLM Client
================================

Thin async client over the text-generation providers.
Supports OpenAI (default) and Claude (Anthropic).

The LLM is used for:
1. Qualitative summaries of a scope's reviews (strengths, weaknesses, ...)
2. Extracting the most mentioned praises and complaints
"""

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from enum import Enum

import anthropic
import openai

logger = logging.getLogger(__name__)


class LLMProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class LLMResponse:
    """Response of an LLM call."""
    content: str
    model: str
    provider: LLMProvider
    tokens_input: int
    tokens_output: int
    cost_usd: float

    @property
    def total_tokens(self) -> int:
        return self.tokens_input + self.tokens_output


class LLMClient(ABC):
    """Abstract LLM client."""

    provider: LLMProvider
    model: str

    def __init__(self, temperature: float = 0.3):
        self.temperature = temperature

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """Generate a response."""
        pass

    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        """Raw text of a single completion."""
        response = await self.generate(prompt=prompt, system=system)
        logger.debug(
            f"{self.provider.value}/{response.model}: {response.total_tokens} tokens, "
            f"${response.cost_usd:.4f}"
        )
        return response.content


class OpenAIClient(LLMClient):
    """Client for OpenAI GPT models."""

    provider = LLMProvider.OPENAI

    # Pricing per 1M tokens (USD)
    PRICING = {
        "gpt-4o": {"input": 2.5, "output": 10.0},
        "gpt-4o-mini": {"input": 0.15, "output": 0.6},
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
    ):
        super().__init__(temperature)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model
        self._client = None

        if not self.api_key:
            raise ValueError("OPENAI_API_KEY required")

    def _get_client(self) -> openai.AsyncOpenAI:
        """Lazy init of the OpenAI client."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.api_key)
        return self._client

    def _calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        pricing = self.PRICING.get(self.model, {"input": 2.5, "output": 10.0})
        cost = (input_tokens * pricing["input"] + output_tokens * pricing["output"]) / 1_000_000
        return round(cost, 6)

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        client = self._get_client()

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = await client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=self.temperature if temperature is None else temperature,
        )

        content = response.choices[0].message.content or ""
        input_tokens = response.usage.prompt_tokens
        output_tokens = response.usage.completion_tokens

        return LLMResponse(
            content=content,
            model=self.model,
            provider=LLMProvider.OPENAI,
            tokens_input=input_tokens,
            tokens_output=output_tokens,
            cost_usd=self._calculate_cost(input_tokens, output_tokens),
        )


class AnthropicClient(LLMClient):
    """
    Client for Claude (Anthropic).

    Used when only ANTHROPIC_API_KEY is configured or LLM_PROVIDER=anthropic.
    """

    provider = LLMProvider.ANTHROPIC

    PRICING = {
        "claude-3-5-sonnet-20241022": {"input": 3.0, "output": 15.0},
        "claude-sonnet-4-20250514": {"input": 3.0, "output": 15.0},
        "claude-3-haiku-20240307": {"input": 0.25, "output": 1.25},
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-sonnet-4-20250514",
        temperature: float = 0.3,
    ):
        super().__init__(temperature)
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self.model = model
        self._client = None

        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY required")

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Lazy init of the Anthropic client."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    def _calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        pricing = self.PRICING.get(self.model, {"input": 3.0, "output": 15.0})
        cost = (input_tokens * pricing["input"] + output_tokens * pricing["output"]) / 1_000_000
        return round(cost, 6)

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        client = self._get_client()

        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature if temperature is None else temperature,
        }
        if system:
            kwargs["system"] = system

        response = await client.messages.create(**kwargs)

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens

        return LLMResponse(
            content=content,
            model=self.model,
            provider=LLMProvider.ANTHROPIC,
            tokens_input=input_tokens,
            tokens_output=output_tokens,
            cost_usd=self._calculate_cost(input_tokens, output_tokens),
        )


def get_llm_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    temperature: float = 0.3,
) -> LLMClient:
    """
    Factory for an LLM client.

    Priority:
    1. Explicit provider
    2. OPENAI_API_KEY present -> GPT
    3. ANTHROPIC_API_KEY present -> Claude
    4. Error

    Raises:
        ValueError: If no API key is available for the chosen provider
    """
    openai_key = os.getenv("OPENAI_API_KEY")
    anthropic_key = os.getenv("ANTHROPIC_API_KEY")

    if provider == "openai" or (not provider and openai_key):
        return OpenAIClient(model=model or "gpt-4o-mini", temperature=temperature)
    elif provider == "anthropic" or (not provider and anthropic_key):
        return AnthropicClient(model=model or "claude-sonnet-4-20250514", temperature=temperature)

    raise ValueError(
        "No LLM API key found. Set OPENAI_API_KEY or ANTHROPIC_API_KEY"
    )
