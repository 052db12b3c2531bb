"""
Provider stream contract.

Every compared model is wrapped behind ProviderStream: a fresh async
iterator of non-empty text increments per call, ending either by
exhaustion (success) or by raising (failure). Cancelling the consuming
task closes the iterator and releases whatever transport it holds.
"""
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Literal

ProviderTag = Literal["openai", "google"]


@dataclass(frozen=True)
class DripConfig:
    """Cadence and canned reply for the offline drip stream."""

    interval_ms: int
    reply_template: str


@dataclass(frozen=True)
class ProviderConfig:
    """
    Static description of one compared model.

    Attributes:
        model_id: Wire id used in SSE events ("openai", "gemini")
        provider: Provider tag stored with results ("openai", "google")
        display_name: Human name used in user-facing messages
        model_name: Model identifier stored with results
        agent_model: pydantic-ai model string for live streaming
        price_per_1k: Flat USD price per 1K tokens (input and output combined)
        drip: Settings for the mock stream
    """

    model_id: str
    provider: ProviderTag
    display_name: str
    model_name: str
    agent_model: str
    price_per_1k: float
    drip: DripConfig


class ProviderStream(ABC):
    """Base class for a single provider's token stream."""

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def provider(self) -> ProviderTag:
        return self.config.provider

    @property
    def model_name(self) -> str:
        return self.config.model_name

    @property
    def model_id(self) -> str:
        return self.config.model_id

    @property
    def display_name(self) -> str:
        return self.config.display_name

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Start a new, independent stream of text increments for prompt."""

    def count_tokens(self, text: str) -> int:
        """
        Rough token estimate: ~4 characters per token.

        Deterministic and monotonic in text length, not a real tokenizer.
        """
        return math.ceil(len(text) / 4)

    def estimate_cost_usd(self, token_count: int) -> float:
        """Linear cost at the configured per-1K rate, 6 decimal places."""
        return round(token_count * self.config.price_per_1k / 1000, 6)

    async def run_once(self, prompt: str) -> dict:
        """
        Collect one full stream and compute its metrics.

        Handy for trying a provider in isolation, without the relay or SSE.
        """
        started = time.monotonic()
        text = ""
        async for increment in self.stream(prompt):
            text += increment
        response_time_ms = int((time.monotonic() - started) * 1000)
        token_count = self.count_tokens(text)

        return {
            "text": text,
            "responseTimeMs": response_time_ms,
            "tokenCount": token_count,
            "costUSD": self.estimate_cost_usd(token_count),
        }
