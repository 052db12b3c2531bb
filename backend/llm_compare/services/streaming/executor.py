"""
Branch Executor.

Drives one provider stream for one run.
Single Responsibility: only consumes the provider and tracks state,
not notification or persistence.
"""
import logging
import time
from contextlib import aclosing
from typing import AsyncIterator

from llm_compare.ai.base import ProviderStream

from .types import BranchMetrics, BranchResult, StreamChunk, StreamState

logger = logging.getLogger(__name__)


class BranchExecutor:
    """
    Executes a single branch of a comparison.

    Converts provider increments into StreamChunk events while keeping
    the branch's StreamState, and computes the final metrics from the
    frozen text once the provider finishes.
    """

    def __init__(self, provider: ProviderStream):
        self.provider = provider
        self.state = StreamState(model_id=provider.model_id)

    @property
    def model_id(self) -> str:
        return self.provider.model_id

    async def execute(self, prompt: str) -> AsyncIterator[StreamChunk]:
        """
        Stream the provider's answer to prompt.

        Yields one StreamChunk per non-empty increment. Provider exceptions
        propagate to the caller unchanged.
        """
        logger.info("Starting %s branch (%s)", self.model_id, self.provider.model_name)
        self.state.started_at = time.monotonic()

        # aclosing: closing this generator closes the provider's transport too
        async with aclosing(self.provider.stream(prompt)) as increments:
            async for increment in increments:
                if not increment:
                    continue
                yield self.state.append(increment)

        logger.info(
            "%s branch finished streaming, total chars: %d",
            self.model_id,
            len(self.state.accumulated_content),
        )

    def complete(self) -> BranchResult:
        """
        Freeze the branch and compute its metrics.

        Metrics are derived from exactly the text that was streamed.
        """
        response_time_ms = self.state.elapsed_ms()
        text = self.state.complete()
        token_count = self.provider.count_tokens(text)

        return BranchResult(
            model_id=self.model_id,
            text=text,
            metrics=BranchMetrics(
                response_time_ms=response_time_ms,
                token_count=token_count,
                cost_usd=self.provider.estimate_cost_usd(token_count),
            ),
        )

    def fail(self, error: str) -> None:
        """Mark the branch as failed. No metrics are computed."""
        self.state.fail(error)
