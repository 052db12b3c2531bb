"""
Deterministic drip stream.

Splits a canned reply into words and emits them one by one at a fixed
cadence, so the relay and SSE pipeline can run without spending tokens.
"""
import asyncio
import logging
from typing import AsyncIterator, Optional

from llm_compare.ai.base import ProviderConfig, ProviderStream

logger = logging.getLogger(__name__)


class DripProviderStream(ProviderStream):
    """
    Mock provider that drip-feeds words from a template.

    The template's "{prompt}" placeholder is filled with the user prompt.
    Each increment is one word followed by a single space.
    """

    def __init__(
        self,
        config: ProviderConfig,
        reply_template: Optional[str] = None,
        interval_ms: Optional[int] = None,
    ):
        super().__init__(config)
        self.reply_template = reply_template or config.drip.reply_template
        self.interval_ms = config.drip.interval_ms if interval_ms is None else interval_ms

    def render_reply(self, prompt: str) -> str:
        return self.reply_template.replace("{prompt}", prompt)

    def words(self, prompt: str) -> list[str]:
        return [word for word in self.render_reply(prompt).split(" ") if word]

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        interval = self.interval_ms / 1000
        words = self.words(prompt)
        logger.debug("Drip stream for %s: %d words", self.model_id, len(words))

        for word in words:
            # The sleep is the timer; cancellation interrupts it here
            await asyncio.sleep(interval)
            yield word + " "
