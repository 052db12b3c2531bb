"""
Live provider streams backed by PydanticAI.

Each stream builds a text-only agent for the configured model string
(e.g. "openai:gpt-4o-mini", "google-gla:gemini-2.5-flash") and relays
the deltas of Agent.run_stream() as increments.
"""
import logging
from typing import AsyncIterator, Optional

from pydantic_ai import Agent

from llm_compare.ai.base import ProviderConfig, ProviderStream

logger = logging.getLogger(__name__)


def create_agent(model: str, system_prompt: Optional[str] = None) -> Agent[None, str]:
    """
    Create a text-only PydanticAI agent.

    No output_type, so stream_text() is available on its runs.
    Credentials are read by PydanticAI from the provider's usual env
    variables (OPENAI_API_KEY, GEMINI_API_KEY).
    """
    logger.info("Creating streaming agent with model: %s", model)

    if system_prompt:
        return Agent(model=model, system_prompt=system_prompt)
    return Agent(model=model)


class AgentProviderStream(ProviderStream):
    """Provider stream that talks to the real model API."""

    def __init__(self, config: ProviderConfig, system_prompt: Optional[str] = None):
        super().__init__(config)
        self.system_prompt = system_prompt

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        # Built per call so a missing key fails this branch, not app startup
        agent = create_agent(self.config.agent_model, self.system_prompt)

        logger.info("Starting %s stream with %s", self.model_id, self.config.agent_model)

        # Leaving the context (normally or by cancellation) closes the HTTP stream
        async with agent.run_stream(prompt) as result:
            async for delta in result.stream_text(delta=True):
                if delta:
                    yield delta
