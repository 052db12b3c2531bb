"""
Pytest configuration for backend tests.

Adds the backend directory to Python path so imports like
'from llm_compare.xxx import ...' work correctly, and provides
fast, network-free provider streams and stores.
"""
import asyncio
import sys
from pathlib import Path
from typing import AsyncIterator, Optional

import pytest

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from llm_compare.ai.base import DripConfig, ProviderConfig, ProviderStream  # noqa: E402
from llm_compare.ai.drip import DripProviderStream  # noqa: E402
from llm_compare.services.results import (  # noqa: E402
    InMemoryResultStore,
    NewProviderResult,
    ProviderResult,
    ResultStoreError,
)


def make_config(model_id: str = "openai", **overrides) -> ProviderConfig:
    """Provider config with test-friendly defaults."""
    defaults = {
        "openai": dict(
            provider="openai",
            display_name="OpenAI",
            model_name="gpt-4o-mini",
            agent_model="openai:gpt-4o-mini",
            price_per_1k=0.15,
        ),
        "gemini": dict(
            provider="google",
            display_name="Gemini",
            model_name="gemini-2.5-flash",
            agent_model="google-gla:gemini-2.5-flash",
            price_per_1k=0.10,
        ),
    }[model_id]
    values = dict(
        model_id=model_id,
        drip=DripConfig(interval_ms=1, reply_template="Response to: {prompt}."),
        **defaults,
    )
    values.update(overrides)
    return ProviderConfig(**values)


class ScriptedProviderStream(ProviderStream):
    """
    Provider stream driven by a fixed list of increments.

    Optionally raises after the increments, or hangs until cancelled.
    Records whether its stream was released.
    """

    def __init__(
        self,
        config: ProviderConfig,
        increments: list[str],
        error: Optional[BaseException] = None,
        hang: bool = False,
    ):
        super().__init__(config)
        self.increments = increments
        self.error = error
        self.hang = hang
        self.started = asyncio.Event()
        self.released = False
        self.calls = 0

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        self.calls += 1
        self.started.set()
        try:
            for increment in self.increments:
                await asyncio.sleep(0)
                yield increment
            if self.error is not None:
                raise self.error
            if self.hang:
                await asyncio.Event().wait()
        finally:
            self.released = True


class FailingResultStore(InMemoryResultStore):
    """In-memory store whose writes can be switched to fail."""

    def __init__(self, fail_create: bool = False, fail_save: bool = False):
        super().__init__()
        self.fail_create = fail_create
        self.fail_save = fail_save
        self.create_calls = 0
        self.saved: list[NewProviderResult] = []

    async def create_run(self, prompt, user_id=None):
        self.create_calls += 1
        if self.fail_create:
            raise ResultStoreError("store unavailable")
        return await super().create_run(prompt, user_id)

    async def save_result(self, result: NewProviderResult) -> ProviderResult:
        self.saved.append(result)
        if self.fail_save:
            raise ResultStoreError("write failed")
        return await super().save_result(result)


@pytest.fixture
def openai_config() -> ProviderConfig:
    return make_config("openai")


@pytest.fixture
def gemini_config() -> ProviderConfig:
    return make_config("gemini")


@pytest.fixture
def store() -> FailingResultStore:
    return FailingResultStore()


@pytest.fixture
def drip_streams(openai_config, gemini_config):
    """Three-word drip streams at different cadences."""
    return (
        DripProviderStream(openai_config, reply_template="alpha beta gamma", interval_ms=2),
        DripProviderStream(gemini_config, reply_template="uno dos tres", interval_ms=5),
    )


@pytest.fixture
def providers_dir(tmp_path) -> Path:
    """Provider YAML directory with fast drip cadence."""
    (tmp_path / "openai.yaml").write_text(
        "model_id: openai\n"
        "provider: openai\n"
        "display_name: OpenAI\n"
        "model_name: gpt-4o-mini\n"
        'agent_model: "openai:gpt-4o-mini"\n'
        "price_per_1k: 0.15\n"
        "drip:\n"
        "  interval_ms: 1\n"
        '  reply_template: "OpenAI says {prompt} back"\n',
        encoding="utf-8",
    )
    (tmp_path / "gemini.yaml").write_text(
        "model_id: gemini\n"
        "provider: google\n"
        "display_name: Gemini\n"
        "model_name: gemini-2.5-flash\n"
        'agent_model: "google-gla:gemini-2.5-flash"\n'
        "price_per_1k: 0.10\n"
        "drip:\n"
        "  interval_ms: 2\n"
        '  reply_template: "Gemini says {prompt} too"\n',
        encoding="utf-8",
    )
    return tmp_path
