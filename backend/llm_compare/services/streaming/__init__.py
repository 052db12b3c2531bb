"""
Streaming Services Module.

Runs two provider streams side by side and relays them to one client.

Architecture:
- BranchExecutor: Drives one provider stream and tracks its state
- StreamNotifier: Formats events and writes them to the run's sink
- RunJoin: Two-branch join state machine
- StreamRelay: Coordinates a comparison run end to end

Usage:
    from llm_compare.services.streaming import StreamRelay, format_sse

    relay = StreamRelay(store, openai_stream, gemini_stream)
    run = await relay.run(prompt)
    async for event in run:
        yield format_sse(event)
"""

from .types import (
    StreamChunk,
    BranchMetrics,
    BranchResult,
    StreamState,
    BranchAlreadyDoneError,
)
from .errors import NormalizedError, normalize_provider_error
from .executor import BranchExecutor
from .join import RunJoin
from .notifier import StreamNotifier, format_sse
from .relay import (
    InvalidPromptError,
    RelayRun,
    RunCreationError,
    StreamRelay,
)

__all__ = [
    # Types
    "StreamChunk",
    "BranchMetrics",
    "BranchResult",
    "StreamState",
    "BranchAlreadyDoneError",
    "NormalizedError",
    # Errors
    "InvalidPromptError",
    "RunCreationError",
    "normalize_provider_error",
    # Services
    "BranchExecutor",
    "RunJoin",
    "StreamNotifier",
    "format_sse",
    "StreamRelay",
    "RelayRun",
]
