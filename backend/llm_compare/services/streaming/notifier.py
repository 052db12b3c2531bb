"""
Stream Notifier.

Formats relay events for the client and writes them to the run's sink.
The sink is the only path to the client, so events leave in the order
the notifier writes them.
"""
import json
import logging
from typing import Any, Optional, Protocol

from .types import BranchMetrics, StreamChunk

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Protocol for the outbound event channel of one run."""

    async def send(self, event: dict[str, Any]) -> None: ...


def format_sse(event: dict[str, Any]) -> str:
    """Encode one event as a Server-Sent Events data frame."""
    return f"data: {json.dumps(event)}\n\n"


class StreamNotifier:
    """
    Sends comparison events to one run's sink.

    Event types:
    - session: {"type": "session", "sessionId": ...}
    - chunk: {"type": "chunk", "modelId": ..., "data": ...}
    - status: {"type": "status", "modelId": ..., "status": "complete"|"error", ...}
    - all-complete: {"type": "all-complete"}
    """

    def __init__(self, sink: EventSink):
        self._sink = sink

    async def notify_session(self, session_id: str) -> None:
        """Announce the run id. Always the first event."""
        await self._sink.send({"type": "session", "sessionId": session_id})
        logger.debug("Sent session for run: %s", session_id)

    async def notify_chunk(self, chunk: StreamChunk) -> None:
        await self._sink.send(
            {
                "type": "chunk",
                "modelId": chunk.model_id,
                "data": chunk.delta,
            }
        )

    async def notify_complete(self, model_id: str, metrics: BranchMetrics) -> None:
        await self._sink.send(
            {
                "type": "status",
                "modelId": model_id,
                "status": "complete",
                "metrics": metrics.to_dict(),
            }
        )
        logger.debug("Sent status complete for %s", model_id)

    async def notify_error(self, model_id: str, message: str) -> None:
        """
        Report a branch problem to the client.

        Used both for failed streams and for results that could not be saved.
        """
        await self._sink.send(
            {
                "type": "status",
                "modelId": model_id,
                "status": "error",
                "message": message,
            }
        )
        logger.debug("Sent status error for %s: %s", model_id, message)

    async def notify_all_complete(self, session_id: Optional[str] = None) -> None:
        await self._sink.send({"type": "all-complete"})
        logger.debug("Sent all-complete for run: %s", session_id)
