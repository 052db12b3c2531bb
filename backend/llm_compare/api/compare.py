"""
Compare streaming endpoint.

GET /api/compare/stream?prompt=... answers with Server-Sent Events:
- {"type": "session", "sessionId": "..."} - run created, always first
- {"type": "chunk", "modelId": "openai"|"gemini", "data": "..."} - text increment
- {"type": "status", "modelId": "...", "status": "complete", "metrics": {...}}
- {"type": "status", "modelId": "...", "status": "error", "message": "..."}
- {"type": "all-complete"} - both models finished, stream closes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from llm_compare.api.deps import get_relay
from llm_compare.services.streaming import (
    InvalidPromptError,
    RelayRun,
    RunCreationError,
    StreamRelay,
    format_sse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/compare", tags=["compare"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def relay_events(run: RelayRun):
    """Encode a run's events as SSE frames, cancelling the run on teardown."""
    try:
        async for event in run:
            yield format_sse(event)
    finally:
        # Reached early when the client disconnects
        if not run.is_complete:
            logger.info("Client left run %s before completion", run.session_id)
            run.cancel()


@router.get("/stream")
async def compare_stream(
    prompt: Optional[str] = Query(None, description="Prompt sent to both models"),
    relay: StreamRelay = Depends(get_relay),
) -> StreamingResponse:
    """Stream both models' answers to prompt as interleaved SSE events."""
    try:
        run = await relay.run(prompt or "")
    except InvalidPromptError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except RunCreationError as e:
        raise HTTPException(status_code=503, detail=e.message)

    return StreamingResponse(
        relay_events(run),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
