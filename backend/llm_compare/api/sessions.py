"""
Comparison sessions API endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from llm_compare.api.deps import get_store
from llm_compare.services.results import ResultStore, ResultStoreError, RunNotFoundError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class CreateSessionRequest(BaseModel):
    """Request for creating a session without streaming."""

    prompt: str = Field(min_length=1)
    user_id: Optional[str] = None

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt cannot be blank")
        return v


class SessionResponse(BaseModel):
    """Created session."""

    sessionId: str
    prompt: str
    createdAt: str


class ModelResultResponse(BaseModel):
    """Stored result of one model."""

    id: str
    sessionId: str
    provider: str
    modelName: str
    responseText: str
    tokenCount: int
    costUSD: float
    responseTimeMs: int
    createdAt: Optional[str] = None


class SessionWithResults(BaseModel):
    """Session with its model results."""

    id: str
    prompt: str
    userId: Optional[str] = None
    createdAt: str
    results: list[ModelResultResponse]


@router.post("", response_model=SessionResponse)
async def create_session(
    request: CreateSessionRequest,
    store: ResultStore = Depends(get_store),
) -> SessionResponse:
    """Create a session for a prompt."""
    try:
        run = await store.create_run(request.prompt, request.user_id)
    except ResultStoreError as e:
        logger.error("Failed to create session: %s", e.message)
        raise HTTPException(status_code=503, detail="Failed to create session")

    return SessionResponse(sessionId=run.id, prompt=run.prompt, createdAt=run.created_at)


@router.get("/{session_id}", response_model=SessionWithResults)
async def get_session(
    session_id: str,
    store: ResultStore = Depends(get_store),
) -> SessionWithResults:
    """Get a session along with its model results."""
    try:
        run, results = await store.get_run_with_results(session_id)
    except RunNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except ResultStoreError as e:
        logger.error("Failed to load session %s: %s", session_id, e.message)
        raise HTTPException(status_code=503, detail="Failed to load session")

    return SessionWithResults(
        id=run.id,
        prompt=run.prompt,
        userId=run.user_id,
        createdAt=run.created_at,
        results=[ModelResultResponse(**result.to_dict()) for result in results],
    )
