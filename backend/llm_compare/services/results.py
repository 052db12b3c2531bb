"""
Result Store for comparison runs.

Persists one ComparisonRun per submitted prompt and one ProviderResult
per successfully finished provider stream. Two implementations share
the ResultStore protocol: Pocketbase for deployments and an in-memory
store for local development and tests.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

from llm_compare.services.pocketbase import PocketbaseError, PocketbaseService

logger = logging.getLogger(__name__)

RUNS_COLLECTION = "comparison_sessions"
RESULTS_COLLECTION = "model_results"


class ResultStoreError(Exception):
    """Storage failure while creating or reading runs and results."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class RunNotFoundError(ResultStoreError):
    """The referenced comparison run does not exist."""


@dataclass(frozen=True)
class ComparisonRun:
    """One prompt submission. Immutable once created."""

    id: str
    prompt: str
    created_at: str
    user_id: Optional[str] = None


@dataclass(frozen=True)
class NewProviderResult:
    """Values for a ProviderResult that has not been stored yet."""

    run_id: str
    provider: str
    model_name: str
    text: str
    token_count: int
    cost_usd: float
    elapsed_ms: int


@dataclass(frozen=True)
class ProviderResult:
    """Final text and metrics of one provider for one run."""

    id: str
    run_id: str
    provider: str
    model_name: str
    text: str
    token_count: int
    cost_usd: float
    elapsed_ms: int
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sessionId": self.run_id,
            "provider": self.provider,
            "modelName": self.model_name,
            "responseText": self.text,
            "tokenCount": self.token_count,
            "costUSD": self.cost_usd,
            "responseTimeMs": self.elapsed_ms,
            "createdAt": self.created_at,
        }


class ResultStore(Protocol):
    """Protocol for run and result persistence."""

    async def create_run(self, prompt: str, user_id: Optional[str] = None) -> ComparisonRun: ...

    async def save_result(self, result: NewProviderResult) -> ProviderResult: ...

    async def get_run_with_results(
        self, run_id: str
    ) -> tuple[ComparisonRun, list[ProviderResult]]: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryResultStore:
    """
    Process-local result store.

    Data is lost on restart. Used with RESULT_STORE=memory and in tests.
    """

    def __init__(self):
        self._runs: dict[str, ComparisonRun] = {}
        self._results: dict[str, list[ProviderResult]] = {}

    async def create_run(self, prompt: str, user_id: Optional[str] = None) -> ComparisonRun:
        run = ComparisonRun(
            id=uuid.uuid4().hex,
            prompt=prompt,
            created_at=_now_iso(),
            user_id=user_id,
        )
        self._runs[run.id] = run
        self._results[run.id] = []
        logger.debug("Created run %s", run.id)
        return run

    async def save_result(self, result: NewProviderResult) -> ProviderResult:
        if result.run_id not in self._runs:
            raise RunNotFoundError(f"Session not found: {result.run_id}")

        stored = ProviderResult(
            id=uuid.uuid4().hex,
            run_id=result.run_id,
            provider=result.provider,
            model_name=result.model_name,
            text=result.text,
            token_count=result.token_count,
            cost_usd=result.cost_usd,
            elapsed_ms=result.elapsed_ms,
            created_at=_now_iso(),
        )
        self._results[result.run_id].append(stored)
        return stored

    async def get_run_with_results(
        self, run_id: str
    ) -> tuple[ComparisonRun, list[ProviderResult]]:
        run = self._runs.get(run_id)
        if not run:
            raise RunNotFoundError(f"Session not found: {run_id}")
        return run, list(self._results[run_id])


class PocketbaseResultStore:
    """
    Result store backed by Pocketbase collections.

    comparison_sessions holds runs, model_results holds provider results
    linked by session_id.
    """

    def __init__(self, pocketbase: PocketbaseService):
        self._pb = pocketbase

    async def create_run(self, prompt: str, user_id: Optional[str] = None) -> ComparisonRun:
        try:
            record = await self._pb.create_record(
                RUNS_COLLECTION,
                {"prompt": prompt, "user_id": user_id or ""},
            )
        except PocketbaseError as e:
            raise ResultStoreError(f"Failed to create session: {e.message}", e)

        return self._run_from_record(record)

    async def save_result(self, result: NewProviderResult) -> ProviderResult:
        # Ensure the parent session exists before inserting the result
        await self._get_run_record(result.run_id)

        try:
            record = await self._pb.create_record(
                RESULTS_COLLECTION,
                {
                    "session_id": result.run_id,
                    "provider": result.provider,
                    "model_name": result.model_name,
                    "response_text": result.text,
                    "token_count": result.token_count,
                    "cost_usd": result.cost_usd,
                    "response_time_ms": result.elapsed_ms,
                },
            )
        except PocketbaseError as e:
            raise ResultStoreError(f"Failed to save result: {e.message}", e)

        return self._result_from_record(record)

    async def get_run_with_results(
        self, run_id: str
    ) -> tuple[ComparisonRun, list[ProviderResult]]:
        record = await self._get_run_record(run_id)

        try:
            page = await self._pb.list_records(
                RESULTS_COLLECTION,
                filter=f'session_id="{run_id}"',
                sort="created",
                per_page=50,
            )
        except PocketbaseError as e:
            raise ResultStoreError(f"Failed to load results: {e.message}", e)

        results = [self._result_from_record(item) for item in page.get("items", [])]
        return self._run_from_record(record), results

    async def _get_run_record(self, run_id: str) -> dict:
        try:
            return await self._pb.get_record(RUNS_COLLECTION, run_id)
        except PocketbaseError as e:
            if e.status_code == 404:
                raise RunNotFoundError(f"Session not found: {run_id}", e)
            raise ResultStoreError(f"Failed to load session: {e.message}", e)

    @staticmethod
    def _run_from_record(record: dict) -> ComparisonRun:
        return ComparisonRun(
            id=record["id"],
            prompt=record["prompt"],
            created_at=record.get("created") or _now_iso(),
            user_id=record.get("user_id") or None,
        )

    @staticmethod
    def _result_from_record(record: dict) -> ProviderResult:
        return ProviderResult(
            id=record["id"],
            run_id=record["session_id"],
            provider=record["provider"],
            model_name=record["model_name"],
            text=record.get("response_text", ""),
            token_count=int(record.get("token_count", 0)),
            cost_usd=float(record.get("cost_usd", 0.0)),
            elapsed_ms=int(record.get("response_time_ms", 0)),
            created_at=record.get("created"),
        )
