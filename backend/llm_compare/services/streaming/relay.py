"""
Stream Relay.

Fans one prompt out to two provider streams and fans their increments
back into a single ordered event sequence for the client.

Workflow:
1. Create the comparison run record and emit "session"
2. Start one task per branch; each pushes "chunk" events into the run's
   bounded queue as increments arrive
3. When a branch ends, compute metrics, persist its result and emit
   "status" (or emit "status" error if the provider failed)
4. When the join reaches both_done, emit "all-complete" and close

Backpressure: the queue is bounded and a full queue makes the producing
branch wait. Events are never dropped.
"""
import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional

from llm_compare.ai.base import ProviderStream
from llm_compare.services.results import (
    ComparisonRun,
    NewProviderResult,
    ResultStore,
    ResultStoreError,
)

from .errors import normalize_provider_error
from .executor import BranchExecutor
from .join import RunJoin
from .notifier import StreamNotifier
from .types import BranchResult

logger = logging.getLogger(__name__)

# Marks the end of a run's event sequence inside the queue
_CLOSED = object()


class InvalidPromptError(ValueError):
    """Prompt is missing or blank."""

    def __init__(self, message: str = "prompt is required"):
        self.message = message
        super().__init__(message)


class RunCreationError(Exception):
    """The comparison run could not be created. No streams were started."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class QueueSink:
    """Bounded outbound channel of one run. Single reader, many writers."""

    def __init__(self, maxsize: int):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def send(self, event: dict[str, Any]) -> None:
        await self._queue.put(event)

    async def close(self) -> None:
        await self._queue.put(_CLOSED)

    def close_nowait(self) -> None:
        """Wake a waiting reader. A full queue means nobody is waiting."""
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def receive(self) -> Any:
        return await self._queue.get()


class RelayRun:
    """
    One live comparison.

    Iterate it (async for) to receive the outbound events. Stopping the
    iteration early, or calling cancel(), cancels both branches and no
    further events are delivered.
    """

    def __init__(
        self,
        run: ComparisonRun,
        executors: list[BranchExecutor],
        store: ResultStore,
        sink: QueueSink,
        notifier: StreamNotifier,
    ):
        self.run = run
        self._executors = executors
        self._store = store
        self._sink = sink
        self._notifier = notifier
        self._join = RunJoin()
        self._tasks: list[asyncio.Task] = []
        self._cancelled = False

    @property
    def session_id(self) -> str:
        return self.run.id

    @property
    def is_complete(self) -> bool:
        """True once both branches reported a terminal event."""
        return self._join.is_complete

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Start every branch as its own task. Non-blocking."""
        for executor in self._executors:
            task = asyncio.create_task(
                self._run_branch(executor),
                name=f"branch-{self.run.id}-{executor.model_id}",
            )
            self._tasks.append(task)
        logger.info("Started run %s with %d branches", self.run.id, len(self._tasks))

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self.events()

    async def events(self) -> AsyncIterator[dict[str, Any]]:
        """Yield outbound events until all-complete or cancellation."""
        try:
            while not self._cancelled:
                event = await self._sink.receive()
                if event is _CLOSED or self._cancelled:
                    return
                yield event
        finally:
            if not self.is_complete:
                self.cancel()

    def cancel(self) -> None:
        """
        Cancel both branches.

        Synchronous so it can run from a cancelled context (e.g. the
        teardown of a disconnected SSE response).
        """
        if self._cancelled:
            return
        self._cancelled = True

        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        self._sink.close_nowait()
        logger.info(
            "Cancelled run %s (%d branches still streaming)",
            self.run.id,
            len(pending),
        )

    async def aclose(self) -> None:
        """Cancel (if still running) and wait until both branches have stopped."""
        if not self.is_complete:
            self.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _run_branch(self, executor: BranchExecutor) -> None:
        """
        Run one branch to its terminal event.

        Provider failures are reported on this branch only and never
        raised; cancellation propagates.
        """
        try:
            async with aclosing(executor.execute(self.run.prompt)) as chunks:
                async for chunk in chunks:
                    await self._notifier.notify_chunk(chunk)

        except asyncio.CancelledError:
            logger.info("Branch %s of run %s cancelled", executor.model_id, self.run.id)
            raise

        except Exception as e:
            error = normalize_provider_error(e, executor.provider.provider)
            logger.warning("Run %s: %s", self.run.id, error.log_message)
            executor.fail(error.log_message)
            await self._notifier.notify_error(executor.model_id, error.user_message)

        else:
            result = executor.complete()
            await self._save_result(executor.provider, result)
            await self._notifier.notify_complete(executor.model_id, result.metrics)

        await self._branch_finished()

    async def _save_result(self, provider: ProviderStream, result: BranchResult) -> None:
        """Persist a finished branch. Failures become a warning event."""
        try:
            await self._store.save_result(
                NewProviderResult(
                    run_id=self.run.id,
                    provider=provider.provider,
                    model_name=provider.model_name,
                    text=result.text,
                    token_count=result.metrics.token_count,
                    cost_usd=result.metrics.cost_usd,
                    elapsed_ms=result.metrics.response_time_ms,
                )
            )
        except Exception:
            logger.exception(
                "Failed to save %s result for run %s",
                provider.model_id,
                self.run.id,
            )
            await self._notifier.notify_error(
                provider.model_id,
                f"Failed to save {provider.display_name} result",
            )

    async def _branch_finished(self) -> None:
        # No await between the transition and the check: exactly one
        # branch observes both_done
        self._join.branch_done()
        if not self._join.is_complete:
            return

        await self._notifier.notify_all_complete(self.run.id)
        await self._sink.close()
        logger.info("Run %s complete", self.run.id)


class StreamRelay:
    """
    Entry point for comparison runs.

    Holds the store and the two provider streams; each call to run()
    starts an independent RelayRun.
    """

    def __init__(
        self,
        store: ResultStore,
        openai_stream: ProviderStream,
        gemini_stream: ProviderStream,
        event_buffer_size: int = 256,
    ):
        if openai_stream.model_id == gemini_stream.model_id:
            raise ValueError(f"Both branches use model id '{openai_stream.model_id}'")

        self._store = store
        self._streams = (openai_stream, gemini_stream)
        self._event_buffer_size = event_buffer_size

    @property
    def streams(self) -> tuple[ProviderStream, ProviderStream]:
        return self._streams

    async def run(self, prompt: str, user_id: Optional[str] = None) -> RelayRun:
        """
        Start a comparison for prompt.

        The returned run already holds the "session" event and both
        branches are streaming.

        Raises:
            InvalidPromptError: Prompt is missing or blank (nothing stored)
            RunCreationError: The run record could not be created
        """
        if not prompt or not prompt.strip():
            raise InvalidPromptError()

        try:
            record = await self._store.create_run(prompt, user_id)
        except ResultStoreError as e:
            logger.error("Failed to create comparison run: %s", e.message)
            raise RunCreationError("Failed to create comparison session", e) from e

        sink = QueueSink(self._event_buffer_size)
        notifier = StreamNotifier(sink)
        await notifier.notify_session(record.id)

        relay_run = RelayRun(
            run=record,
            executors=[BranchExecutor(stream) for stream in self._streams],
            store=self._store,
            sink=sink,
            notifier=notifier,
        )
        relay_run.start()
        return relay_run
