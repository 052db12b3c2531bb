"""
Streaming Types.

Data structures for one comparison run's branches.
Results are immutable dataclasses; StreamState is the only mutable piece.
"""
import time
from dataclasses import dataclass, field
from typing import Optional


class BranchAlreadyDoneError(RuntimeError):
    """Raised when a finished branch is written to again."""


@dataclass(frozen=True)
class StreamChunk:
    """
    Single increment of one branch.

    Attributes:
        model_id: Wire id of the branch ("openai", "gemini")
        delta: New text since the previous chunk
    """

    model_id: str
    delta: str


@dataclass(frozen=True)
class BranchMetrics:
    """Latency, size and cost of a finished branch."""

    response_time_ms: int
    token_count: int
    cost_usd: float

    def to_dict(self) -> dict:
        return {
            "responseTimeMs": self.response_time_ms,
            "tokenCount": self.token_count,
            "costUSD": self.cost_usd,
        }


@dataclass(frozen=True)
class BranchResult:
    """
    Final outcome of a successful branch.

    text is exactly the concatenation of the branch's chunks.
    """

    model_id: str
    text: str
    metrics: BranchMetrics


@dataclass
class StreamState:
    """
    Mutable state of one branch while it streams.

    Once done is set it stays set and accumulated_content is frozen.
    """

    model_id: str
    started_at: float = field(default_factory=time.monotonic)
    accumulated_content: str = ""
    done: bool = False
    error: Optional[str] = None

    def append(self, delta: str) -> StreamChunk:
        """Append delta and return the matching chunk."""
        if self.done:
            raise BranchAlreadyDoneError(f"Branch {self.model_id} already finished")
        self.accumulated_content += delta
        return StreamChunk(model_id=self.model_id, delta=delta)

    def elapsed_ms(self) -> int:
        return max(0, int((time.monotonic() - self.started_at) * 1000))

    def complete(self) -> str:
        """Mark branch as finished and return its final text."""
        if self.done:
            raise BranchAlreadyDoneError(f"Branch {self.model_id} already finished")
        self.done = True
        return self.accumulated_content

    def fail(self, error: str) -> None:
        """Mark branch as failed."""
        if self.done:
            raise BranchAlreadyDoneError(f"Branch {self.model_id} already finished")
        self.done = True
        self.error = error
