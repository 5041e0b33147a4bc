"""Operator overrides and computation log records."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .allocation import ParticipantId
from .result import ScoringMode


def generate_id(prefix: str) -> str:
    """Generate a prefixed unique ID."""
    return f"{prefix}_{uuid4().hex[:12]}"


class ScoreOverride(BaseModel):
    """A manually pinned score for one participant.

    Overrides live outside the trust graph: they are applied after the
    engine returns and never feed the next run.

    Attributes:
        participant_id: Participant whose published values are pinned.
        score: Pinned score on the 0-100 display scale.
        reason: Operator note.
        created_at: When the override was set.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    participant_id: ParticipantId
    score: float = Field(ge=0.0, le=100.0, description="Pinned score on the 0-100 scale")
    reason: str | None = Field(default=None, description="Operator note")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def trust_score(self) -> float:
        """Pinned value on the engine's raw score scale."""
        return self.score / 100

    @property
    def percentile(self) -> int:
        return int(self.score + 0.5)


class ComputationLogEntry(BaseModel):
    """One row of the computation log kept by the persistence sink."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=lambda: generate_id("run"))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    participants: int = Field(ge=0)
    iterations: int = Field(ge=0)
    converged: bool
    alpha: float
    max_iterations: int
    convergence_threshold: float
    mode: ScoringMode
    triggered_by: str = "manual"
    elapsed_ms: int = Field(default=0, ge=0)
