"""Request and result models for a trust computation run."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from anchortrust.config import (
    DEFAULT_ALLOCATION_BUDGET,
    DEFAULT_ALPHA,
    DEFAULT_CONVERGENCE_THRESHOLD,
    DEFAULT_MAX_ITERATIONS,
    TrustParameters,
)

from .allocation import GraphSnapshot, ParticipantId, RawGraph


class ScoringMode(str, Enum):
    """How participant scores are read off the solver."""

    DECOUPLED = "decoupled"  # Own allocations never reach own score
    STANDARD = "standard"  # Single power iteration over the full matrix


class TrustRequest(BaseModel):
    """Input to one engine run.

    Attributes:
        alpha: Decay factor in (0, 1).
        max_iterations: Iteration cap (> 0).
        convergence_threshold: Per-entry change that counts as converged (> 0).
        allocation_budget: Default budget used to scale raw weights.
        graph: Raw allocations ``{participant: {target: weight}}``.
        anchor_id: The pretrusted participant, pinned at 1.0.
        budgets: Per-participant budget overrides.
        mode: Scoring mode.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    alpha: float = Field(default=DEFAULT_ALPHA, gt=0.0, lt=1.0)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, gt=0)
    convergence_threshold: float = Field(default=DEFAULT_CONVERGENCE_THRESHOLD, gt=0.0)
    allocation_budget: float = Field(default=DEFAULT_ALLOCATION_BUDGET, gt=0.0)
    graph: RawGraph = Field(default_factory=dict)
    anchor_id: ParticipantId
    budgets: dict[ParticipantId, float] = Field(default_factory=dict)
    mode: ScoringMode = ScoringMode.DECOUPLED

    @classmethod
    def from_snapshot(
        cls,
        snapshot: GraphSnapshot,
        parameters: TrustParameters | None = None,
        mode: ScoringMode = ScoringMode.DECOUPLED,
    ) -> TrustRequest:
        """Combine a graph snapshot with explicit parameters."""
        parameters = parameters or TrustParameters()
        return cls(
            alpha=parameters.alpha,
            max_iterations=parameters.max_iterations,
            convergence_threshold=parameters.convergence_threshold,
            allocation_budget=parameters.allocation_budget,
            graph=snapshot.graph,
            anchor_id=snapshot.anchor_id,
            budgets=snapshot.budgets,
            mode=mode,
        )

    @property
    def parameters(self) -> TrustParameters:
        return TrustParameters(
            alpha=self.alpha,
            max_iterations=self.max_iterations,
            convergence_threshold=self.convergence_threshold,
            allocation_budget=self.allocation_budget,
        )

    def budget_for(self, participant_id: ParticipantId) -> float:
        return self.budgets.get(participant_id, self.allocation_budget)


class ComputationResult(BaseModel):
    """Converged (or best-effort) scores of one run.

    ``converged=False`` is not an error: the iteration cap was reached and
    the caller decides whether to accept the vector.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    scores: dict[ParticipantId, float] = Field(default_factory=dict)
    iterations: int = Field(default=0, ge=0)
    converged: bool = True
    elapsed_ms: int = Field(default=0, ge=0)


class TrustResponse(BaseModel):
    """Engine response: scores plus derived rankings.

    Attributes:
        anchor_id: The anchor of the run.
        mode: Scoring mode used.
        scores: Raw trust score per participant (anchor is 1.0).
        percentiles: 0-100 rank percentile per non-anchor participant.
        ranks: 1-based rank by descending score, anchor included.
        iterations: Power iterations performed (max across runs in decoupled mode).
        converged: Whether every solver run converged.
        elapsed_ms: Wall-clock time of the engine run.
        overridden: Participants whose values were pinned by an operator.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    anchor_id: ParticipantId
    mode: ScoringMode = ScoringMode.DECOUPLED
    scores: dict[ParticipantId, float] = Field(default_factory=dict)
    percentiles: dict[ParticipantId, int] = Field(default_factory=dict)
    ranks: dict[ParticipantId, int] = Field(default_factory=dict)
    iterations: int = Field(default=0, ge=0)
    converged: bool = True
    elapsed_ms: int = Field(default=0, ge=0)
    overridden: list[ParticipantId] = Field(default_factory=list)

    @property
    def result(self) -> ComputationResult:
        return ComputationResult(
            scores=self.scores,
            iterations=self.iterations,
            converged=self.converged,
            elapsed_ms=self.elapsed_ms,
        )


class ModeComparison(BaseModel):
    """Standard and decoupled scores for the same request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    standard: dict[ParticipantId, float] = Field(default_factory=dict)
    decoupled: dict[ParticipantId, float] = Field(default_factory=dict)

    def differences(self) -> dict[ParticipantId, float]:
        """Decoupled minus standard score per participant."""
        return {
            participant: self.decoupled[participant] - self.standard.get(participant, 0.0)
            for participant in self.decoupled
        }
