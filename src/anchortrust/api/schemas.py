"""Pydantic schemas for API request/response models.

The engine's own ``TrustRequest``/``TrustResponse`` models are used as-is
for the stateless compute endpoints; the schemas here cover the
service-backed endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from anchortrust.models import ParticipantId, ScoringMode


class HealthResponse(BaseModel):
    """Service health status."""

    model_config = ConfigDict(extra="forbid")

    status: Literal["healthy", "unhealthy"]
    version: str
    service_ready: bool


class ConfigResponse(BaseModel):
    """Engine defaults from the config store.

    Attributes:
        alpha: Default decay factor.
        max_iterations: Default iteration cap.
        convergence_threshold: Default convergence threshold.
        allocation_budget: Default per-participant budget.
        scoring_mode: Default scoring mode.
        anchor_id: Configured anchor, if any.
    """

    model_config = ConfigDict(extra="forbid")

    alpha: float
    max_iterations: int
    convergence_threshold: float
    allocation_budget: float
    scoring_mode: ScoringMode
    anchor_id: ParticipantId | None = None


class RecomputeRequest(BaseModel):
    """Per-call overrides for a service-backed recompute. Omitted fields use the config store."""

    model_config = ConfigDict(extra="forbid")

    alpha: float | None = Field(default=None, gt=0.0, lt=1.0)
    max_iterations: int | None = Field(default=None, gt=0)
    convergence_threshold: float | None = Field(default=None, gt=0.0)
    mode: ScoringMode | None = None
    triggered_by: str = Field(default="api", min_length=1, max_length=100)


class OverrideRequest(BaseModel):
    """Pin a participant's published score on the 0-100 scale."""

    model_config = ConfigDict(extra="forbid")

    score: float = Field(ge=0.0, le=100.0)
    reason: str | None = Field(default=None, max_length=500)


class OverrideResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    participant_id: ParticipantId
    score: float
    trust_score: float
    percentile: int
    reason: str | None = None
    created_at: datetime


class ComputationLogResponse(BaseModel):
    """One computation log row."""

    model_config = ConfigDict(extra="forbid")

    id: str
    timestamp: datetime
    participants: int
    iterations: int
    converged: bool
    alpha: float
    max_iterations: int
    convergence_threshold: float
    mode: ScoringMode
    triggered_by: str
    elapsed_ms: int


class ComputationLogListResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    computations: list[ComputationLogResponse] = Field(default_factory=list)
    count: int = 0


class AddParticipantRequest(BaseModel):
    """Register a participant in the trust graph."""

    model_config = ConfigDict(extra="forbid")

    participant_id: str = Field(min_length=1, max_length=200)
    budget: float | None = Field(default=None, gt=0.0)


class SetAllocationRequest(BaseModel):
    """Set the weight one participant allocates to another. Zero removes the edge."""

    model_config = ConfigDict(extra="forbid")

    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    weight: float = Field(ge=0.0)
