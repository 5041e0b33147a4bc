"""Per-participant breakdown of where a trust score comes from.

At the fixed point a non-anchor participant's score is

    t[k] = sum_i (1 - alpha) * C[i, k] * t[i]  +  alpha * p[k]

so every incoming edge contributes ``(1 - alpha) * C[i, k] * t[i]``. The
source scores ``t[i]`` are taken from the same solver run the participant's
score came from (the isolated run in decoupled mode), so the contributions
add up to the reported score within the convergence threshold.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from anchortrust.exceptions import NotFoundError
from anchortrust.models import ParticipantId, ScoringMode, TrustRequest

from .compute import build_request_matrix, solve_isolated
from .solver import ANCHOR_SCORE, solve


class IncomingContribution(BaseModel):
    """One incoming edge and what it adds to the target's score."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: ParticipantId
    weight: float = Field(ge=0.0, description="Normalized trust C[source, target]")
    source_score: float = Field(ge=0.0)
    contribution: float = Field(ge=0.0)


class TrustAnalysis(BaseModel):
    """Score breakdown for one participant."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    participant_id: ParticipantId
    score: float
    is_anchor: bool = False
    pretrust_component: float = 0.0
    network_component: float = 0.0
    outgoing: dict[ParticipantId, float] = Field(default_factory=dict)
    contributions: list[IncomingContribution] = Field(default_factory=list)


def analyze_participant(request: TrustRequest, participant_id: ParticipantId) -> TrustAnalysis:
    """Explain one participant's score under the request's scoring mode.

    Raises:
        NotFoundError: If the participant is not in the graph.
    """
    if participant_id not in request.graph:
        raise NotFoundError("participant", participant_id)

    trust = build_request_matrix(request)
    k = trust.index.positions[participant_id]
    outgoing = trust.row(participant_id)

    if k == trust.anchor_index:
        return TrustAnalysis(
            participant_id=participant_id,
            score=ANCHOR_SCORE,
            is_anchor=True,
            pretrust_component=ANCHOR_SCORE,
            outgoing=outgoing,
        )

    parameters = request.parameters
    if request.mode is ScoringMode.DECOUPLED:
        outcome = solve_isolated(trust.matrix.copy(), k, trust.anchor_index, parameters)
    else:
        outcome = solve(trust.matrix, trust.anchor_index, parameters)

    damping = 1.0 - parameters.alpha
    contributions = [
        IncomingContribution(
            source=source,
            weight=weight,
            source_score=float(outcome.scores[trust.index.positions[source]]),
            contribution=damping * weight * float(outcome.scores[trust.index.positions[source]]),
        )
        for source, weight in trust.incoming(participant_id).items()
    ]
    contributions.sort(key=lambda c: c.contribution, reverse=True)

    return TrustAnalysis(
        participant_id=participant_id,
        score=float(outcome.scores[k]),
        pretrust_component=0.0,
        network_component=sum(c.contribution for c in contributions),
        outgoing=outgoing,
        contributions=contributions,
    )
