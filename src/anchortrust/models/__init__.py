"""Domain models for AnchorTrust.

Inputs:
    - Allocation: one directed, weighted trust edge
    - GraphSnapshot: the participant set, raw allocations and anchor of one run
    - TrustRequest: a snapshot plus explicit engine parameters

Outputs:
    - ComputationResult: scores, iterations, convergence flag, elapsed time
    - TrustResponse: result plus percentiles and ranks
    - ModeComparison: standard vs decoupled scores

Collaborator records:
    - ScoreOverride: operator-pinned score, applied after the engine
    - ComputationLogEntry: audit row for every run
"""

from .allocation import Allocation, GraphSnapshot, ParticipantId, RawGraph, aggregate_allocations
from .override import ComputationLogEntry, ScoreOverride, generate_id
from .result import ComputationResult, ModeComparison, ScoringMode, TrustRequest, TrustResponse

__all__ = [
    # Inputs
    "Allocation",
    "GraphSnapshot",
    "ParticipantId",
    "RawGraph",
    "TrustRequest",
    "aggregate_allocations",
    # Outputs
    "ComputationResult",
    "ModeComparison",
    "ScoringMode",
    "TrustResponse",
    # Collaborator records
    "ComputationLogEntry",
    "ScoreOverride",
    "generate_id",
]
