"""Trust-propagation engine.

Converts a directed, weighted graph of trust allocations into a global
reputation score per participant, anchored by one pretrusted node whose
score is pinned at 1.0.

Pipeline (leaf-first):
    normalizer  -> stochastic row per participant, self-loops removed
    matrix      -> N x N transition matrix, anchor column zeroed
    solver      -> anchored power iteration to a fixed point
    percentiles -> positional 0-100 percentiles, anchor excluded

Example:
    ```python
    from anchortrust.engine import compute_trust
    from anchortrust.models import TrustRequest

    response = compute_trust(
        TrustRequest(
            graph={"admin": {"bob": 100}, "bob": {"carol": 100}, "carol": {}},
            anchor_id="admin",
        )
    )
    print(response.scores, response.percentiles, response.converged)
    ```

References:
- Kamvar et al. 2003: EigenTrust, pretrusted peers and decay towards them
- PageRank: iterative ranking with damping
"""

from .analysis import IncomingContribution, TrustAnalysis, analyze_participant
from .compute import (
    build_request_matrix,
    compare_modes,
    compute_result,
    compute_trust,
    compute_trust_scores,
    solve_isolated,
    solve_scores,
)
from .matrix import ParticipantIndex, TrustMatrix, build_trust_matrix
from .normalizer import NormalizedRow, normalize_allocations
from .percentiles import compute_percentiles, display_score, rank_positions
from .solver import ANCHOR_SCORE, PowerIterationSolver, SolverOutcome, SolverState, solve

__all__ = [
    # Pipeline
    "build_request_matrix",
    "compare_modes",
    "compute_result",
    "compute_trust",
    "compute_trust_scores",
    "solve_isolated",
    "solve_scores",
    # Normalizer
    "NormalizedRow",
    "normalize_allocations",
    # Matrix
    "ParticipantIndex",
    "TrustMatrix",
    "build_trust_matrix",
    # Solver
    "ANCHOR_SCORE",
    "PowerIterationSolver",
    "SolverOutcome",
    "SolverState",
    "solve",
    # Rankings
    "compute_percentiles",
    "display_score",
    "rank_positions",
    # Analysis
    "IncomingContribution",
    "TrustAnalysis",
    "analyze_participant",
]
