"""Trust computation pipeline: request in, response out.

normalize rows -> build matrix -> solve -> percentiles and ranks

Two scoring modes read scores off the solver:

- ``STANDARD``: one run over the full matrix.
- ``DECOUPLED``: the full run, plus one run per participant ``k`` over a
  copy of the matrix with row ``k`` zeroed; ``k``'s score comes from that
  run. Self-loop removal already cuts the direct path from a participant's
  allocations back to their own score; zeroing the row also cuts every
  indirect path (``B -> C -> B``), so a participant's outgoing allocations
  cannot influence their own score at all. The solver is unchanged; only
  its input differs.

Everything here is pure and synchronous: no I/O, no shared state, safe to
run on a worker thread.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

import numpy as np

from anchortrust.config import TrustParameters
from anchortrust.exceptions import MissingAnchorError, UnknownParticipantError
from anchortrust.models import (
    ComputationResult,
    ModeComparison,
    ParticipantId,
    RawGraph,
    ScoringMode,
    TrustRequest,
    TrustResponse,
)

from .matrix import TrustMatrix, build_trust_matrix
from .normalizer import normalize_allocations
from .percentiles import compute_percentiles, rank_positions
from .solver import SolverOutcome, solve

logger = logging.getLogger(__name__)


def build_request_matrix(request: TrustRequest) -> TrustMatrix:
    """Validate a request and assemble its trust matrix.

    Raises:
        MissingAnchorError: If the anchor is not a participant.
        InvalidAllocationError: On a bad weight or budget.
        UnknownParticipantError: If a target is not a participant.
    """
    if request.anchor_id not in request.graph:
        raise MissingAnchorError(request.anchor_id)

    # Zero-weight edges are dropped by the normalizer, so check targets here
    for source, allocations in request.graph.items():
        for target in allocations:
            if target not in request.graph:
                raise UnknownParticipantError(target, referenced_by=source)

    rows = {
        source: normalize_allocations(
            source,
            allocations,
            request.anchor_id,
            budget=request.budget_for(source),
        )
        for source, allocations in request.graph.items()
    }
    return build_trust_matrix(request.graph.keys(), request.anchor_id, rows)


def solve_isolated(
    matrix: np.ndarray,
    participant_index: int,
    anchor_index: int,
    parameters: TrustParameters,
) -> SolverOutcome:
    """Solve with one participant's row zeroed. ``matrix`` is restored on return."""
    saved = matrix[participant_index].copy()
    matrix[participant_index] = 0.0
    try:
        return solve(matrix, anchor_index, parameters)
    finally:
        matrix[participant_index] = saved


def solve_scores(
    trust: TrustMatrix,
    parameters: TrustParameters,
    mode: ScoringMode = ScoringMode.DECOUPLED,
) -> tuple[np.ndarray, int, bool]:
    """Run the solver in the requested mode.

    Returns:
        ``(scores, iterations, converged)`` where ``iterations`` is the
        largest count over all solver runs and ``converged`` holds only if
        every run converged.
    """
    base = solve(trust.matrix, trust.anchor_index, parameters)
    if mode is ScoringMode.STANDARD:
        return base.scores, base.iterations, base.converged

    scores = base.scores.copy()
    iterations = base.iterations
    converged = base.converged
    working = trust.matrix.copy()
    isolated_runs = 0

    for k in range(trust.size):
        if k == trust.anchor_index:
            continue
        # Empty row: nothing to isolate. Empty column: score is 0 in any run.
        if not working[k].any() or not working[:, k].any():
            continue
        outcome = solve_isolated(working, k, trust.anchor_index, parameters)
        scores[k] = outcome.scores[k]
        iterations = max(iterations, outcome.iterations)
        converged = converged and outcome.converged
        isolated_runs += 1

    logger.debug("Decoupled scoring ran %d isolated solves", isolated_runs)
    return scores, iterations, converged


def compute_result(request: TrustRequest) -> tuple[ComputationResult, TrustMatrix | None]:
    """Compute raw scores for a request.

    Returns:
        The computation result and the matrix it was computed from
        (``None`` for an empty graph).
    """
    started = time.perf_counter()

    if not request.graph:
        logger.info("Empty graph, nothing to compute")
        return ComputationResult(scores={}, iterations=0, converged=True, elapsed_ms=0), None

    trust = build_request_matrix(request)
    vector, iterations, converged = solve_scores(trust, request.parameters, request.mode)
    elapsed_ms = int((time.perf_counter() - started) * 1000)

    logger.info(
        "Trust computation: %d participants, %d iterations, converged=%s, mode=%s, %dms",
        trust.size,
        iterations,
        converged,
        request.mode.value,
        elapsed_ms,
    )

    result = ComputationResult(
        scores=trust.index.to_mapping(vector),
        iterations=iterations,
        converged=converged,
        elapsed_ms=elapsed_ms,
    )
    return result, trust


def compute_trust(request: TrustRequest) -> TrustResponse:
    """Run the full engine: scores, percentiles and ranks.

    Example:
        ```python
        request = TrustRequest(
            graph={"admin": {"bob": 100}, "bob": {"carol": 60}, "carol": {}},
            anchor_id="admin",
        )
        response = compute_trust(request)
        response.scores["admin"]  # 1.0
        ```
    """
    result, trust = compute_result(request)
    order = list(trust.index.ids) if trust is not None else []
    return TrustResponse(
        anchor_id=request.anchor_id,
        mode=request.mode,
        scores=result.scores,
        percentiles=compute_percentiles(result.scores, request.anchor_id, order=order),
        ranks=rank_positions(result.scores, order=order),
        iterations=result.iterations,
        converged=result.converged,
        elapsed_ms=result.elapsed_ms,
    )


def compute_trust_scores(
    graph: RawGraph,
    anchor_id: ParticipantId,
    *,
    parameters: TrustParameters | None = None,
    mode: ScoringMode = ScoringMode.DECOUPLED,
    budgets: Mapping[ParticipantId, float] | None = None,
) -> TrustResponse:
    """Convenience wrapper building the request from plain arguments."""
    parameters = parameters or TrustParameters()
    request = TrustRequest(
        alpha=parameters.alpha,
        max_iterations=parameters.max_iterations,
        convergence_threshold=parameters.convergence_threshold,
        allocation_budget=parameters.allocation_budget,
        graph=graph,
        anchor_id=anchor_id,
        budgets=dict(budgets or {}),
        mode=mode,
    )
    return compute_trust(request)


def compare_modes(request: TrustRequest) -> ModeComparison:
    """Score the same request in both modes, side by side."""
    if not request.graph:
        return ModeComparison()

    trust = build_request_matrix(request)
    standard, _, _ = solve_scores(trust, request.parameters, ScoringMode.STANDARD)
    decoupled, _, _ = solve_scores(trust, request.parameters, ScoringMode.DECOUPLED)
    return ModeComparison(
        standard=trust.index.to_mapping(standard),
        decoupled=trust.index.to_mapping(decoupled),
    )
