"""Allocation normalizer: raw outgoing weights to a stochastic row.

Two transformations are applied before scaling:

1. Self-loops are dropped unconditionally. A participant's own weight never
   enters their row, so their previous-round score cannot feed back into
   their next-round score through a direct edge.
2. Whatever part of the budget is left unallocated is routed to the anchor.

A row that overspends its budget is rescaled by its total so it still
sums to 1.0.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from anchortrust.config import DEFAULT_ALLOCATION_BUDGET
from anchortrust.exceptions import InvalidAllocationError
from anchortrust.models import ParticipantId

logger = logging.getLogger(__name__)

NormalizedRow = dict[ParticipantId, float]


def _validate_weight(source: ParticipantId, target: ParticipantId, weight: float) -> float:
    try:
        value = float(weight)
    except (TypeError, ValueError) as e:
        raise InvalidAllocationError(
            f"Allocation {source!r} -> {target!r} has non-numeric weight {weight!r}",
            source=source,
            target=target,
        ) from e
    if not math.isfinite(value):
        raise InvalidAllocationError(
            f"Allocation {source!r} -> {target!r} has non-finite weight {value}",
            source=source,
            target=target,
            weight=value,
        )
    if value < 0:
        raise InvalidAllocationError(
            f"Allocation {source!r} -> {target!r} has negative weight {value}",
            source=source,
            target=target,
            weight=value,
        )
    return value


def _rescale_by_peak(weights: Mapping[ParticipantId, float]) -> NormalizedRow:
    """Rescale weights whose total overflows, dividing by the largest first."""
    peak = max(weights.values())
    relative = {target: weight / peak for target, weight in weights.items()}
    relative_total = math.fsum(relative.values())
    return {target: share / relative_total for target, share in relative.items()}


def normalize_allocations(
    source: ParticipantId,
    allocations: Mapping[ParticipantId, float],
    anchor_id: ParticipantId,
    budget: float = DEFAULT_ALLOCATION_BUDGET,
) -> NormalizedRow:
    """Turn one participant's raw outgoing weights into a normalized row.

    Args:
        source: The allocating participant.
        allocations: Aggregated ``{target: weight}`` for this participant.
        anchor_id: The pretrusted participant that absorbs unallocated trust.
        budget: The participant's allocation budget (e.g. 100 points).

    Returns:
        ``{target: probability}`` summing to 1.0 for non-anchor participants.
        The anchor's row carries no remainder and may sum to less than 1.0
        (or be empty).

    Raises:
        InvalidAllocationError: On a negative or non-finite weight, or a
            non-positive budget.
    """
    if not (math.isfinite(budget) and budget > 0):
        raise InvalidAllocationError(
            f"Allocation budget for {source!r} must be positive, got {budget}",
            source=source,
        )

    is_anchor = source == anchor_id
    weights: dict[ParticipantId, float] = {}
    for target, raw_weight in allocations.items():
        weight = _validate_weight(source, target, raw_weight)
        if target == source:
            if weight > 0:
                logger.debug("Dropping self-allocation of %s for %r", weight, source)
            continue
        if weight > 0:
            weights[target] = weight

    if not weights:
        return {} if is_anchor else {anchor_id: 1.0}

    try:
        total = math.fsum(weights.values())
    except OverflowError:
        # Finite weights whose sum exceeds the float range
        total = math.inf

    if total > budget:
        # Overspent budget: rescale so the row still sums to one
        logger.debug("Allocations of %r exceed budget (%s > %s), rescaling", source, total, budget)
        if math.isinf(total):
            return _rescale_by_peak(weights)
        return {target: weight / total for target, weight in weights.items()}

    row: NormalizedRow = {target: weight / budget for target, weight in weights.items()}
    if total < budget and not is_anchor:
        remainder = (budget - total) / budget
        row[anchor_id] = row.get(anchor_id, 0.0) + remainder
    return row
