"""Percentile and rank derivation from a score map.

Percentiles are positional: participants are sorted ascending by score and
``percentile = round(position / (count - 1) * 100)``. Tied scores keep
their index order and each gets its own positional percentile rather than a
shared, averaged one. This is a simplification over statistical
rank-averaging; callers needing exact percentile semantics should not treat
the two as equivalent.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from anchortrust.models import ParticipantId

SINGLE_PARTICIPANT_PERCENTILE = 50


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_percentiles(
    scores: Mapping[ParticipantId, float],
    anchor_id: ParticipantId,
    order: Sequence[ParticipantId] | None = None,
) -> dict[ParticipantId, int]:
    """Map each non-anchor participant to a 0-100 percentile.

    Args:
        scores: Score per participant.
        anchor_id: Excluded from the distribution and from the output.
        order: Tie-break order (defaults to the iteration order of ``scores``).

    Returns:
        ``{participant: percentile}``; the lowest score gets 0 and the highest
        100 when more than one participant is ranked, a lone participant 50.
    """
    candidates = [pid for pid in (order if order is not None else scores) if pid != anchor_id]
    # sorted() is stable, so ties keep their position in ``order``
    ranked = sorted(candidates, key=lambda pid: scores[pid])
    count = len(ranked)
    if count == 1:
        return {ranked[0]: SINGLE_PARTICIPANT_PERCENTILE}
    return {pid: _round_half_up(position / (count - 1) * 100) for position, pid in enumerate(ranked)}


def rank_positions(
    scores: Mapping[ParticipantId, float],
    order: Sequence[ParticipantId] | None = None,
) -> dict[ParticipantId, int]:
    """1-based rank by descending score; ties keep ``order``."""
    candidates = list(order if order is not None else scores)
    ranked = sorted(candidates, key=lambda pid: -scores[pid])
    return {pid: position + 1 for position, pid in enumerate(ranked)}


def display_score(score: float) -> int:
    """Raw score on the 0-100 display scale used by the UI."""
    return _round_half_up(score * 100)
