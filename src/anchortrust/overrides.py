"""Operator override layer.

Overrides pin a participant's published score and percentile after the
engine has run. They are applied to a copy of the response and are never
written back into the trust graph, so they cannot influence the next run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from anchortrust.exceptions import ValidationError
from anchortrust.models import ScoreOverride, TrustResponse

logger = logging.getLogger(__name__)


def apply_overrides(response: TrustResponse, overrides: Iterable[ScoreOverride]) -> TrustResponse:
    """Return a new response with operator overrides layered on top.

    Args:
        response: Engine output (left untouched).
        overrides: Pinned scores on the 0-100 scale. When a participant has
            several, the last one wins.

    Returns:
        A copy of ``response`` whose overridden participants carry
        ``score / 100`` and ``round(score)`` as percentile, listed in
        ``overridden``.

    Raises:
        ValidationError: If an override targets the anchor.
    """
    scores = dict(response.scores)
    percentiles = dict(response.percentiles)
    overridden = list(response.overridden)

    for override in overrides:
        participant = override.participant_id
        if participant == response.anchor_id:
            raise ValidationError("participant_id", "the anchor's score cannot be overridden")
        if participant not in scores:
            logger.warning("Skipping override for %r: not part of this computation", participant)
            continue
        scores[participant] = override.trust_score
        percentiles[participant] = override.percentile
        if participant not in overridden:
            overridden.append(participant)

    if not overridden:
        return response
    return response.model_copy(
        update={"scores": scores, "percentiles": percentiles, "overridden": overridden}
    )
