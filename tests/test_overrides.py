"""Tests for the operator override layer."""

import pytest

from anchortrust.engine import compute_trust
from anchortrust.exceptions import ValidationError
from anchortrust.models import ScoreOverride, TrustRequest
from anchortrust.overrides import apply_overrides


@pytest.fixture
def response(chain_graph):
    return compute_trust(TrustRequest(graph=chain_graph, anchor_id="admin"))


class TestApplyOverrides:
    """Tests for apply_overrides."""

    def test_pins_score_and_percentile(self, response):
        pinned = apply_overrides(response, [ScoreOverride(participant_id="carol", score=80)])

        assert pinned.scores["carol"] == pytest.approx(0.8)
        assert pinned.percentiles["carol"] == 80
        assert pinned.overridden == ["carol"]
        # untouched participants keep computed values
        assert pinned.scores["bob"] == response.scores["bob"]
        assert pinned.percentiles["bob"] == response.percentiles["bob"]

    def test_original_response_unchanged(self, response):
        before = response.model_dump()
        apply_overrides(response, [ScoreOverride(participant_id="bob", score=10)])
        assert response.model_dump() == before

    def test_percentile_rounds_half_up(self, response):
        pinned = apply_overrides(response, [ScoreOverride(participant_id="bob", score=42.5)])
        assert pinned.percentiles["bob"] == 43

    def test_last_override_wins(self, response):
        pinned = apply_overrides(
            response,
            [
                ScoreOverride(participant_id="bob", score=10),
                ScoreOverride(participant_id="bob", score=90),
            ],
        )
        assert pinned.scores["bob"] == pytest.approx(0.9)
        assert pinned.overridden == ["bob"]

    def test_anchor_cannot_be_overridden(self, response):
        with pytest.raises(ValidationError):
            apply_overrides(response, [ScoreOverride(participant_id="admin", score=50)])

    def test_unknown_participant_skipped(self, response):
        result = apply_overrides(response, [ScoreOverride(participant_id="zed", score=50)])
        assert result is response

    def test_no_overrides_returns_same_response(self, response):
        assert apply_overrides(response, []) is response

    def test_reapplying_keeps_overridden_list_unique(self, response):
        override = ScoreOverride(participant_id="bob", score=70)
        pinned = apply_overrides(apply_overrides(response, [override]), [override])
        assert pinned.overridden == ["bob"]

    def test_overrides_do_not_feed_the_next_run(self, chain_graph, response):
        apply_overrides(response, [ScoreOverride(participant_id="bob", score=1)])
        rerun = compute_trust(TrustRequest(graph=chain_graph, anchor_id="admin"))
        assert rerun.scores == response.scores
