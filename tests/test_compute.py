"""Tests for the trust computation pipeline and its scoring modes."""

import copy

import pytest

from anchortrust.config import TrustParameters
from anchortrust.engine import (
    build_request_matrix,
    compare_modes,
    compute_result,
    compute_trust,
    compute_trust_scores,
)
from anchortrust.exceptions import (
    InvalidAllocationError,
    MissingAnchorError,
    UnknownParticipantError,
)
from anchortrust.models import ScoringMode, TrustRequest


def _scores(graph, mode=ScoringMode.DECOUPLED, **params):
    return compute_trust(TrustRequest(graph=graph, anchor_id="admin", mode=mode, **params)).scores


class TestScenarios:
    """End-to-end behaviour on small graphs."""

    def test_chain(self, chain_graph):
        """Trust decays by (1 - alpha) per hop away from the anchor."""
        response = compute_trust(TrustRequest(graph=chain_graph, anchor_id="admin"))

        assert response.scores["admin"] == 1.0
        assert response.scores["bob"] == pytest.approx(0.85)
        assert response.scores["carol"] == pytest.approx(0.7225)
        assert response.converged is True
        assert response.percentiles == {"carol": 0, "bob": 100}
        assert response.ranks == {"admin": 1, "bob": 2, "carol": 3}

    def test_mutual_trust_is_symmetric(self, cycle_graph):
        """Two participants trusting each other fully end up level, below the anchor."""
        scores = _scores(cycle_graph)

        assert scores["admin"] == 1.0
        assert scores["bob"] == pytest.approx(scores["carol"])
        assert scores["bob"] == pytest.approx(0.85 * 0.5 * 1.85)
        assert scores["bob"] < 1.0

    @pytest.mark.parametrize("mode", list(ScoringMode))
    def test_mutual_trust_without_anchor_allocation(self, mode):
        """A pair the anchor never reaches gains nothing from trusting each other."""
        graph = {"admin": {}, "bob": {"carol": 100}, "carol": {"bob": 100}}
        response = compute_trust(TrustRequest(graph=graph, anchor_id="admin", mode=mode))

        assert response.scores == {"admin": 1.0, "bob": 0.0, "carol": 0.0}
        assert response.converged is True

    def test_scores_fall_as_alpha_rises(self, cycle_graph):
        """More weight on the pretrust vector leaves less to propagate."""
        low_alpha = _scores(cycle_graph, alpha=0.15)
        high_alpha = _scores(cycle_graph, alpha=0.3)

        assert high_alpha["bob"] == pytest.approx(0.7 * 0.5 * 1.7)
        assert high_alpha["bob"] < low_alpha["bob"]
        assert high_alpha["carol"] < low_alpha["carol"]

    def test_single_anchor(self):
        response = compute_trust(TrustRequest(graph={"admin": {}}, anchor_id="admin"))

        assert response.scores == {"admin": 1.0}
        assert response.percentiles == {}
        assert response.ranks == {"admin": 1}
        assert response.iterations == 1
        assert response.converged is True

    def test_empty_graph_is_not_an_error(self):
        response = compute_trust(TrustRequest(graph={}, anchor_id="admin"))

        assert response.scores == {}
        assert response.percentiles == {}
        assert response.iterations == 0
        assert response.converged is True

    def test_iteration_cap_returns_full_vector(self, community_graph):
        response = compute_trust(
            TrustRequest(graph=community_graph, anchor_id="admin", max_iterations=1)
        )

        assert response.converged is False
        assert response.iterations == 1
        assert set(response.scores) == set(community_graph)
        assert set(response.percentiles) == set(community_graph) - {"admin"}

    def test_convergence_with_enough_iterations(self, cycle_graph):
        capped = compute_trust(
            TrustRequest(
                graph=cycle_graph,
                anchor_id="admin",
                mode=ScoringMode.STANDARD,
                max_iterations=10,
            )
        )
        uncapped = compute_trust(
            TrustRequest(
                graph=cycle_graph,
                anchor_id="admin",
                mode=ScoringMode.STANDARD,
                max_iterations=500,
            )
        )
        assert capped.converged is False
        assert uncapped.converged is True
        assert uncapped.iterations < 500

    def test_response_metadata(self, community_request):
        response = compute_trust(community_request)

        assert response.anchor_id == "admin"
        assert response.mode is ScoringMode.DECOUPLED
        assert response.elapsed_ms >= 0
        assert response.overridden == []

    def test_integer_participant_ids(self):
        response = compute_trust(TrustRequest(graph={1: {2: 100}, 2: {}}, anchor_id=1))
        assert response.scores == {1: 1.0, 2: pytest.approx(0.85)}


class TestStructuralErrors:
    """Errors raised before any iteration starts."""

    def test_unknown_target(self):
        graph = {"admin": {"bob": 100, "zed": 5}, "bob": {}}
        with pytest.raises(UnknownParticipantError) as exc_info:
            compute_trust(TrustRequest(graph=graph, anchor_id="admin"))
        assert exc_info.value.participant_id == "zed"

    def test_unknown_target_with_zero_weight(self):
        """A declared edge is checked even when it carries no weight."""
        graph = {"admin": {"bob": 100}, "bob": {"zed": 0}}
        with pytest.raises(UnknownParticipantError) as exc_info:
            compute_trust(TrustRequest(graph=graph, anchor_id="admin"))
        assert exc_info.value.participant_id == "zed"
        assert exc_info.value.referenced_by == "bob"

    def test_huge_finite_weights_are_scored(self):
        graph = {"admin": {"bob": 1e308, "carol": 1e308}, "bob": {}, "carol": {}}
        scores = compute_trust(TrustRequest(graph=graph, anchor_id="admin")).scores
        assert scores["bob"] == pytest.approx(0.85 * 0.5)
        assert scores["carol"] == pytest.approx(0.85 * 0.5)

    def test_missing_anchor(self):
        with pytest.raises(MissingAnchorError):
            compute_trust(TrustRequest(graph={"bob": {}}, anchor_id="admin"))

    def test_negative_weight(self):
        graph = {"admin": {"bob": 100}, "bob": {"admin": -10}}
        with pytest.raises(InvalidAllocationError):
            compute_trust(TrustRequest(graph=graph, anchor_id="admin"))

    def test_invalid_participant_budget(self):
        request = TrustRequest(
            graph={"admin": {"bob": 100}, "bob": {}},
            anchor_id="admin",
            budgets={"bob": 0},
        )
        with pytest.raises(InvalidAllocationError):
            compute_trust(request)


class TestMatrixProperties:
    """Row-stochasticity and anchor isolation."""

    def test_anchor_column_is_zero(self, community_graph):
        graph = copy.deepcopy(community_graph)
        graph["dave"]["admin"] = 50
        trust = build_request_matrix(TrustRequest(graph=graph, anchor_id="admin"))
        assert not trust.matrix[:, trust.anchor_index].any()

    def test_anchor_score_is_pinned(self, community_graph):
        graph = copy.deepcopy(community_graph)
        graph["bob"]["admin"] = 50
        for mode in ScoringMode:
            assert _scores(graph, mode)["admin"] == 1.0

    def test_full_budget_rows_sum_to_one(self, community_request):
        """Rows that spend their whole budget on non-anchors are stochastic in the matrix."""
        trust = build_request_matrix(community_request)
        assert sum(trust.row("dave").values()) == pytest.approx(1.0, abs=1e-9)

    def test_per_participant_budget(self):
        request = TrustRequest(
            graph={"admin": {"bob": 100}, "bob": {"carol": 10}, "carol": {}},
            anchor_id="admin",
            budgets={"bob": 10},
        )
        trust = build_request_matrix(request)
        assert trust.row("bob") == {"carol": 1.0}


class TestSelfTrustIndependence:
    """A participant's own allocations never change their own score."""

    def test_self_loop_vanishes(self):
        """A 50-point self-loop scores exactly like spending those 50 points elsewhere."""
        with_self_loop = {
            "admin": {"bob": 100},
            "bob": {"bob": 50, "carol": 50},
            "carol": {"bob": 30},
        }
        without = {
            "admin": {"bob": 100},
            "bob": {"carol": 100},
            "carol": {"bob": 30},
        }
        assert _scores(with_self_loop)["bob"] == pytest.approx(_scores(without)["bob"], abs=1e-12)

    @pytest.mark.parametrize(
        "variant",
        [
            {},
            {"bob": 95, "carol": 5},
            {"bob": 100},
            {"erin": 100},
            {"carol": 100},
            {"carol": 400, "dave": 400},
        ],
    )
    def test_varying_outgoing_weights(self, community_graph, variant):
        """Includes dominant self-loops and cycles back through carol."""
        baseline = _scores(community_graph)["bob"]

        graph = copy.deepcopy(community_graph)
        graph["bob"] = variant
        assert _scores(graph)["bob"] == pytest.approx(baseline, abs=1e-9)

    def test_holds_for_every_participant(self, community_graph):
        baseline = _scores(community_graph)
        for participant in community_graph:
            if participant == "admin":
                continue
            graph = copy.deepcopy(community_graph)
            graph[participant] = {participant: 90, "dave" if participant != "dave" else "erin": 10}
            assert _scores(graph)[participant] == pytest.approx(
                baseline[participant], abs=1e-9
            ), participant

    def test_standard_mode_without_cycles(self, chain_graph):
        """Without a path back, self-loop removal alone is enough."""
        graph = copy.deepcopy(chain_graph)
        graph["bob"] = {"bob": 80, "carol": 20}
        standard = _scores(chain_graph, ScoringMode.STANDARD)
        assert _scores(graph, ScoringMode.STANDARD)["bob"] == pytest.approx(standard["bob"])

    def test_standard_mode_feels_cycles(self, cycle_graph):
        """In standard mode trust returning through a cycle lifts the sender."""
        graph = copy.deepcopy(cycle_graph)
        graph["bob"] = {"carol": 10}
        before = _scores(cycle_graph, ScoringMode.STANDARD)["bob"]
        after = _scores(graph, ScoringMode.STANDARD)["bob"]
        assert after < before


class TestDeterminism:
    """Identical input produces identical output."""

    def test_repeated_runs(self, community_request):
        first = compute_trust(community_request)
        second = compute_trust(community_request)
        assert first.scores == second.scores
        assert first.percentiles == second.percentiles
        assert first.iterations == second.iterations

    def test_insertion_order_does_not_matter(self, community_graph):
        reordered = {
            source: dict(reversed(list(row.items())))
            for source, row in reversed(list(community_graph.items()))
        }
        assert _scores(reordered) == _scores(community_graph)


class TestScoringModes:
    """Decoupled versus standard scoring."""

    def test_modes_agree_without_cycles(self, chain_graph):
        comparison = compare_modes(TrustRequest(graph=chain_graph, anchor_id="admin"))
        for participant, difference in comparison.differences().items():
            assert difference == pytest.approx(0.0, abs=1e-9), participant

    def test_modes_differ_on_cycles(self, cycle_graph):
        comparison = compare_modes(TrustRequest(graph=cycle_graph, anchor_id="admin"))
        assert comparison.standard["bob"] > comparison.decoupled["bob"]
        assert comparison.differences()["bob"] < 0
        assert comparison.differences()["admin"] == 0.0

    def test_compare_empty_graph(self):
        comparison = compare_modes(TrustRequest(graph={}, anchor_id="admin"))
        assert comparison.standard == {}
        assert comparison.decoupled == {}

    def test_decoupled_reports_worst_case_iterations(self, community_request):
        """The base solve is shared, so decoupled never reports fewer iterations."""
        standard_request = TrustRequest(
            **community_request.model_dump(exclude={"mode"}), mode=ScoringMode.STANDARD
        )
        decoupled, _ = compute_result(community_request)
        standard, _ = compute_result(standard_request)
        assert decoupled.iterations >= standard.iterations >= 1
        assert decoupled.converged is True

    def test_compute_trust_scores_wrapper(self, chain_graph):
        response = compute_trust_scores(
            chain_graph,
            "admin",
            parameters=TrustParameters(alpha=0.5),
            mode=ScoringMode.STANDARD,
        )
        assert response.mode is ScoringMode.STANDARD
        assert response.scores["bob"] == pytest.approx(0.5)
        assert response.scores["carol"] == pytest.approx(0.25)

    def test_compute_result_returns_matrix(self, chain_graph):
        result, trust = compute_result(TrustRequest(graph=chain_graph, anchor_id="admin"))
        assert trust is not None
        assert trust.index.ids == ("admin", "bob", "carol")
        assert result.scores["admin"] == 1.0
