"""Tests for the participant index and trust matrix builder."""

import numpy as np
import pytest

from anchortrust.engine import ParticipantIndex, build_trust_matrix
from anchortrust.exceptions import (
    InvalidAllocationError,
    MissingAnchorError,
    UnknownParticipantError,
)


class TestParticipantIndex:
    """Tests for ParticipantIndex."""

    def test_ids_are_sorted(self):
        index = ParticipantIndex.from_participants(["carol", "admin", "bob"])
        assert index.ids == ("admin", "bob", "carol")
        assert index.position("bob") == 1

    def test_mixed_int_and_str_ids(self):
        """Integers sort before strings, each group in natural order."""
        index = ParticipantIndex.from_participants(["b", 10, "a", 2])
        assert index.ids == (2, 10, "a", "b")

    def test_duplicates_collapse(self):
        index = ParticipantIndex.from_participants(["a", "b", "a"])
        assert len(index) == 2

    def test_contains(self):
        index = ParticipantIndex.from_participants(["a", "b"])
        assert "a" in index
        assert "z" not in index

    def test_unknown_position_raises(self):
        index = ParticipantIndex.from_participants(["a"])
        with pytest.raises(UnknownParticipantError):
            index.position("z")

    def test_to_mapping(self):
        index = ParticipantIndex.from_participants(["b", "a"])
        assert index.to_mapping(np.array([1.0, 0.25])) == {"a": 1.0, "b": 0.25}


class TestBuildTrustMatrix:
    """Tests for build_trust_matrix."""

    def test_rows_land_on_sorted_positions(self):
        trust = build_trust_matrix(
            ["admin", "bob", "carol"],
            "admin",
            {"admin": {"bob": 1.0}, "bob": {"carol": 0.6, "admin": 0.4}, "carol": {"bob": 1.0}},
        )
        expected = np.array(
            [
                [0.0, 1.0, 0.0],
                [0.0, 0.0, 0.6],
                [0.0, 1.0, 0.0],
            ]
        )
        np.testing.assert_array_equal(trust.matrix, expected)
        assert trust.anchor_index == 0
        assert trust.anchor_id == "admin"
        assert trust.size == 3

    def test_anchor_column_is_zeroed(self):
        """Nobody's trust flows into the anchor, even an explicit allocation."""
        trust = build_trust_matrix(
            ["admin", "bob"],
            "admin",
            {"bob": {"admin": 1.0}},
        )
        assert not trust.matrix[:, trust.anchor_index].any()

    def test_row_and_incoming_views(self):
        trust = build_trust_matrix(
            ["admin", "bob", "carol"],
            "admin",
            {"admin": {"bob": 0.5, "carol": 0.5}, "bob": {"carol": 1.0}},
        )
        assert trust.row("admin") == {"bob": 0.5, "carol": 0.5}
        assert trust.incoming("carol") == {"admin": 0.5, "bob": 1.0}
        assert trust.to_dict()["carol"] == {}

    def test_deterministic_regardless_of_insertion_order(self):
        rows = {"admin": {"bob": 0.3, "carol": 0.7}, "bob": {"carol": 1.0}, "carol": {"bob": 0.2}}
        reversed_rows = {
            source: dict(reversed(list(row.items()))) for source, row in reversed(list(rows.items()))
        }

        first = build_trust_matrix(["admin", "bob", "carol"], "admin", rows)
        second = build_trust_matrix(["carol", "bob", "admin"], "admin", reversed_rows)

        assert first.index.ids == second.index.ids
        assert first.matrix.tobytes() == second.matrix.tobytes()

    def test_unknown_target(self):
        with pytest.raises(UnknownParticipantError) as exc_info:
            build_trust_matrix(["admin", "bob"], "admin", {"bob": {"zed": 1.0}})
        assert exc_info.value.participant_id == "zed"
        assert exc_info.value.referenced_by == "bob"

    def test_unknown_source(self):
        with pytest.raises(UnknownParticipantError):
            build_trust_matrix(["admin"], "admin", {"bob": {"admin": 1.0}})

    def test_unknown_participant_is_an_invalid_allocation(self):
        with pytest.raises(InvalidAllocationError):
            build_trust_matrix(["admin"], "admin", {"admin": {"zed": 1.0}})

    def test_missing_anchor(self):
        with pytest.raises(MissingAnchorError) as exc_info:
            build_trust_matrix(["bob"], "admin", {"bob": {}})
        assert exc_info.value.anchor_id == "admin"
