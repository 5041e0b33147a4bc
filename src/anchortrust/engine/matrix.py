"""Trust matrix builder.

Assembles normalized rows into a dense ``N x N`` transition matrix ``C``
where ``C[i, j]`` is participant ``i``'s normalized trust in ``j``.
Participants are addressed through a ``ParticipantIndex`` built once per
run from a stable sort of their ids, so identical input always produces a
bit-identical matrix regardless of map iteration order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import numpy as np

from anchortrust.exceptions import MissingAnchorError, UnknownParticipantError
from anchortrust.models import ParticipantId


def _sort_key(participant_id: ParticipantId) -> tuple[int, int | str]:
    # ints before strings; each group in natural order
    if isinstance(participant_id, int):
        return (0, participant_id)
    return (1, str(participant_id))


@dataclass(frozen=True)
class ParticipantIndex:
    """Bidirectional ``ParticipantId <-> position`` table."""

    ids: tuple[ParticipantId, ...]
    positions: dict[ParticipantId, int] = field(repr=False)

    @classmethod
    def from_participants(cls, participants: Iterable[ParticipantId]) -> ParticipantIndex:
        ids = tuple(sorted(set(participants), key=_sort_key))
        return cls(ids=ids, positions={pid: i for i, pid in enumerate(ids)})

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self.positions

    def position(self, participant_id: ParticipantId) -> int:
        try:
            return self.positions[participant_id]
        except KeyError:
            raise UnknownParticipantError(participant_id) from None

    def to_mapping(self, vector: np.ndarray) -> dict[ParticipantId, float]:
        """Map a length-N vector back onto participant ids."""
        return {pid: float(vector[i]) for i, pid in enumerate(self.ids)}


@dataclass(frozen=True)
class TrustMatrix:
    """Transition matrix plus the index that addresses it.

    Attributes:
        matrix: ``N x N`` float64 array, anchor column all zero.
        index: Participant index table.
        anchor_index: Row/column of the anchor.
    """

    matrix: np.ndarray
    index: ParticipantIndex
    anchor_index: int

    @property
    def size(self) -> int:
        return len(self.index)

    @property
    def anchor_id(self) -> ParticipantId:
        return self.index.ids[self.anchor_index]

    def row(self, participant_id: ParticipantId) -> dict[ParticipantId, float]:
        """Non-zero entries of one participant's row."""
        values = self.matrix[self.index.position(participant_id)]
        return {self.index.ids[j]: float(v) for j, v in enumerate(values) if v != 0.0}

    def incoming(self, participant_id: ParticipantId) -> dict[ParticipantId, float]:
        """Non-zero entries of one participant's column (who trusts them)."""
        values = self.matrix[:, self.index.position(participant_id)]
        return {self.index.ids[i]: float(v) for i, v in enumerate(values) if v != 0.0}

    def to_dict(self) -> dict[ParticipantId, dict[ParticipantId, float]]:
        """Sparse nested-dict view, for inspection and debugging."""
        return {pid: self.row(pid) for pid in self.index.ids}


def build_trust_matrix(
    participants: Iterable[ParticipantId],
    anchor_id: ParticipantId,
    rows: Mapping[ParticipantId, Mapping[ParticipantId, float]],
) -> TrustMatrix:
    """Assemble normalized rows into a trust matrix.

    Args:
        participants: The participant set of this run.
        anchor_id: The anchor; must be a participant.
        rows: Normalized row per participant.

    Returns:
        TrustMatrix with the anchor column zeroed.

    Raises:
        MissingAnchorError: If the anchor is not a participant.
        UnknownParticipantError: If a row's source or target is not a participant.
    """
    index = ParticipantIndex.from_participants(participants)
    if anchor_id not in index:
        raise MissingAnchorError(anchor_id)

    matrix = np.zeros((len(index), len(index)), dtype=np.float64)
    for source, row in rows.items():
        if source not in index:
            raise UnknownParticipantError(source)
        i = index.positions[source]
        for target, probability in row.items():
            if target not in index:
                raise UnknownParticipantError(target, referenced_by=source)
            matrix[i, index.positions[target]] = probability

    anchor_index = index.positions[anchor_id]
    # No one trusts into the anchor
    matrix[:, anchor_index] = 0.0

    return TrustMatrix(matrix=matrix, index=index, anchor_index=anchor_index)
