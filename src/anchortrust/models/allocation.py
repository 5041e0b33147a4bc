"""Allocation input models: raw edges and the graph snapshot."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field

# Opaque participant handle. JSON payloads always produce strings.
ParticipantId = str | int

# participant -> {target -> weight}
RawGraph = dict[ParticipantId, dict[ParticipantId, float]]


class Allocation(BaseModel):
    """A directed, weighted trust edge.

    Attributes:
        source: Participant giving trust.
        target: Participant receiving trust.
        weight: Points allocated, in the source's budget unit. Negative
            weights are rejected by the normalizer, not here.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: ParticipantId
    target: ParticipantId
    weight: float


def aggregate_allocations(edges: Iterable[Allocation]) -> RawGraph:
    """Sum weights per (source, target), keeping first-seen order."""
    graph: RawGraph = {}
    for edge in edges:
        row = graph.setdefault(edge.source, {})
        row[edge.target] = row.get(edge.target, 0.0) + edge.weight
    return graph


class GraphSnapshot(BaseModel):
    """Immutable snapshot handed from a graph source to the engine.

    Attributes:
        graph: Raw allocations; its keys are the participant set.
        anchor_id: The pretrusted participant.
        budgets: Optional per-participant allocation budgets.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    graph: RawGraph = Field(default_factory=dict)
    anchor_id: ParticipantId
    budgets: dict[ParticipantId, float] = Field(default_factory=dict)

    @classmethod
    def from_allocations(
        cls,
        participants: Iterable[ParticipantId],
        allocations: Iterable[Allocation],
        anchor_id: ParticipantId,
        budgets: Mapping[ParticipantId, float] | None = None,
    ) -> GraphSnapshot:
        """Build a snapshot from a participant list and an edge list.

        Every listed participant gets a row, even without outgoing edges.
        Edges whose source is not listed are kept so the engine can report
        them as unknown participants instead of silently dropping them.
        """
        graph: RawGraph = {participant: {} for participant in participants}
        for source, row in aggregate_allocations(allocations).items():
            graph.setdefault(source, {}).update(row)
        return cls(graph=graph, anchor_id=anchor_id, budgets=dict(budgets or {}))

    @property
    def participants(self) -> list[ParticipantId]:
        return list(self.graph)
