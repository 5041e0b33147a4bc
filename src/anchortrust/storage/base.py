"""Collaborator contracts around the engine.

The engine performs no I/O. A graph source hands it a resolved snapshot and
a score sink persists what it returns, together with the computation log and
operator overrides. Any backend implementing these protocols can be plugged
into ``TrustService``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from anchortrust.models import (
    ComputationLogEntry,
    GraphSnapshot,
    ParticipantId,
    ScoreOverride,
    TrustResponse,
)


@runtime_checkable
class GraphSource(Protocol):
    """Supplies the current allocation snapshot.

    Implementations apply their own persistence semantics (e.g. only
    confirmed relationships count) and must resolve every target to a
    known participant before handing the snapshot over.
    """

    async def load_snapshot(self) -> GraphSnapshot:
        """Return the graph, anchor and budgets to compute over."""
        ...


@runtime_checkable
class ScoreSink(Protocol):
    """Durable home for published scores, run logs and overrides."""

    async def save_scores(self, response: TrustResponse) -> None:
        """Replace the published scores with ``response``."""
        ...

    async def latest_scores(self) -> TrustResponse | None:
        """Most recently published scores, if any."""
        ...

    async def log_computation(self, entry: ComputationLogEntry) -> None:
        """Append one computation log row."""
        ...

    async def list_computations(self, limit: int = 20) -> list[ComputationLogEntry]:
        """Most recent log rows, newest first."""
        ...

    async def set_override(self, override: ScoreOverride) -> None:
        """Create or replace the override for a participant."""
        ...

    async def delete_override(self, participant_id: ParticipantId) -> bool:
        """Remove a participant's override. Returns False if none existed."""
        ...

    async def list_overrides(self) -> list[ScoreOverride]:
        """All active overrides."""
        ...
