"""In-process implementation of both collaborator protocols.

Suitable for tests, demos and single-instance deployments. Published scores
and logs are lost on restart.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping

from anchortrust.exceptions import MissingAnchorError, NotFoundError, ValidationError
from anchortrust.models import (
    ComputationLogEntry,
    GraphSnapshot,
    ParticipantId,
    ScoreOverride,
    TrustResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_LOG_RETENTION = 1000


class InMemoryTrustStore:
    """Participants, allocations, published scores, logs and overrides.

    Attributes:
        anchor_id: Current anchor; must be a registered participant.
    """

    def __init__(
        self,
        participants: Iterable[ParticipantId] = (),
        anchor_id: ParticipantId | None = None,
        allocations: Mapping[ParticipantId, Mapping[ParticipantId, float]] | None = None,
        log_retention: int = DEFAULT_LOG_RETENTION,
    ) -> None:
        self._participants: dict[ParticipantId, dict[ParticipantId, float]] = {
            participant: {} for participant in participants
        }
        self._budgets: dict[ParticipantId, float] = {}
        self._published: TrustResponse | None = None
        self._log: list[ComputationLogEntry] = []
        self._overrides: dict[ParticipantId, ScoreOverride] = {}
        self._log_retention = log_retention
        self._lock = asyncio.Lock()
        self.anchor_id = anchor_id

        allocations = allocations or {}
        for source in allocations:
            self.add_participant(source)
        for source, row in allocations.items():
            for target, weight in row.items():
                self.set_allocation(source, target, weight)

    # Graph management (synchronous; called by the hosting application)

    @property
    def participants(self) -> list[ParticipantId]:
        return list(self._participants)

    def add_participant(self, participant_id: ParticipantId, budget: float | None = None) -> None:
        self._participants.setdefault(participant_id, {})
        if budget is not None:
            self._budgets[participant_id] = budget

    def remove_participant(self, participant_id: ParticipantId) -> None:
        """Drop a participant and every allocation pointing at them."""
        if participant_id not in self._participants:
            raise NotFoundError("participant", participant_id)
        if participant_id == self.anchor_id:
            raise ValidationError("participant_id", "cannot remove the anchor")
        del self._participants[participant_id]
        self._budgets.pop(participant_id, None)
        self._overrides.pop(participant_id, None)
        for row in self._participants.values():
            row.pop(participant_id, None)

    def set_allocation(self, source: ParticipantId, target: ParticipantId, weight: float) -> None:
        """Set (not add to) the weight ``source`` gives ``target``. Zero removes the edge."""
        if source not in self._participants:
            raise NotFoundError("participant", source)
        if target not in self._participants:
            raise NotFoundError("participant", target)
        if weight == 0:
            self._participants[source].pop(target, None)
        else:
            self._participants[source][target] = weight

    def allocations_of(self, participant_id: ParticipantId) -> dict[ParticipantId, float]:
        if participant_id not in self._participants:
            raise NotFoundError("participant", participant_id)
        return dict(self._participants[participant_id])

    # GraphSource

    async def load_snapshot(self) -> GraphSnapshot:
        if self.anchor_id is None:
            raise MissingAnchorError(None)
        async with self._lock:
            graph = {source: dict(row) for source, row in self._participants.items()}
            return GraphSnapshot(graph=graph, anchor_id=self.anchor_id, budgets=dict(self._budgets))

    # ScoreSink

    async def save_scores(self, response: TrustResponse) -> None:
        async with self._lock:
            self._published = response

    async def latest_scores(self) -> TrustResponse | None:
        return self._published

    async def log_computation(self, entry: ComputationLogEntry) -> None:
        async with self._lock:
            self._log.append(entry)
            if len(self._log) > self._log_retention:
                del self._log[: len(self._log) - self._log_retention]

    async def list_computations(self, limit: int = 20) -> list[ComputationLogEntry]:
        return list(reversed(self._log[-limit:])) if limit > 0 else []

    async def set_override(self, override: ScoreOverride) -> None:
        async with self._lock:
            self._overrides[override.participant_id] = override

    async def delete_override(self, participant_id: ParticipantId) -> bool:
        async with self._lock:
            return self._overrides.pop(participant_id, None) is not None

    async def list_overrides(self) -> list[ScoreOverride]:
        return list(self._overrides.values())
