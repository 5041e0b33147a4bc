"""Trust service: wires the engine to its collaborators.

    source.load_snapshot() -> engine (worker thread) -> overrides -> sink

The engine is CPU-bound and synchronous, so it runs via
``asyncio.to_thread``. Overlapping recomputes are not deduplicated; each
call computes independently over whatever snapshot the source returns, and
the sink's own locking orders the writes.

Example:
    ```python
    from anchortrust.service import TrustService
    from anchortrust.storage import InMemoryTrustStore

    store = InMemoryTrustStore(
        anchor_id="admin",
        allocations={"admin": {"bob": 100}, "bob": {"carol": 50}, "carol": {}},
    )
    service = TrustService.create(store)
    response = await service.recompute(triggered_by="cron")
    ```
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from anchortrust.config import Settings
from anchortrust.engine import TrustAnalysis, analyze_participant, compare_modes, compute_trust
from anchortrust.exceptions import NotFoundError, ValidationError
from anchortrust.logging import bind_context, get_logger, unbind_context
from anchortrust.models import (
    ComputationLogEntry,
    ModeComparison,
    ParticipantId,
    ScoreOverride,
    ScoringMode,
    TrustRequest,
    TrustResponse,
    generate_id,
)
from anchortrust.overrides import apply_overrides
from anchortrust.storage import GraphSource, ScoreSink

logger = get_logger(__name__)


@dataclass
class TrustService:
    """High-level entry point for scheduled and on-demand recomputes.

    Attributes:
        source: Supplies graph snapshots.
        sink: Persists scores, logs and overrides.
        settings: Config store for engine defaults.
    """

    source: GraphSource
    sink: ScoreSink
    settings: Settings = field(default_factory=Settings)

    @classmethod
    def create(
        cls,
        store: GraphSource | ScoreSink,
        settings: Settings | None = None,
    ) -> TrustService:
        """Build a service whose source and sink are the same backend."""
        if not isinstance(store, GraphSource) or not isinstance(store, ScoreSink):
            raise TypeError("store must implement both GraphSource and ScoreSink")
        return cls(source=store, sink=store, settings=settings or Settings())

    async def build_request(
        self,
        *,
        alpha: float | None = None,
        max_iterations: int | None = None,
        convergence_threshold: float | None = None,
        mode: ScoringMode | str | None = None,
    ) -> TrustRequest:
        """Snapshot the graph and resolve parameters against the config store."""
        snapshot = await self.source.load_snapshot()
        parameters = self.settings.parameters(
            alpha=alpha,
            max_iterations=max_iterations,
            convergence_threshold=convergence_threshold,
        )
        return TrustRequest.from_snapshot(
            snapshot,
            parameters,
            mode=ScoringMode(mode or self.settings.scoring_mode),
        )

    async def preview(
        self,
        *,
        alpha: float | None = None,
        max_iterations: int | None = None,
        convergence_threshold: float | None = None,
        mode: ScoringMode | str | None = None,
    ) -> TrustResponse:
        """Compute scores without publishing them or applying overrides."""
        request = await self.build_request(
            alpha=alpha,
            max_iterations=max_iterations,
            convergence_threshold=convergence_threshold,
            mode=mode,
        )
        return await asyncio.to_thread(compute_trust, request)

    async def recompute(
        self,
        *,
        alpha: float | None = None,
        max_iterations: int | None = None,
        convergence_threshold: float | None = None,
        mode: ScoringMode | str | None = None,
        triggered_by: str = "manual",
    ) -> TrustResponse:
        """Recompute all scores, layer overrides on top, publish and log.

        Returns:
            The published response (overrides applied).

        Raises:
            AnchorTrustError: Any structural or numerical engine error. Nothing
                is published or logged in that case.
        """
        request = await self.build_request(
            alpha=alpha,
            max_iterations=max_iterations,
            convergence_threshold=convergence_threshold,
            mode=mode,
        )
        entry_id = generate_id("run")
        bind_context(run_id=entry_id, triggered_by=triggered_by)
        try:
            logger.info(
                "Starting trust computation",
                participants=len(request.graph),
                alpha=request.alpha,
                mode=request.mode.value,
            )
            response = await asyncio.to_thread(compute_trust, request)
            if not response.converged:
                logger.warning(
                    "Trust computation hit the iteration cap",
                    iterations=response.iterations,
                    max_iterations=request.max_iterations,
                )

            published = apply_overrides(response, await self.sink.list_overrides())
            await self.sink.save_scores(published)
            await self.sink.log_computation(
                ComputationLogEntry(
                    id=entry_id,
                    participants=len(request.graph),
                    iterations=response.iterations,
                    converged=response.converged,
                    alpha=request.alpha,
                    max_iterations=request.max_iterations,
                    convergence_threshold=request.convergence_threshold,
                    mode=request.mode,
                    triggered_by=triggered_by,
                    elapsed_ms=response.elapsed_ms,
                )
            )
            logger.info(
                "Trust computation published",
                iterations=response.iterations,
                converged=response.converged,
                elapsed_ms=response.elapsed_ms,
                overridden=len(published.overridden),
            )
            return published
        finally:
            unbind_context("run_id", "triggered_by")

    async def compare(self) -> ModeComparison:
        """Standard vs decoupled scores for the current snapshot."""
        request = await self.build_request()
        return await asyncio.to_thread(compare_modes, request)

    async def analyze(self, participant_id: ParticipantId) -> TrustAnalysis:
        """Explain one participant's score on the current snapshot."""
        request = await self.build_request()
        return await asyncio.to_thread(analyze_participant, request, participant_id)

    async def latest_scores(self) -> TrustResponse:
        """Most recently published scores.

        Raises:
            NotFoundError: If nothing has been published yet.
        """
        published = await self.sink.latest_scores()
        if published is None:
            raise NotFoundError("scores", "latest")
        return published

    async def set_override(
        self,
        participant_id: ParticipantId,
        score: float,
        reason: str | None = None,
    ) -> ScoreOverride:
        """Pin a participant's published score (0-100 scale).

        Published scores are updated in place; the trust graph is not touched.

        Raises:
            NotFoundError: If the participant is unknown.
            ValidationError: If the participant is the anchor.
        """
        snapshot = await self.source.load_snapshot()
        if participant_id not in snapshot.graph:
            raise NotFoundError("participant", participant_id)
        if participant_id == snapshot.anchor_id:
            raise ValidationError("participant_id", "the anchor's score cannot be overridden")

        override = ScoreOverride(participant_id=participant_id, score=score, reason=reason)
        await self.sink.set_override(override)

        published = await self.sink.latest_scores()
        if published is not None:
            await self.sink.save_scores(apply_overrides(published, [override]))

        logger.info("Score override set", participant_id=participant_id, score=score)
        return override

    async def clear_override(self, participant_id: ParticipantId) -> None:
        """Remove an override; the next recompute publishes the computed value.

        Raises:
            NotFoundError: If the participant has no override.
        """
        if not await self.sink.delete_override(participant_id):
            raise NotFoundError("override", participant_id)
        logger.info("Score override cleared", participant_id=participant_id)

    async def computations(self, limit: int = 20) -> list[ComputationLogEntry]:
        return await self.sink.list_computations(limit)
