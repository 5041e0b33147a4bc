"""FastAPI router for AnchorTrust endpoints."""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from anchortrust import __version__
from anchortrust.engine import TrustAnalysis, compare_modes, compute_trust
from anchortrust.logging import get_logger
from anchortrust.models import GraphSnapshot, ModeComparison, TrustRequest, TrustResponse
from anchortrust.service import TrustService
from anchortrust.storage import InMemoryTrustStore

from .schemas import (
    AddParticipantRequest,
    ComputationLogListResponse,
    ComputationLogResponse,
    ConfigResponse,
    HealthResponse,
    OverrideRequest,
    OverrideResponse,
    RecomputeRequest,
    SetAllocationRequest,
)

logger = get_logger(__name__)

router = APIRouter()

# Service and store instances (set by app lifespan)
_service: TrustService | None = None
_store: InMemoryTrustStore | None = None


def set_service(service: TrustService | None, store: InMemoryTrustStore | None = None) -> None:
    """Set the global service instance and, optionally, the graph store behind it."""
    global _service, _store
    _service = service
    _store = store


async def get_service() -> TrustService:
    """Dependency to get the TrustService instance."""
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _service


async def get_store() -> InMemoryTrustStore:
    """Dependency to get the graph store. Only available for the in-memory backend."""
    if _store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Graph store not available",
        )
    return _store


ServiceDep = Annotated[TrustService, Depends(get_service)]
StoreDep = Annotated[InMemoryTrustStore, Depends(get_store)]


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check() -> HealthResponse:
    """Report whether the trust service is ready."""
    ready = _service is not None
    return HealthResponse(
        status="healthy" if ready else "unhealthy",
        version=__version__,
        service_ready=ready,
    )


@router.get("/trust/config", response_model=ConfigResponse, tags=["trust"])
async def get_config(service: ServiceDep) -> ConfigResponse:
    """Engine defaults used when a recompute does not override them."""
    settings = service.settings
    return ConfigResponse(
        alpha=settings.trust.alpha,
        max_iterations=settings.trust.max_iterations,
        convergence_threshold=settings.trust.convergence_threshold,
        allocation_budget=settings.trust.allocation_budget,
        scoring_mode=settings.scoring_mode,
        anchor_id=settings.anchor_id,
    )


@router.post("/trust/compute", response_model=TrustResponse, tags=["trust"])
async def compute(request: TrustRequest) -> TrustResponse:
    """Run the engine on a posted graph. Nothing is persisted.

    Engine errors (invalid allocations, unknown participants, a missing
    anchor, divergence) are mapped to HTTP errors by the app's handlers.
    """
    return await asyncio.to_thread(compute_trust, request)


@router.post("/trust/compare", response_model=ModeComparison, tags=["trust"])
async def compare(request: TrustRequest) -> ModeComparison:
    """Standard and decoupled scores for a posted graph."""
    return await asyncio.to_thread(compare_modes, request)


@router.post("/trust/recompute", response_model=TrustResponse, tags=["trust"])
async def recompute(request: RecomputeRequest, service: ServiceDep) -> TrustResponse:
    """Recompute and publish scores for the service's current graph."""
    return await service.recompute(
        alpha=request.alpha,
        max_iterations=request.max_iterations,
        convergence_threshold=request.convergence_threshold,
        mode=request.mode,
        triggered_by=request.triggered_by,
    )


@router.get("/trust/scores", response_model=TrustResponse, tags=["trust"])
async def latest_scores(service: ServiceDep) -> TrustResponse:
    """Most recently published scores (overrides applied)."""
    return await service.latest_scores()


@router.get("/trust/analysis/{participant_id}", response_model=TrustAnalysis, tags=["trust"])
async def analyze(participant_id: str, service: ServiceDep) -> TrustAnalysis:
    """Where a participant's score comes from, edge by edge."""
    return await service.analyze(participant_id)


@router.put(
    "/trust/overrides/{participant_id}",
    response_model=OverrideResponse,
    tags=["overrides"],
)
async def set_override(
    participant_id: str,
    request: OverrideRequest,
    service: ServiceDep,
) -> OverrideResponse:
    """Pin a participant's published score. The trust graph is not modified."""
    override = await service.set_override(participant_id, request.score, request.reason)
    return OverrideResponse(
        participant_id=override.participant_id,
        score=override.score,
        trust_score=override.trust_score,
        percentile=override.percentile,
        reason=override.reason,
        created_at=override.created_at,
    )


@router.delete(
    "/trust/overrides/{participant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["overrides"],
)
async def clear_override(participant_id: str, service: ServiceDep) -> None:
    """Remove an override; the next recompute publishes the computed score."""
    await service.clear_override(participant_id)


@router.get("/trust/computations", response_model=ComputationLogListResponse, tags=["trust"])
async def list_computations(
    service: ServiceDep,
    limit: int = Query(default=20, ge=1, le=1000),
) -> ComputationLogListResponse:
    """Recent computation runs, newest first."""
    entries = await service.computations(limit)
    return ComputationLogListResponse(
        computations=[ComputationLogResponse(**entry.model_dump()) for entry in entries],
        count=len(entries),
    )


# Graph management (in-memory store only)


@router.get("/graph", response_model=GraphSnapshot, tags=["graph"])
async def get_graph(store: StoreDep) -> GraphSnapshot:
    """Current participants, allocations and anchor."""
    return await store.load_snapshot()


@router.post(
    "/graph/participants",
    status_code=status.HTTP_201_CREATED,
    response_model=dict[str, float],
    tags=["graph"],
)
async def add_participant(request: AddParticipantRequest, store: StoreDep) -> dict[str, float]:
    """Register a participant. Returns their current outgoing allocations."""
    store.add_participant(request.participant_id, budget=request.budget)
    logger.info("Participant added", participant_id=request.participant_id)
    return store.allocations_of(request.participant_id)


@router.delete(
    "/graph/participants/{participant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["graph"],
)
async def remove_participant(participant_id: str, store: StoreDep) -> None:
    """Drop a participant together with every allocation pointing at them."""
    store.remove_participant(participant_id)
    logger.info("Participant removed", participant_id=participant_id)


@router.put("/graph/allocations", response_model=dict[str, float], tags=["graph"])
async def set_allocation(request: SetAllocationRequest, store: StoreDep) -> dict[str, float]:
    """Set one allocation weight; zero removes the edge. Returns the source's allocations."""
    store.set_allocation(request.source, request.target, request.weight)
    logger.debug(
        "Allocation set",
        source=request.source,
        target=request.target,
        weight=request.weight,
    )
    return store.allocations_of(request.source)
