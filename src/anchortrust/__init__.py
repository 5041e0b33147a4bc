"""AnchorTrust: anchored EigenTrust reputation scores.

Participants spend a fixed allocation budget on the people they trust.
AnchorTrust turns those allocations into a global score per participant,
anchored by a single pretrusted node, plus positional percentiles for
display.

Quick Start:
    from anchortrust import compute_trust_scores

    response = compute_trust_scores(
        {"admin": {"bob": 100}, "bob": {"carol": 60}, "carol": {"bob": 40}},
        anchor_id="admin",
    )
    response.scores, response.percentiles, response.converged

Service:
    from anchortrust import InMemoryTrustStore, TrustService

    store = InMemoryTrustStore(anchor_id="admin", allocations=...)
    service = TrustService.create(store)
    response = await service.recompute(triggered_by="cron")

Scoring modes:
    - decoupled (default): a participant's own outgoing allocations never
      change their own score
    - standard: a single anchored power iteration
"""

__version__ = "0.1.0"

# Configuration
from .config import Settings, TrustParameters

# Engine
from .engine import (
    TrustAnalysis,
    analyze_participant,
    compare_modes,
    compute_percentiles,
    compute_trust,
    compute_trust_scores,
    normalize_allocations,
)

# Exceptions
from .exceptions import (
    AnchorTrustError,
    ConfigurationError,
    DivergedComputationError,
    InvalidAllocationError,
    MissingAnchorError,
    NotFoundError,
    UnknownParticipantError,
    ValidationError,
)

# Logging
from .logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

# Models
from .models import (
    Allocation,
    ComputationLogEntry,
    ComputationResult,
    GraphSnapshot,
    ModeComparison,
    ParticipantId,
    ScoreOverride,
    ScoringMode,
    TrustRequest,
    TrustResponse,
)

# Overrides
from .overrides import apply_overrides

# Service
from .service import TrustService

# Storage
from .storage import GraphSource, InMemoryTrustStore, ScoreSink

__all__ = [
    "__version__",
    # Configuration
    "Settings",
    "TrustParameters",
    # Engine
    "TrustAnalysis",
    "analyze_participant",
    "compare_modes",
    "compute_percentiles",
    "compute_trust",
    "compute_trust_scores",
    "normalize_allocations",
    # Exceptions
    "AnchorTrustError",
    "ConfigurationError",
    "DivergedComputationError",
    "InvalidAllocationError",
    "MissingAnchorError",
    "NotFoundError",
    "UnknownParticipantError",
    "ValidationError",
    # Logging
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Models
    "Allocation",
    "ComputationLogEntry",
    "ComputationResult",
    "GraphSnapshot",
    "ModeComparison",
    "ParticipantId",
    "ScoreOverride",
    "ScoringMode",
    "TrustRequest",
    "TrustResponse",
    # Overrides
    "apply_overrides",
    # Service
    "TrustService",
    # Storage
    "GraphSource",
    "InMemoryTrustStore",
    "ScoreSink",
]
