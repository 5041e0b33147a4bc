"""AnchorTrust exception hierarchy.

Structural errors (bad allocations, unknown participants, a missing anchor)
are raised before any iteration starts. Numerical divergence is raised from
inside the solver loop. All exceptions inherit from AnchorTrustError so API
handlers and callers can catch them with a single except clause.
"""

from __future__ import annotations

from typing import Any


class AnchorTrustError(Exception):
    """Base exception for all AnchorTrust errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for API responses.
    """

    code: str = "anchortrust_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def _details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                **self._details(),
                "message": self.message,
            }
        }


class ValidationError(AnchorTrustError):
    """Invalid input provided.

    Attributes:
        field: The field that failed validation.
    """

    code: str = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")

    def _details(self) -> dict[str, Any]:
        return {"field": self.field}


class InvalidAllocationError(AnchorTrustError):
    """An allocation cannot enter the trust matrix.

    Raised for negative or non-finite weights and for non-positive
    allocation budgets. The whole run is aborted; no partial matrix exists.

    Attributes:
        source: Participant that made the allocation (if known).
        target: Allocation target (if known).
        weight: Offending weight (if known).
    """

    code: str = "invalid_allocation"

    def __init__(
        self,
        message: str,
        source: object | None = None,
        target: object | None = None,
        weight: float | None = None,
    ) -> None:
        self.source = source
        self.target = target
        self.weight = weight
        super().__init__(message)

    def _details(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target, "weight": self.weight}


class UnknownParticipantError(InvalidAllocationError):
    """An allocation references a participant outside the snapshot.

    Attributes:
        participant_id: The unknown identity.
        referenced_by: Participant whose row referenced it.
    """

    code: str = "unknown_participant"

    def __init__(self, participant_id: object, referenced_by: object | None = None) -> None:
        self.participant_id = participant_id
        self.referenced_by = referenced_by
        if referenced_by is None:
            message = f"Unknown participant: {participant_id!r}"
        else:
            message = f"Unknown participant {participant_id!r} referenced by {referenced_by!r}"
        super().__init__(message, source=referenced_by, target=participant_id)

    def _details(self) -> dict[str, Any]:
        return {"participant_id": self.participant_id, "referenced_by": self.referenced_by}


class MissingAnchorError(AnchorTrustError):
    """The declared anchor is not part of the participant set."""

    code: str = "missing_anchor"

    def __init__(self, anchor_id: object) -> None:
        self.anchor_id = anchor_id
        super().__init__(f"Anchor {anchor_id!r} is not a known participant")

    def _details(self) -> dict[str, Any]:
        return {"anchor_id": self.anchor_id}


class DivergedComputationError(AnchorTrustError):
    """NaN or Inf appeared in the score vector.

    Attributes:
        iteration: Iteration at which the non-finite value was detected
            (0 means the input matrix itself was non-finite).
    """

    code: str = "diverged_computation"

    def __init__(self, iteration: int, message: str | None = None) -> None:
        self.iteration = iteration
        super().__init__(message or f"Score vector became non-finite at iteration {iteration}")

    def _details(self) -> dict[str, Any]:
        return {"iteration": self.iteration}


class NotFoundError(AnchorTrustError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (e.g., "participant", "override").
        resource_id: ID of the missing resource.
    """

    code: str = "not_found"

    def __init__(self, resource_type: str, resource_id: object) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")

    def _details(self) -> dict[str, Any]:
        return {"resource_type": self.resource_type, "resource_id": self.resource_id}


class ConfigurationError(AnchorTrustError):
    """Required configuration is missing or invalid."""

    code: str = "configuration_error"
