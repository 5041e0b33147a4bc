"""Configuration management for AnchorTrust.

Two layers:

- ``TrustParameters`` is the explicit parameter struct handed to every
  engine call. The engine never reads ambient configuration.
- ``Settings`` is the config store. It supplies the defaults that the
  service layer turns into ``TrustParameters`` for each run.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ALPHA = 0.15
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_CONVERGENCE_THRESHOLD = 1e-6
DEFAULT_ALLOCATION_BUDGET = 100.0


class TrustParameters(BaseModel):
    """Tunable parameters for one trust computation.

    Attributes:
        alpha: Decay factor; weight of the anchor's pretrust vector per iteration.
        max_iterations: Iteration cap for the power-iteration solver.
        convergence_threshold: Stop when the largest per-entry change drops below this.
        allocation_budget: Points each participant distributes (e.g. 100).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    alpha: float = Field(
        default=DEFAULT_ALPHA,
        gt=0.0,
        lt=1.0,
        description="Decay factor towards the anchor's pretrust vector",
    )
    max_iterations: int = Field(
        default=DEFAULT_MAX_ITERATIONS,
        ge=1,
        description="Maximum power iterations before giving up on convergence",
    )
    convergence_threshold: float = Field(
        default=DEFAULT_CONVERGENCE_THRESHOLD,
        gt=0.0,
        description="Maximum per-entry change that counts as converged",
    )
    allocation_budget: float = Field(
        default=DEFAULT_ALLOCATION_BUDGET,
        gt=0.0,
        description="Default allocation budget per participant",
    )

    def merged(self, **overrides: Any) -> TrustParameters:
        """Return a copy with every non-None override applied."""
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self
        return TrustParameters.model_validate({**self.model_dump(), **updates})


class Settings(BaseSettings):
    """AnchorTrust configuration loaded from environment variables.

    All settings can be overridden via environment variables with the
    ANCHORTRUST_ prefix. Nested trust parameters use a double underscore:
        ANCHORTRUST_ANCHOR_ID=admin
        ANCHORTRUST_TRUST__ALPHA=0.2
        ANCHORTRUST_SCORING_MODE=standard
    """

    model_config = SettingsConfigDict(
        env_prefix="ANCHORTRUST_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Engine defaults (the config store)
    anchor_id: str | None = Field(
        default=None,
        description="Default anchor for graph sources that do not declare one",
    )
    trust: TrustParameters = Field(
        default_factory=TrustParameters,
        description="Default engine parameters",
    )
    scoring_mode: Literal["decoupled", "standard"] = Field(
        default="decoupled",
        description="decoupled isolates each participant from their own allocations",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log output format")

    # CORS
    cors_enabled: bool = Field(default=True, description="Enable CORS middleware")
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )
    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods for CORS requests",
    )
    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed headers for CORS requests",
    )
    cors_allow_credentials: bool = Field(
        default=False,
        description="Allow credentials in CORS requests (not with wildcard origins)",
    )

    @model_validator(mode="after")
    def validate_cors(self) -> Settings:
        """Reject credentialed CORS with wildcard origins."""
        if self.cors_allow_credentials and "*" in self.cors_allow_origins:
            raise ValueError(
                "cors_allow_credentials cannot be True when cors_allow_origins contains '*'"
            )
        return self

    def parameters(
        self,
        *,
        alpha: float | None = None,
        max_iterations: int | None = None,
        convergence_threshold: float | None = None,
        allocation_budget: float | None = None,
    ) -> TrustParameters:
        """Resolve per-call overrides against the stored defaults.

        ``None`` means "use the configured default".
        """
        return self.trust.merged(
            alpha=alpha,
            max_iterations=max_iterations,
            convergence_threshold=convergence_threshold,
            allocation_budget=allocation_budget,
        )
