"""Anchored power-iteration solver.

Repeatedly pushes the score vector through the transposed trust matrix and
blends in the anchor's pretrust vector:

    network        = C^T . t_k
    t_{k+1}        = (1 - alpha) * network + alpha * p
    t_{k+1}[a]     = 1.0                      (anchor re-pinned every step)

and stops once ``max_i |t_{k+1}[i] - t_k[i]| < epsilon`` or the iteration
cap is hit. Hitting the cap is not an error; the caller gets the last
vector with ``converged=False``.

The solver knows nothing about participants, self-loops or scoring modes.
It takes a matrix and an anchor position and nothing else.

References:
- Kamvar, Schlosser, Garcia-Molina 2003: The EigenTrust algorithm
- Page et al. 1999: PageRank power iteration with teleportation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from anchortrust.config import TrustParameters
from anchortrust.exceptions import DivergedComputationError

logger = logging.getLogger(__name__)

ANCHOR_SCORE = 1.0

# Progress is logged at debug level every this many iterations
_PROGRESS_INTERVAL = 10


class SolverState(str, Enum):
    """Lifecycle of one solver run."""

    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"


@dataclass(frozen=True)
class SolverOutcome:
    """Final vector and bookkeeping of one solver run.

    Attributes:
        scores: Length-N score vector (a fresh array owned by the caller).
        iterations: Number of transitions applied.
        converged: Whether the threshold was reached.
        max_change: Largest per-entry change in the last iteration.
    """

    scores: np.ndarray
    iterations: int
    converged: bool
    max_change: float


class PowerIterationSolver:
    """Single-use solver over one matrix.

    Example:
        ```python
        solver = PowerIterationSolver(matrix, anchor_index=0)
        outcome = solver.run()
        assert solver.state is SolverState.CONVERGED
        ```
    """

    def __init__(
        self,
        matrix: np.ndarray,
        anchor_index: int,
        parameters: TrustParameters | None = None,
    ) -> None:
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"Trust matrix must be square, got shape {matrix.shape}")
        if not 0 <= anchor_index < matrix.shape[0]:
            raise ValueError(f"Anchor index {anchor_index} out of range for size {matrix.shape[0]}")
        if not np.all(np.isfinite(matrix)):
            raise DivergedComputationError(0, "Trust matrix contains non-finite entries")

        self._transposed = np.ascontiguousarray(matrix.T, dtype=np.float64)
        self._anchor_index = anchor_index
        self._parameters = parameters or TrustParameters()

        size = matrix.shape[0]
        self._pretrust = np.zeros(size, dtype=np.float64)
        self._pretrust[anchor_index] = ANCHOR_SCORE
        self._pretrust.setflags(write=False)
        self._scores = self._pretrust.copy()
        self._iterations = 0
        self._max_change = 0.0
        self.state = SolverState.INITIALIZED

    @property
    def pretrust(self) -> np.ndarray:
        return self._pretrust

    def step(self) -> float:
        """Apply one transition and return the largest per-entry change.

        Raises:
            DivergedComputationError: If the new vector is not finite.
        """
        alpha = self._parameters.alpha
        network = self._transposed @ self._scores
        updated = (1.0 - alpha) * network + alpha * self._pretrust
        updated[self._anchor_index] = ANCHOR_SCORE

        self._iterations += 1
        if not np.all(np.isfinite(updated)):
            raise DivergedComputationError(self._iterations)

        max_change = float(np.max(np.abs(updated - self._scores)))
        self._scores = updated
        self._max_change = max_change
        return max_change

    def run(self) -> SolverOutcome:
        """Iterate until convergence or the iteration cap."""
        if self.state is not SolverState.INITIALIZED:
            raise RuntimeError(f"Solver already ran (state={self.state.value})")

        self.state = SolverState.ITERATING
        threshold = self._parameters.convergence_threshold

        for _ in range(self._parameters.max_iterations):
            max_change = self.step()
            if self._iterations % _PROGRESS_INTERVAL == 0:
                logger.debug("Iteration %d: max change = %.3e", self._iterations, max_change)
            if max_change < threshold:
                self.state = SolverState.CONVERGED
                break
        else:
            self.state = SolverState.MAX_ITERATIONS_REACHED
            logger.warning(
                "Power iteration did not converge after %d iterations (max change %.3e)",
                self._iterations,
                self._max_change,
            )

        return SolverOutcome(
            scores=self._scores.copy(),
            iterations=self._iterations,
            converged=self.state is SolverState.CONVERGED,
            max_change=self._max_change,
        )


def solve(
    matrix: np.ndarray,
    anchor_index: int,
    parameters: TrustParameters | None = None,
) -> SolverOutcome:
    """Run the anchored power iteration to a fixed point (or the cap)."""
    return PowerIterationSolver(matrix, anchor_index, parameters).run()
