"""Custom exceptions for prismatic rule geometry fitting.

The exception hierarchy distinguishes the three ways a fit attempt can
fail, so that callers can pick a recovery policy (new initial guess,
different damping seed, larger budget) for each of them.

Exception Hierarchy:
    PrismaFitError (base)
    ├── InvalidInputError (bad observations or initial guess)
    ├── NumericalDegeneracyError (singular step, parameter domain left)
    └── NonConvergenceError (iteration/evaluation budget exhausted)

Examples
--------
>>> try:
...     result = fit_geometry(observed)
... except NumericalDegeneracyError:
...     result = fit_geometry(observed, options={"initial_damping": 1.0})
... except NonConvergenceError as e:
...     logger.warning(f"best unconverged point: {e.point}")

Notes
-----
None of these errors is retried by the solver itself. All of them are
local to one fit invocation: observation lists and parameter vectors are
immutable, so a failed fit leaves nothing to clean up.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prisma.core.geometry import ParameterVector


class PrismaFitError(Exception):
    """Base exception for all geometry fitting errors.

    Attributes
    ----------
    error_context : dict
        Additional context about the error (counts, damping, cost, ...)
    """

    def __init__(self, message: str, error_context: dict | None = None):
        super().__init__(message)
        self.error_context = error_context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        base_msg = super().__str__()
        if self.error_context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.error_context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class InvalidInputError(PrismaFitError):
    """Raised before the first iteration when the fit cannot be attempted.

    Common Causes
    -------------
    - Fewer than 3 observed measurements
    - Negative pin diameter or spacer height
    - Non-finite measurement values
    - Initial guess outside the parameter domain (R ≤ 0, bad angles)
    """


class NumericalDegeneracyError(PrismaFitError):
    """Raised when a solver step cannot be computed or applied.

    Common Causes
    -------------
    - Damped normal equations matrix singular (a Jacobian column is zero,
      e.g. when every measurement uses the same top vertex)
    - Candidate point leaving the parameter domain (an angle reaching 0
      or the two free angles summing to π)

    Recovery Strategies
    -------------------
    1. Start from a guess closer to the expected geometry
    2. Increase ``initial_damping`` so that early steps are shorter
    3. Add measurements on the other faces

    Attributes
    ----------
    detection_point : str
        Where the degeneracy was detected ('linear_solve', 'domain')
    point : ParameterVector | None
        Point the solver was at when the degeneracy was detected
    """

    def __init__(
        self,
        message: str,
        detection_point: str | None = None,
        point: ParameterVector | None = None,
        error_context: dict | None = None,
    ):
        context = error_context or {}
        if detection_point:
            context["detection_point"] = detection_point

        super().__init__(message, context)
        self.detection_point = detection_point
        self.point = point


class NonConvergenceError(PrismaFitError):
    """Raised when the solver budget is exhausted before convergence.

    The best point found so far is attached, clearly tagged as
    unconverged: callers must not treat it as a validated fit.

    Attributes
    ----------
    point : ParameterVector | None
        Best (lowest cost) point reached, unconverged
    iteration_count : int | None
        Number of iterations completed
    evaluation_count : int | None
        Number of model evaluations performed
    final_cost : float | None
        Sum of squared residuals at ``point``
    converged : bool
        Always False
    """

    converged = False

    def __init__(
        self,
        message: str,
        point: ParameterVector | None = None,
        iteration_count: int | None = None,
        evaluation_count: int | None = None,
        final_cost: float | None = None,
        error_context: dict | None = None,
    ):
        context = error_context or {}
        if iteration_count is not None:
            context["iteration_count"] = iteration_count
        if evaluation_count is not None:
            context["evaluation_count"] = evaluation_count
        if final_cost is not None:
            context["final_cost"] = final_cost

        super().__init__(message, context)
        self.point = point
        self.iteration_count = iteration_count
        self.evaluation_count = evaluation_count
        self.final_cost = final_cost
