"""
Levenberg-Marquardt Nonlinear Least Squares Solver
==================================================

Damped Gauss-Newton iteration minimizing Σᵢ (mᵢ − fᵢ(p))² over the free
parameters p = (R, α1, α2) of a prismatic rule cross-section.

Each step solves the Marquardt-scaled damped normal equations

    (JᵀJ + λ·diag(JᵀJ)) Δ = Jᵀ(m − f(p))

and the damping factor λ adapts like a trust region radius: it decreases
after a step that lowers the cost (moving towards Gauss-Newton) and
increases after a rejected step (moving towards scaled gradient descent).

State machine:

    INITIALIZING → ITERATING → CONVERGED
                             → MAX_ITERATIONS_EXCEEDED   (NonConvergenceError)
                             → MAX_EVALUATIONS_EXCEEDED  (NonConvergenceError)
                             → SINGULAR_STEP             (NumericalDegeneracyError)

An iteration ends with an accepted step; rejected steps only consume
evaluations.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np

from prisma.core.geometry import ParameterVector
from prisma.optimization.config import LMConfig
from prisma.optimization.exceptions import (
    InvalidInputError,
    NonConvergenceError,
    NumericalDegeneracyError,
)
from prisma.optimization.linalg import normal_equations, solve_damped_normal_equations
from prisma.utils.logging import get_logger

logger = get_logger(__name__)


class SolverState(Enum):
    """States of the Levenberg-Marquardt solver."""

    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"
    MAX_EVALUATIONS_EXCEEDED = "max_evaluations_exceeded"
    SINGULAR_STEP = "singular_step"


class LeastSquaresModel(Protocol):
    """Model interface consumed by the solver."""

    @property
    def target(self) -> np.ndarray: ...

    def value(self, point: ParameterVector) -> tuple[np.ndarray, np.ndarray]: ...


@dataclass(frozen=True)
class LMOptimum:
    """Converged solution of the least squares problem.

    Attributes
    ----------
    point : ParameterVector
        Optimal parameters
    values : np.ndarray
        Theoretical measurements at the optimum
    residuals : np.ndarray
        Observed minus theoretical measurements at the optimum
    jacobian : np.ndarray
        Jacobian at the optimum, shape (n, 3)
    cost : float
        Sum of squared residuals
    iterations : int
        Number of accepted steps
    evaluations : int
        Number of model evaluations
    damping : float
        Final damping factor
    state : SolverState
        Terminal state (always CONVERGED for a returned optimum)
    """

    point: ParameterVector
    values: np.ndarray
    residuals: np.ndarray
    jacobian: np.ndarray
    cost: float
    iterations: int
    evaluations: int
    damping: float
    state: SolverState = SolverState.CONVERGED

    @property
    def converged(self) -> bool:
        return self.state is SolverState.CONVERGED

    @property
    def rms(self) -> float:
        return float(np.sqrt(self.cost / self.residuals.size))


class LevenbergMarquardtOptimizer:
    """Levenberg-Marquardt solver with Marquardt diagonal scaling.

    Parameters
    ----------
    config : LMConfig, optional
        Solver settings (defaults if None)

    Raises
    ------
    InvalidInputError
        If the configuration is invalid
    """

    def __init__(self, config: LMConfig | None = None):
        self.config = config or LMConfig()
        errors = self.config.validate()
        if errors:
            raise InvalidInputError(
                f"invalid solver configuration: {'; '.join(errors)}"
            )
        self.state = SolverState.INITIALIZING

    def optimize(self, model: LeastSquaresModel, start: ParameterVector) -> LMOptimum:
        """Fit the model parameters to the model target.

        Parameters
        ----------
        model : LeastSquaresModel
            Provides the target vector and (values, jacobian) at a point
        start : ParameterVector
            Initial guess, must be inside the parameter domain

        Returns
        -------
        LMOptimum
            Converged optimum

        Raises
        ------
        InvalidInputError
            If the initial guess is outside the parameter domain
        NumericalDegeneracyError
            If a step cannot be solved or leaves the parameter domain
        NonConvergenceError
            If the iteration or evaluation budget is exhausted
        """
        cfg = self.config
        self.state = SolverState.INITIALIZING

        point = ParameterVector(*start)
        if not point.in_domain():
            raise InvalidInputError(
                f"initial guess outside parameter domain: {point}",
                error_context={"r": point.r, "alpha1": point.alpha1, "alpha2": point.alpha2},
            )

        target = np.asarray(model.target, dtype=float)
        values, jacobian = model.value(point)
        evaluations = 1
        residuals = target - values
        cost = float(residuals @ residuals)
        if not np.isfinite(cost):
            raise NumericalDegeneracyError(
                "non-finite cost at initial guess",
                detection_point="evaluation",
                point=point,
            )

        damping = cfg.initial_damping
        iterations = 0
        self.state = SolverState.ITERATING
        logger.debug(f"Initial cost {cost:.6e} at {point}")

        def optimum() -> LMOptimum:
            self.state = SolverState.CONVERGED
            logger.info(
                f"Levenberg-Marquardt converged: cost={cost:.6e}, "
                f"iterations={iterations}, evaluations={evaluations}"
            )
            return LMOptimum(
                point=point,
                values=values,
                residuals=residuals,
                jacobian=jacobian,
                cost=cost,
                iterations=iterations,
                evaluations=evaluations,
                damping=damping,
            )

        def unconverged(state: SolverState, message: str) -> NonConvergenceError:
            self.state = state
            logger.warning(f"Levenberg-Marquardt stopped: {message}")
            return NonConvergenceError(
                message,
                point=point,
                iteration_count=iterations,
                evaluation_count=evaluations,
                final_cost=cost,
                error_context={"state": state.value},
            )

        while True:
            if cost <= cfg.cost_absolute_tolerance:
                return optimum()

            if iterations >= cfg.max_iterations:
                raise unconverged(
                    SolverState.MAX_ITERATIONS_EXCEEDED,
                    f"maximal number of iterations ({cfg.max_iterations}) exceeded",
                )

            jtj, jtr = normal_equations(jacobian, residuals)
            x = point.as_array()
            step_threshold = (
                cfg.point_relative_tolerance * np.linalg.norm(x)
                + cfg.point_absolute_tolerance
            )

            # Inner loop: increase damping until a step lowers the cost
            while True:
                try:
                    step = solve_damped_normal_equations(
                        jtj, jtr, damping, cfg.singularity_threshold
                    )
                except NumericalDegeneracyError as e:
                    self.state = SolverState.SINGULAR_STEP
                    e.point = point
                    e.error_context["state"] = SolverState.SINGULAR_STEP.value
                    logger.warning(f"Levenberg-Marquardt singular step at {point}: {e}")
                    raise

                step_norm = float(np.linalg.norm(step))
                candidate = ParameterVector.from_array(x + step)

                if not candidate.in_domain():
                    if not cfg.reject_out_of_domain:
                        self.state = SolverState.SINGULAR_STEP
                        logger.warning(
                            f"Levenberg-Marquardt step leaves parameter domain: {candidate}"
                        )
                        raise NumericalDegeneracyError(
                            f"candidate point outside parameter domain: {candidate}",
                            detection_point="domain",
                            point=point,
                            error_context={
                                "state": SolverState.SINGULAR_STEP.value,
                                "damping": damping,
                            },
                        )
                    if step_norm <= step_threshold:
                        return optimum()
                    damping *= cfg.damping_increase
                    logger.debug(
                        f"Step leaves parameter domain, damping increased to {damping:.3e}"
                    )
                    continue

                if evaluations >= cfg.max_evaluations:
                    raise unconverged(
                        SolverState.MAX_EVALUATIONS_EXCEEDED,
                        f"maximal number of evaluations ({cfg.max_evaluations}) exceeded",
                    )

                new_values, new_jacobian = model.value(candidate)
                evaluations += 1
                new_residuals = target - new_values
                new_cost = float(new_residuals @ new_residuals)

                if np.isfinite(new_cost) and new_cost < cost:
                    relative_decrease = (cost - new_cost) / cost
                    point = candidate
                    values = new_values
                    jacobian = new_jacobian
                    residuals = new_residuals
                    cost = new_cost
                    damping = max(damping / cfg.damping_decrease, cfg.min_damping)
                    iterations += 1
                    logger.debug(
                        f"Iteration {iterations}: cost={cost:.6e}, "
                        f"|Δ|={step_norm:.3e}, λ={damping:.3e}"
                    )
                    if (
                        relative_decrease <= cfg.cost_relative_tolerance
                        and step_norm <= step_threshold
                    ):
                        return optimum()
                    break

                # Rejected step: a negligible step cannot lower the cost any further
                if step_norm <= step_threshold:
                    return optimum()
                damping *= cfg.damping_increase
                logger.debug(
                    f"Step rejected (cost {new_cost:.6e} >= {cost:.6e}), "
                    f"damping increased to {damping:.3e}"
                )
