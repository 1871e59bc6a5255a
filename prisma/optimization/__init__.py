"""Least squares fitting of the prismatic rule geometry.

- levenberg_marquardt: damped Gauss-Newton solver with adaptive damping
- covariance: RMS and parameter standard deviations at the optimum
- linalg: normal equations solve and pseudo-inverse helpers
- fitting: high level fit_geometry entry point
"""

from prisma.optimization.config import LMConfig
from prisma.optimization.covariance import compute_covariance, compute_rms, compute_sigma
from prisma.optimization.exceptions import (
    InvalidInputError,
    NonConvergenceError,
    NumericalDegeneracyError,
    PrismaFitError,
)
from prisma.optimization.fitting import (
    default_initial_guess,
    distribute_residuals,
    fit_geometry,
    validate_observations,
)
from prisma.optimization.levenberg_marquardt import (
    LevenbergMarquardtOptimizer,
    LMOptimum,
    SolverState,
)
from prisma.optimization.results import FitResult

__all__ = [
    "FitResult",
    "InvalidInputError",
    "LMConfig",
    "LMOptimum",
    "LevenbergMarquardtOptimizer",
    "NonConvergenceError",
    "NumericalDegeneracyError",
    "PrismaFitError",
    "SolverState",
    "compute_covariance",
    "compute_rms",
    "compute_sigma",
    "default_initial_guess",
    "distribute_residuals",
    "fit_geometry",
    "validate_observations",
]
