"""Fit result container.

FitResult is the only externally visible output of a geometry fit. It is
created once per successful fit and never modified afterwards.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import numpy as np

from prisma.core.geometry import ParameterVector, Triangle


@dataclass(frozen=True, eq=False)
class FitResult:
    """Result of a converged geometry fit.

    Results compare and hash by identity.

    Attributes
    ----------
    point : ParameterVector
        Fitted (R, α1, α2); α3 is derived
    rms : float
        Root mean square of the residuals at the optimum
    sigma : tuple[float, float, float]
        Standard deviations of (R, α1, α2), angles in radians
    evaluation_count : int
        Number of model evaluations performed by the solver
    iteration_count : int
        Number of accepted solver steps
    cost : float
        Sum of squared residuals at the optimum
    residuals : np.ndarray
        Observed minus theoretical measurements, in observation order
    theoretical : np.ndarray
        Theoretical measurements at the optimum, in observation order
    covariance : np.ndarray
        Covariance matrix of (R, α1, α2)
    computation_time : float
        Wall clock time of the fit (seconds)
    """

    point: ParameterVector
    rms: float
    sigma: tuple[float, float, float]
    evaluation_count: int
    iteration_count: int = 0
    cost: float = 0.0
    residuals: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)
    theoretical: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)
    covariance: np.ndarray = field(
        default_factory=lambda: np.zeros((3, 3)), repr=False
    )
    computation_time: float = 0.0
    timestamp: str = field(
        default_factory=lambda: datetime.now().isoformat(), repr=False
    )

    converged = True

    @property
    def triangle(self) -> Triangle:
        """Read-only view of the fitted triangle (R, α1, α2, α3)."""
        return Triangle(self.point)

    @property
    def r(self) -> float:
        return self.point.r

    @property
    def alpha1(self) -> float:
        return self.point.alpha1

    @property
    def alpha2(self) -> float:
        return self.point.alpha2

    @property
    def alpha3(self) -> float:
        return self.point.alpha3

    @property
    def n_observations(self) -> int:
        return int(self.residuals.size)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        alpha1_deg, alpha2_deg, alpha3_deg = self.point.degrees()
        return {
            "converged": self.converged,
            "parameters": {
                "r": self.r,
                "alpha1": self.alpha1,
                "alpha2": self.alpha2,
                "alpha3": self.alpha3,
                "alpha1_deg": alpha1_deg,
                "alpha2_deg": alpha2_deg,
                "alpha3_deg": alpha3_deg,
            },
            "sigma": {
                "r": self.sigma[0],
                "alpha1": self.sigma[1],
                "alpha2": self.sigma[2],
                "alpha1_deg": math.degrees(self.sigma[1]),
                "alpha2_deg": math.degrees(self.sigma[2]),
            },
            "rms": self.rms,
            "cost": self.cost,
            "evaluation_count": self.evaluation_count,
            "iteration_count": self.iteration_count,
            "n_observations": self.n_observations,
            "residuals": self.residuals.tolist(),
            "theoretical": self.theoretical.tolist(),
            "covariance": np.asarray(self.covariance).tolist(),
            "computation_time": self.computation_time,
            "timestamp": self.timestamp,
        }
