"""Least squares model for a set of observed measurements.

:class:`MeasurementModel` vectorizes :meth:`Triangle.theoretical_measurement`
over an observation list: for a candidate parameter vector it returns the
theoretical measurements and the Jacobian matrix the solver needs.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np

from prisma.core.geometry import (
    N_PARAMETERS,
    ObservedMeasurement,
    ParameterVector,
    Triangle,
)
from prisma.utils.logging import get_logger

logger = get_logger(__name__)

#: Observer called once per evaluation with (evaluation index, point)
EvaluationCallback = Callable[[int, ParameterVector], None]


class MeasurementModel:
    """Theoretical measurements and Jacobian for an observation list.

    Parameters
    ----------
    observed : Sequence[ObservedMeasurement]
        Observed measurements, never modified
    callback : EvaluationCallback, optional
        Observer notified of each evaluation (progress display)
    """

    def __init__(
        self,
        observed: Sequence[ObservedMeasurement],
        callback: EvaluationCallback | None = None,
    ):
        self._observed = tuple(observed)
        self._callback = callback
        self._evaluations = 0
        self._target = np.array([o.m for o in self._observed], dtype=float)

    @property
    def observed(self) -> tuple[ObservedMeasurement, ...]:
        return self._observed

    @property
    def target(self) -> np.ndarray:
        """Observed values, in observation order."""
        return self._target.copy()

    @property
    def evaluations(self) -> int:
        return self._evaluations

    def __len__(self) -> int:
        return len(self._observed)

    def value(self, point: ParameterVector) -> tuple[np.ndarray, np.ndarray]:
        """Evaluate theoretical measurements and Jacobian.

        Parameters
        ----------
        point : ParameterVector
            Current estimate (R, α1, α2)

        Returns
        -------
        values : np.ndarray
            Theoretical measurements, shape (n,)
        jacobian : np.ndarray
            Partial derivatives with respect to (R, α1, α2), shape (n, 3)
        """
        self._evaluations += 1
        if self._callback is not None:
            self._callback(self._evaluations, point)

        triangle = Triangle(point)

        n = len(self._observed)
        values = np.empty(n)
        jacobian = np.empty((n, N_PARAMETERS))
        for i, observed in enumerate(self._observed):
            theoretical = triangle.theoretical_measurement(observed)
            values[i] = theoretical.value
            jacobian[i] = theoretical.gradient

        logger.debug(
            f"Evaluation {self._evaluations}: R={point.r:.6f}, "
            f"α1={point.alpha1:.8f}, α2={point.alpha2:.8f}"
        )
        return values, jacobian

    def residuals(self, point: ParameterVector) -> np.ndarray:
        """Observed minus theoretical measurements (does not count as evaluation)."""
        triangle = Triangle(point)
        return self._target - np.array(
            [triangle.theoretical_measurement(o).value for o in self._observed]
        )
