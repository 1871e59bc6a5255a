"""
Prismatic Rule Geometry Fitting
===============================

High level entry point of the numerical core: validate the observed
measurements, build the measurement model, run the Levenberg-Marquardt
solver from an initial guess and estimate the parameters uncertainty.

Quick Start:
    >>> from prisma.core import ObservedMeasurement, Vertex
    >>> from prisma.optimization import fit_geometry
    >>> observed = [ObservedMeasurement(Vertex.A1, 5.0, 0.0, 12.34), ...]
    >>> result = fit_geometry(observed, options={"max_iterations": 200})
    >>> result.point.r, result.point.degrees(), result.rms
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from prisma.core.geometry import Face, ObservedMeasurement, ParameterVector, Residual, Triangle
from prisma.core.models import EvaluationCallback, MeasurementModel
from prisma.optimization.config import LMConfig
from prisma.optimization.covariance import (
    compute_covariance,
    compute_rms,
    sigma_from_covariance,
)
from prisma.optimization.exceptions import InvalidInputError
from prisma.optimization.levenberg_marquardt import LevenbergMarquardtOptimizer
from prisma.optimization.results import FitResult
from prisma.utils.logging import get_logger, log_performance

logger = get_logger(__name__)

#: Minimum number of measurements for three free parameters
MIN_OBSERVATIONS = 3


def validate_observations(observed: Sequence[ObservedMeasurement]) -> None:
    """Check the observations before any solver iteration.

    Raises
    ------
    InvalidInputError
        If there are fewer than 3 measurements or a measurement has a
        negative pin diameter, a negative spacer height or a non-finite value
    """
    if len(observed) < MIN_OBSERVATIONS:
        error = InvalidInputError("not enough measurements")
        error.n_observations = len(observed)
        raise error

    for index, measurement in enumerate(observed):
        if not all(math.isfinite(v) for v in (measurement.d, measurement.h, measurement.m)):
            raise InvalidInputError(
                "non-finite measurement",
                error_context={"index": index, "measurement": measurement},
            )
        if measurement.d < 0:
            raise InvalidInputError(
                "negative pin diameter",
                error_context={"index": index, "d": measurement.d},
            )
        if measurement.h < 0:
            raise InvalidInputError(
                "negative spacer height",
                error_context={"index": index, "h": measurement.h},
            )


def default_initial_guess(observed: Sequence[ObservedMeasurement]) -> ParameterVector:
    """Mean measured value for R, equilateral angles.

    Most prismatic rules are close to equilateral, so π/3 is a good
    starting point for both free angles.
    """
    mean = float(np.mean([o.m for o in observed]))
    return ParameterVector(mean, math.pi / 3, math.pi / 3)


def _resolve_config(
    config: LMConfig | None, options: Mapping[str, Any] | None
) -> LMConfig:
    if config is not None and options is not None:
        raise ValueError("give either a solver configuration or an options mapping, not both")
    if config is not None:
        return config
    return LMConfig.from_dict(dict(options or {}))


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.setflags(write=False)
    return array


@log_performance(threshold=0.5)
def fit_geometry(
    observed: Sequence[ObservedMeasurement],
    options: Mapping[str, Any] | None = None,
    config: LMConfig | None = None,
    callback: EvaluationCallback | None = None,
) -> FitResult:
    """Fit the prismatic rule geometry to observed measurements.

    Parameters
    ----------
    observed : Sequence[ObservedMeasurement]
        Observed measurements (at least 3)
    options : Mapping, optional
        Solver options, see :meth:`LMConfig.from_dict`
    config : LMConfig, optional
        Solver configuration (alternative to ``options``)
    callback : EvaluationCallback, optional
        Observer called once per model evaluation with
        (evaluation index, current point)

    Returns
    -------
    FitResult
        Fitted geometry, RMS and standard deviations

    Raises
    ------
    InvalidInputError
        If the measurements or the initial guess are invalid
    NumericalDegeneracyError
        If the solver meets a singular step or leaves the parameter domain
    NonConvergenceError
        If the solver budget is exhausted
    """
    start_time = time.perf_counter()
    validate_observations(observed)
    lm_config = _resolve_config(config, options)

    start = lm_config.initial_guess or default_initial_guess(observed)
    if not start.in_domain():
        raise InvalidInputError(
            f"initial guess outside parameter domain: {start}",
            error_context={"r": start.r, "alpha1": start.alpha1, "alpha2": start.alpha2},
        )

    logger.info(
        f"Fitting geometry to {len(observed)} measurements from "
        f"R={start.r:.6f}, α1={math.degrees(start.alpha1):.4f}°, "
        f"α2={math.degrees(start.alpha2):.4f}°"
    )

    model = MeasurementModel(observed, callback=callback)
    optimum = LevenbergMarquardtOptimizer(lm_config).optimize(model, start)

    rms = compute_rms(optimum.residuals)
    covariance = compute_covariance(optimum.jacobian, optimum.residuals, lm_config.rcond)
    sigma = sigma_from_covariance(covariance)

    result = FitResult(
        point=optimum.point,
        rms=rms,
        sigma=tuple(float(s) for s in sigma),
        evaluation_count=optimum.evaluations,
        iteration_count=optimum.iterations,
        cost=optimum.cost,
        residuals=_frozen(optimum.residuals),
        theoretical=_frozen(optimum.values),
        covariance=_frozen(covariance),
        computation_time=time.perf_counter() - start_time,
    )

    alpha1_deg, alpha2_deg, alpha3_deg = result.point.degrees()
    logger.info(
        f"Fitted R={result.r:.6f} (±{sigma[0]:.6f}), α1={alpha1_deg:.3f}°, "
        f"α2={alpha2_deg:.3f}°, α3={alpha3_deg:.3f}°, RMS={rms:.6f}"
    )
    return result


def distribute_residuals(
    observed: Sequence[ObservedMeasurement], result: FitResult | ParameterVector
) -> dict[Face, list[Residual]]:
    """Residuals of a fit located along the triangle faces.

    Parameters
    ----------
    observed : Sequence[ObservedMeasurement]
        Observed measurements used for the fit
    result : FitResult or ParameterVector
        Fitted geometry

    Returns
    -------
    dict[Face, list[Residual]]
        Residuals (observed − theoretical) per face, sorted by location
    """
    point = result.point if isinstance(result, FitResult) else result
    return Triangle(point).distribute_residuals(list(observed))
