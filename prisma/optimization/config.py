"""Levenberg-Marquardt configuration dataclass and validation.

This module provides the LMConfig dataclass for parsing and validating the
solver settings found in the ``optimization.levenberg_marquardt`` section
of the YAML configuration file, or in a plain options mapping.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from prisma.core.geometry import ParameterVector
from prisma.optimization.exceptions import InvalidInputError
from prisma.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LMConfig:
    """Configuration for the Levenberg-Marquardt solver.

    Attributes
    ----------
    max_iterations : int
        Maximum number of accepted steps. Default: 1000.
    max_evaluations : int
        Maximum number of model evaluations (accepted and rejected steps).
        Default: 10000.
    initial_damping : float
        Damping factor λ used for the first step. Default: 1e-3.
    damping_decrease : float
        Divisor applied to λ after an accepted step. Default: 10.
    damping_increase : float
        Multiplier applied to λ after a rejected step. Default: 10.
    min_damping : float
        Lower bound of λ, so that a run of accepted steps cannot drive it
        to zero. Default: 1e-15.
    cost_relative_tolerance : float
        Relative cost decrease below which a step is considered stalled.
        Default: 1e-10.
    point_relative_tolerance : float
        Step norm, relative to the point norm, below which a step is
        considered negligible. Default: 1e-10.
    point_absolute_tolerance : float
        Absolute part of the negligible step threshold. Default: 1e-12.
    cost_absolute_tolerance : float
        Cost (sum of squared residuals) below which the fit is exact.
        Default: 1e-20.
    singularity_threshold : float
        Reciprocal condition number below which the damped normal matrix
        is singular. Default: 1e-14.
    rcond : float
        Relative singular value cutoff for the covariance pseudo-inverse.
        Default: 1e-10.
    reject_out_of_domain : bool
        If True, steps leaving the parameter domain are rejected (λ is
        increased) instead of failing the fit. Default: False.
    initial_guess : ParameterVector | None
        Starting point override; None selects the mean measured value for
        R and π/3 for both angles. Default: None.
    """

    # Budgets
    max_iterations: int = 1000
    max_evaluations: int = 10000

    # Damping schedule
    initial_damping: float = 1e-3
    damping_decrease: float = 10.0
    damping_increase: float = 10.0
    min_damping: float = 1e-15

    # Convergence
    cost_relative_tolerance: float = 1e-10
    point_relative_tolerance: float = 1e-10
    point_absolute_tolerance: float = 1e-12
    cost_absolute_tolerance: float = 1e-20

    # Linear algebra
    singularity_threshold: float = 1e-14
    rcond: float = 1e-10

    # Domain handling
    reject_out_of_domain: bool = False

    initial_guess: ParameterVector | None = None

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any] | None) -> LMConfig:
        """Create LMConfig from an options mapping.

        Parameters
        ----------
        config_dict : dict
            Solver options; missing keys take their defaults. Convergence
            settings may be grouped in a ``tolerances`` sub-mapping and the
            damping schedule in a ``damping`` sub-mapping. The initial guess
            is given as ``{"r": ..., "alpha1_deg": ..., "alpha2_deg": ...}``.

        Returns
        -------
        LMConfig
            Configuration object (validation issues are logged).

        Raises
        ------
        InvalidInputError
            If a value cannot be converted to the expected type
        """
        config_dict = config_dict or {}
        if not isinstance(config_dict, dict):
            raise InvalidInputError(
                f"invalid solver configuration: expected a mapping, got {config_dict!r}"
            )
        tolerances = config_dict.get("tolerances") or {}
        damping = config_dict.get("damping") or {}
        for name, section in (("tolerances", tolerances), ("damping", damping)):
            if not isinstance(section, dict):
                raise InvalidInputError(
                    f"invalid solver configuration: {name} must be a mapping, "
                    f"got {section!r}"
                )

        def pick(section: dict[str, Any], key: str, default: Any) -> Any:
            return section.get(key, config_dict.get(key, default))

        try:
            config = cls(
                max_iterations=int(config_dict.get("max_iterations", 1000)),
                max_evaluations=int(config_dict.get("max_evaluations", 10000)),
                initial_damping=float(pick(damping, "initial_damping", 1e-3)),
                damping_decrease=float(pick(damping, "damping_decrease", 10.0)),
                damping_increase=float(pick(damping, "damping_increase", 10.0)),
                min_damping=float(pick(damping, "min_damping", 1e-15)),
                cost_relative_tolerance=float(
                    pick(tolerances, "cost_relative_tolerance", 1e-10)
                ),
                point_relative_tolerance=float(
                    pick(tolerances, "point_relative_tolerance", 1e-10)
                ),
                point_absolute_tolerance=float(
                    pick(tolerances, "point_absolute_tolerance", 1e-12)
                ),
                cost_absolute_tolerance=float(
                    pick(tolerances, "cost_absolute_tolerance", 1e-20)
                ),
                singularity_threshold=float(
                    config_dict.get("singularity_threshold", 1e-14)
                ),
                rcond=float(config_dict.get("rcond", 1e-10)),
                reject_out_of_domain=bool(
                    config_dict.get("reject_out_of_domain", False)
                ),
                initial_guess=_parse_initial_guess(config_dict.get("initial_guess")),
            )
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"invalid solver configuration: {e}") from e

        errors = config.validate()
        if errors:
            for error in errors:
                logger.warning(f"Levenberg-Marquardt config validation: {error}")

        return config

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns
        -------
        list[str]
            List of validation error messages (empty if valid).
        """
        errors: list[str] = []

        if self.max_iterations <= 0:
            errors.append(
                f"max_iterations must be positive, got: {self.max_iterations}"
            )
        if self.max_evaluations <= 0:
            errors.append(
                f"max_evaluations must be positive, got: {self.max_evaluations}"
            )

        if self.initial_damping <= 0:
            errors.append(
                f"initial_damping must be positive, got: {self.initial_damping}"
            )
        if self.damping_decrease <= 1:
            errors.append(
                f"damping_decrease must be greater than 1, got: {self.damping_decrease}"
            )
        if self.damping_increase <= 1:
            errors.append(
                f"damping_increase must be greater than 1, got: {self.damping_increase}"
            )

        if self.min_damping <= 0:
            errors.append(f"min_damping must be positive, got: {self.min_damping}")

        for name in (
            "cost_relative_tolerance",
            "point_relative_tolerance",
            "singularity_threshold",
            "rcond",
        ):
            value = getattr(self, name)
            if not value > 0:
                errors.append(f"{name} must be positive, got: {value}")
        for name in ("point_absolute_tolerance", "cost_absolute_tolerance"):
            value = getattr(self, name)
            if not value >= 0:
                errors.append(f"{name} must be non-negative, got: {value}")

        if self.initial_guess is not None and not self.initial_guess.in_domain():
            errors.append(
                f"initial_guess outside parameter domain, got: {self.initial_guess}"
            )

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (inverse of :meth:`from_dict`)."""
        result: dict[str, Any] = {
            "max_iterations": self.max_iterations,
            "max_evaluations": self.max_evaluations,
            "damping": {
                "initial_damping": self.initial_damping,
                "damping_decrease": self.damping_decrease,
                "damping_increase": self.damping_increase,
                "min_damping": self.min_damping,
            },
            "tolerances": {
                "cost_relative_tolerance": self.cost_relative_tolerance,
                "point_relative_tolerance": self.point_relative_tolerance,
                "point_absolute_tolerance": self.point_absolute_tolerance,
                "cost_absolute_tolerance": self.cost_absolute_tolerance,
            },
            "singularity_threshold": self.singularity_threshold,
            "rcond": self.rcond,
            "reject_out_of_domain": self.reject_out_of_domain,
        }
        if self.initial_guess is not None:
            result["initial_guess"] = {
                "r": self.initial_guess.r,
                "alpha1_deg": math.degrees(self.initial_guess.alpha1),
                "alpha2_deg": math.degrees(self.initial_guess.alpha2),
            }
        return result


def _parse_initial_guess(value: Any) -> ParameterVector | None:
    """Parse an initial guess given in degrees, or pass a ParameterVector through."""
    if value is None or isinstance(value, ParameterVector):
        return value
    if isinstance(value, dict):
        missing = [key for key in ("r", "alpha1_deg", "alpha2_deg") if key not in value]
        if missing:
            raise InvalidInputError(
                f"invalid solver configuration: initial_guess is missing {', '.join(missing)}"
            )
        value = (value["r"], value["alpha1_deg"], value["alpha2_deg"])
    if isinstance(value, str) or len(value) != 3:
        raise InvalidInputError(
            "invalid solver configuration: initial_guess needs r, alpha1_deg "
            f"and alpha2_deg, got {value!r}"
        )
    r, alpha1_deg, alpha2_deg = value
    return ParameterVector(
        float(r), math.radians(float(alpha1_deg)), math.radians(float(alpha2_deg))
    )
