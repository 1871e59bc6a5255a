"""Prisma: Prismatic Rule Geometry Assessment
==========================================

Recovers the cross-section geometry of a prismatic rule (circumscribed
circle radius R and angles α1, α2, α3) from measurements taken across
cylindrical pins resting on its faces.

Measurement Model:
    m = 2 R sin(αA + αB) + offset(αA) + offset(αB)

Quick Start:
    >>> from prisma import fit_geometry, read_measurements
    >>> observed = read_measurements("measurements.txt")
    >>> result = fit_geometry(observed)
    >>> print(format_fit_summary(result))
"""

from prisma._version import __version__
from prisma.core import (
    Face,
    ObservedMeasurement,
    ParameterVector,
    Residual,
    Triangle,
    Vertex,
)
from prisma.io import read_measurements, save_fit_json
from prisma.optimization import (
    FitResult,
    InvalidInputError,
    LMConfig,
    NonConvergenceError,
    NumericalDegeneracyError,
    PrismaFitError,
    distribute_residuals,
    fit_geometry,
)
from prisma.results import format_fit_summary, format_residuals

__all__ = [
    "__version__",
    "Face",
    "FitResult",
    "InvalidInputError",
    "LMConfig",
    "NonConvergenceError",
    "NumericalDegeneracyError",
    "ObservedMeasurement",
    "ParameterVector",
    "PrismaFitError",
    "Residual",
    "Triangle",
    "Vertex",
    "distribute_residuals",
    "fit_geometry",
    "format_fit_summary",
    "format_residuals",
    "read_measurements",
    "save_fit_json",
]
