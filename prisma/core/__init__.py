"""Core geometry model for prismatic rule assessment.

- gradient: forward-mode dual numbers carrying exact first derivatives
- geometry: vertices, faces, measurements, parameter vector, triangle model
- models: vectorized measurement model (values + Jacobian) for the solver
"""

from prisma.core.geometry import (
    N_PARAMETERS,
    Face,
    ObservedMeasurement,
    ParameterVector,
    Residual,
    Triangle,
    Vertex,
)
from prisma.core.gradient import Gradient
from prisma.core.models import EvaluationCallback, MeasurementModel

__all__ = [
    "N_PARAMETERS",
    "EvaluationCallback",
    "Face",
    "Gradient",
    "MeasurementModel",
    "ObservedMeasurement",
    "ParameterVector",
    "Residual",
    "Triangle",
    "Vertex",
]
