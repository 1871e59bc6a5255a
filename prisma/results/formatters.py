"""
Text Formatting of Fit Results
==============================

Human readable rendering of a geometry fit:

- fit summary (R, angles, standard deviations and RMS)
- evaluation table, printed while the solver runs
- residuals located along each face
"""

from __future__ import annotations

import math
import sys
from typing import TextIO

from prisma.core.geometry import Face, ParameterVector, Residual, Triangle
from prisma.optimization.results import FitResult
from prisma.utils.logging import get_logger

logger = get_logger(__name__)

EVALUATION_HEADER = "evaluation     R        α₁       α₂       α₃"
EVALUATION_ROW = "    {index:2d}      {r:7.3f}  {a1:6.4f}  {a2:6.4f}  {a3:6.4f}"


def format_fit_summary(result: FitResult) -> str:
    """Format the fitted geometry.

    Angles and their standard deviations are displayed in degrees.

    Examples
    --------
    ::

        R = 20.008000 (±0.000123), α₁ = 60.002 (±0.002), α₂ = 60.069 (±0.002) ⇒ α₃ ≈ 59.930
        RMS = 0.000712
    """
    alpha1_deg, alpha2_deg, alpha3_deg = result.point.degrees()
    sigma_r, sigma_alpha1, sigma_alpha2 = result.sigma
    return (
        f"R = {result.r:.6f} (±{sigma_r:.6f}), "
        f"α₁ = {alpha1_deg:.3f} (±{math.degrees(sigma_alpha1):.3f}), "
        f"α₂ = {alpha2_deg:.3f} (±{math.degrees(sigma_alpha2):.3f}) "
        f"⇒ α₃ ≈ {alpha3_deg:.3f}\n"
        f"RMS = {result.rms:.6f}"
    )


def format_evaluation_row(index: int, point: ParameterVector) -> str:
    """Format one row of the evaluation table (angles in degrees)."""
    alpha1_deg, alpha2_deg, alpha3_deg = point.degrees()
    return EVALUATION_ROW.format(
        index=index, r=point.r, a1=alpha1_deg, a2=alpha2_deg, a3=alpha3_deg
    )


class EvaluationPrinter:
    """Evaluation observer printing the evaluation table.

    The header is written when the printer is created, then one row per
    model evaluation.

    Parameters
    ----------
    stream : TextIO, optional
        Output stream (default: standard output)
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream if stream is not None else sys.stdout
        self.rows = 0
        print(EVALUATION_HEADER, file=self.stream)

    def __call__(self, index: int, point: ParameterVector) -> None:
        self.rows += 1
        print(format_evaluation_row(index, point), file=self.stream)


def format_face_residuals(
    face: Face, residuals: list[Residual], triangle: Triangle | None = None
) -> str:
    """Format the residuals of one face as a two columns table."""
    header = f"# face {face.name}"
    if triangle is not None:
        header += f" (length {triangle.side_length(face):.6f})"
    lines = [header, "#   location      residual"]
    lines.extend(f"{r.location:12.6f}  {r.value:12.6f}" for r in residuals)
    return "\n".join(lines)


def format_residuals(
    residuals_by_face: dict[Face, list[Residual]], triangle: Triangle | None = None
) -> str:
    """Format the residuals of all faces, in face order, blank line separated."""
    blocks = [
        format_face_residuals(face, residuals_by_face.get(face, []), triangle)
        for face in Face
    ]
    return "\n\n".join(blocks)
