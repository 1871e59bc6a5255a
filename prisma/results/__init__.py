"""
Results rendering for prisma
============================

- formatters.py: fit summary, evaluation table and per-face residuals
"""

from prisma.results.formatters import (
    EVALUATION_HEADER,
    EvaluationPrinter,
    format_evaluation_row,
    format_face_residuals,
    format_fit_summary,
    format_residuals,
)

__all__ = [
    "EVALUATION_HEADER",
    "EvaluationPrinter",
    "format_evaluation_row",
    "format_face_residuals",
    "format_fit_summary",
    "format_residuals",
]
