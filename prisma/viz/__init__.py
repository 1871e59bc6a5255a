"""Visualization of prisma fit residuals."""

from prisma.viz.residual_plots import plot_face_residuals, plot_residuals

__all__ = ["plot_face_residuals", "plot_residuals"]
