"""Residual plotting functions for prisma.

One figure per triangle face, showing the fit residuals against the pin
contact location along the face.
"""

from pathlib import Path

import matplotlib
import numpy as np

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from prisma.core.geometry import Face, Residual, Triangle  # noqa: E402
from prisma.utils.logging import get_logger  # noqa: E402

logger = get_logger(__name__)


def plot_face_residuals(
    face: Face,
    residuals: list[Residual],
    plots_dir: Path,
    triangle: Triangle | None = None,
    dpi: int = 150,
    image_format: str = "png",
) -> Path:
    """Plot the residuals of one face.

    Parameters
    ----------
    face : Face
        Plotted face
    residuals : list[Residual]
        Residuals along the face, sorted by location
    plots_dir : Path
        Output directory
    triangle : Triangle, optional
        Fitted triangle, used to draw the face extent
    dpi : int
        Image resolution
    image_format : str
        Image format understood by matplotlib

    Returns
    -------
    Path
        Written image file
    """
    plots_dir = Path(plots_dir)
    plots_dir.mkdir(parents=True, exist_ok=True)

    locations = np.array([r.location for r in residuals], dtype=float)
    values = np.array([r.value for r in residuals], dtype=float)

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.axhline(0.0, color="gray", linewidth=0.8)
    if locations.size:
        ax.plot(locations, values, "o-", color="C0", markersize=5)
    if triangle is not None:
        length = triangle.side_length(face)
        ax.axvline(0.0, color="k", linestyle="--", linewidth=0.8)
        ax.axvline(length, color="k", linestyle="--", linewidth=0.8)
        ax.set_xlim(-0.05 * length, 1.05 * length)

    ax.set_xlabel(f"location from {face.first.name}")
    ax.set_ylabel("residual (observed − theoretical)")
    ax.set_title(f"Residuals on face {face.name}")
    ax.grid(True, alpha=0.3)

    path = plots_dir / f"residuals_{face.name}.{image_format}"
    plt.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.debug(f"Saved residual plot for face {face.name} to {path}")
    return path


def plot_residuals(
    residuals_by_face: dict[Face, list[Residual]],
    plots_dir: Path,
    triangle: Triangle | None = None,
    dpi: int = 150,
    image_format: str = "png",
) -> list[Path]:
    """Plot the residuals of every face, one image per face."""
    paths = [
        plot_face_residuals(
            face,
            residuals_by_face.get(face, []),
            plots_dir,
            triangle=triangle,
            dpi=dpi,
            image_format=image_format,
        )
        for face in Face
    ]
    logger.info(f"Saved {len(paths)} residual plots to {plots_dir}")
    return paths
