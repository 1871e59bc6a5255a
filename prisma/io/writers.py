"""Fit result saving functions.

Writes the fitted geometry, its uncertainty and the per-face residuals to
a JSON file that can be reloaded for later comparison of assessments.
"""

import json
from pathlib import Path
from typing import Any

from prisma.core.geometry import Face, Residual
from prisma.io.json_utils import json_serializer
from prisma.optimization.results import FitResult
from prisma.utils.logging import get_logger

logger = get_logger(__name__)

FIT_RESULT_FILE = "fit_result.json"


def residuals_to_dict(
    residuals_by_face: dict[Face, list[Residual]],
) -> dict[str, list[dict[str, float]]]:
    """Convert per-face residuals to plain dictionaries."""
    return {
        face.name: [{"location": r.location, "value": r.value} for r in residuals]
        for face, residuals in residuals_by_face.items()
    }


def save_fit_json(
    result: FitResult,
    output_dir: Path,
    residuals_by_face: dict[Face, list[Residual]] | None = None,
    metadata: dict[str, Any] | None = None,
) -> Path:
    """Save a fit result as JSON.

    Parameters
    ----------
    result : FitResult
        Converged fit result
    output_dir : Path
        Output directory, created if missing
    residuals_by_face : dict, optional
        Residuals located along the faces
    metadata : dict, optional
        Extra information (input file, configuration, ...)

    Returns
    -------
    Path
        Written file

    Raises
    ------
    OSError
        If the file cannot be written
    """
    output_dir = Path(output_dir)
    payload = result.to_dict()
    if residuals_by_face is not None:
        payload["residuals_by_face"] = residuals_to_dict(residuals_by_face)
    if metadata:
        payload["metadata"] = metadata

    path = output_dir / FIT_RESULT_FILE
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=json_serializer)
    except OSError as e:
        raise OSError(f"Failed to write fit result to {path}: {e}") from e

    logger.info(f"Saved fit result to {path} ({path.stat().st_size / 1024:.1f} KB)")
    return path


def load_fit_json(path: Path) -> dict[str, Any]:
    """Load a fit result previously written by :func:`save_fit_json`."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)
