"""Tests for fit result rendering, JSON export and residual plots."""

import io
import json
import math

import numpy as np
import pytest

from prisma.core.geometry import Face, ParameterVector, Residual, Triangle
from prisma.io.json_utils import json_serializer
from prisma.io.writers import FIT_RESULT_FILE, load_fit_json, save_fit_json
from prisma.optimization.results import FitResult
from prisma.results.formatters import (
    EVALUATION_HEADER,
    EvaluationPrinter,
    format_evaluation_row,
    format_fit_summary,
    format_residuals,
)


@pytest.fixture
def fit_result():
    return FitResult(
        point=ParameterVector(20.008, math.radians(60.002), math.radians(60.069)),
        rms=0.000712,
        sigma=(0.000123, math.radians(0.002), math.radians(0.002)),
        evaluation_count=7,
        iteration_count=5,
        cost=12 * 0.000712**2,
        residuals=np.full(12, 0.000712),
        theoretical=np.linspace(40.0, 60.0, 12),
        covariance=np.diag([0.000123**2, 1e-9, 1e-9]),
    )


@pytest.fixture
def residuals_by_face():
    return {
        Face.A1A2: [Residual(1.0, 0.001), Residual(5.0, -0.002)],
        Face.A2A3: [Residual(2.5, 0.0005)],
        Face.A3A1: [],
    }


class TestFormatters:
    def test_fit_summary(self, fit_result):
        assert format_fit_summary(fit_result) == (
            "R = 20.008000 (±0.000123), α₁ = 60.002 (±0.002), "
            "α₂ = 60.069 (±0.002) ⇒ α₃ ≈ 59.929\n"
            "RMS = 0.000712"
        )

    def test_evaluation_row(self):
        row = format_evaluation_row(3, ParameterVector(20.0, math.pi / 3, math.pi / 4))
        assert row == "     3       20.000  60.0000  45.0000  75.0000"

    def test_evaluation_printer(self):
        stream = io.StringIO()
        printer = EvaluationPrinter(stream)
        printer(1, ParameterVector(20.0, math.pi / 3, math.pi / 3))
        lines = stream.getvalue().splitlines()
        assert lines[0] == EVALUATION_HEADER
        assert lines[1].split() == ["1", "20.000", "60.0000", "60.0000", "60.0000"]
        assert printer.rows == 1

    def test_residuals(self, residuals_by_face):
        text = format_residuals(residuals_by_face)
        blocks = text.split("\n\n")
        assert [b.splitlines()[0] for b in blocks] == [
            "# face A1A2",
            "# face A2A3",
            "# face A3A1",
        ]
        assert blocks[0].splitlines()[2].split() == ["1.000000", "0.001000"]
        assert len(blocks[2].splitlines()) == 2

    def test_residuals_with_face_lengths(self, residuals_by_face):
        triangle = Triangle(ParameterVector(10.0, math.pi / 2, math.pi / 4))
        text = format_residuals(residuals_by_face, triangle)
        assert "# face A2A3 (length 20.000000)" in text


class TestJsonExport:
    def test_serializer(self):
        payload = {"a": np.arange(3), "b": np.float64(1.5), "c": np.int32(2), "f": Face.A1A2}
        assert json.loads(json.dumps(payload, default=json_serializer)) == {
            "a": [0, 1, 2],
            "b": 1.5,
            "c": 2,
            "f": "A1A2",
        }

    def test_save_and_load(self, fit_result, residuals_by_face, temp_dir):
        path = save_fit_json(
            fit_result, temp_dir / "out", residuals_by_face, metadata={"input": "m.txt"}
        )
        assert path == temp_dir / "out" / FIT_RESULT_FILE
        data = load_fit_json(path)

        assert data["converged"] is True
        assert data["parameters"]["r"] == pytest.approx(20.008)
        assert data["parameters"]["alpha1_deg"] == pytest.approx(60.002)
        assert data["parameters"]["alpha3_deg"] == pytest.approx(59.929)
        assert data["sigma"]["r"] == pytest.approx(0.000123)
        assert data["rms"] == pytest.approx(0.000712)
        assert data["evaluation_count"] == 7
        assert len(data["residuals"]) == 12
        assert np.array(data["covariance"]).shape == (3, 3)
        assert data["residuals_by_face"]["A1A2"][1] == {"location": 5.0, "value": -0.002}
        assert data["residuals_by_face"]["A3A1"] == []
        assert data["metadata"] == {"input": "m.txt"}

    def test_write_failure(self, fit_result, temp_dir):
        blocker = temp_dir / "file"
        blocker.write_text("not a directory")
        with pytest.raises(OSError, match="Failed to write fit result"):
            save_fit_json(fit_result, blocker / "sub")


@pytest.mark.visualization
class TestResidualPlots:
    def test_one_image_per_face(self, residuals_by_face, temp_dir):
        from prisma.viz.residual_plots import plot_residuals

        triangle = Triangle(ParameterVector(10.0, math.pi / 3, math.pi / 3))
        paths = plot_residuals(residuals_by_face, temp_dir / "plots", triangle=triangle, dpi=50)
        assert [p.name for p in paths] == [
            "residuals_A1A2.png",
            "residuals_A2A3.png",
            "residuals_A3A1.png",
        ]
        for path in paths:
            assert path.exists() and path.stat().st_size > 0
