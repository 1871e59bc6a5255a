"""Tests for the fit_geometry entry point."""

import math

import numpy as np
import pytest

from prisma.core.geometry import Face, ObservedMeasurement, ParameterVector, Vertex
from prisma.optimization.config import LMConfig
from prisma.optimization.exceptions import (
    InvalidInputError,
    NonConvergenceError,
    PrismaFitError,
)
from prisma.optimization.fitting import (
    default_initial_guess,
    distribute_residuals,
    fit_geometry,
    validate_observations,
)
from prisma.optimization.results import FitResult


def pin_offset(alpha, d, h):
    return (d * (1 + math.sin(alpha)) - (d + 2 * h) * math.cos(alpha)) / (
        2 * math.sin(alpha)
    )


class TestValidation:
    def test_not_enough_measurements(self, three_pin_measurements):
        calls = []
        with pytest.raises(InvalidInputError) as excinfo:
            fit_geometry(three_pin_measurements[:2], callback=lambda i, p: calls.append(i))
        assert str(excinfo.value) == "not enough measurements"
        assert excinfo.value.n_observations == 2
        assert calls == []

    def test_empty_observations(self):
        with pytest.raises(InvalidInputError, match="not enough measurements"):
            validate_observations([])

    @pytest.mark.parametrize(
        "bad, message",
        [
            (ObservedMeasurement(Vertex.A1, -1.0, 0.0, 10.0), "negative pin diameter"),
            (ObservedMeasurement(Vertex.A1, 5.0, -0.5, 10.0), "negative spacer height"),
            (ObservedMeasurement(Vertex.A1, 5.0, 0.0, float("nan")), "non-finite"),
        ],
    )
    def test_invalid_measurement(self, three_pin_measurements, bad, message):
        with pytest.raises(InvalidInputError, match=message) as excinfo:
            fit_geometry(three_pin_measurements + [bad])
        assert excinfo.value.error_context["index"] == 3

    def test_invalid_initial_guess(self, three_pin_measurements):
        config = LMConfig(initial_guess=ParameterVector(5.0, 2.0, 2.0))
        with pytest.raises(InvalidInputError, match="initial guess"):
            fit_geometry(three_pin_measurements, config=config)

    def test_options_and_config_are_exclusive(self, three_pin_measurements):
        with pytest.raises(ValueError):
            fit_geometry(three_pin_measurements, options={}, config=LMConfig())

    def test_errors_share_a_base_class(self, three_pin_measurements):
        with pytest.raises(PrismaFitError):
            fit_geometry(three_pin_measurements[:1])


class TestInitialGuess:
    def test_mean_measurement_and_sixty_degrees(self, three_pin_measurements):
        guess = default_initial_guess(three_pin_measurements)
        assert guess.r == pytest.approx(12.34)
        assert guess.alpha1 == pytest.approx(math.pi / 3)
        assert guess.alpha2 == pytest.approx(math.pi / 3)


class TestFitGeometry:
    def test_three_equal_measurements(self, three_pin_measurements):
        """Equal measurements on each vertex give an equilateral rule."""
        result = fit_geometry(three_pin_measurements)
        expected_r = (12.340 - 2 * pin_offset(math.pi / 3, 5.0, 0.0)) / math.sqrt(3)

        assert isinstance(result, FitResult)
        assert result.converged
        assert result.r == pytest.approx(expected_r, abs=1e-3)
        for angle in result.point.degrees():
            assert angle == pytest.approx(60.0, abs=1e-3)

    def test_equilateral_recovery(self, equilateral_measurements):
        result = fit_geometry(equilateral_measurements.observed)
        truth = equilateral_measurements.ground_truth
        assert result.r == pytest.approx(truth.r, abs=1e-6)
        assert result.alpha1 == pytest.approx(truth.alpha1, abs=1e-6)
        assert result.alpha2 == pytest.approx(truth.alpha2, abs=1e-6)
        assert result.alpha3 == pytest.approx(truth.alpha3, abs=1e-6)
        assert result.rms < 1e-8

    def test_noisy_recovery(self, noisy_measurements):
        result = fit_geometry(noisy_measurements.observed)
        truth = noisy_measurements.ground_truth
        assert result.r == pytest.approx(truth.r, abs=2e-2)
        assert math.degrees(result.alpha1) == pytest.approx(60.01, abs=5e-2)
        assert math.degrees(result.alpha2) == pytest.approx(60.06, abs=5e-2)
        assert 0 < result.rms < 0.01
        assert all(s > 0 for s in result.sigma)

    def test_result_content(self, noisy_measurements):
        result = fit_geometry(noisy_measurements.observed)
        n = len(noisy_measurements.observed)
        assert result.n_observations == n
        assert result.evaluation_count >= result.iteration_count
        assert result.covariance.shape == (3, 3)
        np.testing.assert_allclose(
            result.residuals,
            [o.m for o in noisy_measurements.observed] - result.theoretical,
        )
        assert result.rms == pytest.approx(np.sqrt(np.mean(result.residuals**2)))
        np.testing.assert_allclose(result.sigma, np.sqrt(np.diag(result.covariance)))

    def test_result_is_immutable(self, three_pin_measurements):
        result = fit_geometry(three_pin_measurements)
        with pytest.raises(AttributeError):
            result.rms = 0.0
        with pytest.raises(ValueError):
            result.residuals[0] = 1.0

    def test_results_compare_by_identity(self, three_pin_measurements):
        first = fit_geometry(three_pin_measurements)
        second = fit_geometry(three_pin_measurements)
        assert first == first
        assert first != second
        assert len({first, second, first}) == 2

    def test_idempotence(self, noisy_measurements):
        first = fit_geometry(noisy_measurements.observed)
        second = fit_geometry(noisy_measurements.observed)
        assert first.point == second.point
        assert first.rms == second.rms
        assert first.sigma == second.sigma
        assert first.evaluation_count == second.evaluation_count

    def test_permutation_invariance(self, noisy_measurements):
        observed = noisy_measurements.observed
        shuffled = [observed[i] for i in np.random.default_rng(3).permutation(len(observed))]
        first = fit_geometry(observed)
        second = fit_geometry(shuffled)
        np.testing.assert_allclose(first.point, second.point, atol=1e-7)
        assert first.rms == pytest.approx(second.rms, rel=1e-7)

    def test_callback_called_per_evaluation(self, noisy_measurements):
        indices = []
        result = fit_geometry(
            noisy_measurements.observed, callback=lambda i, p: indices.append(i)
        )
        assert indices == list(range(1, result.evaluation_count + 1))

    def test_options_mapping(self, noisy_measurements):
        with pytest.raises(NonConvergenceError):
            fit_geometry(noisy_measurements.observed, options={"max_iterations": 1})

    def test_initial_guess_option(self, equilateral_measurements):
        result = fit_geometry(
            equilateral_measurements.observed,
            options={"initial_guess": {"r": 21.0, "alpha1_deg": 59.0, "alpha2_deg": 61.0}},
        )
        assert result.r == pytest.approx(20.0, abs=1e-6)


class TestDistributeResiduals:
    def test_from_fit_result(self, noisy_measurements):
        result = fit_geometry(noisy_measurements.observed)
        faces = distribute_residuals(noisy_measurements.observed, result)
        assert set(faces) == set(Face)
        assert sum(len(r) for r in faces.values()) == 2 * len(noisy_measurements.observed)

        values = sorted(r.value for residuals in faces.values() for r in residuals)
        expected = sorted(np.repeat(result.residuals, 2))
        np.testing.assert_allclose(values, expected, atol=1e-12)

    def test_from_parameter_vector(self, scalene_point, three_pin_measurements):
        faces = distribute_residuals(three_pin_measurements, scalene_point)
        assert sum(len(r) for r in faces.values()) == 6
