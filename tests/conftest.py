"""
Pytest Configuration and Fixtures for Prisma
============================================

Shared fixtures, configuration, and test utilities for the entire test suite.
"""

import math
import tempfile
from pathlib import Path

import pytest

from prisma.core.geometry import ObservedMeasurement, ParameterVector, Vertex
from tests.factories.synthetic_data import generate_measurements

DATA_DIR = Path(__file__).parent / "data"


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for workflows")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests (> 5 seconds)")
    config.addinivalue_line(
        "markers", "visualization: Plotting and visualization tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "property" in path:
            item.add_marker(pytest.mark.property)


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="session")
def data_dir():
    """Directory holding the measurement files used by the tests."""
    return DATA_DIR


@pytest.fixture
def equilateral_point():
    """R = 20, all angles 60°."""
    return ParameterVector(20.0, math.pi / 3, math.pi / 3)


@pytest.fixture
def scalene_point():
    """R = 60, angles 45°, 60°, 75°."""
    return ParameterVector(60.0, math.radians(45.0), math.radians(60.0))


@pytest.fixture
def equilateral_measurements():
    """Noiseless measurements of an equilateral rule (R = 20)."""
    return generate_measurements(r=20.0, alpha1_deg=60.0, alpha2_deg=60.0)


@pytest.fixture
def noisy_measurements():
    """Slightly noisy measurements of a nearly equilateral rule."""
    return generate_measurements(
        r=20.03, alpha1_deg=60.01, alpha2_deg=60.06, noise_level=0.002
    )


@pytest.fixture
def three_pin_measurements():
    """One 12.340 measurement per top vertex, 5 mm pins without spacer."""
    return [
        ObservedMeasurement(Vertex.A1, 5.0, 0.0, 12.340),
        ObservedMeasurement(Vertex.A2, 5.0, 0.0, 12.340),
        ObservedMeasurement(Vertex.A3, 5.0, 0.0, 12.340),
    ]
