"""
Test Data Factories for Prisma
==============================

Synthetic measurement sets generated from a known geometry, with optional
noise, for parameter recovery tests.
"""

from tests.factories.synthetic_data import (
    DEFAULT_PIN_SETUPS,
    SyntheticMeasurements,
    generate_measurements,
    write_measurement_file,
)

__all__ = [
    "DEFAULT_PIN_SETUPS",
    "SyntheticMeasurements",
    "generate_measurements",
    "write_measurement_file",
]
