"""Input/output for prisma: measurement files and fit results."""

from prisma.io.measurements import (
    MeasurementFormatError,
    parse_measurement_line,
    parse_measurements,
    read_measurements,
)
from prisma.io.writers import load_fit_json, save_fit_json

__all__ = [
    "MeasurementFormatError",
    "load_fit_json",
    "parse_measurement_line",
    "parse_measurements",
    "read_measurements",
    "save_fit_json",
]
