"""Measurement file reader.

A measurement file holds one measurement per line, as four whitespace
separated fields::

    # top  d     h    m
    A1     20.0  3.2  47.553
    A2     12.0  0.0  44.912

the top vertex name, the cylindrical pin diameter, the spacer block height
and the measured value. Blank lines and lines starting with ``#`` are
ignored.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from prisma.core.geometry import ObservedMeasurement, Vertex
from prisma.utils.logging import get_logger

logger = get_logger(__name__)

N_FIELDS = 4


class MeasurementFormatError(ValueError):
    """Raised for a measurement line that cannot be parsed."""

    def __init__(self, line: str, line_number: int | None = None):
        super().__init__(f"invalid measurement: {line}")
        self.line = line
        self.line_number = line_number


def parse_measurement_line(line: str, line_number: int | None = None) -> ObservedMeasurement:
    """Parse one measurement line.

    Parameters
    ----------
    line : str
        Line content, without end of line
    line_number : int, optional
        1-based line number, for error reporting

    Returns
    -------
    ObservedMeasurement
        Parsed measurement

    Raises
    ------
    MeasurementFormatError
        If the line does not hold exactly 4 fields, the vertex is unknown
        or a numeric field cannot be parsed
    """
    fields = line.split()
    if len(fields) != N_FIELDS:
        raise MeasurementFormatError(line, line_number)
    try:
        return ObservedMeasurement(
            Vertex.parse(fields[0]),
            float(fields[1]),
            float(fields[2]),
            float(fields[3]),
        )
    except ValueError as e:
        raise MeasurementFormatError(line, line_number) from e


def parse_measurements(lines: Iterable[str]) -> list[ObservedMeasurement]:
    """Parse measurement lines, skipping blank lines and comments."""
    observed = []
    for line_number, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        observed.append(parse_measurement_line(line, line_number))
    return observed


def read_measurements(path: str | Path) -> list[ObservedMeasurement]:
    """Read a measurement file.

    Parameters
    ----------
    path : str or Path
        Measurement file

    Returns
    -------
    list[ObservedMeasurement]
        Measurements, in file order

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    MeasurementFormatError
        If a line cannot be parsed
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        observed = parse_measurements(f)
    logger.info(f"Read {len(observed)} measurements from {path}")
    return observed
