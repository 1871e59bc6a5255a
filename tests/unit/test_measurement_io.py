"""Tests for the measurement file reader."""

import pytest

from prisma.core.geometry import ObservedMeasurement, Vertex
from prisma.io.measurements import (
    MeasurementFormatError,
    parse_measurement_line,
    parse_measurements,
    read_measurements,
)


class TestParseLine:
    def test_valid_line(self):
        assert parse_measurement_line("A1 20.0 3.2 47.553") == ObservedMeasurement(
            Vertex.A1, 20.0, 3.2, 47.553
        )

    def test_tabs_and_repeated_spaces(self):
        observed = parse_measurement_line("A3\t12.0   0.0\t 44.912")
        assert observed.top is Vertex.A3
        assert observed.m == 44.912

    @pytest.mark.parametrize(
        "line",
        [
            "A3 12.0  4.0",
            "A3 12.0 4.0 44.0 1.0",
            "A4 12.0 4.0 44.0",
            "A3 twelve 4.0 44.0",
        ],
    )
    def test_invalid_line(self, line):
        with pytest.raises(MeasurementFormatError) as excinfo:
            parse_measurement_line(line, line_number=3)
        assert str(excinfo.value) == f"invalid measurement: {line}"
        assert excinfo.value.line_number == 3

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_measurement_line("garbage")


class TestParseMeasurements:
    def test_skips_blank_lines_and_comments(self):
        lines = ["# top d h m\n", "\n", "A1 20.0 3.2 47.553\n", "   \n", "A2 12.0 0.0 44.912\r\n"]
        observed = parse_measurements(lines)
        assert [o.top for o in observed] == [Vertex.A1, Vertex.A2]

    def test_error_reports_line_number(self):
        with pytest.raises(MeasurementFormatError) as excinfo:
            parse_measurements(["# header\n", "A1 20.0 3.2 47.553\n", "A2 1.0\n"])
        assert excinfo.value.line_number == 3
        assert excinfo.value.line == "A2 1.0"


class TestReadMeasurements:
    def test_corrupted_line(self, data_dir):
        with pytest.raises(MeasurementFormatError, match="^invalid measurement: A3 12.0  4.0$"):
            read_measurements(data_dir / "corrupted-line.txt")

    def test_missing_file(self, data_dir):
        with pytest.raises(FileNotFoundError):
            read_measurements(data_dir / "inexistent.txt")

    def test_sample_file(self, data_dir):
        observed = read_measurements(data_dir / "perfect-measurements.txt")
        assert len(observed) == 12
        assert {o.top for o in observed} == set(Vertex)
        assert observed[0] == ObservedMeasurement(Vertex.A1, 8.0, 0.0, 98.231522771)

    def test_not_enough_measurements_file_parses(self, data_dir):
        assert len(read_measurements(data_dir / "not-enough-measurements.txt")) == 2
