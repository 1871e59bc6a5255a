"""Tests for the prisma command line interface."""

import argparse

import pytest
import yaml

from prisma.cli.args_parser import create_parser, validate_args
from prisma.cli.commands import dispatch_command
from prisma.cli.main import main
from prisma.io.writers import FIT_RESULT_FILE


def run_main(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


class TestArgsParser:
    def test_defaults(self):
        args = create_parser().parse_args(["m.txt"])
        assert str(args.measurements) == "m.txt"
        assert not args.show_evaluations
        assert not args.residuals
        assert not args.plot
        assert args.config is None
        assert args.output_dir is None
        assert args.max_iterations is None

    def test_all_options(self):
        args = create_parser().parse_args(
            [
                "--show-evaluations",
                "--residuals",
                "--plot",
                "--max-iterations",
                "12",
                "--output-dir",
                "out",
                "m.txt",
            ]
        )
        assert args.show_evaluations and args.residuals and args.plot
        assert args.max_iterations == 12

    def test_missing_measurement_file_argument(self, capsys):
        assert run_main([]) == 2
        assert "usage: prisma" in capsys.readouterr().err

    @pytest.mark.parametrize(
        "overrides",
        [
            {"verbose": True, "quiet": True},
            {"max_iterations": 0},
        ],
    )
    def test_validate_args(self, overrides):
        values = {"verbose": False, "quiet": False, "max_iterations": None}
        values.update(overrides)
        assert not validate_args(argparse.Namespace(**values))


class TestMain:
    def test_fit(self, data_dir, capsys):
        assert run_main([str(data_dir / "perfect-measurements.txt")]) == 0
        out = capsys.readouterr().out
        assert out.startswith("R = 60.000000 (±0.000000), α₁ = 45.000 (±0.000)")
        assert "α₂ = 60.000" in out
        assert "⇒ α₃ ≈ 75.000" in out
        assert "RMS = 0.000000" in out

    def test_show_evaluations(self, data_dir, capsys):
        assert run_main(["--show-evaluations", str(data_dir / "noisy-measurements.txt")]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "evaluation     R        α₁       α₂       α₃"
        assert lines[1].split()[0] == "1"
        assert lines[-2].startswith("R = ")

    def test_residuals(self, data_dir, capsys):
        assert run_main(["--residuals", str(data_dir / "noisy-measurements.txt")]) == 0
        out = capsys.readouterr().out
        for face in ("A1A2", "A2A3", "A3A1"):
            assert f"# face {face}" in out

    def test_plot_writes_images_and_json(self, data_dir, temp_dir):
        code = run_main(
            ["--plot", "--output-dir", str(temp_dir), str(data_dir / "noisy-measurements.txt")]
        )
        assert code == 0
        assert (temp_dir / FIT_RESULT_FILE).exists()
        for face in ("A1A2", "A2A3", "A3A1"):
            assert (temp_dir / f"residuals_{face}.png").exists()

    @pytest.mark.parametrize(
        "name",
        ["corrupted-line.txt", "not-enough-measurements.txt", "inexistent.txt"],
    )
    def test_errors_exit_with_status_1(self, data_dir, name, capsys):
        assert run_main([str(data_dir / name)]) == 1
        assert "R = " not in capsys.readouterr().out

    def test_max_iterations_exhausted(self, data_dir):
        path = str(data_dir / "noisy-measurements.txt")
        assert run_main(["--max-iterations", "1", path]) == 1

    def test_config_file(self, data_dir, temp_dir):
        config = temp_dir / "prisma.yaml"
        config.write_text(
            yaml.safe_dump({"optimization": {"levenberg_marquardt": {"max_evaluations": 2}}})
        )
        path = str(data_dir / "noisy-measurements.txt")
        assert run_main(["--config", str(config), path]) == 1

    @pytest.mark.parametrize(
        "solver",
        [
            {"damping": {"damping_increase": 0.5}},
            {"initial_guess": {"r": 20.0, "alpha2_deg": 60.0}},
            {"max_iterations": "many"},
        ],
    )
    def test_malformed_solver_section(self, data_dir, temp_dir, solver, caplog):
        config = temp_dir / "prisma.yaml"
        config.write_text(yaml.safe_dump({"optimization": {"levenberg_marquardt": solver}}))
        path = str(data_dir / "noisy-measurements.txt")

        with caplog.at_level("INFO", logger="prisma"):
            assert run_main(["--config", str(config), path]) == 1

        errors = [r for r in caplog.records if r.levelname == "ERROR"]
        assert len(errors) == 1
        assert "invalid solver configuration" in errors[0].getMessage()

    def test_failed_fit_is_reported_once(self, data_dir, caplog):
        path = str(data_dir / "noisy-measurements.txt")
        with caplog.at_level("DEBUG", logger="prisma"):
            assert run_main(["--max-iterations", "1", path]) == 1
        errors = [r for r in caplog.records if r.levelname == "ERROR"]
        assert [r.getMessage().split(":")[0] for r in errors] == ["Geometry fit failed"]

    def test_missing_config_file(self, data_dir, temp_dir):
        path = str(data_dir / "noisy-measurements.txt")
        assert run_main(["--config", str(temp_dir / "missing.yaml"), path]) == 1

    def test_invalid_arguments(self, data_dir):
        path = str(data_dir / "noisy-measurements.txt")
        assert run_main(["--verbose", "--quiet", path]) == 1

    def test_keyboard_interrupt(self, mocker):
        mocker.patch("prisma.cli.main.dispatch_command", side_effect=KeyboardInterrupt)
        assert run_main(["m.txt"]) == 130

    def test_plot_uses_configured_dpi(self, data_dir, temp_dir, mocker):
        plot = mocker.patch("prisma.viz.residual_plots.plot_residuals")
        path = str(data_dir / "noisy-measurements.txt")
        assert run_main(["--plot", "--output-dir", str(temp_dir), path]) == 0
        plot.assert_called_once()
        assert plot.call_args.kwargs["dpi"] == 150


class TestDispatchCommand:
    def test_success_returns_result(self, data_dir, capsys):
        args = create_parser().parse_args([str(data_dir / "equilateral-measurements.txt")])
        outcome = dispatch_command(args)
        assert outcome["success"] is True
        assert outcome["output_dir"] is None
        for angle in outcome["result"].point.degrees():
            assert angle == pytest.approx(60.0, abs=1e-3)

    def test_failure_returns_error(self, data_dir):
        args = create_parser().parse_args([str(data_dir / "corrupted-line.txt")])
        outcome = dispatch_command(args)
        assert outcome == {
            "success": False,
            "error": "invalid measurement: A3 12.0  4.0",
        }

    def test_not_enough_measurements_message(self, data_dir):
        args = create_parser().parse_args([str(data_dir / "not-enough-measurements.txt")])
        assert dispatch_command(args)["error"] == "not enough measurements"
