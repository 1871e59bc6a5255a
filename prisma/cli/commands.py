"""Command Handler for the prisma CLI
===================================

Runs a geometry assessment from parsed command line arguments: load the
configuration, read the measurements, fit, then print, plot and save.
"""

from pathlib import Path
from typing import Any

from prisma.cli.args_parser import validate_args
from prisma.config.manager import ConfigManager
from prisma.io.measurements import MeasurementFormatError, read_measurements
from prisma.io.writers import save_fit_json
from prisma.optimization.exceptions import PrismaFitError
from prisma.optimization.fitting import distribute_residuals, fit_geometry
from prisma.results.formatters import (
    EvaluationPrinter,
    format_fit_summary,
    format_residuals,
)
from prisma.utils.logging import configure_logging, get_logger, log_operation

logger = get_logger(__name__)


def dispatch_command(args) -> dict[str, Any]:
    """Run the assessment described by command line arguments.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments

    Returns
    -------
    dict
        ``{"success": True, "result": FitResult, ...}`` or
        ``{"success": False, "error": message}``
    """
    if not validate_args(args):
        return {"success": False, "error": "Invalid command-line arguments"}

    try:
        config = _load_configuration(args)
        _apply_cli_overrides(config, args)
        _configure_logging_level(args, config)

        observed = read_measurements(args.measurements)

        callback = EvaluationPrinter() if args.show_evaluations else None
        result = fit_geometry(
            observed, options=config.get_solver_options(), callback=callback
        )
        print(format_fit_summary(result))

        residuals_by_face = None
        if args.residuals or args.plot:
            residuals_by_face = distribute_residuals(observed, result)
        if args.residuals:
            print()
            print(format_residuals(residuals_by_face, result.triangle))

        output_dir = None
        if args.plot or args.output_dir is not None:
            output_dir = config.get_output_dir()
            _save_results(args, config, result, residuals_by_face, output_dir)
        if args.plot:
            _handle_plotting(config, result, residuals_by_face, output_dir)

        return {"success": True, "result": result, "output_dir": output_dir}

    except FileNotFoundError as e:
        logger.error(f"Measurement file not found: {e}")
        return {"success": False, "error": str(e)}
    except MeasurementFormatError as e:
        logger.error(str(e))
        return {"success": False, "error": str(e)}
    except PrismaFitError as e:
        logger.error(f"Geometry fit failed: {e}")
        return {"success": False, "error": str(e)}
    except OSError as e:
        logger.error(f"Failed to write results: {e}")
        return {"success": False, "error": str(e)}


def _load_configuration(args) -> ConfigManager:
    """Load the configuration file, or the defaults when none is given."""
    if args.config is None:
        logger.debug("No configuration file given, using defaults")
        return ConfigManager()
    if not Path(args.config).exists():
        raise FileNotFoundError(f"Configuration file not found: {args.config}")
    return ConfigManager(str(args.config))


def _apply_cli_overrides(config: ConfigManager, args) -> None:
    """Override configuration values with command line options."""
    if args.max_iterations is not None:
        config.update_config(
            "optimization.levenberg_marquardt.max_iterations", args.max_iterations
        )
        logger.debug(f"Overriding max_iterations: {args.max_iterations}")
    if args.output_dir is not None:
        config.update_config("output.output_dir", str(args.output_dir))
        logger.debug(f"Overriding output_dir: {args.output_dir}")


def _configure_logging_level(args, config: ConfigManager) -> None:
    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("WARNING")
    else:
        configure_logging(config.get_config().get("logging", {}).get("level", "INFO"))


def _save_results(args, config, result, residuals_by_face, output_dir: Path) -> None:
    if not config.get_config().get("output", {}).get("save_json", True):
        logger.debug("JSON output disabled in configuration")
        return
    metadata = {
        "measurements_file": str(args.measurements),
        "config_file": str(args.config) if args.config is not None else None,
        "solver": config.get_solver_options(),
    }
    save_fit_json(result, output_dir, residuals_by_face, metadata)


def _handle_plotting(config, result, residuals_by_face, output_dir: Path) -> None:
    from prisma.viz.residual_plots import plot_residuals

    plotting = config.get_plotting_options()
    with log_operation("residual plotting", logger):
        plot_residuals(
            residuals_by_face,
            output_dir,
            triangle=result.triangle,
            dpi=int(plotting.get("dpi", 150)),
            image_format=str(plotting.get("format", "png")),
        )
