"""Argument Parser for the prisma CLI
===================================

Command line options of the prismatic rule geometry assessment.
"""

import argparse
from pathlib import Path

from prisma._version import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the prisma CLI.

    Returns:
        Configured ArgumentParser
    """
    epilog_text = f"""
Examples:
  %(prog)s measurements.txt                       # Fit and print the geometry
  %(prog)s --show-evaluations measurements.txt    # Print every model evaluation
  %(prog)s --residuals measurements.txt           # Print residuals along each face
  %(prog)s --plot --output-dir ./results m.txt    # Residual plots and JSON result
  %(prog)s --config prisma_config.yaml m.txt      # Custom solver configuration

Measurement file:
  One measurement per line: VERTEX D H M
    A1  20.0  3.2  47.553
  VERTEX is the top vertex (A1, A2 or A3), D the pin diameter,
  H the spacer block height and M the measured value.
  Blank lines and lines starting with '#' are ignored.

Measurement model:
  m = 2 R sin(αA + αB) + offset(αA) + offset(αB)
  offset(α) = [d (1 + sin α) − (d + 2h) cos α] / (2 sin α)

prisma v{__version__}
        """

    parser = argparse.ArgumentParser(
        prog="prisma",
        description="Prismatic rule geometry assessment from pin measurements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog_text,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"prisma v{__version__}",
    )

    parser.add_argument(
        "measurements",
        type=Path,
        help="Measurement file (one 'VERTEX D H M' measurement per line)",
    )

    # Outputs
    parser.add_argument(
        "--show-evaluations",
        action="store_true",
        help="Print R and the angles at each model evaluation",
    )

    parser.add_argument(
        "--residuals",
        action="store_true",
        help="Print the residuals located along each face",
    )

    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save one residual plot per face and the JSON result in the output directory",
    )

    # Configuration and I/O
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (YAML or JSON)",
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for plots and JSON result (default: from config, ./prisma_results)",
    )

    solver_group = parser.add_argument_group("Solver Options")
    solver_group.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Maximum Levenberg-Marquardt iterations (default: from config, 1000)",
    )

    # Logging
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only log warnings and errors",
    )

    return parser


def validate_args(args) -> bool:
    """Validate parsed command-line arguments.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments

    Returns
    -------
    bool
        True if arguments are valid, False otherwise
    """
    if args.verbose and args.quiet:
        print("Error: Cannot specify both --verbose and --quiet")
        return False

    if args.max_iterations is not None and args.max_iterations <= 0:
        print("Error: Maximum iterations must be positive")
        return False

    return True
