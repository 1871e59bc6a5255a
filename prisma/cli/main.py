"""CLI Entry Point for prisma
==========================

Command-line interface for prismatic rule geometry assessment.

Entry point for console script: prisma [args] measurements.txt
"""

import sys

from prisma.cli.args_parser import create_parser
from prisma.cli.commands import dispatch_command
from prisma.utils.logging import get_logger

logger = get_logger(__name__)


def main(argv=None) -> None:
    """Main CLI entry point.

    Parses command-line arguments, runs the assessment and exits with
    status 0 on success, 1 on failure and 130 when interrupted.
    """
    try:
        parser = create_parser()
        args = parser.parse_args(argv)

        logger.debug(f"Arguments: {vars(args)}")

        result = dispatch_command(args)

        if result and result.get("success", False):
            logger.debug("Assessment completed successfully")
            sys.exit(0)
        else:
            error_msg = (
                result.get("error", "Unknown error") if result else "Command failed"
            )
            logger.debug(f"Assessment failed: {error_msg}")
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Assessment interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
