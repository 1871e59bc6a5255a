"""Command-line interface for prisma."""

from prisma.cli.args_parser import create_parser, validate_args
from prisma.cli.commands import dispatch_command
from prisma.cli.main import main

__all__ = ["create_parser", "dispatch_command", "main", "validate_args"]
