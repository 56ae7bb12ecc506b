"""CLI package for sshperms.

Key modules:
- argument_parser: argparse-based parser with one subcommand per operation
- main: Entry point for the ``sshperms`` console script
"""

from .argument_parser import create_parser, parse_args

__all__ = [
    "parse_args",
    "create_parser"
]
