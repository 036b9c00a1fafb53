"""
CLI module for ai-dev-team.
"""

import sys
from .parser import setup_parser


def main(argv=None):
    parser = setup_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if hasattr(args, 'func'):
        args.func(args)
    else:
        parser.print_help()
        sys.exit(1)
