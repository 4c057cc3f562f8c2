#!/usr/bin/env python3
"""
Command line entry point for flatvm.

Reads a program file, translates it and runs it, writing program output
to stdout and diagnostics to stderr.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import MachineConfig, max_steps_from_env
from .errors import FlatVMError
from .logging_config import configure_logging
from .machine import Machine
from .reader import read_program
from .translator import translate

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130  # Standard exit code for Ctrl+C

DEFAULT_MAX_STEPS = None  # unlimited unless $FLATVM_MAX_STEPS is set


def format_listing(program) -> str:
    """Render a resolved program as one ``address  line  instruction`` row per slot."""
    rows = []
    for address, instruction in enumerate(program.instructions):
        line_no = program.line_for(address)
        line = f"{line_no:>5}" if line_no is not None else "    -"
        rows.append(f"{address:04d} {line}  {instruction}")
    return "\n".join(rows)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flatvm",
        description="Translate and run a flatvm assembly program",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("path", help="Path to the program source file")
    parser.add_argument(
        "--listing",
        action="store_true",
        help="Print the resolved instruction stream instead of running it",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help="Halt with an error after this many instructions; $FLATVM_MAX_STEPS applies when unset",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Log every executed instruction (implies --verbose)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run the program file.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose or args.trace)

    if args.max_steps is not None and args.max_steps <= 0:
        parser.error("--max-steps must be a positive integer")

    try:
        max_steps = args.max_steps
        if max_steps is None:
            max_steps = max_steps_from_env()

        lines = read_program(args.path)
        program = translate(lines)

        if args.listing:
            print(format_listing(program))
            return EXIT_OK

        config = MachineConfig(max_steps=max_steps, trace=args.trace)
        machine = Machine(program, out=sys.stdout, config=config)
        try:
            machine.run()
        finally:
            sys.stdout.flush()
        return EXIT_OK

    except KeyboardInterrupt:
        logger.info("Execution interrupted by user")
        return EXIT_INTERRUPTED

    except FlatVMError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    except (OSError, ValueError) as e:
        logger.error(f"Error: {str(e)}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
