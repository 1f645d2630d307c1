"""conscheck CLI: enumerate a litmus program's outcomes under IBM370 and TSO.

Usage::

    conscheck program.txt
    conscheck --witnesses < program.txt
    conscheck --max-threads 3 program.txt

The report goes to stdout.  Diagnostics go to stderr, prefixed with
``conscheck:``.
"""

from __future__ import annotations

import argparse
import os
import sys

from conscheck.common import Bounds, ProgramError
from conscheck.loader import load_program, parse_program
from conscheck.report import format_report
from conscheck.search import compare_models

# Environment variables overriding the default bounds
MAX_THREADS_ENV = "CONSCHECK_MAX_THREADS"
MAX_INSTRUCTIONS_ENV = "CONSCHECK_MAX_INSTRUCTIONS"


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"conscheck: warning: ignoring non-integer {name}={value!r}", file=sys.stderr)
        return default


def _build_parser() -> argparse.ArgumentParser:
    defaults = Bounds()
    parser = argparse.ArgumentParser(
        prog="conscheck",
        description="Enumerate every outcome of a load/store program under the IBM370 "
        "(store-atomic) and TSO (write-atomic) consistency models.",
    )
    parser.add_argument(
        "program",
        nargs="?",
        default="-",
        help="Program file ('-' or omitted reads stdin).",
    )
    parser.add_argument(
        "--witnesses",
        action="store_true",
        help="Print an interleaving that produces each outcome.",
    )
    parser.add_argument(
        "--read-around-pending-stores",
        action="store_true",
        help="TSO: also let a load that runs ahead of its own buffered store read shared memory.",
    )
    parser.add_argument(
        "--max-threads",
        type=int,
        default=_env_int(MAX_THREADS_ENV, defaults.max_threads),
        help=f"Largest accepted thread count (env {MAX_THREADS_ENV}, default %(default)s).",
    )
    parser.add_argument(
        "--max-instructions",
        type=int,
        default=_env_int(MAX_INSTRUCTIONS_ENV, defaults.max_instructions),
        help=f"Largest accepted instructions per thread (env {MAX_INSTRUCTIONS_ENV}, default %(default)s).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print exploration statistics to stderr.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``conscheck`` CLI command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        bounds = Bounds(max_threads=args.max_threads, max_instructions=args.max_instructions)
    except ValueError as exc:
        print(f"conscheck: error: {exc}", file=sys.stderr)
        return 2

    source = "<stdin>" if args.program == "-" else args.program
    if args.verbose:
        print(f"conscheck: reading {source}", file=sys.stderr)

    try:
        if args.program == "-":
            program = parse_program(sys.stdin.read(), bounds)
        else:
            program = load_program(args.program, bounds)
    except OSError as exc:
        print(f"conscheck: cannot read {source}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as exc:
        print(f"conscheck: cannot read {source}: not UTF-8 text ({exc.reason} at byte {exc.start})", file=sys.stderr)
        return 1
    except ProgramError as exc:
        print(f"conscheck: error: {source}: {exc}", file=sys.stderr)
        return 2

    comparison = compare_models(
        program,
        bounds=bounds,
        read_around_pending_stores=args.read_around_pending_stores,
    )

    if args.verbose:
        for result in (comparison.store_atomic, comparison.write_atomic):
            print(
                f"conscheck: {result.model.title}: {result.executions_explored} executions, "
                f"{len(result.solutions)} distinct outcomes",
                file=sys.stderr,
            )
        print(f"conscheck: {len(comparison.violations)} store-atomicity violations", file=sys.stderr)

    sys.stdout.write(format_report(comparison, show_witnesses=args.witnesses))
    return 0


if __name__ == "__main__":
    sys.exit(main())
