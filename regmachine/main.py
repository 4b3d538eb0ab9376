#!/usr/bin/env python3
"""regmachine/main.py — CLI entry-point for the register machine toolchain.

Usage examples
--------------
    # Run a program with r0 = 3, r1 = 4, printing traced instructions
    regmachine run add.rm 3 4

    # Trace every instruction and allow a longer run
    regmachine run loop.rm --trace-all --max-steps 5000

    # Show the linked program with resolved jump targets
    regmachine link add.rm

    # Gödel number of a program, with the derivation
    regmachine encode add.rm --explain

    # Program listing for a number
    regmachine decode 11
    regmachine decode 5 --start-exponent 2

    # Read the program from stdin
    echo 'r0+ -> 0' | regmachine run -

Exit codes
----------
    0   Success (program halted, or listing/number produced).
    1   Parse, link, runtime or codec error.
    2   Infrastructure failure (unreadable file, bad arguments).
    3   Step budget exhausted before the program halted.

The module doubles as ``python -m regmachine`` via the companion
``regmachine/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from regmachine import __version__, compile_source
from regmachine.codec import decode, encode
from regmachine.errors import RegMachineError
from regmachine.instructions import format_instruction, format_program, jump_targets
from regmachine.interpreter import MachineConfig, Outcome, evaluate

_log = logging.getLogger("regmachine")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2
EXIT_BUDGET: int = 3


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``regmachine`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("regmachine")
    root.setLevel(level)
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)


def _read_source(raw: str) -> str:
    """Program text from path *raw*, or stdin for ``-``."""
    if raw == "-":
        return sys.stdin.read()
    p = Path(raw).expanduser()
    try:
        return p.read_text(encoding="utf-8")
    except OSError as exc:
        _log.error("cannot read %s: %s", p, exc)
        raise SystemExit(EXIT_INFRA)


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _natural(text: str) -> int:
    """argparse type: a non-negative integer of any size."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {value}")
    return value


def _writer(stream: TextIO):
    def write(line: str) -> None:
        stream.write(line.rstrip("\n") + "\n")
    return write


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_run(args: argparse.Namespace) -> int:
    """Run a program and print the final register values."""
    source = _read_source(args.program)
    program = compile_source(source, args.program)
    config = MachineConfig(max_steps=args.max_steps, trace_all=args.trace_all)

    _log.info("running %s with args %s", args.program, args.args)
    result = evaluate(program, args.args, trace=_writer(sys.stdout), config=config)

    out = _open_output(args.output)
    try:
        out.write("Register values on completion:\n")
        for reg, value in sorted(result.registers.items()):
            out.write(f"{reg}: {value}\n")
    finally:
        if out is not sys.stdout:
            out.close()

    if result.outcome is Outcome.BUDGET_EXCEEDED:
        sys.stderr.write(
            f"stopped after {result.steps} steps without halting "
            f"(raise --max-steps to run longer)\n"
        )
        return EXIT_BUDGET
    _log.info("halted after %d steps: %s", result.steps, result.reason)
    return EXIT_OK


def cmd_link(args: argparse.Namespace) -> int:
    """Print the linked program, one instruction per line."""
    program = compile_source(_read_source(args.program), args.program)
    out = _open_output(args.output)
    try:
        for index, instruction in enumerate(program):
            label = f"{instruction.label}:" if instruction.label else ""
            targets = ", ".join(str(t) for t in jump_targets(instruction, index))
            out.write(
                f"{index:>4}  {label:<10} {format_instruction(instruction):<32}"
                f"  [{targets}]  (line {instruction.line})\n"
            )
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


def cmd_encode(args: argparse.Namespace) -> int:
    """Print the Gödel number of a program."""
    program = compile_source(_read_source(args.program), args.program)
    out = _open_output(args.output)
    try:
        if args.explain:
            encode(program, trace=_writer(out))
        else:
            out.write(f"{encode(program)}\n")
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


def cmd_decode(args: argparse.Namespace) -> int:
    """Print the program numbered NUMBER."""
    out = _open_output(args.output)
    try:
        trace = _writer(out) if args.explain else None
        program = decode(args.number, args.start_exponent, trace=trace)
        if not args.explain:
            out.write(format_program(program))
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regmachine",
        description="Parse, run and number register machine programs.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_program_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "program",
            metavar="FILE",
            help='Program source file ("-" for stdin).',
        )

    def _add_output_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    # --- run ---------------------------------------------------------------
    p_run = subparsers.add_parser(
        "run",
        help="Run a program.",
        description=(
            "Parse, link and execute a program. Positional ARGS seed "
            "r0, r1, ... before execution."
        ),
    )
    _add_program_arg(p_run)
    p_run.add_argument(
        "args",
        nargs="*",
        type=_natural,
        metavar="ARGS",
        help="Initial values of r0, r1, ...",
    )
    g = p_run.add_argument_group("runtime tuning")
    g.add_argument(
        "--max-steps",
        type=int,
        default=MachineConfig.max_steps,
        metavar="N",
        help="Step budget (default: %(default)s).",
    )
    g.add_argument(
        "--trace-all",
        action="store_true",
        help="Trace every instruction, not just those marked with 'trace'.",
    )
    _add_output_arg(p_run)
    p_run.set_defaults(func=cmd_run)

    # --- link --------------------------------------------------------------
    p_link = subparsers.add_parser(
        "link",
        help="Show the linked program.",
        description="Print each instruction with its resolved jump targets.",
    )
    _add_program_arg(p_link)
    _add_output_arg(p_link)
    p_link.set_defaults(func=cmd_link)

    # --- encode ------------------------------------------------------------
    p_encode = subparsers.add_parser(
        "encode",
        help="Print a program's Gödel number.",
        description=(
            "Number a program built from halt, increment and decrement "
            "instructions over registers r0, r1, ..."
        ),
    )
    _add_program_arg(p_encode)
    p_encode.add_argument(
        "--explain",
        action="store_true",
        help="Show the pairing derivation.",
    )
    _add_output_arg(p_encode)
    p_encode.set_defaults(func=cmd_encode)

    # --- decode ------------------------------------------------------------
    p_decode = subparsers.add_parser(
        "decode",
        help="Print the program with a given number.",
        description="Decode a natural number into a program listing.",
    )
    p_decode.add_argument(
        "number",
        type=_natural,
        metavar="NUMBER",
        help="Program number.",
    )
    p_decode.add_argument(
        "-s", "--start-exponent",
        type=_natural,
        default=0,
        metavar="N",
        help="Exponent added to the first list element (default: 0).",
    )
    p_decode.add_argument(
        "--explain",
        action="store_true",
        help="Show the decoding derivation.",
    )
    _add_output_arg(p_decode)
    p_decode.set_defaults(func=cmd_decode)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the regmachine CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    # Program numbers routinely run past the default 4300-digit limit on
    # int <-> str conversion (Python 3.11+).
    if hasattr(sys, "set_int_max_str_digits"):
        sys.set_int_max_str_digits(0)

    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except RegMachineError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_ERROR
    except ValueError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
