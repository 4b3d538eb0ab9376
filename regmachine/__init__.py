"""regmachine — a toolchain for Minsky-style register machines.

This package parses a small textual notation for register machine
programs, links labels and relative jumps into absolute indices, runs
the result, and maps programs to natural numbers and back (a Gödel
numbering).

Submodules
----------
grammar
    Parsimonious PEG grammars for programs and ``eval`` expressions.
parser
    Source text → raw tokens (``parse``).
resolver
    Raw tokens → linked program (``resolve``).
interpreter
    ``Machine``, ``MachineConfig`` and ``evaluate``.
expression
    Arithmetic evaluator used by the ``eval`` instruction.
codec
    ``encode`` / ``decode`` and the pairing primitives.
errors
    ``ParseError``, ``LinkError``, ``RuntimeError``, codec errors.
main
    CLI entry-point: ``run``, ``link``, ``encode``, ``decode``.

Usage
-----
Command-line::

    regmachine run countdown.rm 3
    regmachine encode add.rm --explain
    regmachine decode 11

Programmatic::

    from regmachine import compile_source, evaluate, encode

    program = compile_source("init r0 3\\nloop: r0- -> loop, done\\ndone: halt")
    result = evaluate(program)
    result.registers["r0"]      # 0
"""

from __future__ import annotations

from typing import List

from regmachine.codec import decode, encode
from regmachine.errors import (
    CodecError,
    DecodeError,
    EncodeError,
    LinkError,
    ParseError,
    RegMachineError,
)
from regmachine.instructions import (
    Dec,
    Eval,
    Halt,
    Inc,
    Init,
    Instruction,
    Program,
    format_program,
    jump_targets,
)
from regmachine.interpreter import Machine, MachineConfig, Outcome, RunResult, evaluate
from regmachine.parser import parse
from regmachine.resolver import resolve

__version__: str = "0.1.0"


def compile_source(source: str, filename: str = "") -> Program:
    """``resolve(parse(source))``."""
    return resolve(parse(source, filename))


__all__: List[str] = [
    "__version__",
    "compile_source",
    "parse",
    "resolve",
    "evaluate",
    "encode",
    "decode",
    "format_program",
    "jump_targets",
    "Machine",
    "MachineConfig",
    "Outcome",
    "RunResult",
    "Init",
    "Inc",
    "Dec",
    "Halt",
    "Eval",
    "Instruction",
    "Program",
    "RegMachineError",
    "ParseError",
    "LinkError",
    "CodecError",
    "EncodeError",
    "DecodeError",
]
