"""
regmachine/interpreter.py
=========================

Executes a linked program against a register file.

This module provides:

* ``MachineConfig`` – tuning knobs (step budget, trace-everything switch)
* ``RegisterFile``  – register name → non-negative integer, lazily zero
* ``Outcome``       – the two non-error ways a run can end
* ``RunResult``     – final registers plus the outcome of a run
* ``Machine``       – the fetch/execute loop
* ``evaluate``      – one-call convenience wrapper around ``Machine``

A run ends normally when ``halt`` executes, stops early (without error)
when the step budget is used up, and fails with
:class:`~regmachine.errors.RuntimeError` when the program counter leaves
the program. Halting detection is undecidable in general; the budget is
the bounded-time substitute.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from regmachine.errors import ErrorCodes, ExpressionError
from regmachine.errors import RuntimeError as MachineRuntimeError
from regmachine.expression import evaluate_expression
from regmachine.instructions import Dec, Eval, Halt, Inc, Init, Instruction

logger = logging.getLogger(__name__)

TraceSink = Callable[[str], None]

DEFAULT_MAX_STEPS = 1000


# ===================================================================== #
#  Configuration                                                         #
# ===================================================================== #

@dataclass
class MachineConfig:
    """Tuning knobs for a run."""
    max_steps: int = DEFAULT_MAX_STEPS
    trace_all: bool = False

    def validate(self) -> List[str]:
        """Return a list of problems (empty if valid)."""
        problems: List[str] = []
        if self.max_steps <= 0:
            problems.append("max_steps must be positive")
        return problems


# ===================================================================== #
#  Registers and results                                                 #
# ===================================================================== #

class RegisterFile:
    """Register name → value. Reading an unset register yields 0 and
    records it, so every register the program touched shows up in the
    final snapshot."""

    def __init__(self, args: Sequence[int] = ()) -> None:
        self._values: Dict[str, int] = {}
        for i, value in enumerate(args):
            if value < 0:
                raise ValueError(f"register arguments must be non-negative, got r{i} = {value}")
            self._values[f"r{i}"] = value

    def read(self, reg: str) -> int:
        return self._values.setdefault(reg, 0)

    def write(self, reg: str, value: int) -> None:
        self._values[reg] = value

    def snapshot(self) -> Dict[str, int]:
        return dict(self._values)

    def __getitem__(self, reg: str) -> int:
        return self._values.get(reg, 0)

    def __contains__(self, reg: object) -> bool:
        return reg in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RegisterFile({self._values!r})"


class Outcome(enum.Enum):
    HALTED = "halted"
    BUDGET_EXCEEDED = "budget-exceeded"


@dataclass
class RunResult:
    registers: Dict[str, int]
    outcome: Outcome
    steps: int
    pc: int
    reason: Optional[str] = None

    @property
    def halted(self) -> bool:
        return self.outcome is Outcome.HALTED

    def __iter__(self):
        # Unpacks as (registers, outcome).
        return iter((self.registers, self.outcome))


# ===================================================================== #
#  Machine                                                               #
# ===================================================================== #

class Machine:
    """Fetch/execute loop over a linked program.

    A ``Machine`` may be run any number of times; each run gets a fresh
    register file.
    """

    def __init__(
        self,
        program: Sequence[Instruction],
        config: Optional[MachineConfig] = None,
        trace: Optional[TraceSink] = None,
    ) -> None:
        self.program = tuple(program)
        self.config = config or MachineConfig()
        problems = self.config.validate()
        if problems:
            raise ValueError("; ".join(problems))
        self._trace = trace

    def _emit(self, line: str) -> None:
        if self._trace is not None:
            self._trace(line)

    def run(self, args: Sequence[int] = ()) -> RunResult:
        program = self.program
        size = len(program)
        registers = RegisterFile(args)
        max_steps = self.config.max_steps
        trace_all = self.config.trace_all

        if size == 0:
            raise MachineRuntimeError(
                "Cannot run an empty program", code=ErrorCodes.EMPTY_PROGRAM
            )

        logger.debug("running %d instructions with args %s", size, list(args))
        pc = 0
        steps = 0
        while True:
            instruction = program[pc]
            traced = trace_all or instruction.trace
            index = pc

            match instruction:
                case Init(reg=reg, value=value):
                    if traced:
                        self._emit(f"line {instruction.line}: Initialising: {reg} with {value}")
                    registers.write(reg, value)
                    pc += 1
                case Inc(reg=reg, next=nxt):
                    current = registers.read(reg)
                    if traced:
                        self._emit(f"line {instruction.line}: {instruction.text} was {current}")
                    registers.write(reg, current + 1)
                    pc = nxt
                case Dec(reg=reg, on_positive=pos, on_zero=zero):
                    current = registers.read(reg)
                    if traced:
                        self._emit(f"line {instruction.line}: {instruction.text} was {current}")
                    if current > 0:
                        registers.write(reg, current - 1)
                        pc = pos
                    else:
                        pc = zero
                case Halt(reason=reason):
                    if traced:
                        self._emit(f"line {instruction.line}: Halting: {reason}")
                    steps += 1
                    logger.debug("halted after %d steps: %s", steps, reason)
                    return RunResult(
                        registers=registers.snapshot(),
                        outcome=Outcome.HALTED,
                        steps=steps,
                        pc=index,
                        reason=reason,
                    )
                case Eval(description=desc, reg=reg, code=code):
                    if traced:
                        self._emit(f"line {instruction.line}: {reg} ::= {desc}")
                    try:
                        value = evaluate_expression(code, registers.snapshot())
                    except ExpressionError as exc:
                        raise MachineRuntimeError(
                            f"eval {desc!r} failed: {exc.message}",
                            instruction_index=index,
                            line=instruction.line,
                            text=instruction.text,
                            code=ErrorCodes.EVAL_FAILED,
                            cause=exc,
                        ) from exc
                    registers.write(reg, value)
                    pc += 1
                case _:
                    raise TypeError(f"not an instruction: {instruction!r}")

            steps += 1
            if not 0 <= pc < size:
                raise MachineRuntimeError(
                    f"PC out of bounds from instruction line {instruction.line}: "
                    f"{instruction.text or index} (jumped to {pc}, program has {size})",
                    instruction_index=index,
                    line=instruction.line,
                    text=instruction.text,
                )
            if steps >= max_steps:
                logger.warning("Done %d steps, bailing!", steps)
                return RunResult(
                    registers=registers.snapshot(),
                    outcome=Outcome.BUDGET_EXCEEDED,
                    steps=steps,
                    pc=pc,
                )


def evaluate(
    program: Sequence[Instruction],
    args: Sequence[int] = (),
    trace: Optional[TraceSink] = None,
    config: Optional[MachineConfig] = None,
) -> RunResult:
    """Run ``program`` once with ``args`` bound to ``r0, r1, ...``."""
    return Machine(program, config=config, trace=trace).run(args)
