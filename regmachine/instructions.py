# regmachine/instructions.py
"""
Register machine instruction set.

The five real instructions form a closed variant (:data:`Instruction`);
:class:`Label` and :class:`Trace` are pseudo-tokens that exist only
between the parser and the resolver.

Every node carries its source text and line for diagnostics. Those
fields, together with the attached label and trace flag, are excluded
from equality: two instructions are equal when they do the same thing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

# Raw jump operand: label name or digit string (str), or relative offset (int).
# After linking every jump operand is an absolute index (int).
Target = Union[str, int]


# ── Pseudo-tokens ────────────────────────────────────────────────

@dataclass(frozen=True)
class Label:
    name: str
    text: str = field(default="", compare=False)
    line: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Trace:
    text: str = field(default="trace", compare=False)
    line: int = field(default=0, compare=False)


# ── Instructions ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Init:
    reg: str
    value: int
    text: str = field(default="", compare=False)
    line: int = field(default=0, compare=False)
    trace: bool = field(default=False, compare=False)
    label: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Inc:
    reg: str
    next: Target
    text: str = field(default="", compare=False)
    line: int = field(default=0, compare=False)
    trace: bool = field(default=False, compare=False)
    label: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Dec:
    reg: str
    on_positive: Target
    on_zero: Target
    text: str = field(default="", compare=False)
    line: int = field(default=0, compare=False)
    trace: bool = field(default=False, compare=False)
    label: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Halt:
    reason: str = field(default="Halt", compare=False)
    text: str = field(default="", compare=False)
    line: int = field(default=0, compare=False)
    trace: bool = field(default=False, compare=False)
    label: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Eval:
    description: str
    reg: str
    code: str
    text: str = field(default="", compare=False)
    line: int = field(default=0, compare=False)
    trace: bool = field(default=False, compare=False)
    label: Optional[str] = field(default=None, compare=False)


Instruction = Union[Init, Inc, Dec, Halt, Eval]
Token = Union[Label, Trace, Init, Inc, Dec, Halt, Eval]
Program = Tuple[Instruction, ...]


# ── Consumer helpers ─────────────────────────────────────────────

def jump_targets(instruction: Instruction, index: int) -> Tuple[int, ...]:
    """Indices control may flow to after ``instruction`` at ``index``.

    Only meaningful on linked programs. ``Dec`` yields the positive
    branch first, then the zero branch.
    """
    match instruction:
        case Inc(next=nxt):
            return (nxt,)
        case Dec(on_positive=pos, on_zero=zero):
            return (pos, zero)
        case Halt():
            return ()
        case Init() | Eval():
            return (index + 1,)
    raise TypeError(f"not an instruction: {instruction!r}")


def format_instruction(instruction: Instruction) -> str:
    """Render ``instruction`` in canonical source form.

    Linked jump targets come out as absolute indices, which the parser
    reads back unchanged.
    """
    match instruction:
        case Init(reg=reg, value=value):
            return f"init {reg} {value}"
        case Inc(reg=reg, next=nxt):
            return f"{reg}+ -> {nxt}"
        case Dec(reg=reg, on_positive=pos, on_zero=zero):
            return f"{reg}- -> {pos}, {zero}"
        case Halt(reason=reason):
            return f'halt "{reason}"'
        case Eval(description=desc, reg=reg, code=code):
            return f'eval "{desc}" {reg} ::= {code};'
    raise TypeError(f"not an instruction: {instruction!r}")


def format_program(program: Sequence[Instruction]) -> str:
    """One ``l<i>: <instruction>`` line per instruction."""
    return "".join(
        f"l{index}: {format_instruction(instruction)}\n"
        for index, instruction in enumerate(program)
    )
