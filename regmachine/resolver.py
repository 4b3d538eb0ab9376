"""
regmachine/resolver.py
======================

Linker: turns the parser's raw token sequence into an executable
:data:`~regmachine.instructions.Program`.

Two passes are needed because labels may be referenced before they are
declared:

1. strip ``Label``/``Trace`` pseudo-tokens, record each label against
   the index of the next real instruction, and stamp that instruction
   with the pending label name and trace flag;
2. rewrite every jump operand to an absolute index.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from regmachine.errors import ErrorCodes, LinkError
from regmachine.instructions import Dec, Inc, Instruction, Label, Program, Target, Token, Trace

logger = logging.getLogger(__name__)


def _collect(tokens: Iterable[Token]) -> Tuple[List[Instruction], Dict[str, int]]:
    """Pass 1: strip pseudo-tokens and build the label table."""
    instructions: List[Instruction] = []
    labels: Dict[str, int] = {}
    pending_label: Optional[str] = None
    pending_trace = False
    for token in tokens:
        match token:
            case Label(name=name):
                labels[name] = len(instructions)
                pending_label = name
            case Trace():
                pending_trace = True
            case _:
                instructions.append(
                    dataclasses.replace(token, label=pending_label, trace=pending_trace)
                )
                pending_label = None
                pending_trace = False
    return instructions, labels


def _fixup(target: Target, index: int, labels: Dict[str, int], size: int, line: int) -> int:
    """Resolve one raw jump operand of the instruction at ``index``."""
    if isinstance(target, int):
        return index + target
    if target.isdecimal():
        try:
            return int(target)
        except ValueError:
            raise LinkError(target, line=line, code=ErrorCodes.TARGET_TOO_LARGE) from None
    if target not in labels:
        raise LinkError(target, line=line)
    resolved = labels[target]
    if resolved >= size:
        raise LinkError(target, line=line, code=ErrorCodes.DANGLING_LABEL)
    return resolved


def resolve(tokens: Iterable[Token]) -> Program:
    """Link ``tokens`` into a program whose jumps are absolute indices."""
    instructions, labels = _collect(tokens)
    size = len(instructions)
    logger.debug("label table: %s", labels)

    linked: List[Instruction] = []
    for index, instruction in enumerate(instructions):
        match instruction:
            case Inc(next=nxt, line=line):
                instruction = dataclasses.replace(
                    instruction, next=_fixup(nxt, index, labels, size, line)
                )
            case Dec(on_positive=pos, on_zero=zero, line=line):
                instruction = dataclasses.replace(
                    instruction,
                    on_positive=_fixup(pos, index, labels, size, line),
                    on_zero=_fixup(zero, index, labels, size, line),
                )
        linked.append(instruction)

    logger.debug("linked %d instructions", size)
    return tuple(linked)
