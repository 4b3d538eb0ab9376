"""
regmachine/codec.py
===================

Gödel numbering of register machine programs.

Two pairing functions, both bijections on the naturals, are the only
primitives::

    <<x, y>> = 2**x * (2*y + 1)        naturals² → positive naturals
     <x, y>  = <<x, y>> - 1            naturals² → naturals

Instructions over registers ``r0, r1, ...`` are numbered as::

    halt                    0
    rk+ -> n                <<2k, n>>
    rk- -> j, k'            <<2k + 1, <j, k'>>>

and a program ``[h, *t]`` as ``<<h, code(t)>>`` with ``code([]) = 0``.
``init``, ``eval``, labels and trace markers are link-time constructs and
have no number.

Python integers are unbounded, so every program has an exact code no
matter how large it gets.

The optional ``trace`` sink of :func:`encode` and :func:`decode`
receives the derivation one line at a time.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Callable, List, Optional, Sequence, Tuple

from regmachine.errors import DecodeError, EncodeError
from regmachine.instructions import (
    Dec,
    Halt,
    Inc,
    Instruction,
    Program,
    format_instruction,
)

logger = logging.getLogger(__name__)

TraceSink = Callable[[str], None]

_REGISTER_RE = re.compile(r"r(\d+)")


# ===================================================================== #
#  Pairing primitives                                                    #
# ===================================================================== #

def big_pair(x: int, y: int) -> int:
    """``<<x, y>> = 2**x * (2*y + 1)``."""
    if x < 0 or y < 0:
        raise ValueError(f"pairing is defined on naturals, got ({x}, {y})")
    return (2 * y + 1) << x


def small_pair(x: int, y: int) -> int:
    """``<x, y> = <<x, y>> - 1``."""
    return big_pair(x, y) - 1


def decode_big_pair(n: int) -> Tuple[int, int]:
    """Inverse of :func:`big_pair`: the 2-adic valuation of ``n`` and the
    predecessor half of its odd cofactor."""
    if n < 1:
        raise DecodeError("<<x, y>> is always positive, cannot decode a number below 1")
    x = (n & -n).bit_length() - 1
    odd = n >> x
    return x, (odd - 1) // 2


def decode_small_pair(n: int) -> Tuple[int, int]:
    """Inverse of :func:`small_pair`."""
    if n < 0:
        raise DecodeError("<x, y> is a natural number, cannot decode a negative number")
    return decode_big_pair(n + 1)


# ===================================================================== #
#  Lists                                                                 #
# ===================================================================== #

def encode_list(values: Sequence[int]) -> int:
    """``code([]) = 0``, ``code([h, *t]) = <<h, code(t)>>``."""
    code = 0
    for value in reversed(values):
        code = big_pair(value, code)
    return code


def decode_list(n: int, start_exponent: int = 0) -> List[int]:
    """Inverse of :func:`encode_list`.

    Reading ``n`` from its least significant bit, each run of 0-bits
    ended by a 1-bit is one element. ``start_exponent`` is added to the
    first element, for numbers that were divided by ``2**start_exponent``
    before being handed over. ``0`` is the empty list.
    """
    if n < 0:
        raise DecodeError("cannot decode a negative number")
    if start_exponent < 0:
        raise DecodeError(f"start exponent must be a natural number, got {start_exponent}")
    values: List[int] = []
    while n:
        zeros = (n & -n).bit_length() - 1
        values.append(zeros)
        n >>= zeros + 1
    if values:
        values[0] += start_exponent
    return values


# ===================================================================== #
#  Instructions                                                          #
# ===================================================================== #

def register_index(reg: str) -> int:
    """``"r7"`` → ``7``; other register names have no number."""
    match = _REGISTER_RE.fullmatch(reg)
    if match is None:
        raise EncodeError(f"register {reg!r} is not of the form r<k>")
    try:
        return int(match.group(1))
    except ValueError as exc:
        raise EncodeError(f"register index of {reg[:20]}... is too long to number") from exc


def _target(value: object, line: int) -> int:
    if not isinstance(value, int) or value < 0:
        raise EncodeError(f"jump target {value!r} is not an absolute index", line=line)
    return value


# Trace lines are built only when a sink is given; the decimal text of a
# large code can exceed sys.get_int_max_str_digits().

def encode_instruction(instruction: Instruction, trace: Optional[TraceSink] = None) -> int:
    """Number of a single linked instruction."""
    match instruction:
        case Halt():
            return 0
        case Inc(reg=reg, next=nxt, line=line):
            x, y = 2 * register_index(reg), _target(nxt, line)
            if trace is not None:
                trace(f"<< {x} , {y} >> = 2^{x}*(2*{y} + 1)")
            return big_pair(x, y)
        case Dec(reg=reg, on_positive=pos, on_zero=zero, line=line):
            j, k = _target(pos, line), _target(zero, line)
            rhs = small_pair(j, k)
            x = 2 * register_index(reg) + 1
            if trace is not None:
                trace(f"< {j} , {k} > = 2^{j}*(2*{k} + 1) - 1")
                trace(f"<< {x} , {rhs} >> = 2^{x}*(2*{rhs} + 1)")
            return big_pair(x, rhs)
    kind = type(instruction).__name__.lower()
    raise EncodeError(
        f"{kind} instructions have no number", line=getattr(instruction, "line", 0)
    )


def decode_instruction(n: int, trace: Optional[TraceSink] = None) -> Instruction:
    """Inverse of :func:`encode_instruction`."""
    if n < 0:
        raise DecodeError("cannot decode a negative number")
    if n == 0:
        instruction: Instruction = Halt()
    else:
        y, z = decode_big_pair(n)
        if trace is not None:
            trace(f"{n} = 2^{y}*{2 * z + 1} = << {y} , {z} >>")
        if y % 2 == 0:
            if trace is not None:
                trace("first element is even therefore plus instruction")
            instruction = Inc(reg=f"r{y // 2}", next=z)
        else:
            j, k = decode_small_pair(z)
            if trace is not None:
                trace("first element is odd therefore minus instruction")
                trace(f"{z} = < {j} , {k} >")
            instruction = Dec(reg=f"r{(y - 1) // 2}", on_positive=j, on_zero=k)
    return dataclasses.replace(instruction, text=format_instruction(instruction))


# ===================================================================== #
#  Programs                                                              #
# ===================================================================== #

def encode(program: Sequence[Instruction], trace: Optional[TraceSink] = None) -> int:
    """Gödel number of a linked program.

    Raises :class:`~regmachine.errors.EncodeError` for programs using
    ``init``/``eval`` or registers not named ``r<k>``.
    """
    codes = []
    for instruction in program:
        if trace is not None:
            trace(instruction.text or format_instruction(instruction))
        code = encode_instruction(instruction, trace)
        if trace is not None:
            trace(f"={code}")
        codes.append(code)
    number = encode_list(codes)
    if trace is not None:
        trace(f"Encoded program: {number}")
    logger.debug("encoded %d instructions as a %d-bit number", len(codes), number.bit_length())
    return number


def decode(n: int, start_exponent: int = 0, trace: Optional[TraceSink] = None) -> Program:
    """Program numbered ``n``; instruction ``i`` is labelled ``l<i>``."""
    if n < 0:
        raise DecodeError("cannot decode a negative number")
    codes = decode_list(n, start_exponent)
    if trace is not None:
        trace(f"{n} = {n:b}")
        trace(f"2^{start_exponent} * {n} = [{','.join(map(str, codes))}]")
    program = []
    for index, code in enumerate(codes):
        instruction = dataclasses.replace(decode_instruction(code, trace), label=f"l{index}")
        if trace is not None:
            trace(f"L{index}: {instruction.text}")
        program.append(instruction)
    logger.debug("decoded %d instructions", len(program))
    return tuple(program)
