# tests/conftest.py
"""
Shared program sources and fixtures for the regmachine test suite.
"""

import sys
from pathlib import Path
from typing import List

import pytest

from regmachine import compile_source

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


# ═══════════════════════════════════════════════════════════════════════
#  PROGRAM SOURCES
# ═══════════════════════════════════════════════════════════════════════

# r0 := r0 + r1
ADD_RM = '''\
loop: r1- -> move, done
move: r0+ -> loop
done: halt "r0 holds the sum"
'''

# Counts r0 down from 3; the decrement and the halt are traced.
COUNTDOWN_RM = '''\
init r0 3
trace
loop: r0- -> loop, done
trace
done: halt "Reached zero"
'''

# Two instructions whose number has about 27,000 decimal digits.
HUGE_CODE_RM = '''\
r6- -> 1, 1
halt
'''

# Jumps to a label declared after the jump.
FORWARD_RM = '''\
r0+ -> skip
r1+
skip: halt
'''

# Jumps to a label declared before the jump.
BACKWARD_RM = '''\
start: halt
r0+ -> start
'''

INFINITE_RM = "L: R0+ -> L"

# r0 = 0 takes the zero branch, anything else the positive branch.
BRANCH_RM = '''\
r0- -> positive, zero
zero: halt "zero"
positive: halt "positive"
'''

EVAL_RM = '''\
init r0 6
init r1 7
trace
eval "product" r2 ::= r0 * r1;
halt
'''

DEC_FORMS_RM = '''\
r0- -> a, b
r0- -> , b
r0- -> a,
r0- -> a
r0-
a: halt
b: halt
'''


# ═══════════════════════════════════════════════════════════════════════
#  FIXTURES
# ═══════════════════════════════════════════════════════════════════════

@pytest.fixture
def trace_lines() -> List[str]:
    """A list that doubles as a trace sink via ``trace_lines.append``."""
    return []


@pytest.fixture
def add_program():
    return compile_source(ADD_RM)


@pytest.fixture
def countdown_program():
    return compile_source(COUNTDOWN_RM)


@pytest.fixture
def example_path():
    def _path(name: str) -> Path:
        return EXAMPLES_DIR / name
    return _path


@pytest.fixture
def int_digit_limit():
    """Enforce the interpreter's default limit on int <-> str conversion."""
    if not hasattr(sys, "set_int_max_str_digits"):
        pytest.skip("no int <-> str digit limit on this Python")
    previous = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(4300)
    yield 4300
    sys.set_int_max_str_digits(previous)


@pytest.fixture
def unlimited_int_digits():
    """Lift the int <-> str digit limit for the duration of a test."""
    if not hasattr(sys, "set_int_max_str_digits"):
        yield
        return
    previous = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(0)
    yield
    sys.set_int_max_str_digits(previous)
