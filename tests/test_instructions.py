# tests/test_instructions.py
"""
Tests for instruction values and the listing helpers.
"""

import dataclasses

import pytest

from regmachine import compile_source
from regmachine.codec import decode
from regmachine.instructions import (
    Dec,
    Eval,
    Halt,
    Inc,
    Init,
    Label,
    format_instruction,
    format_program,
    jump_targets,
)
from tests.conftest import ADD_RM, BRANCH_RM, DEC_FORMS_RM, EVAL_RM


class TestEquality:
    """Instructions compare by behaviour, not by source metadata."""

    def test_metadata_is_ignored(self):
        a = Inc(reg="r0", next=1, text="R0+", line=3, trace=True, label="x")
        b = Inc(reg="r0", next=1)
        assert a == b

    def test_halt_reason_is_ignored(self):
        assert Halt(reason="one") == Halt(reason="two")

    def test_operands_matter(self):
        assert Inc(reg="r0", next=1) != Inc(reg="r0", next=2)
        assert Inc(reg="r0", next=1) != Inc(reg="r1", next=1)

    def test_kinds_differ(self):
        assert Halt() != Init(reg="r0", value=0)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Halt().reason = "changed"


class TestJumpTargets:
    """Control-flow successors of each instruction kind."""

    def test_each_kind(self):
        assert jump_targets(Inc(reg="r0", next=4), 0) == (4,)
        assert jump_targets(Dec(reg="r0", on_positive=1, on_zero=7), 0) == (1, 7)
        assert jump_targets(Halt(), 3) == ()
        assert jump_targets(Init(reg="r0", value=2), 2) == (3,)
        assert jump_targets(Eval(description="d", reg="r0", code="1"), 5) == (6,)

    def test_not_an_instruction(self):
        with pytest.raises(TypeError):
            jump_targets(Label(name="x"), 0)

    def test_add_program_graph(self, add_program):
        edges = {i: jump_targets(instr, i) for i, instr in enumerate(add_program)}
        assert edges == {0: (1, 2), 1: (0,), 2: ()}


class TestFormatInstruction:
    """Canonical source text of single instructions."""

    @pytest.mark.parametrize("instruction, text", [
        (Init(reg="r0", value=5), "init r0 5"),
        (Inc(reg="r0", next=3), "r0+ -> 3"),
        (Dec(reg="r1", on_positive=0, on_zero=4), "r1- -> 0, 4"),
        (Halt(), 'halt "Halt"'),
        (Halt(reason="done"), 'halt "done"'),
        (Eval(description="d", reg="r2", code="r0 + r1"), 'eval "d" r2 ::= r0 + r1;'),
    ])
    def test_canonical_text(self, instruction, text):
        assert format_instruction(instruction) == text

    def test_not_an_instruction(self):
        with pytest.raises(TypeError):
            format_instruction(Label(name="x"))


class TestFormatProgram:
    """Program listings and their reparse."""

    def test_listing(self, add_program):
        assert format_program(add_program) == (
            "l0: r1- -> 1, 2\n"
            "l1: r0+ -> 0\n"
            'l2: halt "r0 holds the sum"\n'
        )

    def test_empty(self):
        assert format_program(()) == ""

    @pytest.mark.parametrize("source", [ADD_RM, BRANCH_RM, DEC_FORMS_RM, EVAL_RM])
    def test_listing_reparses_to_same_program(self, source):
        program = compile_source(source)
        assert compile_source(format_program(program)) == program

    def test_decoded_listing_reparses(self):
        program = decode(2 ** 40 * 1234567 + 2 ** 39)
        assert compile_source(format_program(program)) == program

    def test_halt_reason_survives(self):
        program = compile_source(format_program(compile_source(BRANCH_RM)))
        assert [i.reason for i in program if isinstance(i, Halt)] == ["zero", "positive"]
