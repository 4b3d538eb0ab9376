# tests/test_grammar.py
"""
Tests that the program and expression PEG grammars are well-formed and
accept or reject constructs at the grammar level (before any visitor).
"""

import pytest
from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.grammar import Grammar

from regmachine.grammar import EXPR_GRAMMAR, RM_GRAMMAR


@pytest.fixture(scope="module")
def grammar():
    """Compile the program grammar once per module."""
    return Grammar(RM_GRAMMAR)


@pytest.fixture(scope="module")
def expr():
    return Grammar(EXPR_GRAMMAR)


class TestGrammarWellFormed:
    """Both grammars compile and expose their key rules."""

    def test_program_rules(self, grammar):
        assert grammar.default_rule.name == "program"
        for rule in ("item", "label", "trace", "init", "inc", "dec",
                     "halt", "eval", "target", "offset"):
            assert rule in grammar, f"Rule {rule!r} missing"

    def test_expression_rules(self, expr):
        assert expr.default_rule.name == "expression"
        for rule in ("sum", "product", "unary", "call", "group"):
            assert rule in expr


class TestProgramGrammar:
    """Program text accepted or rejected before any visitor runs."""

    @pytest.mark.parametrize("text", [
        "",
        "r0+",
        "r0+ -> -3",
        "r0- -> a, +2",
        "r0- -> , b",
        "r0- -> a,",
        'halt "x"',
        'eval "d" r0 ::= r1 * (r2 + 1);',
        "x: trace\ny: init r1 4 // set\n",
    ])
    def test_accepts(self, grammar, text):
        assert grammar.parse(text).text == text

    @pytest.mark.parametrize("text", [
        "r0",
        "r0 +",
        "r0+ => 1",
        "init r0",
        "init r0 -1",
        "halt reason",
        "r0- -> a b",
    ])
    def test_rejects(self, grammar, text):
        with pytest.raises(ParseError):
            grammar.parse(text)

    def test_offset_before_name(self, grammar):
        node = grammar["target"].parse("+12")
        assert node.children[0].expr_name == "offset"

    def test_inc_before_halt(self, grammar):
        tree = grammar.parse("halt+")
        assert tree.children[0].children[0].expr_name == "inc"


class TestExpressionGrammar:
    """Expression text accepted or rejected before any visitor runs."""

    @pytest.mark.parametrize("text", [
        "1", " r0 ", "-r0", "r0 % 2", "min(r0, max(1, 2))", "(1 + 2) * 3",
    ])
    def test_accepts(self, expr, text):
        assert expr.parse(text).text == text

    @pytest.mark.parametrize("text", ["", "1 +", "r0 ** 2", "f()", "'a'"])
    def test_rejects(self, expr, text):
        with pytest.raises(ParseError):
            expr.parse(text)

    def test_trailing_garbage_is_incomplete(self, expr):
        with pytest.raises(IncompleteParseError):
            expr.parse("r0 r1")
