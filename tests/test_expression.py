# tests/test_expression.py
"""
Tests for the arithmetic evaluator behind ``eval``.
"""

import pytest

from regmachine.errors import ErrorCodes, ExpressionError
from regmachine.expression import compile_expression, evaluate_expression


REGS = {"r0": 2, "r1": 3, "total": 10}


class TestArithmetic:
    """Operators, precedence and register lookup."""

    @pytest.mark.parametrize("expression, expected", [
        ("7", 7),
        ("r0 + r1", 5),
        ("r0 + r1 * 2", 8),
        ("(r0 + r1) * 2", 10),
        ("total - r1 - r0", 5),
        ("total / r1", 3),
        ("total % r1", 1),
        ("-r0 + 5", 3),
        ("- (r0 - r1)", 1),
        ("((r1))", 3),
        ("2*3+4", 10),
    ])
    def test_evaluates(self, expression, expected):
        assert evaluate_expression(expression, REGS) == expected

    def test_unset_register_reads_zero(self):
        assert evaluate_expression("r9 + 1", REGS) == 1

    def test_register_names_are_case_insensitive(self):
        assert evaluate_expression("R0 * TOTAL", REGS) == 20

    def test_large_values_are_exact(self):
        assert evaluate_expression("r0 * r0", {"r0": 10 ** 30}) == 10 ** 60


class TestFunctions:
    """min() and max()."""

    def test_min(self):
        assert evaluate_expression("min(r0, r1, 1)", REGS) == 1

    def test_max(self):
        assert evaluate_expression("max(r0, total)", REGS) == 10

    def test_single_argument(self):
        assert evaluate_expression("max(r1)", REGS) == 3

    def test_nested(self):
        assert evaluate_expression("MIN(max(r0, r1), 4) + 1", REGS) == 4

    def test_unknown_function(self):
        with pytest.raises(ExpressionError, match="unknown function 'pow'"):
            evaluate_expression("pow(r0, 2)", REGS)


class TestFailures:
    """Expressions that must raise ExpressionError."""

    def test_division_by_zero(self):
        with pytest.raises(ExpressionError, match="division by zero"):
            evaluate_expression("r0 / r5", REGS)

    def test_modulo_by_zero(self):
        with pytest.raises(ExpressionError):
            evaluate_expression("r0 % 0", REGS)

    def test_negative_result(self):
        with pytest.raises(ExpressionError, match="produced a negative value"):
            evaluate_expression("r0 - r1", REGS)

    def test_negative_intermediate_is_fine(self):
        assert evaluate_expression("(r0 - r1) * (r0 - r1)", REGS) == 1

    @pytest.mark.parametrize("expression", [
        "",
        "1 +",
        "r0 ** 2",
        "__import__('os')",
        "r0.real",
        "[1, 2]",
    ])
    def test_rejected_syntax(self, expression):
        with pytest.raises(ExpressionError) as exc_info:
            evaluate_expression(expression, REGS)
        assert exc_info.value.code == ErrorCodes.INVALID_EXPRESSION
        assert exc_info.value.expression == expression


    def test_deep_nesting(self):
        expression = "(" * 400 + "1" + ")" * 400
        with pytest.raises(ExpressionError, match="nested too deeply"):
            evaluate_expression(expression, REGS)

    def test_overlong_literal(self, int_digit_limit):
        with pytest.raises(ExpressionError, match="5000 digits is too long"):
            evaluate_expression("9" * 5000, REGS)


class TestCompile:
    """Parse-tree caching."""

    def test_trees_are_cached(self):
        assert compile_expression("r0 + 1") is compile_expression("r0 + 1")
