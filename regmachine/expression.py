"""
regmachine/expression.py
========================

Arithmetic evaluator behind the ``eval`` instruction.

``eval`` derives one register from the current register values. Rather
than handing the expression text to a host interpreter, the text is
parsed with :data:`regmachine.grammar.expr_grammar` and evaluated by
:class:`ExpressionEvaluator`. The accepted language is exactly:

* non-negative integer literals and register names (unset registers
  read as ``0``);
* binary ``+``, ``-``, ``*``, ``/`` (floor division) and ``%``, with the
  usual precedence and left associativity;
* unary ``-`` and parentheses;
* the functions ``min(a, b, ...)`` and ``max(a, b, ...)``.

Intermediate values may be negative; the final value may not, since it
is stored in a register.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, List, Mapping

from parsimonious.exceptions import ParseError as PegParseError
from parsimonious.nodes import Node, NodeVisitor

from regmachine.errors import ExpressionError
from regmachine.grammar import expr_grammar

logger = logging.getLogger(__name__)

FUNCTIONS: Dict[str, Callable[[List[int]], int]] = {
    "min": min,
    "max": max,
}


def _too_deep(expression: str) -> ExpressionError:
    return ExpressionError(f"expression {expression[:40]!r} is nested too deeply", expression)


def _divide(left: int, right: int, op: str, expression: str) -> int:
    if right == 0:
        raise ExpressionError(f"division by zero in {expression!r}", expression)
    return left // right if op == "/" else left % right


class ExpressionEvaluator(NodeVisitor):
    """Evaluates an expression parse tree against a register mapping."""

    unwrapped_exceptions = (ExpressionError, RecursionError)

    def __init__(self, registers: Mapping[str, int], expression: str) -> None:
        self.registers = registers
        self.expression = expression

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or None

    def visit_expression(self, node, visited_children):
        _, value, _ = visited_children
        return value

    def visit_sum(self, node, visited_children):
        value, tail = visited_children
        for op, operand in tail or ():
            value = value + operand if op == "+" else value - operand
        return value

    def visit_sum_tail(self, node, visited_children):
        _, op, _, operand = visited_children
        return op, operand

    def visit_product(self, node, visited_children):
        value, tail = visited_children
        for op, operand in tail or ():
            if op == "*":
                value = value * operand
            else:
                value = _divide(value, operand, op, self.expression)
        return value

    def visit_product_tail(self, node, visited_children):
        _, op, _, operand = visited_children
        return op, operand

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_negation(self, node, visited_children):
        _, _, operand = visited_children
        return -operand

    def visit_atom(self, node, visited_children):
        return visited_children[0]

    def visit_call(self, node, visited_children):
        name, _, _, _, arguments, _, _ = visited_children
        function = FUNCTIONS.get(name)
        if function is None:
            raise ExpressionError(f"unknown function {name!r}", self.expression)
        return function(arguments)

    def visit_arguments(self, node, visited_children):
        first, rest = visited_children
        return [first, *(rest or ())]

    def visit_argument_tail(self, node, visited_children):
        _, _, _, value = visited_children
        return value

    def visit_group(self, node, visited_children):
        _, _, value, _, _ = visited_children
        return value

    def visit_add_op(self, node, visited_children):
        return node.text

    def visit_mul_op(self, node, visited_children):
        return node.text

    def visit_function(self, node, visited_children):
        return node.text.lower()

    def visit_register(self, node, visited_children):
        return self.registers.get(node.text.lower(), 0)

    def visit_number(self, node, visited_children):
        try:
            return int(node.text)
        except ValueError as exc:
            raise ExpressionError(
                f"integer literal of {len(node.text)} digits is too long", self.expression
            ) from exc


@functools.lru_cache(maxsize=256)
def compile_expression(expression: str) -> Node:
    """Parse ``expression`` once; the tree is reused on every evaluation."""
    try:
        return expr_grammar.parse(expression)
    except PegParseError as exc:
        raise ExpressionError(
            f"cannot parse expression {expression!r} at column {exc.pos + 1}",
            expression,
        ) from exc
    except RecursionError as exc:
        raise _too_deep(expression) from exc


def evaluate_expression(expression: str, registers: Mapping[str, int]) -> int:
    """Value of ``expression`` given the current ``registers``."""
    tree = compile_expression(expression)
    try:
        value = ExpressionEvaluator(registers, expression).visit(tree)
    except RecursionError as exc:
        raise _too_deep(expression) from exc
    if value < 0:
        raise ExpressionError(
            f"expression {expression!r} produced a negative value", expression
        )
    logger.debug("%s = %d", expression, value)
    return value
