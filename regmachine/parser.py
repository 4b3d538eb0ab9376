"""regmachine/parser.py – source text → raw token sequence.

The grammar in :mod:`regmachine.grammar` recognises the surface syntax;
:class:`TokenBuilder` walks the parsimonious parse tree and produces the
tokens of :mod:`regmachine.instructions`.

Public API
----------
``parse(source: str, filename: str = "") -> list[Token]``
    Tokenise a complete program. Raises :class:`ParseError` carrying
    the 1-based line of the failure point and the unconsumed text.

Surface syntax (overview)
-------------------------
::

    // comment to end of line
    label:                      binds to the next instruction
    trace                       traces the next instruction
    init r0 5
    r0+                         same as  r0+ -> +1
    r0+ -> loop | 3 | -2        label, absolute index, relative offset
    r0- -> yes, no              also  -> , no   -> yes,   -> yes   and bare  r0-
    halt "reason"               or bare  halt
    eval "sum" r2 ::= r0 + r1;

Design principles
-----------------
* **Per-call state** – line numbers come from a table of newline
  offsets owned by the builder created for one ``parse`` call.
* **Fail-fast with location** – the first position no rule matches
  aborts the parse.
"""

from __future__ import annotations

import bisect
import logging
from typing import Any, List

from parsimonious.exceptions import ParseError as PegParseError
from parsimonious.nodes import Node, NodeVisitor

from regmachine.errors import ParseError, RegMachineError
from regmachine.grammar import rm_grammar
from regmachine.instructions import Dec, Eval, Halt, Inc, Init, Label, Token, Trace

logger = logging.getLogger(__name__)

DEFAULT_HALT_REASON = "Halt"

# Fall-through target of an omitted jump: the next instruction.
NEXT = 1


class TokenBuilder(NodeVisitor):
    """Transforms a parsimonious parse tree into raw tokens."""

    unwrapped_exceptions = (RegMachineError,)

    def __init__(self, source: str, filename: str = "") -> None:
        self._source = source
        self._filename = filename
        self._newlines = [i for i, ch in enumerate(source) if ch == "\n"]

    def line_of(self, pos: int) -> int:
        """1-based line of character offset ``pos``."""
        return bisect.bisect_left(self._newlines, pos) + 1

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or None

    def _integer(self, node: Node) -> int:
        try:
            return int(node.text)
        except ValueError:
            raise ParseError(
                line=self.line_of(node.start),
                remainder=self._source[node.start:],
                file=self._filename,
                hint=f"integer literal of {len(node.text)} digits is too long",
            ) from None

    # ── Top level ────────────────────────────────────────────────

    def visit_program(self, node, visited_children):
        return [tok for tok in visited_children if tok is not None]

    def visit_item(self, node, visited_children):
        return visited_children[0]

    def visit_newline(self, node, visited_children):
        return None

    def visit_comment(self, node, visited_children):
        return None

    def visit_ws(self, node, visited_children):
        return None

    # ── Pseudo-tokens ────────────────────────────────────────────

    def visit_label(self, node, visited_children):
        name, _ = visited_children
        return Label(name=name, text=node.text, line=self.line_of(node.start))

    def visit_trace(self, node, visited_children):
        return Trace(text=node.text, line=self.line_of(node.start))

    # ── Instructions ─────────────────────────────────────────────

    def visit_init(self, node, visited_children):
        _, _, reg, _, value = visited_children
        return Init(reg=reg, value=value, text=node.text, line=self.line_of(node.start))

    def visit_inc(self, node, visited_children):
        reg, _, target = visited_children
        nxt = target[0] if target else NEXT
        return Inc(reg=reg, next=nxt, text=node.text, line=self.line_of(node.start))

    def visit_inc_target(self, node, visited_children):
        _, _, _, target = visited_children
        return target

    def visit_dec(self, node, visited_children):
        reg, _, targets = visited_children
        on_positive, on_zero = targets[0] if targets else (NEXT, NEXT)
        return Dec(
            reg=reg,
            on_positive=on_positive,
            on_zero=on_zero,
            text=node.text,
            line=self.line_of(node.start),
        )

    def visit_dec_targets(self, node, visited_children):
        _, _, _, arms = visited_children
        return arms

    def visit_dec_arms(self, node, visited_children):
        return visited_children[0]

    def visit_dec_both(self, node, visited_children):
        on_positive, _, _, _, on_zero = visited_children
        return on_positive, on_zero

    def visit_dec_false(self, node, visited_children):
        _, _, on_zero = visited_children
        return NEXT, on_zero

    def visit_dec_true(self, node, visited_children):
        on_positive, _ = visited_children
        return on_positive, NEXT

    def visit_halt(self, node, visited_children):
        _, reason = visited_children
        return Halt(
            reason=reason[0] if reason else DEFAULT_HALT_REASON,
            text=node.text,
            line=self.line_of(node.start),
        )

    def visit_halt_reason(self, node, visited_children):
        _, reason = visited_children
        return reason

    def visit_eval(self, node, visited_children):
        _, _, description, _, reg, _, _, _, code, _ = visited_children
        return Eval(
            description=description,
            reg=reg,
            code=code,
            text=node.text,
            line=self.line_of(node.start),
        )

    def visit_expr_text(self, node, visited_children):
        return node.text.strip()

    # ── Leaves ───────────────────────────────────────────────────

    def visit_target(self, node, visited_children):
        return visited_children[0]

    def visit_offset(self, node, visited_children):
        return self._integer(node)

    def visit_name(self, node, visited_children):
        return node.text.lower()

    def visit_number(self, node, visited_children):
        return self._integer(node)

    def visit_quoted(self, node, visited_children):
        return node.text[1:-1]


def parse(source: str, filename: str = "") -> List[Token]:
    """Parse ``source`` into raw tokens (labels, traces, instructions)."""
    try:
        tree = rm_grammar.parse(source)
    except PegParseError as exc:
        line = source.count("\n", 0, exc.pos) + 1
        raise ParseError(line=line, remainder=source[exc.pos:], file=filename) from exc
    tokens = TokenBuilder(source, filename).visit(tree)
    logger.debug("parsed %d tokens from %s", len(tokens), filename or "<string>")
    return tokens
