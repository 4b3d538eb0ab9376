# regmachine/grammar.py
"""
PEG grammars (parsimonious) for the register machine notation and for
the arithmetic accepted by ``eval``.

PEG ordered choice (``/``) is first-match, not longest-match, so the
order of alternatives in ``item`` and ``target`` is significant: the
relative ``offset`` form has to be tried before a bare ``name``, and the
two-target ``dec_both`` form before the single-target ones.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

RM_GRAMMAR = r'''
    program         = item*
    item            = newline / comment / ws / label / trace / init
                    / inc / dec / halt / eval

    newline         = "\n"
    comment         = ~r"//[^\n]*"
    ws              = ~r"[ \t\r\f\v]+"

    label           = name ":"
    trace           = ~r"trace\b"i

    init            = ~r"init\b"i __ name __ number

    inc             = name "+" inc_target?
    inc_target      = _ "->" _ target

    dec             = name "-" dec_targets?
    dec_targets     = _ "->" _ dec_arms
    dec_arms        = dec_both / dec_false / dec_true
    dec_both        = target _ "," _ target
    dec_false       = "," _ target
    dec_true        = target dec_trailing?
    dec_trailing    = _ ","

    halt            = ~r"halt\b"i halt_reason?
    halt_reason     = __ quoted

    eval            = ~r"eval\b"i _ quoted _ name _ "::=" _ expr_text ";"
    expr_text       = ~r"[^;]*"

    target          = offset / name
    offset          = ~r"[+-][0-9]+"
    name            = ~r"\w+"
    number          = ~r"[0-9]+"
    quoted          = ~r'"[^"]*"'

    __              = ~r"[ \t]+"
    _               = ~r"[ \t]*"
'''

EXPR_GRAMMAR = r'''
    expression      = _ sum _
    sum             = product sum_tail*
    sum_tail        = _ add_op _ product
    product         = unary product_tail*
    product_tail    = _ mul_op _ unary
    unary           = negation / atom
    negation        = "-" _ unary
    atom            = number / call / register / group
    call            = function _ "(" _ arguments _ ")"
    arguments       = sum argument_tail*
    argument_tail   = _ "," _ sum
    group           = "(" _ sum _ ")"

    add_op          = "+" / "-"
    mul_op          = "*" / "/" / "%"
    function        = ~r"[A-Za-z_]\w*"
    register        = ~r"[A-Za-z_]\w*"
    number          = ~r"[0-9]+"
    _               = ~r"\s*"
'''

rm_grammar = Grammar(RM_GRAMMAR)
expr_grammar = Grammar(EXPR_GRAMMAR)
