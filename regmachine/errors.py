# regmachine/errors.py
"""
Register Machine Error Types

Every failure the toolchain can report is a subclass of
:class:`RegMachineError`. Errors carry a structured :class:`ErrorCode`
and a :class:`SourceSpan` so that a diagnostic can be reproduced without
the original source text.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────┐
│  RegMachineError (base)                                             │
│  ├── ParseError        - no grammar rule matches the input          │
│  ├── LinkError         - unresolvable label reference               │
│  ├── RuntimeError      - program counter left the program, or an    │
│  │                       ``eval`` instruction failed                │
│  ├── ExpressionError   - malformed or failing ``eval`` expression   │
│  └── CodecError                                                     │
│      ├── EncodeError   - instruction has no number                  │
│      └── DecodeError   - number is not a valid code                 │
└─────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Codes follow the pattern ``RM-NNNN``:
  - 1000-1999: Parse errors
  - 2000-2999: Link errors
  - 3000-3999: Runtime errors (3100-3199: expression evaluation)
  - 4000-4999: Codec errors

Halting and exhausting the step budget are *outcomes*, not errors; see
:class:`regmachine.interpreter.Outcome`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Dict, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorPhase(Enum):
    """Toolchain phase where the error occurred."""

    SYNTAX = "syntax"
    LINK = "link"
    RUNTIME = "runtime"
    CODEC = "codec"


class ErrorCode:
    """
    Structured error code ``RM-NNNN``.

    Codes compare and hash by their number so they can be used as
    dictionary keys and matched in tests.
    """

    __slots__ = ("prefix", "number", "phase", "title")

    def __init__(self, number: int, phase: ErrorPhase, title: str, prefix: str = "RM") -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.title = title

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.value!r})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return (self.prefix, self.number) == (other.prefix, other.number)
        if isinstance(other, str):
            return self.code == other
        return NotImplemented


class ErrorCodes:
    """Registry of every error code the toolchain emits."""

    UNPARSABLE_INPUT = ErrorCode(1001, ErrorPhase.SYNTAX, "unparsable input")

    UNDEFINED_LABEL = ErrorCode(2001, ErrorPhase.LINK, "undefined label")
    DANGLING_LABEL = ErrorCode(2002, ErrorPhase.LINK, "label has no instruction")
    TARGET_TOO_LARGE = ErrorCode(2003, ErrorPhase.LINK, "jump target too large")

    PC_OUT_OF_BOUNDS = ErrorCode(3001, ErrorPhase.RUNTIME, "program counter out of bounds")
    EVAL_FAILED = ErrorCode(3002, ErrorPhase.RUNTIME, "eval instruction failed")
    EMPTY_PROGRAM = ErrorCode(3003, ErrorPhase.RUNTIME, "empty program")
    INVALID_EXPRESSION = ErrorCode(3101, ErrorPhase.RUNTIME, "invalid expression")

    NOT_ENCODABLE = ErrorCode(4001, ErrorPhase.CODEC, "instruction cannot be encoded")
    NOT_DECODABLE = ErrorCode(4002, ErrorPhase.CODEC, "number cannot be decoded")


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """Position of the offending construct. Line ``0`` means unknown."""

    line: int = 0
    file: str = ""

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"
        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class RegMachineError(Exception):
    """
    Base exception for all register machine errors.

    ``message`` is the bare description; ``str(error)`` renders the
    GCC-style diagnostic including location and code.
    """

    default_code: ErrorCode = ErrorCodes.UNPARSABLE_INPUT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.span = span or SourceSpan()
        self.hint = hint

    @property
    def phase(self) -> ErrorPhase:
        return self.code.phase

    def to_gcc_format(self) -> str:
        """Format as ``location: error: message [RM-NNNN]``."""
        lines = [f"{self.span}: error: {self.message} [{self.code}]"]
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        return {
            "code": self.code.code,
            "phase": self.phase.value,
            "message": self.message,
            "line": self.span.line,
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


class ParseError(RegMachineError):
    """No lexical rule matched; ``remainder`` is the unconsumed input."""

    default_code = ErrorCodes.UNPARSABLE_INPUT

    def __init__(self, line: int, remainder: str, file: str = "", hint: str = "") -> None:
        snippet = remainder.split("\n", 1)[0]
        if len(snippet) > 40:
            snippet = snippet[:37] + "..."
        super().__init__(
            f"Failed to fully parse input, problem on line {line} from {snippet!r}",
            span=SourceSpan(line=line, file=file),
            hint=hint,
        )
        self.line = line
        self.remainder = remainder


class LinkError(RegMachineError):
    """A jump names a label that does not resolve to an instruction."""

    default_code = ErrorCodes.UNDEFINED_LABEL

    def __init__(self, label: str, line: int = 0, code: Optional[ErrorCode] = None) -> None:
        if code == ErrorCodes.DANGLING_LABEL:
            message = f"Label {label} is not followed by an instruction"
        elif code == ErrorCodes.TARGET_TOO_LARGE:
            message = f"Jump target {label[:20]}... ({len(label)} digits) is too large"
        else:
            message = f"Could not find label {label}"
        super().__init__(message, code=code, span=SourceSpan(line=line))
        self.label = label
        self.line = line


class RuntimeError(RegMachineError):
    """Fatal run-time failure of the instruction at ``instruction_index``."""

    default_code = ErrorCodes.PC_OUT_OF_BOUNDS

    def __init__(
        self,
        message: str,
        instruction_index: Optional[int] = None,
        line: int = 0,
        text: str = "",
        code: Optional[ErrorCode] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, code=code, span=SourceSpan(line=line))
        self.instruction_index = instruction_index
        self.line = line
        self.text = text
        self.cause = cause


class ExpressionError(RegMachineError):
    """An ``eval`` expression could not be parsed or evaluated."""

    default_code = ErrorCodes.INVALID_EXPRESSION

    def __init__(self, message: str, expression: str = "") -> None:
        super().__init__(message)
        self.expression = expression


class CodecError(RegMachineError):
    """Base for numbering failures."""

    default_code = ErrorCodes.NOT_ENCODABLE


class EncodeError(CodecError):
    default_code = ErrorCodes.NOT_ENCODABLE

    def __init__(self, message: str, line: int = 0) -> None:
        super().__init__(message, span=SourceSpan(line=line))


class DecodeError(CodecError):
    default_code = ErrorCodes.NOT_DECODABLE
