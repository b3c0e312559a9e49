"""
Diagnostics and exceptions raised by the MINIC front end.

Classes:
    DiagnosticKind: Enumerates every reportable problem.
    Diagnostic: One structured, comparable report (kind, message, expected, found, position).
    GrammarError: Raised when a grammar table is built from conflicting rules.
    ParseError: Base class for fatal parse outcomes; a `SyntaxError`.
    UnexpectedEndOfInput: The token source ran dry before the `EOF` token.
    InputNotFullyConsumed: The derivation finished but input remained.

Syntax errors found by the table lookup or a terminal comparison are *not*
exceptions: the parser records them as `Diagnostic` objects and recovers.
Only the two end-of-input conditions stop a parse.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DiagnosticKind(Enum):
    GRAMMAR_TABLE_MISS = "grammar-table-miss"
    TERMINAL_MISMATCH = "terminal-mismatch"
    DUPLICATE_DECLARATION = "duplicate-declaration"
    UNDECLARED_IDENTIFIER = "undeclared-identifier"
    NOT_CALLABLE = "not-callable"
    ARGUMENT_COUNT_MISMATCH = "argument-count-mismatch"
    TYPE_MISMATCH = "type-mismatch"
    MISPLACED_JUMP = "misplaced-jump"

    @property
    def is_syntax(self) -> bool:
        return self in (
            DiagnosticKind.GRAMMAR_TABLE_MISS,
            DiagnosticKind.TERMINAL_MISMATCH,
        )


@dataclass(frozen=True)
class Diagnostic:
    """
    A single problem found while parsing or checking a program.

    Attributes:
        kind: What went wrong.
        message: Human readable one-line description.
        expected: Symbol names that would have been accepted (syntax) or the
            declared type/arity (semantic).
        found: The offending token kind, literal or type.
        line: 1-based source line, 0 when unknown.
        col: 1-based source column, 0 when unknown.
    """

    kind: DiagnosticKind
    message: str
    expected: tuple[str, ...] = ()
    found: str | None = None
    line: int = 0
    col: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.col}: {self.kind.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "expected": list(self.expected),
            "found": self.found,
            "line": self.line,
            "col": self.col,
        }


class GrammarError(Exception):
    """Raised when grammar rules violate LL(1) determinism.

    Attributes:
        conflicts (list[tuple]): The ``(NonTerminal, kind)`` pairs claimed twice.
    """

    def __init__(self, message: str, conflicts: list[Any] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class ParseError(SyntaxError):
    """Fatal parse outcome.

    Attributes:
        diagnostics (list[Diagnostic]): Recoverable errors recorded before the failure.
        line (int): Line of the token where the parse stopped.
        col (int): Column of the token where the parse stopped.
    """

    def __init__(
        self,
        message: str,
        diagnostics: list[Diagnostic] | None = None,
        line: int = 0,
        col: int = 0,
    ):
        super().__init__(message)
        self.diagnostics: list[Diagnostic] = list(diagnostics or [])
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return self.msg


class UnexpectedEndOfInput(ParseError):
    pass


class InputNotFullyConsumed(ParseError):
    pass


@dataclass
class DiagnosticLog:
    """Ordered collection of diagnostics shared by the parser and the semantic pass."""

    entries: list[Diagnostic] = field(default_factory=list)

    def report(
        self,
        kind: DiagnosticKind,
        message: str,
        expected: tuple[str, ...] | list[str] = (),
        found: str | None = None,
        line: int = 0,
        col: int = 0,
    ) -> Diagnostic:
        diagnostic = Diagnostic(kind, message, tuple(expected), found, line, col)
        self.entries.append(diagnostic)
        return diagnostic

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
