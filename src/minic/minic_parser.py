"""
MINIC Language Parser

Table-driven LL(1) parser turning MINIC tokens into a concrete parse tree.

The parser keeps its whole state in two explicit, equally long stacks:

- the *derivation stack* of grammar symbols still to be processed, and
- the *open-node stack* of tree nodes waiting for those symbols' content.

Both stacks are always pushed and popped together, so ``open_nodes[i]`` is the
tree node for ``stack[i]``. Each step pops the top symbol:

- a non-terminal is replaced by the production the `GrammarTable` selects for the
  current lookahead; the node gets one child per production symbol;
- a terminal must match the lookahead token, whose text is copied into its node.

Parser Behavior
---------------
- No backtracking: tokens are pulled lazily from any iterable and never revisited.
- A missing table entry or a terminal mismatch is recorded as a `Diagnostic` and
  handled by panic-mode recovery; parsing then continues, so one pass reports
  every independent syntax error.
- A parse that recovered still returns its tree ("success with diagnostics").
- Running out of tokens before `EOF` raises `UnexpectedEndOfInput`; tokens left
  once the derivation is complete raise `InputNotFullyConsumed`.

Panic-mode recovery
-------------------
Synchronisation tokens are `;` and `)`. On an error the parser:

1. skips input tokens until one of them (left in place) or `EOF`;
2. at `EOF`, discards the rest of the derivation stack;
3. otherwise discards stack symbols down to the nearest terminal of that same kind,
   which then matches the synchronisation token; if no such terminal is pending,
   the synchronisation token is consumed in place of the terminal the broken
   construct would have ended with.

Discarded symbols take their open nodes with them. Those nodes stay in the tree as
childless placeholders with ``error=True``, and so does the node of the symbol
that failed; nodes outside the error region are untouched.

Entry Points
------------
- `Parser.parse()`: Parse a full program.
- `Parser.parse_expression()`: Parse a single expression.
- `parse_source()`: Lex and parse a source string.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from minic.minic_constants import EOF, SYNC_TOKENS
from minic.minic_errors import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticLog,
    InputNotFullyConsumed,
    UnexpectedEndOfInput,
)
from minic.minic_grammar import (
    EXPRESSION,
    GrammarTable,
    NonTerminal,
    Symbol,
    Terminal,
    symbol_name,
)
from minic.minic_lexer import Token, tokenize
from minic.minic_tree import ParseTreeNode

logger = logging.getLogger(__name__)


class TokenCursor:
    """Forward-only view over a token iterable with one token of lookahead."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens = iter(tokens)
        self._lookahead: Token | None = None
        self.last: Token | None = None
        self.consumed = 0

    def peek(self) -> Token | None:
        """Returns the next token without consuming it, or None once the source is exhausted."""
        if self._lookahead is None:
            self._lookahead = next(self._tokens, None)
        return self._lookahead

    def advance(self) -> Token:
        """
        Consumes the current token.

        Returns:
            Token: The token that was under the cursor.

        Raises:
            IndexError: If the token source is exhausted.
        """
        tok = self.peek()
        if tok is None:
            raise IndexError("advance() past the end of the token source")
        self._lookahead = None
        self.last = tok
        self.consumed += 1
        return tok


@dataclass
class ParseResult:
    """Outcome of a parse that reached the end of its input.

    Attributes:
        tree: Root node, derived from the start symbol.
        diagnostics: Syntax errors the parser recovered from, in source order.
    """

    tree: ParseTreeNode
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


class Parser:
    """
    MINIC Parser Class

    Attributes
    ----------
    table : GrammarTable
        The LL(1) table driving the parse. Built for this parser unless one is passed in.
    start : NonTerminal
        Start symbol of `parse()`.
    cursor : TokenCursor
        Forward-only position in the token source.
    stack : list[Symbol]
        Derivation stack; the top is the last element.
    open_nodes : list[ParseTreeNode]
        Tree nodes awaiting content, index-aligned with `stack`.
    diagnostics : DiagnosticLog
        Recoverable syntax errors recorded so far.

    Raises
    ------
    UnexpectedEndOfInput
        The token source ends before an `EOF` token.
    InputNotFullyConsumed
        The derivation completes while non-`EOF` tokens remain.
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        table: GrammarTable | None = None,
        start: NonTerminal | None = None,
    ) -> None:
        self.table: GrammarTable = table if table is not None else GrammarTable()
        self.start: NonTerminal = start if start is not None else self.table.start
        self.cursor = TokenCursor(tokens)
        self.stack: list[Symbol] = []
        self.open_nodes: list[ParseTreeNode] = []
        self.diagnostics = DiagnosticLog()
        self._used = False

    def parse(self) -> ParseResult:
        """Parse the whole token source, starting from `start`."""
        return self._run(self.start)

    def parse_expression(self) -> ParseResult:
        """Parse the token source as a single expression."""
        return self._run(EXPRESSION)

    def _run(self, start: NonTerminal) -> ParseResult:
        if self._used:
            raise RuntimeError("Parser instances are single-use; create a new Parser")
        self._used = True

        root = ParseTreeNode(start)
        self.stack = [start]
        self.open_nodes = [root]

        while self.stack:
            symbol = self.stack.pop()
            node = self.open_nodes.pop()
            lookahead = self._lookahead(symbol)
            if isinstance(symbol, NonTerminal):
                self._expand(symbol, node, lookahead)
            elif isinstance(symbol, Terminal):
                self._match(symbol, node, lookahead)
            else:
                raise TypeError(f"Not a grammar symbol: {symbol!r}")

        self._finish()
        return ParseResult(root, list(self.diagnostics))

    def _lookahead(self, waiting_for: Symbol | None = None) -> Token:
        tok = self.cursor.peek()
        if tok is None:
            last = self.cursor.last
            wanted = f": expected {symbol_name(waiting_for)}" if waiting_for else ""
            raise UnexpectedEndOfInput(
                f"Unexpected end of input{wanted}",
                list(self.diagnostics),
                line=last.line if last else 0,
                col=last.col if last else 0,
            )
        return tok

    def _expand(
        self, nonterminal: NonTerminal, node: ParseTreeNode, lookahead: Token
    ) -> None:
        production = self.table.lookup(nonterminal, lookahead.type)
        if production is None:
            node.error = True
            self._report(
                DiagnosticKind.GRAMMAR_TABLE_MISS,
                f"No rule for {nonterminal} with {lookahead.type} {lookahead.value!r}",
                self.table.expected(nonterminal),
                lookahead,
            )
            self._recover()
            return

        # Epsilon: the node stays childless and is closed right away.
        children = [ParseTreeNode(symbol) for symbol in production]
        node.children.extend(children)
        for symbol, child in zip(reversed(production), reversed(children)):
            self.stack.append(symbol)
            self.open_nodes.append(child)

    def _match(self, terminal: Terminal, node: ParseTreeNode, lookahead: Token) -> None:
        if lookahead.type == terminal.kind:
            tok = self.cursor.advance()
            node.value = tok.value
            node.line = tok.line
            node.col = tok.col
            return

        node.error = True
        self._report(
            DiagnosticKind.TERMINAL_MISMATCH,
            f"Expected {terminal.kind}, found {lookahead.type} {lookahead.value!r}",
            [terminal.kind],
            lookahead,
        )
        self._recover()

    def _report(
        self, kind: DiagnosticKind, message: str, expected: list[str], found: Token
    ) -> None:
        diagnostic = self.diagnostics.report(
            kind, message, expected, found.type, found.line, found.col
        )
        logger.debug("syntax error %s", diagnostic)

    def _recover(self) -> None:
        """Panic-mode resynchronisation of the derivation stack and the input."""
        skipped = 0
        tok = self._lookahead()
        while tok.type != EOF and tok.type not in SYNC_TOKENS:
            self.cursor.advance()
            skipped += 1
            tok = self._lookahead()

        if tok.type == EOF:
            dropped = self._discard(len(self.stack))
            logger.debug(
                "recovery: skipped %d token(s), dropped %d symbol(s) at EOF",
                skipped,
                dropped,
            )
            return

        anchor = Terminal(tok.type)
        depth = self._depth_of(anchor)
        if depth is None:
            self.cursor.advance()
            logger.debug(
                "recovery: skipped %d token(s), consumed %s at %d:%d",
                skipped,
                tok.type,
                tok.line,
                tok.col,
            )
            return

        dropped = self._discard(depth)
        logger.debug(
            "recovery: skipped %d token(s), dropped %d symbol(s), resuming at %s %d:%d",
            skipped,
            dropped,
            tok.type,
            tok.line,
            tok.col,
        )

    def _depth_of(self, symbol: Symbol) -> int | None:
        """Number of symbols above the topmost occurrence of `symbol`, or None."""
        for depth, pending in enumerate(reversed(self.stack)):
            if pending == symbol:
                return depth
        return None

    def _discard(self, count: int) -> int:
        for _ in range(count):
            self.stack.pop()
            self.open_nodes.pop().error = True
        return count

    def _finish(self) -> None:
        tok = self._lookahead()
        if tok.type != EOF:
            raise InputNotFullyConsumed(
                f"Input not fully consumed: unexpected {tok.type} {tok.value!r} "
                f"at line {tok.line}, col {tok.col}",
                list(self.diagnostics),
                line=tok.line,
                col=tok.col,
            )
        self.cursor.advance()
        extra = self.cursor.peek()
        if extra is not None:
            raise InputNotFullyConsumed(
                f"Input not fully consumed: {extra.type} {extra.value!r} after end of input",
                list(self.diagnostics),
                line=extra.line,
                col=extra.col,
            )


def parse_source(source: str, table: GrammarTable | None = None) -> ParseResult:
    """Lex and parse a complete MINIC program.

    Raises:
        SyntaxError: From the lexer on malformed literals or comments.
        ParseError: On the fatal end-of-input conditions.
    """
    return Parser(tokenize(source), table=table).parse()


__all__ = ["ParseResult", "Parser", "TokenCursor", "parse_source"]
