"""
Lexical analyzer for the MINIC teaching language.

This module provides core components for converting raw source code into token streams:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Features:
    - Skips whitespace, line comments (`// ...`) and block comments (`/* ... */`)
    - Supports longest-match recognition of operators (`<=` and `>=` are distinct kinds)
    - Recognizes:
        * Identifiers and keywords (`int`, `bool`, `char`, `if`, `for`, ...)
        * Integer literals (decimal and `0x` hexadecimal)
        * Character literals (`'a'`, `'\\n'`)
        * Strings (with escape sequences)
        * Operators and punctuation

Raises:
    SyntaxError: On unterminated comments, strings or character literals,
        empty character literals, or hexadecimal prefixes without digits.

Example:
    >>> lexer = Lexer(CharacterStream("int x;"))
    >>> [tok.type for tok in lexer.tokenize()]
    ['INT', 'IDENT', 'SEMICOLON', 'EOF']

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
    - token_hashmap
"""

import string
from collections.abc import Iterator
from typing import Any

from minic.minic_constants import EOF, ERROR, keyword_tokens, operator_tokens, token_hashmap

HEX_DIGITS = string.hexdigits
IDENT_START = string.ascii_letters + "_"
IDENT_CHARS = IDENT_START + string.digits


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character at `offset` without advancing, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def current(self) -> str | None:
        """Returns the character under the cursor, or None at the end of the source."""
        return self.source[self.position] if self.position < len(self.source) else None

    def end_of_file(self) -> bool:
        """Returns True once every character has been consumed."""
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token.

    Attributes:
        type (str): The token kind (e.g. 'IDENT', 'NUMBER', 'EOF').
        value (str): The literal text of the token.
        line (int): The 1-based line number where the token appears.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        """Returns a short form such as `Token(IDENT, x)`; the position is left out."""
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        """Tokens are equal when kind, text and position all match."""
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        """Hashes the same fields `__eq__` compares."""
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for MINIC.

    The Lexer takes a CharacterStream and converts it into a stream of Token objects,
    always finishing with exactly one `EOF` token.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            if self.peek() in " \t\r\n":
                self.advance()
            elif self.peek() == "/" and self.peek(1) == "/":
                self.skip_line_comment()
            elif self.peek() == "/" and self.peek(1) == "*":
                self.skip_block_comment()
            else:
                break

    def skip_line_comment(self) -> None:
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def skip_block_comment(self) -> None:
        """Advances past a `/* ... */` comment.

        Raises:
            SyntaxError: If the comment is never closed.
        """
        line, col = self.stream.line, self.stream.column
        self.advance()
        self.advance()
        while not self.stream.end_of_file():
            if self.peek() == "*" and self.peek(1) == "/":
                self.advance()
                self.advance()
                return
            self.advance()
        raise SyntaxError(f"Unterminated comment at line {line}, col {col}")

    def match_operator(self) -> Token | None:
        """Attempts to match the longest valid operator from the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        line, col = self.stream.line, self.stream.column
        max_token = None
        match_len = 0
        candidate = ""

        for i in range(2):  # longest operator is two characters
            ch = self.stream.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in operator_tokens:
                max_token = candidate
                match_len = i + 1

        if max_token:
            for _ in range(match_len):
                self.advance()
            return Token(operator_tokens[max_token], max_token, line, col)

        return None

    def read_number(self, line: int, col: int) -> Token:
        num = ""
        if self.peek() == "0" and self.peek(1) in ("x", "X"):
            num += self.advance() + self.advance()
            while not self.stream.end_of_file() and self.peek() in HEX_DIGITS:
                num += self.advance()
            if len(num) == 2:
                raise SyntaxError(
                    f"Invalid hexadecimal literal at line {line}, col {col}"
                )
            return Token("NUMBER", num, line, col)
        while not self.stream.end_of_file() and self.peek() in string.digits:
            num += self.advance()
        return Token("NUMBER", num, line, col)

    def read_quoted(self, quote: str, line: int, col: int) -> str:
        """Reads a quoted literal body, keeping escape sequences verbatim."""
        self.advance()
        val = ""
        while not self.stream.end_of_file() and self.peek() != "\n":
            if self.peek() == "\\":
                val += self.advance()
                if not self.stream.end_of_file():
                    val += self.advance()
            elif self.peek() == quote:
                self.advance()
                return val
            else:
                val += self.advance()
        kind = "string" if quote == '"' else "character literal"
        raise SyntaxError(f"Unterminated {kind} at line {line}, col {col}")

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Raises:
            SyntaxError: If a malformed token is encountered.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            return Token(EOF, EOF, self.stream.line, self.stream.column)

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        # 1. Identifier or keyword
        if ch in IDENT_START:
            ident = ""
            while not self.stream.end_of_file() and self.peek() in IDENT_CHARS:
                ident += self.advance()
            if ident in keyword_tokens:
                return Token(keyword_tokens[ident], ident, line, col)
            return Token("IDENT", ident, line, col)

        # 2. Integer literal
        if ch in string.digits:
            return self.read_number(line, col)

        # 3. String
        if ch == '"':
            return Token("STRING", self.read_quoted('"', line, col), line, col)

        # 4. Character literal
        if ch == "'":
            val = self.read_quoted("'", line, col)
            if val == "":
                raise SyntaxError(f"Empty character literal at line {line}, col {col}")
            if len(val) > 1 and not (len(val) == 2 and val[0] == "\\"):
                raise SyntaxError(
                    f"Character literal too long at line {line}, col {col}"
                )
            return Token("CHARACTER", val, line, col)

        # 5. Operator or punctuation
        token = self.match_operator()
        if token:
            return token

        # 6. Unknown character
        return Token(ERROR, self.advance(), line, col)

    def tokenize(self) -> Iterator[Token]:
        """Yields tokens lazily up to and including the final `EOF` token."""
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == EOF:
                return


def tokenize(source: str) -> list[Token]:
    """Lexes `source` completely; the returned list always ends with `EOF`."""
    return list(Lexer(CharacterStream(source)).tokenize())


__all__ = ["CharacterStream", "Lexer", "Token", "token_hashmap", "tokenize"]
