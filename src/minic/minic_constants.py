"""
Token vocabulary shared by the MINIC lexer, grammar table and parser.

Token types are plain upper-case strings (``"IDENT"``, ``"SEMICOLON"``...),
the same convention the lexer uses for ``Token.type``.

Exports:
    - keyword_tokens: reserved word → token type
    - operator_tokens: operator/punctuation lexeme → token type
    - token_hashmap: union of both, used for longest-match lexing
    - TYPE_TOKENS, LITERAL_TOKENS: token groups used by the grammar
    - SYNC_TOKENS: synchronisation terminals for panic-mode recovery
"""

EOF = "EOF"
ERROR = "ERROR"

keyword_tokens: dict[str, str] = {
    "int": "INT",
    "bool": "BOOL",
    "char": "CHAR",
    "if": "IF",
    "else": "ELSE",
    "for": "FOR",
    "print": "PRINT",
    "return": "RETURN",
    "break": "BREAK",
    "continue": "CONTINUE",
    "true": "TRUE",
    "false": "FALSE",
}

operator_tokens: dict[str, str] = {
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
    ";": "SEMICOLON",
    ",": "COMMA",
    "=": "ASSIGN",
    "==": "EQ",
    "!=": "NE",
    "<": "LT",
    "<=": "LE",
    ">": "GT",
    ">=": "GE",
    "+": "PLUS",
    "-": "SUB",
    "*": "MULT",
    "/": "DIV",
    "%": "MOD",
    "&&": "AND",
    "||": "OR",
    "!": "NOT",
}

token_hashmap: dict[str, str] = {**keyword_tokens, **operator_tokens}

TYPE_TOKENS: tuple[str, ...] = ("INT", "BOOL", "CHAR")

LITERAL_TOKENS: tuple[str, ...] = ("NUMBER", "TRUE", "FALSE", "CHARACTER", "STRING")

# Statement separator and closing parenthesis.
SYNC_TOKENS: frozenset[str] = frozenset({"SEMICOLON", "RPAREN"})

ALL_TOKENS: frozenset[str] = frozenset(
    set(token_hashmap.values()) | {"IDENT", "NUMBER", "CHARACTER", "STRING", EOF}
)

__all__ = [
    "ALL_TOKENS",
    "EOF",
    "ERROR",
    "LITERAL_TOKENS",
    "SYNC_TOKENS",
    "TYPE_TOKENS",
    "keyword_tokens",
    "operator_tokens",
    "token_hashmap",
]
