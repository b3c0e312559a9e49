"""
LL(1) grammar table for the MINIC teaching language.

The grammar is written down as literal rows ``(NonTerminal, lookaheads, production)``
in :data:`RULES`. Each row says: "when expanding this non-terminal and the next token
is one of these kinds, replace it with this production". Epsilon rules have an empty
production and list the FOLLOW set of their non-terminal as lookaheads.

Symbols
-------
- :class:`Terminal`: a token kind such as ``"SEMICOLON"``.
- :class:`NonTerminal`: a grammar symbol such as ``"Statement"``.

Both are frozen and compare by value; :data:`Symbol` is their union and every
consumer dispatches on exactly these two classes.

Grammar outline
---------------
::

    Program      -> Declarations
    Declarations -> Declaration Declarations | ε
    Declaration  -> Type VarOrFunc
    VarOrFunc    -> Identifier VarOrFuncRest
    VarOrFuncRest-> VarDeclRest | FunctionRest
    VarDeclRest  -> Initialization MoreIdentifiers ;
    FunctionRest -> ( Parameters ) Block
    Statement    -> LocalDeclaration | IfStatement | ForStatement | Block
                  | PrintStatement ; | ReturnStatement ; | BreakStatement ;
                  | ContinueStatement ; | Identifier AssignOrCall ;
    IfStatement  -> if ( Expression ) Block ElseClause
    ElseClause   -> else ElseBody | ε
    ElseBody     -> IfStatement | Block
    Expression   -> LogicalOr
    LogicalOr    -> LogicalAnd LogicalOrPRE      (|| ...)
    LogicalAnd   -> Equality LogicalAndPRE       (&& ...)
    Equality     -> Relational EqualityPRE       (== != ...)
    Relational   -> Additive RelationalPRE       (< <= > >= ...)
    Additive     -> Multiplicative AdditivePRE   (+ - ...)
    Multiplicative -> Unary MultiplicativePRE    (* / % ...)
    Unary        -> ! Unary | - Unary | Primary
    Primary      -> ( Expression ) | Identifier CallSuffix | literals

Raises
------
GrammarError
    When two rows claim the same ``(NonTerminal, lookahead)`` pair.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import Union

from minic.minic_constants import EOF, LITERAL_TOKENS, TYPE_TOKENS
from minic.minic_errors import GrammarError


@dataclass(frozen=True)
class Terminal:
    """A token kind expected in the input."""

    kind: str

    def __str__(self) -> str:
        return self.kind


@dataclass(frozen=True)
class NonTerminal:
    """A grammar symbol that is expanded through the table."""

    name: str

    def __str__(self) -> str:
        return self.name


Symbol = Union[Terminal, NonTerminal]
Production = tuple[Symbol, ...]
Rule = tuple[NonTerminal, tuple[str, ...], Production]


def symbol_name(symbol: Symbol) -> str:
    if isinstance(symbol, Terminal):
        return symbol.kind
    if isinstance(symbol, NonTerminal):
        return symbol.name
    raise TypeError(f"Not a grammar symbol: {symbol!r}")


# Non-terminals

PROGRAM = NonTerminal("Program")
DECLARATIONS = NonTerminal("Declarations")
DECLARATION = NonTerminal("Declaration")
VAR_OR_FUNC = NonTerminal("VarOrFunc")
VAR_OR_FUNC_REST = NonTerminal("VarOrFuncRest")
VAR_DECL_REST = NonTerminal("VarDeclRest")
FUNCTION_REST = NonTerminal("FunctionRest")
TYPE = NonTerminal("Type")
MORE_IDENTIFIERS = NonTerminal("MoreIdentifiers")
INITIALIZATION = NonTerminal("Initialization")
PARAMETERS = NonTerminal("Parameters")
PARAMETER_LIST = NonTerminal("ParameterList")
PARAMETER = NonTerminal("Parameter")
MORE_PARAMETERS = NonTerminal("MoreParameters")
BLOCK = NonTerminal("Block")
STATEMENTS = NonTerminal("Statements")
STATEMENT = NonTerminal("Statement")
LOCAL_DECLARATION = NonTerminal("LocalDeclaration")
ASSIGN_OR_CALL = NonTerminal("AssignOrCall")
ASSIGNMENT = NonTerminal("Assignment")
IF_STATEMENT = NonTerminal("IfStatement")
ELSE_CLAUSE = NonTerminal("ElseClause")
ELSE_BODY = NonTerminal("ElseBody")
FOR_STATEMENT = NonTerminal("ForStatement")
FOR_INIT = NonTerminal("ForInit")
FOR_DECLARATION = NonTerminal("ForDeclaration")
FOR_CONDITION = NonTerminal("ForCondition")
FOR_UPDATE = NonTerminal("ForUpdate")
PRINT_STATEMENT = NonTerminal("PrintStatement")
PRINT_ARGUMENTS = NonTerminal("PrintArguments")
MORE_PRINT_ARGUMENTS = NonTerminal("MorePrintArguments")
RETURN_STATEMENT = NonTerminal("ReturnStatement")
RETURN_VALUE = NonTerminal("ReturnValue")
BREAK_STATEMENT = NonTerminal("BreakStatement")
CONTINUE_STATEMENT = NonTerminal("ContinueStatement")
EXPRESSION = NonTerminal("Expression")
LOGICAL_OR = NonTerminal("LogicalOr")
LOGICAL_OR_PRE = NonTerminal("LogicalOrPRE")
LOGICAL_AND = NonTerminal("LogicalAnd")
LOGICAL_AND_PRE = NonTerminal("LogicalAndPRE")
EQUALITY = NonTerminal("Equality")
EQUALITY_PRE = NonTerminal("EqualityPRE")
RELATIONAL = NonTerminal("Relational")
RELATIONAL_PRE = NonTerminal("RelationalPRE")
ADDITIVE = NonTerminal("Additive")
ADDITIVE_PRE = NonTerminal("AdditivePRE")
MULTIPLICATIVE = NonTerminal("Multiplicative")
MULTIPLICATIVE_PRE = NonTerminal("MultiplicativePRE")
UNARY = NonTerminal("Unary")
PRIMARY = NonTerminal("Primary")
CALL_SUFFIX = NonTerminal("CallSuffix")
ARGUMENTS = NonTerminal("Arguments")
MORE_ARGUMENTS = NonTerminal("MoreArguments")
IDENTIFIER = NonTerminal("Identifier")
INTEGER_LITERAL = NonTerminal("IntegerLiteral")
BOOLEAN_LITERAL = NonTerminal("BooleanLiteral")
CHARACTER_LITERAL = NonTerminal("CharacterLiteral")
STRING_LITERAL = NonTerminal("StringLiteral")

# Terminals used inside productions

T_INT = Terminal("INT")
T_BOOL = Terminal("BOOL")
T_CHAR = Terminal("CHAR")
T_IDENT = Terminal("IDENT")
T_NUMBER = Terminal("NUMBER")
T_TRUE = Terminal("TRUE")
T_FALSE = Terminal("FALSE")
T_CHARACTER = Terminal("CHARACTER")
T_STRING = Terminal("STRING")
T_SEMICOLON = Terminal("SEMICOLON")
T_COMMA = Terminal("COMMA")
T_ASSIGN = Terminal("ASSIGN")
T_LPAREN = Terminal("LPAREN")
T_RPAREN = Terminal("RPAREN")
T_LBRACE = Terminal("LBRACE")
T_RBRACE = Terminal("RBRACE")
T_LBRACK = Terminal("LBRACK")
T_RBRACK = Terminal("RBRACK")
T_IF = Terminal("IF")
T_ELSE = Terminal("ELSE")
T_FOR = Terminal("FOR")
T_PRINT = Terminal("PRINT")
T_RETURN = Terminal("RETURN")
T_BREAK = Terminal("BREAK")
T_CONTINUE = Terminal("CONTINUE")
T_OR = Terminal("OR")
T_AND = Terminal("AND")
T_EQ = Terminal("EQ")
T_NE = Terminal("NE")
T_LT = Terminal("LT")
T_LE = Terminal("LE")
T_GT = Terminal("GT")
T_GE = Terminal("GE")
T_PLUS = Terminal("PLUS")
T_SUB = Terminal("SUB")
T_MULT = Terminal("MULT")
T_DIV = Terminal("DIV")
T_MOD = Terminal("MOD")
T_NOT = Terminal("NOT")

# Lookahead groups

TYPES: tuple[str, ...] = TYPE_TOKENS

PRIMARY_FIRST: tuple[str, ...] = ("LPAREN", "IDENT") + LITERAL_TOKENS

EXPRESSION_FIRST: tuple[str, ...] = PRIMARY_FIRST + ("NOT", "SUB")

STATEMENT_FIRST: tuple[str, ...] = TYPES + (
    "IF",
    "FOR",
    "PRINT",
    "RETURN",
    "BREAK",
    "CONTINUE",
    "IDENT",
    "LBRACE",
)

# FOLLOW sets of the expression levels, innermost level last. EOF ends a
# stand-alone expression (`Parser.parse_expression`).
EXPRESSION_FOLLOW: tuple[str, ...] = ("SEMICOLON", "COMMA", "RPAREN", EOF)
LOGICAL_AND_FOLLOW: tuple[str, ...] = EXPRESSION_FOLLOW + ("OR",)
EQUALITY_FOLLOW: tuple[str, ...] = LOGICAL_AND_FOLLOW + ("AND",)
RELATIONAL_FOLLOW: tuple[str, ...] = EQUALITY_FOLLOW + ("EQ", "NE")
ADDITIVE_FOLLOW: tuple[str, ...] = RELATIONAL_FOLLOW + ("LT", "LE", "GT", "GE")
MULTIPLICATIVE_FOLLOW: tuple[str, ...] = ADDITIVE_FOLLOW + ("PLUS", "SUB")
UNARY_FOLLOW: tuple[str, ...] = MULTIPLICATIVE_FOLLOW + ("MULT", "DIV", "MOD")

EPSILON: Production = ()


RULES: tuple[Rule, ...] = (
    # Program structure
    (PROGRAM, TYPES + (EOF,), (DECLARATIONS,)),
    (DECLARATIONS, TYPES, (DECLARATION, DECLARATIONS)),
    (DECLARATIONS, (EOF,), EPSILON),
    (DECLARATION, TYPES, (TYPE, VAR_OR_FUNC)),
    (VAR_OR_FUNC, ("IDENT",), (IDENTIFIER, VAR_OR_FUNC_REST)),
    (
        VAR_OR_FUNC_REST,
        ("ASSIGN", "LBRACK", "COMMA", "SEMICOLON"),
        (VAR_DECL_REST,),
    ),
    (VAR_OR_FUNC_REST, ("LPAREN",), (FUNCTION_REST,)),
    (
        VAR_DECL_REST,
        ("ASSIGN", "LBRACK", "COMMA", "SEMICOLON"),
        (INITIALIZATION, MORE_IDENTIFIERS, T_SEMICOLON),
    ),
    (FUNCTION_REST, ("LPAREN",), (T_LPAREN, PARAMETERS, T_RPAREN, BLOCK)),
    # Types
    (TYPE, ("INT",), (T_INT,)),
    (TYPE, ("BOOL",), (T_BOOL,)),
    (TYPE, ("CHAR",), (T_CHAR,)),
    # Variable declarations
    (
        MORE_IDENTIFIERS,
        ("COMMA",),
        (T_COMMA, IDENTIFIER, INITIALIZATION, MORE_IDENTIFIERS),
    ),
    (MORE_IDENTIFIERS, ("SEMICOLON",), EPSILON),
    (INITIALIZATION, ("ASSIGN",), (T_ASSIGN, EXPRESSION)),
    (
        INITIALIZATION,
        ("LBRACK",),
        (T_LBRACK, INTEGER_LITERAL, T_RBRACK, INITIALIZATION),
    ),
    (INITIALIZATION, ("COMMA", "SEMICOLON"), EPSILON),
    # Function parameters
    (PARAMETERS, TYPES, (PARAMETER_LIST,)),
    (PARAMETERS, ("RPAREN",), EPSILON),
    (PARAMETER_LIST, TYPES, (PARAMETER, MORE_PARAMETERS)),
    (PARAMETER, TYPES, (TYPE, IDENTIFIER)),
    (MORE_PARAMETERS, ("COMMA",), (T_COMMA, PARAMETER, MORE_PARAMETERS)),
    (MORE_PARAMETERS, ("RPAREN",), EPSILON),
    # Blocks and statements
    (BLOCK, ("LBRACE",), (T_LBRACE, STATEMENTS, T_RBRACE)),
    (STATEMENTS, STATEMENT_FIRST, (STATEMENT, STATEMENTS)),
    (STATEMENTS, ("RBRACE",), EPSILON),
    (STATEMENT, TYPES, (LOCAL_DECLARATION,)),
    (STATEMENT, ("IF",), (IF_STATEMENT,)),
    (STATEMENT, ("FOR",), (FOR_STATEMENT,)),
    (STATEMENT, ("LBRACE",), (BLOCK,)),
    (STATEMENT, ("PRINT",), (PRINT_STATEMENT, T_SEMICOLON)),
    (STATEMENT, ("RETURN",), (RETURN_STATEMENT, T_SEMICOLON)),
    (STATEMENT, ("BREAK",), (BREAK_STATEMENT, T_SEMICOLON)),
    (STATEMENT, ("CONTINUE",), (CONTINUE_STATEMENT, T_SEMICOLON)),
    (STATEMENT, ("IDENT",), (IDENTIFIER, ASSIGN_OR_CALL, T_SEMICOLON)),
    (LOCAL_DECLARATION, TYPES, (TYPE, IDENTIFIER, VAR_DECL_REST)),
    (ASSIGN_OR_CALL, ("ASSIGN",), (T_ASSIGN, EXPRESSION)),
    (ASSIGN_OR_CALL, ("LPAREN",), (T_LPAREN, ARGUMENTS, T_RPAREN)),
    (ASSIGNMENT, ("IDENT",), (IDENTIFIER, T_ASSIGN, EXPRESSION)),
    # if / else if / else
    (
        IF_STATEMENT,
        ("IF",),
        (T_IF, T_LPAREN, EXPRESSION, T_RPAREN, BLOCK, ELSE_CLAUSE),
    ),
    (ELSE_CLAUSE, ("ELSE",), (T_ELSE, ELSE_BODY)),
    (ELSE_CLAUSE, STATEMENT_FIRST + ("RBRACE",), EPSILON),
    (ELSE_BODY, ("IF",), (IF_STATEMENT,)),
    (ELSE_BODY, ("LBRACE",), (BLOCK,)),
    # for loops
    (
        FOR_STATEMENT,
        ("FOR",),
        (
            T_FOR,
            T_LPAREN,
            FOR_INIT,
            T_SEMICOLON,
            FOR_CONDITION,
            T_SEMICOLON,
            FOR_UPDATE,
            T_RPAREN,
            BLOCK,
        ),
    ),
    (FOR_INIT, TYPES, (FOR_DECLARATION,)),
    (FOR_INIT, ("IDENT",), (ASSIGNMENT,)),
    (FOR_INIT, ("SEMICOLON",), EPSILON),
    (FOR_DECLARATION, TYPES, (TYPE, IDENTIFIER, INITIALIZATION)),
    (FOR_CONDITION, EXPRESSION_FIRST, (EXPRESSION,)),
    (FOR_CONDITION, ("SEMICOLON",), EPSILON),
    (FOR_UPDATE, ("IDENT",), (ASSIGNMENT,)),
    (FOR_UPDATE, ("RPAREN",), EPSILON),
    # print / return / break / continue
    (
        PRINT_STATEMENT,
        ("PRINT",),
        (T_PRINT, T_LPAREN, PRINT_ARGUMENTS, T_RPAREN),
    ),
    (PRINT_ARGUMENTS, EXPRESSION_FIRST, (EXPRESSION, MORE_PRINT_ARGUMENTS)),
    (PRINT_ARGUMENTS, ("RPAREN",), EPSILON),
    (
        MORE_PRINT_ARGUMENTS,
        ("COMMA",),
        (T_COMMA, EXPRESSION, MORE_PRINT_ARGUMENTS),
    ),
    (MORE_PRINT_ARGUMENTS, ("RPAREN",), EPSILON),
    (RETURN_STATEMENT, ("RETURN",), (T_RETURN, RETURN_VALUE)),
    (RETURN_VALUE, EXPRESSION_FIRST, (EXPRESSION,)),
    (RETURN_VALUE, ("SEMICOLON",), EPSILON),
    (BREAK_STATEMENT, ("BREAK",), (T_BREAK,)),
    (CONTINUE_STATEMENT, ("CONTINUE",), (T_CONTINUE,)),
    # Expressions, loosest binding first
    (EXPRESSION, EXPRESSION_FIRST, (LOGICAL_OR,)),
    (LOGICAL_OR, EXPRESSION_FIRST, (LOGICAL_AND, LOGICAL_OR_PRE)),
    (LOGICAL_OR_PRE, ("OR",), (T_OR, LOGICAL_AND, LOGICAL_OR_PRE)),
    (LOGICAL_OR_PRE, EXPRESSION_FOLLOW, EPSILON),
    (LOGICAL_AND, EXPRESSION_FIRST, (EQUALITY, LOGICAL_AND_PRE)),
    (LOGICAL_AND_PRE, ("AND",), (T_AND, EQUALITY, LOGICAL_AND_PRE)),
    (LOGICAL_AND_PRE, LOGICAL_AND_FOLLOW, EPSILON),
    (EQUALITY, EXPRESSION_FIRST, (RELATIONAL, EQUALITY_PRE)),
    (EQUALITY_PRE, ("EQ",), (T_EQ, RELATIONAL, EQUALITY_PRE)),
    (EQUALITY_PRE, ("NE",), (T_NE, RELATIONAL, EQUALITY_PRE)),
    (EQUALITY_PRE, EQUALITY_FOLLOW, EPSILON),
    (RELATIONAL, EXPRESSION_FIRST, (ADDITIVE, RELATIONAL_PRE)),
    (RELATIONAL_PRE, ("LT",), (T_LT, ADDITIVE, RELATIONAL_PRE)),
    (RELATIONAL_PRE, ("LE",), (T_LE, ADDITIVE, RELATIONAL_PRE)),
    (RELATIONAL_PRE, ("GT",), (T_GT, ADDITIVE, RELATIONAL_PRE)),
    (RELATIONAL_PRE, ("GE",), (T_GE, ADDITIVE, RELATIONAL_PRE)),
    (RELATIONAL_PRE, RELATIONAL_FOLLOW, EPSILON),
    (ADDITIVE, EXPRESSION_FIRST, (MULTIPLICATIVE, ADDITIVE_PRE)),
    (ADDITIVE_PRE, ("PLUS",), (T_PLUS, MULTIPLICATIVE, ADDITIVE_PRE)),
    (ADDITIVE_PRE, ("SUB",), (T_SUB, MULTIPLICATIVE, ADDITIVE_PRE)),
    (ADDITIVE_PRE, ADDITIVE_FOLLOW, EPSILON),
    (MULTIPLICATIVE, EXPRESSION_FIRST, (UNARY, MULTIPLICATIVE_PRE)),
    (MULTIPLICATIVE_PRE, ("MULT",), (T_MULT, UNARY, MULTIPLICATIVE_PRE)),
    (MULTIPLICATIVE_PRE, ("DIV",), (T_DIV, UNARY, MULTIPLICATIVE_PRE)),
    (MULTIPLICATIVE_PRE, ("MOD",), (T_MOD, UNARY, MULTIPLICATIVE_PRE)),
    (MULTIPLICATIVE_PRE, MULTIPLICATIVE_FOLLOW, EPSILON),
    (UNARY, ("NOT",), (T_NOT, UNARY)),
    (UNARY, ("SUB",), (T_SUB, UNARY)),
    (UNARY, PRIMARY_FIRST, (PRIMARY,)),
    (PRIMARY, ("LPAREN",), (T_LPAREN, EXPRESSION, T_RPAREN)),
    (PRIMARY, ("IDENT",), (IDENTIFIER, CALL_SUFFIX)),
    (PRIMARY, ("NUMBER",), (INTEGER_LITERAL,)),
    (PRIMARY, ("TRUE", "FALSE"), (BOOLEAN_LITERAL,)),
    (PRIMARY, ("CHARACTER",), (CHARACTER_LITERAL,)),
    (PRIMARY, ("STRING",), (STRING_LITERAL,)),
    (CALL_SUFFIX, ("LPAREN",), (T_LPAREN, ARGUMENTS, T_RPAREN)),
    (CALL_SUFFIX, UNARY_FOLLOW, EPSILON),
    (ARGUMENTS, EXPRESSION_FIRST, (EXPRESSION, MORE_ARGUMENTS)),
    (ARGUMENTS, ("RPAREN",), EPSILON),
    (MORE_ARGUMENTS, ("COMMA",), (T_COMMA, EXPRESSION, MORE_ARGUMENTS)),
    (MORE_ARGUMENTS, ("RPAREN",), EPSILON),
    # Leaves
    (IDENTIFIER, ("IDENT",), (T_IDENT,)),
    (INTEGER_LITERAL, ("NUMBER",), (T_NUMBER,)),
    (BOOLEAN_LITERAL, ("TRUE",), (T_TRUE,)),
    (BOOLEAN_LITERAL, ("FALSE",), (T_FALSE,)),
    (CHARACTER_LITERAL, ("CHARACTER",), (T_CHARACTER,)),
    (STRING_LITERAL, ("STRING",), (T_STRING,)),
)


class GrammarTable:
    """
    Read-only mapping ``(NonTerminal, token kind) -> Production``.

    The table is flattened from :data:`RULES` once, at construction, and never
    mutated afterwards, so one instance may be shared by any number of parsers.

    Attributes
    ----------
    start : NonTerminal
        The start symbol a parse begins with.

    Raises
    ------
    GrammarError
        If two rules claim the same ``(NonTerminal, lookahead)`` pair.
    """

    def __init__(
        self, rules: Iterable[Rule] = RULES, start: NonTerminal = PROGRAM
    ) -> None:
        entries: dict[tuple[NonTerminal, str], Production] = {}
        for lhs, lookaheads, production in rules:
            for kind in lookaheads:
                key = (lhs, kind)
                if key in entries:
                    raise GrammarError(
                        f"Conflicting rules for {lhs} on {kind}: "
                        f"{_format_production(entries[key])} vs {_format_production(production)}",
                        conflicts=[key],
                    )
                entries[key] = tuple(production)
        self.start = start
        self._entries = MappingProxyType(entries)

    def lookup(self, nonterminal: NonTerminal, kind: str) -> Production | None:
        """Returns the production for ``(nonterminal, kind)``, or None when there is no rule."""
        return self._entries.get((nonterminal, kind))

    def expected(self, nonterminal: NonTerminal) -> list[str]:
        """Returns the sorted token kinds that have a rule for `nonterminal`."""
        return sorted(kind for nt, kind in self._entries if nt == nonterminal)

    def nonterminals(self) -> set[NonTerminal]:
        """Returns every non-terminal that owns at least one table entry."""
        return {nt for nt, _ in self._entries}

    def productions(self, nonterminal: NonTerminal) -> list[Production]:
        """Returns the distinct productions of `nonterminal` in table order."""
        seen: list[Production] = []
        for (nt, _), production in self._entries.items():
            if nt == nonterminal and production not in seen:
                seen.append(production)
        return seen

    def items(self) -> Iterator[tuple[tuple[NonTerminal, str], Production]]:
        """Iterates over `((nonterminal, kind), production)` entries in table order."""
        return iter(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"GrammarTable(start={self.start}, entries={len(self)})"


def _format_production(production: Production) -> str:
    if not production:
        return "ε"
    return " ".join(symbol_name(s) for s in production)


__all__ = [
    "EXPRESSION",
    "PROGRAM",
    "RULES",
    "GrammarTable",
    "NonTerminal",
    "Production",
    "Symbol",
    "Terminal",
    "symbol_name",
]
