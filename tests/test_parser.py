import logging

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import parse
from minic.minic_errors import (
    DiagnosticKind,
    InputNotFullyConsumed,
    ParseError,
    UnexpectedEndOfInput,
)
from minic.minic_grammar import GrammarTable, NonTerminal, Terminal
from minic.minic_lexer import Token, tokenize
from minic.minic_parser import ParseResult, Parser, TokenCursor, parse_source
from minic.minic_tree import ParseTreeNode


def function_body(result: ParseResult) -> ParseTreeNode:
    block = result.tree.find_all("Block")[0]
    statements = block.child("Statements")
    assert statements is not None
    return statements


# Scenarios


def test_function_with_one_declaration() -> None:
    result = parse("int main ( ) { int x = 2 ; }")
    assert result.ok
    assert result.diagnostics == []
    functions = result.tree.find_all("FunctionRest")
    assert len(functions) == 1
    body = function_body(result)
    declarations = body.find_all("LocalDeclaration")
    assert len(declarations) == 1
    assert declarations[0].child("Identifier").tokens() == ["x"]  # type: ignore[union-attr]
    assert result.tree.tokens() == [
        "int", "main", "(", ")", "{", "int", "x", "=", "2", ";", "}",
    ]


def test_missing_assign_recovers_with_one_diagnostic() -> None:
    result = parse("int main ( ) { int x 2 ; }")
    assert not result.ok
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.kind is DiagnosticKind.GRAMMAR_TABLE_MISS
    assert diagnostic.found == "NUMBER"
    assert (diagnostic.line, diagnostic.col) == (1, 22)
    assert "ASSIGN" in diagnostic.expected
    assert "SEMICOLON" in diagnostic.expected
    # The closing brace after the recovery point still matched.
    block = result.tree.find_all("Block")[0]
    assert block.children[-1].value == "}"
    assert not block.children[-1].error


def test_empty_function_body() -> None:
    result = parse("int main ( ) { }")
    assert result.ok
    body = function_body(result)
    assert body.children == []


def test_truncated_token_source_is_fatal() -> None:
    tokens = tokenize("int main ( ) {")[:-1]
    with pytest.raises(UnexpectedEndOfInput) as excinfo:
        Parser(tokens).parse()
    assert isinstance(excinfo.value, ParseError)
    assert isinstance(excinfo.value, SyntaxError)
    assert "Unexpected end of input" in str(excinfo.value)
    assert (excinfo.value.line, excinfo.value.col) == (1, 14)


def test_eof_only_gives_empty_declarations() -> None:
    result = Parser([Token("EOF", "EOF", 1, 1)]).parse()
    assert result.ok
    assert result.tree.name == "Program"
    [declarations] = result.tree.children
    assert declarations.name == "Declarations"
    assert declarations.children == []


# Structure


def test_child_count_matches_chosen_production(table: GrammarTable) -> None:
    result = parse(
        "int f(int a, bool b) { for (int i = 0; i < a; i = i + 1) { print(i, 'c'); } "
        'if (b) { return a; } else if (!b) { return -a; } else { f(1, true); } '
        'return a * (2 + 3) % 4; }'
    )
    assert result.ok
    for node in result.tree.walk():
        if node.is_terminal:
            assert node.children == []
            assert node.value is not None
            continue
        productions = table.productions(node.symbol)  # type: ignore[arg-type]
        assert tuple(child.symbol for child in node.children) in productions


def test_epsilon_expansion_leaves_childless_node() -> None:
    result = parse("int x;")
    assert result.ok
    initialization = result.tree.find_all("Initialization")[0]
    assert initialization.children == []
    more = result.tree.find_all("MoreIdentifiers")[0]
    assert more.children == []


def test_terminal_nodes_copy_token_positions() -> None:
    result = parse("int x;\nbool y = true;")
    leaves = [n for n in result.tree.walk() if n.is_terminal]
    assert [(n.value, n.line, n.col) for n in leaves] == [
        ("int", 1, 1),
        ("x", 1, 5),
        (";", 1, 6),
        ("bool", 2, 1),
        ("y", 2, 6),
        ("=", 2, 8),
        ("true", 2, 10),
        (";", 2, 14),
    ]


def test_global_declarations_with_arrays_and_lists() -> None:
    result = parse("int a[10], b = 3, c; char d = 'x'; bool e;")
    assert result.ok
    assert len(result.tree.find_all("Declaration")) == 3
    assert [n.tokens() for n in result.tree.find_all("Identifier")] == [
        ["a"], ["b"], ["c"], ["d"], ["e"],
    ]


def test_else_if_chain_parses() -> None:
    result = parse(
        "int main() { if (1 < 2) { } else if (2 <= 3) { } else if (3 >= 2) { } else { } }"
    )
    assert result.ok
    assert len(result.tree.find_all("IfStatement")) == 3
    assert len(result.tree.find_all("ElseBody")) == 3


def test_for_header_parts_are_optional() -> None:
    result = parse("int main() { for (;;) { break; } }")
    assert result.ok
    for_statement = result.tree.find_all("ForStatement")[0]
    for name in ("ForInit", "ForCondition", "ForUpdate"):
        part = for_statement.child(name)
        assert part is not None
        assert part.children == []


def test_operator_precedence_nesting() -> None:
    result = Parser(tokenize("1 + 2 * 3")).parse_expression()
    assert result.ok
    additive = result.tree.find_all("Additive")[0]
    # `2 * 3` sits under the AdditivePRE operand, not next to `1`.
    multiplication = additive.find_all("MultiplicativePRE")
    with_operator = [m for m in multiplication if m.children]
    assert len(with_operator) == 1
    assert with_operator[0].children[0].value == "*"


def test_parse_expression_calls_and_unary() -> None:
    result = Parser(tokenize("-f(1, x) == !done || (a && b)")).parse_expression()
    assert result.ok
    assert result.tree.name == "Expression"
    assert len(result.tree.find_all("CallSuffix")) == 5
    assert result.tree.tokens()[0] == "-"


def test_parse_expression_with_leftover_input() -> None:
    with pytest.raises(InputNotFullyConsumed):
        Parser(tokenize("1 ) 2")).parse_expression()


def test_tokens_after_eof_are_not_consumed() -> None:
    tokens = tokenize("int x;") + [Token("IDENT", "y", 2, 1)]
    with pytest.raises(InputNotFullyConsumed) as excinfo:
        Parser(tokens).parse()
    assert (excinfo.value.line, excinfo.value.col) == (2, 1)


def test_table_miss_recovers_at_eof() -> None:
    result = parse("int main( { }")
    assert [d.kind for d in result.diagnostics] == [DiagnosticKind.GRAMMAR_TABLE_MISS]
    assert result.diagnostics[0].expected == ("BOOL", "CHAR", "INT", "RPAREN")
    assert result.tree.find_all("Parameters")[0].error


def test_missing_paren_in_print_is_table_miss() -> None:
    result = parse("int main() { print(1; }")
    [diagnostic] = result.diagnostics
    assert diagnostic.kind is DiagnosticKind.GRAMMAR_TABLE_MISS
    assert diagnostic.expected == ("COMMA", "RPAREN")
    assert diagnostic.found == "SEMICOLON"


def test_missing_open_paren_is_terminal_mismatch() -> None:
    result = parse("int main() { if x) { } }")
    [diagnostic] = result.diagnostics
    assert diagnostic.kind is DiagnosticKind.TERMINAL_MISMATCH
    assert diagnostic.expected == ("LPAREN",)
    assert diagnostic.found == "IDENT"
    assert (diagnostic.line, diagnostic.col) == (1, 17)
    if_statement = result.tree.find_all("IfStatement")[0]
    assert [c.error for c in if_statement.children] == [False, True, True, False, False, False]
    assert if_statement.children[3].value == ")"


def test_parser_is_single_use() -> None:
    parser = Parser(tokenize("int x;"))
    parser.parse()
    with pytest.raises(RuntimeError):
        parser.parse()


def test_stacks_are_empty_after_parse() -> None:
    parser = Parser(tokenize("int x = 1;"))
    parser.parse()
    assert parser.stack == []
    assert parser.open_nodes == []


def test_parser_accepts_a_lazy_token_source() -> None:
    result = Parser(iter(tokenize("int x;"))).parse()
    assert result.ok


def test_custom_table_and_start_symbol() -> None:
    s = NonTerminal("S")
    table = GrammarTable([(s, ("IDENT",), (Terminal("IDENT"),))], start=s)
    result = Parser([Token("IDENT", "a", 1, 1), Token("EOF", "EOF", 1, 2)], table=table).parse()
    assert result.ok
    assert result.tree.tokens() == ["a"]


def test_unknown_symbol_on_stack_raises_type_error() -> None:
    s = NonTerminal("S")
    table = GrammarTable([(s, ("IDENT",), ("IDENT",))], start=s)  # type: ignore[list-item]
    with pytest.raises(TypeError):
        Parser(tokenize("a"), table=table).parse()


def test_token_cursor() -> None:
    cursor = TokenCursor([Token("IDENT", "a"), Token("EOF", "EOF")])
    assert cursor.peek() == Token("IDENT", "a")
    assert cursor.peek() == Token("IDENT", "a")
    assert cursor.advance() == Token("IDENT", "a")
    assert cursor.last == Token("IDENT", "a")
    assert cursor.advance().type == "EOF"
    assert cursor.peek() is None
    assert cursor.consumed == 2
    with pytest.raises(IndexError):
        cursor.advance()


def test_parse_source_propagates_lexer_errors() -> None:
    with pytest.raises(SyntaxError, match="Unterminated string"):
        parse_source('int main() { print("oops); }')


def test_diagnostics_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="minic.minic_parser"):
        parse("int main ( ) { int x 2 ; }")
    assert any("syntax error" in r.getMessage() for r in caplog.records)
    assert any("recovery" in r.getMessage() for r in caplog.records)


programs = st.sampled_from(
    [
        "int x;",
        "int main() { return 0; }",
        "int main() { int x 2 ; }",
        "bool f(int a) { if (a > 1) { return true; } return false; }",
        "int main() { for (i = 0; i < 3; i = i + 1) { continue; } }",
        "char c = 'a'; int main() { print(c, \"s\"); }",
        "int main() { x = ; y = 2; }",
    ]
)


@settings(max_examples=30)  # type: ignore[misc]
@given(programs)  # type: ignore[misc]
def test_parsing_is_deterministic(source: str) -> None:
    first = parse(source)
    second = parse(source)
    assert first.tree == second.tree
    assert first.diagnostics == second.diagnostics
