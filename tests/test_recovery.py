from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import parse
from minic.minic_constants import ALL_TOKENS, EOF
from minic.minic_errors import DiagnosticKind, ParseError
from minic.minic_lexer import Token, tokenize
from minic.minic_parser import Parser


def test_independent_errors_are_all_reported() -> None:
    source = (
        "int main() {\n"
        "  int a 1;\n"
        "  int b = 2;\n"
        "  b = * 3;\n"
        "  print(b);\n"
        "  if (b > ) { }\n"
        "}\n"
    )
    result = parse(source)
    assert [d.line for d in result.diagnostics] == [2, 4, 6]
    assert all(d.kind.is_syntax for d in result.diagnostics)


def test_statements_after_an_error_are_parsed_normally() -> None:
    result = parse("int main() { int a 1; print(a); }")
    assert len(result.diagnostics) == 1
    prints = result.tree.find_all("PrintStatement")
    assert len(prints) == 1
    assert not any(node.error for node in prints[0].walk())
    assert prints[0].tokens() == ["print", "(", "a", ")"]


def test_discarded_symbols_stay_as_error_placeholders() -> None:
    result = parse("int main() { if x) { } }")
    expression = result.tree.find_all("IfStatement")[0].children[2]
    assert expression.name == "Expression"
    assert expression.error
    assert expression.children == []


def test_nodes_outside_the_error_region_are_not_flagged() -> None:
    result = parse("int g; int main() { int a 1; }")
    first_declaration = result.tree.find_all("Declaration")[0]
    assert not any(node.error for node in first_declaration.walk())


def test_sync_token_consumed_when_not_pending() -> None:
    # The `;` belongs to the production that could not be chosen, so it is not pending.
    result = parse("int x 5; int y;")
    assert len(result.diagnostics) == 1
    assert [i.text() for i in result.tree.find_all("Identifier")] == ["x", "y"]


def test_error_at_eof_discards_the_rest_of_the_derivation() -> None:
    result = parse("int main() { print(1 + }")
    assert len(result.diagnostics) == 1
    # Nothing was left to match the closing brace.
    block = result.tree.find_all("Block")[0]
    assert block.children[-1].error
    assert block.children[-1].value is None


def test_error_tokens_from_the_lexer_are_skipped() -> None:
    result = parse("int main() { int a = 1 @ 2; int b; }")
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].found == "ERROR"
    assert [i.text() for i in result.tree.find_all("Identifier")] == ["main", "a", "b"]


def test_diagnostic_string_form() -> None:
    result = parse("int x 5;")
    assert str(result.diagnostics[0]) == (
        "1:7: grammar-table-miss: No rule for VarOrFuncRest with NUMBER '5'"
    )
    assert result.diagnostics[0].to_dict()["kind"] == "grammar-table-miss"


kinds = sorted(ALL_TOKENS - {EOF})


@settings(max_examples=200, deadline=None)  # type: ignore[misc]
@given(st.lists(st.sampled_from(kinds), max_size=40))  # type: ignore[misc]
def test_recovery_always_terminates(token_kinds: list[str]) -> None:
    tokens = [Token(kind, kind.lower(), 1, i + 1) for i, kind in enumerate(token_kinds)]
    tokens.append(Token(EOF, EOF, 1, len(tokens) + 1))
    try:
        result = Parser(tokens).parse()
    except ParseError:
        return
    assert result.tree.name == "Program"
    # Each diagnostic is followed by at least one consumed token or the end of the stack.
    assert len(result.diagnostics) <= len(tokens)


@settings(max_examples=100, deadline=None)  # type: ignore[misc]
@given(st.text(alphabet="intbolchar xy=;,(){}[]+-*/!<>&|0123456789'\"", max_size=60))  # type: ignore[misc]
def test_random_source_never_crashes(source: str) -> None:
    try:
        tokens = tokenize(source)
    except SyntaxError:
        return
    try:
        Parser(tokens).parse()
    except ParseError as exc:
        assert exc.line >= 0
