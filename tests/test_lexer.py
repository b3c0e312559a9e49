import pytest
from hypothesis import given
from hypothesis import strategies as st

from minic.minic_constants import keyword_tokens
from minic.minic_lexer import CharacterStream, Lexer, Token, tokenize


def types(source: str) -> list[str]:
    return [tok.type for tok in tokenize(source)]


def test_punctuation_and_operators() -> None:
    code = "( ) { } [ ] ; , = + - * / % !"
    assert types(code) == [
        "LPAREN",
        "RPAREN",
        "LBRACE",
        "RBRACE",
        "LBRACK",
        "RBRACK",
        "SEMICOLON",
        "COMMA",
        "ASSIGN",
        "PLUS",
        "SUB",
        "MULT",
        "DIV",
        "MOD",
        "NOT",
        "EOF",
    ]


def test_two_character_operators_longest_match() -> None:
    assert types("== != <= >= && || < >") == [
        "EQ",
        "NE",
        "LE",
        "GE",
        "AND",
        "OR",
        "LT",
        "GT",
        "EOF",
    ]


def test_le_and_ge_are_distinct() -> None:
    le, ge, _ = tokenize("<= >=")
    assert le.type != ge.type
    assert (le.value, ge.value) == ("<=", ">=")


def test_adjacent_operators_without_spaces() -> None:
    assert types("a<=-b") == ["IDENT", "LE", "SUB", "IDENT", "EOF"]
    assert types("x==!y") == ["IDENT", "EQ", "NOT", "IDENT", "EOF"]


@pytest.mark.parametrize("word", sorted(keyword_tokens))  # type: ignore[misc]
def test_keywords(word: str) -> None:
    tok = tokenize(word)[0]
    assert tok.type == keyword_tokens[word]
    assert tok.value == word


def test_keyword_prefix_is_identifier() -> None:
    assert types("integer iff _for for1") == ["IDENT"] * 4 + ["EOF"]


def test_number_tokens() -> None:
    dec, hexa, _ = tokenize("123 0x1F")
    assert (dec.type, dec.value) == ("NUMBER", "123")
    assert (hexa.type, hexa.value) == ("NUMBER", "0x1F")


def test_hex_prefix_without_digits_raises() -> None:
    with pytest.raises(SyntaxError, match="Invalid hexadecimal literal"):
        tokenize("0x;")


def test_character_literals() -> None:
    plain, escaped, _ = tokenize(r"'a' '\n'")
    assert (plain.type, plain.value) == ("CHARACTER", "a")
    assert (escaped.type, escaped.value) == ("CHARACTER", "\\n")


def test_empty_character_literal_raises() -> None:
    with pytest.raises(SyntaxError, match="Empty character literal"):
        tokenize("''")


def test_long_character_literal_raises() -> None:
    with pytest.raises(SyntaxError, match="Character literal too long"):
        tokenize("'ab'")


def test_unterminated_character_literal_raises() -> None:
    with pytest.raises(SyntaxError, match="Unterminated character literal"):
        tokenize("'a")


def test_string_keeps_escapes() -> None:
    tok = tokenize(r'"say \"hi\"\n"')[0]
    assert tok.type == "STRING"
    assert tok.value == r"say \"hi\"\n"


def test_unterminated_string_raises() -> None:
    with pytest.raises(SyntaxError, match="Unterminated string"):
        tokenize('"abc')


def test_string_may_not_span_lines() -> None:
    with pytest.raises(SyntaxError, match="Unterminated string"):
        tokenize('"abc\ndef"')


def test_comments_are_skipped() -> None:
    code = "int // trailing\n/* block\n comment */ x;"
    assert types(code) == ["INT", "IDENT", "SEMICOLON", "EOF"]


def test_unterminated_block_comment_raises() -> None:
    with pytest.raises(SyntaxError, match="Unterminated comment"):
        tokenize("int x; /* never closed")


def test_line_and_column_tracking() -> None:
    toks = tokenize("int x;\n  x = 1;")
    assert [(t.line, t.col) for t in toks] == [
        (1, 1),
        (1, 5),
        (1, 6),
        (2, 3),
        (2, 5),
        (2, 7),
        (2, 8),
        (2, 9),
    ]


def test_unknown_character_is_error_token() -> None:
    tok = tokenize("@")[0]
    assert tok.type == "ERROR"
    assert tok.value == "@"


def test_lone_ampersand_is_error_token() -> None:
    assert types("&") == ["ERROR", "EOF"]


@pytest.mark.parametrize(  # type: ignore[misc]
    "source,expected",
    [
        ("é", ["ERROR", "EOF"]),
        ("²", ["ERROR", "EOF"]),
        ("x²", ["IDENT", "ERROR", "EOF"]),
        ("naïve", ["IDENT", "ERROR", "IDENT", "EOF"]),
        ("1٣", ["NUMBER", "ERROR", "EOF"]),
    ],
)
def test_non_ascii_letters_and_digits_are_error_tokens(
    source: str, expected: list[str]
) -> None:
    assert types(source) == expected


def test_empty_input_is_single_eof() -> None:
    toks = tokenize("")
    assert len(toks) == 1
    assert toks[0].type == "EOF"


def test_lazy_tokenize_stops_after_eof() -> None:
    lexer = Lexer(CharacterStream("x"))
    stream = lexer.tokenize()
    assert next(stream).type == "IDENT"
    assert next(stream).type == "EOF"
    with pytest.raises(StopIteration):
        next(stream)


def test_character_stream_methods() -> None:
    cs = CharacterStream("ab")
    assert cs.current() == "a"
    assert cs.peek(1) == "b"
    assert cs.peek(5) == ""
    assert cs.next() == "a"
    assert cs.next() == "b"
    assert cs.end_of_file()
    assert cs.current() is None
    with pytest.raises(EOFError):
        cs.next()


def test_token_repr_and_eq() -> None:
    tok = Token("IDENT", "x", 1, 2)
    assert repr(tok) == "Token(IDENT, x)"
    assert tok == Token("IDENT", "x", 1, 2)
    assert tok != Token("IDENT", "x", 1, 3)
    assert tok != "IDENT"
    assert len({tok, Token("IDENT", "x", 1, 2)}) == 1


@given(st.text(alphabet=st.characters(blacklist_categories=["Cs"]), max_size=100))  # type: ignore[misc]
def test_lexer_ends_with_single_eof_or_raises_syntax_error(text: str) -> None:
    try:
        toks = tokenize(text)
    except SyntaxError:
        return
    assert toks[-1].type == "EOF"
    assert [t.type for t in toks].count("EOF") == 1
