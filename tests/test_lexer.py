import pytest
from hypothesis import given
from hypothesis import strategies as st

from asmtree.asmtree_constants import REGISTERS
from asmtree.asmtree_errors import LexicalError
from asmtree.asmtree_lexer import CharacterStream, Lexer, Token, tokenize


def types(source: str) -> list[str]:
    return [tok.type for tok in tokenize(source)]


def test_simple_instruction_tokens() -> None:
    assert types("mov rax, rbx") == ["IDENT", "REGISTER", "COMMA", "REGISTER", "EOF"]


def test_single_char_tokens() -> None:
    code = ", : [ ] ( ) + - * / % $"
    expected = [
        "COMMA",
        "COLON",
        "LBRACK",
        "RBRACK",
        "LPAREN",
        "RPAREN",
        "PLUS",
        "SUB",
        "MULT",
        "DIV",
        "MOD",
        "DOLLAR",
        "EOF",
    ]
    assert types(code) == expected


def test_decimal_number_token() -> None:
    tok = tokenize("123")[0]
    assert tok.type == "NUMBER"
    assert tok.value == "123"


def test_hex_number_token_keeps_prefix() -> None:
    tok = tokenize("0x1F")[0]
    assert tok.type == "HEX_NUMBER"
    assert tok.value == "0x1F"


def test_uppercase_hex_prefix() -> None:
    tok = tokenize("0XfF")[0]
    assert tok.type == "HEX_NUMBER"
    assert int(tok.value, 16) == 255


def test_digit_separators_are_stripped() -> None:
    assert tokenize("1_000_000")[0].value == "1000000"
    assert tokenize("0xFF_FF")[0].value == "0xFFFF"


def test_hex_prefix_without_digits_raises() -> None:
    with pytest.raises(LexicalError, match="Hex literal has no digits"):
        tokenize("mov rax, 0x")


def test_zero_is_decimal() -> None:
    tok = tokenize("0")[0]
    assert tok.type == "NUMBER"
    assert tok.value == "0"


@pytest.mark.parametrize("name", ["rax", "RAX", "Eax", "r15b", "sil", "fs", "rip"])
def test_registers_case_insensitive(name: str) -> None:
    tok = tokenize(name)[0]
    assert tok.type == "REGISTER"
    assert tok.value == name


def test_identifier_keeps_case() -> None:
    tok = tokenize("MyLabel_2")[0]
    assert tok.type == "IDENT"
    assert tok.value == "MyLabel_2"


def test_identifier_starting_with_underscore() -> None:
    assert tokenize("_start")[0] == Token("IDENT", "_start", 1, 1)


def test_register_prefix_is_identifier() -> None:
    assert tokenize("raxx")[0].type == "IDENT"


@pytest.mark.parametrize(
    "source,expected",
    [
        ("byte ptr", "BYTE_PTR"),
        ("word ptr", "WORD_PTR"),
        ("dword ptr", "DWORD_PTR"),
        ("qword ptr", "QWORD_PTR"),
        ("QWORD PTR", "QWORD_PTR"),
        ("Dword\t \tPtr", "DWORD_PTR"),
    ],
)
def test_size_specifiers(source: str, expected: str) -> None:
    toks = tokenize(source)
    assert [t.type for t in toks] == [expected, "EOF"]
    assert toks[0].value == source.split()[0].lower() + " ptr"


def test_size_specifier_followed_by_operand() -> None:
    assert types("qword ptr [rbp]") == [
        "QWORD_PTR",
        "LBRACK",
        "REGISTER",
        "RBRACK",
        "EOF",
    ]


def test_size_word_without_ptr_is_identifier() -> None:
    toks = tokenize("byte pointer")
    assert [(t.type, t.value) for t in toks[:2]] == [
        ("IDENT", "byte"),
        ("IDENT", "pointer"),
    ]


def test_failed_size_lookahead_restores_position() -> None:
    toks = tokenize("word  x")
    assert toks[0] == Token("IDENT", "word", 1, 1)
    assert toks[1] == Token("IDENT", "x", 1, 7)


def test_size_lookahead_does_not_cross_newline() -> None:
    toks = tokenize("byte\nptr")
    assert [t.type for t in toks] == ["IDENT", "NEWLINE", "IDENT", "EOF"]
    assert toks[2].line == 2


def test_size_lookahead_at_end_of_input() -> None:
    assert types("qword ") == ["IDENT", "EOF"]


def test_match_word_ahead_leaves_stream_untouched_on_failure() -> None:
    stream = CharacterStream("byte   ptx")
    lexer = Lexer(stream)
    for _ in range(4):
        lexer.advance()
    before = stream.snapshot()
    assert not lexer.match_word_ahead("ptr")
    assert stream.snapshot() == before


def test_comment_tokens() -> None:
    toks = tokenize("nop ; trailing\n# full line")
    assert [t.type for t in toks] == ["IDENT", "COMMENT", "NEWLINE", "COMMENT", "EOF"]
    assert toks[1].value == "; trailing"
    assert toks[3].value == "# full line"


def test_comment_does_not_consume_newline() -> None:
    toks = tokenize("; c\nret")
    assert toks[1].type == "NEWLINE"
    assert toks[2] == Token("IDENT", "ret", 2, 1)


def test_whitespace_is_skipped_but_newline_is_token() -> None:
    assert types(" \t\r\n") == ["NEWLINE", "EOF"]


def test_string_tokens() -> None:
    toks = tokenize("db \"hello\", 'it'")
    assert toks[1] == Token("STRING", "hello", 1, 4)
    assert toks[3].type == "STRING"
    assert toks[3].value == "it"


def test_escape_sequences_kept_verbatim() -> None:
    tok = tokenize(r'"a\"b\n"')[0]
    assert tok.type == "STRING"
    assert tok.value == r"a\"b\n"


@pytest.mark.parametrize("source", ['"abc', "'abc\nret", '"abc\\'])
def test_unterminated_string_raises(source: str) -> None:
    with pytest.raises(LexicalError, match="Unterminated string"):
        tokenize(source)


def test_unexpected_character_raises_with_position() -> None:
    with pytest.raises(LexicalError) as excinfo:
        tokenize("mov rax, rbx\nadd rax, @")
    err = excinfo.value
    assert err.line == 2
    assert err.column == 10
    assert "Unexpected character '@' at line 2, col 10" in str(err)


def test_lexical_error_is_a_syntax_error() -> None:
    with pytest.raises(SyntaxError):
        tokenize("~")


def test_line_and_column_tracking() -> None:
    toks = tokenize("mov rax, 1\n  add rbx, 2")
    add = toks[5]
    assert add.value == "add"
    assert (add.line, add.col) == (2, 3)
    newline = toks[4]
    assert (newline.line, newline.col) == (1, 11)


def test_eof_token_position() -> None:
    toks = tokenize("nop\n")
    assert toks[-1] == Token("EOF", "", 2, 1)


def test_empty_input_returns_eof() -> None:
    assert tokenize("") == [Token("EOF", "", 1, 1)]


def test_next_token_after_eof_keeps_returning_eof() -> None:
    lexer = Lexer(CharacterStream("x"))
    assert lexer.next_token().type == "IDENT"
    assert lexer.next_token().type == "EOF"
    assert lexer.next_token().type == "EOF"


def test_character_stream_methods() -> None:
    stream = CharacterStream("a\nb")
    assert stream.peek() == "a"
    assert stream.next() == "a"
    assert (stream.line, stream.column) == (1, 2)
    assert stream.next() == "\n"
    assert (stream.line, stream.column) == (2, 1)
    assert stream.peek(5) == ""
    stream.next()
    assert stream.end_of_file()


def test_character_stream_restore() -> None:
    stream = CharacterStream("abc")
    state = stream.snapshot()
    stream.next()
    stream.next()
    stream.restore(state)
    assert stream.snapshot() == (0, 1, 1)
    assert stream.peek() == "a"


def test_character_stream_next_past_eof_raises() -> None:
    stream = CharacterStream("")
    with pytest.raises(EOFError, match="Attempted to read past end of source"):
        stream.next()


def test_token_repr_eq_and_hash() -> None:
    t1 = Token("NUMBER", "42", 1, 2)
    t2 = Token("NUMBER", "42", 1, 2)
    t3 = Token("IDENT", "x")

    assert repr(t1) == "Token(NUMBER, '42')"
    assert t1 == t2
    assert t1 != t3
    assert len({t1, t2, t3}) == 2


def test_token_is_immutable() -> None:
    tok = Token("IDENT", "x")
    with pytest.raises(AttributeError):
        tok.value = "y"  # type: ignore[misc]


@given(st.sampled_from(sorted(REGISTERS)), st.randoms())  # type: ignore[misc]
def test_register_case_never_matters(name: str, rnd) -> None:  # type: ignore[no-untyped-def]
    mixed = "".join(c.upper() if rnd.random() < 0.5 else c for c in name)
    tok = tokenize(mixed)[0]
    assert tok.type == "REGISTER"
    assert tok.value == mixed


@given(st.integers(min_value=0, max_value=2**64 - 1))  # type: ignore[misc]
def test_hex_literal_value_survives(value: int) -> None:
    tok = tokenize(hex(value))[0]
    assert tok.type == "HEX_NUMBER"
    assert int(tok.value, 16) == value


@given(st.text(max_size=80))  # type: ignore[misc]
def test_lexer_only_fails_with_lexical_error(text: str) -> None:
    try:
        toks = tokenize(text)
    except LexicalError:
        return
    assert toks[-1].type == "EOF"
    assert all(tok.type != "EOF" for tok in toks[:-1])
