import pytest

from exprcalc.tokenizer import Token, TokenizerError, TokenType, fold_unary_minus, tokenize, untokenize


def lexemes(code: str) -> list[str]:
    return [t.lexeme for t in tokenize(code)]


@pytest.mark.parametrize(
    "code, expected_lexemes",
    [
        pytest.param("", []),
        pytest.param("  \t ", []),
        pytest.param("1 + 2", ["1", "+", "2"]),
        pytest.param("1+2", ["1", "+", "2"]),
        pytest.param("12.5*(x+1)", ["12.5", "*", "(", "x", "+", "1", ")"]),
        pytest.param("1.", ["1."]),
        pytest.param("foo_bar.baz = 3", ["foo_bar.baz", "=", "3"]),
        pytest.param("((", ["(", "("]),
        pytest.param("2x", ["2", "x"]),
        pytest.param("1e5", ["1", "e5"], id="exponent-splits-while-building"),
        pytest.param("5 % 2", ["5", "%", "2"]),
        pytest.param("a ^ b", ["a", "^", "b"]),
        pytest.param("inf", ["inf"]),
        pytest.param("-Infinity", ["-Infinity"]),
        pytest.param("info", ["info"]),
        # unary minus folding
        pytest.param("-3", ["-3"]),
        pytest.param("2*-3", ["2", "*", "-3"]),
        pytest.param("1 - 2", ["1", "-", "2"]),
        pytest.param("1 - -2", ["1", "-", "-2"]),
        pytest.param("--3", ["-", "-3"]),
        pytest.param("- - 3", ["-", "-3"]),
        pytest.param("-(1)", ["-", "(", "1", ")"]),
        pytest.param("-x", ["-", "x"]),
        pytest.param("x -3", ["x", "-3"], id="minus-after-variable-folds"),
        pytest.param("(1) - 3", ["(", "1", ")", "-3"], id="minus-after-bracket-folds"),
    ],
)
def test_tokenize(code: str, expected_lexemes: list[str]) -> None:
    assert lexemes(code) == expected_lexemes


def test_token_types() -> None:
    assert [t.type for t in tokenize("x = (1 + 2.5) * -3 / y ^ 2 % 4")] == [
        TokenType.IDENTIFIER,
        TokenType.EQUAL,
        TokenType.BRACKET_OPEN,
        TokenType.NUMBER,
        TokenType.PLUS,
        TokenType.NUMBER,
        TokenType.BRACKET_CLOSE,
        TokenType.STAR,
        TokenType.NUMBER,
        TokenType.SLASH,
        TokenType.IDENTIFIER,
        TokenType.CARET,
        TokenType.NUMBER,
        TokenType.PERCENT,
        TokenType.NUMBER,
    ]


@pytest.mark.parametrize(
    "token_type, rank",
    [
        (TokenType.PLUS, 1),
        (TokenType.MINUS, 1),
        (TokenType.STAR, 2),
        (TokenType.SLASH, 2),
        (TokenType.CARET, 3),
        (TokenType.NUMBER, 4),
        (TokenType.IDENTIFIER, 4),
        (TokenType.PERCENT, 7),
        (TokenType.EQUAL, 7),
        (TokenType.BRACKET_OPEN, 7),
        (TokenType.BRACKET_CLOSE, 7),
    ],
)
def test_rank(token_type: TokenType, rank: int) -> None:
    assert token_type.rank == rank


def test_number_value() -> None:
    assert tokenize("-2.5")[0].value == -2.5
    with pytest.raises(ValueError):
        Token(type=TokenType.PLUS, lexeme="+").value


def test_fold_unary_minus() -> None:
    minus = Token(TokenType.MINUS, "-")
    three = Token(TokenType.NUMBER, "3")
    one = Token(TokenType.NUMBER, "1")
    x = Token(TokenType.IDENTIFIER, "x")

    assert fold_unary_minus([minus, three]) == [Token(TokenType.NUMBER, "-3")]
    assert fold_unary_minus([one, minus, three]) == [one, minus, three]
    assert fold_unary_minus([x, minus, three]) == [x, Token(TokenType.NUMBER, "-3")]
    assert fold_unary_minus([minus, x]) == [minus, x]
    assert fold_unary_minus([minus]) == [minus]


@pytest.mark.parametrize(
    "code, error_char_idx",
    [
        pytest.param("$", 0),
        pytest.param("1 $ 2", 2),
        pytest.param("1$", 1),
        pytest.param("1$ 2", 1),
        pytest.param("x = 3 & 4", 6),
        pytest.param(".5", 0),
        pytest.param("é", 0),
    ],
)
def test_tokenize_error(code: str, error_char_idx: int) -> None:
    with pytest.raises(TokenizerError) as exc_info:
        tokenize(code)
    assert exc_info.value.error_char_idx == error_char_idx


def test_tokenize_error_message() -> None:
    with pytest.raises(TokenizerError) as exc_info:
        tokenize("1 + $")
    assert str(exc_info.value) == "\n".join(
        [
            "[Tokenizer error] Unexpected character: '$'",
            "1 + $",
            "    ^",
        ]
    )


def test_tokenize_error_message_clips_long_input() -> None:
    code = "a + b + c + d + e + $ + f + g + h + i"
    with pytest.raises(TokenizerError) as exc_info:
        tokenize(code)
    lines = str(exc_info.value).splitlines()
    assert lines[1] == "...+ d + e + $ + f + g ..."
    assert lines[2].index("^") == lines[1].index("$")


def test_untokenize() -> None:
    assert untokenize(tokenize("x=(1+2)*-3")) == "x = ( 1 + 2 ) * -3"


@pytest.mark.parametrize(
    "code, token_type",
    [
        pytest.param("inf", TokenType.NUMBER),
        pytest.param("infinity", TokenType.NUMBER),
        pytest.param("NaN", TokenType.NUMBER),
        pytest.param("in", TokenType.IDENTIFIER),
        pytest.param("nano", TokenType.IDENTIFIER),
    ],
)
def test_special_float_words(code: str, token_type: TokenType) -> None:
    assert [t.type for t in tokenize(code)] == [token_type]
