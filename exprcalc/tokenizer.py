import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional

from exprcalc.utils import PrintableEnum

logger = logging.getLogger(__name__)


@dataclass
class TokenizerError(Exception):
    errmsg: str
    code: str
    error_char_idx: int

    def __str__(self) -> str:
        print_start_idx = max(0, self.error_char_idx - 10)
        print_ellipsis_pre = print_start_idx > 0
        print_end_idx = min(len(self.code), self.error_char_idx + 10)
        print_ellipsis_post = print_end_idx < len(self.code)
        return "\n".join(
            [
                f"[Tokenizer error] {self.errmsg}",
                (
                    ("..." if print_ellipsis_pre else "")
                    + f"{self.code[print_start_idx:print_end_idx]}"
                    + ("..." if print_ellipsis_post else "")
                ),
                " " * (self.error_char_idx - print_start_idx + (3 if print_ellipsis_pre else 0)) + "^",
            ]
        )


class TokenType(PrintableEnum):
    NUMBER = enum.auto()
    IDENTIFIER = enum.auto()
    PLUS = enum.auto()
    MINUS = enum.auto()
    STAR = enum.auto()
    SLASH = enum.auto()
    PERCENT = enum.auto()
    CARET = enum.auto()
    EQUAL = enum.auto()
    BRACKET_OPEN = enum.auto()
    BRACKET_CLOSE = enum.auto()

    @property
    def rank(self) -> int:
        """Binding precedence used by the parser, lower ranks end up closer to the AST root"""
        return _TOKEN_RANKS[self]


_TOKEN_RANKS: dict[TokenType, int] = {
    TokenType.PLUS: 1,
    TokenType.MINUS: 1,
    TokenType.STAR: 2,
    TokenType.SLASH: 2,
    TokenType.CARET: 3,
    TokenType.NUMBER: 4,
    TokenType.IDENTIFIER: 4,
    TokenType.PERCENT: 7,
    TokenType.EQUAL: 7,
    TokenType.BRACKET_OPEN: 7,
    TokenType.BRACKET_CLOSE: 7,
}


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str

    @property
    def value(self) -> float:
        if self.type is not TokenType.NUMBER:
            raise ValueError(f"{self} is not a number")
        return float(self.lexeme)

    def __str__(self) -> str:
        return f"<{self.type}>{self.lexeme}"


SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "^": TokenType.CARET,
    "=": TokenType.EQUAL,
    "(": TokenType.BRACKET_OPEN,
    ")": TokenType.BRACKET_CLOSE,
}

# unsigned, so that "+3" never merges into a single number while the builder grows;
# inf, infinity and nan are spelled as numbers in any case
_NUMBER_RE = re.compile(r"(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|(?i:inf|infinity|nan)")
# periods are accepted after the first character, e.g. "a.b"
_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")


def classify(lexeme: str) -> Optional[Token]:
    """Returns the token spelled by the whole lexeme, None if it is not a valid token"""
    if _NUMBER_RE.fullmatch(lexeme):
        return Token(type=TokenType.NUMBER, lexeme=lexeme)
    if _IDENTIFIER_RE.fullmatch(lexeme):
        return Token(type=TokenType.IDENTIFIER, lexeme=lexeme)
    if lexeme in SINGLE_CHAR_TOKENS:
        return Token(type=SINGLE_CHAR_TOKENS[lexeme], lexeme=lexeme)
    return None


def _finalize(lexeme: str, code: str, start_idx: int) -> Token:
    token = classify(lexeme)
    if token is None:
        raise TokenizerError(f"Unrecognised token: {lexeme!r}", code=code, error_char_idx=start_idx)
    return token


def tokenize(code: str) -> list[Token]:
    """Grows each token one character at a time, a lone "-" is emitted right away"""
    tokens: list[Token] = []
    builder = ""
    builder_start_idx = 0
    for i, char in enumerate(code):
        if char.isspace():
            if builder:
                tokens.append(_finalize(builder, code, builder_start_idx))
                builder = ""
            continue

        if not builder:
            builder_start_idx = i
        builder += char

        if classify(builder) is None:
            prefix = builder[:-1]
            if not prefix:
                raise TokenizerError(f"Unexpected character: {char!r}", code=code, error_char_idx=i)
            tokens.append(_finalize(prefix, code, builder_start_idx))
            builder = char
            builder_start_idx = i

        if builder == "-":
            tokens.append(Token(type=TokenType.MINUS, lexeme="-"))
            builder = ""

    if builder:
        tokens.append(_finalize(builder, code, builder_start_idx))

    tokens = fold_unary_minus(tokens)
    logger.debug("Tokenized %r: %s", code, " ".join(str(t) for t in tokens))
    return tokens


def _negated(token: Token) -> Token:
    if token.lexeme.startswith("-"):
        return Token(type=TokenType.NUMBER, lexeme=token.lexeme[1:])
    return Token(type=TokenType.NUMBER, lexeme="-" + token.lexeme)


def fold_unary_minus(tokens: list[Token]) -> list[Token]:
    # folds after anything but a number, so "x -3" becomes x followed by -3
    result = list(tokens)
    i = 0
    while i < len(result):
        is_minus = result[i].type is TokenType.MINUS
        is_prev_not_number = i == 0 or result[i - 1].type is not TokenType.NUMBER
        is_next_number = i + 1 < len(result) and result[i + 1].type is TokenType.NUMBER
        if is_minus and is_prev_not_number and is_next_number:
            result[i] = _negated(result[i + 1])
            del result[i + 1]
        i += 1
    return result


def untokenize(tokens: list[Token]) -> str:
    return " ".join(t.lexeme for t in tokens)
