import enum
import logging
from dataclasses import dataclass

from exprcalc.tokenizer import Token, TokenType, untokenize
from exprcalc.utils import PrintableEnum

logger = logging.getLogger(__name__)


def _point_at_token(header: str, tokens: list[Token], error_token_idx: int) -> str:
    parsed_tokens = tokens[:error_token_idx]
    filler_whitespace = " " * (len(untokenize(parsed_tokens)) + (1 if parsed_tokens else 0))
    return "\n".join([header, untokenize(tokens), filler_whitespace + "^"])


@dataclass
class ParserError(Exception):
    errmsg: str
    tokens: list[Token]
    error_token_idx: int

    def __str__(self) -> str:
        return _point_at_token(f"Parser error: {self.errmsg}", self.tokens, self.error_token_idx)


class MultipleAssignmentError(ParserError):
    pass


class InvalidAssignmentTargetError(ParserError):
    pass


class UnsupportedOperatorError(ParserError):
    pass


class UnbalancedBracketError(ParserError):
    pass


class MissingOperandError(ParserError):
    pass


class MissingOperatorError(ParserError):
    pass


@dataclass
class ParserInvariantError(Exception):
    """Raised on a parser state that no input should be able to reach, i.e. a bug in the parser.

    Not a ParserError: it never describes a problem with the input.
    """

    errmsg: str
    tokens: list[Token]
    error_token_idx: int

    def __str__(self) -> str:
        return _point_at_token(f"Internal parser error: {self.errmsg}", self.tokens, self.error_token_idx)


class BinaryOperator(PrintableEnum):
    ADD = enum.auto()
    SUB = enum.auto()
    MUL = enum.auto()
    DIV = enum.auto()
    POW = enum.auto()


@dataclass
class BinaryOperation:
    operator: BinaryOperator
    left: "Expression"
    right: "Expression"


class UnaryOperator(PrintableEnum):
    NEG = enum.auto()


@dataclass
class UnaryOperation:
    operator: UnaryOperator
    operand: "Expression"


@dataclass
class Variable:
    name: str


Expression = float | Variable | BinaryOperation | UnaryOperation


@dataclass
class Evaluate:
    expression: Expression


@dataclass
class AssignVariable:
    name: str
    expression: Expression


ExpressionResult = Evaluate | AssignVariable


_BINARY_OPERATORS = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.CARET: BinaryOperator.POW,
}


def parse(tokens: list[Token]) -> ExpressionResult:
    """Builds the AST for one line, handling a single optional leading "name =" assignment"""
    equal_idxs = [i for i, token in enumerate(tokens) if token.type is TokenType.EQUAL]
    if len(equal_idxs) > 1:
        raise MultipleAssignmentError(
            "Can't have more than one '=' in an expression", tokens=tokens, error_token_idx=equal_idxs[1]
        )

    result: ExpressionResult
    if equal_idxs:
        if equal_idxs[0] != 1:
            raise InvalidAssignmentTargetError(
                "Must have only a single variable name before '='", tokens=tokens, error_token_idx=equal_idxs[0]
            )
        target = tokens[0]
        if target.type is not TokenType.IDENTIFIER:
            raise InvalidAssignmentTargetError(
                f"Can only assign to a variable, found {target.type}", tokens=tokens, error_token_idx=0
            )
        result = AssignVariable(name=target.lexeme, expression=_parse_expression(tokens, start=2))
    else:
        result = Evaluate(expression=_parse_expression(tokens, start=0))

    logger.debug("Parsed %s into %s", untokenize(tokens), result)
    return result


def _parse_expression(tokens: list[Token], start: int) -> Expression:
    _check_structure(tokens, start)
    try:
        return _build(tokens, start, len(tokens))
    except RecursionError:
        raise ParserError("Expression is nested too deeply", tokens=tokens, error_token_idx=start)


def _check_structure(tokens: list[Token], start: int) -> None:
    open_bracket_idxs: list[int] = []
    for i in range(start, len(tokens)):
        token_type = tokens[i].type
        if token_type is TokenType.BRACKET_OPEN:
            open_bracket_idxs.append(i)
        elif token_type is TokenType.BRACKET_CLOSE:
            if not open_bracket_idxs:
                raise UnbalancedBracketError("Unmatched closing bracket", tokens=tokens, error_token_idx=i)
            open_bracket_idxs.pop()
        elif token_type is TokenType.PERCENT:
            raise UnsupportedOperatorError("Modulo operator is not supported", tokens=tokens, error_token_idx=i)
    if open_bracket_idxs:
        raise UnbalancedBracketError("Unclosed bracket", tokens=tokens, error_token_idx=open_bracket_idxs[-1])


def _build(tokens: list[Token], lo: int, hi: int) -> Expression:
    """Builds tokens[lo:hi], splitting at the leftmost operator of lowest rank outside brackets"""
    if lo >= hi:
        raise MissingOperandError("Operand expected", tokens=tokens, error_token_idx=lo)

    if _wrapped_in_brackets(tokens, lo, hi):
        return _build(tokens, lo + 1, hi - 1)

    idx = _lowest_precedence_idx(tokens, lo, hi)
    split = tokens[idx]

    if split.type is TokenType.PERCENT:
        raise UnsupportedOperatorError("Modulo operator is not supported", tokens=tokens, error_token_idx=idx)
    if split.type not in _BINARY_OPERATORS and hi - lo > 1:
        raise MissingOperatorError("Operator expected", tokens=tokens, error_token_idx=_first_operand_end(tokens, lo))

    if split.type is TokenType.NUMBER:
        return split.value
    elif split.type is TokenType.IDENTIFIER:
        return Variable(split.lexeme)
    elif split.type is TokenType.MINUS and idx == lo:
        return UnaryOperation(operator=UnaryOperator.NEG, operand=_build(tokens, lo + 1, hi))
    elif split.type in _BINARY_OPERATORS:
        return BinaryOperation(
            operator=_BINARY_OPERATORS[split.type],
            left=_build(tokens, lo, idx),
            right=_build(tokens, idx + 1, hi),
        )
    else:
        raise ParserInvariantError(f"Unexpected {split.type} at split point", tokens=tokens, error_token_idx=idx)


def _lowest_precedence_idx(tokens: list[Token], lo: int, hi: int) -> int:
    lowest_idx = lo
    lowest_rank = tokens[lo].type.rank
    depth = 0
    for i in range(lo, hi):
        token_type = tokens[i].type
        if token_type is TokenType.BRACKET_OPEN:
            depth += 1
        elif token_type is TokenType.BRACKET_CLOSE:
            depth -= 1

        if depth == 0 and token_type.rank < lowest_rank:
            lowest_idx = i
            lowest_rank = token_type.rank
    return lowest_idx


def _wrapped_in_brackets(tokens: list[Token], lo: int, hi: int) -> bool:
    if hi - lo < 2:
        return False
    if tokens[lo].type is not TokenType.BRACKET_OPEN or tokens[hi - 1].type is not TokenType.BRACKET_CLOSE:
        return False

    bracket_count = 1
    for i in range(lo + 1, hi - 1):
        if tokens[i].type is TokenType.BRACKET_OPEN:
            bracket_count += 1
        elif tokens[i].type is TokenType.BRACKET_CLOSE:
            bracket_count -= 1
        if bracket_count == 0:
            return False
    return True


def _first_operand_end(tokens: list[Token], lo: int) -> int:
    """Index right after the operand (a single token or a bracketed group) starting at lo"""
    if tokens[lo].type is not TokenType.BRACKET_OPEN:
        return lo + 1
    bracket_count = 0
    for i in range(lo, len(tokens)):
        if tokens[i].type is TokenType.BRACKET_OPEN:
            bracket_count += 1
        elif tokens[i].type is TokenType.BRACKET_CLOSE:
            bracket_count -= 1
        if bracket_count == 0:
            return i + 1
    return len(tokens)
