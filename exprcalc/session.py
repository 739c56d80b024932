import math

from exprcalc.parser import ExpressionResult, parse
from exprcalc.runtime import execute
from exprcalc.tokenizer import tokenize

CONSTANTS: dict[str, float] = {
    "e": math.e,
    "pi": math.pi,
    "tau": math.tau,
}


def initial_variables() -> dict[str, float]:
    """Fresh variables for a new session, seeded with the constants (which may be reassigned)"""
    return dict(CONSTANTS)


def calculate(code: str, variables: dict[str, float]) -> tuple[ExpressionResult, float]:
    result = parse(tokenize(code))
    return result, execute(result, variables)
