import logging
import math
from dataclasses import dataclass
from typing import Callable

from exprcalc.parser import (
    AssignVariable,
    BinaryOperation,
    BinaryOperator,
    Evaluate,
    Expression,
    ExpressionResult,
    UnaryOperation,
    UnaryOperator,
    Variable,
)

logger = logging.getLogger(__name__)


@dataclass
class CalcRuntimeError(Exception):
    errmsg: str

    def __str__(self) -> str:
        return f"Runtime error: {self.errmsg}"


class UndefinedVariableError(CalcRuntimeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Variable {name!r} is not defined")
        self.name = name


def execute(result: ExpressionResult, variables: dict[str, float]) -> float:
    """Evaluates a parsed line, an assignment stores its value only once it is computed"""
    if isinstance(result, Evaluate):
        return evaluate(result.expression, variables)
    elif isinstance(result, AssignVariable):
        value = evaluate(result.expression, variables)
        variables[result.name] = value
        logger.info("Assigned %s = %r", result.name, value)
        return value
    else:
        raise CalcRuntimeError(f"Unexpected expression result: {result}")


def evaluate(expression: Expression, variables: dict[str, float]) -> float:
    try:
        return evaluate_expression(expression, variables)
    except RecursionError:
        raise CalcRuntimeError("Expression is nested too deeply")


def evaluate_expression(expression: Expression, variables: dict[str, float]) -> float:
    if isinstance(expression, float):
        return expression
    elif isinstance(expression, Variable):
        if expression.name in variables:
            return variables[expression.name]
        else:
            raise UndefinedVariableError(expression.name)
    elif isinstance(expression, BinaryOperation):
        impl = binary_impls.get(expression.operator)
        if impl is None:
            raise CalcRuntimeError(f"Unexpected binary operator: {expression.operator}")
        left_res = evaluate_expression(expression.left, variables)
        right_res = evaluate_expression(expression.right, variables)
        return impl(left_res, right_res)
    elif isinstance(expression, UnaryOperation):
        operand = evaluate_expression(expression.operand, variables)
        if expression.operator is UnaryOperator.NEG:
            return -operand
        else:
            raise CalcRuntimeError(f"Unexpected unary operator: {expression.operator}")
    else:
        raise CalcRuntimeError(f"Unexpected expression type: {expression}")


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and math.fmod(x, 2.0) != 0.0


def ieee_divide(a: float, b: float) -> float:
    """Division by zero gives a signed infinity, or NaN for 0 / 0, instead of raising"""
    try:
        return a / b
    except ZeroDivisionError:
        if math.isnan(a) or a == 0.0:
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def ieee_pow(a: float, b: float) -> float:
    """C pow(): NaN outside the real domain, infinities on overflow and for pow(0, negative)"""
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    except ValueError:
        if a == 0.0:
            return math.copysign(math.inf, a) if _is_odd_integer(b) else math.inf
        return math.nan


BinaryOperationImpl = Callable[[float, float], float]

binary_impls: dict[BinaryOperator, BinaryOperationImpl] = {
    BinaryOperator.ADD: lambda a, b: a + b,
    BinaryOperator.SUB: lambda a, b: a - b,
    BinaryOperator.MUL: lambda a, b: a * b,
    BinaryOperator.DIV: ieee_divide,
    BinaryOperator.POW: ieee_pow,
}
