"""Parse and evaluate calculator expressions safely."""
from collections.abc import Callable as ABCCallable
from decimal import Decimal
import math
import operator
from typing import Callable, List, Optional

from currency_converter.common.logger import logger
from currency_converter.common.operations import ErrorKind, OperationRequest, OperationResult


# Type alias for operator functions (taking two floats, returning a float)
OperatorFn: ABCCallable[[float, float], float] = Callable[[float, float], float]

# Mapping of operator symbols to their function. No precedence: evaluation is strictly left-to-right.
OPERATORS: dict[str, OperatorFn] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}

NUMBER_CHARS: str = "0123456789."

# Returned for every expression that cannot be evaluated
SENTINEL: str = "0"


class ExpressionError(ValueError):
    """Raised by ExpressionParser.compute when an expression cannot be evaluated."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.MALFORMED):
        super().__init__(message)
        self.kind = kind


class ExpressionParser:
    """
    Parse and evaluate calculator expressions safely.

    Design constraints:
        - No eval(), no dynamic code execution
        - Pure and deterministic: same input, same output
        - Never raises from evaluate(): bad input yields SENTINEL

    Algorithm:
        1. Tokenize by scanning characters: runs of digits and '.' are numbers, each of + - * / is an operator
        2. Start the accumulator at the first number (0 when the expression starts with an operator)
        3. Apply each (operator, number) pair to the accumulator as it comes

    There is no operator precedence. The expression is built one keypress at a time and
    each operator applies to everything typed before it.

    Examples:
        - 2+3*4 evaluates as (2+3)*4 = 20
        - 7*2-1 evaluates as (7*2)-1 = 13
    """

    @staticmethod
    def tokenize(expr: str) -> List[str]:
        """
        Split a calculator expression into number and operator tokens.

        Characters that are neither digits, '.', nor an operator are dropped before scanning,
        so they never split a number (e.g. "1 2" gives ["12"]).

        :param str expr: Expression as typed, e.g. "20+50"

        :return: List of tokens
        :rtype: List[str]
        """
        tokens: List[str] = []
        number: str = ""
        for char in expr:
            if char in NUMBER_CHARS:
                number += char
            elif char in OPERATORS:
                if number:
                    tokens.append(number)
                    number = ""
                tokens.append(char)
        if number:
            tokens.append(number)
        return tokens

    @staticmethod
    def _is_number(token: str) -> bool:
        """
        Determine if a token is a well-formed number: digits with at most one '.'.

        :param str token: Token string

        :return: True if token is a valid number token, else False
        :rtype: bool
        """
        if token.count(".") > 1:
            return False
        digits = token.replace(".", "")
        return digits.isdigit()

    @staticmethod
    def format_result(value: float) -> str:
        """
        Render a number as a plain decimal string.

        Integral values have no fractional part ("70", not "70.0"). Other values use the
        shortest round-tripping representation in positional notation, never exponent notation.

        :param float value: Finite number

        :return: String matching -?digits[.digits]
        :rtype: str
        """
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")

    @staticmethod
    def compute(expr: str) -> float:
        """
        Evaluate an expression left-to-right.

        Leading operators apply to an implicit 0, runs of operators keep the last one typed,
        and trailing operators are ignored.

        :param str expr: Expression string

        :return: Computed result as float
        :rtype: float
        :raises ExpressionError: If a number is malformed, a division by zero occurs,
            or the result is not finite
        """
        tokens: List[str] = ExpressionParser.tokenize(expr)

        accumulator: float = 0.0
        pending_operator: Optional[str] = None

        for token in tokens:
            if token in OPERATORS:
                # Consecutive operators: the last one wins
                pending_operator = token
                continue

            if not ExpressionParser._is_number(token):
                raise ExpressionError(f"Malformed number {token!r} in expression: {expr!r}")

            # Leading number: 0 + number
            op = pending_operator or "+"
            operand = float(token)
            if op == "/" and operand == 0:
                raise ExpressionError(f"Division by zero in expression: {expr!r}", ErrorKind.DIVISION_BY_ZERO)
            accumulator = OPERATORS[op](accumulator, operand)
            pending_operator = None

        if not math.isfinite(accumulator):
            raise ExpressionError(f"Result is not finite for expression: {expr!r}")

        return accumulator

    @staticmethod
    def evaluate(expr: str) -> str:
        """
        Evaluate a calculator expression and return its result as a decimal string.

        Never raises: malformed input and division by zero return SENTINEL ("0").

        :param str expr: Expression string

        :return: Decimal string that can itself start a new expression
        :rtype: str
        """
        return ExpressionParser.evaluate_request(OperationRequest(expression=expr)).result

    @staticmethod
    def evaluate_request(request: OperationRequest) -> OperationResult:
        """
        Evaluate a request and report the error kind alongside the value.

        :param OperationRequest request: Expression to evaluate

        :return: Result string, SENTINEL on error, and the error kind if any
        :rtype: OperationResult
        """
        try:
            value: float = ExpressionParser.compute(request.expression)
        except ExpressionError as exc:
            logger.debug(f"🧮❌ Could not evaluate {request.expression!r}: {exc}")
            return OperationResult(expression=request.expression, result=SENTINEL, error=exc.kind)

        result = ExpressionParser.format_result(value)
        logger.debug(f"🧮✅ {request.expression!r} = {result}")
        return OperationResult(expression=request.expression, result=result)


def evaluate(expression: str) -> str:
    """Evaluate a calculator expression, see ExpressionParser.evaluate."""
    return ExpressionParser.evaluate(expression)
