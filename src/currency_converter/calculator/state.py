"""Keypad state for the manual amount entry, with pure keypress transitions."""
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

from currency_converter.common.logger import logger
from currency_converter.common.parser import NUMBER_CHARS, OPERATORS, ExpressionParser


DIGIT_KEYS: frozenset[str] = frozenset([str(d) for d in range(10)] + ["00", "000"])
DECIMAL_KEY: str = "."
EVALUATE_KEY: str = "="
CLEAR_KEY: str = "C"

# Every key on the keypad
KEYPAD_KEYS: frozenset[str] = DIGIT_KEYS | frozenset(OPERATORS) | {DECIMAL_KEY, EVALUATE_KEY, CLEAR_KEY}


class Mode(str, Enum):
    """Where the keypad is in its input cycle."""

    IDLE = "idle"
    ENTERING = "entering"
    EVALUATED = "evaluated"


class CalculatorState(BaseModel):
    """
    Immutable keypad state.

    Lifecycle:
        - IDLE: nothing typed yet, or just cleared
        - ENTERING: digits, '.' and operators are being appended
        - EVALUATED: '=' replaced the expression with its result; typing continues from it

    Every transition returns a new state and leaves the current one untouched.
    """

    model_config = ConfigDict(frozen=True)

    expression: str = Field(default="", description="Accumulated keypresses")
    display_value: str = Field(default="", description="Number currently shown as the manual amount")
    mode: Mode = Field(default=Mode.IDLE, description="Position in the input cycle")

    def press(self, key: str) -> "CalculatorState":
        """
        Apply a single keypress.

        :param str key: One of 0-9, 00, 000, '.', + - * /, '=' or 'C'

        :return: The next state
        :rtype: CalculatorState
        :raises ValueError: If the key is not on the keypad
        """
        if key not in KEYPAD_KEYS:
            raise ValueError(f"Unknown calculator key: {key!r}")
        if key == CLEAR_KEY:
            return self.clear()
        if key == EVALUATE_KEY:
            return self.evaluate()
        return self.append(key)

    def press_all(self, keys: Iterable[str]) -> "CalculatorState":
        """Apply keypresses in order and return the final state."""
        state = self
        for key in keys:
            state = state.press(key)
        return state

    def append(self, key: str) -> "CalculatorState":
        """Append a digit, decimal point or operator to the expression."""
        expression = self.expression + key
        return CalculatorState(
            expression=expression,
            display_value=_trailing_number(expression),
            mode=Mode.ENTERING,
        )

    def evaluate(self) -> "CalculatorState":
        """Replace the expression with its result. Does nothing when idle."""
        if self.mode is Mode.IDLE:
            return self
        result = ExpressionParser.evaluate(self.expression)
        logger.debug(f"🧮 {self.expression!r} -> {result}")
        return CalculatorState(expression=result, display_value=result, mode=Mode.EVALUATED)

    def clear(self) -> "CalculatorState":
        """Reset to an empty, idle keypad."""
        return CalculatorState()


def _trailing_number(expression: str) -> str:
    """Return the number being typed at the end of the expression ("" right after an operator)."""
    end = len(expression)
    start = end
    while start > 0 and expression[start - 1] in NUMBER_CHARS:
        start -= 1
    return expression[start:end]
