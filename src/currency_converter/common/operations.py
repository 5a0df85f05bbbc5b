"""Pydantic models for calculator evaluation requests and results."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Why an expression evaluated to the sentinel."""

    MALFORMED = "malformed"
    DIVISION_BY_ZERO = "division_by_zero"


class OperationRequest(BaseModel):
    """Represents a single calculator expression to evaluate."""

    expression: str = Field(..., description="Calculator expression as typed, e.g. '20+50'")


class OperationResult(BaseModel):
    """Represents the result of an evaluated calculator expression."""

    expression: str = Field(..., description="Original calculator expression")
    result: str = Field(..., pattern=r"^-?\d+(\.\d+)?$", description="Evaluated result as a decimal string")
    error: Optional[ErrorKind] = Field(default=None, description="Set when the result is the sentinel value")

    @property
    def ok(self) -> bool:
        """True when the expression evaluated without falling back to the sentinel."""
        return self.error is None
