"""Pydantic models shared by the converter and the rate client."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class ExchangeRate(BaseModel):
    """Exchange rate between the base and quote currency, e.g. 1 SEK = 1500 IDR."""

    model_config = ConfigDict(frozen=True)

    base: str = Field(default="SEK", description="Currency converted from")
    quote: str = Field(default="IDR", description="Currency converted to")
    rate: float = Field(default=1500.0, gt=0, description="Units of quote currency for one unit of base currency")
    last_updated: str = Field(default_factory=_now_iso, description="Date of the rate as reported by its source")

    @computed_field
    @property
    def inverse(self) -> float:
        """Units of base currency for one unit of quote currency."""
        return 1 / self.rate
