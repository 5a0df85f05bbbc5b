"""Conversion between the two currencies: fixed table, manual amount and rate summary."""
import math
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from currency_converter.common.models import ExchangeRate
from currency_converter.converter.formatting import format_fixed, format_grouped, parse_amount


# Amounts in base currency shown in the static table
FIXED_AMOUNTS: Tuple[int, ...] = (20, 50, 100, 130, 160, 190, 250, 300, 400, 500)


class CurrencyConverter(BaseModel):
    """
    Two-currency converter bound to one exchange rate.

    Features:
        - Static table of fixed base-currency amounts.
        - Conversion of a manually entered amount, in either direction.
        - Swapping which currency the manual amount is entered in.

    Amounts in the quote currency (IDR) are grouped with at most two decimals,
    amounts in the base currency (SEK) always have two decimals.
    The instance is immutable: swap() and with_rate() return a new converter.
    """

    model_config = ConfigDict(frozen=True)

    rate: ExchangeRate = Field(default_factory=ExchangeRate, description="Current exchange rate")
    quote_is_input: bool = Field(default=True, description="Manual amount is entered in the quote currency")

    @property
    def input_currency(self) -> str:
        """Currency of the manual amount."""
        return self.rate.quote if self.quote_is_input else self.rate.base

    @property
    def output_currency(self) -> str:
        """Currency the manual amount is converted to."""
        return self.rate.base if self.quote_is_input else self.rate.quote

    def convert(self, amount: float, from_base: bool) -> str:
        """
        Convert an amount and format it for display.

        :param float amount: Amount to convert
        :param bool from_base: True to convert base to quote (SEK to IDR), False for the reverse

        :return: Formatted converted amount, "0" when the result is not finite
        :rtype: str
        """
        converted = amount * (self.rate.rate if from_base else self.rate.inverse)
        if not math.isfinite(converted):
            return "0"
        if from_base:
            return format_grouped(converted, max_fraction_digits=2)
        return format_fixed(converted)

    def static_table(self) -> List[Tuple[int, str]]:
        """Return (base amount, converted quote amount) for every fixed amount."""
        return [(amount, self.convert(amount, from_base=True)) for amount in FIXED_AMOUNTS]

    def format_amount(self, raw: str) -> str:
        """
        Format the manual amount as it is displayed.

        Quote currency amounts show their grouped integer part; base currency amounts
        are shown as typed.

        :param str raw: Manual amount as typed

        :return: Display string, "0" when nothing was typed
        :rtype: str
        """
        if self.quote_is_input:
            return format_grouped(int(parse_amount(raw)))
        return raw or "0"

    def convert_manual(self, raw: str) -> str:
        """Convert the manual amount out of its input currency ("0" when nothing was typed)."""
        if not raw:
            return "0"
        return self.convert(parse_amount(raw), from_base=not self.quote_is_input)

    def swap(self) -> "CurrencyConverter":
        """Return a converter with the input and output currencies exchanged."""
        return self.model_copy(update={"quote_is_input": not self.quote_is_input})

    def with_rate(self, rate: ExchangeRate) -> "CurrencyConverter":
        """Return a converter using a new exchange rate."""
        return self.model_copy(update={"rate": rate})

    def rate_summary(self) -> List[str]:
        """Describe the rate in both directions, e.g. "1 SEK = 1.500 IDR"."""
        return [
            f"1 {self.rate.base} = {format_grouped(self.rate.rate, max_fraction_digits=2)} {self.rate.quote}",
            f"1 {self.rate.quote} = {format_fixed(self.rate.inverse, 6)} {self.rate.base}",
        ]
