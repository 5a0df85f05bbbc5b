"""HTTP client fetching the latest exchange rate from Frankfurter."""
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from currency_converter.common.config import Settings, get_settings
from currency_converter.common.logger import logger
from currency_converter.common.models import ExchangeRate


class RateFetchError(RuntimeError):
    """Raised when the exchange rate cannot be fetched or read."""


class RateClient(BaseModel):
    """
    Fetch the latest base/quote rate.

    Request: GET {api_url}?base=SEK&symbols=IDR
    Response: {"date": "2024-05-02", "rates": {"IDR": 1491.37}, ...}
    """

    # Allow arbitrary types like httpx.BaseTransport
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    api_url: str = Field(..., description="Endpoint returning the latest rates")
    base: str = Field(default="SEK", description="Currency the rate is quoted from")
    quote: str = Field(default="IDR", description="Currency the rate is quoted in")
    timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")
    transport: Optional[httpx.BaseTransport] = Field(default=None, description="Custom transport, used in tests")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "RateClient":
        """Build a client from the application settings."""
        settings = settings or get_settings()
        return cls(
            api_url=settings.api_url,
            base=settings.base_currency,
            quote=settings.quote_currency,
            timeout=settings.request_timeout,
            **kwargs,
        )

    def fetch(self) -> ExchangeRate:
        """
        Fetch the latest exchange rate.

        :return: The current rate
        :rtype: ExchangeRate
        :raises RateFetchError: On network or HTTP errors, or an unexpected payload
        """
        logger.info(f"💱 Fetching {self.base}/{self.quote} rate from {self.api_url}")
        params = {"base": self.base, "symbols": self.quote}

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(self.api_url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"💱❌ Rate request failed: {exc}")
            raise RateFetchError(f"Failed to fetch {self.base}/{self.quote} rate: {exc}") from exc

        try:
            rate = ExchangeRate(
                base=self.base,
                quote=self.quote,
                rate=data["rates"][self.quote],
                last_updated=str(data["date"]),
            )
        except (KeyError, TypeError, ValidationError) as exc:
            logger.error(f"💱❌ Unexpected rate payload: {data!r}")
            raise RateFetchError(f"Unexpected response for {self.base}/{self.quote}: {exc}") from exc

        logger.info(f"💱✅ 1 {rate.base} = {rate.rate} {rate.quote} ({rate.last_updated})")
        return rate
