"""Runtime configuration, read from CURRENCY_CONVERTER_* environment variables."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the rate source, the refresh loop and logging.

    Every field can be overridden with an environment variable, e.g.
    CURRENCY_CONVERTER_REFRESH_INTERVAL=600.
    """

    model_config = SettingsConfigDict(env_prefix="CURRENCY_CONVERTER_", frozen=True)

    api_url: str = Field(
        default="https://api.frankfurter.dev/v1/latest",
        description="Endpoint returning the latest rates for a base currency",
    )
    base_currency: str = Field(default="SEK", min_length=3, max_length=3, description="Currency the rate is quoted from")
    quote_currency: str = Field(default="IDR", min_length=3, max_length=3, description="Currency the rate is quoted in")
    default_rate: float = Field(default=1500.0, gt=0, description="Rate used until the first successful fetch")
    refresh_interval: float = Field(default=3600.0, gt=0, description="Seconds between two rate refreshes")
    request_timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")
    log_level: str = Field(default="INFO", description="Logging level name")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return Settings()
