"""Test classes RateClient and RateRefresher."""
import threading
import time

import httpx
from pydantic import ValidationError
import pytest

from currency_converter.common.config import Settings
from currency_converter.common.models import ExchangeRate
from currency_converter.rates.client import RateClient, RateFetchError
from currency_converter.rates.refresher import RateRefresher


API_URL = "https://api.frankfurter.dev/v1/latest"


def make_client(handler) -> RateClient:
    """Build a RateClient whose requests are answered by `handler`."""
    return RateClient(api_url=API_URL, transport=httpx.MockTransport(handler))


def test_fetch_parses_rate() -> None:
    """A successful response is turned into an ExchangeRate."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"amount": 1.0, "base": "SEK", "date": "2024-05-02", "rates": {"IDR": 1491.37}})

    rate = make_client(handler).fetch()

    assert rate.rate == 1491.37
    assert rate.inverse == pytest.approx(1 / 1491.37)
    assert rate.last_updated == "2024-05-02"
    assert requests[0].url.params["base"] == "SEK"
    assert requests[0].url.params["symbols"] == "IDR"


def test_fetch_raises_on_http_error() -> None:
    """A non-2xx status raises RateFetchError."""
    client = make_client(lambda request: httpx.Response(503))
    with pytest.raises(RateFetchError):
        client.fetch()


def test_fetch_raises_on_transport_error() -> None:
    """Connection failures raise RateFetchError."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(RateFetchError):
        make_client(handler).fetch()


@pytest.mark.parametrize("payload", [
    {"date": "2024-05-02", "rates": {}},
    {"date": "2024-05-02"},
    {"date": "2024-05-02", "rates": {"IDR": 0}},
    {"date": "2024-05-02", "rates": {"IDR": "n/a"}},
    [],
])
def test_fetch_raises_on_unexpected_payload(payload) -> None:
    """Payloads without a usable rate raise RateFetchError."""
    client = make_client(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(RateFetchError):
        client.fetch()


def test_fetch_raises_on_invalid_json() -> None:
    """A body that is not JSON raises RateFetchError."""
    client = make_client(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(RateFetchError):
        client.fetch()


def test_client_from_settings() -> None:
    """Settings provide the endpoint, currencies and timeout."""
    settings = Settings(api_url="https://example.test/latest", request_timeout=3)
    client = RateClient.from_settings(settings)
    assert client.api_url == "https://example.test/latest"
    assert (client.base, client.quote) == ("SEK", "IDR")
    assert client.timeout == 3


def test_settings_from_environment(monkeypatch) -> None:
    """Environment variables override the defaults."""
    monkeypatch.setenv("CURRENCY_CONVERTER_REFRESH_INTERVAL", "60")
    monkeypatch.setenv("CURRENCY_CONVERTER_DEFAULT_RATE", "1600")
    settings = Settings()
    assert settings.refresh_interval == 60
    assert settings.default_rate == 1600


def test_settings_reject_invalid_interval() -> None:
    """A non-positive refresh interval is rejected."""
    with pytest.raises(ValidationError):
        Settings(refresh_interval=0)


class FakeRateClient:
    """Rate client returning queued results in order."""

    base = "SEK"
    quote = "IDR"

    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def fetch(self) -> ExchangeRate:
        self.calls += 1
        result = self.results.pop(0) if self.results else RateFetchError("no more rates")
        if isinstance(result, Exception):
            raise result
        return result


def test_refresh_once_updates_rate() -> None:
    """A successful refresh stores the rate and notifies the callback."""
    new_rate = ExchangeRate(rate=1600.0, last_updated="2024-05-03")
    seen = []
    refresher = RateRefresher(FakeRateClient([new_rate]), interval=60, on_update=seen.append)

    assert refresher.rate.rate == 1500.0
    assert refresher.refresh_once() is True
    assert refresher.rate == new_rate
    assert seen == [new_rate]


def test_refresh_once_keeps_rate_on_failure() -> None:
    """A failed refresh keeps the previous rate and skips the callback."""
    initial = ExchangeRate(rate=1550.0, last_updated="2024-05-01")
    seen = []
    refresher = RateRefresher(
        FakeRateClient([RateFetchError("down")]), interval=60, initial=initial, on_update=seen.append
    )

    assert refresher.refresh_once() is False
    assert refresher.rate == initial
    assert seen == []


def test_refresher_rejects_invalid_interval() -> None:
    """The interval must be positive."""
    with pytest.raises(ValueError):
        RateRefresher(FakeRateClient([]), interval=0)


def test_refresher_thread_refreshes_periodically() -> None:
    """The background thread keeps refreshing until stopped, surviving failures."""
    rates = [
        ExchangeRate(rate=1500.0 + i, last_updated=f"2024-05-0{i + 1}") for i in range(3)
    ]
    client = FakeRateClient([rates[0], RateFetchError("flaky"), rates[1], rates[2]])
    done = threading.Event()
    seen = []

    def on_update(rate: ExchangeRate) -> None:
        seen.append(rate)
        if len(seen) == 3:
            done.set()

    refresher = RateRefresher(client, interval=0.01, on_update=on_update)
    with refresher:
        assert refresher.running
        assert done.wait(5)

    assert not refresher.running
    assert seen == rates
    assert refresher.rate == rates[2]


def test_stop_interrupts_wait() -> None:
    """stop() returns promptly even with a long interval."""
    client = FakeRateClient([ExchangeRate(rate=1500.0)])
    refresher = RateRefresher(client, interval=3600)
    refresher.start()
    started = time.monotonic()
    refresher.stop(timeout=5)
    assert time.monotonic() - started < 5
    assert not refresher.running


def test_failing_callback_is_logged_and_rate_kept(caplog) -> None:
    """A callback error is logged, the rate is still stored and refreshing goes on."""
    new_rate = ExchangeRate(rate=1600.0, last_updated="2024-05-03")

    def on_update(rate: ExchangeRate) -> None:
        raise RuntimeError("display broke")

    refresher = RateRefresher(FakeRateClient([new_rate]), interval=60, on_update=on_update)

    assert refresher.refresh_once() is True
    assert refresher.rate == new_rate
    assert "Rate update callback failed" in caplog.text


def test_thread_survives_failing_callback() -> None:
    """The background thread keeps running after the callback raises."""
    rates = [ExchangeRate(rate=1500.0 + i) for i in range(2)]
    second = threading.Event()
    seen = []

    def on_update(rate: ExchangeRate) -> None:
        seen.append(rate)
        if len(seen) == 1:
            raise RuntimeError("first update fails")
        second.set()

    with RateRefresher(FakeRateClient(rates), interval=0.01, on_update=on_update) as refresher:
        assert second.wait(5)
        assert refresher.running

    assert seen == rates


def test_consecutive_failures() -> None:
    """Failures are counted until the next successful refresh."""
    client = FakeRateClient([RateFetchError("down"), RateFetchError("down"), ExchangeRate(rate=1600.0)])
    refresher = RateRefresher(client, interval=60)

    refresher.refresh_once()
    refresher.refresh_once()
    assert refresher.consecutive_failures == 2
    refresher.refresh_once()
    assert refresher.consecutive_failures == 0
