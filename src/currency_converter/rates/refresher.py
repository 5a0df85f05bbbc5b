"""Background thread refreshing the exchange rate on an interval."""
import threading
from typing import Callable, Optional

from currency_converter.common.logger import logger
from currency_converter.common.models import ExchangeRate
from currency_converter.rates.client import RateClient, RateFetchError


RateCallback = Callable[[ExchangeRate], None]


class RateRefresher:
    """
    Keep an exchange rate up to date.

    Lifecycle:
        - start() spawns a daemon thread that refreshes immediately, then every `interval` seconds
        - a failed refresh is logged and the previous rate is kept
        - stop() wakes the thread up and waits for it to finish
    """

    def __init__(
        self,
        client: RateClient,
        interval: float,
        initial: Optional[ExchangeRate] = None,
        on_update: Optional[RateCallback] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.client = client
        self.interval = interval
        self.on_update = on_update
        self._rate: ExchangeRate = initial or ExchangeRate(base=client.base, quote=client.quote)
        self._failures: int = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def rate(self) -> ExchangeRate:
        """Latest known rate."""
        with self._lock:
            return self._rate

    @property
    def consecutive_failures(self) -> int:
        """Number of failed refreshes since the last successful one."""
        with self._lock:
            return self._failures

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh_once(self) -> bool:
        """
        Fetch the rate once and store it.

        :return: True if the rate was updated, False if the fetch failed
        :rtype: bool
        """
        try:
            rate = self.client.fetch()
        except RateFetchError as exc:
            with self._lock:
                self._failures += 1
            logger.warning(f"🔄❌ Keeping rate from {self.rate.last_updated}: {exc}")
            return False

        with self._lock:
            self._rate = rate
            self._failures = 0
        if self.on_update is not None:
            try:
                self.on_update(rate)
            except Exception:
                # The rate is stored, keep refreshing
                logger.exception(f"🔄❌ Rate update callback failed for {rate.last_updated}")
        return True

    def _run(self) -> None:
        logger.info(f"🔄 Refreshing rate every {self.interval:g}s")
        while not self._stop.is_set():
            self.refresh_once()
            # Returns early when stop() is called
            self._stop.wait(self.interval)
        logger.info("🔄 Rate refresher stopped")

    def start(self) -> None:
        """Start refreshing in a background thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="rate-refresher", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background thread and wait for it to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def __enter__(self) -> "RateRefresher":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()
