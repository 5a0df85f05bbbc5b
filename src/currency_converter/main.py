"""
Command-line entrypoint.

Subcommands:
- evaluate: evaluate a calculator expression
- keys: run keypresses through the keypad and convert the manual amount
- table: print the fixed-amount table and the current rate
- convert: convert a single amount
- watch: refresh the rate periodically and print every update
"""

import argparse
import threading
import time
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from currency_converter.calculator.state import KEYPAD_KEYS, CalculatorState
from currency_converter.common.config import Settings, get_settings
from currency_converter.common.logger import configure_logging, logger
from currency_converter.common.models import ExchangeRate
from currency_converter.common.parser import ExpressionParser
from currency_converter.converter.converter import CurrencyConverter
from currency_converter.rates.client import RateClient, RateFetchError
from currency_converter.rates.refresher import RateRefresher


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    command : str
        Subcommand to run.
    """

    command: Literal["evaluate", "keys", "table", "convert", "watch"]
    expression: Optional[str] = None
    keys: List[str] = Field(default_factory=list)
    amount: Optional[float] = None
    source: Literal["sek", "idr"] = "sek"
    offline: bool = False
    interval: Optional[float] = Field(default=None, gt=0)
    count: Optional[int] = Field(default=None, ge=1)
    timeout: Optional[float] = Field(default=None, gt=0)

    @field_validator("keys")
    def keys_must_be_on_keypad(cls, v: List[str]) -> List[str]:
        """Ensure that every key exists on the keypad."""
        unknown = [key for key in v if key not in KEYPAD_KEYS]
        if unknown:
            raise ValueError(f"Unknown calculator keys: {unknown}")
        return v


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="currency-converter",
        description="SEK/IDR converter with a left-to-right calculator",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate a calculator expression")
    evaluate_parser.add_argument("expression", help="Expression such as 20+50*2")

    keys_parser = subparsers.add_parser("keys", help="Press keypad keys and convert the manual amount")
    keys_parser.add_argument("keys", nargs="+", help="Keys: 0-9, 00, 000, ., + - * /, = or C")
    keys_parser.add_argument("--offline", action="store_true", help="Use the default rate")

    table_parser = subparsers.add_parser("table", help="Print the fixed-amount conversion table")
    table_parser.add_argument("--offline", action="store_true", help="Use the default rate")

    convert_parser = subparsers.add_parser("convert", help="Convert a single amount")
    convert_parser.add_argument("amount", help="Amount to convert")
    convert_parser.add_argument("--from", dest="source", default="sek", help="Currency of the amount: sek or idr")
    convert_parser.add_argument("--offline", action="store_true", help="Use the default rate")

    watch_parser = subparsers.add_parser("watch", help="Refresh the rate periodically")
    watch_parser.add_argument("--interval", help="Seconds between refreshes")
    watch_parser.add_argument("--count", help="Stop after this many successful refreshes")
    watch_parser.add_argument("--timeout", help="Give up after this many seconds")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return CliArgs(**{key: value for key, value in vars(args).items() if value is not None})
    except ValidationError as exc:
        parser.error(str(exc))


def load_rate(settings: Settings, offline: bool = False) -> ExchangeRate:
    """
    Fetch the current rate, falling back to the configured default rate.

    :param Settings settings: Application settings
    :param bool offline: Skip the network and use the default rate

    :return: Exchange rate to convert with
    :rtype: ExchangeRate
    """
    fallback = ExchangeRate(base=settings.base_currency, quote=settings.quote_currency, rate=settings.default_rate)
    if offline:
        return fallback
    try:
        return RateClient.from_settings(settings).fetch()
    except RateFetchError:
        logger.warning(f"💱 Using default rate 1 {fallback.base} = {fallback.rate} {fallback.quote}")
        return fallback


def print_table(converter: CurrencyConverter) -> None:
    """Print the fixed-amount table followed by the rate summary."""
    for amount, converted in converter.static_table():
        print(f"{amount} {converter.rate.base}\t{converted} {converter.rate.quote}")
    print(f"Last updated: {converter.rate.last_updated}")
    for line in converter.rate_summary():
        print(line)


def run_keys(converter: CurrencyConverter, keys: List[str]) -> None:
    """Press keys in order, then print the manual amount and its conversion."""
    state = CalculatorState().press_all(keys)
    print(f"{converter.input_currency} {converter.format_amount(state.display_value)}")
    print(f"{converter.convert_manual(state.display_value)} {converter.output_currency}")


def watch(
    settings: Settings,
    interval: Optional[float],
    count: Optional[int],
    timeout: Optional[float] = None,
) -> int:
    """
    Refresh the rate until `count` updates were printed, `timeout` elapsed, or until interrupted.

    While refreshes keep failing, a warning is logged after every interval.

    :return: Number of updates printed
    :rtype: int
    """
    done = threading.Event()
    updates: List[ExchangeRate] = []

    def on_update(rate: ExchangeRate) -> None:
        if done.is_set():
            return
        updates.append(rate)
        for line in CurrencyConverter(rate=rate).rate_summary():
            print(f"[{rate.last_updated}] {line}")
        if count is not None and len(updates) >= count:
            done.set()

    refresher = RateRefresher(
        client=RateClient.from_settings(settings),
        interval=interval or settings.refresh_interval,
        on_update=on_update,
    )
    deadline = None if timeout is None else time.monotonic() + timeout
    with refresher:
        try:
            while not done.is_set():
                step = refresher.interval
                if deadline is not None:
                    step = min(step, max(deadline - time.monotonic(), 0))
                if done.wait(step):
                    break
                failures = refresher.consecutive_failures
                if failures:
                    logger.warning(f"🔄❌ No rate received: last {failures} refresh(es) failed")
                if deadline is not None and time.monotonic() >= deadline:
                    logger.warning(f"🔄❌ Gave up after {timeout:g}s with {len(updates)} update(s)")
                    break
        except KeyboardInterrupt:
            logger.info("🔄 Interrupted")
    return len(updates)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main function executed by the `currency-converter` script.
    """
    cli_args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if cli_args.command == "evaluate":
        print(ExpressionParser.evaluate(cli_args.expression))
    elif cli_args.command == "watch":
        watch(settings, cli_args.interval, cli_args.count, cli_args.timeout)
    else:
        converter = CurrencyConverter(rate=load_rate(settings, cli_args.offline))
        if cli_args.command == "table":
            print_table(converter)
        elif cli_args.command == "keys":
            run_keys(converter, cli_args.keys)
        else:
            converted = converter.convert(cli_args.amount, from_base=cli_args.source == "sek")
            target = converter.rate.quote if cli_args.source == "sek" else converter.rate.base
            print(f"{converted} {target}")


if __name__ == "__main__":
    main()
