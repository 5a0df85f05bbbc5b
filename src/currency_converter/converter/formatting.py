"""Number formatting used when displaying amounts."""
import math


def format_grouped(value: float, max_fraction_digits: int = 0) -> str:
    """
    Format a number the Indonesian way: '.' groups thousands, ',' separates decimals.

    At most max_fraction_digits are kept and trailing zeros are dropped.

    Examples:
        - format_grouped(1500) -> "1.500"
        - format_grouped(2345.5, 2) -> "2.345,5"
        - format_grouped(0.004, 2) -> "0"

    :param float value: Number to format
    :param int max_fraction_digits: Maximum number of digits after the decimal separator

    :return: Formatted number
    :rtype: str
    """
    text = f"{value:,.{max_fraction_digits}f}"
    integer_part, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    integer_part = integer_part.replace(",", ".")
    if integer_part == "-0" and not fraction:
        integer_part = "0"
    return f"{integer_part},{fraction}" if fraction else integer_part


def format_fixed(value: float, digits: int = 2) -> str:
    """Format a number with exactly the given number of decimals, e.g. 0.6667 -> "0.67"."""
    return f"{value:.{digits}f}"


def parse_amount(raw: str) -> float:
    """
    Read the leading number of a manual amount, as typed on the keypad.

    Returns 0.0 when no number can be read, or when it is too large to be finite.

    :param str raw: Raw manual amount, e.g. "250" or "12.5"

    :return: Parsed amount
    :rtype: float
    """
    number = ""
    for char in raw.strip():
        if char.isdigit() or (char == "." and "." not in number) or (char == "-" and not number):
            number += char
        else:
            break
    try:
        amount = float(number)
    except ValueError:
        return 0.0
    return amount if math.isfinite(amount) else 0.0
