"""Decimal rounding helpers shared by the metrics engine."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_away(value: float, decimals: int) -> float:
    """
    Round to a fixed number of decimals, ties away from zero.

    The built-in round() uses banker's rounding on the binary value, so
    round(0.125, 2) gives 0.12. Published rates and timings are 4 and 2
    decimal contracts, so ties are resolved on the shortest decimal
    representation of the float instead.

    Args:
        value: Value to round
        decimals: Number of decimal places to keep

    Returns:
        Rounded value as a float

    Example:
        >>> round_half_away(0.125, 2)
        0.13
        >>> round_half_away(-2.5, 0)
        -3.0
    """
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))
