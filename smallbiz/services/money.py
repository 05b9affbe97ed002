from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def quantize_money(value) -> Decimal:
    """Round to the two places the Numeric(10, 2) columns hold."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def average(total, count: int) -> Decimal:
    if not count:
        return quantize_money(0)
    return quantize_money(Decimal(total) / count)


def within_tolerance(left: Decimal, right: Decimal, tolerance: Decimal) -> bool:
    return abs(Decimal(left) - Decimal(right)) <= tolerance
