from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple, Union

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 0.1 don't drag binary noise along
    return Decimal(str(value))


def quantize(value: Number) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_paise(rupees: Number) -> int:
    """Rupees to the gateway's minor unit, rounded to the nearest paisa."""
    return int((to_decimal(rupees) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_rupees(paise: int) -> Decimal:
    return quantize(Decimal(paise) / 100)


def order_totals(
    lines: Iterable[Tuple[Number, int]], tax_rate: Decimal
) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Returns (subtotal, tax, total) for (unit_price, quantity) pairs.

    total is tax-inclusive and rounded to two places; tax is whatever
    makes subtotal + tax == total.
    """
    subtotal = sum(
        (to_decimal(price) * quantity for price, quantity in lines),
        Decimal("0"),
    )
    total = quantize(subtotal * (1 + tax_rate))
    subtotal = quantize(subtotal)
    return subtotal, total - subtotal, total


def format_price(amount: Number) -> str:
    """Indian digit grouping, e.g. 123456.5 -> ₹1,23,456.50"""
    value = quantize(amount)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return f"{sign}₹{whole}.{fraction}"
