"""Currency and GST primitives. Amounts are Decimal, rounded half-up to paise."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

GST_RATE = Decimal("18")

_PAISE = Decimal("0.01")
_HUNDRED = Decimal("100")
_GST_MULTIPLIER = 1 + GST_RATE / _HUNDRED

Amount = Union[Decimal, int, float, str]


def to_decimal(val: Amount) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def round_money(val: Amount) -> Decimal:
    return to_decimal(val).quantize(_PAISE, rounding=ROUND_HALF_UP)


def percentage_of(amount: Amount, percentage: Amount) -> Decimal:
    """`percentage` percent of `amount`, rounded to paise."""
    return round_money(to_decimal(amount) * to_decimal(percentage) / _HUNDRED)


def calculate_gst(base_amount: Amount) -> Decimal:
    """GST payable on a tax-exclusive amount."""
    return percentage_of(base_amount, GST_RATE)


def extract_gst_from_total(total_amount: Amount) -> Decimal:
    """Tax component embedded in a GST-inclusive amount."""
    total = to_decimal(total_amount)
    return round_money(total - total / _GST_MULTIPLIER)


def extract_base_amount_from_total(total_amount: Amount) -> Decimal:
    """Tax-exclusive part of a GST-inclusive amount."""
    return round_money(to_decimal(total_amount) / _GST_MULTIPLIER)


def format_currency(amount: Amount) -> str:
    """
    Format an amount as Indian rupees with lakh/crore digit grouping.

    >>> format_currency(1234567.8)
    '₹12,34,567.80'
    """
    value = round_money(amount)
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
