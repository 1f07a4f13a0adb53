"""Display formatting shared by lead responses and stats"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Union

CRORE = Decimal(10_000_000)
LAKH = Decimal(100_000)
THOUSAND = Decimal(1_000)

Number = Union[str, int, float, Decimal]


def _as_decimal(value: Number) -> Decimal:
    amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    if not amount.is_finite():
        raise ValueError(f"Cannot format non-finite amount {value!r}")
    return amount


def _one_decimal(value: Decimal) -> str:
    # Half-up on the nearest binary double, the way the dashboard's toFixed(1) rounds.
    binary = float(value)
    exact = Decimal(binary) if math.isfinite(binary) else value
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + 3)
        return str(exact.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _group_en_in(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def _locale_number(value: Decimal) -> str:
    amount = value.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    text = format(abs(amount), "f")
    whole, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    grouped = _group_en_in(whole)
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def format_budget(budget: Number) -> str:
    """Abbreviate a rupee amount: Cr, L and K tiers, plain grouped number below 1,000."""
    amount = _as_decimal(budget)

    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        if amount >= CRORE:
            return f"₹{_one_decimal(amount / CRORE)}Cr"
        elif amount >= LAKH:
            return f"₹{_one_decimal(amount / LAKH)}L"
        elif amount >= THOUSAND:
            return f"₹{_one_decimal(amount / THOUSAND)}K"
        return f"₹{_locale_number(amount)}"


def format_phone_number(phone: str) -> str:
    cleaned = re.sub(r"\D", "", phone)
    if len(cleaned) == 10:
        return f"+91 {cleaned[:5]} {cleaned[5:]}"
    return phone
