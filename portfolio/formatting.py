from datetime import date
from decimal import ROUND_HALF_UP, Decimal


def format_currency(value, decimals: int = 0) -> str:
    """Decimal('-1234.5') -> '-$1,235'"""
    quant = Decimal(1).scaleb(-decimals)
    amount = Decimal(value).quantize(quant, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.{decimals}f}"


def format_percent(value, decimals: int = 2) -> str:
    amount = Decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    if amount == 0:
        amount = abs(amount)  # no "-0.00"
    sign = "+" if amount >= 0 else ""
    return f"{sign}{amount:.{decimals}f}%"


def format_date(d: date) -> str:
    return f"{d.strftime('%b')} {d.day}, {d.year}"
