from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

CENTS = Decimal("0.01")


def to_decimal(value: Optional[Union[float, int, str, Decimal]]) -> Optional[Decimal]:
    """Money amounts go to NUMERIC columns as Decimal rounded to cents"""
    if value is None:
        return None
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
