"""Order summary lines and totals."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from storefront.constant import SAMPLE_ORDER_LINES
from storefront.models import OrderLine


def sample_order_lines() -> list[OrderLine]:
    return [OrderLine(item=item, quantity=quantity, price=Decimal(price)) for item, quantity, price in SAMPLE_ORDER_LINES]


def order_total(lines: Iterable[OrderLine]) -> Decimal:
    """Sum of quantity x price over all lines."""
    return sum((line.subtotal for line in lines), Decimal("0"))


def format_amount(value: Decimal) -> str:
    return f"{value:.2f}"
