# storefront/domain/pricing.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from storefront.utils.settings import FREE_SHIPPING_THRESHOLD, SHIPPING_SURCHARGE

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def subtotal(lines: Iterable) -> Decimal:
    """Sum of price * quantity over anything with those two attributes."""
    return money(sum((Decimal(str(l.price)) * l.quantity for l in lines), Decimal("0.00")))


def item_count(lines: Iterable) -> int:
    return sum(l.quantity for l in lines)


def shipping_for(amount: Decimal) -> Decimal:
    #threshold inclusive: 50.00 ships free
    if amount >= FREE_SHIPPING_THRESHOLD:
        return Decimal("0.00")
    return money(SHIPPING_SURCHARGE)


def order_total(amount: Decimal) -> Decimal:
    return money(amount + shipping_for(amount))
