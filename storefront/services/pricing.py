# storefront/services/pricing.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Any

# Orders strictly above this subtotal ship for free
FREE_SHIPPING_THRESHOLD = Decimal("100")
FLAT_SHIPPING_PRICE = Decimal("10")

# Fixed tax rate (15%)
TAX_RATE = Decimal("0.15")

CENT = Decimal("0.01")


def round2(value: Decimal | int | float | str) -> Decimal:
    """
    Round half-up to two decimal places.

    Floats are converted through str() so 1.005 rounds to 1.01.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calc_price(items: Iterable[Mapping[str, Any]]) -> dict[str, Decimal]:
    """
    Compute the four derived cart prices from line items.

    Each item needs `price` and `qty`. Every field is rounded on its own:

        items_price    = round2(sum(price * qty))
        shipping_price = 0 if items_price > 100 else 10
        tax_price      = round2(0.15 * items_price)
        total_price    = round2(items_price + shipping_price + tax_price)
    """
    items_price = round2(
        sum((Decimal(str(it["price"])) * int(it["qty"]) for it in items), Decimal("0"))
    )
    shipping_price = round2(
        Decimal("0") if items_price > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_PRICE
    )
    tax_price = round2(TAX_RATE * items_price)
    total_price = round2(items_price + shipping_price + tax_price)

    return {
        "items_price": items_price,
        "shipping_price": shipping_price,
        "tax_price": tax_price,
        "total_price": total_price,
    }


def zero_prices() -> dict[str, Decimal]:
    """Pricing fields of an emptied cart."""
    return {
        "items_price": round2(0),
        "shipping_price": round2(0),
        "tax_price": round2(0),
        "total_price": round2(0),
    }
