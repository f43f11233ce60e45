"""
Side-effect-free order checks and pricing.

Everything here works on already-fetched catalog rows, so it can be retried
freely and never needs a rollback.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from shared.exceptions import NotFoundError, UnavailableError, ValidationError

CENT = Decimal("0.01")


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    quantity: int
    price_per_item: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.price_per_item * self.quantity


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def validate_order_request(customer_id, shipping_address, items) -> None:
    if not customer_id or not shipping_address or not shipping_address.strip() or not items:
        raise ValidationError("Missing required fields: customer_id, shipping_address, and items.")
    for item in items:
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError(
                f"Quantity for product {item.product_id} must be a positive integer."
            )


def price_order_lines(items: Sequence, products: Iterable) -> tuple[list[PricedLine], Decimal]:
    """
    Prices every requested line from the catalog rows.

    `items` carry product_id/quantity only; the unit price always comes from
    `products` (objects with id, name, price, is_available).
    """
    catalog = {product.id: product for product in products}
    requested_ids = {item.product_id for item in items}
    if len(catalog) < len(requested_ids):
        raise NotFoundError("One or more products not found.")

    lines = []
    total = Decimal("0")
    for item in items:
        product = catalog.get(item.product_id)
        if product is None:
            raise NotFoundError(f"Product with id {item.product_id} not found.")
        if not product.is_available:
            raise UnavailableError(f"Product '{product.name}' is not available.")

        line = PricedLine(
            product_id=product.id,
            quantity=item.quantity,
            price_per_item=to_money(product.price),
        )
        total += line.subtotal
        lines.append(line)

    return lines, to_money(total)
