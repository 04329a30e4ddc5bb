# erp_pos/domain/cart.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List
from uuid import UUID

from erp_pos.domain.exceptions import CartItemNotFoundError, ValidationError

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert int/float/str/Decimal to a Decimal rounded to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class CartLine:
    """
    One product in an uncommitted sale.

    name/sku/price are a snapshot taken when the item was added, so the price
    does not change mid-transaction. available_quantity is the stock seen at
    add time and bounds the requested quantity.
    """

    product_id: UUID
    name: str
    sku: str
    price: Decimal
    quantity: int
    available_quantity: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price * self.quantity)


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


class Cart:
    """
    In-memory cart of a single POS session.

    Purely arithmetic, no backend calls. Lines keep insertion order.
    """

    def __init__(self):
        self._lines: Dict[UUID, CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id) -> bool:
        return product_id in self._lines

    def get_line(self, product_id) -> CartLine | None:
        return self._lines.get(product_id)

    def add_item(self, item: Any) -> bool:
        """
        Add one unit of a catalog item.

        item needs id, name, sku, price and quantity attributes.
        Returns False (and leaves the cart unchanged) when another unit would
        exceed the available quantity captured on first add.
        """
        line = self._lines.get(item.id)

        if line is not None:
            if line.quantity >= line.available_quantity:
                return False
            line.quantity += 1
            return True

        if item.quantity < 1:
            return False

        self._lines[item.id] = CartLine(
            product_id=item.id,
            name=item.name,
            sku=item.sku,
            price=to_money(item.price),
            quantity=1,
            available_quantity=int(item.quantity),
        )
        return True

    def set_quantity(self, product_id, requested_qty: int) -> CartLine:
        """Clamp requested_qty to [1, available_quantity]; never removes the line."""
        line = self._lines.get(product_id)
        if line is None:
            raise CartItemNotFoundError(product_id)

        line.quantity = max(1, min(int(requested_qty), line.available_quantity))
        return line

    def remove_item(self, product_id) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def snapshot(self) -> List[CartLine]:
        """Copies of the current lines, detached from later cart edits."""
        return [CartLine(**vars(line)) for line in self._lines.values()]

    def compute_totals(self, tax_rate, discount=0) -> CartTotals:
        return compute_totals(self._lines.values(), tax_rate, discount)


def compute_totals(lines, tax_rate, discount=0) -> CartTotals:
    """
    subtotal = sum(line totals)
    tax      = subtotal * tax_rate, rounded to cents
    total    = subtotal + tax - discount
    """
    rate = Decimal(str(tax_rate))
    discount = to_money(discount or 0)

    if rate < 0:
        raise ValidationError("Tax rate cannot be negative", details={"tax_rate": str(rate)})
    if discount < 0:
        raise ValidationError("Discount cannot be negative", details={"discount": str(discount)})

    subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
    tax = to_money(subtotal * rate)

    if discount > subtotal + tax:
        raise ValidationError(
            "Discount cannot exceed the sale amount",
            details={"discount": str(discount), "amount": str(subtotal + tax)},
        )

    return CartTotals(
        subtotal=to_money(subtotal),
        tax=tax,
        discount=discount,
        total=to_money(subtotal + tax - discount),
    )
