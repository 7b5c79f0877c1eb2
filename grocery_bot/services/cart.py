"""Cart state and the cart projector.

The cart only stores product ids and quantities. Everything shown to the
user (line totals, the cart total) is recomputed from the current catalog on
every projection, so a price change or a delisted product can never leave a
stale total behind.
"""

from typing import Dict, Iterable, Iterator, Tuple

from ..errors import InvalidQuantity
from ..models.models import CartView, LineItem, Product
from ..utils.constants import MAX_QUANTITY


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_QUANTITY:
        raise InvalidQuantity(MAX_QUANTITY)
    return quantity


class CartState:
    """Mapping of product id to requested quantity (always >= 1)."""

    def __init__(self, entries: Dict[str, int] = None):
        self._entries: Dict[str, int] = {}
        for product_id, quantity in (entries or {}).items():
            self._entries[str(product_id)] = _check_quantity(quantity)

    def add(self, product_id: str, quantity: int = 1) -> int:
        """Add ``quantity`` units, on top of what is already in the cart."""
        quantity = _check_quantity(quantity)
        new_quantity = _check_quantity(self._entries.get(product_id, 0) + quantity)
        self._entries[product_id] = new_quantity
        return new_quantity

    def update(self, product_id: str, quantity: int) -> None:
        self._entries[product_id] = _check_quantity(quantity)

    def remove(self, product_id: str) -> None:
        self._entries.pop(product_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def quantity(self, product_id: str) -> int:
        return self._entries.get(product_id, 0)

    def count(self) -> int:
        return sum(self._entries.values())

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(list(self._entries.items()))

    def snapshot(self) -> Dict[str, int]:
        return dict(self._entries)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


def project_cart(catalog: Iterable[Product], cart: CartState) -> CartView:
    """Join the cart against the catalog.

    Entries whose product is no longer in the catalog are dropped without an
    error. Line items keep the cart's insertion order.
    """
    by_id = {product.id: product for product in catalog}
    items = [
        LineItem(product=by_id[product_id], quantity=quantity)
        for product_id, quantity in cart.items()
        if product_id in by_id
    ]
    return CartView(items=items)
