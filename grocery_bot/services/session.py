from dataclasses import dataclass, field
from typing import List, Optional

from telegram.ext import ContextTypes

from ..api.backend import BackendClient
from ..models.models import Address, Product, User
from .cart import CartState, project_cart
from .checkout import PaymentMethod
from .orders import OrderBook


@dataclass
class ShopSession:
    """Per-user application state.

    Handlers receive it through :func:`get_session` and only change it
    through the methods below or the slice objects it owns (cart, order
    books). ``epoch`` is bumped by :meth:`reset`; a handler that awaited a
    backend call compares epochs before applying the result.
    """

    backend: BackendClient
    user: Optional[User] = None
    is_seller: bool = False
    catalog: List[Product] = field(default_factory=list)
    cart: CartState = field(default_factory=CartState)
    addresses: List[Address] = field(default_factory=list)
    selected_address: Optional[Address] = None
    payment_method: PaymentMethod = PaymentMethod.COD
    my_orders: OrderBook = field(default_factory=OrderBook)
    seller_orders: OrderBook = field(default_factory=OrderBook)
    current_product: Optional[str] = None
    epoch: int = 0

    def reset(self) -> None:
        self.user = None
        self.is_seller = False
        self.cart.clear()
        self.addresses = []
        self.selected_address = None
        self.payment_method = PaymentMethod.COD
        self.my_orders.replace([])
        self.seller_orders.replace([])
        self.current_product = None
        self.epoch += 1

    def is_current(self, epoch: int) -> bool:
        return epoch == self.epoch

    def cart_view(self):
        return project_cart(self.catalog, self.cart)

    def set_addresses(self, addresses: List[Address]) -> None:
        self.addresses = list(addresses)
        ids = {address.id for address in self.addresses}
        if self.selected_address is None or self.selected_address.id not in ids:
            self.selected_address = self.addresses[0] if self.addresses else None

    def select_address(self, address_id: str) -> Optional[Address]:
        for address in self.addresses:
            if address.id == address_id:
                self.selected_address = address
                return address
        return None

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.catalog if p.id == product_id), None)


def get_session(context: ContextTypes.DEFAULT_TYPE) -> ShopSession:
    session = context.user_data.get('session')
    if session is None:
        session = ShopSession(backend=BackendClient())
        context.user_data['session'] = session
    return session
