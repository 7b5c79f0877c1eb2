"""Order status policy and the buyer/seller order views.

Both order lists go through the same policy functions, so the status
machine is applied identically everywhere:

    Pending      -> Order Placed, Cancelled
    Order Placed -> Delivered, Cancelled
    Delivered, Cancelled: terminal

The backend stays authoritative. The policy only decides which controls
are offered; a backend rejection is always reported as-is.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..errors import TerminalStateViolation, ShopError, errmsg
from ..models.models import Address, Order

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "Pending"
    ORDER_PLACED = "Order Placed"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    OrderStatus.PENDING.value: (OrderStatus.ORDER_PLACED.value, OrderStatus.CANCELLED.value),
    OrderStatus.ORDER_PLACED.value: (OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value),
    OrderStatus.DELIVERED.value: (),
    OrderStatus.CANCELLED.value: (),
}


def allowed_transitions(status: str) -> Tuple[str, ...]:
    # Unknown statuses get no controls
    return TRANSITIONS.get(status, ())


def seller_can_delete(status: str) -> bool:
    return status != OrderStatus.DELIVERED.value


def buyer_can_delete(status: str) -> bool:
    return status == OrderStatus.PENDING.value


@dataclass(frozen=True)
class SellerOrderRow:
    order_id: str
    created: str
    amount: Decimal
    status: str
    items: List[str]
    address: List[str]
    payment_type: str
    is_paid: bool
    transitions: Tuple[str, ...]
    deletable: bool

    @property
    def editable(self) -> bool:
        return bool(self.transitions)


@dataclass(frozen=True)
class BuyerOrderRow:
    order_id: str
    product_name: str
    quantity: int
    amount: Decimal
    date: str
    status: str
    deletable: bool


def _format_date(value, fmt: str = '%d/%m/%Y') -> str:
    return value.strftime(fmt) if value else ''


def _address_lines(address) -> List[str]:
    if isinstance(address, Address):
        lines = [
            f"{address.street}, {address.city}",
            ", ".join(part for part in (address.state, address.zipcode, address.country) if part),
        ]
        name = f"{address.first_name} {address.last_name}".strip()
        if name:
            lines.insert(0, name)
        if address.phone:
            lines.append(f"Phone: {address.phone}")
        return lines
    if address:
        return [f"Address ID: {address}"]
    return []


def project_seller_orders(orders: List[Order]) -> List[SellerOrderRow]:
    return [
        SellerOrderRow(
            order_id=order.id,
            created=_format_date(order.created_at, '%d/%m/%Y %H:%M'),
            amount=order.amount,
            status=order.status,
            items=[f"{item.product_name or 'Unknown Product'} - Qty: {item.quantity}" for item in order.items],
            address=_address_lines(order.address),
            payment_type=order.payment_type,
            is_paid=order.is_paid,
            transitions=allowed_transitions(order.status),
            deletable=seller_can_delete(order.status),
        )
        for order in orders
    ]


def project_buyer_orders(orders: List[Order]) -> List[BuyerOrderRow]:
    """One row per ordered item, as the buyer's order history lists them."""
    return [
        BuyerOrderRow(
            order_id=order.id,
            product_name=item.product_name or 'Unknown Product',
            quantity=item.quantity,
            amount=item.unit_price * item.quantity,
            date=_format_date(order.created_at),
            status=order.status,
            deletable=buyer_can_delete(order.status),
        )
        for order in orders
        for item in order.items
    ]


class OrderBook:
    """Local copy of an order list.

    Changes are applied only after the backend has confirmed them.
    """

    def __init__(self, orders: Optional[List[Order]] = None):
        self._orders: List[Order] = list(orders or [])

    @property
    def orders(self) -> List[Order]:
        return list(self._orders)

    def replace(self, orders: List[Order]) -> None:
        self._orders = list(orders)

    def get(self, order_id: str) -> Optional[Order]:
        return next((order for order in self._orders if order.id == order_id), None)

    def apply_status(self, order_id: str, status: str) -> bool:
        order = self.get(order_id)
        if order is None:
            return False
        order.status = status
        return True

    def remove(self, order_id: str) -> bool:
        before = len(self._orders)
        self._orders = [order for order in self._orders if order.id != order_id]
        return len(self._orders) != before

    def __len__(self) -> int:
        return len(self._orders)


def _require(book: OrderBook, order_id: str) -> Order:
    order = book.get(order_id)
    if order is None:
        raise ShopError(errmsg.UNKNOWN_ORDER)
    return order


async def request_status_change(session, book: OrderBook, order_id: str, status: str) -> str:
    order = _require(book, order_id)
    if status not in allowed_transitions(order.status):
        raise TerminalStateViolation(order.status)

    epoch = session.epoch
    message = await asyncio.to_thread(session.backend.update_order_status, order_id, status)
    if session.is_current(epoch):
        book.apply_status(order_id, status)
    logger.info(f"Order {order_id} status changed to {status}")
    return message or "Status updated!"


async def request_delete(session, book: OrderBook, order_id: str, seller: bool = True) -> str:
    order = _require(book, order_id)
    can_delete = seller_can_delete if seller else buyer_can_delete
    if not can_delete(order.status):
        raise TerminalStateViolation(order.status, errmsg.CANNOT_DELETE.format(status=order.status.lower()))

    epoch = session.epoch
    message = await asyncio.to_thread(session.backend.delete_order, order_id)
    if session.is_current(epoch):
        book.remove(order_id)
    logger.info(f"Order {order_id} deleted")
    return message or "Order deleted successfully!"
