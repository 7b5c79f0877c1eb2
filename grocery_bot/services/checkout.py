"""Order assembly and payment dispatch."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import EmptyCart, MissingAddress, Unauthenticated
from ..models.models import Address, LineItem, User

logger = logging.getLogger(__name__)


class PaymentMethod(Enum):
    COD = "Cash on Delivery"
    ONLINE = "Online Payment"

    def toggled(self) -> 'PaymentMethod':
        return PaymentMethod.ONLINE if self is PaymentMethod.COD else PaymentMethod.COD


@dataclass(frozen=True)
class OrderOutcome:
    payment_method: PaymentMethod
    message: str = ''
    redirect_url: Optional[str] = None


def assemble_order(user: Optional[User], address: Optional[Address], items: List[LineItem]) -> Dict[str, Any]:
    """Build the order payload, checking preconditions in a fixed order."""
    if user is None:
        raise Unauthenticated("You must be logged in to place an order")
    if address is None:
        raise MissingAddress()
    if not items:
        raise EmptyCart()
    return {
        'userId': user.id,
        'items': [{'product': item.product.id, 'quantity': item.quantity} for item in items],
        'address': address.id,
    }


async def place_order(session, payment_method: PaymentMethod) -> OrderOutcome:
    """Validate and submit the session's cart.

    Cash on delivery clears the cart once the backend confirms. Online
    payment only returns the payment URL; the transaction completes outside
    the bot. Any failure propagates with the cart untouched.
    """
    payload = assemble_order(session.user, session.selected_address, session.cart_view().items)
    user_id = session.user.id
    epoch = session.epoch

    if payment_method is PaymentMethod.COD:
        message = await asyncio.to_thread(session.backend.place_cod_order, payload)
        if session.is_current(epoch):
            session.cart.clear()
        logger.info(f"COD order placed for user {user_id} ({len(payload['items'])} items)")
        return OrderOutcome(payment_method=payment_method, message=message or "Order Placed Successfully")

    url = await asyncio.to_thread(session.backend.place_online_order, payload)
    logger.info(f"Online payment started for user {user_id}")
    return OrderOutcome(payment_method=payment_method, redirect_url=url)
