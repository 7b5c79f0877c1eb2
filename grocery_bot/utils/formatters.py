from decimal import Decimal
from typing import List, Optional

from ..models.models import Address, BillRecord, CartView, Product, User
from ..services.orders import BuyerOrderRow, SellerOrderRow
from .constants import CURRENCY, DEFAULT_CUSTOMER, EMOJIS, NO_ADDRESS, STATUS_EMOJIS


def money(amount: Decimal) -> str:
    return f"{CURRENCY}{amount:.2f}"


def format_cart_text(view: CartView, count: int, address: Optional[Address], payment_method: str) -> str:
    """Format cart contents with the order summary."""
    if view.is_empty:
        return f"{EMOJIS['CART']} Your cart is empty."

    cart_lines = [
        f"• {item.product.name}: {item.quantity} × {money(item.product.unit_price)} = {money(item.line_total)}"
        for item in view.items
    ]
    cart_text = f"{EMOJIS['CART']} Shopping Cart ({count} items):\n" + "\n".join(cart_lines)
    cart_text += f"\n\n{EMOJIS['LOCATION']} Delivery Address: {address.one_line() if address else NO_ADDRESS}"
    cart_text += f"\n{EMOJIS['CARD']} Payment Method: {payment_method}"
    cart_text += f"\n\nPrice: {money(view.total)}\nShipping Fee: Free"
    cart_text += f"\n{EMOJIS['MONEY']} Total: {money(view.total)}"
    return cart_text


def format_product_line(product: Product) -> str:
    stock = '' if product.in_stock else ' (Out of Stock)'
    weight = f" · {product.weight}" if product.weight else ''
    return f"{EMOJIS['PRODUCT']} {product.name} - {money(product.unit_price)}{weight}{stock}"


def format_welcome(user: Optional[User]) -> str:
    if user and user.name:
        return f"{EMOJIS['WAVE']} Welcome, {user.name}!\nWhat would you like to do?"
    return f"{EMOJIS['WAVE']} Welcome to the Grocery Store!\nLog in with /login or create an account with /register."


def format_order_placed(message: str) -> str:
    return f"{EMOJIS['CONFIRM']} {message}\n\nTrack it with /myorders."


def format_buyer_orders(user: User, rows: List[BuyerOrderRow]) -> str:
    header = f"{EMOJIS['PACKAGE']} My Orders\n{EMOJIS['PERSON']} {user.name} {user.email}".rstrip()
    if not rows:
        return f"{header}\n\nNo orders found."
    lines = [
        f"{STATUS_EMOJIS.get(row.status, '')} #{row.order_id} · {row.product_name} × {row.quantity} · "
        f"{money(row.amount)} · {row.date} · {row.status}"
        + ('' if row.deletable else f" {EMOJIS['LOCK']}")
        for row in rows
    ]
    return header + "\n\n" + "\n".join(lines)


def format_seller_order(row: SellerOrderRow, detailed: bool = False) -> str:
    text = (
        f"{STATUS_EMOJIS.get(row.status, '')} Order #{row.order_id}\n"
        f"Date: {row.created}\n"
        f"Amount: {money(row.amount)}\n"
        f"Status: {row.status}"
    )
    if not detailed:
        return text
    items = "\n".join(f"• {item}" for item in row.items) or "• —"
    address = "\n".join(row.address) or "—"
    return (
        f"{text}\n\n"
        f"{EMOJIS['SHOPPING']} Items:\n{items}\n\n"
        f"{EMOJIS['LOCATION']} Shipping Address:\n{address}\n\n"
        f"{EMOJIS['CARD']} Payment: {row.payment_type} ({'Paid' if row.is_paid else 'Pending'})"
    )


def format_user(user: User) -> str:
    return f"{EMOJIS['PERSON']} {user.name}\nEmail: {user.email}\nUser ID: {user.id}"


def format_bill_record(bill: BillRecord) -> str:
    items = "\n".join(f"• {item}" for item in bill.items) or "• —"
    date = f"{bill.created_at:%d/%m/%Y %H:%M}" if bill.created_at else "—"
    return (
        f"{EMOJIS['BILL']} {bill.customer_name or DEFAULT_CUSTOMER}\n"
        f"{items}\n"
        f"{EMOJIS['CARD']} Payment: {bill.payment_method}\n"
        f"{EMOJIS['MONEY']} Total: {money(bill.total)}\n"
        f"Date: {date}"
    )


def format_bill_caption(total: Decimal) -> str:
    return f"{EMOJIS['BILL']} Bill generated and ready to download!\n{EMOJIS['MONEY']} Total: {money(total)}"
