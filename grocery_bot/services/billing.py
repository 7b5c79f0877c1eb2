import re
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from ..errors import Unauthenticated, errmsg
from ..models.models import Address, Bill, BillLine, LineItem, User, to_cents
from ..utils.constants import DEFAULT_CUSTOMER, MAX_PRICE, MAX_QUANTITY, NO_ADDRESS, TAX_RATE


def compute_totals(lines: Iterable[BillLine], tax_rate: Decimal = TAX_RATE) -> Tuple[Decimal, Decimal, Decimal]:
    """Return (subtotal, tax, grand_total), each rounded to the cent."""
    subtotal = to_cents(sum((line.line_total for line in lines), Decimal('0')))
    tax = to_cents(subtotal * tax_rate)
    return subtotal, tax, subtotal + tax


def bill_filename(customer_name: str, prefix: str = 'order-bill', ext: str = 'pdf') -> str:
    """Deterministic file name: ``Jane Doe`` -> ``order-bill_jane_doe.pdf``."""
    safe_name = re.sub(r'\s+', '_', customer_name.strip()).lower()
    return f"{prefix}_{safe_name}.{ext}"


def make_bill(customer_name: str, lines: List[BillLine], payment_method: str,
              address_text: str = NO_ADDRESS, now: Optional[datetime] = None) -> Bill:
    subtotal, tax, grand_total = compute_totals(lines)
    return Bill(
        customer_name=customer_name.strip() or DEFAULT_CUSTOMER,
        lines=list(lines),
        payment_method=payment_method,
        address_text=address_text,
        subtotal=subtotal,
        tax=tax,
        grand_total=grand_total,
        generated_at=now or datetime.now(),
    )


def build_bill(items: List[LineItem], user: Optional[User], address: Optional[Address],
               payment_method: str, now: Optional[datetime] = None) -> Bill:
    """Snapshot the cart into a bill. Nothing in the cart is changed."""
    if user is None:
        raise Unauthenticated(errmsg.BILL_UNAUTHENTICATED)
    lines = [
        BillLine(name=item.product.name, quantity=item.quantity, unit_price=item.product.unit_price)
        for item in items
    ]
    return make_bill(
        customer_name=user.name or DEFAULT_CUSTOMER,
        lines=lines,
        payment_method=payment_method,
        address_text=address.one_line() if address else NO_ADDRESS,
        now=now,
    )


def parse_bill_lines(text: str) -> List[BillLine]:
    """Parse manual bill lines, one ``name, quantity, price`` per line."""
    lines = []
    for number, raw in enumerate(text.strip().splitlines(), start=1):
        if not raw.strip():
            continue
        parts = [part.strip() for part in raw.rsplit(',', 2)]
        if len(parts) != 3 or not parts[0]:
            raise ValueError(f"Line {number}: expected 'name, quantity, price'")
        name, quantity, price = parts
        try:
            quantity = int(quantity)
            price = Decimal(price)
            if not price.is_finite():
                raise ValueError(price)
        except (ValueError, ArithmeticError):
            raise ValueError(f"Line {number}: quantity and price must be numbers")
        if quantity <= 0 or price < 0:
            raise ValueError(f"Line {number}: quantity must be positive and price not negative")
        if quantity > MAX_QUANTITY or price > MAX_PRICE:
            raise ValueError(f"Line {number}: at most {MAX_QUANTITY} units and a price up to {MAX_PRICE}")
        lines.append(BillLine(name=name, quantity=quantity, unit_price=price))
    return lines
