from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

CENT = Decimal('0.01')


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Convert a JSON number (or numeric string) to a Decimal price."""
    if value is None or value == '':
        return Decimal('0')
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    unit_price: Decimal
    category: str
    in_stock: bool = True
    images: List[str] = field(default_factory=list)
    weight: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Product':
        price = data.get('offerPrice', data.get('price'))
        unit_price = to_decimal(price)
        if unit_price < 0:
            raise ValueError(f"Negative price for product {data.get('_id')}")
        return cls(
            id=str(data.get('_id') or data.get('id')),
            name=data.get('name', ''),
            unit_price=unit_price,
            category=data.get('category', ''),
            in_stock=bool(data.get('inStock', True)),
            images=list(data.get('image') or []),
            weight=data.get('weight'),
        )


@dataclass(frozen=True)
class Address:
    id: str
    street: str
    city: str
    state: str
    country: str
    phone: str = ''
    zipcode: Optional[str] = None
    first_name: str = ''
    last_name: str = ''

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Address':
        return cls(
            id=str(data.get('_id') or data.get('id') or ''),
            street=data.get('street', ''),
            city=data.get('city', ''),
            state=data.get('state', ''),
            country=data.get('country', ''),
            phone=str(data.get('phone', '')),
            zipcode=data.get('zipcode'),
            first_name=data.get('firstName', ''),
            last_name=data.get('lastName', ''),
        )

    def one_line(self) -> str:
        return f"{self.street}, {self.city}, {self.state}, {self.country}"


@dataclass
class User:
    id: str
    name: str
    email: str = ''

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=str(data.get('_id') or data.get('id')),
            name=data.get('name', ''),
            email=data.get('email', ''),
        )


@dataclass(frozen=True)
class LineItem:
    product: Product
    quantity: int

    @property
    def line_total(self) -> Decimal:
        # Always derived, never stored
        return self.product.unit_price * self.quantity


@dataclass(frozen=True)
class CartView:
    items: List[LineItem]

    @property
    def total(self) -> Decimal:
        return to_cents(sum((item.line_total for item in self.items), Decimal('0')))

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    product_name: Optional[str]
    unit_price: Decimal
    quantity: int

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'OrderItem':
        product = data.get('product')
        if isinstance(product, dict):
            return cls(
                product_id=str(product.get('_id', '')),
                product_name=product.get('name'),
                unit_price=to_decimal(product.get('offerPrice', product.get('price'))),
                quantity=int(data.get('quantity', 0)),
            )
        return cls(
            product_id=str(product or ''),
            product_name=None,
            unit_price=Decimal('0'),
            quantity=int(data.get('quantity', 0)),
        )


@dataclass
class Order:
    id: str
    items: List[OrderItem]
    status: str
    amount: Decimal
    payment_type: str = ''
    is_paid: bool = False
    # Either an embedded Address or the raw address id
    address: Any = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Order':
        address = data.get('address')
        if isinstance(address, dict):
            address = Address.from_api(address)
        return cls(
            id=str(data.get('_id') or data.get('id')),
            items=[OrderItem.from_api(item) for item in data.get('items', [])],
            status=data.get('status', 'Pending'),
            amount=to_decimal(data.get('amount')),
            payment_type=data.get('paymentType', ''),
            is_paid=bool(data.get('isPaid', False)),
            address=address,
            created_at=parse_timestamp(data.get('createdAt')),
            updated_at=parse_timestamp(data.get('updatedAt')),
        )


def _bill_item_text(item: Any) -> str:
    if isinstance(item, dict):
        return f"{item.get('name', '')} x {item.get('quantity', 1)} @ {to_decimal(item.get('price'))}"
    return str(item)


@dataclass(frozen=True)
class BillRecord:
    """A bill saved by the backend, as listed in the seller panel."""
    id: str
    customer_name: str
    items: List[str]
    payment_method: str
    total: Decimal
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'BillRecord':
        items = data.get('items') or []
        if not isinstance(items, list):
            items = [items]
        return cls(
            id=str(data.get('_id') or data.get('id', '')),
            customer_name=data.get('customerName', ''),
            items=[_bill_item_text(item) for item in items],
            payment_method=data.get('paymentMethod', ''),
            total=to_decimal(data.get('totalAmount')),
            created_at=parse_timestamp(data.get('createdAt')),
        )


@dataclass(frozen=True)
class BillLine:
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Bill:
    customer_name: str
    lines: List[BillLine]
    payment_method: str
    address_text: str
    subtotal: Decimal
    tax: Decimal
    grand_total: Decimal
    generated_at: datetime
