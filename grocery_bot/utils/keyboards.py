from typing import List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ..models.models import Address, CartView, Product, User
from ..services.catalog import categories
from ..services.orders import BuyerOrderRow, SellerOrderRow
from .constants import CURRENCY, EMOJIS
from .formatters import format_product_line


def create_main_menu_keyboard(is_seller: bool = False) -> InlineKeyboardMarkup:
    """Create the main menu keyboard."""
    keyboard = [
        [InlineKeyboardButton(f"{EMOJIS['SHOPPING']} Browse Products", callback_data='menu:products')],
        [InlineKeyboardButton(f"{EMOJIS['CART']} My Cart", callback_data='menu:cart')],
        [InlineKeyboardButton(f"{EMOJIS['PACKAGE']} My Orders", callback_data='menu:myorders')],
    ]
    if is_seller:
        keyboard.append([
            InlineKeyboardButton(f"{EMOJIS['STATS']} Seller Orders", callback_data='menu:seller_orders'),
            InlineKeyboardButton(f"{EMOJIS['PRODUCT']} Product List", callback_data='menu:seller_products'),
        ])
    return InlineKeyboardMarkup(keyboard)


def create_category_keyboard(products: List[Product], prefix: str = 'cat') -> InlineKeyboardMarkup:
    """One button per category; callback data carries the category index."""
    keyboard = [
        [InlineKeyboardButton(name, callback_data=f'{prefix}:{index}')]
        for index, name in enumerate(categories(products))
    ]
    return InlineKeyboardMarkup(keyboard)


def create_product_keyboard(products: List[Product], show_cart: bool = False) -> InlineKeyboardMarkup:
    """Create a keyboard with product buttons and optional cart button."""
    keyboard = [
        [InlineKeyboardButton(format_product_line(product), callback_data=f'add:{product.id}')]
        for product in products
    ]

    if show_cart:
        keyboard.append([
            InlineKeyboardButton(f"{EMOJIS['CART']} Go to Cart", callback_data='menu:cart')
        ])

    return InlineKeyboardMarkup(keyboard)


def create_cart_keyboard(view: CartView, has_addresses: bool) -> InlineKeyboardMarkup:
    keyboard = [
        [
            InlineKeyboardButton(f"{EMOJIS['MINUS']} {item.product.name[:20]}", callback_data=f'cart:dec:{item.product.id}'),
            InlineKeyboardButton(EMOJIS['PLUS'], callback_data=f'cart:inc:{item.product.id}'),
            InlineKeyboardButton(EMOJIS['TRASH'], callback_data=f'cart:rm:{item.product.id}'),
        ]
        for item in view.items
    ]
    keyboard.append([
        InlineKeyboardButton(
            f"{EMOJIS['LOCATION']} {'Change' if has_addresses else 'Add'} Address",
            callback_data='cart:addr',
        ),
        InlineKeyboardButton(f"{EMOJIS['CARD']} Payment Method", callback_data='cart:pay'),
    ])
    keyboard.append([
        InlineKeyboardButton(f"{EMOJIS['BILL']} Download Bill", callback_data='cart:bill'),
        InlineKeyboardButton(f"{EMOJIS['CONFIRM']} Place Order", callback_data='cart:order'),
    ])
    return InlineKeyboardMarkup(keyboard)


def create_address_keyboard(addresses: List[Address]) -> InlineKeyboardMarkup:
    """Create a keyboard with address buttons."""
    keyboard = [
        [InlineKeyboardButton(f"{EMOJIS['LOCATION']} {address.one_line()}", callback_data=f'addr:{address.id}')]
        for address in addresses
    ]
    return InlineKeyboardMarkup(keyboard)


def create_buyer_orders_keyboard(rows: List[BuyerOrderRow]) -> InlineKeyboardMarkup:
    order_ids = dict.fromkeys(row.order_id for row in rows if row.deletable)
    keyboard = [
        [InlineKeyboardButton(f"{EMOJIS['TRASH']} Delete #{order_id}", callback_data=f'my:del:{order_id}')]
        for order_id in order_ids
    ]
    return InlineKeyboardMarkup(keyboard)


def create_seller_order_keyboard(row: SellerOrderRow, statuses: List[str]) -> InlineKeyboardMarkup:
    """Status buttons only for allowed transitions; delete unless delivered."""
    keyboard = []
    if row.editable:
        keyboard.append([
            InlineKeyboardButton(status, callback_data=f'so:st:{row.order_id}:{statuses.index(status)}')
            for status in row.transitions
        ])
    actions = [InlineKeyboardButton("Details", callback_data=f'so:view:{row.order_id}')]
    if row.deletable:
        actions.append(InlineKeyboardButton(f"{EMOJIS['TRASH']} Delete", callback_data=f'so:del:{row.order_id}'))
    keyboard.append(actions)
    return InlineKeyboardMarkup(keyboard)


def create_stock_keyboard(products: List[Product]) -> InlineKeyboardMarkup:
    keyboard = [
        [InlineKeyboardButton(
            f"{'🟢' if product.in_stock else '🔴'} {product.name} - {CURRENCY}{product.unit_price}",
            callback_data=f'sp:stock:{product.id}',
        )]
        for product in products
    ]
    keyboard.append([InlineKeyboardButton(f"{EMOJIS['STATS']} Export CSV", callback_data='sp:export')])
    return InlineKeyboardMarkup(keyboard)


def create_user_keyboard(user: User) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton(f"{EMOJIS['TRASH']} Delete", callback_data=f'usr:del:{user.id}')]])


def create_payment_keyboard() -> InlineKeyboardMarkup:
    keyboard = [
        [InlineKeyboardButton("Cash on Delivery", callback_data='billpay:COD')],
        [InlineKeyboardButton("Online Payment", callback_data='billpay:ONLINE')],
    ]
    return InlineKeyboardMarkup(keyboard)
