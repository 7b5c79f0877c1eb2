import os
from decimal import Decimal

# Conversation states
(
    LOGIN_EMAIL, LOGIN_PASSWORD,
    REGISTER_NAME, REGISTER_EMAIL, REGISTER_PASSWORD,
    QUANTITY, PROFILE_NAME,
    SELLER_EMAIL, SELLER_PASSWORD,
    BILL_NAME, BILL_ITEMS, BILL_PAYMENT,
) = range(12)

CURRENCY = os.getenv('CURRENCY', '₹')
# Core PDF fonts are Latin-1 only
PDF_CURRENCY = os.getenv('PDF_CURRENCY', 'Rs.')

TAX_RATE = Decimal('0.02')

# Upper bounds for a single cart line and a manual bill price
MAX_QUANTITY = 1000
MAX_PRICE = Decimal('1000000')

NO_ADDRESS = "No address selected"
DEFAULT_CUSTOMER = "Customer"

STORE_NAME = "Grocery Store"

# Emojis for UI elements
EMOJIS = {
    'CART': '🛒',
    'MONEY': '💰',
    'PRODUCT': '💠',
    'CONFIRM': '✅',
    'WARNING': '⚠️',
    'ERROR': '❌',
    'PERSON': '👤',
    'LOCATION': '📍',
    'SHOPPING': '🛍️',
    'PACKAGE': '📦',
    'WAVE': '👋',
    'PLUS': '➕',
    'MINUS': '➖',
    'STATS': '📊',
    'BILL': '🧾',
    'LOCK': '🔒',
    'CARD': '💳',
    'TRASH': '🗑️',
}

# Status badges for order rows
STATUS_EMOJIS = {
    'Pending': '🟡',
    'Order Placed': '🔵',
    'Delivered': '🟢',
    'Cancelled': '🔴',
}

# Seller panel allow-list from environment variables
AUTHORIZED_USERS_IDS = set()
AUTHORIZED_USERS_USERNAMES = set()

for user in os.getenv('AUTHORIZED_USERS', '').split(','):
    user = user.strip()
    if user.startswith('@'):
        AUTHORIZED_USERS_USERNAMES.add(user.lower())
    elif user.isdigit():
        AUTHORIZED_USERS_IDS.add(int(user))
