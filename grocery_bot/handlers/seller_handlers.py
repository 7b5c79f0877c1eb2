import io
import logging

from telegram import Message, Update
from telegram.ext import ContextTypes, ConversationHandler

from ..errors import ShopError
from ..services.catalog import ALL_CATEGORIES, categories, export_products_csv, filter_products
from ..services.orders import OrderStatus, project_seller_orders, request_delete, request_status_change
from ..services.session import ShopSession, get_session
from ..utils.constants import CURRENCY, EMOJIS, SELLER_EMAIL, SELLER_PASSWORD
from ..utils.formatters import format_bill_record, format_seller_order, format_user
from ..utils.keyboards import (
    create_category_keyboard, create_seller_order_keyboard, create_stock_keyboard, create_user_keyboard,
)
from .auth_handlers import check_seller
from .common import call_backend, get_message, report_error
from .order_handlers import load_catalog

logger = logging.getLogger(__name__)

STATUSES = [status.value for status in OrderStatus]


async def require_seller(update: Update, message: Message, session: ShopSession) -> bool:
    if not await check_seller(update, message):
        return False
    if not session.is_seller:
        await message.reply_text(f"{EMOJIS['LOCK']} Please log in to the seller panel with /seller_login.")
        return False
    return True


async def command_seller_login(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await check_seller(update, update.message):
        return ConversationHandler.END

    context.user_data.pop('pending_auth', None)
    await update.message.reply_text("📧 Seller email:")
    return SELLER_EMAIL


async def handle_seller_email(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data['pending_auth'] = {'email': update.message.text.strip()}
    await update.message.reply_text("🔑 Seller password:")
    return SELLER_PASSWORD


async def handle_seller_password(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    email = context.user_data.pop('pending_auth', {}).get('email', '')
    epoch = session.epoch

    try:
        result = await call_backend(session.backend.seller_login, email, update.message.text)
    except ShopError as e:
        await report_error(update.message, e)
        return ConversationHandler.END

    if session.is_current(epoch):
        session.is_seller = True
        logger.info(f"Seller panel opened by Telegram user {update.effective_user.id}")
    await update.message.reply_text(
        f"{EMOJIS['CONFIRM']} {result or 'Logged in'}\n\n"
        "/seller_orders - Orders\n/seller_products - Product list\n/users - User details\n/bills - Bill history\n/bill - Bill generator"
    )
    return ConversationHandler.END


async def command_seller_logout(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    if not await require_seller(update, update.message, session):
        return

    try:
        result = await call_backend(session.backend.seller_logout)
    except ShopError as e:
        await report_error(update.message, e)
        return

    session.is_seller = False
    session.seller_orders.replace([])
    await update.message.reply_text(f"{EMOJIS['WAVE']} {result or 'Logged out'}")


# Orders

async def command_seller_orders(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)
    if not await require_seller(update, message, session):
        return

    epoch = session.epoch
    try:
        orders = await call_backend(session.backend.get_seller_orders)
    except ShopError as e:
        await report_error(message, e)
        return
    if not session.is_current(epoch):
        return

    session.seller_orders.replace(orders)
    rows = project_seller_orders(session.seller_orders.orders)
    if not rows:
        await message.reply_text("No orders found.")
        return

    await message.reply_text(f"{EMOJIS['STATS']} Orders List ({len(rows)})")
    for row in rows:
        await message.reply_text(
            format_seller_order(row),
            reply_markup=create_seller_order_keyboard(row, STATUSES),
        )


async def handle_seller_order_action(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)
    if not await require_seller(update, message, session):
        return

    parts = update.callback_query.data.split(':')
    action, order_id = parts[1], parts[2]

    try:
        if action == 'st':
            result = await request_status_change(session, session.seller_orders, order_id, STATUSES[int(parts[3])])
        elif action == 'del':
            result = await request_delete(session, session.seller_orders, order_id, seller=True)
            await message.reply_text(f"{EMOJIS['CONFIRM']} {result}")
            return
        else:
            result = None
    except ShopError as e:
        await report_error(message, e)
        return

    rows = project_seller_orders([order for order in session.seller_orders.orders if order.id == order_id])
    if not rows:
        await message.reply_text("Order not found. Use /seller_orders to refresh.")
        return
    if result:
        await message.reply_text(f"{EMOJIS['CONFIRM']} {result}")
    await message.reply_text(
        format_seller_order(rows[0], detailed=(action == 'view')),
        reply_markup=create_seller_order_keyboard(rows[0], STATUSES),
    )


# Products

def _filtered_products(context: ContextTypes.DEFAULT_TYPE, session: ShopSession):
    search, category = context.user_data.get('product_filter', ('', ALL_CATEGORIES))
    return filter_products(session.catalog, search, category)


async def show_product_list(message: Message, context: ContextTypes.DEFAULT_TYPE, session: ShopSession) -> None:
    products = _filtered_products(context, session)
    if not products:
        await message.reply_text("No products found.")
        return
    await message.reply_text(
        f"{EMOJIS['PRODUCT']} All Products ({len(products)}) - tap to toggle stock",
        reply_markup=create_stock_keyboard(products),
    )


async def command_seller_products(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)
    if not await require_seller(update, message, session):
        return

    search = ' '.join(context.args or [])
    context.user_data['product_filter'] = (search, ALL_CATEGORIES)
    try:
        await load_catalog(session, refresh=True)
    except ShopError as e:
        await report_error(message, e)
        return

    await message.reply_text(
        "Filter by category:",
        reply_markup=create_category_keyboard(session.catalog, prefix='sp:cat'),
    )
    await show_product_list(message, context, session)


async def handle_seller_product_action(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)
    if not await require_seller(update, message, session):
        return

    parts = update.callback_query.data.split(':')
    action = parts[1]

    if action == 'cat':
        names = categories(session.catalog)
        index = int(parts[2])
        search, _ = context.user_data.get('product_filter', ('', ALL_CATEGORIES))
        context.user_data['product_filter'] = (search, names[index] if index < len(names) else ALL_CATEGORIES)
        await show_product_list(message, context, session)

    elif action == 'stock':
        product = session.find_product(parts[2])
        if product is None:
            await message.reply_text("Product not found. Use /seller_products to refresh.")
            return
        try:
            result = await call_backend(session.backend.set_stock, product.id, not product.in_stock)
        except ShopError as e:
            await report_error(message, e)
            return
        await message.reply_text(f"{EMOJIS['CONFIRM']} {result or 'Stock Updated'}")
        try:
            await load_catalog(session, refresh=True)
        except ShopError as e:
            await report_error(message, e)
            return
        await show_product_list(message, context, session)

    elif action == 'export':
        products = _filtered_products(context, session)
        await message.reply_document(
            document=io.BytesIO(export_products_csv(products, CURRENCY)),
            filename='products.csv',
            caption=f"{EMOJIS['STATS']} {len(products)} products exported",
        )


# Bills

async def command_bills(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Saved bill history, newest first."""
    session = get_session(context)
    message = await get_message(update)
    if not await require_seller(update, message, session):
        return

    try:
        bills = await call_backend(session.backend.get_bills)
    except ShopError as e:
        await report_error(message, e)
        return

    if not bills:
        await message.reply_text("No bills available.")
        return
    bills.sort(key=lambda bill: bill.created_at.timestamp() if bill.created_at else 0, reverse=True)
    await message.reply_text(f"{EMOJIS['BILL']} Bills ({len(bills)})")
    for bill in bills:
        await message.reply_text(format_bill_record(bill))


# Users

async def command_users(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)
    if not await require_seller(update, message, session):
        return

    try:
        users = await call_backend(session.backend.get_users)
    except ShopError as e:
        await report_error(message, e)
        return

    if not users:
        await message.reply_text("No users found.")
        return
    await message.reply_text(f"{EMOJIS['PERSON']} User Management ({len(users)})")
    for user in users:
        await message.reply_text(format_user(user), reply_markup=create_user_keyboard(user))


async def handle_user_delete(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)
    if not await require_seller(update, message, session):
        return

    user_id = update.callback_query.data.split(':')[2]
    try:
        result = await call_backend(session.backend.delete_user, user_id)
    except ShopError as e:
        await report_error(message, e)
        return

    logger.info(f"User {user_id} deleted from the seller panel")
    await message.reply_text(f"{EMOJIS['CONFIRM']} {result or 'User deleted successfully'}")
