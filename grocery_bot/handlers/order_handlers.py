import logging

from telegram import Update
from telegram.ext import ContextTypes, ConversationHandler

from ..errors import InvalidQuantity, OutOfStock, ShopError, errmsg
from ..services.catalog import categories, filter_products, in_stock
from ..services.checkout import place_order
from ..services.session import ShopSession, get_session
from ..utils.constants import EMOJIS, QUANTITY
from ..utils.formatters import format_cart_text, format_order_placed, money
from ..utils.keyboards import (
    create_address_keyboard, create_cart_keyboard, create_category_keyboard, create_product_keyboard,
)
from .auth_handlers import check_auth
from .common import call_backend, get_message, report_error

logger = logging.getLogger(__name__)


async def load_catalog(session: ShopSession, refresh: bool = False) -> None:
    if session.catalog and not refresh:
        return
    epoch = session.epoch
    products = await call_backend(session.backend.get_products)
    if session.is_current(epoch):
        session.catalog = products


async def load_addresses(session: ShopSession) -> None:
    epoch = session.epoch
    addresses = await call_backend(session.backend.get_addresses)
    if session.is_current(epoch):
        session.set_addresses(addresses)


async def command_products(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)

    try:
        await load_catalog(session, refresh=True)
    except ShopError as e:
        await report_error(message, e)
        return

    available = in_stock(session.catalog)
    if not available:
        await message.reply_text(f"{EMOJIS['ERROR']} No products available.")
        return

    await message.reply_text(
        f"{EMOJIS['SHOPPING']} Pick a category:",
        reply_markup=create_category_keyboard(available),
    )


async def handle_category(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)

    available = in_stock(session.catalog)
    names = categories(available)
    index = int(update.callback_query.data.split(':')[1])
    if index >= len(names):
        await message.reply_text(f"{EMOJIS['WARNING']} The product list changed, please use /products again.")
        return

    products = filter_products(available, category=names[index])
    await message.reply_text(
        f"{EMOJIS['SHOPPING']} {names[index]}: select a product to add to your cart",
        reply_markup=create_product_keyboard(products, show_cart=bool(session.cart)),
    )


async def handle_product_selection(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)

    product_id = update.callback_query.data.split(':', 1)[1]
    product = session.find_product(product_id)
    if product is None:
        await message.reply_text(f"{EMOJIS['WARNING']} {errmsg.UNKNOWN_PRODUCT}")
        return ConversationHandler.END
    if not product.in_stock:
        await report_error(message, OutOfStock())
        return ConversationHandler.END

    session.current_product = product_id
    await message.reply_text(f"{EMOJIS['PACKAGE']} Enter quantity for {product.name}:")
    return QUANTITY


async def handle_quantity(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)

    try:
        quantity = int(update.message.text)
    except ValueError:
        await update.message.reply_text(f"{EMOJIS['ERROR']} Please enter a valid positive number!")
        return QUANTITY

    product_id = session.current_product
    if product_id is None or session.find_product(product_id) is None:
        await update.message.reply_text(f"{EMOJIS['WARNING']} Please select a product first.")
        return ConversationHandler.END

    try:
        session.cart.add(product_id, quantity)
    except InvalidQuantity as e:
        await update.message.reply_text(f"{EMOJIS['ERROR']} {e.message}")
        return QUANTITY

    session.current_product = None
    view = session.cart_view()
    await update.message.reply_text(
        f"{EMOJIS['CONFIRM']} Added to cart. Cart total: {money(view.total)} ({session.cart.count()} items)",
        reply_markup=create_product_keyboard(in_stock(session.catalog), show_cart=True),
    )
    return ConversationHandler.END


async def show_cart(message, session: ShopSession) -> None:
    view = session.cart_view()
    text = format_cart_text(view, session.cart.count(), session.selected_address, session.payment_method.value)
    if view.is_empty:
        await message.reply_text(text)
        return
    await message.reply_text(text, reply_markup=create_cart_keyboard(view, bool(session.addresses)))


async def command_cart(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)

    try:
        await load_catalog(session)
        if session.user is not None:
            await load_addresses(session)
    except ShopError as e:
        await report_error(message, e)
        return

    await show_cart(message, session)


async def handle_cart_action(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Quantity +/-, remove, address and payment buttons under the cart."""
    session = get_session(context)
    message = await get_message(update)
    parts = update.callback_query.data.split(':')
    action = parts[1]

    if action in ('inc', 'dec', 'rm'):
        product_id = parts[2]
        current = session.cart.quantity(product_id)
        if action == 'inc' and current:
            try:
                session.cart.update(product_id, current + 1)
            except InvalidQuantity as e:
                await report_error(message, e)
                return
        elif action == 'dec' and current > 1:
            session.cart.update(product_id, current - 1)
        else:
            session.cart.remove(product_id)
        await show_cart(message, session)

    elif action == 'pay':
        session.payment_method = session.payment_method.toggled()
        await show_cart(message, session)

    elif action == 'addr':
        if not await check_auth(message, session):
            return
        try:
            await load_addresses(session)
        except ShopError as e:
            await report_error(message, e)
            return
        if not session.addresses:
            await message.reply_text(f"{EMOJIS['LOCATION']} No address found. Add one in the store first.")
            return
        await message.reply_text(
            f"{EMOJIS['LOCATION']} Choose a delivery address:",
            reply_markup=create_address_keyboard(session.addresses),
        )


async def handle_address_selection(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)

    address_id = update.callback_query.data.split(':', 1)[1]
    if session.select_address(address_id) is None:
        await message.reply_text(f"{EMOJIS['WARNING']} That address is no longer available.")
        return
    await show_cart(message, session)


async def handle_place_order(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)

    try:
        outcome = await place_order(session, session.payment_method)
    except ShopError as e:
        await report_error(message, e)
        return

    if outcome.redirect_url:
        await message.reply_text(
            f"{EMOJIS['CARD']} Complete your payment here:\n{outcome.redirect_url}"
        )
        return

    await message.reply_text(format_order_placed(outcome.message))
