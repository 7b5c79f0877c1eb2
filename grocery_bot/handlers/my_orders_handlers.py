from telegram import Update
from telegram.ext import ContextTypes

from ..errors import ShopError
from ..services.orders import project_buyer_orders, request_delete
from ..services.session import ShopSession, get_session
from ..utils.constants import EMOJIS
from ..utils.formatters import format_buyer_orders
from ..utils.keyboards import create_buyer_orders_keyboard
from .auth_handlers import check_auth
from .common import call_backend, get_message, report_error


async def show_my_orders(message, session: ShopSession) -> None:
    rows = project_buyer_orders(session.my_orders.orders)
    await message.reply_text(
        format_buyer_orders(session.user, rows),
        reply_markup=create_buyer_orders_keyboard(rows),
    )


async def command_my_orders(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    message = await get_message(update)
    if not await check_auth(message, session):
        return

    epoch = session.epoch
    try:
        orders = await call_backend(session.backend.get_user_orders)
    except ShopError as e:
        await report_error(message, e)
        return
    if not session.is_current(epoch):
        return

    session.my_orders.replace(orders)
    await show_my_orders(message, session)


async def handle_my_order_delete(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Buyers may only delete orders that are still pending."""
    session = get_session(context)
    message = await get_message(update)
    if not await check_auth(message, session):
        return

    order_id = update.callback_query.data.split(':')[2]
    try:
        result = await request_delete(session, session.my_orders, order_id, seller=False)
    except ShopError as e:
        await report_error(message, e)
        return

    await message.reply_text(f"{EMOJIS['CONFIRM']} {result}")
    await show_my_orders(message, session)
