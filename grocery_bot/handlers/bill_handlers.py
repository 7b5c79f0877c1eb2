import io
import logging

from telegram import Update
from telegram.ext import ContextTypes, ConversationHandler

from ..errors import ShopError
from ..models.models import Bill
from ..services.bill_pdf import render_bill_pdf
from ..services.billing import bill_filename, build_bill, make_bill, parse_bill_lines
from ..services.checkout import PaymentMethod
from ..services.session import get_session
from ..utils.constants import BILL_ITEMS, BILL_NAME, BILL_PAYMENT, EMOJIS
from ..utils.formatters import format_bill_caption
from ..utils.keyboards import create_payment_keyboard
from .common import get_message, report_error
from .seller_handlers import require_seller

logger = logging.getLogger(__name__)


async def send_bill(message, bill: Bill, prefix: str) -> None:
    try:
        pdf = render_bill_pdf(bill)
    except Exception as e:
        logger.error(f"Error rendering bill for {bill.customer_name}: {e}")
        await message.reply_text(f"{EMOJIS['ERROR']} Sorry, there was an error generating the bill.")
        return

    await message.reply_document(
        document=io.BytesIO(pdf),
        filename=bill_filename(bill.customer_name, prefix=prefix),
        caption=format_bill_caption(bill.grand_total),
    )


async def handle_cart_bill(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Download a bill for the current cart. The cart is left as it is."""
    session = get_session(context)
    message = await get_message(update)

    try:
        bill = build_bill(
            session.cart_view().items,
            session.user,
            session.selected_address,
            session.payment_method.value,
        )
    except ShopError as e:
        await report_error(message, e)
        return

    await send_bill(message, bill, prefix='order-bill')


# Manual bill generator (seller panel)

async def command_bill(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    if not await require_seller(update, update.message, session):
        return ConversationHandler.END

    context.user_data['manual_bill'] = {}
    await update.message.reply_text(f"{EMOJIS['PERSON']} Customer name:")
    return BILL_NAME


async def handle_bill_name(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data.setdefault('manual_bill', {})['customer_name'] = update.message.text.strip()
    await update.message.reply_text(
        f"{EMOJIS['SHOPPING']} Enter the items, one per line:\n"
        "name, quantity, price\n\n"
        "Example:\nRice 5kg, 1, 450\nMilk, 2, 30"
    )
    return BILL_ITEMS


async def handle_bill_items(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        lines = parse_bill_lines(update.message.text)
    except ValueError as e:
        await update.message.reply_text(f"{EMOJIS['WARNING']} {e}")
        return BILL_ITEMS

    context.user_data.setdefault('manual_bill', {})['lines'] = lines
    await update.message.reply_text(
        f"{EMOJIS['CARD']} Payment method:",
        reply_markup=create_payment_keyboard(),
    )
    return BILL_PAYMENT


async def handle_bill_payment(update: Update, context: ContextTypes.DEFAULT_TYPE):
    message = await get_message(update)
    draft = context.user_data.pop('manual_bill', {})
    payment_method = PaymentMethod[update.callback_query.data.split(':')[1]]

    bill = make_bill(
        customer_name=draft.get('customer_name', ''),
        lines=draft.get('lines', []),
        payment_method=payment_method.value,
    )
    await send_bill(message, bill, prefix='grocery-bill')
    return ConversationHandler.END
