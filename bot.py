import os
import logging

from dotenv import load_dotenv
from telegram import Update
from telegram.ext import (
    Application, CommandHandler, CallbackQueryHandler, MessageHandler,
    filters, ContextTypes, ConversationHandler
)

# Load environment variables
load_dotenv()

# Enable logging
logging.basicConfig(format='%(asctime)s - %(name)s - %(levelname)s - %(message)s', level=logging.INFO)
logging.getLogger('httpx').setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

from grocery_bot.handlers.auth_handlers import (  # noqa: E402
    start, cancel, command_login, handle_login_email, handle_login_password,
    command_register, handle_register_name, handle_register_email, handle_register_password,
    command_logout, command_profile, handle_profile_name,
)
from grocery_bot.handlers.bill_handlers import (  # noqa: E402
    command_bill, handle_bill_name, handle_bill_items, handle_bill_payment, handle_cart_bill,
)
from grocery_bot.handlers.my_orders_handlers import command_my_orders, handle_my_order_delete  # noqa: E402
from grocery_bot.handlers.order_handlers import (  # noqa: E402
    command_products, handle_category, handle_product_selection, handle_quantity,
    command_cart, handle_cart_action, handle_address_selection, handle_place_order,
)
from grocery_bot.handlers.seller_handlers import (  # noqa: E402
    command_seller_login, handle_seller_email, handle_seller_password, command_seller_logout,
    command_seller_orders, handle_seller_order_action, command_seller_products,
    handle_seller_product_action, command_bills, command_users, handle_user_delete,
)
from grocery_bot.utils.constants import (  # noqa: E402
    LOGIN_EMAIL, LOGIN_PASSWORD, REGISTER_NAME, REGISTER_EMAIL, REGISTER_PASSWORD, QUANTITY,
    PROFILE_NAME, SELLER_EMAIL, SELLER_PASSWORD, BILL_NAME, BILL_ITEMS, BILL_PAYMENT,
)

TEXT = filters.TEXT & ~filters.COMMAND

MENU = {
    'products': command_products,
    'cart': command_cart,
    'myorders': command_my_orders,
    'seller_orders': command_seller_orders,
    'seller_products': command_seller_products,
}


async def handle_menu(update: Update, context: ContextTypes.DEFAULT_TYPE):
    target = update.callback_query.data.split(':', 1)[1]
    handler = MENU.get(target)
    if handler is None:
        await update.callback_query.answer()
        return
    await handler(update, context)


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Unhandled error while processing an update", exc_info=context.error)


def conversation(entry_points, states) -> ConversationHandler:
    return ConversationHandler(
        entry_points=entry_points,
        states=states,
        fallbacks=[
            CommandHandler('cancel', cancel),
            CommandHandler('start', start)
        ],
        allow_reentry=True
    )


def build_application(token: str) -> Application:
    application = Application.builder().token(token).concurrent_updates(True).build()

    # Conversations first so their text steps win over plain handlers
    application.add_handler(conversation(
        [CommandHandler('login', command_login)],
        {
            LOGIN_EMAIL: [MessageHandler(TEXT, handle_login_email)],
            LOGIN_PASSWORD: [MessageHandler(TEXT, handle_login_password)],
        },
    ))
    application.add_handler(conversation(
        [CommandHandler('register', command_register)],
        {
            REGISTER_NAME: [MessageHandler(TEXT, handle_register_name)],
            REGISTER_EMAIL: [MessageHandler(TEXT, handle_register_email)],
            REGISTER_PASSWORD: [MessageHandler(TEXT, handle_register_password)],
        },
    ))
    application.add_handler(conversation(
        [CommandHandler('profile', command_profile)],
        {PROFILE_NAME: [MessageHandler(TEXT, handle_profile_name)]},
    ))
    application.add_handler(conversation(
        [CallbackQueryHandler(handle_product_selection, pattern='^add:')],
        {QUANTITY: [MessageHandler(TEXT, handle_quantity)]},
    ))
    application.add_handler(conversation(
        [CommandHandler('seller_login', command_seller_login)],
        {
            SELLER_EMAIL: [MessageHandler(TEXT, handle_seller_email)],
            SELLER_PASSWORD: [MessageHandler(TEXT, handle_seller_password)],
        },
    ))
    application.add_handler(conversation(
        [CommandHandler('bill', command_bill)],
        {
            BILL_NAME: [MessageHandler(TEXT, handle_bill_name)],
            BILL_ITEMS: [MessageHandler(TEXT, handle_bill_items)],
            BILL_PAYMENT: [CallbackQueryHandler(handle_bill_payment, pattern='^billpay:')],
        },
    ))

    # Storefront
    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("logout", command_logout))
    application.add_handler(CommandHandler("products", command_products))
    application.add_handler(CommandHandler("cart", command_cart))
    application.add_handler(CommandHandler("myorders", command_my_orders))
    application.add_handler(CallbackQueryHandler(handle_menu, pattern='^menu:'))
    application.add_handler(CallbackQueryHandler(handle_category, pattern='^cat:'))
    application.add_handler(CallbackQueryHandler(handle_cart_bill, pattern='^cart:bill$'))
    application.add_handler(CallbackQueryHandler(handle_place_order, pattern='^cart:order$'))
    application.add_handler(CallbackQueryHandler(handle_cart_action, pattern='^cart:'))
    application.add_handler(CallbackQueryHandler(handle_address_selection, pattern='^addr:'))
    application.add_handler(CallbackQueryHandler(handle_my_order_delete, pattern='^my:del:'))

    # Seller panel
    application.add_handler(CommandHandler("seller_logout", command_seller_logout))
    application.add_handler(CommandHandler("seller_orders", command_seller_orders))
    application.add_handler(CommandHandler("seller_products", command_seller_products))
    application.add_handler(CommandHandler("bills", command_bills))
    application.add_handler(CommandHandler("users", command_users))
    application.add_handler(CallbackQueryHandler(handle_seller_order_action, pattern='^so:'))
    application.add_handler(CallbackQueryHandler(handle_seller_product_action, pattern='^sp:'))
    application.add_handler(CallbackQueryHandler(handle_user_delete, pattern='^usr:del:'))

    application.add_error_handler(handle_error)
    return application


def main():
    token = os.getenv('BOT_TOKEN')
    if not token:
        raise ValueError("BOT_TOKEN environment variable is not set")
    if not os.getenv('BACKEND_URL'):
        raise ValueError("BACKEND_URL environment variable is not set")

    application = build_application(token)

    logger.info("Starting bot...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == '__main__':
    main()
