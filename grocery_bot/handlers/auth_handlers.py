import re
import logging

from telegram import Message, Update
from telegram.ext import ContextTypes, ConversationHandler

from ..errors import ShopError, errmsg
from ..services.session import ShopSession, get_session
from ..utils.constants import (
    AUTHORIZED_USERS_IDS, AUTHORIZED_USERS_USERNAMES, EMOJIS,
    LOGIN_EMAIL, LOGIN_PASSWORD, REGISTER_NAME, REGISTER_EMAIL, REGISTER_PASSWORD, PROFILE_NAME,
)
from ..utils.formatters import format_welcome
from ..utils.keyboards import create_main_menu_keyboard
from .common import call_backend, get_message, report_error

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r'^[A-Za-z]+$')


async def check_auth(message: Message, session: ShopSession) -> bool:
    """The user must be logged in to the store."""
    if session.user is not None:
        return True

    await message.reply_text(f"{EMOJIS['LOCK']} {errmsg.UNAUTHENTICATED} Use /login first.")
    return False


async def check_seller(update: Update, message: Message) -> bool:
    """The Telegram account must be on the seller allow-list."""
    user_id = update.effective_user.id
    username = update.effective_user.username

    if user_id in AUTHORIZED_USERS_IDS:
        return True

    if username and f"@{username.lower()}" in AUTHORIZED_USERS_USERNAMES:
        return True

    await message.reply_text(errmsg.NOT_SELLER)
    return False


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)

    commands = [
        ('start', 'Start the bot'),
        ('products', 'Browse products'),
        ('cart', 'Show your cart'),
        ('myorders', 'Your orders'),
        ('login', 'Log in'),
        ('register', 'Create an account'),
        ('profile', 'Edit your name'),
        ('logout', 'Log out'),
    ]
    await context.bot.set_my_commands(commands)

    await update.message.reply_text(
        format_welcome(session.user),
        reply_markup=create_main_menu_keyboard(session.is_seller),
    )


async def command_login(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data.pop('pending_auth', None)
    await update.message.reply_text("📧 Enter your email:")
    return LOGIN_EMAIL


async def handle_login_email(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data['pending_auth'] = {'email': update.message.text.strip()}
    await update.message.reply_text("🔑 Enter your password:")
    return LOGIN_PASSWORD


async def handle_login_password(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    email = context.user_data.pop('pending_auth', {}).get('email', '')
    epoch = session.epoch

    try:
        user = await call_backend(session.backend.login, email, update.message.text)
    except ShopError as e:
        await report_error(update.message, e)
        return ConversationHandler.END

    if not session.is_current(epoch):
        return ConversationHandler.END
    session.user = user
    logger.info(f"User {user.id} logged in")
    await update.message.reply_text(
        f"{EMOJIS['CONFIRM']} Login successful!\n\n{format_welcome(user)}",
        reply_markup=create_main_menu_keyboard(session.is_seller),
    )
    return ConversationHandler.END


async def command_register(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data.pop('pending_auth', None)
    await update.message.reply_text(f"{EMOJIS['PERSON']} Enter your name (letters only):")
    return REGISTER_NAME


async def handle_register_name(update: Update, context: ContextTypes.DEFAULT_TYPE):
    name = update.message.text.strip()
    if not NAME_PATTERN.match(name):
        await update.message.reply_text(f"{EMOJIS['WARNING']} {errmsg.INVALID_NAME}")
        return REGISTER_NAME

    context.user_data['pending_auth'] = {'name': name}
    await update.message.reply_text("📧 Enter your email:")
    return REGISTER_EMAIL


async def handle_register_email(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data.setdefault('pending_auth', {})['email'] = update.message.text.strip()
    await update.message.reply_text("🔑 Choose a password:")
    return REGISTER_PASSWORD


async def handle_register_password(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    pending = context.user_data.pop('pending_auth', {})
    epoch = session.epoch

    try:
        user = await call_backend(
            session.backend.register, pending.get('name', ''), pending.get('email', ''), update.message.text,
        )
    except ShopError as e:
        await report_error(update.message, e)
        return ConversationHandler.END

    if not session.is_current(epoch):
        return ConversationHandler.END
    session.user = user
    logger.info(f"User {user.id} registered")
    await update.message.reply_text(
        f"{EMOJIS['CONFIRM']} Account created!\n\n{format_welcome(user)}",
        reply_markup=create_main_menu_keyboard(session.is_seller),
    )
    return ConversationHandler.END


async def command_logout(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    if session.user is not None:
        try:
            await call_backend(session.backend.logout)
        except ShopError as e:
            await report_error(update.message, e)
            return
    session.reset()
    await update.message.reply_text(f"{EMOJIS['WAVE']} You have been logged out.")


async def command_profile(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    if not await check_auth(update.message, session):
        return ConversationHandler.END

    await update.message.reply_text(
        f"{EMOJIS['PERSON']} Current name: {session.user.name}\nEnter your new name:"
    )
    return PROFILE_NAME


async def handle_profile_name(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    name = update.message.text.strip()
    if session.user is None or not name:
        await update.message.reply_text(f"{EMOJIS['WARNING']} Nothing changed.")
        return ConversationHandler.END

    # Local only; the backend profile is not updated
    session.user.name = name
    await update.message.reply_text(f"{EMOJIS['CONFIRM']} Profile updated. Hello, {name}!")
    return ConversationHandler.END


async def cancel(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data.pop('pending_auth', None)
    context.user_data.pop('manual_bill', None)
    message = await get_message(update)
    await message.reply_text("❌ Operation cancelled.")
    return ConversationHandler.END
