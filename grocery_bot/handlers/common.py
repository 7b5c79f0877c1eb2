import asyncio
import logging

from telegram import Message, Update

from ..errors import ShopError
from ..utils.constants import EMOJIS

logger = logging.getLogger(__name__)


async def get_message(update: Update) -> Message:
    """Message to reply to, for both direct commands and button presses."""
    if update.callback_query:
        await update.callback_query.answer()
        return update.callback_query.message
    return update.message


async def report_error(message: Message, error: ShopError) -> None:
    logger.info(f"{type(error).__name__}: {error}")
    await message.reply_text(f"{EMOJIS['ERROR']} {error.message}")


async def call_backend(func, *args):
    """Run a blocking backend call without stalling the event loop."""
    return await asyncio.to_thread(func, *args)
