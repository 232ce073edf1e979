"""Safe message sending helpers with MarkdownV2 fallback.

Widgets render caller-supplied Markdown. These helpers convert it to
MarkdownV2 and fall back to plain text when Telegram rejects the markup.

Functions:
  - send_markdown: Send message with MarkdownV2, fallback to plain text
  - edit_markdown: Edit message with MarkdownV2, fallback to plain text
  - delete_quietly: Delete a message, logging instead of raising on failure
"""

import logging
from typing import Any

from telegram import Bot, Message
from telegram.error import BadRequest, RetryAfter, TelegramError

from .markdown_v2 import convert_markdown

logger = logging.getLogger(__name__)


def is_not_modified(error: TelegramError) -> bool:
    """True for the BadRequest Telegram returns when an edit changes nothing."""
    return isinstance(error, BadRequest) and "message is not modified" in error.message.lower()


async def send_markdown(
    bot: Bot,
    chat_id: int | str,
    text: str,
    **kwargs: Any,
) -> Message | None:
    """Send message with MarkdownV2, falling back to plain text on failure.

    Returns the sent Message on success, None if both attempts failed.
    """
    try:
        return await bot.send_message(
            chat_id=chat_id,
            text=convert_markdown(text),
            parse_mode="MarkdownV2",
            **kwargs,
        )
    except RetryAfter:
        raise
    except TelegramError:
        try:
            return await bot.send_message(chat_id=chat_id, text=text, **kwargs)
        except RetryAfter:
            raise
        except TelegramError as e:
            logger.warning("Failed to send message to %s: %s", chat_id, e)
            return None


async def edit_markdown(
    bot: Bot,
    chat_id: int | str,
    message_id: int,
    text: str,
    **kwargs: Any,
) -> Message | bool | None:
    """Edit message text with MarkdownV2, falling back to plain text on failure.

    An edit that leaves the message unchanged counts as success (True).
    """
    try:
        return await bot.edit_message_text(
            chat_id=chat_id,
            message_id=message_id,
            text=convert_markdown(text),
            parse_mode="MarkdownV2",
            **kwargs,
        )
    except RetryAfter:
        raise
    except TelegramError as e:
        if is_not_modified(e):
            return True
        try:
            return await bot.edit_message_text(
                chat_id=chat_id, message_id=message_id, text=text, **kwargs
            )
        except RetryAfter:
            raise
        except TelegramError as e:
            if is_not_modified(e):
                return True
            logger.warning("Failed to edit message %s in %s: %s", message_id, chat_id, e)
            return None


async def delete_quietly(bot: Bot, chat_id: int | str, message_id: int) -> bool:
    """Delete a message; a message that is already gone is not an error."""
    try:
        return await bot.delete_message(chat_id=chat_id, message_id=message_id)
    except RetryAfter:
        raise
    except TelegramError as e:
        logger.warning("Failed to delete message %s in %s: %s", message_id, chat_id, e)
        return False
