"""Per-chat questionnaire sessions.

Text answers arrive as ordinary messages, so something has to know which
questionnaire (if any) a chat is in. Manager keeps that map behind a lock
and exposes handle_message as a PTB callback:

    ui = UIBot(application)
    manager = Manager()
    application.add_handler(manager.handler(), group=UI_HANDLER_GROUP)

Create the UIBot first: PTB runs only the first matching handler of a
group, and UIBot's reply-keyboard routes must be tried before the
Manager sees the text.

Questionnaires add themselves on show() and remove themselves when they
finish or are cancelled.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from telegram import Update
from telegram.ext import ApplicationHandlerStop, ContextTypes, MessageHandler, filters

if TYPE_CHECKING:
    from .questionnaire import Questionnaire

logger = logging.getLogger(__name__)


class Manager:
    """Thread-safe map of chat_id → active Questionnaire."""

    def __init__(self) -> None:
        self._conversations: dict[Any, Questionnaire] = {}
        self._lock = threading.Lock()

    def add(self, chat_id: Any, questionnaire: Questionnaire) -> None:
        with self._lock:
            self._conversations[chat_id] = questionnaire

    def remove(self, chat_id: Any, questionnaire: Questionnaire | None = None) -> None:
        """Drop the chat's session; with questionnaire given, only if it is still the active one."""
        with self._lock:
            current = self._conversations.get(chat_id)
            if current is None:
                return
            if questionnaire is not None and current is not questionnaire:
                return
            del self._conversations[chat_id]

    def get(self, chat_id: Any) -> Questionnaire | None:
        with self._lock:
            return self._conversations.get(chat_id)

    def exists(self, chat_id: Any) -> bool:
        with self._lock:
            return chat_id in self._conversations

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._conversations)

    async def handle_message(
        self, update: Update, _context: ContextTypes.DEFAULT_TYPE | None = None
    ) -> bool:
        """Feed a text message to the chat's questionnaire. Returns True if consumed."""
        message = update.message
        if message is None or message.text is None:
            return False

        chat_id = message.chat.id
        questionnaire = self.get(chat_id)
        if questionnaire is None or questionnaire.bot is None:
            return False

        logger.debug(
            "Questionnaire answer in chat %s (%d active sessions)",
            chat_id,
            self.active_count,
        )
        questionnaire.message_ids.append(message.message_id)
        bot = questionnaire.bot
        if await questionnaire.answer(bot, message.text):
            await questionnaire.done(bot)
            logger.debug("Session %s finished, remaining sessions: %d", chat_id, self.active_count)
        return True

    def handler(self) -> MessageHandler:
        """A MessageHandler for plain text that stops further handlers once consumed."""

        async def _callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            if await self.handle_message(update, context):
                raise ApplicationHandlerStop

        return MessageHandler(filters.TEXT & ~filters.COMMAND, _callback)
