"""Inline keyboard with server-side button payloads.

Each InlineKeyboard owns one callback route on the UIBot. A button's wire
callback data is ``<prefix>:<index>``; the payload and handler stay in
process memory, so payloads of any length fit Telegram's 64-byte limit.

On click (default behaviour) the keyboard unregisters itself and deletes
its message, then calls the button's handler and answers the query.
Widgets that re-render in place pass ``delete_after_click=False``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from telegram import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import RetryAfter, TelegramError

from ..button import OnSelect
from ..helpers import random_string

if TYPE_CHECKING:
    from ..uibot import UIBot, UIContext

logger = logging.getLogger(__name__)

OnError = Callable[[Exception], None]

PREFIX_LENGTH = 16


def default_on_error(err: Exception) -> None:
    logger.error("Inline keyboard error: %s", err)


class InlineKeyboard:
    def __init__(
        self,
        bot: UIBot,
        prefix: str | None = None,
        *,
        delete_after_click: bool = True,
        on_error: OnError | None = None,
    ) -> None:
        self.bot = bot
        self.prefix = prefix or random_string(PREFIX_LENGTH)
        self.delete_after_click = delete_after_click
        self.on_error = on_error or default_on_error
        self._rows: list[list[InlineKeyboardButton]] = [[]]
        self._handlers: list[tuple[OnSelect | None, str]] = []
        bot.register_callback_prefix(self.prefix, self._callback)

    def row(self) -> InlineKeyboard:
        if self._rows[-1]:
            self._rows.append([])
        return self

    def button(
        self, text: str, data: str = "", on_select: OnSelect | None = None
    ) -> InlineKeyboard:
        """Append a callback button to the current row."""
        index = len(self._handlers)
        self._handlers.append((on_select, data))
        self._rows[-1].append(
            InlineKeyboardButton(text, callback_data=f"{self.prefix}:{index}")
        )
        return self

    def url_button(self, text: str, url: str) -> InlineKeyboard:
        self._rows[-1].append(InlineKeyboardButton(text, url=url))
        return self

    @property
    def markup(self) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup([row for row in self._rows if row])

    def __len__(self) -> int:
        return sum(len(row) for row in self._rows)

    def unregister(self) -> None:
        self.bot.unregister_callback_prefix(self.prefix, self._callback)

    async def _callback(self, ctx: UIContext, query: CallbackQuery) -> None:
        message = query.message
        if self.delete_after_click:
            self.unregister()
            if message is not None:
                try:
                    await ctx.bot.delete_message(message.chat.id, message.message_id)
                except RetryAfter:
                    raise
                except TelegramError as e:
                    self.on_error(e)

        _, _, raw_index = (query.data or "").rpartition(":")
        try:
            index = int(raw_index)
        except ValueError:
            self.on_error(ValueError(f"wrong callback data index, {query.data}"))
            await ctx.bot.answer_callback_query(query)
            return

        if not 0 <= index < len(self._handlers):
            self.on_error(ValueError(f"wrong callback data, {query.data}"))
            await ctx.bot.answer_callback_query(query)
            return

        handler, data = self._handlers[index]
        if handler is not None:
            await handler(ctx, message, data)
        await ctx.bot.answer_callback_query(query)
