"""Inline sub-menu: a message with a grid of callback buttons.

Items are added row by row; each carries its own payload and handler.
add_cancel() appends a ❌ row that deletes the menu message.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from telegram import MaybeInaccessibleMessage, Message

from .button import OnSelect
from .helpers import random_string
from .keyboard.inline import InlineKeyboard
from .uibot import UIBot, UIContext

logger = logging.getLogger(__name__)

CANCEL_TEXT = "❌"


@dataclass
class SubMenuItem:
    text: str
    callback_data: str
    on_select: OnSelect | None = None


class SubMenu:
    def __init__(self, bot: UIBot, text: str) -> None:
        self.bot = bot
        self.text = text
        self.prefix = "sb" + random_string(14)
        self.keyboard = InlineKeyboard(bot, self.prefix)
        self.message_id: int | None = None
        self.on_cancel: Callable[[], None] | None = None

    def row(self) -> SubMenu:
        self.keyboard.row()
        return self

    def add(self, text: str, callback_data: str, on_select: OnSelect | None) -> SubMenu:
        self.keyboard.button(text, callback_data, on_select)
        return self

    def add_item(self, item: SubMenuItem) -> SubMenu:
        return self.add(item.text, item.callback_data, item.on_select)

    def add_cancel(self, on_cancel: Callable[[], None] | None = None) -> SubMenu:
        self.on_cancel = on_cancel
        self.keyboard.row().button(CANCEL_TEXT, "cancel", self._on_cancel)
        return self

    async def _on_cancel(
        self, _ctx: UIContext, _message: MaybeInaccessibleMessage | None, _data: str
    ) -> None:
        # the keyboard already deleted the message on click
        logger.debug("Sub-menu %s cancelled", self.prefix)
        if self.on_cancel is not None:
            self.on_cancel()

    async def show(self, chat_id: int | str) -> Message:
        msg = await self.bot.send_message(
            chat_id, self.text, reply_markup=self.keyboard.markup
        )
        self.message_id = msg.message_id
        return msg
