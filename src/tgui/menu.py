"""Main menu shown as a persistent reply keyboard.

Each menu item is a reply-keyboard button; tapping it sends its label as
a message, which UIBot routes to the item's handler by exact text.
"""

from __future__ import annotations

from dataclasses import dataclass

from telegram import Message

from .keyboard.reply import ReplyKeyboard
from .uibot import TextRoute, UIBot


@dataclass
class MenuItem:
    text: str
    handler: TextRoute | None = None


class Menu:
    def __init__(self, bot: UIBot, text: str) -> None:
        self.bot = bot
        self.text = text
        self.keyboard = ReplyKeyboard(
            bot, resize_keyboard=True, is_persistent=True, selective=True
        )

    @classmethod
    def from_items(cls, bot: UIBot, text: str, rows: list[list[MenuItem]]) -> Menu:
        menu = cls(bot, text)
        for row in rows:
            menu.row()
            for item in row:
                menu.add(item.text, item.handler)
        return menu

    def row(self) -> Menu:
        self.keyboard.row()
        return self

    def add(self, text: str, handler: TextRoute | None = None) -> Menu:
        self.keyboard.button(text, handler)
        return self

    async def show(self, chat_id: int | str) -> Message:
        return await self.bot.send_message(
            chat_id, self.text, reply_markup=self.keyboard.markup
        )

    async def hide(self, chat_id: int | str, text: str) -> Message:
        """Send text and remove the keyboard (routes included)."""
        return await self.bot.send_message(
            chat_id, text, reply_markup=self.keyboard.remove()
        )
