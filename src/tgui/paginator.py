"""Paginator: a list of Markdown items browsed page by page in one message.

Navigation row (only when there is more than one page):

    « 1   ‹ 4   · 5 ·   6 ›   9 »

Buttons that would point at the current page or past either end are
omitted. Navigation edits the message in place; Close deletes it.
"""

from __future__ import annotations

import logging

from telegram import InlineKeyboardMarkup, MaybeInaccessibleMessage, Message

from .helpers import random_string
from .keyboard.inline import InlineKeyboard, OnError
from .message_sender import delete_quietly, edit_markdown, send_markdown
from .uibot import UIBot, UIContext

logger = logging.getLogger(__name__)

NO_DATA = "No data"
_CMD_NOP = "nop"
_CMD_CLOSE = "close"


class Paginator:
    def __init__(
        self,
        bot: UIBot,
        items: list[str],
        *,
        per_page: int = 10,
        separator: str = "\n\n",
        close_text: str | None = "Close",
        on_error: OnError | None = None,
    ) -> None:
        if per_page <= 0:
            raise ValueError("per_page must be positive")
        self.bot = bot
        self.items = list(items)
        self.per_page = per_page
        self.separator = separator
        self.close_text = close_text
        self.on_error = on_error
        self.prefix = "pg" + random_string(14)
        self.current_page = 1
        self.chat_id: int | str | None = None
        self.message_id: int | None = None

    @property
    def page_count(self) -> int:
        return max(1, (len(self.items) + self.per_page - 1) // self.per_page)

    def page_text(self) -> str:
        start = (self.current_page - 1) * self.per_page
        page_items = self.items[start : start + self.per_page]
        if not page_items:
            return NO_DATA
        return self.separator.join(page_items)

    def _nav_buttons(self) -> list[tuple[str, str]]:
        page, last = self.current_page, self.page_count
        buttons: list[tuple[str, str]] = []
        if page > 2:
            buttons.append(("« 1", "1"))
        if page > 1:
            buttons.append((f"‹ {page - 1}", str(page - 1)))
        buttons.append((f"· {page} ·", _CMD_NOP))
        if page < last:
            buttons.append((f"{page + 1} ›", str(page + 1)))
        if page < last - 1:
            buttons.append((f"{last} »", str(last)))
        return buttons

    def build_keyboard(self) -> InlineKeyboardMarkup:
        kb = InlineKeyboard(
            self.bot, self.prefix, delete_after_click=False, on_error=self.on_error
        )
        if self.page_count > 1:
            for text, data in self._nav_buttons():
                kb.button(text, data, self._on_click)
        if self.close_text:
            kb.row().button(self.close_text, _CMD_CLOSE, self._on_click)
        return kb.markup

    async def show(self, chat_id: int | str) -> Message | None:
        self.chat_id = chat_id
        msg = await send_markdown(
            self.bot.bot, chat_id, self.page_text(), reply_markup=self.build_keyboard()
        )
        if msg is not None:
            self.message_id = msg.message_id
        return msg

    async def set_page(self, page: int) -> None:
        page = max(1, min(page, self.page_count))
        if page == self.current_page or self.chat_id is None or self.message_id is None:
            self.current_page = page
            return
        self.current_page = page
        await edit_markdown(
            self.bot.bot,
            self.chat_id,
            self.message_id,
            self.page_text(),
            reply_markup=self.build_keyboard(),
        )

    async def close(self) -> None:
        self.bot.unregister_callback_prefix(self.prefix)
        if self.chat_id is not None and self.message_id is not None:
            await delete_quietly(self.bot.bot, self.chat_id, self.message_id)
        self.message_id = None

    async def _on_click(
        self, _ctx: UIContext, _message: MaybeInaccessibleMessage | None, data: str
    ) -> None:
        if data == _CMD_NOP:
            return
        if data == _CMD_CLOSE:
            await self.close()
            return
        try:
            page = int(data)
        except ValueError:
            logger.warning("Paginator %s: bad page %r", self.prefix, data)
            return
        await self.set_page(page)
