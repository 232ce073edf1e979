"""DataTable: a paginated, filterable read-only list in one message.

The table does not own any data. On every render it calls the data
handler with (page_size, page_num, filters) and displays the returned
DataResult: Markdown text, optional rows of action buttons, and the total
page count. The table adds the controls:

    [data row buttons ...]
    ⏮️ Back  1  ( 2 )  3  4  5  ⏭️ Next
    🔎 Filter
    🗑 status: active
    ❌ Close

Filter values are asked for with a one-question Questionnaire, so
filtering needs a questionnaire Manager.

Key classes: DataTable, DataResult.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from telegram import InlineKeyboardMarkup, MaybeInaccessibleMessage, Message

from ..button import Button
from ..errors import UIError
from ..helpers import random_string
from ..keyboard.inline import InlineKeyboard, OnError, default_on_error
from ..message_sender import delete_quietly, edit_markdown, send_markdown
from ..questionnaire import Manager, Questionnaire
from ..uibot import UIBot, UIContext

logger = logging.getLogger(__name__)

FILTER = "🔎 Filter"
NEXT = "⏭️ Next"
BACK = "⏮️ Back"
CLOSE = "❌ Close"
NO_DATA = "No data"
FILTER_BY = "Filter by"
CANCEL = "⬅️ Cancel"
REMOVE_FILTER_FORMAT = "🗑 {key}: {value}"
ENTER_FILTER_FORMAT = "Enter value for {key}"

# Number of page buttons in the navigation row
PAGE_BUTTONS = 5


@dataclass
class DataResult:
    text: str
    reply_markup: list[list[Button]] | None = None
    pages_count: int = 0

    @classmethod
    def from_error(cls, err: Exception) -> DataResult:
        return cls(text=str(err), reply_markup=None, pages_count=0)


DataHandler = Callable[[UIBot, int, int, dict[str, Any]], Awaitable[DataResult]]


class DataTable:
    def __init__(
        self,
        bot: UIBot,
        items_per_page: int,
        data_handler: DataHandler,
        *,
        manager: Manager | None = None,
        filter_keys: list[str] | None = None,
        on_error: OnError | None = None,
        on_cancel: Callable[[], None] | None = None,
    ) -> None:
        self.bot = bot
        self.prefix = "dt" + random_string(14)
        self.data_handler = data_handler
        self.manager = manager
        self.filter_keys = list(filter_keys or [])
        self.on_error = on_error or default_on_error
        self.on_cancel = on_cancel

        self.ctrl_back = Button(BACK, "back")
        self.ctrl_next = Button(NEXT, "next")
        self.ctrl_close = Button(CLOSE, "close")
        self.ctrl_filter = Button(FILTER, "filter")

        self.page_size = items_per_page
        self.page_num = 1
        self.pages_count = 0
        self.filters: dict[str, Any] = {}

        self.text = ""
        self.rows: list[list[Button]] = []
        self.chat_id: int | str | None = None
        self.message_id: int | None = None
        logger.debug("New data table %s (filters: %s)", self.prefix, self.filter_keys)

    @property
    def _filter_prefix(self) -> str:
        return self.prefix + "f"

    def calc_start_page(self) -> int:
        """First page number of the navigation window (centred on the current page)."""
        if self.pages_count < PAGE_BUTTONS:
            return 1
        if self.page_num < 3:
            return 1
        if self.page_num >= self.pages_count - 2:
            return self.pages_count - (PAGE_BUTTONS - 1)
        return self.page_num - 2

    def page_window(self) -> list[int]:
        if self.pages_count <= 1:
            return []
        start = self.calc_start_page()
        return list(range(start, min(start + PAGE_BUTTONS, self.pages_count + 1)))

    def save_filter(self, filter_input: dict[str, Any] | None) -> None:
        """Merge filter values; a None value removes the key."""
        if not filter_input:
            return
        for key, value in filter_input.items():
            if value is None:
                self.filters.pop(key, None)
            else:
                self.filters[key] = value
        logger.debug("Data table %s filters: %s", self.prefix, self.filters)

    async def load(self) -> None:
        """Ask the data handler for the current page."""
        try:
            result = await self.data_handler(
                self.bot, self.page_size, self.page_num, dict(self.filters)
            )
        except UIError as e:
            result = DataResult.from_error(e)
        self.text = result.text
        self.rows = result.reply_markup or []
        self.pages_count = result.pages_count
        if not self.rows and not self.text:
            self.text = NO_DATA

    def build_keyboard(self) -> InlineKeyboardMarkup:
        kb = InlineKeyboard(
            self.bot, self.prefix, delete_after_click=False, on_error=self.on_error
        )
        for row in self.rows:
            kb.row()
            for btn in row:
                if btn.url:
                    kb.url_button(btn.text, btn.url)
                else:
                    kb.button(btn.text, btn.callback_data, btn.on_click)

        kb.row()
        if self.page_num > 1:
            kb.button(self.ctrl_back.text, self.ctrl_back.callback_data, self._navigate)
        for page in self.page_window():
            text = f"( {page} )" if page == self.page_num else str(page)
            kb.button(text, f"setpage_{page}", self._navigate)
        if self.page_num < self.pages_count:
            kb.button(self.ctrl_next.text, self.ctrl_next.callback_data, self._navigate)

        if self.filter_keys:
            kb.row().button(self.ctrl_filter.text, self.ctrl_filter.callback_data, self._navigate)
        for key in self.filter_keys:
            if key in self.filters:
                kb.row().button(
                    REMOVE_FILTER_FORMAT.format(key=key, value=self.filters[key]),
                    f"remove_filter_{key}",
                    self._navigate,
                )

        kb.row().button(self.ctrl_close.text, self.ctrl_close.callback_data, self._navigate)
        return kb.markup

    async def show(
        self, chat_id: int | str | None = None, filters: dict[str, Any] | None = None
    ) -> Message | None:
        """Render the current page: sent the first time, edited in place afterwards."""
        if chat_id is not None:
            self.chat_id = chat_id
        if self.chat_id is None:
            raise ValueError("chat_id is required for the first show()")
        self.save_filter(filters)
        await self.load()
        markup = self.build_keyboard()

        if self.message_id is not None:
            edited = await edit_markdown(
                self.bot.bot, self.chat_id, self.message_id, self.text, reply_markup=markup
            )
            if edited is not None:
                return edited if isinstance(edited, Message) else None
            logger.debug("Data table %s: edit failed, sending a new message", self.prefix)

        msg = await send_markdown(self.bot.bot, self.chat_id, self.text, reply_markup=markup)
        if msg is not None:
            self.message_id = msg.message_id
        return msg

    async def close(self) -> None:
        self.bot.unregister_callback_prefix(self.prefix)
        self.bot.unregister_callback_prefix(self._filter_prefix)
        if self.chat_id is not None and self.message_id is not None:
            await delete_quietly(self.bot.bot, self.chat_id, self.message_id)
        self.message_id = None
        if self.on_cancel is not None:
            self.on_cancel()

    async def show_filter_menu(self) -> None:
        kb = InlineKeyboard(self.bot, self._filter_prefix, on_error=self.on_error)
        for key in self.filter_keys:
            text = f"{key}: {self.filters[key]}" if key in self.filters else key
            kb.row().button(text, f"filter_{key}", self._navigate)
        kb.row().button(CANCEL, "filter_cancel", self._navigate)
        await self.bot.send_message(self.chat_id, FILTER_BY, reply_markup=kb.markup)

    async def ask_filter(self, key: str) -> None:
        """Ask the user for a filter value, then show page 1 with it applied."""
        if self.manager is None:
            self.on_error(ValueError("filtering requires a questionnaire manager"))
            return

        async def _apply(_bot: UIBot, _chat_id: Any, answers: dict[str, Any]) -> None:
            self.page_num = 1
            self.save_filter({key: answers.get(key) or None})
            await self.show()

        q = (
            Questionnaire(self.chat_id, self.manager)
            .add_question(key, ENTER_FILTER_FORMAT.format(key=key))
            .set_on_done_handler(_apply)
        )
        await q.show(self.bot)

    async def set_page(self, page: int) -> None:
        if page < 1 or page == self.page_num:
            return
        self.page_num = page
        await self.show()

    async def _navigate(
        self, _ctx: UIContext, _message: MaybeInaccessibleMessage | None, command: str
    ) -> None:
        logger.debug("Data table %s: %s", self.prefix, command)
        if command == "next":
            if self.page_num < self.pages_count:
                await self.set_page(self.page_num + 1)
        elif command == "back":
            if self.page_num > 1:
                await self.set_page(self.page_num - 1)
        elif command == "filter":
            await self.show_filter_menu()
        elif command == "nop" or command == "filter_cancel":
            return
        elif command == "close":
            await self.close()
        elif command.startswith("filter_"):
            await self.ask_filter(command[len("filter_") :])
        elif command.startswith("setpage_"):
            try:
                page = int(command[len("setpage_") :])
            except ValueError as e:
                self.on_error(e)
                return
            await self.set_page(page)
        elif command.startswith("remove_filter_"):
            key = command[len("remove_filter_") :]
            self.page_num = 1
            self.save_filter({key: None})
            await self.show()
