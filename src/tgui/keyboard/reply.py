"""Reply keyboard whose buttons are routed by exact message text."""

from __future__ import annotations

from typing import TYPE_CHECKING

from telegram import KeyboardButton, ReplyKeyboardMarkup, ReplyKeyboardRemove

if TYPE_CHECKING:
    from ..uibot import TextRoute, UIBot


class ReplyKeyboard:
    def __init__(
        self,
        bot: UIBot,
        *,
        resize_keyboard: bool = True,
        is_persistent: bool = False,
        selective: bool = False,
        one_time_keyboard: bool = False,
        placeholder: str | None = None,
    ) -> None:
        self.bot = bot
        self.resize_keyboard = resize_keyboard
        self.is_persistent = is_persistent
        self.selective = selective
        self.one_time_keyboard = one_time_keyboard
        self.placeholder = placeholder
        self._rows: list[list[KeyboardButton]] = [[]]
        self._route_ids: list[str] = []

    def row(self) -> ReplyKeyboard:
        if self._rows[-1]:
            self._rows.append([])
        return self

    def button(self, text: str, handler: TextRoute | None = None) -> ReplyKeyboard:
        """Append a button; with handler, tapping it invokes handler(ctx)."""
        self._rows[-1].append(KeyboardButton(text))
        if handler is not None:
            self._route_ids.append(self.bot.register_text_handler(text, handler))
        return self

    @property
    def markup(self) -> ReplyKeyboardMarkup:
        return ReplyKeyboardMarkup(
            [row for row in self._rows if row],
            resize_keyboard=self.resize_keyboard,
            one_time_keyboard=self.one_time_keyboard,
            selective=self.selective,
            input_field_placeholder=self.placeholder,
            is_persistent=self.is_persistent,
        )

    def remove(self) -> ReplyKeyboardRemove:
        """Unregister all text routes; send the result to hide the keyboard."""
        for route_id in self._route_ids:
            self.bot.unregister_text_handler(route_id)
        self._route_ids.clear()
        return ReplyKeyboardRemove(selective=self.selective)
