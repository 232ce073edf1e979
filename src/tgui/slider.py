"""Slider: one slide at a time with ‹ i/n › navigation.

Slides carry Markdown text and an optional photo (file id or URL); either
every slide has a photo or none does. Photo sliders are sent with
send_photo and navigated with edit_message_media; text-only slides use
send/edit_message_text.
Navigation wraps around at both ends.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from telegram import InlineKeyboardMarkup, InputMediaPhoto, MaybeInaccessibleMessage, Message

from .helpers import random_string
from .keyboard.inline import InlineKeyboard
from .markdown_v2 import convert_markdown
from .message_sender import delete_quietly, edit_markdown, send_markdown
from .uibot import UIBot, UIContext

logger = logging.getLogger(__name__)

PREV_TEXT = "‹"
NEXT_TEXT = "›"
SELECT_TEXT = "Select"
CLOSE_TEXT = "Close"

OnSlideSelect = Callable[[UIContext, int], Awaitable[None]]


@dataclass
class Slide:
    text: str
    photo: str | None = None


class Slider:
    def __init__(
        self,
        bot: UIBot,
        slides: list[Slide],
        *,
        on_select: OnSlideSelect | None = None,
        on_cancel: Callable[[], None] | None = None,
    ) -> None:
        if not slides:
            raise ValueError("slider needs at least one slide")
        if len({slide.photo is None for slide in slides}) > 1:
            raise ValueError("slides must be all photos or all text")
        self.bot = bot
        self.slides = list(slides)
        self.on_select = on_select
        self.on_cancel = on_cancel
        self.prefix = "sl" + random_string(14)
        self.current = 0
        self.chat_id: int | str | None = None
        self.message_id: int | None = None

    @property
    def _is_photo(self) -> bool:
        return self.slides[0].photo is not None

    def build_keyboard(self) -> InlineKeyboardMarkup:
        kb = InlineKeyboard(self.bot, self.prefix, delete_after_click=False)
        if len(self.slides) > 1:
            kb.button(PREV_TEXT, "prev", self._on_click)
            kb.button(f"{self.current + 1}/{len(self.slides)}", "nop", self._on_click)
            kb.button(NEXT_TEXT, "next", self._on_click)
        if self.on_select is not None:
            kb.row().button(SELECT_TEXT, "select", self._on_click)
        kb.row().button(CLOSE_TEXT, "close", self._on_click)
        return kb.markup

    async def show(self, chat_id: int | str) -> Message | None:
        self.chat_id = chat_id
        slide = self.slides[self.current]
        if self._is_photo:
            msg = await self.bot.send_photo(
                chat_id,
                slide.photo,
                caption=convert_markdown(slide.text),
                parse_mode="MarkdownV2",
                reply_markup=self.build_keyboard(),
            )
        else:
            msg = await send_markdown(
                self.bot.bot, chat_id, slide.text, reply_markup=self.build_keyboard()
            )
        if msg is not None:
            self.message_id = msg.message_id
        return msg

    async def _render(self) -> None:
        if self.chat_id is None or self.message_id is None:
            return
        slide = self.slides[self.current]
        if self._is_photo:
            await self.bot.edit_message_media(
                self.chat_id,
                self.message_id,
                InputMediaPhoto(
                    slide.photo,
                    caption=convert_markdown(slide.text),
                    parse_mode="MarkdownV2",
                ),
                reply_markup=self.build_keyboard(),
            )
        else:
            await edit_markdown(
                self.bot.bot,
                self.chat_id,
                self.message_id,
                slide.text,
                reply_markup=self.build_keyboard(),
            )

    async def move(self, step: int) -> None:
        self.current = (self.current + step) % len(self.slides)
        await self._render()

    async def close(self) -> None:
        self.bot.unregister_callback_prefix(self.prefix)
        if self.chat_id is not None and self.message_id is not None:
            await delete_quietly(self.bot.bot, self.chat_id, self.message_id)
        self.message_id = None

    async def _on_click(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, data: str
    ) -> None:
        if data == "prev":
            await self.move(-1)
        elif data == "next":
            await self.move(1)
        elif data == "select" and self.on_select is not None:
            await self.on_select(ctx, self.current)
        elif data == "close":
            await self.close()
            if self.on_cancel is not None:
                self.on_cancel()
