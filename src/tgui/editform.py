"""EditForm: edit the fields of a dataclass (or mapping) from a chat.

The form is a message with one button per editable field ("key: value",
or "🆕 key: value" once changed) plus a ✅ Done / ❌ Cancel row. Tapping a
field asks for the new value with a one-question Questionnaire. It is a
choice question when choices were given for that key (typed text is
accepted as well), a text question otherwise.

Fields tagged ``noedit`` (see tgui.parser) are not shown. Per-key
formatters change how a value is displayed; transformers convert the
user's input before it is stored. Any exception either one raises is
turned into a ValidationError and its message shown in the chat. Stored values keep the type of the
original value when that is int, float or bool.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from telegram import MaybeInaccessibleMessage, Message

from .button import Button
from .errors import UIError, ValidationError
from .helpers import random_string
from .keyboard.inline import InlineKeyboard
from .parser import parse_tg_tags
from .questionnaire import Manager, Questionnaire
from .uibot import UIBot, UIContext

logger = logging.getLogger(__name__)

TEXT_FORMAT = "{key}: {value}"
TEXT_FORMAT_EDITED = "🆕 {key}: {value}"
DONE_TEXT = "✅ Done"
CANCEL_TEXT = "❌ Cancel"

OnDoneEdit = Callable[[dict[str, Any]], Awaitable[None]]
StrFunc = Callable[[str], str]

_TRUE_WORDS = {"true", "yes", "y", "1", "on"}
_FALSE_WORDS = {"false", "no", "n", "0", "off"}


def coerce_value(value: str, original: Any) -> Any:
    """Convert user input to the type of the original value (int/float/bool)."""
    if isinstance(original, bool):
        lowered = value.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ValidationError(f"Expected yes or no, got {value!r}")
    if isinstance(original, int):
        try:
            return int(value.strip())
        except ValueError as e:
            raise ValidationError(f"Expected a whole number, got {value!r}") from e
    if isinstance(original, float):
        try:
            return float(value.strip())
        except ValueError as e:
            raise ValidationError(f"Expected a number, got {value!r}") from e
    return value


class EditForm:
    def __init__(
        self,
        bot: UIBot,
        text: str,
        target: Any,
        on_done: OnDoneEdit,
        *,
        chat_id: int,
        manager: Manager,
        choices: Mapping[str, list[list[Button]]] | None = None,
        on_cancel: Callable[[], None] | None = None,
    ) -> None:
        self.bot = bot
        self.text = text
        self.target = target
        self.on_done = on_done
        self.on_cancel = on_cancel
        self.chat_id = chat_id
        self.manager = manager
        self.prefix = "ef" + random_string(14)

        if dataclasses.is_dataclass(target) and not isinstance(target, type):
            self.data: dict[str, Any] = {
                f.name: getattr(target, f.name) for f in dataclasses.fields(target)
            }
            self.tags = parse_tg_tags(target)
        elif isinstance(target, Mapping):
            self.data = dict(target)
            self.tags = {}
        else:
            raise TypeError(
                f"EditForm target must be a dataclass instance or mapping, got {type(target).__name__}"
            )
        self.initial_data = dict(self.data)

        self.choices: dict[str, list[list[Button]]] = {}
        for key, rows in (choices or {}).items():
            # each field gets its own "keep the current value" row
            cancel_row = [Button(CANCEL_TEXT, self._cancel_token(key))]
            self.choices[key] = [*rows, cancel_row]

        self.formatters: dict[str, StrFunc] = {}
        self.transformers: dict[str, StrFunc] = {}
        logger.debug("New edit form %s with fields %s", self.prefix, list(self.data))

    def _cancel_token(self, key: str) -> str:
        return f"{self.prefix}cancel_{key}"

    def set_formatter(
        self,
        key: str,
        format_fn: StrFunc | None = None,
        transform_fn: StrFunc | None = None,
    ) -> EditForm:
        if format_fn is not None:
            self.formatters[key] = format_fn
        if transform_fn is not None:
            self.transformers[key] = transform_fn
        return self

    def is_editable(self, key: str) -> bool:
        return self.tags.get(key, {}).get("noedit") != "true"

    def label(self, key: str) -> str:
        return self.tags.get(key, {}).get("label", key)

    def is_edited(self, key: str) -> bool:
        return self.data[key] != self.initial_data[key]

    def field_text(self, key: str) -> str:
        """Button label for a field; formatter errors raise ValidationError."""
        value: Any = self.data[key]
        formatter = self.formatters.get(key)
        if formatter is not None:
            try:
                value = formatter(str(value))
            except Exception as e:
                raise ValidationError(str(e)) from e
        fmt = TEXT_FORMAT_EDITED if self.is_edited(key) else TEXT_FORMAT
        return fmt.format(key=self.label(key), value=value)

    def build_keyboard(self) -> InlineKeyboard:
        kb = InlineKeyboard(self.bot, self.prefix)
        for key in self.data:
            if not self.is_editable(key):
                continue
            kb.row().button(self.field_text(key), key, self._on_edit)
        kb.row().button(DONE_TEXT, "done", self._on_done).button(
            CANCEL_TEXT, "cancel", self._on_cancel
        )
        return kb

    async def show(self) -> Message | None:
        try:
            kb = self.build_keyboard()
        except ValidationError as e:
            self.bot.unregister_callback_prefix(self.prefix)
            await self.bot.send_message(self.chat_id, str(e))
            return None
        return await self.bot.send_message(self.chat_id, self.text, reply_markup=kb.markup)

    def result(self) -> Any:
        """The target with the edited values applied."""
        if dataclasses.is_dataclass(self.target):
            return dataclasses.replace(self.target, **self.data)
        return dict(self.data)

    def apply_answer(self, key: str, answer: str) -> None:
        """Transform, coerce and store an answer; the cancel token keeps the old value."""
        if answer == self._cancel_token(key):
            return
        transformer = self.transformers.get(key)
        if transformer is not None:
            try:
                answer = transformer(answer)
            except Exception as e:
                raise ValidationError(str(e)) from e
        self.data[key] = coerce_value(answer, self.initial_data[key])

    # --- Keyboard callbacks ---

    async def _on_edit(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, key: str
    ) -> None:
        logger.debug("Edit form %s: editing %s", self.prefix, key)

        async def _apply(bot: UIBot, _chat_id: Any, answers: dict[str, Any]) -> None:
            answer = answers.get(key)
            if answer:
                try:
                    self.apply_answer(key, answer)
                except ValidationError as e:
                    await bot.send_message(self.chat_id, str(e))
            await self.show()

        q = Questionnaire(self.chat_id, self.manager).set_on_done_handler(_apply)
        if key in self.choices:
            q.add_question(
                key,
                f"Select value for {self.label(key)} or enter new value:",
                self.choices[key],
            )
        else:
            q.add_question(key, f"Enter new value for: {self.label(key)}")
        await q.show(ctx.bot)

    async def _on_done(
        self, _ctx: UIContext, _message: MaybeInaccessibleMessage | None, _data: str
    ) -> None:
        logger.debug("Edit form %s done: %s", self.prefix, self.data)
        try:
            await self.on_done(dict(self.data))
        except UIError as e:
            await self.bot.send_message(self.chat_id, str(e))
            await self.show()

    async def _on_cancel(
        self, _ctx: UIContext, _message: MaybeInaccessibleMessage | None, _data: str
    ) -> None:
        logger.debug("Edit form %s cancelled", self.prefix)
        if self.on_cancel is not None:
            self.on_cancel()
