"""Multi-step questionnaire for a single chat.

A Questionnaire is an ordered list of Questions, asked one at a time.
Three question formats are supported:
  - TEXT: the user types the answer (routed here by Manager.handle_message)
  - RADIO: single choice from an inline keyboard (typed text is accepted too)
  - CHECK: multiple choice; selections toggle until "✅ Done" is pressed

Flow:
  show() sends the current step ("✒️[i/n] text") with its keyboard.
  answer() validates and stores the answer, sends an answer summary with
  an "◀️ Edit" button (when editing is allowed) and shows the next step.
  Pressing Edit rewinds to that step: messages of later steps are deleted
  and their answers cleared. When every step is answered, done() hands
  the answers to the on_done handler and cleans up all sent messages.

Build one with the fluent methods:

    q = (
        Questionnaire(chat_id, manager)
        .add_question("name", "What is your name?", validator=validate_name)
        .add_question("age", "Age group?", quick_choices("<18", "18-30", "30+"))
        .set_on_done_handler(on_done)
    )
    await q.show(ui_bot)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from telegram import MaybeInaccessibleMessage
from telegram.constants import ParseMode
from telegram.error import RetryAfter, TelegramError

from ..button import Button
from ..errors import UIError
from ..helpers import escape, random_string
from ..keyboard.inline import InlineKeyboard

if TYPE_CHECKING:
    from ..uibot import UIBot, UIContext
    from .manager import Manager

logger = logging.getLogger(__name__)


class QuestionFormat(Enum):
    TEXT = 0
    RADIO = 1
    CHECK = 2


RADIO_UNSELECTED = "⚪"
RADIO_SELECTED = "🔘"
CHECK_UNSELECTED = "☑️"
CHECK_SELECTED = "✅"
EDIT_BUTTON_TEXT = "◀️ Edit"
DONE_BUTTON_TEXT = "✅ Done"
CANCEL_BUTTON_TEXT = "❌ Cancel"

QUESTION_FORMAT = "✒️\\[{index}/{total}\\] {text}"
ERROR_FORMAT = "⚠️ *{error}*\n\n{text}"
SUMMARY_FORMAT = "✅ *{question}*\n{answer}"
CHOOSE_FROM_OPTIONS = "Please choose from the options below."

CMD_DONE = "cmd_done"
CMD_CANCEL = "cmd_cancel"

Validator = Callable[[str], None]
OnDoneHandler = Callable[["UIBot", Any, dict[str, Any]], Awaitable[None]]


@dataclass
class Question:
    key: str
    text: str
    choices: list[list[Button]] = field(default_factory=list)
    validator: Validator | None = None
    format: QuestionFormat = QuestionFormat.TEXT
    answer: str = ""
    choices_selected: list[str] = field(default_factory=list)
    message_id: int = 0
    summary_message_id: int = 0

    def _choice_text(self, data: str) -> str | None:
        for row in self.choices:
            for choice in row:
                if choice.callback_data == data:
                    return choice.text
        return None

    def has_choice(self, data: str) -> bool:
        return self._choice_text(data) is not None

    def display_answer(self) -> str:
        """Human-readable answer: choice payloads are mapped back to labels."""
        if self.format is QuestionFormat.TEXT:
            return self.answer or "Not answered"
        if self.format is QuestionFormat.RADIO:
            if not self.answer:
                return "Not selected"
            return self._choice_text(self.answer) or self.answer
        if not self.choices_selected:
            return "None selected"
        texts = [
            text
            for text in (self._choice_text(s) for s in self.choices_selected)
            if text is not None
        ]
        if not texts:
            return "Selected items"
        if len(texts) == 1:
            return texts[0]
        return f"{texts[0]} + {len(texts) - 1} more"

    def is_selected(self, data: str) -> bool:
        return data in self.choices_selected

    def selected_choices(self) -> list[list[Button]]:
        rows = [[c for c in row if self.is_selected(c.callback_data)] for row in self.choices]
        return [row for row in rows if row]

    def unselected_choices(self) -> list[list[Button]]:
        rows = [
            [c for c in row if not self.is_selected(c.callback_data)]
            for row in self.choices
        ]
        return [row for row in rows if row]

    def validate(self, answer: str) -> None:
        """Run the validator; it raises ValueError for a rejected answer."""
        if self.validator is not None:
            self.validator(answer)

    def reset(self) -> None:
        self.answer = ""
        self.choices_selected = []
        self.message_id = 0
        self.summary_message_id = 0


class Questionnaire:
    def __init__(self, chat_id: Any, manager: Manager | None = None) -> None:
        self.chat_id = chat_id
        self.manager = manager
        self.questions: list[Question] = []
        self.current_index = 0
        self.on_done: OnDoneHandler | None = None
        self.on_cancel: Callable[[], None] | None = None
        self.callback_id = "qs" + random_string(14)
        self.message_ids: list[int] = []
        self.initial_data: dict[str, Any] = {}
        self.allow_edit_answers = True
        self.bot: UIBot | None = None

    # --- Builder ---

    def add_question(
        self,
        key: str,
        text: str,
        choices: list[list[Button]] | None = None,
        validator: Validator | None = None,
    ) -> Questionnaire:
        """Add a TEXT question (no choices) or a RADIO question."""
        fmt = QuestionFormat.TEXT if choices is None else QuestionFormat.RADIO
        self.questions.append(Question(key, text, choices or [], validator, fmt))
        logger.debug("Questionnaire %s: added %s question %r", self.callback_id, fmt.name, key)
        return self

    def add_multiple_answer_question(
        self,
        key: str,
        text: str,
        choices: list[list[Button]],
        validator: Validator | None = None,
    ) -> Questionnaire:
        """Add a CHECK question; the answer is the list of selected payloads."""
        self.questions.append(Question(key, text, choices, validator, QuestionFormat.CHECK))
        logger.debug("Questionnaire %s: added CHECK question %r", self.callback_id, key)
        return self

    def set_on_done_handler(self, handler: OnDoneHandler | None) -> Questionnaire:
        self.on_done = handler
        return self

    def set_on_cancel_handler(self, handler: Callable[[], None] | None) -> Questionnaire:
        self.on_cancel = handler
        return self

    def set_allow_edit_answers(self, allow: bool) -> Questionnaire:
        self.allow_edit_answers = allow
        return self

    def set_initial_data(self, data: dict[str, Any]) -> Questionnaire:
        """Extra key/values merged into the final answers (overriding them)."""
        self.initial_data = data
        return self

    def set_manager(self, manager: Manager | None) -> Questionnaire:
        self.manager = manager
        return self

    # --- Results ---

    @property
    def is_complete(self) -> bool:
        return self.current_index >= len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    def question_index(self, key: str) -> int:
        for i, question in enumerate(self.questions):
            if question.key == key:
                return i
        return -1

    def answers(self) -> dict[str, Any]:
        """Key → answer (str, or list[str] for CHECK), with initial_data merged last."""
        result: dict[str, Any] = {}
        for question in self.questions:
            if question.format is QuestionFormat.CHECK:
                result[question.key] = list(question.choices_selected)
            else:
                result[question.key] = question.answer
        result.update(self.initial_data)
        return result

    def result_json(self) -> str:
        return json.dumps(self.answers(), ensure_ascii=False)

    # --- Rendering ---

    def _step_prefix(self, index: int) -> str:
        return f"qs_{self.callback_id}_step{index}"

    def _answer_prefix(self, index: int) -> str:
        return f"qs_{self.callback_id}_answer{index}"

    def _build_keyboard(self, bot: UIBot, question: Question) -> InlineKeyboard:
        kb = InlineKeyboard(bot, self._step_prefix(self.current_index))
        if question.format is QuestionFormat.RADIO:
            for row in question.choices:
                kb.row()
                for choice in row:
                    marker = (
                        RADIO_SELECTED if question.answer == choice.callback_data else RADIO_UNSELECTED
                    )
                    kb.button(f"{marker} {choice.text}", choice.callback_data, self._on_select)
        elif question.format is QuestionFormat.CHECK:
            for row in question.selected_choices():
                kb.row()
                for choice in row:
                    kb.button(
                        f"{CHECK_SELECTED} {choice.text}", choice.callback_data, self._on_unselect
                    )
            for row in question.unselected_choices():
                kb.row()
                for choice in row:
                    kb.button(
                        f"{CHECK_UNSELECTED} {choice.text}", choice.callback_data, self._on_select
                    )
            kb.row().button(DONE_BUTTON_TEXT, CMD_DONE, self._on_done_choosing)

        if self.on_cancel is not None:
            kb.row().button(CANCEL_BUTTON_TEXT, CMD_CANCEL, self._on_cancel)
        return kb

    async def show(self, bot: UIBot, error: str | None = None) -> None:
        """Send the current step; a pending validation error is shown above it."""
        self.bot = bot
        question = self.current_question
        if self.manager is not None:
            self.manager.add(self.chat_id, self)

        text = QUESTION_FORMAT.format(
            index=self.current_index + 1,
            total=len(self.questions),
            text=escape(question.text),
        )
        if error:
            text = ERROR_FORMAT.format(error=escape(error), text=text)

        kb = self._build_keyboard(bot, question)
        reply_markup = kb.markup if len(kb) else None
        if reply_markup is None:
            kb.unregister()

        msg = await bot.send_message(
            self.chat_id, text, parse_mode=ParseMode.MARKDOWN_V2, reply_markup=reply_markup
        )
        question.message_id = msg.message_id
        self.message_ids.append(msg.message_id)
        logger.debug(
            "Questionnaire %s: step %d/%d shown in chat %s",
            self.callback_id,
            self.current_index + 1,
            len(self.questions),
            self.chat_id,
        )

    async def _send_answer_summary(self, bot: UIBot, index: int) -> None:
        """Replace a finished step by "✅ question / answer" (+ Edit button)."""
        question = self.questions[index]
        text = SUMMARY_FORMAT.format(
            question=escape(question.text), answer=escape(question.display_answer())
        )
        reply_markup = None
        if self.allow_edit_answers:
            kb = InlineKeyboard(bot, self._answer_prefix(index))
            kb.button(EDIT_BUTTON_TEXT, str(index), self._on_back)
            reply_markup = kb.markup

        if question.format is QuestionFormat.TEXT and question.message_id:
            try:
                await bot.edit_message_text(
                    self.chat_id,
                    question.message_id,
                    text,
                    parse_mode=ParseMode.MARKDOWN_V2,
                    reply_markup=reply_markup,
                )
                return
            except RetryAfter:
                raise
            except TelegramError as e:
                logger.debug("Summary edit failed (%s), sending a new message", e)

        msg = await bot.send_message(
            self.chat_id, text, parse_mode=ParseMode.MARKDOWN_V2, reply_markup=reply_markup
        )
        question.summary_message_id = msg.message_id
        self.message_ids.append(msg.message_id)

    # --- State machine ---

    async def answer(self, bot: UIBot, answer: str) -> bool:
        """Apply an answer to the current step. Returns True when all steps are answered."""
        self.bot = bot
        question = self.current_question
        previous_index = self.current_index

        if question.format is QuestionFormat.CHECK and answer == CMD_DONE:
            self.current_index += 1
            await self._send_answer_summary(bot, previous_index)
        elif question.format is QuestionFormat.CHECK:
            if not question.has_choice(answer):
                await self.show(bot, error=CHOOSE_FROM_OPTIONS)
                return False
            try:
                question.validate(answer)
            except ValueError as e:
                await self.show(bot, error=str(e))
                return False
            if not question.is_selected(answer):
                question.choices_selected.append(answer)
        else:
            try:
                question.validate(answer)
            except ValueError as e:
                await self.show(bot, error=str(e))
                return False
            question.answer = answer
            self.current_index += 1
            await self._send_answer_summary(bot, previous_index)

        if not self.is_complete:
            await self.show(bot)
        return self.is_complete

    async def done(self, bot: UIBot) -> None:
        """Hand the answers to on_done and clean up the conversation."""
        answers = self.answers()
        self._finish()
        logger.info("Questionnaire %s completed in chat %s", self.callback_id, self.chat_id)

        if self.on_done is None:
            logger.debug("Questionnaire %s: no on_done handler set", self.callback_id)
            return
        try:
            await self.on_done(bot, self.chat_id, answers)
        except UIError as e:
            logger.warning("Questionnaire %s: on_done failed: %s", self.callback_id, e)
            await bot.send_message(self.chat_id, str(e))
            return

        await bot.delete_messages(self.chat_id, self.message_ids)
        self.message_ids = []

    async def cancel(self, bot: UIBot) -> None:
        """Delete everything sent so far and end the conversation."""
        self._finish()
        await bot.delete_messages(self.chat_id, self.message_ids)
        self.message_ids = []
        logger.info("Questionnaire %s cancelled in chat %s", self.callback_id, self.chat_id)
        if self.on_cancel is not None:
            self.on_cancel()

    async def rewind(self, bot: UIBot, step: int) -> None:
        """Go back to step: later steps lose their answers and messages."""
        if not 0 <= step < len(self.questions):
            logger.warning("Questionnaire %s: edit of unknown step %d", self.callback_id, step)
            return

        stale: list[int] = []
        for index, question in enumerate(self.questions):
            if index > step:
                stale.extend(mid for mid in (question.message_id, question.summary_message_id) if mid)
                question.reset()
                bot.unregister_callback_prefix(self._answer_prefix(index))
                bot.unregister_callback_prefix(self._step_prefix(index))
        if stale:
            await bot.delete_messages(self.chat_id, stale)
            self.message_ids = [mid for mid in self.message_ids if mid not in stale]

        self.current_index = step
        await self.show(bot)

    def _finish(self) -> None:
        if self.manager is not None:
            self.manager.remove(self.chat_id, self)
        if self.bot is not None:
            for index in range(len(self.questions)):
                self.bot.unregister_callback_prefix(self._step_prefix(index))
                self.bot.unregister_callback_prefix(self._answer_prefix(index))

    # --- Keyboard callbacks ---

    async def _on_select(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, data: str
    ) -> None:
        if await self.answer(ctx.bot, data):
            await self.done(ctx.bot)

    async def _on_unselect(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, data: str
    ) -> None:
        question = self.current_question
        if question.format is QuestionFormat.CHECK and question.is_selected(data):
            question.choices_selected.remove(data)
        await self.show(ctx.bot)

    async def _on_done_choosing(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, _data: str
    ) -> None:
        if await self.answer(ctx.bot, CMD_DONE):
            await self.done(ctx.bot)

    async def _on_back(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, data: str
    ) -> None:
        try:
            step = int(data)
        except ValueError:
            return
        await self.rewind(ctx.bot, step)

    async def _on_cancel(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, _data: str
    ) -> None:
        await self.cancel(ctx.bot)
