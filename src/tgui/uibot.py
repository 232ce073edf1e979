"""UIBot — the seam between widgets and the PTB Application.

Widgets never add PTB handlers themselves. They register routes here:
  - Callback routes keyed by prefix. Every widget button carries callback
    data of the form ``<prefix>:<payload>``; a single CallbackQueryHandler
    (installed once per UIBot) splits at the last ':' and dispatches.
  - Exact-text routes for reply keyboards, served by a single
    MessageHandler whose filter only matches registered texts.

Both kinds live in their own handler group (UI_HANDLER_GROUP, default -1)
so they run before the application's handlers. A matched update stops
further processing via ApplicationHandlerStop.

UIBot also forwards the handful of Bot methods widgets need, and owns a
StateManager for current/previous element tracking per chat.

Key classes: UIBot, UIContext.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from telegram import Bot, CallbackQuery, InputMedia, Message, Update
from telegram.error import RetryAfter, TelegramError
from telegram.ext import (
    Application,
    ApplicationHandlerStop,
    CallbackQueryHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .helpers import random_string
from .state import StateManager

logger = logging.getLogger(__name__)

UI_HANDLER_GROUP = -1

# Telegram accepts at most 100 ids per deleteMessages call
_DELETE_BATCH_SIZE = 100


@dataclass
class UIContext:
    """Everything a widget callback needs to know about the triggering update."""

    bot: UIBot
    update: Update | None = None
    context: ContextTypes.DEFAULT_TYPE | None = None
    chat_id: int | None = None
    user_id: int | None = None
    message_id: int | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_update(
        cls,
        bot: UIBot,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE | None = None,
    ) -> UIContext:
        chat = update.effective_chat
        user = update.effective_user
        msg = update.effective_message
        return cls(
            bot=bot,
            update=update,
            context=context,
            chat_id=chat.id if chat else None,
            user_id=user.id if user else None,
            message_id=msg.message_id if msg else None,
        )


CallbackRoute = Callable[[UIContext, CallbackQuery], Awaitable[None]]
TextRoute = Callable[[UIContext], Awaitable[None]]


class _TextRouteFilter(filters.MessageFilter):
    """Matches messages whose text has a registered route."""

    def __init__(self, ui: UIBot) -> None:
        super().__init__(name="UIBot text routes")
        self._ui = ui

    def filter(self, message: Message) -> bool:
        return self._ui.has_text_route(message.text)


class UIBot:
    """Wraps a PTB Application with prefix-routed widget callbacks."""

    def __init__(self, application: Application, group: int = UI_HANDLER_GROUP) -> None:
        self.application = application
        self.group = group
        self.state_manager = StateManager()
        self._callback_routes: dict[str, CallbackRoute] = {}
        self._text_routes: dict[str, tuple[str, TextRoute]] = {}

        application.add_handler(
            CallbackQueryHandler(self._on_callback_query, pattern=self.has_route),
            group=group,
        )
        # must precede any handler added to the group later (e.g. Manager.handler())
        application.add_handler(
            MessageHandler(filters.TEXT & _TextRouteFilter(self), self._on_text),
            group=group,
        )

    @property
    def bot(self) -> Bot:
        return self.application.bot

    # --- Callback routing ---

    def register_callback_prefix(self, prefix: str, handler: CallbackRoute) -> str:
        """Route ``<prefix>:<payload>`` callbacks to handler; replaces any existing route."""
        if prefix in self._callback_routes:
            logger.debug("Replacing callback route %s", prefix)
        self._callback_routes[prefix] = handler
        return prefix

    def unregister_callback_prefix(
        self, prefix: str, handler: CallbackRoute | None = None
    ) -> None:
        """Drop a route. With handler given, only if the route still points to it."""
        if handler is not None and self._callback_routes.get(prefix) != handler:
            return
        self._callback_routes.pop(prefix, None)

    def has_route(self, data: object) -> bool:
        """CallbackQueryHandler pattern: True if data belongs to a registered widget."""
        if not isinstance(data, str):
            return False
        prefix, sep, _ = data.rpartition(":")
        return bool(sep) and prefix in self._callback_routes

    @property
    def route_count(self) -> int:
        return len(self._callback_routes)

    async def dispatch_callback(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE | None = None,
    ) -> bool:
        """Invoke the route owning the callback data. Returns False if none matched."""
        query = update.callback_query
        if query is None or not isinstance(query.data, str):
            return False
        prefix, sep, _ = query.data.rpartition(":")
        handler = self._callback_routes.get(prefix) if sep else None
        if handler is None:
            logger.debug("No route for callback data %r", query.data)
            return False
        await handler(UIContext.from_update(self, update, context), query)
        return True

    async def _on_callback_query(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        if await self.dispatch_callback(update, context):
            raise ApplicationHandlerStop

    # --- Text routing (reply keyboards) ---

    def register_text_handler(self, text: str, handler: TextRoute) -> str:
        """Route messages whose text equals ``text`` exactly. Returns a route id.

        When several routes share a text, the most recently registered wins.
        """
        route_id = random_string(16)
        self._text_routes[route_id] = (text, handler)
        return route_id

    def unregister_text_handler(self, route_id: str) -> None:
        self._text_routes.pop(route_id, None)

    def has_text_route(self, text: str | None) -> bool:
        if text is None:
            return False
        return any(route_text == text for route_text, _ in self._text_routes.values())

    @property
    def text_route_count(self) -> int:
        return len(self._text_routes)

    async def dispatch_text(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE | None = None,
    ) -> bool:
        """Invoke the route owning the message text. Returns False if none matched."""
        message = update.effective_message
        text = message.text if message else None
        if not isinstance(text, str):
            return False
        for route_text, handler in reversed(list(self._text_routes.values())):
            if route_text == text:
                await handler(UIContext.from_update(self, update, context))
                return True
        return False

    async def _on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if await self.dispatch_text(update, context):
            raise ApplicationHandlerStop

    # --- Bot pass-throughs ---

    async def send_message(self, chat_id: int | str, text: str, **kwargs: Any) -> Message:
        return await self.bot.send_message(chat_id=chat_id, text=text, **kwargs)

    async def send_photo(self, chat_id: int | str, photo: Any, **kwargs: Any) -> Message:
        return await self.bot.send_photo(chat_id=chat_id, photo=photo, **kwargs)

    async def edit_message_text(
        self, chat_id: int | str, message_id: int, text: str, **kwargs: Any
    ) -> Message | bool:
        return await self.bot.edit_message_text(
            chat_id=chat_id, message_id=message_id, text=text, **kwargs
        )

    async def edit_message_media(
        self, chat_id: int | str, message_id: int, media: InputMedia, **kwargs: Any
    ) -> Message | bool:
        return await self.bot.edit_message_media(
            chat_id=chat_id, message_id=message_id, media=media, **kwargs
        )

    async def delete_message(self, chat_id: int | str, message_id: int) -> bool:
        return await self.bot.delete_message(chat_id=chat_id, message_id=message_id)

    async def delete_messages(self, chat_id: int | str, message_ids: list[int]) -> None:
        """Delete messages in batches; failures are logged, not raised."""
        ids = [mid for mid in message_ids if mid]
        for i in range(0, len(ids), _DELETE_BATCH_SIZE):
            batch = ids[i : i + _DELETE_BATCH_SIZE]
            try:
                await self.bot.delete_messages(chat_id=chat_id, message_ids=batch)
            except RetryAfter:
                raise
            except TelegramError as e:
                logger.warning("Failed to delete %d messages in %s: %s", len(batch), chat_id, e)

    async def answer_callback_query(self, query: CallbackQuery, text: str | None = None) -> None:
        """Answer a callback query; failures only get logged."""
        try:
            await query.answer(text)
        except RetryAfter:
            raise
        except TelegramError as e:
            logger.warning("Failed to answer callback query %s: %s", query.id, e)

    # --- Element state ---

    async def send_element(
        self, chat_id: int, text: str, element: Any, **kwargs: Any
    ) -> Message:
        """Send a message and record element as the chat's current UI element."""
        if element is not None:
            self.state_manager.set_current_element(chat_id, element)
        return await self.send_message(chat_id, text, **kwargs)

    def handle_back(self, chat_id: int) -> tuple[bool, Any]:
        """Step back to the previous element; returns (ok, element)."""
        state = self.state_manager.get_state(chat_id)
        if state is None or state.previous_element is None:
            return False, None
        previous = state.previous_element
        if self.state_manager.back(chat_id):
            return True, previous
        return False, None

    def handle_cancel(self, chat_id: int) -> None:
        self.state_manager.cancel(chat_id)

    def get_current_element(self, chat_id: int) -> Any:
        state = self.state_manager.get_state(chat_id)
        return state.current_element if state else None

    def set_context_data(self, chat_id: int, key: str, value: Any) -> None:
        self.state_manager.set_context_data(chat_id, key, value)

    def get_context_data(self, chat_id: int, key: str) -> Any:
        return self.state_manager.get_context_data(chat_id, key)
