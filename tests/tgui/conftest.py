"""Shared fixtures for tgui unit tests.

The PTB Application is a MagicMock whose ``bot`` is an AsyncMock; every
sent message gets a fresh message_id. Callback updates are built by the
``make_update`` factory and fed to ``UIBot.dispatch_callback`` through
the ``press`` fixture, which finds a button's wire data by its label.
"""

import itertools
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import InlineKeyboardMarkup

from tgui.uibot import UIBot

CHAT_ID = 4242
USER_ID = 777


def _new_message_factory():
    counter = itertools.count(100)

    def _new_message(*_args, **_kwargs) -> MagicMock:
        msg = MagicMock()
        msg.message_id = next(counter)
        msg.chat.id = CHAT_ID
        return msg

    return _new_message


@pytest.fixture
def application() -> MagicMock:
    app = MagicMock()
    app.bot = AsyncMock()
    new_message = _new_message_factory()
    app.bot.send_message.side_effect = new_message
    app.bot.send_photo.side_effect = new_message
    return app


@pytest.fixture
def bot(application) -> AsyncMock:
    return application.bot


@pytest.fixture
def ui(application) -> UIBot:
    return UIBot(application)


@pytest.fixture
def make_update():
    """Factory: an Update carrying a callback query (data=None for a text message)."""

    def _make(
        data: str | None = None,
        *,
        text: str | None = None,
        chat_id: int = CHAT_ID,
        user_id: int = USER_ID,
        message_id: int = 1,
    ) -> MagicMock:
        update = MagicMock()
        update.effective_chat.id = chat_id
        update.effective_user.id = user_id
        update.effective_message.message_id = message_id
        if data is None:
            update.callback_query = None
            update.message.text = text
            update.effective_message.text = text
            update.message.chat.id = chat_id
            update.message.message_id = message_id
        else:
            query = MagicMock()
            query.data = data
            query.answer = AsyncMock()
            query.message.chat.id = chat_id
            query.message.message_id = message_id
            update.callback_query = query
        return update

    return _make


def _buttons(markup: InlineKeyboardMarkup) -> dict[str, str]:
    """Label → wire callback data for every callback button in a markup."""
    return {
        btn.text: btn.callback_data
        for row in markup.inline_keyboard
        for btn in row
        if btn.callback_data is not None
    }


def _labels(markup: InlineKeyboardMarkup) -> list[list[str]]:
    return [[btn.text for btn in row] for row in markup.inline_keyboard]


@pytest.fixture
def buttons_of():
    return _buttons


@pytest.fixture
def labels_of():
    return _labels


@pytest.fixture
def last_markup(bot):
    """The reply_markup of the most recent send_message or edit_message_text call."""

    def _last(method: str = "send_message"):
        return getattr(bot, method).call_args.kwargs["reply_markup"]

    return _last


@pytest.fixture
def press(ui, make_update):
    """Tap the button labelled ``text`` in ``markup``; returns whether a route matched."""

    async def _press(markup: InlineKeyboardMarkup, text: str, **kwargs) -> bool:
        data = _buttons(markup)[text]
        return await ui.dispatch_callback(make_update(data, **kwargs))

    return _press
