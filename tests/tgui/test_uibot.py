"""Tests for UIBot callback/text routing, pass-throughs and element state."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import Chat, Message, Update, User
from telegram.error import BadRequest, RetryAfter
from telegram.ext import (
    Application,
    ApplicationHandlerStop,
    CallbackQueryHandler,
    MessageHandler,
    filters,
)

from tgui.menu import Menu
from tgui.questionnaire import Manager
from tgui.uibot import UI_HANDLER_GROUP, UIBot, UIContext

CHAT_ID = 4242


class TestConstruction:
    def test_installs_callback_and_text_handlers(self, application, ui) -> None:
        assert application.add_handler.call_count == 2
        first, second = (c.args[0] for c in application.add_handler.call_args_list)
        assert isinstance(first, CallbackQueryHandler)
        assert isinstance(second, MessageHandler)
        for c in application.add_handler.call_args_list:
            assert c.kwargs["group"] == UI_HANDLER_GROUP

    def test_custom_group(self, application) -> None:
        application.add_handler.reset_mock()
        UIBot(application, group=5)
        assert {c.kwargs["group"] for c in application.add_handler.call_args_list} == {5}

    def test_bot_is_application_bot(self, application, ui) -> None:
        assert ui.bot is application.bot


class TestCallbackRouting:
    async def test_dispatches_to_registered_prefix(self, ui, make_update) -> None:
        handler = AsyncMock()
        ui.register_callback_prefix("abc", handler)

        assert await ui.dispatch_callback(make_update("abc:3")) is True

        handler.assert_awaited_once()
        ctx, query = handler.call_args.args
        assert isinstance(ctx, UIContext)
        assert ctx.bot is ui
        assert ctx.chat_id == CHAT_ID
        assert query.data == "abc:3"

    async def test_prefix_match_is_exact(self, ui, make_update) -> None:
        handler = AsyncMock()
        ui.register_callback_prefix("step1", handler)

        assert await ui.dispatch_callback(make_update("step10:0")) is False
        handler.assert_not_awaited()

    async def test_splits_at_last_colon(self, ui, make_update) -> None:
        handler = AsyncMock()
        ui.register_callback_prefix("a:b", handler)
        assert await ui.dispatch_callback(make_update("a:b:1")) is True

    @pytest.mark.parametrize(
        "data",
        ["unknown:1", "noseparator", ""],
        ids=["unknown-prefix", "no-separator", "empty"],
    )
    async def test_unmatched_returns_false(self, ui, make_update, data) -> None:
        ui.register_callback_prefix("abc", AsyncMock())
        assert await ui.dispatch_callback(make_update(data)) is False

    async def test_non_callback_update_returns_false(self, ui, make_update) -> None:
        assert await ui.dispatch_callback(make_update(text="hello")) is False

    def test_has_route(self, ui) -> None:
        ui.register_callback_prefix("abc", AsyncMock())
        assert ui.has_route("abc:0") is True
        assert ui.has_route("abd:0") is False
        assert ui.has_route(None) is False
        assert ui.has_route(b"abc:0") is False

    async def test_register_replaces_existing(self, ui, make_update) -> None:
        first, second = AsyncMock(), AsyncMock()
        ui.register_callback_prefix("abc", first)
        ui.register_callback_prefix("abc", second)

        await ui.dispatch_callback(make_update("abc:0"))
        first.assert_not_awaited()
        second.assert_awaited_once()
        assert ui.route_count == 1

    def test_unregister(self, ui) -> None:
        ui.register_callback_prefix("abc", AsyncMock())
        ui.unregister_callback_prefix("abc")
        assert ui.route_count == 0

    def test_unregister_missing_is_noop(self, ui) -> None:
        ui.unregister_callback_prefix("nope")
        assert ui.route_count == 0

    def test_unregister_with_stale_handler_keeps_route(self, ui) -> None:
        old, new = AsyncMock(), AsyncMock()
        ui.register_callback_prefix("abc", old)
        ui.register_callback_prefix("abc", new)

        ui.unregister_callback_prefix("abc", old)
        assert ui.has_route("abc:0")

        ui.unregister_callback_prefix("abc", new)
        assert not ui.has_route("abc:0")

    async def test_matched_query_stops_other_handlers(self, ui, make_update) -> None:
        ui.register_callback_prefix("abc", AsyncMock())
        with pytest.raises(ApplicationHandlerStop):
            await ui._on_callback_query(make_update("abc:0"), MagicMock())

    async def test_unmatched_query_does_not_stop(self, ui, make_update) -> None:
        await ui._on_callback_query(make_update("zzz:0"), MagicMock())


class TestTextRoutes:
    def test_register_and_unregister(self, application, ui) -> None:
        route_id = ui.register_text_handler("Hello", AsyncMock())
        assert ui.has_text_route("Hello")
        assert not ui.has_text_route("Hello!")
        assert not ui.has_text_route(None)
        # routes never add PTB handlers of their own
        assert application.add_handler.call_count == 2

        ui.unregister_text_handler(route_id)
        assert not ui.has_text_route("Hello")
        ui.unregister_text_handler(route_id)
        assert ui.text_route_count == 0

    async def test_dispatch_invokes_handler(self, ui, make_update) -> None:
        handler = AsyncMock()
        ui.register_text_handler("Hello", handler)

        assert await ui.dispatch_text(make_update(text="Hello")) is True
        ctx = handler.call_args.args[0]
        assert ctx.chat_id == CHAT_ID

    async def test_dispatch_unmatched_returns_false(self, ui, make_update) -> None:
        handler = AsyncMock()
        ui.register_text_handler("Hello", handler)
        assert await ui.dispatch_text(make_update(text="Bye")) is False
        handler.assert_not_awaited()

    async def test_latest_route_wins_for_same_text(self, ui, make_update) -> None:
        old, new = AsyncMock(), AsyncMock()
        ui.register_text_handler("Hello", old)
        route_id = ui.register_text_handler("Hello", new)

        await ui.dispatch_text(make_update(text="Hello"))
        old.assert_not_awaited()
        new.assert_awaited_once()

        ui.unregister_text_handler(route_id)
        await ui.dispatch_text(make_update(text="Hello"))
        old.assert_awaited_once()

    async def test_matched_text_stops_other_handlers(self, ui, make_update) -> None:
        ui.register_text_handler("Hello", AsyncMock())
        with pytest.raises(ApplicationHandlerStop):
            await ui._on_text(make_update(text="Hello"), MagicMock())


def _text_update(text: str, update_id: int = 1) -> Update:
    message = Message(
        message_id=update_id,
        date=datetime.now(UTC),
        chat=Chat(id=CHAT_ID, type=Chat.PRIVATE),
        from_user=User(id=777, first_name="Test", is_bot=False),
        text=text,
    )
    return Update(update_id=update_id, message=message)


class TestRealApplicationOrdering:
    """Text routes and the questionnaire Manager share a handler group."""

    @pytest.fixture
    def app(self) -> Application:
        app = Application.builder().token("123:TEST").build()
        # process_update refuses to run on an uninitialized app; skip the getMe call
        app._initialized = True
        return app

    async def test_menu_route_reached_after_manager_handler(self, app) -> None:
        ui = UIBot(app)
        manager = Manager()
        app.add_handler(manager.handler(), group=UI_HANDLER_GROUP)
        fallback = AsyncMock()
        app.add_handler(MessageHandler(filters.TEXT, fallback))

        on_survey = AsyncMock()
        Menu(ui, "menu").add("📝 Survey", on_survey)

        await app.process_update(_text_update("📝 Survey"))

        on_survey.assert_awaited_once()
        fallback.assert_not_awaited()

    async def test_plain_text_reaches_active_questionnaire(self, app) -> None:
        ui = UIBot(app)
        manager = Manager()
        app.add_handler(manager.handler(), group=UI_HANDLER_GROUP)
        Menu(ui, "menu").add("📝 Survey", AsyncMock())

        session = MagicMock()
        session.answer = AsyncMock(return_value=False)
        session.message_ids = []
        manager.add(CHAT_ID, session)

        await app.process_update(_text_update("Alice", update_id=2))

        session.answer.assert_awaited_once_with(session.bot, "Alice")
        assert session.message_ids == [2]


class TestPassThroughs:
    async def test_send_message(self, ui, bot) -> None:
        await ui.send_message(1, "hi", parse_mode="HTML")
        bot.send_message.assert_awaited_once_with(chat_id=1, text="hi", parse_mode="HTML")

    async def test_delete_messages_in_batches(self, ui, bot) -> None:
        await ui.delete_messages(1, [0, *range(1, 251)])
        assert bot.delete_messages.await_count == 3
        first_batch = bot.delete_messages.call_args_list[0].kwargs["message_ids"]
        assert first_batch == list(range(1, 101))

    async def test_delete_messages_logs_failure(self, ui, bot, caplog) -> None:
        bot.delete_messages.side_effect = BadRequest("message to delete not found")
        await ui.delete_messages(1, [5])
        assert "Failed to delete" in caplog.text

    async def test_delete_messages_propagates_retry_after(self, ui, bot) -> None:
        bot.delete_messages.side_effect = RetryAfter(5)
        with pytest.raises(RetryAfter):
            await ui.delete_messages(1, [5])

    async def test_answer_callback_query_swallows_errors(self, ui) -> None:
        query = MagicMock()
        query.answer = AsyncMock(side_effect=BadRequest("query is too old"))
        await ui.answer_callback_query(query, "ok")
        query.answer.assert_awaited_once_with("ok")


class TestElementState:
    async def test_send_element_records_current(self, ui, bot) -> None:
        element = object()
        await ui.send_element(CHAT_ID, "text", element)
        assert ui.get_current_element(CHAT_ID) is element
        bot.send_message.assert_awaited_once()

    async def test_handle_back(self, ui) -> None:
        first, second = object(), object()
        await ui.send_element(CHAT_ID, "a", first)
        await ui.send_element(CHAT_ID, "b", second)

        assert ui.handle_back(CHAT_ID) == (True, first)
        assert ui.get_current_element(CHAT_ID) is first
        assert ui.handle_back(CHAT_ID) == (False, None)

    def test_handle_back_unknown_chat(self, ui) -> None:
        assert ui.handle_back(999) == (False, None)

    async def test_handle_cancel_clears_state(self, ui) -> None:
        await ui.send_element(CHAT_ID, "a", object())
        ui.set_context_data(CHAT_ID, "k", "v")
        ui.handle_cancel(CHAT_ID)
        assert ui.get_current_element(CHAT_ID) is None
        assert ui.get_context_data(CHAT_ID, "k") is None

    def test_context_data(self, ui) -> None:
        ui.set_context_data(CHAT_ID, "lang", "en")
        assert ui.get_context_data(CHAT_ID, "lang") == "en"
        assert ui.get_context_data(CHAT_ID, "missing") is None
