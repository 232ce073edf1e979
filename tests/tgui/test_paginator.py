"""Tests for Paginator page math, navigation and close."""

from unittest.mock import MagicMock

import pytest

from tgui.paginator import Paginator

CHAT_ID = 4242


@pytest.fixture
def items() -> list[str]:
    return [f"item {i}" for i in range(1, 26)]


class TestPageMath:
    def test_page_count(self, ui, items) -> None:
        assert Paginator(ui, items, per_page=10).page_count == 3
        assert Paginator(ui, items, per_page=5).page_count == 5
        assert Paginator(ui, [], per_page=5).page_count == 1

    def test_page_text(self, ui, items) -> None:
        pg = Paginator(ui, items, per_page=10, separator="|")
        assert pg.page_text().split("|") == items[:10]

    def test_empty_shows_no_data(self, ui) -> None:
        assert Paginator(ui, []).page_text() == "No data"

    def test_per_page_must_be_positive(self, ui) -> None:
        with pytest.raises(ValueError):
            Paginator(ui, ["a"], per_page=0)


class TestNavigation:
    async def test_first_page_keyboard(self, ui, items, last_markup, labels_of) -> None:
        pg = Paginator(ui, items, per_page=10)
        await pg.show(CHAT_ID)
        assert pg.prefix.startswith("pg")
        assert labels_of(last_markup()) == [["· 1 ·", "2 ›", "3 »"], ["Close"]]

    async def test_single_page_has_only_close(self, ui, last_markup, labels_of) -> None:
        await Paginator(ui, ["a", "b"]).show(CHAT_ID)
        assert labels_of(last_markup()) == [["Close"]]

    async def test_no_close_button(self, ui, last_markup, labels_of) -> None:
        await Paginator(ui, ["a"] * 3, per_page=1, close_text=None).show(CHAT_ID)
        assert labels_of(last_markup()) == [["· 1 ·", "2 ›", "3 »"]]

    async def test_next_edits_in_place(
        self, ui, bot, items, press, last_markup, labels_of
    ) -> None:
        pg = Paginator(ui, items, per_page=10)
        msg = await pg.show(CHAT_ID)

        await press(last_markup(), "2 ›")

        assert pg.current_page == 2
        kwargs = bot.edit_message_text.call_args.kwargs
        assert kwargs["message_id"] == msg.message_id
        assert "item 11" in kwargs["text"]
        assert labels_of(last_markup("edit_message_text")) == [
            ["‹ 1", "· 2 ·", "3 ›"],
            ["Close"],
        ]
        bot.delete_message.assert_not_awaited()

    async def test_last_page_keyboard(self, ui, items, press, last_markup, labels_of) -> None:
        pg = Paginator(ui, items, per_page=5)
        await pg.show(CHAT_ID)
        await press(last_markup(), "5 »")
        assert pg.current_page == 5
        assert labels_of(last_markup("edit_message_text"))[0] == ["« 1", "‹ 4", "· 5 ·"]

    async def test_current_page_button_is_noop(self, ui, bot, items, press, last_markup) -> None:
        await Paginator(ui, items).show(CHAT_ID)
        await press(last_markup(), "· 1 ·")
        bot.edit_message_text.assert_not_awaited()

    async def test_set_page_clamps(self, ui, items) -> None:
        pg = Paginator(ui, items, per_page=10)
        await pg.show(CHAT_ID)
        await pg.set_page(99)
        assert pg.current_page == 3
        await pg.set_page(-1)
        assert pg.current_page == 1

    async def test_close_deletes_and_unregisters(
        self, ui, bot, items, press, last_markup
    ) -> None:
        pg = Paginator(ui, items, on_error=MagicMock())
        await pg.show(CHAT_ID)

        await press(last_markup(), "Close")

        bot.delete_message.assert_awaited_once()
        assert not ui.has_route(f"{pg.prefix}:0")
        assert pg.message_id is None
