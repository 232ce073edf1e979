"""Tests for Slider navigation, photo slides, select and close."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import InputMediaPhoto

from tgui.slider import Slide, Slider

CHAT_ID = 4242


@pytest.fixture
def slides() -> list[Slide]:
    return [Slide("one"), Slide("two"), Slide("three")]


class TestSlider:
    def test_needs_slides(self, ui) -> None:
        with pytest.raises(ValueError):
            Slider(ui, [])

    @pytest.mark.parametrize(
        "mixed",
        [
            [Slide("cat", photo="cat.jpg"), Slide("plain")],
            [Slide("plain"), Slide("cat", photo="cat.jpg")],
        ],
        ids=["photo-first", "text-first"],
    )
    def test_rejects_mixed_photo_and_text(self, ui, mixed) -> None:
        with pytest.raises(ValueError, match="all photos or all text"):
            Slider(ui, mixed)

    async def test_show_keyboard(self, ui, slides, last_markup, labels_of) -> None:
        slider = Slider(ui, slides, on_select=AsyncMock())
        await slider.show(CHAT_ID)
        assert slider.prefix.startswith("sl")
        assert labels_of(last_markup()) == [["‹", "1/3", "›"], ["Select"], ["Close"]]

    async def test_single_slide_has_no_arrows(self, ui, last_markup, labels_of) -> None:
        await Slider(ui, [Slide("only")]).show(CHAT_ID)
        assert labels_of(last_markup()) == [["Close"]]

    async def test_prev_wraps_around(
        self, ui, bot, slides, press, last_markup, labels_of
    ) -> None:
        slider = Slider(ui, slides)
        await slider.show(CHAT_ID)

        await press(last_markup(), "‹")

        assert slider.current == 2
        assert "three" in bot.edit_message_text.call_args.kwargs["text"]
        assert labels_of(last_markup("edit_message_text"))[0] == ["‹", "3/3", "›"]

    async def test_next(self, ui, slides, press, last_markup) -> None:
        slider = Slider(ui, slides)
        await slider.show(CHAT_ID)
        await press(last_markup(), "›")
        assert slider.current == 1

    async def test_photo_slides(self, ui, bot, press) -> None:
        slider = Slider(ui, [Slide("cat", photo="cat.jpg"), Slide("dog", photo="dog.jpg")])
        await slider.show(CHAT_ID)

        kwargs = bot.send_photo.call_args.kwargs
        assert kwargs["photo"] == "cat.jpg"
        assert kwargs["parse_mode"] == "MarkdownV2"
        bot.send_message.assert_not_awaited()

        await press(kwargs["reply_markup"], "›")

        media = bot.edit_message_media.call_args.kwargs["media"]
        assert isinstance(media, InputMediaPhoto)
        assert media.caption == "dog"

    async def test_select_passes_index(self, ui, slides, press, last_markup) -> None:
        on_select = AsyncMock()
        slider = Slider(ui, slides, on_select=on_select)
        await slider.show(CHAT_ID)
        await slider.move(1)

        await press(last_markup("edit_message_text"), "Select")

        assert on_select.call_args.args[1] == 1

    async def test_close(self, ui, bot, slides, press, last_markup) -> None:
        on_cancel = MagicMock()
        slider = Slider(ui, slides, on_cancel=on_cancel)
        await slider.show(CHAT_ID)

        await press(last_markup(), "Close")

        bot.delete_message.assert_awaited_once()
        on_cancel.assert_called_once()
        assert not ui.has_route(f"{slider.prefix}:0")
