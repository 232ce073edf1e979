"""Dialog: a small graph of Markdown screens linked by buttons.

Each Node has an id, text and a keyboard of DialogButtons. A button either
jumps to another node (the message is edited in place) or opens a URL.
With close_text set, every screen gets a close row; close() deletes the
message and drops the dialog's callback route.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from telegram import InlineKeyboardMarkup, MaybeInaccessibleMessage, Message

from .helpers import random_string
from .keyboard.inline import InlineKeyboard, OnError, default_on_error
from .message_sender import delete_quietly, edit_markdown, send_markdown
from .uibot import UIBot, UIContext

logger = logging.getLogger(__name__)


@dataclass
class DialogButton:
    text: str
    node_id: str | None = None
    url: str | None = None


@dataclass
class Node:
    id: str
    text: str
    keyboard: list[list[DialogButton]] = field(default_factory=list)


class Dialog:
    def __init__(
        self,
        bot: UIBot,
        nodes: list[Node],
        *,
        close_text: str | None = None,
        on_error: OnError | None = None,
        on_cancel: Callable[[], None] | None = None,
    ) -> None:
        if not nodes:
            raise ValueError("dialog needs at least one node")
        self.bot = bot
        self.nodes = {node.id: node for node in nodes}
        self.first_node_id = nodes[0].id
        self.close_text = close_text
        self.on_error = on_error or default_on_error
        self.on_cancel = on_cancel
        self.prefix = "dg" + random_string(14)
        self.current_node_id = self.first_node_id
        self.chat_id: int | str | None = None
        self.message_id: int | None = None

    def build_keyboard(self, node: Node) -> InlineKeyboardMarkup | None:
        if not node.keyboard and not self.close_text:
            return None
        kb = InlineKeyboard(
            self.bot, self.prefix, delete_after_click=False, on_error=self.on_error
        )
        for row in node.keyboard:
            kb.row()
            for btn in row:
                if btn.url:
                    kb.url_button(btn.text, btn.url)
                else:
                    kb.button(btn.text, btn.node_id or "", self._on_click)
        if self.close_text:
            kb.row().button(self.close_text, "", self._on_close)
        return kb.markup

    def _get_node(self, node_id: str) -> Node | None:
        node = self.nodes.get(node_id)
        if node is None:
            self.on_error(KeyError(f"dialog node not found: {node_id}"))
        return node

    async def show(self, chat_id: int | str, node_id: str | None = None) -> Message | None:
        node = self._get_node(node_id or self.first_node_id)
        if node is None:
            return None
        self.chat_id = chat_id
        self.current_node_id = node.id
        msg = await send_markdown(
            self.bot.bot, chat_id, node.text, reply_markup=self.build_keyboard(node)
        )
        if msg is not None:
            self.message_id = msg.message_id
        return msg

    async def close(self) -> None:
        self.bot.unregister_callback_prefix(self.prefix)
        if self.chat_id is not None and self.message_id is not None:
            await delete_quietly(self.bot.bot, self.chat_id, self.message_id)
        self.message_id = None
        if self.on_cancel is not None:
            self.on_cancel()

    async def _on_close(
        self, _ctx: UIContext, _message: MaybeInaccessibleMessage | None, _data: str
    ) -> None:
        logger.debug("Dialog %s closed", self.prefix)
        await self.close()

    async def _on_click(
        self, _ctx: UIContext, _message: MaybeInaccessibleMessage | None, data: str
    ) -> None:
        node = self._get_node(data)
        if node is None or self.chat_id is None or self.message_id is None:
            return
        self.current_node_id = node.id
        await edit_markdown(
            self.bot.bot,
            self.chat_id,
            self.message_id,
            node.text,
            reply_markup=self.build_keyboard(node),
        )
