"""Button model and grid builder shared by all inline widgets.

A Button is a plain description (label, payload, optional click handler
or URL). Widgets turn rows of Buttons into an InlineKeyboard, so callers
can lay out choices once and reuse them across questionnaires, edit forms
and data tables.

Key components:
  - Button: label + callback payload + optional on_click / url
  - ButtonGrid: fluent row builder with choice helpers
  - quick_choices / quick_paired_choices: one-liners for common layouts
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from telegram import MaybeInaccessibleMessage

    from .uibot import UIContext

OnSelect = Callable[["UIContext", "MaybeInaccessibleMessage | None", str], Awaitable[None]]


@dataclass
class Button:
    text: str
    callback_data: str = ""
    on_click: OnSelect | None = None
    url: str | None = None


class ButtonGrid:
    """Builds a ``list[list[Button]]`` row by row."""

    def __init__(self) -> None:
        self._rows: list[list[Button]] = []

    def row(self) -> ButtonGrid:
        self._rows.append([])
        return self

    def add(self, *buttons: Button) -> ButtonGrid:
        """Append buttons to the last row (opening one if the grid is empty)."""
        if not self._rows:
            self._rows.append([])
        self._rows[-1].extend(buttons)
        return self

    def choice(self, text: str) -> ButtonGrid:
        """Add a choice whose payload is its label."""
        return self.add(Button(text, text))

    def choice_with_data(self, text: str, data: str) -> ButtonGrid:
        return self.add(Button(text, data))

    def single_choice(self, text: str) -> ButtonGrid:
        """Add a choice on a row of its own."""
        return self.row().choice(text)

    def single_choice_with_data(self, text: str, data: str) -> ButtonGrid:
        return self.row().choice_with_data(text, data)

    def build(self) -> list[list[Button]]:
        return [row for row in self._rows if row]


def quick_choices(*texts: str) -> list[list[Button]]:
    """One choice per row, payload = label."""
    grid = ButtonGrid()
    for text in texts:
        grid.single_choice(text)
    return grid.build()


def quick_paired_choices(*texts: str) -> list[list[Button]]:
    """Two choices per row, payload = label."""
    grid = ButtonGrid()
    for i, text in enumerate(texts):
        if i % 2 == 0:
            grid.row()
        grid.choice(text)
    return grid.build()
