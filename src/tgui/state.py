"""Per-chat UI state tracking.

StateManager keeps, for every chat, the UI element currently on screen,
the one shown before it (for "back" navigation), and a free-form
context-data dict. All access goes through a lock because PTB may run
update handlers concurrently (``concurrent_updates``).

Key classes: StateManager, UserState, UIElement (protocol).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .uibot import UIContext

logger = logging.getLogger(__name__)


class UIElement(Protocol):
    """Anything that can (re)render itself for a chat."""

    async def show(self, ctx: UIContext) -> Any: ...


@dataclass
class UserState:
    """UI state for a single chat."""

    current_element: Any = None
    previous_element: Any = None
    context_data: dict[str, Any] = field(default_factory=dict)


class StateManager:
    """Thread-safe map of chat_id → UserState."""

    def __init__(self) -> None:
        self._states: dict[int, UserState] = {}
        self._lock = threading.Lock()

    def set_state(self, chat_id: int, state: UserState) -> None:
        with self._lock:
            self._states[chat_id] = state

    def get_state(self, chat_id: int) -> UserState | None:
        with self._lock:
            return self._states.get(chat_id)

    def set_current_element(self, chat_id: int, element: Any) -> None:
        """Make element current; the old current element becomes previous."""
        with self._lock:
            state = self._states.setdefault(chat_id, UserState())
            state.previous_element = state.current_element
            state.current_element = element

    def back(self, chat_id: int) -> bool:
        """Restore the previous element. Returns False if there is none."""
        with self._lock:
            state = self._states.get(chat_id)
            if state is None or state.previous_element is None:
                return False
            state.current_element = state.previous_element
            state.previous_element = None
            return True

    def cancel(self, chat_id: int) -> None:
        """Forget everything about a chat."""
        with self._lock:
            self._states.pop(chat_id, None)
        logger.debug("UI state cleared for chat %s", chat_id)

    def set_context_data(self, chat_id: int, key: str, value: Any) -> None:
        with self._lock:
            state = self._states.setdefault(chat_id, UserState())
            state.context_data[key] = value

    def get_context_data(self, chat_id: int, key: str) -> Any:
        with self._lock:
            state = self._states.get(chat_id)
            if state is None:
                return None
            return state.context_data.get(key)
