"""Fluent builder for DataTable."""

from __future__ import annotations

from collections.abc import Callable

from ..keyboard.inline import OnError, default_on_error
from ..questionnaire import Manager
from ..uibot import UIBot
from .datatable import DataHandler, DataTable

DEFAULT_ITEMS_PER_PAGE = 10


class DataTableBuilder:
    def __init__(self, bot: UIBot | None) -> None:
        if bot is None:
            raise ValueError("bot is required")
        self.bot = bot
        self.items_per_page = DEFAULT_ITEMS_PER_PAGE
        self.data_handler: DataHandler | None = None
        self.manager: Manager | None = None
        self.filter_keys: list[str] = []
        self.on_error: OnError = default_on_error
        self.on_cancel: Callable[[], None] | None = None

    def with_items_per_page(self, n: int) -> DataTableBuilder:
        if n > 0:
            self.items_per_page = n
        return self

    def with_data_handler(self, handler: DataHandler) -> DataTableBuilder:
        self.data_handler = handler
        return self

    def with_filtering(self, manager: Manager, keys: list[str]) -> DataTableBuilder:
        self.manager = manager
        self.filter_keys = list(keys)
        return self

    def with_on_error_handler(self, handler: OnError | None) -> DataTableBuilder:
        if handler is not None:
            self.on_error = handler
        return self

    def with_on_cancel_handler(self, handler: Callable[[], None] | None) -> DataTableBuilder:
        self.on_cancel = handler
        return self

    def build(self) -> DataTable:
        if self.data_handler is None:
            raise ValueError("DataHandler is required")
        if self.items_per_page <= 0:
            raise ValueError("ItemsPerPage must be positive")
        return DataTable(
            self.bot,
            self.items_per_page,
            self.data_handler,
            manager=self.manager,
            filter_keys=self.filter_keys,
            on_error=self.on_error,
            on_cancel=self.on_cancel,
        )
