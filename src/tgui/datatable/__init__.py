"""Paginated, filterable data tables."""

from .builder import DataTableBuilder
from .datatable import DataHandler, DataResult, DataTable

__all__ = ["DataHandler", "DataResult", "DataTable", "DataTableBuilder"]
