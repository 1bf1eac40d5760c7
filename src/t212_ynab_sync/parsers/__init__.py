"""Parsers for Trading212 history exports."""

from t212_ynab_sync.parsers.export_parser import (
    COLUMN_MAP,
    ParseResult,
    Trading212ExportParser,
)

__all__ = ["COLUMN_MAP", "ParseResult", "Trading212ExportParser"]
