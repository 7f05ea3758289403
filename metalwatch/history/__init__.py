"""
Price history module.

Provides:
- HistoryStore: bounded, persisted tick log with windowed reads
- Key-value persistence backends (memory, JSON file)
- CSV export/import of the tick log
"""
from .store import HistoryStore, TimeWindow, resolve_window
from .persistence import KeyValueStore, MemoryStore, JsonFileStore
from .export import export_csv, parse_csv, write_csv, default_export_filename, CSV_COLUMNS

__all__ = [
    'HistoryStore',
    'TimeWindow',
    'resolve_window',
    'KeyValueStore',
    'MemoryStore',
    'JsonFileStore',
    'export_csv',
    'parse_csv',
    'write_csv',
    'default_export_filename',
    'CSV_COLUMNS',
]
