"""
CSV dump of the tick log.

Column order and names (Timestamp,Date,Symbol,Price) are a compatibility
contract with spreadsheets built from earlier exports.
"""
import io
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Union

import pandas as pd

from ..shared.errors import InvalidTick
from ..shared.types import Tick, to_epoch_ms


CSV_COLUMNS = ["Timestamp", "Date", "Symbol", "Price"]


def ticks_to_frame(ticks: Iterable[Tick]) -> pd.DataFrame:
    """One row per tick, in the given order, with the export columns."""
    records = [t.to_record() for t in ticks]
    return pd.DataFrame(
        {
            "Timestamp": [r["timestamp"] for r in records],
            "Date": [r["date"] for r in records],
            "Symbol": [r["symbol"] for r in records],
            "Price": [r["price"] for r in records],
        },
        columns=CSV_COLUMNS,
    )


def export_csv(ticks: Iterable[Tick]) -> str:
    """
    Render ticks as CSV text.

    Args:
        ticks: Ticks to export, typically ``store.query(None)``

    Returns:
        CSV with header ``Timestamp,Date,Symbol,Price`` and "\\n" line endings
    """
    return ticks_to_frame(ticks).to_csv(index=False, lineterminator="\n")


def write_csv(ticks: Iterable[Tick], path: Union[str, Path]) -> Path:
    """Write the CSV dump to path (parent directories are created)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_csv(ticks))
    return path


def parse_csv(text: str) -> List[Tick]:
    """
    Parse an export back into ticks.

    Raises:
        InvalidTick: If the header is wrong or a row is malformed
    """
    if not text.strip():
        raise InvalidTick("Empty CSV, expected at least a header row")
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    except (ValueError, pd.errors.ParserError) as e:
        raise InvalidTick(f"Unreadable CSV: {e}") from e

    if list(df.columns) != CSV_COLUMNS:
        raise InvalidTick(f"Unexpected CSV header {list(df.columns)}, expected {CSV_COLUMNS}")

    ticks = []
    for row in df.itertuples(index=False):
        try:
            timestamp = int(row.Timestamp)
        except ValueError as e:
            raise InvalidTick(f"Bad Timestamp '{row.Timestamp}': {e}") from e
        ticks.append(Tick.from_record({
            "symbol": row.Symbol,
            "price": row.Price,
            "timestamp": timestamp,
            "date": row.Date,
        }))
    return ticks


def default_export_filename(now: datetime) -> str:
    return f"metalwatch_history_{to_epoch_ms(now)}.csv"
