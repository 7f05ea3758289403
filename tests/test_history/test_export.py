"""
Tests for CSV export of the tick log.
"""
from datetime import datetime, timezone

import pytest

from metalwatch.history.export import (
    CSV_COLUMNS,
    default_export_filename,
    export_csv,
    parse_csv,
    write_csv,
)
from metalwatch.history.store import HistoryStore
from metalwatch.shared.errors import InvalidTick
from metalwatch.shared.types import Instrument, Tick


@pytest.fixture
def ticks():
    return [
        Tick(Instrument.GOLD, 85.25, datetime(2024, 1, 31, 9, 30, tzinfo=timezone.utc)),
        Tick(Instrument.SILVER, 0.95, datetime(2024, 1, 31, 9, 31, tzinfo=timezone.utc)),
    ]


class TestExportCsv:

    def test_header_and_rows(self, ticks):
        text = export_csv(ticks)
        lines = text.strip().split("\n")

        assert lines[0] == "Timestamp,Date,Symbol,Price"
        assert lines[1] == "1706693400000,2024-01-31T09:30:00.000Z,XAU,85.25"
        assert lines[2] == "1706693460000,2024-01-31T09:31:00.000Z,XAG,0.95"

    def test_empty_log_is_header_only(self):
        assert export_csv([]).strip() == ",".join(CSV_COLUMNS)

    def test_round_trip(self, ticks):
        parsed = parse_csv(export_csv(ticks))

        assert [(t.instrument, t.price, t.timestamp) for t in parsed] == [
            (t.instrument, t.price, t.timestamp) for t in ticks
        ]

    def test_store_export_is_chronological(self, ticks):
        store = HistoryStore()
        for tick in reversed(ticks):
            store.append(tick)

        rows = export_csv(store.query()).strip().split("\n")[1:]
        assert [row.split(",")[2] for row in rows] == ["XAU", "XAG"]

    def test_write_csv(self, ticks, tmp_path):
        path = write_csv(ticks, tmp_path / "out" / "history.csv")
        assert path.read_text().startswith("Timestamp,Date,Symbol,Price\n")

    def test_default_filename(self):
        now = datetime(2024, 1, 31, 9, 30, tzinfo=timezone.utc)
        assert default_export_filename(now) == "metalwatch_history_1706693400000.csv"


class TestParseCsv:

    def test_wrong_header_rejected(self):
        with pytest.raises(InvalidTick):
            parse_csv("time,symbol,price\n1,XAU,2\n")

    def test_empty_text_rejected(self):
        with pytest.raises(InvalidTick):
            parse_csv("")

    def test_bad_row_rejected(self):
        with pytest.raises(InvalidTick):
            parse_csv("Timestamp,Date,Symbol,Price\nabc,2024-01-31T09:30:00.000Z,XAU,85\n")
