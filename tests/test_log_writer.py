"""Unit tests for the occupancy log writer."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import csv
import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import patch
from occupancy_collector.services.log_writer import append_row, build_header, format_timestamp
from occupancy_collector.schemas.occupancy import AFFLUENCE_LEVELS, OccupancyReading
from occupancy_collector.exceptions import LogFileError
from occupancy_collector.utils.rwlock import ReadWriteLock

FIXED_NOW = datetime(2025, 5, 19, 14, 3, 27, tzinfo=timezone(timedelta(hours=1)))


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))


class TestHeader:
    def test_header_layout(self):
        header = build_header()
        assert header[:5] == ["timestamp", "telepen_free", "telepen_total",
                              "telepen_free_pct", "telepen_used_pct"]
        assert header[5:9] == ["Level1_free", "Level1_total", "Level1_free_pct", "Level1_used_pct"]
        assert header[-4:] == ["Level4nsw_free", "Level4nsw_total",
                               "Level4nsw_free_pct", "Level4nsw_used_pct"]
        assert len(header) == 5 + 4 * len(AFFLUENCE_LEVELS)

    def test_header_follows_fixed_order_not_payload_order(self, tmp_path, payload):
        payload["affluence"] = dict(reversed(list(payload["affluence"].items())))
        reading = OccupancyReading.model_validate(payload)
        path = tmp_path / "occupancy.csv"

        append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)

        header = read_rows(path)[0]
        assert header == build_header(AFFLUENCE_LEVELS)


class TestAppendRow:
    def test_fresh_file_gets_header_and_one_row(self, tmp_path, reading):
        path = tmp_path / "occupancy.csv"
        append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)

        rows = read_rows(path)
        assert len(rows) == 2
        assert rows[0][0] == "timestamp"
        assert all(len(r) == 5 + 4 * len(AFFLUENCE_LEVELS) for r in rows)

    def test_row_values(self, tmp_path, reading):
        path = tmp_path / "occupancy.csv"
        timestamp = append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)

        row = read_rows(path)[1]
        assert timestamp == "2025-05-19T14:03:27+01:00"
        assert row[:5] == ["2025-05-19T14:03:27+01:00", "120", "500", "24.0", "76.0"]
        assert row[5:9] == ["10", "50", "20.0", "80.0"]

    def test_header_written_once(self, tmp_path, reading):
        path = tmp_path / "occupancy.csv"
        guard = ReadWriteLock()
        append_row(str(path), reading, guard, now=FIXED_NOW)
        append_row(str(path), reading, guard, now=FIXED_NOW + timedelta(seconds=30))

        rows = read_rows(path)
        assert len(rows) == 3
        assert [r[0] for r in rows].count("timestamp") == 1
        assert rows[2][0] == "2025-05-19T14:03:57+01:00"

    def test_missing_level_written_as_zeros(self, tmp_path, payload):
        del payload["affluence"]["Level3e"]
        payload["affluence"]["Basement"] = payload["affluence"]["Level1"]
        reading = OccupancyReading.model_validate(payload)
        path = tmp_path / "occupancy.csv"

        append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)

        header, row = read_rows(path)
        idx = header.index("Level3e_free")
        assert row[idx:idx + 4] == ["0", "0", "0.0", "0.0"]
        assert "Basement_free" not in header
        assert len(row) == 5 + 4 * len(AFFLUENCE_LEVELS)

    def test_percentages_rounded_to_one_decimal(self, tmp_path, payload):
        payload["telepen"]["freePercentage"] = 24.04
        payload["telepen"]["usedPercentage"] = 75.96
        reading = OccupancyReading.model_validate(payload)
        path = tmp_path / "occupancy.csv"

        append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)

        row = read_rows(path)[1]
        assert row[3:5] == ["24.0", "76.0"]

    def test_custom_levels(self, tmp_path, reading):
        path = tmp_path / "occupancy.csv"
        append_row(str(path), reading, ReadWriteLock(), levels=["Level1"], now=FIXED_NOW)

        header, row = read_rows(path)
        assert len(header) == len(row) == 9

    def test_creates_parent_directory(self, tmp_path, reading):
        path = tmp_path / "logs" / "occupancy.csv"
        append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)
        assert path.exists()

    def test_lines_end_with_newline_only(self, tmp_path, reading):
        path = tmp_path / "occupancy.csv"
        append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)
        assert b"\r\n" not in path.read_bytes()

    def test_open_failure_raises_log_file_error(self, tmp_path, reading):
        path = tmp_path / "occupancy.csv"
        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(LogFileError) as exc_info:
                append_row(str(path), reading, ReadWriteLock(), now=FIXED_NOW)
        assert exc_info.value.path == str(path)

    def test_guard_released_after_failure(self, tmp_path, reading):
        guard = ReadWriteLock()
        with patch("builtins.open", side_effect=OSError("disk full")):
            with pytest.raises(LogFileError):
                append_row(str(tmp_path / "occupancy.csv"), reading, guard, now=FIXED_NOW)
        assert guard.readers == 0
        assert not guard.write_held


class TestFormatTimestamp:
    def test_naive_time_gets_local_offset(self):
        stamp = format_timestamp(datetime(2025, 5, 19, 8, 0, 0))
        parsed = datetime.fromisoformat(stamp)
        assert parsed.tzinfo is not None

    def test_round_trips(self):
        stamp = format_timestamp(FIXED_NOW)
        assert datetime.fromisoformat(stamp) == FIXED_NOW
