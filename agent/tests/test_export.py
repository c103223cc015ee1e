"""Tests for local JSON/CSV export."""

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path

from emogo.export import BOM, CSV_HEADER, to_delimited_text, to_json, write_export
from emogo.sentiment import SENTIMENT_LABELS
from emogo.store.records import Record


def _record(record_id: int, sentiment: int, lat=None, lon=None, ts: int = 1_700_000_000_000) -> Record:
    return Record(
        id=record_id,
        video_path=f"/videos/{record_id}.mp4",
        sentiment=sentiment,
        latitude=lat,
        longitude=lon,
        timestamp=ts,
        created_at="2023-11-14T22:13:20+00:00",
    )


class TestToJson:
    def test_document_shape(self):
        exported_at = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        document = to_json([_record(1, 5, 25.03, 121.56)], exported_at)

        assert document["exportDate"] == "2025-01-02T03:04:05+00:00"
        assert document["recordCount"] == 1
        entry = document["records"][0]
        assert entry["id"] == 1
        assert entry["sentiment"] == "very good"
        assert entry["sentimentValue"] == 5
        assert entry["latitude"] == 25.03
        assert entry["longitude"] == 121.56
        assert entry["timestamp"] == "2023-11-14T22:13:20+00:00"
        assert entry["videoPath"] == "/videos/1.mp4"

    def test_empty(self):
        document = to_json([])

        assert document["recordCount"] == 0
        assert document["records"] == []


class TestToDelimitedText:
    def test_header_and_numbered_rows(self):
        text = to_delimited_text([_record(7, 2, 25.03, 121.56), _record(3, 4)])

        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == CSV_HEADER
        assert rows[1][:5] == ["1", "bad", "2", "121.56", "25.03"]
        assert rows[2][:5] == ["2", "good", "4", "", ""]
        assert len(rows) == 3

    def test_time_column_format(self):
        text = to_delimited_text([_record(1, 3)])

        time_value = list(csv.reader(io.StringIO(text)))[1][5]
        assert datetime.strptime(time_value, "%Y/%m/%d %H:%M:%S")

    def test_delimiter_in_field_is_quoted(self, monkeypatch):
        monkeypatch.setitem(SENTIMENT_LABELS, 3, "so, so")

        text = to_delimited_text([_record(1, 3)])

        assert "1,\"so, so\",3," in text
        assert list(csv.reader(io.StringIO(text)))[1][1] == "so, so"

    def test_bom_prefix(self):
        assert to_delimited_text([], bom=True).startswith(BOM)
        assert not to_delimited_text([]).startswith(BOM)

    def test_empty_is_header_only(self):
        assert to_delimited_text([]) == ",".join(CSV_HEADER) + "\n"


class TestWriteExport:
    def test_writes_both_files(self, tmp_path: Path):
        exported_at = datetime(2025, 1, 1, tzinfo=timezone.utc)

        files = write_export([_record(1, 3), _record(2, 1)], tmp_path / "out", exported_at)

        stamp = int(exported_at.timestamp() * 1000)
        assert files.json_path == tmp_path / "out" / f"emogo_export_{stamp}.json"
        assert files.csv_path == tmp_path / "out" / f"emogo_export_{stamp}.csv"
        assert files.record_count == 2
        assert json.loads(files.json_path.read_text(encoding="utf-8"))["recordCount"] == 2
        assert files.csv_path.read_text(encoding="utf-8").startswith(BOM + "No.,")

    def test_nothing_to_export(self, tmp_path: Path):
        assert write_export([], tmp_path / "out") is None
        assert not (tmp_path / "out").exists()
