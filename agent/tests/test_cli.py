"""Tests for the EmoGo CLI.

Each test points the client at a temporary data directory through
EMOGO_ environment variables.
"""

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from emogo import __version__
from emogo.cli import app
from emogo.config import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("EMOGO_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("EMOGO_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("EMOGO_SERVER_URL", "http://127.0.0.1:9")
    monkeypatch.setenv("EMOGO_UPLOAD_TIMEOUT", "2")
    get_settings.cache_clear()
    yield tmp_path / "data"
    get_settings.cache_clear()
    logging.getLogger().handlers.clear()


@pytest.fixture
def clip(tmp_path: Path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"video")
    return path


def _last_json(output: str) -> dict:
    lines = [line for line in output.splitlines() if line.startswith("{")]
    return json.loads(lines[-1])


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestRecordCommands:
    def test_add_and_list(self, clip: Path):
        result = runner.invoke(app, ["record", "add", str(clip), "-s", "4", "--lat", "25.03", "--lon", "121.56"])

        assert result.exit_code == 0
        assert "Record 1 saved" in result.output

        result = runner.invoke(app, ["record", "list"])
        assert result.exit_code == 0
        assert "#1" in result.output
        assert "good" in result.output
        assert "1 record" in result.output

    def test_add_copies_video_into_library(self, clip: Path, data_dir: Path):
        runner.invoke(app, ["record", "add", str(clip), "-s", "3"])

        stored = list((data_dir / "videos").rglob("*.mp4"))
        assert len(stored) == 1
        assert stored[0].read_bytes() == b"video"

    def test_add_rejects_out_of_range_sentiment(self, clip: Path):
        result = runner.invoke(app, ["record", "add", str(clip), "-s", "6"])

        assert result.exit_code != 0
        result = runner.invoke(app, ["record", "list"])
        assert "No records yet" in result.output

    def test_add_missing_video(self, tmp_path: Path):
        result = runner.invoke(app, ["record", "add", str(tmp_path / "nope.mp4"), "-s", "3"])

        assert result.exit_code == 1
        assert "Video not found" in result.output

    def test_list_empty(self):
        result = runner.invoke(app, ["record", "list"])

        assert result.exit_code == 0
        assert "No records yet" in result.output

    def test_show_json(self, clip: Path):
        runner.invoke(app, ["record", "add", str(clip), "-s", "2"])

        result = runner.invoke(app, ["record", "show", "1", "--json"])

        assert result.exit_code == 0
        data = _last_json(result.output)
        assert data["id"] == 1
        assert data["sentiment"] == "bad"
        assert data["videoPresent"] is True

    def test_show_unknown(self):
        result = runner.invoke(app, ["record", "show", "42"])

        assert result.exit_code == 1
        assert "Record 42 not found" in result.output

    def test_delete(self, clip: Path, data_dir: Path):
        runner.invoke(app, ["record", "add", str(clip), "-s", "5"])

        result = runner.invoke(app, ["record", "delete", "1"])

        assert result.exit_code == 0
        assert "Record 1 deleted" in result.output
        assert list((data_dir / "videos").rglob("*.mp4")) == []

    def test_delete_unknown_is_noop(self):
        result = runner.invoke(app, ["record", "delete", "7"])

        assert result.exit_code == 0
        assert "nothing deleted" in result.output


class TestExportCommand:
    def test_export_empty(self):
        result = runner.invoke(app, ["export"])

        assert result.exit_code == 0
        assert "No records to export" in result.output

    def test_export_writes_files(self, clip: Path, tmp_path: Path):
        runner.invoke(app, ["record", "add", str(clip), "-s", "3"])

        result = runner.invoke(app, ["export", "--dir", str(tmp_path / "out"), "--json"])

        assert result.exit_code == 0
        data = _last_json(result.output)
        assert data["recordCount"] == 1
        assert Path(data["json"]).exists()
        assert Path(data["csv"]).exists()

    def test_cloud_export_rejects_unknown_format(self):
        result = runner.invoke(app, ["export", "--cloud", "xml"])

        assert result.exit_code == 1
        assert "Unknown format" in result.output


class TestSyncCommands:
    def test_sync_with_no_records(self):
        result = runner.invoke(app, ["sync"])

        assert result.exit_code == 0
        assert "No records to sync" in result.output

    def test_sync_unreachable_server(self, clip: Path):
        runner.invoke(app, ["record", "add", str(clip), "-s", "3"])

        result = runner.invoke(app, ["sync"])

        assert result.exit_code == 1
        assert "Sync failed" in result.output
        list_result = runner.invoke(app, ["record", "list"])
        assert "1 record" in list_result.output

    def test_upload_unknown_record(self):
        result = runner.invoke(app, ["upload", "99"])

        assert result.exit_code == 1
        assert "Record 99 not found" in result.output


def test_status_offline(clip: Path):
    runner.invoke(app, ["record", "add", str(clip), "-s", "3"])

    result = runner.invoke(app, ["status", "--offline", "--json"])

    assert result.exit_code == 0
    data = _last_json(result.output)
    assert data["records"] == 1
    assert data["videos"] == 1
    assert data["storage_available"] is True
    assert data["server_reachable"] is None


class TestStorageProblems:
    def test_unopenable_database_is_reported(self, data_dir: Path, monkeypatch):
        data_dir.mkdir(parents=True)
        (data_dir / "blocker").write_text("not a directory")
        monkeypatch.setenv("EMOGO_DATABASE_NAME", "blocker/emogo.db")
        get_settings.cache_clear()

        result = runner.invoke(app, ["record", "list"])

        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "Storage not available" in result.output

    def test_unopenable_database_json(self, data_dir: Path, monkeypatch):
        data_dir.mkdir(parents=True)
        (data_dir / "blocker").write_text("not a directory")
        monkeypatch.setenv("EMOGO_DATABASE_NAME", "blocker/emogo.db")
        get_settings.cache_clear()

        result = runner.invoke(app, ["status", "--offline", "--json"])

        assert result.exit_code == 1
        assert _last_json(result.output)["status"] == "error"

    def test_add_without_persistent_storage_keeps_no_clip(
        self, clip: Path, data_dir: Path, monkeypatch
    ):
        monkeypatch.setenv("EMOGO_PERSISTENT_STORAGE", "false")
        get_settings.cache_clear()

        result = runner.invoke(app, ["record", "add", str(clip), "-s", "3"])

        assert result.exit_code == 0
        assert "was not saved" in result.output
        assert list((data_dir / "videos").rglob("*.mp4")) == []
        assert clip.exists()
