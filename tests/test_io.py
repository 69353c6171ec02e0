"""Tests for codeclab.io."""

import json

import pytest

from codeclab.io import append_csv_row, atomic_write, load_json, read_csv_as_dicts, save_json


@pytest.mark.fast
class TestAtomicWrite:
    """Temporary-file writes."""

    def test_writes_target(self, tmp_path):
        target = tmp_path / "sub" / "data.txt"
        with atomic_write(target) as f:
            f.write("hello")
        assert target.read_text() == "hello"
        assert list(target.parent.iterdir()) == [target]

    def test_failure_leaves_no_file(self, tmp_path):
        target = tmp_path / "data.txt"
        with pytest.raises(RuntimeError):
            with atomic_write(target) as f:
                f.write("partial")
                raise RuntimeError("boom")
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []


@pytest.mark.fast
class TestCsvAndJson:
    """Record helpers."""

    def test_append_writes_header_once(self, tmp_path):
        path = tmp_path / "index.csv"
        append_csv_row(path, {"a": 1, "b": 2}, ["a", "b"])
        append_csv_row(path, {"a": 3, "b": 4}, ["a", "b"])

        assert path.read_text().splitlines() == ["a,b", "1,2", "3,4"]
        assert read_csv_as_dicts(path) == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]

    def test_json_round_trip(self, tmp_path):
        path = tmp_path / "record.json"
        save_json({"name": "test", "path": tmp_path}, path)

        data = load_json(path)
        assert data["name"] == "test"
        assert data["path"] == str(tmp_path)

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{")
        with pytest.raises(json.JSONDecodeError):
            load_json(path)
