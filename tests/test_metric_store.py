"""Tests for codeclab.metric_store."""

import pandas as pd
import pytest

from codeclab.error_handling import ClassificationError, MetricsError
from codeclab.metric_store import (
    RESULT_COLUMNS,
    MetricStore,
    read_artifact_file,
    read_metric_file,
    write_artifact_file,
    write_metric_file,
)
from codeclab.metrics import ArtifactFlag
from codeclab.sweep import generate_sweep


@pytest.fixture
def variants():
    return generate_sweep(32, 32, depth=3)


@pytest.mark.fast
class TestMetricStore:
    """Append-only ordered storage."""

    def test_append_in_order(self, variants):
        store = MetricStore()
        for i, v in enumerate(variants):
            store.append(v, 40.0 + i)

        assert len(store) == len(variants)
        assert store.baseline.variant == variants[0]
        assert store.baseline.value == 40.0
        assert store.is_complete(variants)

    def test_first_entry_must_be_baseline(self, variants):
        with pytest.raises(MetricsError, match="baseline"):
            MetricStore().append(variants[1], 40.0)

    def test_duplicate_variant_rejected(self, variants):
        store = MetricStore()
        store.append(variants[0], 40.0)
        with pytest.raises(MetricsError, match="already recorded"):
            store.append(variants[0], 41.0)

    def test_empty_store_has_no_baseline(self):
        with pytest.raises(ClassificationError, match="empty"):
            MetricStore().baseline

    def test_incomplete_store(self, variants):
        store = MetricStore()
        store.append(variants[0], 40.0)
        assert not store.is_complete(variants)
        with pytest.raises(ClassificationError, match="1 of 7"):
            store.require_complete(variants)

    def test_flagged_entries(self, variants):
        store = MetricStore()
        store.append(variants[0], 40.0)
        store.append(variants[1], 39.0, ArtifactFlag.POSSIBLE_ARTIFACT)
        store.append(variants[2], 39.5)
        assert [e.variant for e in store.flagged()] == [variants[1]]


@pytest.mark.fast
class TestMetricFiles:
    """Side-file persistence and recovery."""

    def test_value_round_trips_exactly(self, tmp_path):
        path = tmp_path / "clip_32x32_encpsnr.txt"
        value = 38.123456789012345
        write_metric_file(path, value)
        assert read_metric_file(path) == value

    def test_missing_file(self, tmp_path):
        with pytest.raises(MetricsError, match="Cannot read"):
            read_metric_file(tmp_path / "nope.txt")

    def test_garbage_file(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("not a number")
        with pytest.raises(MetricsError, match="does not contain a number"):
            read_metric_file(path)

    def test_from_metric_files(self, tmp_path, variants):
        paths = []
        for i, v in enumerate(variants):
            path = tmp_path / f"{v.geometry}.txt"
            write_metric_file(path, 30.0 + i / 3)
            paths.append(path)

        store = MetricStore.from_metric_files(variants, paths)

        assert store.is_complete(variants)
        assert [e.value for e in store] == [30.0 + i / 3 for i in range(len(variants))]
        assert all(e.artifact_flag is ArtifactFlag.NONE for e in store)

    def test_artifact_file_round_trip(self, tmp_path):
        path = tmp_path / "clip_30x30_encartifact.txt"
        assert read_artifact_file(path) is ArtifactFlag.NONE

        write_artifact_file(path, ArtifactFlag.POSSIBLE_ARTIFACT)
        assert read_artifact_file(path) is ArtifactFlag.POSSIBLE_ARTIFACT

        write_artifact_file(path, ArtifactFlag.NONE)
        assert not path.exists()

    def test_unknown_artifact_flag(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("blocky")
        with pytest.raises(MetricsError, match="unknown flag"):
            read_artifact_file(path)

    def test_from_metric_files_with_flags(self, tmp_path, variants):
        metric_paths = [tmp_path / f"{v.geometry}psnr.txt" for v in variants]
        flag_paths = [tmp_path / f"{v.geometry}artifact.txt" for v in variants]
        for path in metric_paths:
            write_metric_file(path, 40.0)
        write_artifact_file(flag_paths[1], ArtifactFlag.POSSIBLE_ARTIFACT)

        store = MetricStore.from_metric_files(variants, metric_paths, flag_paths)

        assert [e.variant for e in store.flagged()] == [variants[1]]

    def test_from_metric_files_missing_one(self, tmp_path, variants):
        paths = [tmp_path / f"{v.geometry}.txt" for v in variants]
        for path in paths[:-1]:
            write_metric_file(path, 40.0)
        with pytest.raises(MetricsError):
            MetricStore.from_metric_files(variants, paths)


@pytest.mark.fast
class TestExport:
    """Results table export."""

    def test_dataframe_and_csv(self, tmp_path, variants):
        store = MetricStore()
        for v in variants:
            store.append(v, 40.0)

        df = store.to_dataframe()
        assert list(df.columns) == RESULT_COLUMNS
        assert df.iloc[0]["variant"] == "32x32"
        assert df.iloc[0]["axis"] == "height"

        csv_path = store.export_csv(tmp_path / "sweep_results.csv")
        loaded = pd.read_csv(csv_path)
        assert len(loaded) == len(variants)
        assert set(loaded["artifact_flag"]) == {"none"}
