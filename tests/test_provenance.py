"""
Tests for atomic I/O, the JSONL run logger and metadata sidecars.
"""

import json
import os
import time

import pandas as pd
import pytest

from precinct_typology.io_utils import (
    atomic_write,
    atomic_write_df,
    atomic_write_json,
    atomic_write_yaml,
    latest_file,
    read_df,
    read_json,
    read_yaml,
)
from precinct_typology.logging_utils import JSONLLogger
from precinct_typology.provenance import (
    hash_dict,
    hash_file,
    read_metadata_sidecar,
    sidecar_path_for,
    write_metadata_sidecar,
)


class TestAtomicWrites:

    def test_csv_round_trip_without_index(self, tmp_path):
        df = pd.DataFrame({"precinct": [1, 2], "volume_share": [0.25, 0.75]})
        path = tmp_path / "out" / "features.csv"
        atomic_write_df(df, path)
        assert path.read_text(encoding="utf-8").splitlines()[0] == "precinct,volume_share"
        pd.testing.assert_frame_equal(read_df(path), df)

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported format"):
            atomic_write_df(pd.DataFrame(), tmp_path / "out.xlsx")

    def test_failed_write_leaves_no_files(self, tmp_path):
        target = tmp_path / "summary.txt"
        with pytest.raises(RuntimeError):
            with atomic_write(target) as f:
                f.write("partial")
                raise RuntimeError("boom")
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    def test_json_and_yaml(self, tmp_path):
        data = {"b": 1, "a": [1, 2]}
        atomic_write_json(data, tmp_path / "d.json")
        atomic_write_yaml(data, tmp_path / "d.yml")
        assert read_json(tmp_path / "d.json") == data
        assert read_yaml(tmp_path / "d.yml") == data
        assert list(read_yaml(tmp_path / "d.yml")) == ["b", "a"]

    def test_latest_file(self, tmp_path):
        assert latest_file(tmp_path, "raw_*.csv") is None
        old = tmp_path / "raw_20240101.csv"
        new = tmp_path / "raw_20240201.csv"
        old.write_text("x\n", encoding="utf-8")
        new.write_text("x\n", encoding="utf-8")
        stamp = time.time()
        os.utime(old, (stamp - 100, stamp - 100))
        os.utime(new, (stamp, stamp))
        assert latest_file(tmp_path, "raw_*.csv") == new


class TestJSONLLogger:

    def test_records_have_standard_keys(self, tmp_path):
        with JSONLLogger("unit", run_id="run1", log_dir=tmp_path, console=False) as logger:
            logger.info("hello")
            logger.log_metrics({"rows": 3})
            log_file = logger.log_file

        records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert log_file.name == "unit_run1.jsonl"
        assert all({"timestamp", "script_name", "run_id", "level", "message"} <= set(r) for r in records)
        assert any(r["message"] == "hello" for r in records)
        metrics = [r for r in records if r["message"] == "Metrics recorded"]
        assert metrics[0]["extra"]["metrics"] == {"rows": 3}
        assert "sklearn" in records[0]["extra"]["versions"]

    def test_exception_logged_on_exit(self, tmp_path):
        with pytest.raises(KeyError):
            with JSONLLogger("unit", run_id="run2", log_dir=tmp_path, console=False):
                raise KeyError("precinct")
        text = (tmp_path / "unit_run2.jsonl").read_text(encoding="utf-8")
        assert "Exception occurred: KeyError" in text


class TestProvenance:

    def test_hash_dict_ignores_key_order(self):
        assert hash_dict({"a": 1, "b": {"c": 2}}) == hash_dict({"b": {"c": 2}, "a": 1})
        assert hash_dict({"a": 1}) != hash_dict({"a": 2})

    def test_hash_file(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_bytes(b"abc")
        assert hash_file(path) == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        with pytest.raises(FileNotFoundError):
            hash_file(tmp_path / "missing.txt")

    def test_sidecar_round_trip(self, tmp_path):
        output = tmp_path / "precinct_clusters.csv"
        output.write_text("precinct,cluster_id\n1,0\n", encoding="utf-8")
        source = tmp_path / "features.csv"
        source.write_text("precinct\n1\n", encoding="utf-8")
        config = {"clustering": {"k": 2}}

        sidecar = write_metadata_sidecar(
            output_path=output,
            inputs={"features": str(source), "gone": str(tmp_path / "gone.csv")},
            config=config,
            run_id="run3",
            extra={"k": 2},
            metadata_dir=tmp_path / "metadata",
        )

        assert sidecar == sidecar_path_for(output, tmp_path / "metadata")
        assert sidecar.name == "precinct_clusters_metadata.json"

        metadata = read_metadata_sidecar(output, tmp_path / "metadata")
        assert metadata["run_id"] == "run3"
        assert metadata["config_digest"] == hash_dict(config)
        assert metadata["inputs"]["features"]["hash"] == hash_file(source)
        assert metadata["inputs"]["gone"] == {"path": str(tmp_path / "gone.csv"), "hash": None, "missing": True}
        assert metadata["extra"] == {"k": 2}

    def test_missing_sidecar(self, tmp_path):
        assert read_metadata_sidecar(tmp_path / "nothing.csv", tmp_path) is None
