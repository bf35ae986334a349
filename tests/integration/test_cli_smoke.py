from __future__ import annotations

import json
from pathlib import Path

import pytest

from flightload import cli


def _config(tmp_path: Path, data_dir: Path, error_log: Path) -> Path:
    path = tmp_path / "pipeline.yml"
    path.write_text(
        f"""store:
  endpoint: https://db.example.test
  secret_env: SMOKE_FAUNA_SECRET
writer:
  mode: batched
  batch_size: 2
  batch_pause_seconds: 0
paths:
  data_dir: {data_dir}
  error_log: {error_log}
entities:
  country:
    file: countries.dat
  airline:
    file: airlines.dat
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def patched_store(monkeypatch, fake_store_cls):
    stores = []

    class ContextStore(fake_store_cls):
        def __init__(self, secret, *, endpoint, timeout):
            super().__init__()
            self.secret = secret
            stores.append(self)

        def __enter__(self):
            return self

        def __exit__(self, *_exc):
            return None

    monkeypatch.setattr(cli, "FaunaStore", ContextStore)
    monkeypatch.setenv("SMOKE_FAUNA_SECRET", "smoke")
    return stores


@pytest.mark.integration
def test_cli_all_loads_entities_in_dependency_order(tmp_path: Path, patched_store):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "countries.dat").write_text('"Aruba","AW","AA"\n"Canada","CA","CA"\n"Chad","TD",\\N\n', encoding="utf-8")
    (data_dir / "airlines.dat").write_text('5,"213 Flight Unit",\\N,"","TFU","","Russia","N"\n', encoding="utf-8")
    error_log = tmp_path / "errors.log"

    exit_code = cli.main(["all", "--config", str(_config(tmp_path, data_dir, error_log)), "--run-id", "load-test"])

    assert exit_code == 0
    store, = patched_store
    assert store.secret == "smoke"
    assert [(coll, len(docs)) for _method, coll, docs in store.calls] == [("Country", 2), ("Country", 1), ("Airline", 1)]
    summary = json.loads((data_dir / "out" / "reports" / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "success"
    assert summary["totals"]["documents_written"] == 4
    assert (data_dir / "run_meta" / "load-test.log.jsonl").exists()
    assert not error_log.exists()


@pytest.mark.integration
def test_cli_exits_cleanly_and_logs_when_secret_missing(tmp_path: Path, monkeypatch, patched_store):
    monkeypatch.delenv("SMOKE_FAUNA_SECRET")
    data_dir = tmp_path / "data"
    error_log = tmp_path / "errors.log"

    exit_code = cli.main(["country", "--config", str(_config(tmp_path, data_dir, error_log)), "--error-log", str(error_log)])

    assert exit_code == 0
    assert patched_store == []
    assert "General error: Store secret not set" in error_log.read_text(encoding="utf-8")


@pytest.mark.integration
def test_cli_degraded_run_still_exits_zero(tmp_path: Path, patched_store):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    error_log = tmp_path / "errors.log"

    exit_code = cli.main(["airline", "--config", str(_config(tmp_path, data_dir, error_log))])

    assert exit_code == 0
    assert "Error reading the airline file" in error_log.read_text(encoding="utf-8")
    summary = json.loads((data_dir / "out" / "reports" / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "partial"
