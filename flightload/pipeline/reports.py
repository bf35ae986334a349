"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from flightload.common.fs import write_json
from flightload.common.time_utils import utc_timestamp_iso

TOTAL_KEYS = (
    "rows_read",
    "rows_dropped",
    "units_submitted",
    "units_failed",
    "documents_written",
    "documents_failed",
)


def summarise_results(run_id: str, results: dict[str, dict], error_count: int = 0) -> dict:
    totals = {key: 0 for key in TOTAL_KEYS}
    failed_entities: list[str] = []

    for entity, result in results.items():
        if result.get("status") == "failed" or result.get("source_failed"):
            failed_entities.append(entity)
        for key in TOTAL_KEYS:
            totals[key] += int(result.get(key, 0))

    # Diagnostics only; the process exit code never depends on this.
    status = "success"
    if failed_entities or totals["rows_dropped"] or totals["units_failed"] or error_count:
        status = "partial"

    return {
        "run_id": run_id,
        "finished_at": utc_timestamp_iso(),
        "status": status,
        "entities": list(results),
        "failed_entities": failed_entities,
        "totals": totals,
        "error_count": error_count,
        "entity_reports": results,
    }


def write_run_summary(data_dir: Path, run_id: str, results: dict[str, dict], error_count: int = 0) -> Path:
    summary_path = data_dir / "out" / "reports" / "run_summary.json"
    write_json(summary_path, summarise_results(run_id, results, error_count=error_count))
    return summary_path
