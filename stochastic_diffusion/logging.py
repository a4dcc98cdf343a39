"""
Run bookkeeping for Monte Carlo evaluations.

- `runs/experiments.csv`: one row per run_id, STARTED -> COMPLETED | FAILED,
  with the grid levels, the sample count and the primary estimate
- `runs/<run_id>/events.jsonl`: level statistics, numerical warnings, errors
- `runs/<run_id>/config.yaml`, `summary.json`, `artifacts/samples.npz`
"""

from __future__ import annotations

import csv
import json
import time
import traceback
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from .hashing import to_jsonable
from .paths import RunPaths


def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class ExperimentRow:
    run_id: str
    status: str
    started_at: str
    completed_at: str = ""
    failed_at: str = ""
    experiment_name: str = ""
    levels: str = ""  # e.g. "hf:100;lf:10"
    num_samples: str = ""
    primary_metric_name: str = ""
    primary_metric_value: str = ""
    notes: str = ""


_FIELDNAMES = list(asdict(ExperimentRow("", "", "")).keys())


class CSVExperimentTracker:
    """Index of all runs under one root directory."""

    def __init__(self, root_dir: Path):
        self.csv_path = Path(root_dir) / "experiments.csv"
        self.csv_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.csv_path.exists():
            self._save({})

    def _load(self) -> Dict[str, ExperimentRow]:
        with open(self.csv_path, "r", newline="", encoding="utf-8") as f:
            return {
                r["run_id"]: ExperimentRow(**{k: r.get(k) or "" for k in _FIELDNAMES})
                for r in csv.DictReader(f)
                if r.get("run_id")
            }

    def _save(self, rows: Dict[str, ExperimentRow]) -> None:
        with open(self.csv_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=_FIELDNAMES)
            writer.writeheader()
            for run_id in sorted(rows):
                writer.writerow(asdict(rows[run_id]))

    def _set(self, run_id: str, status: str, **fields: str) -> None:
        # started_at is written once, when the row is created
        rows = self._load()
        row = rows.get(run_id) or ExperimentRow(run_id=run_id, status=status, started_at=_now())
        row.status = status
        for name, value in fields.items():
            setattr(row, name, value)
        rows[run_id] = row
        self._save(rows)

    def get_status(self, run_id: str) -> Optional[str]:
        row = self._load().get(run_id)
        return row.status if row is not None else None

    def start_run(self, run_id: str, experiment_name: str, levels: str, num_samples: int, notes: str = "") -> None:
        self._set(
            run_id,
            "STARTED",
            experiment_name=experiment_name,
            levels=levels,
            num_samples=str(num_samples),
            notes=notes,
        )

    def complete_run(self, run_id: str, primary_metric_name: str, primary_metric_value: float) -> None:
        self._set(
            run_id,
            "COMPLETED",
            completed_at=_now(),
            primary_metric_name=primary_metric_name,
            primary_metric_value=f"{primary_metric_value:.9g}",
        )

    def fail_run(self, run_id: str, error: BaseException) -> None:
        self._set(run_id, "FAILED", failed_at=_now(), notes=f"{type(error).__name__}: {error}")


class JSONLRunLogger:
    """Appends one JSON object per event to the run's events.jsonl."""

    def __init__(self, paths: RunPaths):
        self.path = paths.logs_path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        record = {"ts": _now(), "event": event_type, **to_jsonable(payload)}
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")

    def log_level_result(self, level: str, num_grid_points: int, stats: Dict[str, Any]) -> None:
        self.log_event("level_result", {"level": level, "num_grid_points": num_grid_points, "stats": stats})

    def log_warning(self, level: str, category: str, message: str) -> None:
        self.log_event("numerical_warning", {"level": level, "category": category, "message": message})

    def log_message(self, message: str, **extra: Any) -> None:
        self.log_event("message", {"message": message, **extra})

    def log_exception(self, error: BaseException) -> None:
        self.log_event(
            "exception",
            {"error_type": type(error).__name__, "error": str(error), "traceback": traceback.format_exc()},
        )


def read_events(paths: RunPaths) -> List[Dict[str, Any]]:
    """All events of a run, oldest first."""
    if not paths.logs_path.exists():
        return []
    with open(paths.logs_path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def save_config_copy(paths: RunPaths, config_dict: Dict[str, Any]) -> None:
    with open(paths.config_copy_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_dict, f, sort_keys=False)


def save_summary(paths: RunPaths, summary: Dict[str, Any]) -> None:
    with open(paths.summary_path, "w", encoding="utf-8") as f:
        json.dump(to_jsonable(summary), f, indent=2, ensure_ascii=False)


def save_samples(paths: RunPaths, xi: np.ndarray, values: Dict[str, np.ndarray]) -> None:
    """Store xi as `xi` and each level's midpoint values as `values_<level>`."""
    arrays = {"xi": np.asarray(xi)}
    for name, v in values.items():
        arrays[f"values_{name}"] = np.asarray(v)
    np.savez(paths.samples_path, **arrays)
