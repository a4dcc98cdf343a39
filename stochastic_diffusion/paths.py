"""
Filesystem layout for runs and artifacts.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RunPaths:
    """Resolved paths for a run.

    Attributes:
        root_dir: Root directory containing all runs (e.g. ./runs).
        run_id: Stable run identifier (hash).
        run_dir: Directory for this run (root_dir/run_id).
        artifacts_dir: Directory for sample matrices and per-level values.
        logs_path: JSONL log file.
        summary_path: Summary JSON file.
        config_copy_path: Stored config YAML.
        samples_path: NPZ file holding xi and the values of every level.
    """
    root_dir: Path
    run_id: str

    @property
    def run_dir(self) -> Path:
        return self.root_dir / self.run_id

    @property
    def artifacts_dir(self) -> Path:
        return self.run_dir / "artifacts"

    @property
    def logs_path(self) -> Path:
        return self.run_dir / "events.jsonl"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.json"

    @property
    def config_copy_path(self) -> Path:
        return self.run_dir / "config.yaml"

    @property
    def samples_path(self) -> Path:
        return self.artifacts_dir / "samples.npz"


def ensure_run_dirs(paths: RunPaths) -> None:
    """Create the directory structure for a run."""
    paths.run_dir.mkdir(parents=True, exist_ok=True)
    paths.artifacts_dir.mkdir(parents=True, exist_ok=True)
