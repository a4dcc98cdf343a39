"""
CLI runner: `python -m stochastic_diffusion.run [--config path/to/config.yaml]`

This is the orchestrator: it composes
- config -> run_id + filesystem layout
- seeded sampling of the uncertain coefficients xi
- evaluation of every sample at every grid level
- experiment logging

Without --config it reproduces the example driver: 10 uniform uncertainties in
[-1, 1], one sample, evaluated at 100 ("hf") and 10 ("lf") grid points.
"""

from __future__ import annotations

import argparse
import platform
import shutil
import sys
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import torch

from .config import build_experiment_config, load_yaml_config
from .hashing import config_hash
from .logging import CSVExperimentTracker, JSONLRunLogger, save_config_copy, save_samples, save_summary
from .metrics import sample_statistics
from .paths import RunPaths, ensure_run_dirs
from .sampling import draw_uncertainties
from .seed import set_global_seed
from .solvers import evaluate_batch


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="stochastic_diffusion runner")
    p.add_argument("--config", type=str, default=None, help="Path to YAML config (default: built-in driver settings)")
    return p.parse_args(argv)


def _levels_label(levels) -> str:
    return ";".join(f"{lv.name}:{lv.num_grid_points}" for lv in levels)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)

    raw = load_yaml_config(args.config) if args.config is not None else {}
    cfg = build_experiment_config(raw)

    cfg_dict = cfg.to_dict()
    run_id = config_hash(cfg_dict, n_chars=12)

    root_dir = Path(cfg.run.root_dir)
    paths = RunPaths(root_dir=root_dir, run_id=run_id)

    tracker = CSVExperimentTracker(root_dir=root_dir)

    # Resume semantics
    status = tracker.get_status(run_id)
    if status == "COMPLETED" and cfg.run.resume_if_completed:
        print(f"[SKIP] run_id={run_id} already COMPLETED (resume_if_completed=True).")
        return 0

    if cfg.run.overwrite_run_dir and paths.run_dir.exists():
        shutil.rmtree(paths.run_dir)

    ensure_run_dirs(paths)
    save_config_copy(paths, cfg_dict)
    logger = JSONLRunLogger(paths)

    set_global_seed(cfg.seed)

    tracker.start_run(
        run_id=run_id,
        experiment_name=cfg.run.experiment_name,
        levels=_levels_label(cfg.levels),
        num_samples=cfg.sampling.num_samples,
        notes=str(cfg.run.notes),
    )
    logger.log_event(
        "run_start",
        {
            "run_id": run_id,
            "experiment_name": cfg.run.experiment_name,
            "python": sys.version,
            "platform": platform.platform(),
            "numpy_version": np.__version__,
            "torch_version": torch.__version__,
        },
    )

    try:
        xi = draw_uncertainties(cfg.sampling, seed=cfg.seed.seed)
        logger.log_message("drew uncertainties", shape=list(xi.shape), method=cfg.sampling.method)

        values: Dict[str, np.ndarray] = {}
        level_stats: Dict[str, Dict[str, Any]] = {}
        for level in cfg.levels:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                v = evaluate_batch(level.num_grid_points, xi, physics=cfg.physics)

            # one event per distinct message
            seen = set()
            for w in caught:
                key = (w.category.__name__, str(w.message))
                if key in seen:
                    continue
                seen.add(key)
                logger.log_warning(level.name, key[0], key[1])

            stats = sample_statistics(v)
            values[level.name] = v
            level_stats[level.name] = {"num_grid_points": level.num_grid_points, **stats}
            logger.log_level_result(level.name, level.num_grid_points, stats)

            if v.shape[0] == 1:
                print(f"{level.name} {v[0]:f}")
            else:
                print(f"{level.name} mean={stats['mean']:.6g} std={stats['std']:.6g} (n={stats['n']})")

        save_samples(paths, xi, values)

        summary = {
            "run_id": run_id,
            "experiment_name": cfg.run.experiment_name,
            "physics": cfg_dict["physics"],
            "sampling": cfg_dict["sampling"],
            "levels": level_stats,
        }
        save_summary(paths, summary)

        primary = cfg.levels[0].name
        primary_value = float(level_stats[primary]["mean"])
        tracker.complete_run(run_id, primary_metric_name=f"mean_{primary}", primary_metric_value=primary_value)

        print(f"[DONE] run_id={run_id} mean_{primary}={primary_value:.6g}")
        return 0

    except Exception as e:
        logger.log_exception(e)
        tracker.fail_run(run_id, e)
        print(f"[FAILED] run_id={run_id} error={type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
