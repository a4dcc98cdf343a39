"""
Sweep runner: execute a directory of YAML configs sequentially.

Typical use is a set of version-controlled configs varying the sample count,
the sampling method or the grid levels; results are tracked by run_id hashes.

Usage:
    python -m stochastic_diffusion.sweep --config_dir configs
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from .run import main as run_main


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run a sweep of stochastic_diffusion configs")
    p.add_argument("--config_dir", type=str, required=True, help="Directory containing YAML configs")
    p.add_argument("--pattern", type=str, default="*.yaml", help="Glob pattern (default: *.yaml)")
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    config_dir = Path(args.config_dir)
    if not config_dir.exists():
        raise FileNotFoundError(f"config_dir not found: {config_dir}")

    configs = sorted(config_dir.glob(args.pattern))
    if not configs:
        print(f"No configs matching {args.pattern} in {config_dir}")
        return 0

    failed: list[str] = []
    n_run = 0
    for path in configs:
        if path.name.startswith("_"):
            # convention: ignore internal scratch configs
            continue
        print(f"\n=== RUN {path} ===")
        n_run += 1
        try:
            code = run_main(["--config", str(path)])
        except Exception as e:
            # invalid configs fail before the runner's own error handling
            print(f"[FAILED] {path.name} error={type(e).__name__}: {e}")
            code = 1
        if code != 0:
            failed.append(path.name)

    print(f"\n[SWEEP] {n_run - len(failed)}/{n_run} configs succeeded")
    for name in failed:
        print(f"[SWEEP] failed: {name}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
