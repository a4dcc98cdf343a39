import csv
import json

import numpy as np
import pytest
import yaml

from stochastic_diffusion import diffusion_1d
from stochastic_diffusion import run as run_module
from stochastic_diffusion.logging import read_events
from stochastic_diffusion.paths import RunPaths
from stochastic_diffusion.sweep import main as sweep_main


def _write_config(path, root_dir, **overrides):
    cfg = {
        "run": {"root_dir": str(root_dir), "experiment_name": "test"},
        "seed": {"seed": 42},
        "sampling": {"num_uncertainties": 3, "num_samples": 4, "method": "uniform"},
        "levels": [
            {"name": "hf", "num_grid_points": 21},
            {"name": "lf", "num_grid_points": 5},
        ],
    }
    cfg.update(overrides)
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return path


def _single_run_dir(root_dir):
    dirs = [p for p in root_dir.iterdir() if p.is_dir()]
    assert len(dirs) == 1
    return RunPaths(root_dir=root_dir, run_id=dirs[0].name)


def _csv_rows(root_dir):
    with open(root_dir / "experiments.csv", newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_run_writes_artifacts(tmp_path, capsys):
    root = tmp_path / "runs"
    cfg_path = _write_config(tmp_path / "cfg.yaml", root)

    assert run_module.main(["--config", str(cfg_path)]) == 0
    out = capsys.readouterr().out
    assert "[DONE]" in out

    paths = _single_run_dir(root)
    assert paths.config_copy_path.exists()

    summary = json.loads(paths.summary_path.read_text(encoding="utf-8"))
    assert set(summary["levels"].keys()) == {"hf", "lf"}
    assert summary["levels"]["hf"]["n"] == 4
    assert summary["levels"]["lf"]["num_grid_points"] == 5

    data = np.load(paths.samples_path)
    xi = data["xi"]
    assert xi.shape == (4, 3)
    assert np.all(np.abs(xi) <= 1.0)
    for s in range(4):
        assert data["values_hf"][s] == diffusion_1d(21, 3, xi[s])
        assert data["values_lf"][s] == diffusion_1d(5, 3, xi[s])
    assert np.isclose(summary["levels"]["hf"]["mean"], np.mean(data["values_hf"]))

    events = [e["event"] for e in read_events(paths)]
    assert events[0] == "run_start"
    assert events.count("level_result") == 2

    rows = _csv_rows(root)
    assert len(rows) == 1
    assert rows[0]["status"] == "COMPLETED"
    assert rows[0]["levels"] == "hf:21;lf:5"
    assert rows[0]["primary_metric_name"] == "mean_hf"


def test_completed_run_is_skipped(tmp_path, capsys):
    root = tmp_path / "runs"
    cfg_path = _write_config(tmp_path / "cfg.yaml", root)

    assert run_module.main(["--config", str(cfg_path)]) == 0
    capsys.readouterr()
    assert run_module.main(["--config", str(cfg_path)]) == 0
    assert "[SKIP]" in capsys.readouterr().out


def test_runs_are_reproducible(tmp_path):
    root_a = tmp_path / "a"
    root_b = tmp_path / "b"
    run_module.main(["--config", str(_write_config(tmp_path / "a.yaml", root_a))])
    run_module.main(["--config", str(_write_config(tmp_path / "b.yaml", root_b))])

    va = np.load(_single_run_dir(root_a).samples_path)["values_hf"]
    vb = np.load(_single_run_dir(root_b).samples_path)["values_hf"]
    assert np.array_equal(va, vb)


def test_default_driver(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert run_module.main([]) == 0

    lines = capsys.readouterr().out.splitlines()
    hf = [ln for ln in lines if ln.startswith("hf ")]
    lf = [ln for ln in lines if ln.startswith("lf ")]
    assert len(hf) == 1 and len(lf) == 1
    assert float(hf[0].split()[1]) > 0.0

    data = np.load(_single_run_dir(tmp_path / "runs").samples_path)
    assert data["xi"].shape == (1, 10)


def test_failed_run_is_recorded(tmp_path, monkeypatch, capsys):
    def boom(*args, **kwargs):
        raise RuntimeError("solver exploded")

    monkeypatch.setattr(run_module, "evaluate_batch", boom)
    root = tmp_path / "runs"
    cfg_path = _write_config(tmp_path / "cfg.yaml", root)

    assert run_module.main(["--config", str(cfg_path)]) == 1
    assert "[FAILED]" in capsys.readouterr().out

    rows = _csv_rows(root)
    assert rows[0]["status"] == "FAILED"
    assert "solver exploded" in rows[0]["notes"]

    events = read_events(_single_run_dir(root))
    assert events[-1]["event"] == "exception"
    assert events[-1]["error_type"] == "RuntimeError"


def test_instability_warnings_are_logged(tmp_path, monkeypatch):
    import warnings

    from stochastic_diffusion.solvers import NumericalInstabilityWarning

    def noisy(num_grid_points, xi, physics=None):
        for _ in range(3):
            warnings.warn("tiny pivot", NumericalInstabilityWarning)
        return np.zeros(xi.shape[0])

    monkeypatch.setattr(run_module, "evaluate_batch", noisy)
    root = tmp_path / "runs"
    cfg_path = _write_config(tmp_path / "cfg.yaml", root)
    assert run_module.main(["--config", str(cfg_path)]) == 0

    events = read_events(_single_run_dir(root))
    logged = [e for e in events if e["event"] == "numerical_warning"]
    # one per level, duplicates collapsed
    assert [e["level"] for e in logged] == ["hf", "lf"]
    assert logged[0]["category"] == "NumericalInstabilityWarning"


def test_invalid_config_raises(tmp_path):
    cfg_path = _write_config(tmp_path / "cfg.yaml", tmp_path / "runs", levels=[{"name": "x", "num_grid_points": 1}])
    with pytest.raises(ValueError):
        run_module.main(["--config", str(cfg_path)])


def test_sweep_runs_configs_and_skips_scratch(tmp_path, capsys):
    config_dir = tmp_path / "configs"
    config_dir.mkdir()
    root = tmp_path / "runs"
    _write_config(config_dir / "a.yaml", root)
    _write_config(config_dir / "b.yaml", root, seed={"seed": 7})
    _write_config(config_dir / "_scratch.yaml", root, seed={"seed": 99})

    assert sweep_main(["--config_dir", str(config_dir)]) == 0
    assert "2/2 configs succeeded" in capsys.readouterr().out
    assert len(_csv_rows(root)) == 2


def test_sweep_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        sweep_main(["--config_dir", str(tmp_path / "missing")])


def test_sweep_continues_past_invalid_config(tmp_path, capsys):
    config_dir = tmp_path / "configs"
    config_dir.mkdir()
    root = tmp_path / "runs"
    _write_config(config_dir / "a_bad.yaml", root, levels=[{"name": "x", "num_grid_points": 1}])
    _write_config(config_dir / "b_good.yaml", root)

    assert sweep_main(["--config_dir", str(config_dir)]) == 1

    out = capsys.readouterr().out
    assert "1/2 configs succeeded" in out
    assert "failed: a_bad.yaml" in out
    rows = _csv_rows(root)
    assert len(rows) == 1
    assert rows[0]["status"] == "COMPLETED"
