import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def test_kernel_import_does_not_load_torch():
    code = (
        "import sys\n"
        "import stochastic_diffusion\n"
        "from stochastic_diffusion.config import build_experiment_config\n"
        "build_experiment_config({})\n"
        "assert abs(stochastic_diffusion.evaluate(5, 0, []) - 1.25) < 1e-12\n"
        "assert 'torch' not in sys.modules, 'torch was imported'\n"
    )
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT), env.get("PYTHONPATH", "")])
    result = subprocess.run([sys.executable, "-c", code], cwd=ROOT, env=env, capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
