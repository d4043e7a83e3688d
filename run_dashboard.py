#!/usr/bin/env python3
"""Direct launcher for the family budget dashboard.

Runs Streamlit on ``family_budget/dashboard.py`` with the project root on
the import path.
"""

import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
dashboard = project_root / "family_budget" / "dashboard.py"

if __name__ == "__main__":
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root), env.get("PYTHONPATH")]))
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(dashboard),
    ], env=env)
