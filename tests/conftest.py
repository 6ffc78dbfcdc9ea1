"""Pytest config: put the tool scripts directory on the path."""

import sys
from pathlib import Path

_scripts = Path(__file__).resolve().parent.parent / "python"
if str(_scripts) not in sys.path:
    sys.path.insert(0, str(_scripts))
