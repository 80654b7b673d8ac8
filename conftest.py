"""Pytest configuration.

Puts the repository root on sys.path so ``scripts.opsync`` imports the same
way it does under ``python -m``.
"""

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
