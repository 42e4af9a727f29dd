"""Pytest configuration ensuring the repository root is importable.

Modules are imported as `backend.src.<pkg>.<module>`.
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
