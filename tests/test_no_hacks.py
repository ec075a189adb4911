from __future__ import annotations

import os
import re
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
PKG_DIR = ROOT / "matchmaker"
EXCLUDE_DIRS = {"__pycache__"}

BANNED_PATTERNS = {
    "bare_except": re.compile(r"^\s*except\s*:"),
    "sys_path": re.compile(r"\bsys\.path\.(insert|append)\b"),
    "monkey_patch": re.compile(r"\b(Conductor|Instance|CallContext|Dht)\.\w+\s*=[^=]"),
    "blocking_sleep": re.compile(r"\btime\.sleep\s*\("),
}

# zome code reaches the network only through its call context
ZOME_BYPASS = re.compile(r"\bctx\.(conductor|instance)\b")
ZOME_FILES = {"zome.py"}


def _iter_py_files():
    for root, dirs, files in os.walk(PKG_DIR):
        dirs[:] = [d for d in dirs if d not in EXCLUDE_DIRS]
        for name in files:
            if name.endswith(".py"):
                yield Path(root) / name


def test_no_hacks():
    violations: list[str] = []
    for path in _iter_py_files():
        text = path.read_text(encoding="utf-8", errors="replace")
        lines = text.splitlines()

        for label, pattern in BANNED_PATTERNS.items():
            for i, line in enumerate(lines, 1):
                if pattern.search(line):
                    violations.append(f"{path}:{i}: banned {label}: {line.strip()}")

        if path.name in ZOME_FILES:
            for i, line in enumerate(lines, 1):
                if ZOME_BYPASS.search(line):
                    violations.append(f"{path}:{i}: zome bypasses its call context: {line.strip()}")

    if violations:
        joined = "\n".join(violations)
        raise AssertionError(f"Banned hack patterns found:\n{joined}")
