from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, List, Tuple


def _severity(kind: str) -> str:
    if kind == "crash":
        return "Blocker"
    return "Major"


def write_bug_report(path: Path, failures: List[Dict[str, Any]]) -> None:
    lines = ["# BUG_REPORT", ""]
    if not failures:
        lines.append("No failures detected.")
        path.write_text("\n".join(lines), encoding="utf-8")
        return

    for idx, f in enumerate(failures, start=1):
        lines.append(f"## {idx}. [{f['scenario']}] {f['reason']}")
        lines.append("")
        lines.append(f"Severity: {_severity(f['kind'])}")
        lines.append("")
        if f.get("operator"):
            lines.append("Expected vs Actual:")
            lines.append("")
            lines.append(f"- Operator: {f['operator']}")
            lines.append(f"- Expected: {json.dumps(f.get('expected'), default=repr)}")
            lines.append(f"- Actual: {json.dumps(f.get('actual'), default=repr)}")
            lines.append("")
        if f.get("trace"):
            lines.append("Stack trace:")
            lines.append("```")
            lines.append(f["trace"].rstrip())
            lines.append("```")
            lines.append("")
        if f.get("logs"):
            lines.append("Recent logs:")
            lines.append("```")
            for line in f["logs"]:
                lines.append(line)
            lines.append("```")
            lines.append("")

    path.write_text("\n".join(lines), encoding="utf-8")


def write_reports(reports_dir: Path, report: Dict[str, Any], failures: List[Dict[str, Any]]) -> Tuple[Path, Path]:
    reports_dir.mkdir(parents=True, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S")
    report_path = reports_dir / f"report_{ts}.json"
    payload = dict(report)
    payload["failures"] = failures
    report_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=repr), encoding="utf-8")
    bug_path = reports_dir / "BUG_REPORT.md"
    write_bug_report(bug_path, failures)
    return report_path, bug_path
