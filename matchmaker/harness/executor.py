"""Assertion handle and the TAP-style executor.

Assertions record outcomes and never raise, so one failed check does not
stop the rest of a scenario. An exception escaping a scenario becomes one
failed assertion of kind ``crash`` and the executor moves on.
"""
from __future__ import annotations

import time
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from rich.console import Console

from matchmaker.harness.reporting import write_reports


@dataclass
class AssertionRecord:
    ok: bool
    message: str
    operator: str
    expected: Any = None
    actual: Any = None
    kind: str = "assertion"
    trace: Optional[str] = None


class Assertions:
    def __init__(self, name: str, on_record: Optional[Callable[["Assertions", AssertionRecord], None]] = None,
                 on_comment: Optional[Callable[[str], None]] = None):
        self.name = name
        self.records: List[AssertionRecord] = []
        self.logs: List[str] = []
        self._on_record = on_record
        self._on_comment = on_comment

    def _record(self, rec: AssertionRecord) -> bool:
        self.records.append(rec)
        if self._on_record:
            self._on_record(self, rec)
        return rec.ok

    def equal(self, actual: Any, expected: Any, msg: str = "should be equal") -> bool:
        return self._record(AssertionRecord(actual == expected, msg, "equal", expected, actual))

    def not_equal(self, actual: Any, expected: Any, msg: str = "should not be equal") -> bool:
        return self._record(AssertionRecord(actual != expected, msg, "notEqual", expected, actual))

    def ok(self, value: Any, msg: str = "should be truthy") -> bool:
        return self._record(AssertionRecord(bool(value), msg, "ok", True, value))

    def not_ok(self, value: Any, msg: str = "should be falsy") -> bool:
        return self._record(AssertionRecord(not value, msg, "notOk", False, value))

    def fail(self, msg: str = "fail", kind: str = "assertion", trace: Optional[str] = None) -> bool:
        return self._record(AssertionRecord(False, msg, "fail", kind=kind, trace=trace))

    def comment(self, msg: str) -> None:
        if self._on_comment:
            self._on_comment(msg)

    @property
    def failures(self) -> List[AssertionRecord]:
        return [r for r in self.records if not r.ok]

    @property
    def passed(self) -> bool:
        return not self.failures


@dataclass
class ScenarioRun:
    name: str
    run: Callable[[Assertions], Awaitable[None]]


@dataclass
class TapExecutor:
    console: Console = field(default_factory=Console)
    report_dir: Optional[Path] = None
    count: int = 0

    def _print(self, line: str) -> None:
        self.console.print(line, markup=False, highlight=False)

    def _emit(self, t: Assertions, rec: AssertionRecord) -> None:
        self.count += 1
        self._print(f"{'ok' if rec.ok else 'not ok'} {self.count} {rec.message}")
        if rec.ok:
            return
        self._print("  ---")
        self._print(f"    operator: {rec.operator}")
        if rec.operator != "fail":
            self._print(f"    expected: {rec.expected!r}")
            self._print(f"    actual:   {rec.actual!r}")
        if rec.trace:
            self._print("    stack: |-")
            for line in rec.trace.rstrip().splitlines():
                self._print(f"      {line}")
        self._print("  ...")

    def _comment(self, msg: str) -> None:
        for line in str(msg).splitlines() or [""]:
            self._print(f"# {line}")

    async def execute(self, scenarios: List[ScenarioRun]) -> int:
        self.count = 0
        self._print("TAP version 13")
        results: List[Assertions] = []
        for sc in scenarios:
            self._comment(sc.name)
            t = Assertions(sc.name, on_record=self._emit, on_comment=self._comment)
            try:
                await sc.run(t)
            except Exception as exc:
                t.fail(f"scenario raised {type(exc).__name__}: {exc}", kind="crash", trace=traceback.format_exc())
            results.append(t)

        passed = sum(1 for t in results for r in t.records if r.ok)
        failed = sum(len(t.failures) for t in results)
        self._print("")
        self._print(f"1..{self.count}")
        self._print(f"# tests {self.count}")
        self._print(f"# pass  {passed}")
        if failed:
            self._print(f"# fail  {failed}")
        else:
            self._print("")
            self._print("# ok")

        if self.report_dir is not None:
            self._write_reports(results)
        return 1 if failed else 0

    def _write_reports(self, results: List[Assertions]) -> None:
        report: Dict[str, Any] = {"timestamp": int(time.time()), "scenarios": []}
        failures: List[Dict[str, Any]] = []
        for t in results:
            report["scenarios"].append({
                "scenario": t.name,
                "ok": t.passed,
                "assertions": len(t.records),
            })
            for rec in t.failures:
                failures.append({
                    "scenario": t.name,
                    "kind": rec.kind,
                    "reason": rec.message,
                    "operator": rec.operator if rec.operator != "fail" else None,
                    "expected": rec.expected,
                    "actual": rec.actual,
                    "trace": rec.trace,
                    "logs": t.logs[-50:],
                })
        report_path, bug_path = write_reports(Path(self.report_dir), report, failures)
        self._comment(f"report: {report_path}")
        if failures:
            self._comment(f"bug report: {bug_path}")
