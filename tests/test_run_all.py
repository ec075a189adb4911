from __future__ import annotations

from matchmaker.harness import TapExecutor
from tests import run_all
from tests.harness.driver import console_text, quiet_console


def test_exactly_one_scenario_registered():
    orch = run_all.build_orchestrator(TapExecutor(console=quiet_console()))
    assert orch.scenario_names == ["Can create a new game"]
    assert sorted(orch.instances) == ["alice", "bob"]
    assert orch.bridges == []
    assert orch.config.debug_log is False


def test_create_game_scenario_passes(tmp_path):
    console = quiet_console()
    orch = run_all.build_orchestrator(TapExecutor(console=console, report_dir=tmp_path))
    assert orch.run() == 0

    out = console_text(console)
    assert "# Can create a new game" in out
    for n in range(1, 5):
        assert f"ok {n} should be equal" in out
    assert "not ok" not in out
    assert "1..4" in out
    assert "# ok" in out
    assert "Waiting for player 2 to suggest a number..." in out
    assert "prediction: 1/1" in out
    assert "got unhandled exception:" not in out
    assert (tmp_path / "BUG_REPORT.md").read_text(encoding="utf-8").endswith("No failures detected.")


def test_runs_are_independent():
    first = run_all.build_orchestrator(TapExecutor(console=quiet_console()))
    second = run_all.build_orchestrator(TapExecutor(console=quiet_console()))
    assert first.run() == 0
    assert second.run() == 0
    assert first.run() == 0
