from __future__ import annotations

import pytest

from matchmaker import client_cli
from matchmaker.result import Err, Ok, err
from tests.harness.driver import console_text, quiet_console


def test_parse_move():
    assert client_cli.parse_move("suggest", ["suggest", "5"]) == {"Suggest": {"suggestion": 5}}
    assert client_cli.parse_move("predict", ["predict", "0"]) == {"Predict": {"prediction": 0}}
    assert client_cli.parse_move("swap", ["swap"]) == {"Swap": {}}
    with pytest.raises(ValueError):
        client_cli.parse_move("suggest", ["suggest"])
    with pytest.raises(ValueError):
        client_cli.parse_move("predict", ["predict", "-2"])
    with pytest.raises(ValueError):
        client_cli.parse_move("predict", ["predict", "five"])


def test_show_result_prints_errors(monkeypatch):
    console = quiet_console()
    monkeypatch.setattr(client_cli, "console", console)
    assert client_cli.show_result(Ok("Qm")) == "Qm"
    assert client_cli.show_result(err("not_your_turn", "It is not this player turn")) is None
    assert client_cli.show_result(Err("plain")) is None
    out = console_text(console)
    assert "ERROR: not_your_turn: It is not this player turn" in out
    assert "ERROR: plain" in out
    with pytest.raises(TypeError):
        client_cli.show_result({"Ok": 1})


def test_print_state_and_moves(monkeypatch):
    console = quiet_console()
    monkeypatch.setattr(client_cli, "console", console)
    state = {
        "moves": [{"author": "Qm" + "a" * 44, "move_type": {"Suggest": {"suggestion": 5}}, "timestamp": 1}],
        "player_1": {"successful_suggestions": 0, "suggestion_attempts": 0,
                     "successful_predictions": 1, "prediction_attempts": 1},
        "player_2": {"successful_suggestions": 0, "suggestion_attempts": 1,
                     "successful_predictions": 0, "prediction_attempts": 0},
        "player_2_suggests": True,
    }
    client_cli.print_state(state, "QmGame")
    client_cli.print_moves(state["moves"])
    out = console_text(console)
    assert "GAME QmGame" in out
    assert "1/1" in out
    assert "Suggest 5" in out
