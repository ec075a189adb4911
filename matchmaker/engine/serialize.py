from __future__ import annotations

from typing import Any, Dict

from matchmaker.engine.state import (
    Game,
    GameState,
    Move,
    MoveInput,
    MoveType,
    PlayerRecord,
    Predict,
    Suggest,
    Swap,
)


def _require(data: Any, key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{where} must be an object")
    if key not in data:
        raise ValueError(f"{where}.{key} is required")
    return data[key]


def _int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{where} must be an integer")
    if value < 0:
        raise ValueError(f"{where} must not be negative")
    return value


def _str(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{where} must be a non-empty string")
    return value


def move_type_to_dict(mt: MoveType) -> Dict[str, Any]:
    if isinstance(mt, Suggest):
        return {"Suggest": {"suggestion": mt.suggestion}}
    if isinstance(mt, Predict):
        return {"Predict": {"prediction": mt.prediction}}
    if isinstance(mt, Swap):
        return {"Swap": {}}
    raise TypeError(f"unknown move type: {mt!r}")


def move_type_from_dict(data: Any) -> MoveType:
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError("move_type must be an object with exactly one variant")
    (kind, body), = data.items()
    if body is None:
        body = {}
    if kind == "Suggest":
        return Suggest(suggestion=_int(_require(body, "suggestion", "Suggest"), "Suggest.suggestion"))
    if kind == "Predict":
        return Predict(prediction=_int(_require(body, "prediction", "Predict"), "Predict.prediction"))
    if kind == "Swap":
        if not isinstance(body, dict):
            raise ValueError("Swap must be an object")
        return Swap()
    raise ValueError(f"unknown move_type variant: {kind}")


def game_to_dict(g: Game) -> Dict[str, Any]:
    return {
        "player_1": g.player_1,
        "player_2": g.player_2,
        "created_at": g.created_at,
    }


def game_from_dict(data: Dict[str, Any]) -> Game:
    return Game(
        player_1=_str(_require(data, "player_1", "game"), "game.player_1"),
        player_2=_str(_require(data, "player_2", "game"), "game.player_2"),
        created_at=_int(_require(data, "created_at", "game"), "game.created_at"),
    )


def move_input_from_dict(data: Dict[str, Any]) -> MoveInput:
    return MoveInput(
        game=_str(_require(data, "game", "new_move"), "new_move.game"),
        move_type=move_type_from_dict(_require(data, "move_type", "new_move")),
        timestamp=_int(_require(data, "timestamp", "new_move"), "new_move.timestamp"),
    )


def move_to_dict(m: Move) -> Dict[str, Any]:
    return {
        "game": m.game,
        "author": m.author,
        "move_type": move_type_to_dict(m.move_type),
        "previous_move": m.previous_move,
        "timestamp": m.timestamp,
    }


def move_from_dict(data: Dict[str, Any]) -> Move:
    return Move(
        game=_str(_require(data, "game", "move"), "move.game"),
        author=_str(_require(data, "author", "move"), "move.author"),
        move_type=move_type_from_dict(_require(data, "move_type", "move")),
        previous_move=_str(_require(data, "previous_move", "move"), "move.previous_move"),
        timestamp=_int(_require(data, "timestamp", "move"), "move.timestamp"),
    )


def _record_to_dict(rec: PlayerRecord) -> Dict[str, int]:
    return {
        "successful_suggestions": rec.successful_suggestions,
        "suggestion_attempts": rec.suggestion_attempts,
        "successful_predictions": rec.successful_predictions,
        "prediction_attempts": rec.prediction_attempts,
    }


def _record_from_dict(data: Dict[str, Any]) -> PlayerRecord:
    return PlayerRecord(
        successful_suggestions=int(data.get("successful_suggestions", 0)),
        suggestion_attempts=int(data.get("suggestion_attempts", 0)),
        successful_predictions=int(data.get("successful_predictions", 0)),
        prediction_attempts=int(data.get("prediction_attempts", 0)),
    )


def state_to_dict(s: GameState) -> Dict[str, Any]:
    return {
        "moves": [move_to_dict(m) for m in s.moves],
        "suggestion": s.suggestion,
        "player_1": _record_to_dict(s.player_1),
        "player_2": _record_to_dict(s.player_2),
        "player_2_suggests": s.player_2_suggests,
    }


def state_from_dict(data: Dict[str, Any]) -> GameState:
    return GameState(
        moves=[move_from_dict(m) for m in data.get("moves", [])],
        suggestion=int(data.get("suggestion", 0)),
        player_1=_record_from_dict(data.get("player_1", {})),
        player_2=_record_from_dict(data.get("player_2", {})),
        player_2_suggests=bool(data.get("player_2_suggests", True)),
    )
