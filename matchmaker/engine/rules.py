from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from matchmaker.engine.state import (
    Game,
    GameState,
    Move,
    MoveType,
    PlayerRecord,
    Predict,
    Suggest,
    Swap,
)


class RuleError(Exception):
    def __init__(self, code: str, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


def initial_state() -> GameState:
    return GameState()


def describe_moves() -> List[MoveType]:
    return [Suggest(suggestion=0), Predict(prediction=0), Swap()]


def player_number(game: Game, agent: str) -> Optional[int]:
    if agent == game.player_1:
        return 1
    if agent == game.player_2:
        return 2
    return None


def suggester(game: Game, state: GameState) -> str:
    return game.player_2 if state.player_2_suggests else game.player_1


def predictor(game: Game, state: GameState) -> str:
    return game.player_1 if state.player_2_suggests else game.player_2


def validate_game(game: Game) -> None:
    if game.player_1 == game.player_2:
        raise RuleError("same_player", "Player 1 and Player 2 must be different agents.")


def _check_turn(author: str, game: Game, state: GameState) -> None:
    if player_number(game, author) is None:
        raise RuleError("not_a_player", "Only the two players of a game can make moves", {"author": author})
    if not state.moves:
        # player 2 starts by convention
        if author != game.player_2:
            raise RuleError("player_2_must_start", "Player 2 must start the game")
        return
    if state.moves[-1].author == author:
        raise RuleError("not_your_turn", "It is not this player turn")


def _check_role(author: str, move_type: MoveType, game: Game, state: GameState) -> None:
    num = player_number(game, author)
    if isinstance(move_type, Swap):
        return
    if isinstance(move_type, Suggest):
        if author != suggester(game, state):
            raise RuleError("wrong_move", f"Player {num} must predict, not suggest. Use swap to switch roles")
        return
    if isinstance(move_type, Predict):
        if author != predictor(game, state):
            raise RuleError("wrong_move", f"Player {num} must suggest, not predict. Use swap to switch roles")
        return
    raise TypeError(f"unknown move type: {move_type!r}")


def validate_move(move: Move, game: Game, state: GameState) -> None:
    _check_turn(move.author, game, state)
    _check_role(move.author, move.move_type, game, state)


def evolve(state: GameState, game: Game, move: Move) -> GameState:
    p1 = replace(state.player_1)
    p2 = replace(state.player_2)
    suggestion = state.suggestion
    player_2_suggests = state.player_2_suggests
    mover, other = (p1, p2) if move.author == game.player_1 else (p2, p1)

    mt = move.move_type
    if isinstance(mt, Suggest):
        suggestion = mt.suggestion
        mover.suggestion_attempts += 1
    elif isinstance(mt, Predict):
        if mt.prediction == suggestion:
            mover.successful_predictions += 1
        else:
            other.successful_suggestions += 1
        mover.prediction_attempts += 1
    elif isinstance(mt, Swap):
        player_2_suggests = not player_2_suggests
    else:
        raise TypeError(f"unknown move type: {mt!r}")

    return GameState(
        moves=list(state.moves) + [move],
        suggestion=suggestion,
        player_1=p1,
        player_2=p2,
        player_2_suggests=player_2_suggests,
    )


def replay(game: Game, moves: List[Move]) -> GameState:
    state = initial_state()
    for m in moves:
        state = evolve(state, game, m)
    return state


def _record_lines(label: str, rec: PlayerRecord) -> List[str]:
    return [
        f"{label} record: ",
        f"\tsuggestion: {rec.successful_suggestions}/{rec.suggestion_attempts} ",
        f"\tprediction: {rec.successful_predictions}/{rec.prediction_attempts} ",
    ]


def status_line(state: GameState, game: Game) -> str:
    if not state.moves:
        return "Waiting for player 2 to suggest a number"
    if state.moves[-1].author == game.player_1:
        if state.player_2_suggests:
            return "Waiting for player 2 to suggest a number..."
        return "Waiting for player 2 to predict the suggested number..."
    if state.player_2_suggests:
        return "Waiting for player 1 to predict the suggested number..."
    return "Waiting for player 1 to suggest a number..."


def render(state: GameState, game: Game) -> str:
    lines = [f" {status_line(state, game)} "]
    lines += _record_lines("player 1", state.player_1)
    lines += _record_lines("player 2", state.player_2)
    return "\n".join(lines) + "\n"
