from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union

GAME_ENTRY = "game"
MOVE_ENTRY = "move"


@dataclass(frozen=True)
class Suggest:
    suggestion: int


@dataclass(frozen=True)
class Predict:
    prediction: int


@dataclass(frozen=True)
class Swap:
    pass


MoveType = Union[Suggest, Predict, Swap]


@dataclass(frozen=True)
class Game:
    player_1: str
    player_2: str
    created_at: int


@dataclass(frozen=True)
class MoveInput:
    game: str
    move_type: MoveType
    timestamp: int


@dataclass(frozen=True)
class Move:
    game: str
    author: str
    move_type: MoveType
    previous_move: str
    timestamp: int


@dataclass
class PlayerRecord:
    successful_suggestions: int = 0
    suggestion_attempts: int = 0
    successful_predictions: int = 0
    prediction_attempts: int = 0


@dataclass
class GameState:
    moves: List[Move] = field(default_factory=list)
    suggestion: int = 0
    player_1: PlayerRecord = field(default_factory=PlayerRecord)
    player_2: PlayerRecord = field(default_factory=PlayerRecord)
    player_2_suggests: bool = True
