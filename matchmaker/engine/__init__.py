from matchmaker.engine.rules import (
    RuleError,
    describe_moves,
    evolve,
    initial_state,
    render,
    replay,
    validate_game,
    validate_move,
)
from matchmaker.engine.state import (
    GAME_ENTRY,
    MOVE_ENTRY,
    Game,
    GameState,
    Move,
    MoveInput,
    Predict,
    Suggest,
    Swap,
)
