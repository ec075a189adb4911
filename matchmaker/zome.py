"""The ``main`` zome: a two-player suggest/predict guessing game.

Player 2 suggests a number, player 1 predicts it, and ``Swap`` flips the
roles. Moves form a linked list rooted at the game entry: the game links to
the first move and every move links to the one after it.
"""
from __future__ import annotations

import functools
from typing import Any, Dict, List, Tuple

from matchmaker.address import is_address
from matchmaker.conductor import CallContext
from matchmaker.engine import rules, serialize
from matchmaker.engine.rules import RuleError
from matchmaker.engine.state import GAME_ENTRY, MOVE_ENTRY, Game, GameState, Move
from matchmaker.result import CallResult, Ok, err

ZOME_NAME = "main"
ENTRY_TYPES = [GAME_ENTRY, MOVE_ENTRY]
FUNCTIONS = [
    "create_game",
    "make_move",
    "get_state",
    "render_state",
    "get_valid_moves",
    "whoami",
]


def zome_function(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs) -> CallResult:
        try:
            return fn(*args, **kwargs)
        except RuleError as exc:
            return err(exc.code, exc.message, exc.details)
        except ValueError as exc:
            return err("invalid_args", str(exc))

    return wrapper


def load_game(ctx: CallContext, game_address: str) -> Game:
    found = ctx.get_entry(game_address)
    if found is None:
        raise RuleError("not_found", "Game not found", {"address": game_address})
    entry_type, content = found
    if entry_type != GAME_ENTRY:
        raise RuleError("wrong_entry_type", f"Entry at address is a {entry_type}, not a game", {"address": game_address})
    return serialize.game_from_dict(content)


def load_moves(ctx: CallContext, game_address: str) -> List[Tuple[str, Move]]:
    out: List[Tuple[str, Move]] = []
    seen = {game_address}
    base = game_address
    while True:
        links = ctx.get_links(base)
        if not links:
            return out
        nxt = links[0]
        if nxt in seen:
            raise RuleError("corrupt_chain", "Move chain loops back on itself", {"address": nxt})
        seen.add(nxt)
        found = ctx.get_entry(nxt)
        if found is None:
            raise RuleError("not_found", "Move not found", {"address": nxt})
        out.append((nxt, serialize.move_from_dict(found[1])))
        base = nxt


def load_state(ctx: CallContext, game_address: str) -> Tuple[Game, GameState, str]:
    """Game, current state and the address the next move must follow."""
    game = load_game(ctx, game_address)
    moves = load_moves(ctx, game_address)
    state = rules.replay(game, [m for _, m in moves])
    last = moves[-1][0] if moves else game_address
    return game, state, last


def validate_game_entry(ctx: CallContext, content: Dict[str, Any]) -> None:
    game = serialize.game_from_dict(content)
    for who in (game.player_1, game.player_2):
        if not is_address(who):
            raise RuleError("invalid_agent", "Players must be agent addresses", {"agent": who})
    if game.player_1 != ctx.agent_id:
        raise RuleError("bad_author", "Only the creator can be player 1")
    rules.validate_game(game)


def validate_move_entry(ctx: CallContext, content: Dict[str, Any]) -> None:
    move = serialize.move_from_dict(content)
    if move.author != ctx.agent_id:
        raise RuleError("bad_author", "Moves must be authored by the committing agent")
    game, state, last = load_state(ctx, move.game)
    if move.previous_move != last:
        raise RuleError("stale_move", "Move does not follow the latest move", {"expected": last, "got": move.previous_move})
    rules.validate_move(move, game, state)


VALIDATORS = {
    GAME_ENTRY: validate_game_entry,
    MOVE_ENTRY: validate_move_entry,
}


@zome_function
def create_game(ctx: CallContext, opponent: str, timestamp: int) -> CallResult:
    game = Game(player_1=ctx.agent_id, player_2=opponent, created_at=timestamp)
    return Ok(ctx.commit_entry(GAME_ENTRY, serialize.game_to_dict(game)))


@zome_function
def make_move(ctx: CallContext, new_move: Dict[str, Any]) -> CallResult:
    move_input = serialize.move_input_from_dict(new_move)
    _game, _state, last = load_state(ctx, move_input.game)
    move = Move(
        game=move_input.game,
        author=ctx.agent_id,
        move_type=move_input.move_type,
        previous_move=last,
        timestamp=move_input.timestamp,
    )
    address = ctx.commit_entry(MOVE_ENTRY, serialize.move_to_dict(move))
    ctx.link_entries(last, address)
    return Ok(address)


@zome_function
def get_state(ctx: CallContext, game_address: str) -> CallResult:
    _game, state, _last = load_state(ctx, game_address)
    return Ok(serialize.state_to_dict(state))


@zome_function
def render_state(ctx: CallContext, game_address: str) -> CallResult:
    game, state, _last = load_state(ctx, game_address)
    return Ok(rules.render(state, game))


@zome_function
def get_valid_moves(ctx: CallContext) -> CallResult:
    return Ok([serialize.move_type_to_dict(m) for m in rules.describe_moves()])


@zome_function
def whoami(ctx: CallContext) -> CallResult:
    return Ok(ctx.agent_id)
