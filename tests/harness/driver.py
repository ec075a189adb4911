from __future__ import annotations

import asyncio
import io
from typing import Any, Callable, Dict, List, Optional

from rich.console import Console

from matchmaker.conductor import Conductor
from matchmaker.config import ConductorConfig, DEFAULT_DNA_PATH
from matchmaker.dna import Dna, load_dna
from matchmaker.engine import serialize
from matchmaker.result import CallResult, Ok, to_wire


class ScenarioFailure(Exception):
    def __init__(self, message: str, kind: str = "assertion", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.kind = kind
        self.details = details or {}


def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=400)


def console_text(console: Console) -> str:
    return console.file.getvalue()


def shipped_dna() -> Dna:
    return load_dna(DEFAULT_DNA_PATH, "matchmaker-tats")


def make_conductor(names=("alice", "bob"), dna: Optional[Dna] = None, console: Optional[Console] = None,
                   bridges=None, **config) -> Conductor:
    dna = dna or shipped_dna()
    return Conductor({n: dna for n in names}, bridges=bridges,
                     config=ConductorConfig(**config), console=console or quiet_console())


def suggest(n: int) -> Dict[str, Any]:
    return {"Suggest": {"suggestion": n}}


def predict(n: int) -> Dict[str, Any]:
    return {"Predict": {"prediction": n}}


def swap() -> Dict[str, Any]:
    return {"Swap": {}}


class GameDriver:
    """Drives one game through a conductor and records every call."""

    def __init__(self, conductor: Optional[Conductor] = None):
        self.conductor = conductor or make_conductor()
        self.steps: List[Dict[str, Any]] = []
        self.game: Optional[str] = None
        self.timestamp = 0
        self.on_step: Optional[Callable[["GameDriver", Dict[str, Any], CallResult], None]] = None

    def fail(self, message: str, kind: str = "assertion", details: Optional[Dict[str, Any]] = None) -> None:
        raise ScenarioFailure(message, kind=kind, details=details)

    async def do(self, who: str, function: str, params: Optional[Dict[str, Any]] = None, sync: bool = True) -> CallResult:
        inst = self.conductor.instance(who)
        if sync:
            result = await inst.call_sync("main", function, params)
        else:
            result = await inst.call("main", function, params)
        step = {"who": who, "function": function, "params": params or {}, "result": to_wire(result)}
        self.steps.append(step)
        if self.on_step:
            self.on_step(self, step, result)
        return result

    async def create_game(self, creator: str = "alice", opponent: str = "bob") -> str:
        result = await self.do(creator, "create_game", {
            "opponent": self.conductor.instance(opponent).agent_id,
            "timestamp": self.timestamp,
        })
        if not isinstance(result, Ok):
            self.fail("create_game failed", details=to_wire(result))
        self.game = result.value
        return self.game

    async def move(self, who: str, move_type: Dict[str, Any], sync: bool = True) -> CallResult:
        self.timestamp += 1
        return await self.do(who, "make_move", {
            "new_move": {"game": self.game, "move_type": move_type, "timestamp": self.timestamp},
        }, sync=sync)

    async def state(self, who: str = "alice"):
        result = await self.do(who, "get_state", {"game_address": self.game})
        if not isinstance(result, Ok):
            self.fail("get_state failed", details=to_wire(result))
        return serialize.state_from_dict(result.value)


def run(coro):
    return asyncio.run(coro)
