from __future__ import annotations

import argparse
import asyncio
import time
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from matchmaker.net_client import ConductorClient, ConductorError, RemoteInstance
from matchmaker.result import CallResult, Err, Ok

console = Console()

HELP = """
Commands
help
whoami
instances
create <opponent>                 (instance name or agent address)
use <game_address>
suggest <n>
predict <n>
swap
state
render
moves
quit
"""


def print_state(state: Dict[str, Any], game_address: str):
    console.rule(f"GAME {game_address}")

    t = Table(show_header=True, header_style="bold")
    t.add_column("Player")
    t.add_column("Suggestions", justify="right")
    t.add_column("Predictions", justify="right")
    for label in ("player_1", "player_2"):
        rec = state.get(label, {})
        t.add_row(
            label.replace("_", " "),
            f"{rec.get('successful_suggestions', 0)}/{rec.get('suggestion_attempts', 0)}",
            f"{rec.get('successful_predictions', 0)}/{rec.get('prediction_attempts', 0)}",
        )
    console.print(t)

    suggests = "player 2" if state.get("player_2_suggests", True) else "player 1"
    console.print(f"[bold]Moves:[/bold] {len(state.get('moves', []))}  [bold]Suggester:[/bold] {suggests}")


def print_moves(moves: List[Dict[str, Any]]):
    t = Table(show_header=True, header_style="bold")
    t.add_column("#", justify="right")
    t.add_column("Author")
    t.add_column("Move")
    t.add_column("Time", justify="right")
    for idx, m in enumerate(moves, start=1):
        (kind, body), = m["move_type"].items()
        value = next(iter(body.values()), "") if body else ""
        t.add_row(str(idx), m["author"][:12] + "…", f"{kind} {value}".strip(), str(m["timestamp"]))
    console.print(t)


def show_result(result: CallResult) -> Optional[Any]:
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        e = result.value
        if isinstance(e, dict):
            console.print(f"[red]ERROR:[/red] {e.get('code')}: {e.get('message')}")
        else:
            console.print(f"[red]ERROR:[/red] {e}")
        return None
    raise TypeError(f"not a call result: {result!r}")


def parse_move(cmd: str, parts: List[str]) -> Dict[str, Any]:
    if cmd == "swap":
        return {"Swap": {}}
    if len(parts) < 2:
        raise ValueError(f"format: {cmd} <n>")
    n = int(parts[1])
    if n < 0:
        raise ValueError("number must not be negative")
    if cmd == "suggest":
        return {"Suggest": {"suggestion": n}}
    return {"Predict": {"prediction": n}}


async def _fetch_state(me: RemoteInstance, game: str) -> Optional[Dict[str, Any]]:
    return show_result(await me.call_sync("main", "get_state", {"game_address": game}))


async def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8888)
    ap.add_argument("--instance", default="alice")
    ap.add_argument("--game", default=None)
    args = ap.parse_args()

    uri = f"ws://{args.host}:{args.port}/ws"
    console.print(f"Connecting to {uri} as {args.instance} ...")

    async with ConductorClient(uri) as client:
        me = await client.instance(args.instance)
        game: Optional[str] = args.game

        while True:
            line = await asyncio.to_thread(input, "> ")
            line = line.strip()
            if not line:
                continue
            parts = line.split()
            cmd = parts[0].lower()

            if cmd in ("quit", "exit"):
                break
            if cmd == "help":
                console.print(HELP)
                continue

            try:
                if cmd == "whoami":
                    console.print(me.agent_id)

                elif cmd == "instances":
                    t = Table(show_header=True, header_style="bold")
                    t.add_column("Instance")
                    t.add_column("Agent")
                    t.add_column("DNA")
                    for info in await client.instances():
                        t.add_row(info["id"], info["agent_id"], info["dna"])
                    console.print(t)

                elif cmd == "create":
                    opponent = parts[1]
                    for info in await client.instances():
                        if info["id"] == opponent:
                            opponent = info["agent_id"]
                    addr = show_result(await me.call_sync("main", "create_game", {
                        "opponent": opponent,
                        "timestamp": int(time.time()),
                    }))
                    if addr:
                        game = addr
                        console.print(f"[green]game:[/green] {game}")

                elif cmd == "use":
                    game = parts[1]

                elif cmd in ("suggest", "predict", "swap"):
                    if not game:
                        raise ValueError("no game selected; use 'create' or 'use'")
                    move_type = parse_move(cmd, parts)
                    addr = show_result(await me.call_sync("main", "make_move", {
                        "new_move": {"game": game, "move_type": move_type, "timestamp": int(time.time())},
                    }))
                    if addr:
                        console.print(f"[green]move:[/green] {addr}")

                elif cmd in ("state", "moves"):
                    if not game:
                        raise ValueError("no game selected; use 'create' or 'use'")
                    state = await _fetch_state(me, game)
                    if state is not None:
                        if cmd == "state":
                            print_state(state, game)
                        else:
                            print_moves(state.get("moves", []))

                elif cmd == "render":
                    if not game:
                        raise ValueError("no game selected; use 'create' or 'use'")
                    text = show_result(await me.call_sync("main", "render_state", {"game_address": game}))
                    if text is not None:
                        console.print(text, markup=False)

                else:
                    console.print("Unknown command. Type 'help'.")
            except (IndexError, ValueError) as exc:
                console.print(f"Bad command format: {exc}. Type 'help'.")
            except ConductorError as exc:
                console.print(f"[red]CONDUCTOR:[/red] {exc.code}: {exc.message}")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
