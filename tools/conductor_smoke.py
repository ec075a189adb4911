from __future__ import annotations

import argparse
import asyncio
import socket
import sys
import threading
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import uvicorn

from matchmaker import server
from matchmaker.config import ServerConfig
from matchmaker.harness import ScenarioRun, TapExecutor
from matchmaker.net_client import ConductorClient
from tests.run_all import _load_scenarios


def _find_free_port() -> int:
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def _start_server(port: int):
    config = uvicorn.Config(server.app, host="127.0.0.1", port=port, log_level="warning")
    srv = uvicorn.Server(config)
    thread = threading.Thread(target=srv.run, daemon=True)
    thread.start()
    start = time.time()
    while not srv.started and time.time() - start < 5:
        time.sleep(0.05)
    if not srv.started:
        srv.should_exit = True
        raise RuntimeError("Server failed to start")
    return srv, thread


def _remote_run(url: str, fn):
    async def run(t):
        async with ConductorClient(url) as client:
            instances = {info["id"]: await client.instance(info["id"]) for info in await client.instances()}
            await fn(None, t, instances)

    return run


async def _run(port: int) -> int:
    url = f"ws://127.0.0.1:{port}/ws"
    runs = [ScenarioRun(name=sc["name"], run=_remote_run(url, sc["run"])) for sc in _load_scenarios()]
    return await TapExecutor().execute(runs)


def main() -> int:
    ap = argparse.ArgumentParser(description="Run the scenarios against a conductor served over websocket")
    ap.add_argument("--gossip-delay", type=float, default=None)
    args = ap.parse_args()

    cfg = ServerConfig.from_env()
    if args.gossip_delay is not None:
        cfg.conductor.gossip_delay = args.gossip_delay
    server.configure(server.build_conductor(cfg))

    port = _find_free_port()
    srv, thread = _start_server(port)
    try:
        code = asyncio.run(_run(port))
    finally:
        srv.should_exit = True
        thread.join(timeout=5)
    print("PASS: conductor smoke" if code == 0 else "FAIL: conductor smoke")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
