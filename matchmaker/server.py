from __future__ import annotations

import argparse
import json
from typing import Any, Dict, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from matchmaker import protocol
from matchmaker.conductor import Conductor, ConsistencyTimeout
from matchmaker.config import ServerConfig
from matchmaker.dna import load_dna
from matchmaker.result import to_wire

app = FastAPI()

_conductor: Optional[Conductor] = None


def build_conductor(cfg: ServerConfig) -> Conductor:
    dna = load_dna(cfg.dna_path, cfg.dna_name)
    return Conductor({name: dna for name in cfg.instances}, config=cfg.conductor)


def configure(conductor: Optional[Conductor]) -> None:
    global _conductor
    _conductor = conductor


def get_conductor() -> Conductor:
    global _conductor
    if _conductor is None:
        _conductor = build_conductor(ServerConfig.from_env())
    return _conductor


async def _send(ws: WebSocket, obj: Dict) -> None:
    await ws.send_text(json.dumps(obj))


async def handle_request(conductor: Conductor, data: Dict[str, Any]) -> Dict[str, Any]:
    rid = data["id"]
    method = data["method"]
    params = data.get("params") or {}

    if method == "info/instances":
        return protocol.result_message(rid, protocol.instances_payload(conductor))

    if method == "consistency":
        try:
            await conductor.consistency()
        except ConsistencyTimeout as exc:
            return protocol.error_message(rid, "timeout", str(exc), {"pending": exc.pending})
        return protocol.result_message(rid, True)

    if method == "call":
        try:
            inst = conductor.instance(params["instance_id"])
        except KeyError:
            return protocol.error_message(rid, "not_found", "Instance not found", {"instance_id": params["instance_id"]})
        result = await inst.call(params["zome"], params["function"], params.get("args") or {})
        return protocol.result_message(rid, to_wire(result))

    return protocol.error_message(rid, "unknown", f"unknown method: {method}")


@app.get("/")
def root():
    conductor = get_conductor()
    names = ", ".join(conductor.instances)
    return PlainTextResponse(
        "matchmaker conductor running.\n"
        f"instances: {names}\n"
        "WS: ws://HOST:PORT/ws\n"
    )


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    conductor = get_conductor()
    try:
        while True:
            msg = await ws.receive_text()
            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                await _send(ws, protocol.error_message(None, "invalid", "Invalid JSON"))
                continue

            val = protocol.validate_request(data)
            if not val.get("ok"):
                err = val.get("error", {})
                rid = data.get("id") if isinstance(data, dict) else None
                await _send(ws, protocol.error_message(rid, err.get("code", "invalid"), err.get("message", "invalid"), err.get("detail")))
                continue

            await _send(ws, await handle_request(conductor, data))
    except WebSocketDisconnect:
        return


def main():
    import uvicorn

    cfg = ServerConfig.from_env()
    ap = argparse.ArgumentParser(description="Serve a conductor over websocket JSON-RPC")
    ap.add_argument("--host", default=cfg.host)
    ap.add_argument("--port", type=int, default=cfg.port)
    args = ap.parse_args()

    configure(build_conductor(cfg))
    uvicorn.run(app, host=args.host, port=args.port, log_level=cfg.log_level)


if __name__ == "__main__":
    main()
