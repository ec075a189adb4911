from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import websockets

from matchmaker import protocol
from matchmaker.result import CallResult, from_wire


class ConductorError(Exception):
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class ConductorClient:
    """JSON-RPC client for a conductor's websocket interface.

    Requests on one client are serialized; each waits at most ``timeout``
    seconds for its reply.
    """

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self._ws = None
        self._next_id = 0
        self._lock = asyncio.Lock()

    async def connect(self) -> "ConductorClient":
        self._ws = await websockets.connect(self.url)
        return self

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def __aenter__(self) -> "ConductorClient":
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if self._ws is None:
            raise ConductorError("not_connected", "client is not connected")
        async with self._lock:
            self._next_id += 1
            rid = self._next_id
            await self._ws.send(json.dumps(protocol.request(rid, method, params)))
            loop = asyncio.get_running_loop()
            end = loop.time() + self.timeout
            while True:
                remaining = end - loop.time()
                if remaining <= 0:
                    raise ConductorError("timeout", f"no reply to {method} within {self.timeout}s")
                try:
                    raw = await asyncio.wait_for(self._ws.recv(), timeout=remaining)
                except asyncio.TimeoutError as exc:
                    raise ConductorError("timeout", f"no reply to {method} within {self.timeout}s") from exc
                data = json.loads(raw)
                if data.get("id") not in (rid, None):
                    continue
                if "error" in data:
                    err = data["error"] or {}
                    raise ConductorError(err.get("code", "error"), err.get("message", "error"), err.get("detail"))
                return data.get("result")

    async def instances(self) -> List[Dict[str, Any]]:
        return await self.request("info/instances")

    async def consistency(self) -> None:
        await self.request("consistency")

    async def call(self, instance_id: str, zome: str, function: str,
                   args: Optional[Dict[str, Any]] = None) -> CallResult:
        reply = await self.request("call", {
            "instance_id": instance_id,
            "zome": zome,
            "function": function,
            "args": args or {},
        })
        return from_wire(reply)

    async def instance(self, instance_id: str) -> "RemoteInstance":
        for info in await self.instances():
            if info.get("id") == instance_id:
                return RemoteInstance(self, instance_id, info["agent_id"])
        raise ConductorError("not_found", f"unknown instance: {instance_id}")


class RemoteInstance:
    """Instance handle backed by a remote conductor; same surface as a local ``Instance``."""

    def __init__(self, client: ConductorClient, name: str, agent_id: str):
        self.client = client
        self.name = name
        self.agent_id = agent_id

    def __repr__(self) -> str:
        return f"RemoteInstance({self.name!r}, agent_id={self.agent_id!r})"

    async def call(self, zome: str, function: str, params: Optional[Dict[str, Any]] = None) -> CallResult:
        return await self.client.call(self.name, zome, function, params)

    async def call_sync(self, zome: str, function: str, params: Optional[Dict[str, Any]] = None) -> CallResult:
        result = await self.call(zome, function, params)
        await self.client.consistency()
        return result
