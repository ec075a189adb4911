from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

JSONRPC = "2.0"

RequestId = Union[int, str]


def _err(code: str, message: str, detail: Optional[Dict[str, Any]] = None):
    return {
        "ok": False,
        "error": {"code": code, "message": message, "detail": detail or {}},
    }


def validate_request(msg: Any) -> Dict[str, Any]:
    if not isinstance(msg, dict):
        return _err("invalid", "message must be object")
    if msg.get("jsonrpc") != JSONRPC:
        return _err("invalid", "jsonrpc must be 2.0")
    rid = msg.get("id")
    if isinstance(rid, bool) or not isinstance(rid, (int, str)):
        return _err("invalid", "id must be int or string")
    method = msg.get("method")
    if not isinstance(method, str):
        return _err("invalid", "method must be string")
    params = msg.get("params", {})
    if params is None:
        params = {}
    if not isinstance(params, dict):
        return _err("invalid", "params must be object")

    if method == "call":
        for key in ("instance_id", "zome", "function"):
            if not isinstance(params.get(key), str) or not params.get(key):
                return _err("invalid", f"{key} required")
        args = params.get("args", {})
        if args is not None and not isinstance(args, dict):
            return _err("invalid", "args must be object")
        return {"ok": True}

    if method in ("info/instances", "consistency"):
        return {"ok": True}

    return _err("unknown", f"unknown method: {method}")


def request(rid: RequestId, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC, "id": rid, "method": method, "params": params or {}}


def call_request(rid: RequestId, instance_id: str, zome: str, function: str,
                 args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return request(rid, "call", {
        "instance_id": instance_id,
        "zome": zome,
        "function": function,
        "args": args or {},
    })


def error_message(rid: Optional[RequestId], code: str, message: str,
                  detail: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC,
        "id": rid,
        "error": {"code": code, "message": message, "detail": detail or {}},
    }


def result_message(rid: RequestId, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC, "id": rid, "result": result}


def instances_payload(conductor) -> List[Dict[str, Any]]:
    return [
        {
            "id": inst.name,
            "agent_id": inst.agent_id,
            "dna": inst.dna.name,
            "dna_hash": inst.dna.dna_hash,
        }
        for inst in conductor.instances.values()
    ]
