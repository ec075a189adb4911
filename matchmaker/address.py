from __future__ import annotations

import hashlib
import json
import secrets
from typing import Any, Optional

B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

# multihash header for a sha2-256 digest
SHA2_256 = 0x12
DIGEST_LEN = 32

ADDRESS_LEN = 46
ADDRESS_PREFIX = "Qm"

AGENT_ENTRY_TYPE = "%agent_id"


def canonical_json(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def b58encode(raw: bytes) -> str:
    n = int.from_bytes(raw, "big")
    out = []
    while n > 0:
        n, rem = divmod(n, 58)
        out.append(B58_ALPHABET[rem])
    pad = len(raw) - len(raw.lstrip(b"\0"))
    return "1" * pad + "".join(reversed(out))


def multihash(data: bytes) -> bytes:
    return bytes([SHA2_256, DIGEST_LEN]) + hashlib.sha256(data).digest()


def hash_content(entry_type: str, content: Any) -> str:
    """Address of an entry: base58 multihash of its canonical JSON form."""
    return b58encode(multihash(canonical_json({"type": entry_type, "content": content})))


def agent_address(nick: str, key: Optional[str] = None) -> str:
    key = key or secrets.token_hex(16)
    return hash_content(AGENT_ENTRY_TYPE, {"nick": nick, "key": key})


def is_address(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    if len(value) != ADDRESS_LEN or not value.startswith(ADDRESS_PREFIX):
        return False
    return all(ch in B58_ALPHABET for ch in value)
