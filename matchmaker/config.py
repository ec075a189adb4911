from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Tuple

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DNA_PATH = ROOT / "dist" / "matchmaker-tats.dna.json"
DEFAULT_DNA_NAME = "matchmaker-tats"

LogLevel = Literal["critical", "error", "warning", "info", "debug"]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass
class ConductorConfig:
    debug_log: bool = False
    gossip_delay: float = 0.0
    sync_timeout: float = 10.0

    @classmethod
    def from_env(cls, debug_log: Optional[bool] = None) -> "ConductorConfig":
        cfg = cls(
            debug_log=_env_bool("MATCHMAKER_DEBUG_LOG", False),
            gossip_delay=_env_float("MATCHMAKER_GOSSIP_DELAY", 0.0),
            sync_timeout=_env_float("MATCHMAKER_SYNC_TIMEOUT", 10.0),
        )
        if debug_log is not None:
            cfg.debug_log = debug_log
        return cfg


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8888
    dna_path: Path = DEFAULT_DNA_PATH
    dna_name: str = DEFAULT_DNA_NAME
    instances: Tuple[str, ...] = ("alice", "bob")
    log_level: LogLevel = "warning"
    conductor: ConductorConfig = field(default_factory=ConductorConfig)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        names = os.getenv("MATCHMAKER_INSTANCES", "alice,bob")
        return cls(
            host=os.getenv("MATCHMAKER_HOST", "127.0.0.1"),
            port=int(os.getenv("MATCHMAKER_PORT", "8888")),
            dna_path=Path(os.getenv("MATCHMAKER_DNA", str(DEFAULT_DNA_PATH))),
            instances=tuple(n.strip() for n in names.split(",") if n.strip()),
            conductor=ConductorConfig.from_env(),
        )
