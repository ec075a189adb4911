"""In-process simulated runtime.

A ``Conductor`` hosts named instances of a DNA over one shared ``Dht``.
Commits land on the author's source chain at once and reach the DHT through
a publish task, so other agents only see them after ``consistency()``.
"""
from __future__ import annotations

import asyncio
import inspect
import json
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from rich.console import Console

from matchmaker.address import agent_address, hash_content
from matchmaker.config import ConductorConfig
from matchmaker.dna import Dna, DnaValidationError
from matchmaker.result import CallResult, Err, Ok, err, to_wire


class ConsistencyTimeout(Exception):
    def __init__(self, pending: int, timeout: float):
        super().__init__(f"{pending} publishes still pending after {timeout}s")
        self.pending = pending
        self.timeout = timeout


@dataclass(frozen=True)
class Bridge:
    handle: str
    caller: str
    callee: str


@dataclass(frozen=True)
class ChainEntry:
    address: str
    entry_type: str
    content: Any


@dataclass
class SourceChain:
    entries: List[ChainEntry] = field(default_factory=list)
    links: List[Tuple[str, str]] = field(default_factory=list)

    def get(self, address: str) -> Optional[ChainEntry]:
        for e in self.entries:
            if e.address == address:
                return e
        return None


class Dht:
    def __init__(self):
        self.entries: Dict[str, Tuple[str, Any]] = {}
        self.links: Dict[str, List[str]] = {}

    def put(self, address: str, entry_type: str, content: Any) -> None:
        self.entries.setdefault(address, (entry_type, content))

    def get(self, address: str) -> Optional[Tuple[str, Any]]:
        return self.entries.get(address)

    def add_link(self, base: str, target: str) -> None:
        targets = self.links.setdefault(base, [])
        if target not in targets:
            targets.append(target)

    def links_from(self, base: str) -> List[str]:
        return list(self.links.get(base, []))


class CallContext:
    """What a zome function sees of the runtime during one call."""

    def __init__(self, instance: "Instance"):
        self.instance = instance
        self.conductor = instance.conductor

    @property
    def agent_id(self) -> str:
        return self.instance.agent_id

    def get_entry(self, address: str) -> Optional[Tuple[str, Any]]:
        own = self.instance.chain.get(address)
        if own is not None:
            return own.entry_type, own.content
        return self.conductor.dht.get(address)

    def get_links(self, base: str) -> List[str]:
        out = self.conductor.dht.links_from(base)
        for b, target in self.instance.chain.links:
            if b == base and target not in out:
                out.append(target)
        return out

    def commit_entry(self, entry_type: str, content: Any) -> str:
        validate = self.instance.dna.validator(entry_type)
        if validate is not None:
            validate(self, content)
        address = hash_content(entry_type, content)
        if self.instance.chain.get(address) is None:
            # the chain only changes once the publish is scheduled
            self.conductor._publish(lambda: self.conductor.dht.put(address, entry_type, content), f"{entry_type} {address}")
            entry = ChainEntry(address=address, entry_type=entry_type, content=content)
            self.instance.chain.entries.append(entry)
            self.conductor._log(f"{self.instance.name} commit {entry_type} {address}")
        return address

    def link_entries(self, base: str, target: str) -> None:
        self.conductor._publish(lambda: self.conductor.dht.add_link(base, target), f"link {base} -> {target}")
        self.instance.chain.links.append((base, target))
        self.conductor._log(f"{self.instance.name} link {base} -> {target}")

    def call(self, handle: str, zome: str, function: str, params: Optional[Dict[str, Any]] = None) -> CallResult:
        bridge = self.conductor.bridge_for(self.instance.name, handle)
        if bridge is None:
            return err("bridge_not_found", f"no bridge {handle!r} from {self.instance.name}")
        return self.conductor.instance(bridge.callee).dispatch(zome, function, params)


class Instance:
    def __init__(self, conductor: "Conductor", name: str, dna: Dna, agent_id: Optional[str] = None):
        self.conductor = conductor
        self.name = name
        self.dna = dna
        self.agent_id = agent_id or agent_address(name)
        self.chain = SourceChain()

    def __repr__(self) -> str:
        return f"Instance({self.name!r}, agent_id={self.agent_id!r})"

    def dispatch(self, zome: str, function: str, params: Optional[Dict[str, Any]] = None) -> CallResult:
        self.conductor._log(f"{self.name} call {zome}/{function} {json.dumps(params, sort_keys=True, default=str)}")
        result = self._dispatch(zome, function, params)
        self.conductor._log(f"{self.name} {zome}/{function} -> {json.dumps(to_wire(result), default=str)}")
        return result

    def _dispatch(self, zome: str, function: str, params: Optional[Dict[str, Any]]) -> CallResult:
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return err("invalid_args", "params must be an object")
        try:
            fn = self.dna.resolve(zome, function)
        except DnaValidationError as exc:
            return err("not_found", str(exc), exc.details)
        ctx = CallContext(self)
        try:
            inspect.signature(fn).bind(ctx, **params)
        except TypeError as exc:
            return err("invalid_args", str(exc), {"function": f"{zome}/{function}"})
        try:
            result = fn(ctx, **params)
        except Exception as exc:
            return err("internal", str(exc), {"exception": traceback.format_exc()})
        if not isinstance(result, (Ok, Err)):
            return err("internal", f"{zome}/{function} did not return a call result")
        return result

    async def call(self, zome: str, function: str, params: Optional[Dict[str, Any]] = None) -> CallResult:
        result = self.dispatch(zome, function, params)
        await asyncio.sleep(0)
        return result

    async def call_sync(self, zome: str, function: str, params: Optional[Dict[str, Any]] = None) -> CallResult:
        """Call, then wait until everything the call published is visible network-wide."""
        result = await self.call(zome, function, params)
        await self.conductor.consistency()
        return result


class Conductor:
    def __init__(
        self,
        instances: Dict[str, Dna],
        bridges: Optional[List[Bridge]] = None,
        config: Optional[ConductorConfig] = None,
        console: Optional[Console] = None,
    ):
        self.config = config or ConductorConfig()
        self.console = console or Console(stderr=True)
        self.dht = Dht()
        self.logs: List[str] = []
        self._pending: Set[asyncio.Task] = set()
        self.instances: Dict[str, Instance] = {
            name: Instance(self, name, dna) for name, dna in instances.items()
        }
        self.bridges: List[Bridge] = list(bridges or [])
        for b in self.bridges:
            for end in (b.caller, b.callee):
                if end not in self.instances:
                    raise ValueError(f"bridge {b.handle!r} references unknown instance {end!r}")

    def _log(self, msg: str) -> None:
        self.logs.append(str(msg))
        if self.config.debug_log:
            self.console.print(msg, markup=False, highlight=False, style="dim")

    def instance(self, name: str) -> Instance:
        inst = self.instances.get(name)
        if inst is None:
            raise KeyError(f"unknown instance: {name}")
        return inst

    def bridge_for(self, caller: str, handle: str) -> Optional[Bridge]:
        for b in self.bridges:
            if b.caller == caller and b.handle == handle:
                return b
        return None

    def _publish(self, apply, what: str) -> None:
        delay = self.config.gossip_delay
        if delay <= 0:
            apply()
            self._log(f"published {what}")
            return
        loop = asyncio.get_running_loop()

        async def _later():
            await asyncio.sleep(delay)
            apply()
            self._log(f"published {what}")

        task = loop.create_task(_later())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def consistency(self, timeout: Optional[float] = None) -> None:
        timeout = self.config.sync_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self._pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ConsistencyTimeout(len(self._pending), timeout)
            await asyncio.wait(list(self._pending), timeout=remaining)
