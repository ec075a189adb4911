from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from rich.console import Console

from matchmaker.conductor import Bridge, Conductor, Instance
from matchmaker.config import ConductorConfig
from matchmaker.dna import Dna
from matchmaker.harness.executor import Assertions, ScenarioRun, TapExecutor
from matchmaker.harness.faults import UnhandledFaults, install_unhandled_handler
from matchmaker.harness.middleware import Middleware, Scenario, identity


class ScenarioApi:
    """The ``s`` handle a scenario receives."""

    def __init__(self, conductor: Conductor):
        self.conductor = conductor

    @property
    def instances(self) -> Dict[str, Instance]:
        return dict(self.conductor.instances)

    def instance(self, name: str) -> Instance:
        return self.conductor.instance(name)

    async def consistency(self) -> None:
        await self.conductor.consistency()

    @property
    def logs(self) -> List[str]:
        return self.conductor.logs


class Orchestrator:
    def __init__(
        self,
        instances: Dict[str, Dna],
        bridges: Optional[List[Bridge]] = None,
        debug_log: Optional[bool] = None,
        executor=None,
        middleware: Optional[Middleware] = None,
        config: Optional[ConductorConfig] = None,
        console: Optional[Console] = None,
    ):
        if not instances:
            raise ValueError("at least one instance is required")
        self.instances = dict(instances)
        self.bridges = list(bridges or [])
        self.config = config or ConductorConfig.from_env(debug_log=debug_log)
        self.console = console or Console(stderr=True)
        self.executor = executor or TapExecutor()
        self.middleware = middleware or identity
        self.faults: Optional[UnhandledFaults] = None
        self._scenarios: Dict[str, Scenario] = {}
        # raises on bridges that name unknown instances
        self.build_conductor()

    def register_scenario(self, name: str, fn: Scenario) -> None:
        if name in self._scenarios:
            raise ValueError(f"scenario already registered: {name}")
        self._scenarios[name] = fn

    @property
    def scenario_names(self) -> List[str]:
        return list(self._scenarios)

    def build_conductor(self) -> Conductor:
        return Conductor(self.instances, bridges=self.bridges, config=self.config, console=self.console)

    def _runner(self, fn: Scenario):
        wrapped = self.middleware(fn)

        async def run(t: Assertions) -> None:
            conductor = self.build_conductor()
            t.logs = conductor.logs
            await wrapped(ScenarioApi(conductor), t)

        return run

    def scenario_runs(self) -> List[ScenarioRun]:
        return [ScenarioRun(name=name, run=self._runner(fn)) for name, fn in self._scenarios.items()]

    async def run_async(self) -> int:
        self.faults = install_unhandled_handler(asyncio.get_running_loop(), self.console)
        return await self.executor.execute(self.scenario_runs())

    def run(self) -> int:
        return asyncio.run(self.run_async())
