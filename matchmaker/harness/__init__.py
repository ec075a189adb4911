from matchmaker.harness.executor import Assertions, AssertionRecord, ScenarioRun, TapExecutor
from matchmaker.harness.faults import PREFIX as UNHANDLED_PREFIX, install_unhandled_handler
from matchmaker.harness.middleware import backward_compatibility_middleware, compose, identity
from matchmaker.harness.orchestrator import Orchestrator, ScenarioApi
