from __future__ import annotations

import asyncio
import sys
import types

import pytest

from matchmaker import dna as dna_mod
from matchmaker.conductor import Bridge, ConsistencyTimeout
from matchmaker.config import ConductorConfig
from matchmaker.result import Ok, err
from tests.harness.driver import (
    GameDriver,
    console_text,
    make_conductor,
    quiet_console,
    run,
    suggest,
)


@pytest.fixture
def scratch_dna(monkeypatch):
    mod = types.ModuleType("scratch_zome")

    def boom(ctx):
        raise RuntimeError("kaboom")

    def not_a_result(ctx):
        return 1

    def whoami(ctx):
        return Ok(ctx.agent_id)

    def ask_peer(ctx, handle):
        return ctx.call(handle, "main", "whoami")

    def note(ctx, text):
        return Ok(ctx.commit_entry("note", {"text": text}))

    def reject(ctx, content):
        if not content.get("text"):
            raise ValueError("empty note")

    mod.boom = boom
    mod.not_a_result = not_a_result
    mod.whoami = whoami
    mod.ask_peer = ask_peer
    mod.note = note
    mod.VALIDATORS = {"note": reject}
    monkeypatch.setitem(sys.modules, "scratch_zome", mod)
    return dna_mod.from_data({"version": 1, "name": "scratch", "zomes": {
        "main": {
            "module": "scratch_zome",
            "entry_types": ["note"],
            "functions": ["boom", "not_a_result", "whoami", "ask_peer", "note", "missing"],
        },
    }})


def test_other_agents_see_commits_only_after_consistency():
    async def scenario():
        driver = GameDriver(make_conductor(gossip_delay=0.05))
        bob_id = driver.conductor.instance("bob").agent_id
        alice = driver.conductor.instance("alice")
        bob = driver.conductor.instance("bob")

        created = await alice.call("main", "create_game", {"opponent": bob_id, "timestamp": 0})
        game = created.ok
        assert driver.conductor.pending > 0

        # author reads its own chain right away
        mine = await alice.call("main", "get_state", {"game_address": game})
        assert mine.err is None
        theirs = await bob.call("main", "get_state", {"game_address": game})
        assert theirs.err["code"] == "not_found"

        await driver.conductor.consistency()
        assert driver.conductor.pending == 0
        theirs = await bob.call("main", "get_state", {"game_address": game})
        assert theirs.err is None

    run(scenario())


def test_call_sync_returns_after_publishes_land():
    async def scenario():
        conductor = make_conductor(gossip_delay=0.02)
        bob_id = conductor.instance("bob").agent_id
        result = await conductor.instance("alice").call_sync(
            "main", "create_game", {"opponent": bob_id, "timestamp": 0},
        )
        assert conductor.pending == 0
        assert conductor.dht.get(result.ok)[0] == "game"

    run(scenario())


def test_consistency_timeout():
    async def scenario():
        conductor = make_conductor(gossip_delay=5.0, sync_timeout=0.01)
        bob_id = conductor.instance("bob").agent_id
        await conductor.instance("alice").call("main", "create_game", {"opponent": bob_id, "timestamp": 0})
        with pytest.raises(ConsistencyTimeout) as info:
            await conductor.consistency()
        assert info.value.pending == 1
        for task in list(conductor._pending):
            task.cancel()

    run(scenario())


def test_fresh_conductors_share_nothing():
    async def scenario():
        first = GameDriver()
        game = await first.create_game()
        second = make_conductor()
        assert second.instance("alice").agent_id != first.conductor.instance("alice").agent_id
        found = await second.instance("alice").call("main", "get_state", {"game_address": game})
        assert found.err["code"] == "not_found"

    run(scenario())


def test_call_errors_come_back_as_err(scratch_dna):
    async def scenario():
        conductor = make_conductor(dna=scratch_dna)
        alice = conductor.instance("alice")

        assert (await alice.call("main", "boom")).err["code"] == "internal"
        assert "RuntimeError" in (await alice.call("main", "boom")).err["details"]["exception"]
        assert (await alice.call("main", "not_a_result")).err["code"] == "internal"
        assert (await alice.call("main", "missing")).err["code"] == "not_found"
        assert (await alice.call("main", "nope")).err["code"] == "not_found"
        assert (await alice.call("other", "whoami")).err["code"] == "not_found"
        assert (await alice.call("main", "whoami", {"extra": 1})).err["code"] == "invalid_args"
        assert (await alice.call("main", "whoami", [1])).err["code"] == "invalid_args"

    run(scenario())


def test_validation_failures_reject_commits(scratch_dna):
    async def scenario():
        conductor = make_conductor(dna=scratch_dna)
        alice = conductor.instance("alice")
        result = await alice.call_sync("main", "note", {"text": ""})
        assert result.err["code"] == "internal"
        assert alice.chain.entries == []
        assert conductor.dht.entries == {}

        result = await alice.call_sync("main", "note", {"text": "hi"})
        assert result.ok in conductor.dht.entries

    run(scenario())


def test_bridges(scratch_dna):
    async def scenario():
        conductor = make_conductor(dna=scratch_dna, bridges=[Bridge("peer", "alice", "bob")])
        bob_id = conductor.instance("bob").agent_id
        assert await conductor.instance("alice").call("main", "ask_peer", {"handle": "peer"}) == Ok(bob_id)
        missing = await conductor.instance("bob").call("main", "ask_peer", {"handle": "peer"})
        assert missing == err("bridge_not_found", "no bridge 'peer' from bob")

    run(scenario())


def test_bridge_to_unknown_instance_rejected(scratch_dna):
    with pytest.raises(ValueError):
        make_conductor(dna=scratch_dna, bridges=[Bridge("peer", "alice", "carol")])


def test_unknown_instance_lookup():
    with pytest.raises(KeyError):
        make_conductor().instance("carol")


@pytest.mark.parametrize("debug_log", [True, False])
def test_debug_log_goes_to_console_only_when_enabled(debug_log):
    console = quiet_console()

    async def scenario():
        conductor = make_conductor(console=console, debug_log=debug_log)
        await conductor.instance("alice").call("main", "whoami")
        return conductor

    conductor = run(scenario())
    assert any("alice call main/whoami" in line for line in conductor.logs)
    assert ("alice call main/whoami" in console_text(console)) is debug_log


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("MATCHMAKER_DEBUG_LOG", "yes")
    monkeypatch.setenv("MATCHMAKER_GOSSIP_DELAY", "0.25")
    cfg = ConductorConfig.from_env()
    assert cfg.debug_log is True and cfg.gossip_delay == 0.25
    assert ConductorConfig.from_env(debug_log=False).debug_log is False


def test_moves_made_without_sync_are_invisible_to_opponent():
    async def scenario():
        driver = GameDriver(make_conductor(gossip_delay=0.05))
        await driver.create_game()
        moved = await driver.move("bob", suggest(4), sync=False)
        assert moved.err is None
        state = await driver.do("alice", "get_state", {"game_address": driver.game}, sync=False)
        assert state.ok["moves"] == []
        await driver.conductor.consistency()
        state = await driver.state("alice")
        assert len(state.moves) == 1

    run(scenario())


def test_call_yields_to_the_loop():
    async def scenario():
        conductor = make_conductor()
        seen = []
        asyncio.get_running_loop().call_soon(seen.append, "tick")
        await conductor.instance("alice").call("main", "whoami")
        return seen

    assert run(scenario()) == ["tick"]


def test_failed_publish_leaves_chain_untouched():
    conductor = make_conductor(gossip_delay=0.05)
    alice = conductor.instance("alice")
    params = {"opponent": conductor.instance("bob").agent_id, "timestamp": 0}

    # no running loop, so the delayed publish cannot be scheduled
    result = alice.dispatch("main", "create_game", params)
    assert result.err["code"] == "internal"
    assert alice.chain.entries == []
    assert conductor.pending == 0

    async def retry():
        created = await alice.call_sync("main", "create_game", params)
        seen = await conductor.instance("bob").call("main", "get_state", {"game_address": created.ok})
        return created, seen

    created, seen = run(retry())
    assert created.err is None
    assert len(alice.chain.entries) == 1
    assert conductor.dht.get(created.ok)[0] == "game"
    assert seen.err is None
