"""Unit tests for the root process tree."""

import asyncio

import pytest

from netsup.apps.netsup_core.main import COLLABORATORS, NETWORK, build_root_specs, run_root
from netsup.config import NetsupConfig
from netsup.infrastructure.driver import MockNetworkDriver
from netsup.infrastructure.storage import MemoryConfigStore
from netsup.tools.supervisor import RestartPolicy


class Idle:
    def __init__(self) -> None:
        self.started = 0

    async def run(self) -> None:
        self.started += 1
        await asyncio.Event().wait()


def test_specs_follow_collaborator_order_then_network():
    collaborators = {name: Idle() for name in reversed(COLLABORATORS)}

    specs = build_root_specs(collaborators, network_factory=lambda: None)

    assert [s.name for s in specs] == list(COLLABORATORS) + [NETWORK]
    assert all(s.restart is RestartPolicy.PERMANENT for s in specs)


def test_missing_collaborators_are_omitted():
    specs = build_root_specs({"serial": Idle()}, network_factory=lambda: None)

    assert [s.name for s in specs] == ["serial", NETWORK]


def test_unknown_collaborator_rejected():
    with pytest.raises(ValueError):
        build_root_specs({"printer": Idle()}, network_factory=lambda: None)


@pytest.mark.asyncio
async def test_run_root_starts_network_and_collaborators():
    cfg = NetsupConfig(supervisor={"status_interval_secs": 0.01})
    driver = MockNetworkDriver()
    store = MemoryConfigStore(records=[{"name": "eth0", "type": "wired"}])
    serial = Idle()
    stop = asyncio.Event()

    task = asyncio.create_task(run_root(cfg, driver, store, collaborators={"serial": serial}, stop_event=stop))
    await asyncio.sleep(0.05)

    assert serial.started == 1
    assert "eth0" in driver.up

    stop.set()
    await asyncio.wait_for(task, timeout=2.0)
    assert driver.up == {}
