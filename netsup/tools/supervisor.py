from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class RestartPolicy(str, Enum):
    PERMANENT = "permanent"  # always restarted
    TRANSIENT = "transient"  # restarted only after an abnormal exit
    TEMPORARY = "temporary"  # never restarted


@dataclass
class ChildSpec:
    name: str
    start: Callable[[], Awaitable[Any]]
    restart: RestartPolicy = RestartPolicy.PERMANENT
    enabled: bool = True


@dataclass
class ChildState:
    task: asyncio.Task | None = None
    failures: int = 0
    restarts: int = 0
    last_start_ts: float = 0.0
    last_error: str | None = None


class RestartIntensityExceeded(RuntimeError):
    pass


class TaskSupervisor:
    """
    One-for-one supervisor for asyncio tasks.

    A child that exits is restarted according to its policy without touching
    its siblings. More than ``max_restarts`` restarts within ``max_seconds``
    stops every child and fails ``wait()`` with ``RestartIntensityExceeded``
    so that the owner of this supervisor can decide what happens next.
    """

    def __init__(self, name: str, max_restarts: int = 3, max_seconds: float = 5.0) -> None:
        self.name = name
        self.max_restarts = max_restarts
        self.max_seconds = max_seconds
        self.specs: dict[str, ChildSpec] = {}
        self.name_to_state: dict[str, ChildState] = {}
        self.child_failures_total: dict[str, int] = {}
        self.child_restarts_total: dict[str, int] = {}
        self._restart_times: deque[float] = deque()
        self._done: asyncio.Future[None] | None = None
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._done is not None and not self._done.done()

    async def start(self, specs: Iterable[ChildSpec] = ()) -> None:
        """Start children in order."""
        self._done = asyncio.get_running_loop().create_future()
        self._stopping = False
        for spec in specs:
            self.start_child(spec)
        logger.info("Supervisor %s started with %d children", self.name, len(self.specs))

    def start_child(self, spec: ChildSpec) -> None:
        state = self.name_to_state.get(spec.name)
        if state and state.task and not state.task.done():
            raise ValueError(f"child {spec.name} already started under {self.name}")
        self.specs[spec.name] = spec
        self.name_to_state[spec.name] = ChildState()
        if spec.enabled:
            self._launch(spec)

    def _launch(self, spec: ChildSpec) -> None:
        state = self.name_to_state[spec.name]
        state.task = asyncio.create_task(spec.start(), name=f"{self.name}:{spec.name}")
        state.last_start_ts = time.time()
        state.task.add_done_callback(lambda task, name=spec.name: self._on_exit(name, task))

    def _on_exit(self, name: str, task: asyncio.Task) -> None:
        state = self.name_to_state.get(name)
        if state is None or state.task is not task:
            # terminated on purpose or already replaced
            return
        state.task = None
        if self._stopping:
            return

        spec = self.specs[name]
        exc = None if task.cancelled() else task.exception()
        abnormal = task.cancelled() or exc is not None
        if abnormal:
            state.failures += 1
            state.last_error = "cancelled" if exc is None else repr(exc)
            self.child_failures_total[name] = self.child_failures_total.get(name, 0) + 1
            logger.error("Child %s of %s exited abnormally: %s", name, self.name, state.last_error)
        else:
            logger.info("Child %s of %s exited normally", name, self.name)

        if spec.restart is RestartPolicy.PERMANENT or (spec.restart is RestartPolicy.TRANSIENT and abnormal):
            if not self._record_restart():
                self._escalate(
                    RestartIntensityExceeded(
                        f"{self.name}: more than {self.max_restarts} restarts in {self.max_seconds}s"
                    )
                )
                return
            state.restarts += 1
            self.child_restarts_total[name] = self.child_restarts_total.get(name, 0) + 1
            self._launch(spec)
        elif spec.restart is RestartPolicy.TEMPORARY:
            del self.specs[name]
            del self.name_to_state[name]

    def _record_restart(self) -> bool:
        now = time.monotonic()
        self._restart_times.append(now)
        while self._restart_times and now - self._restart_times[0] > self.max_seconds:
            self._restart_times.popleft()
        return len(self._restart_times) <= self.max_restarts

    def _escalate(self, exc: BaseException) -> None:
        logger.critical("Supervisor %s giving up: %s", self.name, exc)
        self._stopping = True
        for state in self.name_to_state.values():
            if state.task and not state.task.done():
                state.task.cancel()
        if self._done is not None and not self._done.done():
            self._done.set_exception(exc)

    async def terminate_child(self, name: str) -> None:
        """Stop ``name`` without restarting it and forget its spec."""
        self.specs.pop(name, None)
        state = self.name_to_state.pop(name, None)
        if state is None or state.task is None:
            return
        state.task.cancel()
        await asyncio.gather(state.task, return_exceptions=True)
        logger.info("Child %s of %s terminated", name, self.name)

    def which_children(self) -> list[dict[str, Any]]:
        return [
            {
                "name": name,
                "restart": spec.restart.value,
                "running": bool(self.name_to_state[name].task),
                "restarts": self.name_to_state[name].restarts,
                "failures": self.name_to_state[name].failures,
            }
            for name, spec in self.specs.items()
        ]

    async def wait(self) -> None:
        """Block until stopped; raises ``RestartIntensityExceeded`` on escalation."""
        if self._done is None:
            raise RuntimeError(f"supervisor {self.name} not started")
        await asyncio.shield(self._done)

    async def stop(self) -> None:
        """Stop children in reverse start order."""
        self._stopping = True
        tasks = []
        for name in reversed(list(self.name_to_state)):
            task = self.name_to_state[name].task
            if task and not task.done():
                task.cancel()
                tasks.append(task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for state in self.name_to_state.values():
            state.task = None
        if self._done is not None and not self._done.done():
            self._done.set_result(None)
        logger.info("Supervisor %s stopped", self.name)

    async def run(self, specs: Iterable[ChildSpec] = ()) -> None:
        """Start, wait and always stop; suitable as a child of another supervisor."""
        await self.start(specs)
        try:
            await self.wait()
        finally:
            await self.stop()
