from typing import List

import pytest

from CommandFramework.core.Action import Action
from CommandFramework.core.ActionScheduler import ActionScheduler
from CommandFramework.core.DebugInterface import DebugInterface
from CommandFramework.core.SchedulerConfig import SchedulerConfig


class RecordingAction(Action):
    """Appends every lifecycle call to a shared log."""

    def __init__(self, log: List[tuple], name: str, *requirements, finish_after: int = None, **kwargs):
        super().__init__(*requirements, uuid=name, **kwargs)
        self.log = log
        self.finish_after = finish_after
        self.executions = 0

    def initialize(self):
        self.executions = 0
        self.log.append((self.uuid, "initialize"))

    def execute(self):
        self.executions += 1
        self.log.append((self.uuid, "execute"))

    def is_finished(self):
        return self.finish_after is not None and self.executions >= self.finish_after

    def end(self, interrupted):
        self.log.append((self.uuid, "end", interrupted))


class RecordingDebugger(DebugInterface):
    """Keeps every callback as (event, *details)."""

    def __init__(self):
        super().__init__()
        self.events = []

    def init_debugger(self):
        self.events.append(("init",))

    def exit_debugger(self):
        self.events.append(("exit",))

    def binding_fired(self, binding, request, tick):
        self.events.append(("binding", binding.action.uuid, request.value, tick))

    def action_initialized(self, action, tick):
        self.events.append(("initialized", action.uuid, tick))

    def action_ended(self, action, tick, interrupted):
        self.events.append(("ended", action.uuid, tick, interrupted))

    def resource_conflict(self, action, conflict, tick):
        self.events.append(("conflict", action.uuid, conflict, tick))

    def error_action(self, action, tick, fault):
        self.events.append(("error", action.uuid, fault, tick))

    def of(self, kind):
        return [e for e in self.events if e[0] == kind]


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def log():
    return []


@pytest.fixture
def make_action(log):
    def factory(name, *requirements, **kwargs):
        return RecordingAction(log, name, *requirements, **kwargs)
    return factory


@pytest.fixture
def debugger():
    return RecordingDebugger()


@pytest.fixture
def scheduler(debugger):
    # generous period: overrun warnings are not under test here
    return ActionScheduler(SchedulerConfig(period=1.0), debugger=debugger)


@pytest.fixture
def clock():
    return FakeClock()
