from enum import Enum
from typing import Dict, List

from CommandFramework.core.Action import (
    ACTIVE_STATES, Action, compose, end_action, initialize_action,
)
from CommandFramework.core.Schedulable import ActionState, InterruptionBehavior, Schedulable
from util.SchedulerException import CompositionError


class FinishPolicy(str, Enum):
    """When a parallel composite counts as finished."""
    ALL = "all"            # every child finished
    RACE = "race"          # any child finished, the others are interrupted
    DEADLINE = "deadline"  # the first child finished, the others are interrupted


class ParallelAction(Action):
    """
    Runs all children in the same tick.

    Children must not share resources; two children driving the same
    resource at once would break exclusive ownership, so overlapping
    requirements are rejected when the composite is built.

    Under ``RACE`` and ``DEADLINE`` the losing children get
    ``end(interrupted=True)`` in the tick the decisive child finished.
    """

    def __init__(self, *actions: Schedulable, policy: FinishPolicy = FinishPolicy.ALL, uuid: str = None) -> None:
        super().__init__(uuid=uuid)
        self.policy = FinishPolicy(policy)
        self._running: Dict[Schedulable, bool] = {}
        self._finished = False
        self.add_actions(*actions)

    @property
    def actions(self) -> List[Schedulable]:
        return list(self._running)

    @property
    def deadline(self) -> Schedulable:
        return next(iter(self._running), None)

    def add_actions(self, *actions: Schedulable) -> None:
        if self.state in ACTIVE_STATES or self.state is ActionState.ENDING:
            raise CompositionError(self.uuid, "cannot add actions to a running parallel group")
        for action in actions:
            overlap = self._requirements & set(action.requirements)
            if overlap:
                names = ", ".join(sorted(r.uuid for r in overlap))
                raise CompositionError(self.uuid, f"{action.uuid} shares resources with a sibling: {names}")
            compose(action, self)
            self._running[action] = False
            self._requirements.update(action.requirements)
        if self.policy is FinishPolicy.DEADLINE and not self._running:
            raise CompositionError(self.uuid, "a deadline group needs at least one action")
        if self._running and all(a.interruption_behavior is InterruptionBehavior.CANCEL_INCOMING
                                 for a in self._running):
            self.interruption_behavior = InterruptionBehavior.CANCEL_INCOMING
        else:
            self.interruption_behavior = InterruptionBehavior.CANCEL_SELF

    def initialize(self) -> None:
        self._finished = not self._running
        for action in self._running:
            # marked first so a child failing in initialize is still ended
            self._running[action] = True
            initialize_action(action)

    def execute(self) -> None:
        decided = False
        for action, running in list(self._running.items()):
            if not running:
                continue
            action.execute()
            if action.is_finished():
                end_action(action, False)
                self._running[action] = False
                if self.policy is FinishPolicy.RACE:
                    decided = True
                elif self.policy is FinishPolicy.DEADLINE and action is self.deadline:
                    decided = True

        if decided:
            self._interrupt_running()
            self._finished = True
        elif self.policy is FinishPolicy.ALL:
            self._finished = not any(self._running.values())

    def is_finished(self) -> bool:
        return self._finished

    def end(self, interrupted: bool) -> None:
        self._interrupt_running()

    def _interrupt_running(self) -> None:
        for action, running in self._running.items():
            if running:
                self._running[action] = False
                if action.state in ACTIVE_STATES:
                    end_action(action, True)
