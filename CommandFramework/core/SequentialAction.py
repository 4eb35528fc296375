from typing import List

from CommandFramework.core.Action import (
    ACTIVE_STATES, Action, compose, end_action, initialize_action, union_requirements,
)
from CommandFramework.core.Schedulable import ActionState, InterruptionBehavior, Schedulable
from util.SchedulerException import CompositionError


class SequentialAction(Action):
    """
    Runs its children one after another.

    When the active child finishes it is ended and the next child is
    initialized in the same tick; the next child executes from the following
    tick on. Interrupting the sequence interrupts only the active child, the
    remaining ones never start.

    The sequence requires the union of all children's resources for its whole
    run, so no other action can slip in between two steps.
    """

    def __init__(self, *actions: Schedulable, uuid: str = None) -> None:
        super().__init__(uuid=uuid)
        self._actions: List[Schedulable] = []
        self._index = -1
        self.add_actions(*actions)

    @property
    def actions(self) -> List[Schedulable]:
        return list(self._actions)

    def add_actions(self, *actions: Schedulable) -> None:
        if self.state in ACTIVE_STATES or self.state is ActionState.ENDING:
            raise CompositionError(self.uuid, "cannot add actions to a running sequence")
        for action in actions:
            compose(action, self)
            self._actions.append(action)
        self._requirements = union_requirements(self._actions)
        if self._actions and all(a.interruption_behavior is InterruptionBehavior.CANCEL_INCOMING
                                 for a in self._actions):
            self.interruption_behavior = InterruptionBehavior.CANCEL_INCOMING
        else:
            self.interruption_behavior = InterruptionBehavior.CANCEL_SELF

    @property
    def current(self) -> Schedulable:
        if 0 <= self._index < len(self._actions):
            return self._actions[self._index]
        return None

    def initialize(self) -> None:
        self._index = 0
        if self._actions:
            initialize_action(self._actions[0])

    def execute(self) -> None:
        current = self.current
        if current is None:
            return
        current.execute()
        if current.is_finished():
            end_action(current, False)
            self._index += 1
            if self._index < len(self._actions):
                initialize_action(self._actions[self._index])

    def is_finished(self) -> bool:
        return self._index >= len(self._actions)

    def end(self, interrupted: bool) -> None:
        current = self.current
        if interrupted and current is not None and current.state in ACTIVE_STATES:
            end_action(current, True)
        self._index = -1
