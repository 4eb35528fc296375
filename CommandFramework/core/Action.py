import itertools
import time
from typing import Callable, FrozenSet, Iterable, Optional, Union

from CommandFramework.core.Schedulable import ActionState, InterruptionBehavior, Schedulable
from util.SchedulerException import CompositionError

ACTIVE_STATES = (ActionState.INITIALIZING, ActionState.RUNNING)

_action_ids = itertools.count(1)


# --------------------------------------------------------------------------- #
# Lifecycle helpers shared by the scheduler and the composite actions          #
# --------------------------------------------------------------------------- #
def initialize_action(action: Schedulable) -> None:
    """Move an action from IDLE to RUNNING by calling its ``initialize``."""
    action.state = ActionState.INITIALIZING
    action.initialize()
    action.state = ActionState.RUNNING


def end_action(action: Schedulable, interrupted: bool) -> None:
    """
    Call ``end`` exactly once and leave the action in a terminal state,
    even if ``end`` raises.
    """
    action.state = ActionState.ENDING
    try:
        action.end(interrupted)
    finally:
        action.state = ActionState.CANCELLED if interrupted else ActionState.FINISHED


def compose(action: Schedulable, parent: Schedulable) -> None:
    """
    Mark ``action`` as owned by the composite ``parent``.

    Raises:
        CompositionError: If the action already belongs to a composite or
            is currently running.
    """
    owner = getattr(action, "composed_in", None)
    if owner is not None:
        raise CompositionError(action.uuid, f"already composed in {owner.uuid}, cannot add it to {parent.uuid}")
    if action.state in ACTIVE_STATES or action.state is ActionState.ENDING:
        raise CompositionError(action.uuid, "cannot compose an action that is running")
    action.composed_in = parent


class Action:
    """
    Base class for schedulable behaviour.

    Subclasses override any of ``initialize``, ``execute``, ``is_finished`` and
    ``end``. The scheduler calls them in that order for every activation and
    never concurrently.

    Attributes:
        uuid (str): Name of the action, used in logs and snapshots.
        state (ActionState): Lifecycle state, maintained by the scheduler.
        interruption_behavior (InterruptionBehavior): Whether a newcomer may
            preempt this action's resources.
        composed_in (Optional[Schedulable]): The composite that owns this action.
    """
    uuid: str
    state: ActionState
    interruption_behavior: InterruptionBehavior
    composed_in: Optional[Schedulable]

    def __init__(self,
                 *requirements: "Resource",
                 uuid: str = None,
                 interruption_behavior: InterruptionBehavior = InterruptionBehavior.CANCEL_SELF) -> None:
        self.uuid = uuid or f"{self.__class__.__name__}_{next(_action_ids)}"
        self.state = ActionState.IDLE
        self.interruption_behavior = InterruptionBehavior(interruption_behavior)
        self.composed_in = None
        self._requirements = set(requirements)

    @property
    def requirements(self) -> FrozenSet["Resource"]:
        return frozenset(self._requirements)

    def add_requirements(self, *resources: "Resource") -> None:
        self._requirements.update(resources)

    # ---- life-cycle (override) ----
    def initialize(self) -> None:
        pass

    def execute(self) -> None:
        pass

    def is_finished(self) -> bool:
        return False

    def end(self, interrupted: bool) -> None:
        pass

    # ---- composition helpers ----
    def and_then(self, *others: Schedulable) -> "SequentialAction":
        """Run this action, then ``others`` one after the other."""
        from CommandFramework.core.SequentialAction import SequentialAction
        return SequentialAction(self, *others)

    def along_with(self, *others: Schedulable) -> "ParallelAction":
        """Run alongside ``others``; finished when all of them are."""
        from CommandFramework.core.ParallelAction import ParallelAction, FinishPolicy
        return ParallelAction(self, *others, policy=FinishPolicy.ALL)

    def race_with(self, *others: Schedulable) -> "ParallelAction":
        """Run alongside ``others``; the first to finish interrupts the rest."""
        from CommandFramework.core.ParallelAction import ParallelAction, FinishPolicy
        return ParallelAction(self, *others, policy=FinishPolicy.RACE)

    def deadline_for(self, *others: Schedulable) -> "ParallelAction":
        """Run alongside ``others`` and interrupt them when this action finishes."""
        from CommandFramework.core.ParallelAction import ParallelAction, FinishPolicy
        return ParallelAction(self, *others, policy=FinishPolicy.DEADLINE)

    def until(self, condition: Union[Callable[[], bool], "Condition"]) -> "ParallelAction":
        """Interrupt this action as soon as ``condition`` holds."""
        from CommandFramework.support.WaitUntilAction import WaitUntilAction
        return self.race_with(WaitUntilAction(condition))

    def with_timeout(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> "ParallelAction":
        """Interrupt this action after ``seconds``."""
        from CommandFramework.support.WaitAction import WaitAction
        return self.race_with(WaitAction(seconds, clock=clock))

    def with_interruption_behavior(self, behavior: InterruptionBehavior) -> "Action":
        self.interruption_behavior = InterruptionBehavior(behavior)
        return self

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.uuid})"


def union_requirements(actions: Iterable[Schedulable]) -> set:
    result = set()
    for action in actions:
        result.update(action.requirements)
    return result
