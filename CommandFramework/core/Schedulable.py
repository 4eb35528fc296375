from enum import Enum
from typing import Protocol, Set, runtime_checkable


class ActionState(str, Enum):
    """Lifecycle of one activation of an action."""
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    ENDING = "ending"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class InterruptionBehavior(str, Enum):
    """What happens when another action wants a resource this action holds."""
    CANCEL_SELF = "cancel_self"          # the holder is interrupted
    CANCEL_INCOMING = "cancel_incoming"  # the newcomer is refused


@runtime_checkable
class Schedulable(Protocol):
    """
    Minimal contract required by the scheduler.
    Both leaf actions and composite actions implement it,
    so they can be nested arbitrarily (Composite pattern).
    """
    # ---- identity / meta ----
    uuid: str
    state: ActionState
    interruption_behavior: InterruptionBehavior

    @property
    def requirements(self) -> Set["Resource"]: ...

    # ---- life-cycle ----
    def initialize(self) -> None: ...
    def execute(self) -> None: ...
    def is_finished(self) -> bool: ...
    def end(self, interrupted: bool) -> None: ...
