import itertools
import weakref
from typing import Callable, Optional

from CommandFramework.core.Schedulable import Schedulable
from util.SchedulerException import CompositionError

_resource_ids = itertools.count(1)


class Resource:
    """
    A unit of exclusively-owned state, e.g. one mechanism of a robot.

    At most one running action holds the claim on a resource. The owner is
    kept as a weak reference: the scheduler owns running actions, the
    resource only remembers who they are.

    Subclasses keep their own state and may override :meth:`periodic`, which
    the scheduler calls once per tick whether or not the resource is claimed.

    Attributes:
        uuid (str): Unique name of the resource.
    """
    uuid: str

    def __init__(self, uuid: str = None) -> None:
        self.uuid = uuid or f"{self.__class__.__name__}_{next(_resource_ids)}"
        self._default_action: Optional[Schedulable] = None
        self._owner_ref: Optional[weakref.ref] = None

    # ---- ownership ----
    @property
    def owner(self) -> Optional[Schedulable]:
        if self._owner_ref is None:
            return None
        owner = self._owner_ref()
        if owner is None:
            self._owner_ref = None
        return owner

    def claim(self, action: Schedulable) -> bool:
        """
        Give the claim to ``action``.

        Returns:
            bool: True if the resource was free or already held by ``action``.
        """
        owner = self.owner
        if owner is not None and owner is not action:
            return False
        self._owner_ref = weakref.ref(action)
        return True

    def release(self, action: Schedulable) -> None:
        """Drop the claim if ``action`` holds it, otherwise do nothing."""
        if self.owner is action:
            self._owner_ref = None

    # ---- default action ----
    @property
    def default_action(self) -> Optional[Schedulable]:
        return self._default_action

    @default_action.setter
    def default_action(self, action: Optional[Schedulable]) -> None:
        if action is not None:
            if self not in action.requirements:
                raise CompositionError(action.uuid, f"a default action of {self.uuid} must require it")
            if getattr(action, "composed_in", None) is not None:
                raise CompositionError(action.uuid, "a composed action cannot be a default action")
        self._default_action = action

    def periodic(self) -> None:
        """Called once per tick before any condition is evaluated."""
        pass

    # ---- factories ----
    def run_once(self, fn: Callable[[], None], uuid: str = None) -> "InstantAction":
        """An action requiring this resource that calls ``fn`` once and finishes."""
        from CommandFramework.support.InstantAction import InstantAction
        return InstantAction(fn, self, uuid=uuid or f"{self.uuid}.run_once")

    def run(self, fn: Callable[[], None], uuid: str = None) -> "RunAction":
        """An action requiring this resource that calls ``fn`` every tick until interrupted."""
        from CommandFramework.support.RunAction import RunAction
        return RunAction(fn, self, uuid=uuid or f"{self.uuid}.run")

    def start_end(self, start: Callable[[], None], end: Callable[[], None], uuid: str = None) -> "StartEndAction":
        """An action requiring this resource that calls ``start`` when started and ``end`` when stopped."""
        from CommandFramework.support.StartEndAction import StartEndAction
        return StartEndAction(start, end, self, uuid=uuid or f"{self.uuid}.start_end")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.uuid})"
