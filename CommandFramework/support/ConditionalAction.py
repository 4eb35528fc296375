from typing import Callable, Optional

from CommandFramework.core.Action import (
    ACTIVE_STATES, Action, compose, end_action, initialize_action, union_requirements,
)
from CommandFramework.core.Schedulable import InterruptionBehavior, Schedulable


class ConditionalAction(Action):
    """
    Picks one of two actions when initialized and runs it.

    The selector is evaluated once per activation. The composite requires the
    resources of both branches, since which one runs is only known at start.
    """

    def __init__(self,
                 on_true: Schedulable,
                 on_false: Schedulable,
                 selector: Callable[[], bool],
                 **kwargs) -> None:
        super().__init__(**kwargs)
        compose(on_true, self)
        compose(on_false, self)
        self._on_true = on_true
        self._on_false = on_false
        self._selector = selector
        self._selected: Optional[Schedulable] = None
        self._requirements = union_requirements([on_true, on_false])
        if (on_true.interruption_behavior is InterruptionBehavior.CANCEL_INCOMING
                and on_false.interruption_behavior is InterruptionBehavior.CANCEL_INCOMING):
            self.interruption_behavior = InterruptionBehavior.CANCEL_INCOMING

    @property
    def selected(self) -> Optional[Schedulable]:
        return self._selected

    def initialize(self) -> None:
        self._selected = self._on_true if self._selector() else self._on_false
        initialize_action(self._selected)

    def execute(self) -> None:
        self._selected.execute()

    def is_finished(self) -> bool:
        return self._selected.is_finished()

    def end(self, interrupted: bool) -> None:
        if self._selected is not None and self._selected.state in ACTIVE_STATES:
            end_action(self._selected, interrupted)
        self._selected = None
