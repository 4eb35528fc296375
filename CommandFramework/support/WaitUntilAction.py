from typing import Callable, Union

from CommandFramework.core.Action import Action
from CommandFramework.core.Condition import Condition, as_condition


class WaitUntilAction(Action):
    """
    Finishes on the first poll where ``condition`` holds. ``condition`` is a
    zero-argument predicate or a Condition; inside a tick it is read through
    the condition's per-tick sample.
    """

    def __init__(self, condition: Union[Callable[[], bool], Condition], **kwargs) -> None:
        super().__init__(**kwargs)
        if not callable(condition):
            raise TypeError(f"WaitUntilAction needs a callable condition, got {type(condition).__name__}")
        self._condition = as_condition(condition)

    def is_finished(self) -> bool:
        return self._condition.poll()
