from typing import Callable

from CommandFramework.core.Action import Action


class InstantAction(Action):
    """
    Calls ``fn`` once when initialized and finishes on its first poll.
    """

    def __init__(self, fn: Callable[[], None] = None, *requirements: "Resource", **kwargs) -> None:
        super().__init__(*requirements, **kwargs)
        self._fn = fn or (lambda: None)

    def initialize(self) -> None:
        self._fn()

    def is_finished(self) -> bool:
        return True
