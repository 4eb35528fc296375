from typing import Callable

from CommandFramework.core.Action import Action


class RunAction(Action):
    """
    Calls ``fn`` on every tick until interrupted. Typical default action.
    """

    def __init__(self, fn: Callable[[], None], *requirements: "Resource", **kwargs) -> None:
        super().__init__(*requirements, **kwargs)
        self._fn = fn

    def execute(self) -> None:
        self._fn()
