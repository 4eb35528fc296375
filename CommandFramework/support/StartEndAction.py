from typing import Callable

from CommandFramework.core.Action import Action


class StartEndAction(Action):
    """
    Calls ``on_start`` when started and ``on_end`` when interrupted.
    Never finishes on its own, so it is usually bound with a WHILE_TRUE policy.
    """

    def __init__(self,
                 on_start: Callable[[], None],
                 on_end: Callable[[], None],
                 *requirements: "Resource",
                 **kwargs) -> None:
        super().__init__(*requirements, **kwargs)
        self._on_start = on_start
        self._on_end = on_end

    def initialize(self) -> None:
        self._on_start()

    def end(self, interrupted: bool) -> None:
        self._on_end()
