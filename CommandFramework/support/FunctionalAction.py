from typing import Callable

from CommandFramework.core.Action import Action


class FunctionalAction(Action):
    """
    An action assembled from four callables instead of a subclass.

    Args:
        on_init: Called by ``initialize``.
        on_execute: Called by ``execute``.
        on_end: Called by ``end`` with the ``interrupted`` flag.
        is_finished: Polled after every ``execute``.
        requirements: Resources the action claims.
    """

    def __init__(self,
                 on_init: Callable[[], None],
                 on_execute: Callable[[], None],
                 on_end: Callable[[bool], None],
                 is_finished: Callable[[], bool],
                 *requirements: "Resource",
                 **kwargs) -> None:
        super().__init__(*requirements, **kwargs)
        self._on_init = on_init
        self._on_execute = on_execute
        self._on_end = on_end
        self._is_finished = is_finished

    def initialize(self) -> None:
        self._on_init()

    def execute(self) -> None:
        self._on_execute()

    def is_finished(self) -> bool:
        return bool(self._is_finished())

    def end(self, interrupted: bool) -> None:
        self._on_end(interrupted)
