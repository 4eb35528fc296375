import time
from typing import Callable, Optional

from CommandFramework.core.Action import Action


class WaitAction(Action):
    """
    Finishes once ``seconds`` have passed since it was initialized.
    Requires nothing.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic, **kwargs) -> None:
        super().__init__(**kwargs)
        if seconds < 0:
            raise ValueError(f"WaitAction needs a non-negative duration, got {seconds}")
        self.seconds = seconds
        self._clock = clock
        self._started_at: Optional[float] = None

    def initialize(self) -> None:
        self._started_at = self._clock()

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    def is_finished(self) -> bool:
        return self.elapsed >= self.seconds

    def end(self, interrupted: bool) -> None:
        self._started_at = None
