import operator
import time
from typing import Callable, Optional

# tick of the scheduler currently ticking, None outside a tick
_current_tick: Optional[int] = None


def set_current_tick(tick: Optional[int]) -> None:
    global _current_tick
    _current_tick = tick


class Condition:
    """
    A polled boolean source.

    The predicate must be a side-effect free, zero-argument callable. The
    scheduler samples each condition at most once per tick through
    :meth:`sample`; the value of the previous sample is kept so bindings can
    react to rising and falling edges.

    Before the first sample the value is ``False``, so a condition that is
    already true on the first tick produces a rising edge.

    Conditions compose with ``&``, ``|`` and ``~``; the composed condition
    reuses the cached samples of its parts.
    """

    def __init__(self, predicate: Callable[[], bool], name: str = None) -> None:
        if not callable(predicate):
            raise TypeError(f"Condition predicate must be callable, got {type(predicate).__name__}")
        self._predicate = predicate
        self.name = name or getattr(predicate, "__name__", "condition")
        self._tick: Optional[int] = None
        self._value = False
        self._previous = False

    def evaluate(self) -> bool:
        """Call the predicate directly, bypassing the per-tick cache."""
        return bool(self._predicate())

    __call__ = evaluate

    def poll(self) -> bool:
        """
        Value for the tick in progress, shared with the scheduler's own sample
        of this condition. Outside a tick the predicate is evaluated directly.
        """
        if _current_tick is None:
            return self.evaluate()
        return self.sample(_current_tick)

    def _compute(self, tick: int) -> bool:
        return self.evaluate()

    def sample(self, tick: int) -> bool:
        """
        Return the value for ``tick``, evaluating the predicate only on the
        first call for that tick.

        If the predicate raises, the previous value is kept (no edge) and the
        exception propagates.
        """
        if tick != self._tick:
            self._previous = self._value
            self._tick = tick
            self._value = self._compute(tick)
        return self._value

    # ---- edges of the last sample ----
    @property
    def value(self) -> bool:
        return self._value

    @property
    def previous(self) -> bool:
        return self._previous

    @property
    def rising(self) -> bool:
        return self._value and not self._previous

    @property
    def falling(self) -> bool:
        return self._previous and not self._value

    # ---- combinators ----
    def __and__(self, other: "Condition") -> "Condition":
        return _CombinedCondition(operator.and_, self, as_condition(other), name=f"({self.name} & {_name(other)})")

    def __or__(self, other: "Condition") -> "Condition":
        return _CombinedCondition(operator.or_, self, as_condition(other), name=f"({self.name} | {_name(other)})")

    def __invert__(self) -> "Condition":
        return _CombinedCondition(operator.not_, self, name=f"~{self.name}")

    def debounce(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> "Condition":
        """A condition that only turns true once this one has been true for ``seconds``."""
        return _DebouncedCondition(self, seconds, clock)

    def __repr__(self) -> str:
        return f"Condition({self.name}={self._value})"


class _CombinedCondition(Condition):

    def __init__(self, combine: Callable[..., bool], *parts: Condition, name: str) -> None:
        super().__init__(lambda: combine(*[p.evaluate() for p in parts]), name=name)
        self._combine = combine
        self._parts = parts

    def _compute(self, tick: int) -> bool:
        # sample every part so each keeps its own edge history
        return bool(self._combine(*[p.sample(tick) for p in self._parts]))


class _DebouncedCondition(Condition):

    def __init__(self, source: Condition, seconds: float, clock: Callable[[], float]) -> None:
        super().__init__(source.evaluate, name=f"{source.name}.debounce({seconds})")
        self._source = source
        self._seconds = seconds
        self._clock = clock
        self._since: Optional[float] = None

    def evaluate(self) -> bool:
        return self._settle(self._source.evaluate())

    __call__ = evaluate

    def _compute(self, tick: int) -> bool:
        return self._settle(self._source.sample(tick))

    def _settle(self, active: bool) -> bool:
        if not active:
            self._since = None
            return False
        now = self._clock()
        if self._since is None:
            self._since = now
        return now - self._since >= self._seconds


def as_condition(value) -> Condition:
    """Wrap a plain zero-argument callable into a :class:`Condition`."""
    if isinstance(value, Condition):
        return value
    return Condition(value)


def _name(value) -> str:
    return value.name if isinstance(value, Condition) else getattr(value, "__name__", "condition")
