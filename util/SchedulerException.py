from typing import Iterable, Optional


class SchedulerException(Exception):
    def __init__(self, action_name, message, original_exception=None):
        super().__init__(f"Scheduler error in action {action_name}: {message}")
        self.action_name = action_name
        self.original_exception = original_exception


class ResourceConflict(SchedulerException):
    """
    A start request could not claim all of its resources this tick.
    Never raised out of ``tick()``; the request is dropped and reported.
    """
    def __init__(self, action_name: str, resources: Iterable[str], holders: Optional[Iterable[str]] = None):
        self.resources = sorted(resources)
        self.holders = sorted(holders or [])
        super().__init__(action_name,
                         f"cannot claim {', '.join(self.resources)}"
                         + (f" (held by {', '.join(self.holders)})" if self.holders else ""))


class ActionFault(SchedulerException):
    """An action callback raised; the scheduler ends and removes the action."""
    def __init__(self, action_name: str, phase: str, original_exception: BaseException):
        super().__init__(action_name, f"{phase} failed with {original_exception!r}", original_exception)
        self.phase = phase


class ConfigurationError(SchedulerException):
    """Setup-time error. The only kind the scheduler lets propagate."""
    def __init__(self, name: str, message: str):
        super().__init__(name, message)


class MisconfiguredBinding(ConfigurationError):
    pass


class CompositionError(ConfigurationError):
    pass
