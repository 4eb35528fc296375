from util.SchedulerException import ActionFault, ResourceConflict


class DebugInterface:
    """
    Abstract interface for observing a scheduler.
    Implement this interface to receive callbacks on action lifecycles and
    scheduling decisions.
    """

    def __init__(self):
        """
        Constructor
        """
        pass

    def init_debugger(self) -> None:
        """
        Called once when the scheduler is created.
        """
        pass

    def exit_debugger(self) -> None:
        """
        Called by ``ActionScheduler.close``.
        """
        pass

    def start_tick(self, tick: int) -> None:
        """
        Called at the start of every tick.

        :param tick: The tick about to run, starting at 1.
        """
        pass

    def binding_fired(self, binding: "Binding", request: "Request", tick: int) -> None:
        """
        Called when a binding asks to start or cancel its action.

        :param binding: The binding that fired.
        :param request: START or CANCEL.
        :param tick: The current tick.
        """
        pass

    def action_initialized(self, action: "Schedulable", tick: int) -> None:
        """
        Called after an action was initialized and became RUNNING.

        :param action: The action.
        :param tick: The current tick.
        """
        pass

    def action_ended(self, action: "Schedulable", tick: int, interrupted: bool) -> None:
        """
        Called after an action's ``end`` returned.

        :param action: The action.
        :param tick: The current tick.
        :param interrupted: True if the action was cancelled or preempted.
        """
        pass

    def resource_conflict(self, action: "Schedulable", conflict: ResourceConflict, tick: int) -> None:
        """
        Called when a start request is dropped because a resource is held.

        :param action: The action that did not start.
        :param conflict: Describes the resources and their holders.
        :param tick: The current tick.
        """
        pass

    def error_action(self, action: "Schedulable", tick: int, fault: ActionFault) -> None:
        """
        Called when an action callback raised and the action was removed.

        :param action: The faulted action.
        :param tick: The current tick.
        :param fault: Wraps the original exception.
        """
        pass
