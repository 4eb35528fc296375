from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from CommandFramework.core.Condition import Condition


class BindingPolicy(str, Enum):
    """How a condition edge maps onto starting or cancelling an action."""
    START_ON_TRUE = "start_on_true"      # rising edge starts
    WHILE_TRUE = "while_true"            # rising edge starts, falling edge cancels
    TOGGLE_ON_TRUE = "toggle_on_true"    # rising edge starts or cancels
    START_ON_FALSE = "start_on_false"    # falling edge starts
    WHILE_FALSE = "while_false"          # falling edge starts, rising edge cancels


class Request(str, Enum):
    START = "start"
    CANCEL = "cancel"


class Binding(BaseModel):
    """
    Immutable rule tying a condition to an action.

    Bindings are created by ``ActionScheduler.register_binding`` during setup
    and live as long as the scheduler.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    condition: Condition = Field(..., description="Condition sampled every tick")
    action: Any = Field(..., description="Schedulable action started or cancelled by the binding")
    policy: BindingPolicy = Field(BindingPolicy.START_ON_TRUE, description="Activation policy")

    def request(self, is_running: Callable[[Any], bool]) -> Optional[Request]:
        """
        Decide what the binding asks for this tick, based on the condition's
        last sample.

        Args:
            is_running: Tells whether an action is currently running.

        Returns:
            Optional[Request]: ``START``, ``CANCEL`` or None if the policy does not fire.
        """
        condition, policy = self.condition, self.policy

        if policy is BindingPolicy.START_ON_TRUE:
            return Request.START if condition.rising else None
        if policy is BindingPolicy.START_ON_FALSE:
            return Request.START if condition.falling else None

        if policy is BindingPolicy.WHILE_TRUE:
            start_edge, stop_edge = condition.rising, condition.falling
        elif policy is BindingPolicy.WHILE_FALSE:
            start_edge, stop_edge = condition.falling, condition.rising
        else:
            # TOGGLE_ON_TRUE
            if not condition.rising:
                return None
            return Request.CANCEL if is_running(self.action) else Request.START

        if start_edge:
            return Request.START
        if stop_edge and is_running(self.action):
            return Request.CANCEL
        return None

    def __str__(self) -> str:
        return f"{self.condition.name} -[{self.policy.value}]-> {self.action.uuid}"
