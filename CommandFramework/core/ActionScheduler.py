import json
import os
import time
from typing import Dict, List, Optional, Union, Callable

from pydantic import BaseModel, Field

from CommandFramework.core.Action import ACTIVE_STATES, end_action, initialize_action
from CommandFramework.core.Binding import Binding, BindingPolicy, Request
from CommandFramework.core.Condition import Condition, as_condition, set_current_tick
from CommandFramework.core.DebugInterface import DebugInterface
from CommandFramework.core.Resource import Resource
from CommandFramework.core.Schedulable import ActionState, InterruptionBehavior, Schedulable
from CommandFramework.core.SchedulerConfig import SchedulerConfig
from command_logging import logger, rich_console
from util.SchedulerException import ActionFault, ConfigurationError, MisconfiguredBinding, ResourceConflict


class SchedulerState(BaseModel):
    """
    Schema for the scheduler snapshot.

    """
    tick_counter: int = Field(..., description="Ticks executed so far")
    running: List[str] = Field(default_factory=list, description="Running actions in start order")
    owners: Dict[str, Optional[str]] = Field(default_factory=dict, description="Resource uuid -> claiming action uuid")
    fault_counter: int = Field(0, description="Action faults contained so far")
    conflict_counter: int = Field(0, description="Start requests dropped on a resource conflict")


class ActionScheduler:
    """
    Cooperative scheduler for actions over exclusively-owned resources.

    The host loop calls :meth:`tick` once per period. Within a tick,
    cancellations are applied before new claims, and new claims before any
    ``execute``. Everything runs on the caller's thread.

    Attributes:
        config (SchedulerConfig): Period, tracing and snapshot directories.
        debugger (DebugInterface): Optional observer of scheduling decisions.
        state (SchedulerState): Counters, refreshed by :meth:`save_state`.
    """
    # Static by init
    config: SchedulerConfig
    debugger: Optional[DebugInterface]
    uuid: str

    # Dynamic
    state: SchedulerState

    def __init__(self,
                 config: SchedulerConfig = None,
                 debugger: DebugInterface = None,
                 uuid: str = 'Scheduler') -> None:
        self.config = config or SchedulerConfig()
        self.debugger = debugger
        self.uuid = uuid
        self.state = SchedulerState(tick_counter=0)

        self._resources: List[Resource] = []
        self._bindings: List[Binding] = []
        # insertion ordered set of running actions
        self._running: Dict[Schedulable, None] = {}

        self._start_queue: List[Schedulable] = []
        self._cancel_queue: List[Schedulable] = []
        self._deferred_start: List[Schedulable] = []
        self._deferred_cancel: List[Schedulable] = []
        self._claimed_this_tick = set()
        self._started_this_tick = set()
        self._in_tick = False

        if self.debugger:
            self.debugger.init_debugger()
        if self.config.save_dir is not None:
            os.makedirs(self.config.save_dir, exist_ok=True)
        if self.config.error_dir is not None:
            os.makedirs(self.config.error_dir, exist_ok=True)

    def close(self) -> None:
        """
        Cancel everything and close the debugger.
        """
        self.cancel_all()
        if self.debugger:
            self.debugger.exit_debugger()

    # ------------------------------------------------------------------ #
    # Setup ------------------------------------------------------------- #
    # ------------------------------------------------------------------ #
    def register_resource(self, resource: Resource, default_action: Schedulable = None) -> Resource:
        """
        Adds a resource to the scheduler and optionally sets its default action.

        Args:
            resource (Resource): The resource to manage.
            default_action (Schedulable, optional): Runs whenever nothing else claims the resource.

        Raises:
            CompositionError: If the default action does not require the resource.
        """
        if self.state.tick_counter > 0:
            logger.warning(f"Resource {resource.uuid} registered after ticking started")
        if resource not in self._resources:
            self._resources.append(resource)
        if default_action is not None:
            resource.default_action = default_action
        return resource

    def register_binding(self,
                         condition: Union[Condition, Callable[[], bool]],
                         action: Schedulable,
                         policy: BindingPolicy = BindingPolicy.START_ON_TRUE) -> Binding:
        """
        Ties ``action`` to edges of ``condition``. Bindings fire in registration order.

        Args:
            condition: A Condition or a plain zero-argument predicate.
            action: The action the binding starts or cancels.
            policy: The activation policy.

        Raises:
            MisconfiguredBinding: If any part of the binding cannot work at run time.
        """
        name = getattr(action, "uuid", repr(action))
        if not isinstance(condition, Condition) and not callable(condition):
            raise MisconfiguredBinding(name, f"condition {condition!r} is neither a Condition nor callable")
        if not isinstance(action, Schedulable):
            raise MisconfiguredBinding(name, f"{type(action).__name__} is not a schedulable action")
        if getattr(action, "composed_in", None) is not None:
            raise MisconfiguredBinding(name, f"action is part of composite {action.composed_in.uuid}")
        unknown = [r.uuid for r in action.requirements if r not in self._resources]
        if unknown:
            raise MisconfiguredBinding(name, f"requires unregistered resources: {', '.join(sorted(unknown))}")
        try:
            policy = BindingPolicy(policy)
        except ValueError:
            raise MisconfiguredBinding(name, f"unknown binding policy {policy!r}")
        if self.state.tick_counter > 0:
            logger.warning(f"Binding for {name} registered after ticking started")

        binding = Binding(condition=as_condition(condition), action=action, policy=policy)
        self._bindings.append(binding)
        return binding

    @property
    def resources(self) -> List[Resource]:
        return list(self._resources)

    @property
    def bindings(self) -> List[Binding]:
        return list(self._bindings)

    # ------------------------------------------------------------------ #
    # Requests ---------------------------------------------------------- #
    # ------------------------------------------------------------------ #
    def schedule(self, *actions: Schedulable) -> None:
        """
        Request to start ``actions``. Outside a tick the requests are applied
        by the next tick; from inside an action they are applied once the
        execute phase of the current tick is over.

        Raises:
            ConfigurationError: If an action is not schedulable or belongs to a composite.
        """
        for action in actions:
            name = getattr(action, "uuid", repr(action))
            if not isinstance(action, Schedulable):
                raise ConfigurationError(name, f"{type(action).__name__} is not a schedulable action")
            if getattr(action, "composed_in", None) is not None:
                raise ConfigurationError(name, f"action is part of composite {action.composed_in.uuid}")
            if self._in_tick:
                self._deferred_start.append(action)
            else:
                self._start_queue.append(action)

    def cancel(self, *actions: Schedulable) -> None:
        """
        Interrupt ``actions`` if they are running and withdraw their pending
        start requests. Immediate outside a tick, applied at the end of the
        execute phase inside one.
        """
        for action in actions:
            self._start_queue = [a for a in self._start_queue if a is not action]
            self._deferred_start = [a for a in self._deferred_start if a is not action]
            if self._in_tick:
                self._deferred_cancel.append(action)
            else:
                self._cancel(action)

    def cancel_all(self) -> None:
        """
        Interrupt every running action and drop pending start requests.
        """
        self._start_queue.clear()
        self._deferred_start.clear()
        if self._in_tick:
            self._deferred_cancel.extend(self._running)
            return
        for action in list(self._running):
            self._cancel(action)

    def is_running(self, action: Schedulable) -> bool:
        return action in self._running

    def requiring(self, resource: Resource) -> Optional[Schedulable]:
        """
        Returns the running action that holds ``resource``, if any.
        """
        owner = resource.owner
        return owner if owner in self._running else None

    @property
    def running_actions(self) -> List[Schedulable]:
        return list(self._running)

    # ------------------------------------------------------------------ #
    # The tick ---------------------------------------------------------- #
    # ------------------------------------------------------------------ #
    def tick(self) -> None:
        """
        Run one scheduling period.
        """
        started_at = time.perf_counter()
        self.state.tick_counter += 1
        tick = self.state.tick_counter
        self._claimed_this_tick.clear()
        self._started_this_tick.clear()
        self._in_tick = True
        set_current_tick(tick)

        if self.debugger:
            self.debugger.start_tick(tick)
        if self.config.verbose:
            rich_console.print(
                f"[red]Executing scheduler '{self.uuid}' tick {tick} "
                f"/ running={len(self._running)}  -------------------------------------[/red]"
            )

        try:
            # 1) resource hooks
            for resource in self._resources:
                try:
                    resource.periodic()
                except Exception:
                    logger.exception(f"periodic() of resource {resource.uuid} failed in tick {tick}")

            # 2) sample every bound condition once
            for condition in self._bound_conditions():
                try:
                    condition.sample(tick)
                except Exception:
                    logger.exception(f"Condition {condition.name} failed in tick {tick}; keeping last value")

            # 3) bindings, in registration order
            for binding in self._bindings:
                request = binding.request(self.is_running)
                if request is None:
                    continue
                if self.config.verbose:
                    rich_console.print(f"   [blue]binding {binding} fired: {request.value}[/blue]")
                if self.debugger:
                    self.debugger.binding_fired(binding, request, tick)
                if request is Request.START:
                    self._start_queue.append(binding.action)
                else:
                    self._cancel_queue.append(binding.action)

            # 4) cancellations first ...
            cancels, self._cancel_queue = self._cancel_queue, []
            for action in cancels:
                self._cancel(action)

            # 5) ... then claims, in arrival order
            starts, self._start_queue = self._start_queue, []
            for action in starts:
                self._start(action, preempt=True)

            # 6) advance everything that was already running
            for action in list(self._running):
                if action not in self._running or action in self._started_this_tick:
                    continue
                self._step_action(action)

            # 7) requests issued by actions during this tick
            self._apply_deferred()

            # 8) free resources fall back to their default action
            self._schedule_defaults()
        finally:
            self._in_tick = False
            set_current_tick(None)
            # requests raised while default actions initialized wait for the next tick
            self._cancel_queue.extend(self._deferred_cancel)
            self._start_queue.extend(self._deferred_start)
            self._deferred_cancel = []
            self._deferred_start = []

        elapsed = time.perf_counter() - started_at
        if elapsed > self.config.period:
            logger.warning(f"Scheduler '{self.uuid}' loop overrun in tick {tick}: "
                           f"{elapsed * 1000:.1f}ms > {self.config.period * 1000:.1f}ms")

    def run(self, ticks: int, realtime: bool = False) -> int:
        """
        Call :meth:`tick` ``ticks`` times. With ``realtime`` the remainder of each
        period is slept away, like a host control loop would.
        Returns the final tick counter.
        """
        if self.config.verbose:
            rich_console.print(f"[red]Start scheduler at tick {self.state.tick_counter} "
                               f"resources={len(self._resources)} bindings={len(self._bindings)}[/red]")
        for _ in range(ticks):
            started_at = time.perf_counter()
            self.tick()
            if realtime:
                remaining = self.config.period - (time.perf_counter() - started_at)
                if remaining > 0:
                    time.sleep(remaining)
        if self.config.save_dir:
            self.save_scheduler(self.config.save_dir)
        return self.state.tick_counter

    # ------------------------------------------------------------------ #
    # Internals --------------------------------------------------------- #
    # ------------------------------------------------------------------ #
    def _bound_conditions(self) -> List[Condition]:
        seen = {}
        for binding in self._bindings:
            seen.setdefault(id(binding.condition), binding.condition)
        return list(seen.values())

    def _start(self, action: Schedulable, preempt: bool) -> bool:
        """
        Claim every resource of ``action`` or none, preempting holders when
        allowed, then initialize it. Returns True if the action is running.
        """
        if action in self._running:
            return True
        tick = self.state.tick_counter
        requirements = list(action.requirements)
        for resource in requirements:
            if resource not in self._resources:
                self._resources.append(resource)

        holders: Dict[Schedulable, None] = {}
        blocked = []
        for resource in requirements:
            owner = resource.owner
            if owner is None or owner is action:
                continue
            if (not preempt
                    or resource in self._claimed_this_tick
                    or owner.interruption_behavior is InterruptionBehavior.CANCEL_INCOMING):
                blocked.append(resource)
            else:
                holders[owner] = None

        if blocked:
            conflict = ResourceConflict(action.uuid,
                                        [r.uuid for r in blocked],
                                        {r.owner.uuid for r in blocked if r.owner is not None})
            if preempt:
                self.state.conflict_counter += 1
                logger.warning(f"{conflict} in tick {tick}; request dropped")
            if self.debugger:
                self.debugger.resource_conflict(action, conflict, tick)
            return False

        for holder in holders:
            if self.config.verbose:
                rich_console.print(f"   [orange3]{action.uuid} preempts {holder.uuid}[/orange3]")
            self._cancel(holder)
            # stale claims of actions this scheduler does not run are dropped
            if any(r.owner is holder for r in requirements):
                self._release(holder)

        for resource in requirements:
            resource.claim(action)
        self._claimed_this_tick.update(requirements)
        self._running[action] = None
        self._started_this_tick.add(action)

        try:
            initialize_action(action)
        except Exception as e:
            self._fault(action, "initialize", e)
            return False

        if self.config.verbose:
            rich_console.print(f"   [green]{action.uuid} initialized[/green]")
        if self.debugger:
            self.debugger.action_initialized(action, tick)
        return True

    def _cancel(self, action: Schedulable) -> None:
        if action not in self._running or action.state is ActionState.ENDING:
            return
        del self._running[action]
        try:
            end_action(action, True)
        except Exception as e:
            self._fault(action, "end", e)
            return
        self._release(action)
        if self.config.verbose:
            rich_console.print(f"   [grey53]{action.uuid} cancelled[/grey53]")
        if self.debugger:
            self.debugger.action_ended(action, self.state.tick_counter, True)

    def _step_action(self, action: Schedulable) -> None:
        phase = "execute"
        try:
            action.execute()
            phase = "is_finished"
            finished = action.is_finished()
        except Exception as e:
            self._fault(action, phase, e)
            return
        if not finished:
            return

        self._running.pop(action, None)
        try:
            end_action(action, False)
        except Exception as e:
            self._fault(action, "end", e)
            return
        self._release(action)
        if self.config.verbose:
            rich_console.print(f"   [orange3]{action.uuid} finished[/orange3]")
        if self.debugger:
            self.debugger.action_ended(action, self.state.tick_counter, False)

    def _fault(self, action: Schedulable, phase: str, exc: Exception) -> None:
        """
        Contain a failing callback: force an interrupted end, drop the claims
        and keep the tick going for everybody else.
        """
        tick = self.state.tick_counter
        fault = ActionFault(action.uuid, phase, exc)
        self.state.fault_counter += 1
        logger.error(f"{fault} in tick {tick}", exc_info=exc)

        self._running.pop(action, None)
        self._claimed_this_tick.difference_update(action.requirements)
        if action.state in ACTIVE_STATES:
            try:
                end_action(action, True)
            except Exception:
                logger.exception(f"end() of {action.uuid} failed while handling a fault")
        elif action.state is not ActionState.FINISHED:
            action.state = ActionState.CANCELLED
        self._release(action)

        if self.debugger:
            self.debugger.error_action(action, tick, fault)
        if self.config.error_dir:
            self.save_scheduler(os.path.join(self.config.error_dir, f"tick_{tick}"))

    def _release(self, action: Schedulable) -> None:
        for resource in action.requirements:
            resource.release(action)

    def _apply_deferred(self) -> None:
        while self._deferred_cancel or self._deferred_start:
            cancels, self._deferred_cancel = self._deferred_cancel, []
            for action in cancels:
                self._cancel(action)
            starts, self._deferred_start = self._deferred_start, []
            for action in starts:
                self._start(action, preempt=True)

    def _schedule_defaults(self) -> None:
        for resource in self._resources:
            default = resource.default_action
            if default is None or resource.owner is not None or default in self._running:
                continue
            self._start(default, preempt=False)

    # ------------------------------------------------------------------ #
    # Snapshots --------------------------------------------------------- #
    # ------------------------------------------------------------------ #
    def save_state(self) -> dict:
        """
        Return a *pure-Python* snapshot of the counters, the running actions
        and the owner of every resource.
        """
        self.state.running = [a.uuid for a in self._running]
        self.state.owners = {
            r.uuid: (r.owner.uuid if r.owner is not None else None) for r in self._resources
        }
        return self.state.model_dump()

    def save_scheduler(self, path: str) -> None:
        """
        Persist the snapshot into `<path>/state.json`.
        """
        os.makedirs(path, exist_ok=True)
        with open(os.path.join(path, "state.json"), "w") as f:
            json.dump(self.save_state(), f, indent=2)
