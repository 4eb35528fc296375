import pytest

from CommandFramework.core.Condition import Condition
from CommandFramework.core.ParallelAction import FinishPolicy, ParallelAction
from CommandFramework.core.Resource import Resource
from CommandFramework.core.Schedulable import ActionState, InterruptionBehavior
from CommandFramework.core.SequentialAction import SequentialAction
from CommandFramework.support.ConditionalAction import ConditionalAction
from CommandFramework.support.WaitAction import WaitAction
from CommandFramework.support.WaitUntilAction import WaitUntilAction
from util.SchedulerException import CompositionError


def test_sequence_runs_children_one_after_another(scheduler, make_action, log):
    a = make_action("A", finish_after=1)
    b = make_action("B", finish_after=1)
    sequence = SequentialAction(a, b)
    scheduler.schedule(sequence)
    scheduler.run(4)

    assert log == [
        ("A", "initialize"),
        ("A", "execute"),
        ("A", "end", False),
        ("B", "initialize"),
        ("B", "execute"),
        ("B", "end", False),
    ]
    assert sequence.state is ActionState.FINISHED


def test_sequence_requires_union_of_children(make_action):
    arm, wrist = Resource("arm"), Resource("wrist")
    sequence = make_action("A", arm).and_then(make_action("B", wrist), make_action("C", arm))
    assert sequence.requirements == {arm, wrist}
    assert [a.uuid for a in sequence.actions] == ["A", "B", "C"]


def test_cancelling_sequence_interrupts_only_active_child(scheduler, make_action, log):
    a = make_action("A", finish_after=1)
    b = make_action("B")
    c = make_action("C")
    sequence = SequentialAction(a, b, c)
    scheduler.schedule(sequence)
    scheduler.run(3)
    scheduler.cancel(sequence)

    assert log[-1] == ("B", "end", True)
    assert ("A", "end", True) not in log
    assert ("C", "initialize") not in log
    assert sequence.state is ActionState.CANCELLED


def test_empty_sequence_finishes_right_away(scheduler):
    sequence = SequentialAction()
    scheduler.schedule(sequence)
    scheduler.run(2)
    assert sequence.state is ActionState.FINISHED


def test_parallel_all_waits_for_every_child(scheduler, make_action, log):
    group = ParallelAction(make_action("A", finish_after=1), make_action("B", finish_after=2))
    scheduler.schedule(group)
    scheduler.run(2)
    assert scheduler.is_running(group)
    assert ("A", "end", False) in log

    scheduler.tick()
    assert log[-1] == ("B", "end", False)
    assert not scheduler.is_running(group)
    assert group.state is ActionState.FINISHED


def test_parallel_race_interrupts_loser_in_same_tick(scheduler, make_action, log):
    group = make_action("A", finish_after=1).race_with(make_action("B"))
    scheduler.schedule(group)
    scheduler.tick()
    log.clear()
    scheduler.tick()

    assert log == [
        ("A", "execute"),
        ("A", "end", False),
        ("B", "execute"),
        ("B", "end", True),
    ]
    assert group.state is ActionState.FINISHED


def test_parallel_deadline_interrupts_others_when_first_finishes(scheduler, make_action, log):
    group = make_action("Deadline", finish_after=2).deadline_for(make_action("Quick", finish_after=1),
                                                                 make_action("Forever"))
    assert group.policy is FinishPolicy.DEADLINE
    scheduler.schedule(group)
    scheduler.run(3)

    assert ("Quick", "end", False) in log
    assert ("Forever", "end", True) in log
    assert ("Deadline", "end", False) in log
    assert not scheduler.is_running(group)


def test_cancelling_parallel_interrupts_running_children(scheduler, make_action, log):
    group = make_action("A", finish_after=1).along_with(make_action("B"))
    scheduler.schedule(group)
    scheduler.run(2)
    scheduler.cancel(group)
    assert log.count(("A", "end", False)) == 1
    assert ("A", "end", True) not in log
    assert log[-1] == ("B", "end", True)


def test_parallel_rejects_overlapping_children(make_action):
    arm = Resource("arm")
    with pytest.raises(CompositionError):
        ParallelAction(make_action("A", arm), make_action("B", arm), policy=FinishPolicy.RACE)


def test_action_cannot_join_two_composites(make_action):
    shared = make_action("Shared")
    SequentialAction(shared)
    with pytest.raises(CompositionError):
        ParallelAction(shared)


def test_deadline_needs_a_child():
    with pytest.raises(CompositionError):
        ParallelAction(policy=FinishPolicy.DEADLINE)


def test_composite_is_cancel_incoming_only_if_all_children_are(make_action):
    stubborn = dict(interruption_behavior=InterruptionBehavior.CANCEL_INCOMING)
    all_stubborn = SequentialAction(make_action("A", **stubborn), make_action("B", **stubborn))
    mixed = ParallelAction(make_action("C", **stubborn), make_action("D"))
    assert all_stubborn.interruption_behavior is InterruptionBehavior.CANCEL_INCOMING
    assert mixed.interruption_behavior is InterruptionBehavior.CANCEL_SELF


def test_child_fault_interrupts_composite(scheduler, make_action, log):
    class Broken(type(make_action("Template"))):
        def execute(self):
            raise RuntimeError("broken child")

    broken = Broken(log, "Broken")
    sibling = make_action("Sibling")
    group = ParallelAction(sibling, broken)
    scheduler.schedule(group)
    scheduler.run(2)

    assert not scheduler.is_running(group)
    assert group.state is ActionState.CANCELLED
    assert ("Sibling", "end", True) in log
    assert ("Broken", "end", True) in log
    assert scheduler.state.fault_counter == 1


def test_child_failing_in_initialize_is_ended_in_every_composite(scheduler, make_action, log):
    class Jammed(type(make_action("Template"))):
        def initialize(self):
            super().initialize()
            raise RuntimeError("jammed")

    sequence = SequentialAction(Jammed(log, "SequenceChild"))
    group = ParallelAction(make_action("Sibling"), Jammed(log, "GroupChild"))
    scheduler.schedule(sequence, group)
    scheduler.tick()

    assert ("SequenceChild", "end", True) in log
    assert ("GroupChild", "end", True) in log
    assert ("Sibling", "end", True) in log
    assert sequence.state is ActionState.CANCELLED
    assert group.state is ActionState.CANCELLED
    assert scheduler.state.fault_counter == 2


def test_until_stops_action_when_condition_holds(scheduler, make_action, log):
    done = {"value": False}
    action = make_action("Spin").until(Condition(lambda: done["value"], name="done"))
    scheduler.schedule(action)
    scheduler.run(3)
    assert scheduler.is_running(action)

    done["value"] = True
    scheduler.tick()
    assert log[-1] == ("Spin", "end", True)
    assert not scheduler.is_running(action)


def test_until_debounced_condition_stops_action(scheduler, make_action, log, clock):
    steady = Condition(lambda: True, name="steady").debounce(0.5, clock=clock)
    action = make_action("Raise").until(steady)
    scheduler.schedule(action)
    for _ in range(10):
        clock.advance(0.2)
        scheduler.tick()

    assert not scheduler.is_running(action)
    assert ("Raise", "end", True) in log


def test_wait_until_settles_debounce_outside_a_tick(clock):
    wait = WaitUntilAction(Condition(lambda: True).debounce(1.0, clock=clock))
    assert not wait.is_finished()
    clock.advance(1.0)
    assert wait.is_finished()


def test_with_timeout_interrupts_after_duration(scheduler, make_action, log, clock):
    action = make_action("Spin").with_timeout(1.0, clock=clock)
    scheduler.schedule(action)
    scheduler.run(2)
    clock.advance(0.5)
    scheduler.tick()
    assert scheduler.is_running(action)

    clock.advance(0.5)
    scheduler.tick()
    assert log[-1] == ("Spin", "end", True)
    assert not scheduler.is_running(action)


def test_wait_action_measures_from_initialize(clock):
    wait = WaitAction(2.0, clock=clock)
    clock.advance(5)
    wait.initialize()
    assert not wait.is_finished()
    clock.advance(2)
    assert wait.is_finished()
    with pytest.raises(ValueError):
        WaitAction(-1)


def test_conditional_action_picks_branch_at_start(scheduler, make_action, log):
    arm, wrist = Resource("arm"), Resource("wrist")
    use_arm = {"value": False}
    choice = ConditionalAction(make_action("ArmPath", arm, finish_after=1),
                               make_action("WristPath", wrist, finish_after=1),
                               lambda: use_arm["value"])
    assert choice.requirements == {arm, wrist}

    scheduler.schedule(choice)
    scheduler.run(3)
    assert [entry[0] for entry in log] == ["WristPath"] * 3

    log.clear()
    use_arm["value"] = True
    scheduler.schedule(choice)
    scheduler.run(3)
    assert [entry[0] for entry in log] == ["ArmPath"] * 3
