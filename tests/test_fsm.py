"""Tests for the generic state machine."""

import pytest

from agent_runtime.errors import InvalidTransition, MaxIterationsExceeded
from agent_runtime.fsm import FSM, TERMINAL_STATES, TRANSITIONS, FSMState


def drive_to(fsm: FSM, target: FSMState) -> None:
    """Walk a fresh FSM along legal edges to `target`."""
    path = {
        FSMState.INTAKE: [],
        FSMState.PLAN: [FSMState.PLAN],
        FSMState.DECIDE: [FSMState.PLAN, FSMState.DECIDE],
        FSMState.EXECUTE: [FSMState.PLAN, FSMState.DECIDE, FSMState.EXECUTE],
        FSMState.OBSERVE: [FSMState.PLAN, FSMState.DECIDE, FSMState.EXECUTE, FSMState.OBSERVE],
        FSMState.LOOP_CHECK: [
            FSMState.PLAN, FSMState.DECIDE, FSMState.EXECUTE, FSMState.OBSERVE, FSMState.LOOP_CHECK,
        ],
        FSMState.FINALIZE: [FSMState.PLAN, FSMState.DECIDE, FSMState.FINALIZE],
        FSMState.HALT: [FSMState.PLAN, FSMState.HALT],
    }[target]
    for state in path:
        fsm.transition_to(state)


class TestTransitionTable:
    def test_table_covers_every_state(self):
        assert set(TRANSITIONS) == set(FSMState)

    def test_terminal_states(self):
        assert TERMINAL_STATES == {FSMState.FINALIZE, FSMState.HALT}
        assert FSMState.HALT.is_terminal
        assert not FSMState.EXECUTE.is_terminal

    def test_expected_edges(self):
        assert TRANSITIONS[FSMState.INTAKE] == {FSMState.PLAN}
        assert TRANSITIONS[FSMState.PLAN] == {FSMState.DECIDE, FSMState.HALT}
        assert TRANSITIONS[FSMState.DECIDE] == {FSMState.EXECUTE, FSMState.FINALIZE, FSMState.HALT}
        assert TRANSITIONS[FSMState.EXECUTE] == {FSMState.OBSERVE, FSMState.FINALIZE, FSMState.HALT}
        assert TRANSITIONS[FSMState.OBSERVE] == {FSMState.LOOP_CHECK}
        assert TRANSITIONS[FSMState.LOOP_CHECK] == {FSMState.EXECUTE, FSMState.FINALIZE, FSMState.HALT}


class TestTransitions:
    def test_starts_in_intake(self):
        fsm = FSM()
        assert fsm.state is FSMState.INTAKE
        assert fsm.iteration_count == 0
        assert fsm.history == []

    def test_legal_transition_records_history(self):
        fsm = FSM()
        fsm.transition_to(FSMState.PLAN, reason="Input normalized")
        assert fsm.state is FSMState.PLAN
        entry = fsm.history[0]
        assert entry.from_state is FSMState.INTAKE
        assert entry.to_state is FSMState.PLAN
        assert entry.reason == "Input normalized"
        assert entry.iteration == 0
        assert entry.to_dict() == {
            "from": "INTAKE", "to": "PLAN", "reason": "Input normalized", "iteration": 0,
        }

    @pytest.mark.parametrize("source", list(FSMState))
    def test_illegal_targets_rejected_without_side_effects(self, source):
        for target in FSMState:
            if target in TRANSITIONS[source]:
                continue
            fsm = FSM()
            drive_to(fsm, source)
            before = fsm.history
            with pytest.raises(InvalidTransition) as exc:
                fsm.transition_to(target)
            assert fsm.state is source
            assert fsm.history == before
            assert source.value in str(exc.value)
            assert target.value in str(exc.value)

    @pytest.mark.parametrize("terminal", [FSMState.FINALIZE, FSMState.HALT])
    def test_terminal_states_have_no_exits(self, terminal):
        fsm = FSM()
        drive_to(fsm, terminal)
        assert fsm.is_terminal
        for target in FSMState:
            with pytest.raises(InvalidTransition):
                fsm.transition_to(target)

    def test_history_is_a_copy(self):
        fsm = FSM()
        fsm.transition_to(FSMState.PLAN)
        fsm.history.clear()
        assert len(fsm.history) == 1

    def test_last_reason(self):
        fsm = FSM()
        assert fsm.last_reason is None
        fsm.transition_to(FSMState.PLAN, reason="go")
        assert fsm.last_reason == "go"


class TestIterationCeiling:
    def test_calls_up_to_ceiling_succeed(self):
        fsm = FSM(max_iterations=3)
        assert [fsm.increment_iteration() for _ in range(3)] == [1, 2, 3]

    def test_call_past_ceiling_fails(self):
        fsm = FSM(max_iterations=3)
        for _ in range(3):
            fsm.increment_iteration()
        with pytest.raises(MaxIterationsExceeded, match="exceeded") as exc:
            fsm.increment_iteration()
        assert exc.value.max_iterations == 3

    def test_zero_ceiling_fails_immediately(self):
        with pytest.raises(MaxIterationsExceeded):
            FSM(max_iterations=0).increment_iteration()

    def test_negative_ceiling_rejected(self):
        with pytest.raises(ValueError):
            FSM(max_iterations=-1)

    def test_history_records_iteration(self):
        fsm = FSM()
        drive_to(fsm, FSMState.EXECUTE)
        fsm.increment_iteration()
        fsm.transition_to(FSMState.OBSERVE)
        assert fsm.history[-1].iteration == 1


class TestReset:
    @pytest.mark.parametrize("source", list(FSMState))
    def test_reset_from_any_state(self, source):
        fsm = FSM(max_iterations=5)
        drive_to(fsm, source)
        fsm.increment_iteration()
        fsm.reset()
        assert fsm.state is FSMState.INTAKE
        assert fsm.iteration_count == 0
        assert fsm.history == []
        assert fsm.max_iterations == 5
