"""Tests for the executor and parameter normalization."""

import pytest

from agent_runtime.decision import Decision
from agent_runtime.errors import ExecutionError
from agent_runtime.executor import Executor, normalize_params
from agent_runtime.state import State
from agent_runtime.tools import ToolRegistry


def echo(**kwargs):
    return {"echo": kwargs}


@pytest.fixture
def executor():
    calls = {"n": 0}

    def counted(**kwargs):
        calls["n"] += 1
        return kwargs

    def failing() -> None:
        raise ValueError("bad input")

    ex = Executor(ToolRegistry({"echo": echo, "counted": counted, "failing": failing}))
    ex.calls = calls
    return ex


class TestNormalizeParams:
    def test_keys_become_strings_recursively(self):
        params = {1: {"inner": {2: "x"}}, "items": [{3: "y"}, ("a", {4: "z"})]}
        assert normalize_params(params) == {
            "1": {"inner": {"2": "x"}},
            "items": [{"3": "y"}, ["a", {"4": "z"}]],
        }

    def test_empty(self):
        assert normalize_params(None) == {}
        assert normalize_params({}) == {}

    def test_does_not_alias_input(self):
        nested = {"a": {"b": 1}}
        out = normalize_params(nested)
        out["a"]["b"] = 2
        assert nested["a"]["b"] == 1


class TestExecutor:
    def test_finish_short_circuits(self, executor):
        state = State()
        assert executor.execute(Decision(action="finish"), state=state) == {"done": True}
        assert executor.calls["n"] == 0
        assert not state.progress

    def test_dispatches_normalized_params(self, executor):
        result = executor.execute(Decision(action="echo", params={"q": {"k": [1, 2]}}))
        assert result == {"echo": {"q": {"k": [1, 2]}}}

    def test_marks_progress_on_state(self, executor):
        state = State()
        executor.execute(Decision(action="counted", params={}), state=state)
        assert state.progress.includes("tool_called", "step_completed")

    def test_plain_mapping_state_is_ignored(self, executor):
        assert executor.execute(Decision(action="counted"), state={}) == {}

    def test_unknown_tool_wrapped(self, executor):
        with pytest.raises(ExecutionError, match="Tool not found: nope"):
            executor.execute(Decision(action="nope"))

    def test_tool_failure_wrapped(self, executor):
        with pytest.raises(ExecutionError, match="bad input") as exc:
            executor.call_tool("failing")
        assert isinstance(exc.value.__cause__, ValueError)

    def test_bad_arguments_wrapped(self, executor):
        with pytest.raises(ExecutionError):
            executor.call_tool("failing", {"unexpected": 1})
