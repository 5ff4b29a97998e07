"""Tests for the flat plan/execute loop agent."""

import pytest

from agent_runtime.agent import Agent, default_input_builder
from agent_runtime.audit import AuditLog
from agent_runtime.decision import Decision
from agent_runtime.errors import ExecutionError, MaxIterationsExceeded, PolicyViolation
from agent_runtime.executor import Executor
from agent_runtime.planner import Planner
from agent_runtime.policy import Policy
from agent_runtime.state import State
from agent_runtime.tools import ToolRegistry

SCHEMA = {"type": "object", "required": ["action"], "properties": {"action": {"type": "string"}}}


# -- Mock LLM --

class MockLLM:
    """Returns a scripted sequence of generated decisions (last one repeats)."""

    def __init__(self, decisions):
        self._decisions = list(decisions)
        self.prompts = []

    def generate(self, *, prompt, schema):
        self.prompts.append(prompt)
        idx = min(len(self.prompts) - 1, len(self._decisions) - 1)
        return self._decisions[idx]

    def chat_raw(self, messages, *, tools=None):
        return {"message": {"content": ""}}


def search(query: str) -> dict:
    return {"result": f"Found: {query}"}


def make_agent(decisions, *, policy=None, max_iterations=10, audit_log=None, state=None):
    llm = MockLLM(decisions)
    planner = Planner(llm, schema=SCHEMA, prompt_builder=lambda input, state: f"Prompt: {input}")
    tools = ToolRegistry({"search": search, "complete": lambda: {"done": True, "summary": "ok"}})
    agent = Agent(
        planner=planner,
        policy=policy or Policy(),
        executor=Executor(tools),
        state=state if state is not None else State(),
        audit_log=audit_log,
        max_iterations=max_iterations,
    )
    return agent, llm


# -- Tests --

class TestStep:
    def test_single_step(self):
        agent, _ = make_agent([{"action": "search", "params": {"query": "weather"}}])
        result = agent.step("What's the weather?")
        assert result == {"result": "Found: weather"}
        assert agent.state.get("result") == "Found: weather"

    def test_step_validates_policy(self):
        agent, _ = make_agent(
            [{"action": "search", "params": {"query": "x"}, "confidence": 0.2}],
            policy=Policy(min_confidence=0.5),
        )
        with pytest.raises(PolicyViolation, match="Low confidence"):
            agent.step("x")
        assert agent.state.get("result") is None

    def test_step_records_audit(self):
        audit = AuditLog()
        agent, _ = make_agent([{"action": "search", "params": {"query": "x"}}], audit_log=audit)
        agent.step("input")
        assert audit.entries[0].input == "input"
        assert audit.entries[0].decision["action"] == "search"


class TestRun:
    def test_finish_returns_last_result(self):
        agent, _ = make_agent([{"action": "finish"}])
        assert agent.run("done already") == {"done": True}

    def test_done_result_terminates(self):
        agent, llm = make_agent([
            {"action": "search", "params": {"query": "a"}},
            {"action": "complete"},
        ])
        result = agent.run("go")
        assert result == {"done": True, "summary": "ok"}
        assert len(llm.prompts) == 2

    def test_last_result_is_not_a_placeholder(self):
        agent, _ = make_agent([
            {"action": "search", "params": {"query": "a"}},
            {"action": "search", "params": {"query": "b"}},
            {"action": "finish"},
        ])
        result = agent.run("go")
        assert result == {"done": True}
        assert agent.state.get("result") == "Found: b"

    def test_default_input_builder(self):
        agent, llm = make_agent([
            {"action": "search", "params": {"query": "a"}},
            {"action": "finish"},
        ])
        agent.run("start")
        assert llm.prompts[0] == "Prompt: start"
        assert llm.prompts[1] == "Prompt: " + default_input_builder({"result": "Found: a"}, 1)

    def test_custom_input_builder(self):
        seen = []

        def builder(result, iteration):
            seen.append((result, iteration))
            return f"step {iteration + 1}"

        agent, llm = make_agent([
            {"action": "search", "params": {"query": "a"}},
            {"action": "search", "params": {"query": "b"}},
            {"action": "finish"},
        ])
        agent.run("start", input_builder=builder)
        assert [i for _, i in seen] == [1, 2]
        assert llm.prompts == ["Prompt: start", "Prompt: step 2", "Prompt: step 3"]

    def test_max_iterations(self):
        agent, llm = make_agent([{"action": "search", "params": {"query": "x"}}], max_iterations=3)
        with pytest.raises(MaxIterationsExceeded, match=r"Max iterations \(3\) exceeded"):
            agent.run("loop")
        assert len(llm.prompts) == 3

    def test_policy_violation_propagates(self):
        agent, _ = make_agent([{"action": "delete_everything"}], policy=Policy(allowed_actions=["search"]))
        with pytest.raises(PolicyViolation, match="Invalid action"):
            agent.run("x")

    def test_malformed_decision_surfaces_as_execution_error(self):
        agent, _ = make_agent([{"action": "finish", "confidence": "high"}])
        with pytest.raises(ExecutionError, match="invalid decision"):
            agent.run("x")

    def test_unknown_tool_propagates_as_execution_error(self):
        agent, _ = make_agent([{"action": "missing"}])
        with pytest.raises(ExecutionError, match="Tool not found"):
            agent.run("x")


class TestConvergence:
    def test_default_policy_never_converges(self):
        assert Policy().converged(State()) is False

    def test_run_stops_when_policy_converges(self):
        class ConvergeAfterTool(Policy):
            def converged(self, state):
                return state.progress.includes("tool_called")

        agent, llm = make_agent(
            [{"action": "search", "params": {"query": "x"}}],
            policy=ConvergeAfterTool(),
        )
        result = agent.run("search once")
        assert result == {"result": "Found: x"}
        assert len(llm.prompts) == 1
        assert agent.state.progress.includes("tool_called", "step_completed")

    def test_max_iterations_still_applies(self):
        class Never(Policy):
            def converged(self, state):
                return False

        agent, _ = make_agent([{"action": "search", "params": {"query": "x"}}], policy=Never(), max_iterations=2)
        with pytest.raises(MaxIterationsExceeded):
            agent.run("x")

    def test_planner_decision_object_passthrough(self):
        agent, _ = make_agent([Decision(action="finish")])
        assert agent.run("x") == {"done": True}
