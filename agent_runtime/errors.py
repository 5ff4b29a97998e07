"""Custom exceptions for agent-runtime."""

from __future__ import annotations

from typing import Any


class AgentRuntimeError(Exception):
    """Base class for every error raised by the runtime."""


class PolicyViolation(AgentRuntimeError):
    """Raised when a decision is rejected before execution."""

    def __init__(self, message: str, decision: Any = None):
        self.decision = decision
        super().__init__(message)


class ToolNotFound(AgentRuntimeError):
    """Raised when an unregistered tool is requested."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class InvalidToolSpec(AgentRuntimeError):
    """Raised when a tool is registered with an unusable parameter schema."""


class ExecutionError(AgentRuntimeError):
    """Tool dispatch failure, or a fatal halt of a workflow run."""


class MaxIterationsExceeded(ExecutionError):
    """Raised when a run goes past its iteration ceiling."""

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(f"Max iterations ({max_iterations}) exceeded")


class InvalidTransition(ExecutionError):
    """Raised when a transition outside the transition table is requested."""

    def __init__(self, from_state: Any, to_state: Any):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition from {_name(from_state)} to {_name(to_state)}")


class ConfigError(AgentRuntimeError, ValueError):
    """Raised when runtime settings fail validation."""


class AgentHalted(ExecutionError):
    """Raised by AgentFSM.run when the workflow ends in HALT."""

    def __init__(self, reason: str, outcome: Any = None):
        self.reason = reason
        self.outcome = outcome
        super().__init__(f"Agent halted: {reason}")


def _name(state: Any) -> str:
    return getattr(state, "name", None) or str(state)
