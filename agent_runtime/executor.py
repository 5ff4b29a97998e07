"""Turns decisions and tool calls into tool invocations."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .decision import Decision
from .errors import ExecutionError
from .state import State
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

FINISH = "finish"


def normalize_params(params: Mapping[Any, Any] | None) -> dict[str, Any]:
    """Recursively convert every mapping key to `str`, copying containers."""
    if not params:
        return {}
    return {str(key): _normalize_value(value) for key, value in params.items()}


def _normalize_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_params(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_value(item) for item in value]
    return value


class Executor:
    """Single dispatch path from an action name to a registered tool.

    Every failure, including an unknown tool, surfaces as ExecutionError.
    """

    def __init__(self, tool_registry: ToolRegistry):
        self.tools = tool_registry

    def execute(self, decision: Decision, state: State | Any = None) -> Any:
        """Run a decision. The `finish` action returns `{"done": True}` untouched."""
        if decision.action == FINISH:
            return {"done": True}

        result = self.call_tool(decision.action, decision.params)
        if isinstance(state, State):
            state.progress.mark("tool_called")
            state.progress.mark("step_completed")
        return result

    def call_tool(self, name: str, params: Mapping[Any, Any] | None = None) -> Any:
        normalized = normalize_params(params)
        try:
            return self.tools.call(name, normalized)
        except ExecutionError:
            raise
        except Exception as e:
            logger.debug("Tool '%s' failed: %s", name, e)
            raise ExecutionError(str(e)) from e
