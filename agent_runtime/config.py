"""Runtime tunables and factories that wire the collaborators together."""

from __future__ import annotations

import os
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .agent import Agent
from .agent_fsm import AgentFSM
from .audit import AuditLog
from .errors import ConfigError
from .executor import Executor
from .fsm import DEFAULT_MAX_ITERATIONS
from .policy import Policy
from .state import MergeStrategy, State
from .tools import ToolRegistry

ENV_PREFIX = "AGENT_RUNTIME_"

# field name -> environment variable
_ENV_FIELDS = {
    "max_iterations": ENV_PREFIX + "MAX_ITERATIONS",
    "merge_strategy": ENV_PREFIX + "MERGE_STRATEGY",
    "allowed_actions": ENV_PREFIX + "ALLOWED_ACTIONS",
    "min_confidence": ENV_PREFIX + "MIN_CONFIDENCE",
}


class RuntimeConfig(BaseModel):
    """Settings shared by both orchestrators.

    Attributes:
        max_iterations: Iteration ceiling for a run.
        merge_strategy: How results merge into State ("deep" or "shallow").
        allowed_actions: Action allow-list for the Policy; None allows any.
        min_confidence: Minimum decision confidence; None disables the check.
    """

    model_config = ConfigDict(frozen=True)

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    merge_strategy: MergeStrategy = MergeStrategy.DEEP
    allowed_actions: tuple[str, ...] | None = None
    min_confidence: float | None = None

    @field_validator("max_iterations")
    @classmethod
    def validate_max_iterations(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_iterations must be >= 0")
        return v

    @field_validator("merge_strategy", mode="before")
    @classmethod
    def parse_merge_strategy(cls, v: Any) -> Any:
        """Accept the strategy name in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("allowed_actions", mode="before")
    @classmethod
    def parse_allowed_actions(cls, v: Any) -> Any:
        """Accept both a sequence and a comma-separated string."""
        if isinstance(v, str):
            return [a.strip() for a in v.split(",") if a.strip()]
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RuntimeConfig:
        """Build a config from AGENT_RUNTIME_* variables; unset ones keep their defaults.

        Raises:
            ConfigError: a variable holds a value the model rejects. The
                message names the offending variables.
        """
        data: dict[str, Any] = {}
        _apply_env_overrides(data, os.environ if environ is None else environ)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            names = ", ".join(_ENV_FIELDS.get(f, f) for f in fields)
            raise ConfigError(f"Invalid environment configuration ({names}): {exc}") from exc

    def make_state(self, data: Mapping[str, Any] | None = None) -> State:
        return State(data, merge_strategy=self.merge_strategy)

    def make_policy(self) -> Policy:
        return Policy(allowed_actions=self.allowed_actions, min_confidence=self.min_confidence)


def _apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> None:
    """Overlay non-empty AGENT_RUNTIME_* variables onto `data`."""
    for field, name in _ENV_FIELDS.items():
        if value := environ.get(name, "").strip():
            data[field] = value


def create_agent(
    planner: Any,
    tools: ToolRegistry,
    config: RuntimeConfig | None = None,
    *,
    policy: Policy | None = None,
    audit_log: AuditLog | None = None,
) -> Agent:
    """Build a flat-loop Agent from a tool registry and a config."""
    config = config or RuntimeConfig()
    return Agent(
        planner=planner,
        policy=policy or config.make_policy(),
        executor=Executor(tools),
        state=config.make_state(),
        audit_log=audit_log,
        max_iterations=config.max_iterations,
    )


def create_agent_fsm(
    planner: Any,
    tools: ToolRegistry,
    config: RuntimeConfig | None = None,
    *,
    policy: Policy | None = None,
    audit_log: AuditLog | None = None,
) -> AgentFSM:
    """Build an FSM orchestrator from a tool registry and a config.

    The policy is only applied to tool calls when one is passed explicitly.
    """
    config = config or RuntimeConfig()
    return AgentFSM(
        planner=planner,
        executor=Executor(tools),
        state=config.make_state(),
        policy=policy,
        audit_log=audit_log,
        max_iterations=config.max_iterations,
    )
