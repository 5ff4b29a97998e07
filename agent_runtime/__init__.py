"""agent-runtime: control core for tool-using, LLM-driven agents.

Two orchestration strategies share the same collaborators (Decision, Policy,
Executor/ToolRegistry, State, AuditLog): a flat step/run `Agent` and an
eight-state `AgentFSM` that walks INTAKE -> PLAN -> DECIDE -> EXECUTE ->
OBSERVE -> LOOP_CHECK -> FINALIZE/HALT.
"""

__version__ = "0.2.0"

from .agent import Agent
from .agent_fsm import AgentFSM, Finalized, Halted, Plan
from .audit import AuditEntry, AuditLog
from .config import RuntimeConfig, create_agent, create_agent_fsm
from .decision import Decision
from .errors import (
    AgentHalted,
    AgentRuntimeError,
    ConfigError,
    ExecutionError,
    InvalidToolSpec,
    InvalidTransition,
    MaxIterationsExceeded,
    PolicyViolation,
    ToolNotFound,
)
from .executor import Executor
from .fsm import FSM, FSMState, Transition
from .llm.adapter import LLMClient, Message, ToolCall, ToolResult
from .planner import Planner
from .policy import Policy
from .progress import ProgressTracker
from .state import MergeStrategy, State
from .tools import ToolRegistry, ToolSpec

__all__ = [
    # Orchestrators
    "Agent",
    "AgentFSM",
    "Finalized",
    "Halted",
    "Plan",
    # State machine
    "FSM",
    "FSMState",
    "Transition",
    # Collaborators
    "Decision",
    "Policy",
    "Executor",
    "Planner",
    "State",
    "MergeStrategy",
    "ProgressTracker",
    "AuditLog",
    "AuditEntry",
    # Tools
    "ToolSpec",
    "ToolRegistry",
    # LLM
    "LLMClient",
    "Message",
    "ToolCall",
    "ToolResult",
    # Config
    "RuntimeConfig",
    "create_agent",
    "create_agent_fsm",
    # Errors
    "AgentRuntimeError",
    "PolicyViolation",
    "ToolNotFound",
    "InvalidToolSpec",
    "ExecutionError",
    "MaxIterationsExceeded",
    "InvalidTransition",
    "AgentHalted",
    "ConfigError",
]
