"""Example: a tool-using agent driven by the eight-state FSM.

Demonstrates:
- Registering plain functions as tools (schemas come from the signatures)
- Running AgentFSM with an OpenAI client, a policy and an audit log
- Handling a HALT outcome without exceptions via `execute()`

To run (requires an OpenAI API key):
    export OPENAI_API_KEY=sk-...
    python examples/calculator_agent.py
"""

import logging

from agent_runtime import (
    AuditLog,
    Halted,
    Planner,
    Policy,
    RuntimeConfig,
    ToolRegistry,
    create_agent_fsm,
)
from agent_runtime.llm.openai import OpenAIClient

PLAN_SCHEMA = {
    "type": "object",
    "properties": {
        "action": {"type": "string"},
        "params": {
            "type": "object",
            "properties": {
                "goal": {"type": "string"},
                "required_capabilities": {"type": "array", "items": {"type": "string"}},
                "initial_steps": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["goal", "required_capabilities", "initial_steps"],
            "additionalProperties": False,
        },
    },
    "required": ["action", "params"],
    "additionalProperties": False,
}


# -- Tools --

def add(a: float, b: float) -> float:
    """Add two numbers."""
    return a + b


def multiply(a: float, b: float) -> float:
    """Multiply two numbers."""
    return a * b


def build_prompt(input, state):
    return (
        "Plan how to answer the request below. Respond with action 'plan' and "
        f"params describing the goal and steps.\n\nRequest: {input}"
    )


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")

    tools = ToolRegistry()
    tools.register(add)
    tools.register(multiply)

    planner = Planner(OpenAIClient(model="gpt-4o"), schema=PLAN_SCHEMA, prompt_builder=build_prompt)
    audit = AuditLog()
    agent = create_agent_fsm(
        planner,
        tools,
        RuntimeConfig.from_env(),
        policy=Policy(allowed_actions=["add", "multiply"]),
        audit_log=audit,
    )

    outcome = agent.execute("What is (3 + 4) * 6?")
    if isinstance(outcome, Halted):
        print(f"Halted: {outcome.reason}")
    else:
        print(outcome.result.get("final_message"))

    for t in agent.fsm.history:
        print(f"  {t.from_state.value} -> {t.to_state.value}: {t.reason}")
    print(f"Audit entries: {len(audit.entries)}")


if __name__ == "__main__":
    main()
