"""Planning/chat collaborator wrapping an LLM client."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from .decision import Decision
from .errors import ExecutionError
from .llm.adapter import LLMClient, Message, extract_content

PromptBuilder = Callable[..., str]


class Planner:
    """Produces Decisions and relays chat turns to an LLM client.

    Args:
        client: Object implementing the LLMClient protocol.
        schema: JSON schema the generated decision must follow.
        prompt_builder: Called as `prompt_builder(input=..., state=...)` to
            build the planning prompt.

    `plan()` needs both `schema` and `prompt_builder`; chat methods do not.
    """

    def __init__(
        self,
        client: LLMClient,
        schema: Mapping[str, Any] | None = None,
        prompt_builder: PromptBuilder | None = None,
    ):
        self.client = client
        self.schema = schema
        self.prompt_builder = prompt_builder

    def is_configured_for_planning(self) -> bool:
        return self.schema is not None and self.prompt_builder is not None

    def plan(self, input: Any, state: Mapping[str, Any] | None = None) -> Decision:
        if not self.is_configured_for_planning():
            raise ExecutionError("Planner requires schema and prompt_builder for planning")

        prompt = self.prompt_builder(input=input, state=state if state is not None else {})
        raw = self.client.generate(prompt=prompt, schema=self.schema)
        if isinstance(raw, Decision):
            return raw
        if not isinstance(raw, Mapping):
            raise ExecutionError(f"Planner expected a mapping, got {type(raw).__name__}")
        try:
            return Decision.from_dict(raw)
        except (TypeError, ValueError) as e:
            raise ExecutionError(f"Planner returned an invalid decision: {e}") from e

    def chat_raw(self, messages: list[Message], tools: list[dict[str, Any]] | None = None) -> Any:
        return self.client.chat_raw(messages, tools=tools)

    def chat(self, messages: list[Message], tools: list[dict[str, Any]] | None = None) -> str:
        return extract_content(self.chat_raw(messages, tools=tools))
