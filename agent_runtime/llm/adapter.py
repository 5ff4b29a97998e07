"""LLM client protocol and shared message types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, runtime_checkable


@dataclass
class ToolCall:
    """A tool call requested by the chat model. `arguments` may still be raw JSON."""

    id: str
    name: str
    arguments: str | dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "function": {"name": self.name, "arguments": self.arguments}}


@dataclass
class ToolResult:
    """Outcome of one tool call: either `result` or `error` is meaningful."""

    tool_call_id: str
    name: str
    result: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"tool_call_id": self.tool_call_id, "name": self.name}
        if self.error is None:
            d["result"] = self.result
        else:
            d["error"] = self.error
        return d


@dataclass
class Message:
    """A chat message."""

    role: str  # "system", "user", "assistant", "tool"
    content: str | None = None
    tool_calls: list[dict[str, Any]] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        msg: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            msg["tool_calls"] = self.tool_calls
        if self.tool_call_id is not None:
            msg["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            msg["name"] = self.name
        return msg


@runtime_checkable
class LLMClient(Protocol):
    """Minimal protocol for model providers.

    Implementations must provide:
      - generate(): single-shot, schema-constrained JSON generation
      - chat_raw(): chat with tool definitions, returning the full response;
        tool calls are read from `message.tool_calls`
    """

    def generate(self, *, prompt: str, schema: Mapping[str, Any]) -> Mapping[str, Any]: ...

    def chat_raw(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> Any: ...


def _lookup(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def extract_tool_calls(response: Any) -> list[Any]:
    """Pull tool calls out of a raw chat response.

    `message.tool_calls` is checked first, then a top-level `tool_calls`.
    Anything else means no tool calls.
    """
    if response is None or isinstance(response, str):
        return []
    message = _lookup(response, "message")
    if message is not None:
        calls = _lookup(message, "tool_calls")
        if isinstance(calls, (list, tuple)) and calls:
            return list(calls)
    calls = _lookup(response, "tool_calls")
    if isinstance(calls, (list, tuple)):
        return list(calls)
    return []


def extract_content(response: Any) -> str:
    """Text content of a raw chat response (`message.content`, then `content`)."""
    if response is None:
        return ""
    if isinstance(response, str):
        return response
    message = _lookup(response, "message")
    if message is not None:
        content = _lookup(message, "content")
        if content is not None:
            return str(content)
    content = _lookup(response, "content")
    if content is not None:
        return str(content)
    return str(response)


def parse_tool_call(raw: Any) -> ToolCall:
    """Normalize one `{id, function: {name, arguments}}`-shaped entry.

    Arguments are left undecoded; a missing id becomes an empty string.
    """
    if isinstance(raw, ToolCall):
        return raw
    function = _lookup(raw, "function") or {}
    name = _lookup(function, "name") or _lookup(raw, "name") or ""
    arguments = _lookup(function, "arguments")
    if arguments is None:
        arguments = _lookup(raw, "arguments")
    call_id = _lookup(raw, "id") or ""
    return ToolCall(id=str(call_id), name=str(name), arguments=arguments if arguments is not None else {})
