"""OpenAI-compatible LLM client."""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..errors import ExecutionError
from .adapter import Message


class OpenAIClient:
    """Client for the OpenAI chat completions API.

    `chat_raw` returns `{"message": ..., "finish_reason": ..., "usage": ...}`
    with the assistant message as a plain dict, so tool calls sit at
    `message.tool_calls` in `{id, function: {name, arguments}}` form.
    """

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: str | None = None,
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        client: Any = None,
        **kwargs,
    ):
        if client is None:
            try:
                import openai
            except ImportError:
                raise ImportError("Install openai: pip install 'agent-runtime[openai]'")
            client = openai.OpenAI(api_key=api_key, **kwargs)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    def generate(self, *, prompt: str, schema: Mapping[str, Any]) -> dict[str, Any]:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.0,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "decision", "schema": dict(schema)},
            },
        )
        content = response.choices[0].message.content or ""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ExecutionError(f"Model returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ExecutionError(f"Model returned {type(data).__name__}, expected an object")
        return data

    def chat_raw(
        self,
        messages: list[Message | Mapping[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [self._convert_message(m) for m in messages],
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            kwargs["max_tokens"] = self.max_tokens
        if tools:
            kwargs["tools"] = tools

        response = self._client.chat.completions.create(**kwargs)
        choice = response.choices[0]

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return {
            "message": choice.message.model_dump(exclude_none=True),
            "finish_reason": choice.finish_reason,
            "usage": usage,
        }

    def chat(
        self,
        messages: list[Message | Mapping[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> str:
        return self.chat_raw(messages, tools=tools)["message"].get("content") or ""

    @staticmethod
    def _convert_message(m: Message | Mapping[str, Any]) -> dict[str, Any]:
        msg = m.to_dict() if isinstance(m, Message) else dict(m)
        tool_calls = msg.get("tool_calls")
        if tool_calls:
            msg["tool_calls"] = [
                {
                    "id": tc["id"],
                    "type": "function",
                    "function": {
                        "name": tc["function"]["name"],
                        "arguments": _arguments_json(tc["function"].get("arguments")),
                    },
                }
                for tc in tool_calls
            ]
        return msg


def _arguments_json(arguments: Any) -> str:
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments or {})
