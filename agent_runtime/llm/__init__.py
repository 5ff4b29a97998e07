"""LLM client layer."""

from .adapter import (
    LLMClient,
    Message,
    ToolCall,
    ToolResult,
    extract_content,
    extract_tool_calls,
    parse_tool_call,
)

__all__ = [
    "LLMClient",
    "Message",
    "ToolCall",
    "ToolResult",
    "extract_content",
    "extract_tool_calls",
    "parse_tool_call",
]
