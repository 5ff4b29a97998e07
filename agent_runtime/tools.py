"""Tool specifications and the name -> callable registry."""

from __future__ import annotations

import inspect
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping

from .errors import InvalidToolSpec, ToolNotFound

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    dict: "object",
}
_JSON_TYPE_NAMES = {t.__name__: name for t, name in _JSON_TYPES.items()}


def _json_type(annotation: Any) -> str | None:
    if annotation is inspect.Parameter.empty:
        return None
    if isinstance(annotation, str):
        return _JSON_TYPE_NAMES.get(annotation.split("[", 1)[0].strip())
    origin = typing.get_origin(annotation) or annotation
    return _JSON_TYPES.get(origin)


def _is_json_value(value: Any) -> bool:
    if value is None or isinstance(value, (str, int, float, bool)):
        return True
    if isinstance(value, (list, tuple)):
        return all(_is_json_value(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and _is_json_value(v) for k, v in value.items())
    return False


def _signature_schema(func: Callable) -> dict[str, Any]:
    """Infer a JSON-schema object for the keyword parameters of `func`."""
    try:
        hints = typing.get_type_hints(func)
    except Exception:
        hints = {}
    properties: dict[str, Any] = {}
    required: list[str] = []
    for name, param in inspect.signature(func).parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        prop: dict[str, Any] = {}
        json_type = _json_type(hints.get(name, param.annotation))
        if json_type:
            prop["type"] = json_type
        if param.default is inspect.Parameter.empty:
            required.append(name)
        elif _is_json_value(param.default):
            prop["default"] = param.default
        properties[name] = prop
    return {"type": "object", "properties": properties, "required": required}


def _validate_parameters(name: str, parameters: Any) -> None:
    if not isinstance(parameters, Mapping) or parameters.get("type") != "object":
        raise InvalidToolSpec(f"Tool '{name}' parameters must be a JSON schema of type 'object'")
    properties = parameters.get("properties", {})
    if not isinstance(properties, Mapping):
        raise InvalidToolSpec(f"Tool '{name}' parameter properties must be a mapping")
    missing = [r for r in parameters.get("required", []) if r not in properties]
    if missing:
        raise InvalidToolSpec(f"Tool '{name}' requires undeclared parameters: {', '.join(missing)}")


@dataclass
class ToolSpec:
    """A callable tool plus the schema the chat model sees for it."""

    name: str
    func: Callable[..., Any]
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidToolSpec("Tool name must be non-empty")
        if not callable(self.func):
            raise InvalidToolSpec(f"Tool '{self.name}' is not callable")
        _validate_parameters(self.name, self.parameters)

    @classmethod
    def from_callable(
        cls,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> ToolSpec:
        tool_name = name or getattr(func, "__name__", "")
        doc = inspect.getdoc(func) or ""
        return cls(
            name=tool_name,
            func=func,
            description=description or doc.split("\n\n", 1)[0] or f"Tool: {tool_name}",
            parameters=parameters if parameters is not None else _signature_schema(func),
        )

    def __call__(self, **kwargs: Any) -> Any:
        return self.func(**kwargs)

    def to_openai_schema(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    """Maps action names to tools.

    Usage:
        tools = ToolRegistry({"search": search})
        tools.register(fetch_quote, name="quote", description="Latest quote")
        tools.call("search", {"query": "weather"})
    """

    def __init__(self, tools: Mapping[str, Callable[..., Any] | ToolSpec] | None = None):
        self._tools: dict[str, ToolSpec] = {}
        for name, func in (tools or {}).items():
            self.register(func, name=name)

    def register(
        self,
        func: Callable[..., Any] | ToolSpec,
        *,
        name: str | None = None,
        description: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> ToolSpec:
        """Register a callable (or a prebuilt ToolSpec) and return its spec."""
        if isinstance(func, ToolSpec):
            spec = func
            if name and name != spec.name:
                spec = ToolSpec(name, spec.func, spec.description, spec.parameters)
        else:
            spec = ToolSpec.from_callable(func, name=name, description=description, parameters=parameters)
        self._tools[spec.name] = spec
        return spec

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFound(name) from None

    def call(self, name: str, params: Mapping[str, Any] | None = None) -> Any:
        tool = self.get(name)
        return tool(**dict(params or {}))

    def names(self) -> list[str]:
        return sorted(self._tools)

    def specs(self) -> list[ToolSpec]:
        return [self._tools[n] for n in self.names()]

    def definitions(self) -> list[dict[str, Any]]:
        """Chat-facing tool definitions for every registered tool."""
        return [spec.to_openai_schema() for spec in self.specs()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self.specs())
