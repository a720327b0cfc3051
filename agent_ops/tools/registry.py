"""Tool registry: name -> callable handed to the agent SDK."""

import inspect
from collections.abc import Callable
from dataclasses import dataclass

from agent_ops.tools.calculator import calculate
from agent_ops.tools.dates import format_date


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    func: Callable[..., str]

    @property
    def parameters(self) -> list[str]:
        return list(inspect.signature(self.func).parameters)


_tools: dict[str, ToolSpec] = {}


def register_tool(func: Callable[..., str], name: str | None = None) -> ToolSpec:
    """Register a plain function. The first docstring line is its description."""
    tool_name = name or func.__name__
    if tool_name in _tools:
        raise ValueError(f"Tool already registered: {tool_name}")
    doc = inspect.getdoc(func) or ""
    spec = ToolSpec(name=tool_name, description=doc.splitlines()[0] if doc else "", func=func)
    _tools[tool_name] = spec
    return spec


def get_tool(name: str) -> ToolSpec:
    if name not in _tools:
        raise KeyError(f"Unknown tool: {name}")
    return _tools[name]


def list_tools() -> list[ToolSpec]:
    return sorted(_tools.values(), key=lambda t: t.name)


def invoke_tool(name: str, **kwargs) -> str:
    spec = get_tool(name)
    return spec.func(**kwargs)


def agent_tools() -> list[Callable[..., str]]:
    """Plain callables in the form the agent SDK's `tools=` argument expects."""
    return [spec.func for spec in list_tools()]


register_tool(calculate)
register_tool(format_date)
