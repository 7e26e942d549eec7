"""Static catalog of callable tools."""

from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Sequence,
    Type,
    Union,
)

import mcp.types as types
from pydantic import BaseModel

from server.errors import UnknownToolError

if TYPE_CHECKING:
    from server.responses import ToolResponse
    from server.session import ExecutionContext

HandlerResult = Union[str, Sequence[str], "ToolResponse"]
Handler = Callable[[Any, "ExecutionContext"], Awaitable[HandlerResult]]


class ToolCategory(str, Enum):
    BROWSER = "browser"
    HTTP = "http"
    CODEGEN = "codegen"


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    arguments: Type[BaseModel]
    category: ToolCategory
    handler: Handler
    # Browser tools launch the shared session first unless this is False.
    requires_session: bool = True

    @property
    def input_schema(self) -> Dict[str, Any]:
        schema = self.arguments.model_json_schema(by_alias=True)
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    @property
    def launches_browser(self) -> bool:
        return self.category is ToolCategory.BROWSER and self.requires_session

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )


class ToolRegistry:
    """Name to descriptor mapping, frozen once built."""

    def __init__(self, descriptors: Iterable[ToolDescriptor] = ()):
        self._tools: Dict[str, ToolDescriptor] = {}
        self._frozen = False
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: ToolDescriptor) -> None:
        if self._frozen:
            raise RuntimeError("Tool registry is frozen")
        if descriptor.name in self._tools:
            raise ValueError(f"Duplicate tool name: {descriptor.name}")
        self._tools[descriptor.name] = descriptor

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    def lookup(self, name: str) -> ToolDescriptor:
        descriptor = self._tools.get(name)
        if descriptor is None:
            raise UnknownToolError(name)
        return descriptor

    def list(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def to_mcp_tools(self) -> List[types.Tool]:
        return [d.to_mcp_tool() for d in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
