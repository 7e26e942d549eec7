"""Response envelope builder.

All tool results and errors are shaped here. The character ceiling is an
absolute hard limit: callers may ask for less, never for more.
"""

import base64
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import mcp.types as types

# Absolute ceiling for the text of a single response.
MAX_RESPONSE_LENGTH = 20000

TRUNCATION_MARKER = (
    "\n[Output truncated due to size limits - exceeded "
    f"{MAX_RESPONSE_LENGTH} characters]"
)

# Room left for the prefix and suffix lines artifact-heavy tools put around
# the body.
ARTIFACT_HEADROOM = 100

ContentBlock = Union[types.TextContent, types.ImageContent]


def effective_limit(requested: Optional[int] = None) -> int:
    """Clamp a caller supplied length into ``[0, MAX_RESPONSE_LENGTH]``."""
    if requested is None:
        return MAX_RESPONSE_LENGTH
    return max(0, min(int(requested), MAX_RESPONSE_LENGTH))


def artifact_limit(requested: Optional[int] = None) -> int:
    """Budget for a long artifact embedded in a multi-line response.

    Near the ceiling it leaves room for the surrounding lines and for the
    marker of the inner cut, so the outer ceiling does not cut the response a
    second time. Smaller requests keep their own length.
    """
    reserved = ARTIFACT_HEADROOM + len(TRUNCATION_MARKER)
    return max(0, min(effective_limit(requested), MAX_RESPONSE_LENGTH - reserved))


def truncate_text(text: str, max_length: Optional[int] = None) -> str:
    """Cut ``text`` to the effective limit and append the marker if cut."""
    limit = effective_limit(max_length)
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class ToolResponse:
    """Bounded tool response.

    Only build instances through ``build_success`` / ``build_error``; they are
    the places where the text ceiling is applied.
    """

    content: List[ContentBlock] = field(default_factory=list)
    is_error: bool = False

    @property
    def text(self) -> str:
        return "".join(
            block.text
            for block in self.content
            if isinstance(block, types.TextContent)
        )

    def to_call_tool_result(self) -> types.CallToolResult:
        return types.CallToolResult(content=list(self.content), isError=self.is_error)


def build_success(
    message: Union[str, Sequence[str]],
    max_length: Optional[int] = None,
    images: Sequence[ImagePayload] = (),
) -> ToolResponse:
    """Build a success response from one or more text parts and optional images."""
    parts = [message] if isinstance(message, str) else list(message)
    text = truncate_text("\n".join(parts), max_length)
    content: List[ContentBlock] = [types.TextContent(type="text", text=text)]
    for image in images:
        content.append(
            types.ImageContent(
                type="image",
                data=base64.b64encode(image.data).decode("ascii"),
                mimeType=image.mime_type,
            )
        )
    return ToolResponse(content=content, is_error=False)


def build_error(message: str) -> ToolResponse:
    return ToolResponse(
        content=[types.TextContent(type="text", text=truncate_text(message))],
        is_error=True,
    )
