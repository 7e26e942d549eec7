"""Error kinds raised inside the gateway.

Every failure that reaches the dispatcher is mapped onto one of the kinds
below and returned to the caller as an ``isError`` response. Nothing in this
module decides how the message is rendered; see ``server.responses``.
"""

import asyncio
from enum import Enum
from typing import Optional

import requests
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from pydantic import ValidationError


class ErrorKind(str, Enum):
    """Classification attached to every error response."""

    UNKNOWN_TOOL = "UnknownTool"
    VALIDATION_FAILURE = "ValidationFailure"
    LAUNCH_FAILURE = "LaunchFailure"
    TIMEOUT = "Timeout"
    UPSTREAM_FAILURE = "UpstreamFailure"
    CONFIG_PARSE_FAILURE = "ConfigParseFailure"


class GatewayError(Exception):
    """Base class for classified gateway failures."""

    kind: ErrorKind = ErrorKind.UPSTREAM_FAILURE
    retryable: bool = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def render(self) -> str:
        return f"{self.kind.value}: {self.message}"


class UnknownToolError(GatewayError):
    kind = ErrorKind.UNKNOWN_TOOL
    retryable = False

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ArgumentValidationError(GatewayError):
    kind = ErrorKind.VALIDATION_FAILURE
    retryable = False


class LaunchFailure(GatewayError):
    kind = ErrorKind.LAUNCH_FAILURE


class OperationTimeout(GatewayError):
    kind = ErrorKind.TIMEOUT


class UpstreamFailure(GatewayError):
    kind = ErrorKind.UPSTREAM_FAILURE


class ConfigParseError(GatewayError):
    kind = ErrorKind.CONFIG_PARSE_FAILURE
    retryable = False


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or str(exc)


def classify_exception(exc: BaseException) -> GatewayError:
    """Map an arbitrary exception onto a ``GatewayError``.

    ``asyncio.CancelledError`` must never be passed here; callers re-raise it.
    """
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, ValidationError):
        return ArgumentValidationError(_describe_validation_error(exc))
    if isinstance(
        exc, (PlaywrightTimeoutError, asyncio.TimeoutError, requests.Timeout)
    ):
        return OperationTimeout(str(exc) or exc.__class__.__name__)
    message: Optional[str] = str(exc) or None
    return UpstreamFailure(message or exc.__class__.__name__)
