"""Routes tool calls to handlers and shapes every outcome into a response."""

import asyncio
import logging
from typing import Any, Mapping, Optional

from server.errors import GatewayError, UnknownToolError, classify_exception
from server.registry import ToolCategory, ToolDescriptor, ToolRegistry
from server.responses import ToolResponse, build_error, build_success
from server.session import ExecutionContext, resolve_launch_settings

logger = logging.getLogger(__name__)


class Dispatcher:
    """Single entry point for tool execution.

    Calls are serialized: the execution context is shared and handlers mutate
    it, so only one tool runs at a time.
    """

    def __init__(self, registry: ToolRegistry, context: ExecutionContext):
        self.registry = registry
        self.context = context
        self._lock = asyncio.Lock()

    async def dispatch(
        self, name: str, arguments: Optional[Mapping[str, Any]] = None
    ) -> ToolResponse:
        try:
            descriptor = self.registry.lookup(name)
        except UnknownToolError as e:
            logger.warning(f"Rejected call to unknown tool: {name}")
            return build_error(e.render())

        async with self._lock:
            try:
                return await self._execute(descriptor, dict(arguments or {}))
            except asyncio.CancelledError:
                raise
            except Exception as e:
                error = classify_exception(e)
                self._log_failure(name, error, e)
                return build_error(error.render())

    async def _execute(
        self, descriptor: ToolDescriptor, arguments: dict
    ) -> ToolResponse:
        args = descriptor.arguments.model_validate(arguments)

        if descriptor.launches_browser:
            launch = resolve_launch_settings(self.context.settings, args)
            await self.context.ensure_session(launch)
        elif descriptor.category is ToolCategory.HTTP:
            self.context.ensure_http_client()

        result = await descriptor.handler(args, self.context)
        response = result if isinstance(result, ToolResponse) else build_success(result)

        if descriptor.category is ToolCategory.BROWSER and self.context.recorder.active:
            self.context.recorder.record(
                descriptor.name,
                args.model_dump(mode="json", by_alias=True, exclude_none=True),
            )
        return response

    @staticmethod
    def _log_failure(name: str, error: GatewayError, cause: Exception) -> None:
        message = f"Tool {name} failed: {error.render()}"
        extra = {
            "tool": name,
            "error_kind": error.kind.value,
            "retryable": error.retryable,
        }
        if error is cause:
            logger.error(message, extra=extra)
        else:
            logger.error(message, exc_info=cause, extra=extra)

    async def shutdown(self) -> None:
        async with self._lock:
            await self.context.close_all()
