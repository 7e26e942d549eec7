"""
Playwright MCP Server

This module implements an MCP (Model Context Protocol) server that exposes a
single shared Playwright browser session, plus a small HTTP client, as a set
of tools. Every tool call goes through the dispatcher, which validates the
arguments, launches the browser on demand and shapes the result into a
bounded response.

The server talks stdio by default and Server-Sent Events (SSE) with ``--sse``.
"""

# Standard library imports
import asyncio
import base64
import logging
import signal
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, Optional

# Third-party imports
import click
import mcp.types as types
import uvicorn
from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from pythonjsonlogger import jsonlogger
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Mount, Route

from server.config import GatewaySettings, describe_settings, resolve_settings
from server.dispatcher import Dispatcher
from server.session import ExecutionContext
from server.tools import create_tool_registry

LOG_FORMAT = (
    '{"time":"%(asctime)s","level":"%(levelname)s",'
    '"name":"%(name)s","message":"%(message)s"}'
)

CONSOLE_LOGS_URI = "console://logs"
SCREENSHOT_URI_PREFIX = "screenshot://"

# Configure logging
logger = logging.getLogger()
logger.handlers = []  # Remove any existing handlers
handler = logging.StreamHandler(sys.stderr)
handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
logger.addHandler(handler)
# Do not set root logger level at import time; allow `main()` to control levels
logger.setLevel(logging.NOTSET)

# Configure uvicorn logger handlers but do not override levels here
uvicorn_logger = logging.getLogger("uvicorn")
uvicorn_logger.handlers = []
uvicorn_logger.addHandler(handler)
uvicorn_logger.propagate = False


def apply_log_level(log_level: str) -> int:
    """Apply ``log_level`` to the root logger and the noisy library loggers."""
    chosen_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(chosen_level)
    for logger_name in [
        "uvicorn",
        "uvicorn.error",
        "uvicorn.access",
        "playwright",
        "mcp",
    ]:
        logging.getLogger(logger_name).setLevel(chosen_level)
    return chosen_level


def create_dispatcher(settings: GatewaySettings) -> Dispatcher:
    return Dispatcher(create_tool_registry(), ExecutionContext(settings))


def create_mcp_server(dispatcher: Dispatcher) -> Server:
    """
    Create and configure an MCP server around a dispatcher.

    Args:
        dispatcher: Dispatcher that owns the tool registry and execution context

    Returns:
        Configured MCP server instance
    """
    app = Server("playwright-mcp")
    context = dispatcher.context

    # Arguments are validated by the dispatcher so that failures come back in
    # the gateway's own error format.
    @app.call_tool(validate_input=False)
    async def call_tool(
        name: str, arguments: Optional[Dict[str, Any]]
    ) -> types.CallToolResult:
        """Handle tool calls from the MCP client."""
        response = await dispatcher.dispatch(name, arguments)
        return response.to_call_tool_result()

    @app.list_tools()
    async def list_tools() -> list[types.Tool]:
        """List the available tools for the MCP client."""
        return dispatcher.registry.to_mcp_tools()

    @app.list_resources()
    async def list_resources() -> list[types.Resource]:
        """
        List the available resources for the MCP client.

        Returns:
            The console log buffer and every screenshot kept in memory
        """
        resources = [
            types.Resource(
                uri=CONSOLE_LOGS_URI,
                name="Browser console logs",
                mimeType="text/plain",
            )
        ]
        for name in context.screenshots:
            resources.append(
                types.Resource(
                    uri=f"{SCREENSHOT_URI_PREFIX}{name}",
                    name=f"Screenshot: {name}",
                    mimeType="image/png",
                )
            )
        return resources

    @app.read_resource()
    async def read_resource(uri: Any) -> Iterable[ReadResourceContents]:
        """
        Read a resource for the MCP client.

        Args:
            uri: The URI of the resource to read

        Returns:
            The contents of the resource
        """
        uri_str = str(uri)
        if uri_str.rstrip("/") == CONSOLE_LOGS_URI:
            return [
                ReadResourceContents(
                    content="\n".join(context.console_logs),
                    mime_type="text/plain",
                )
            ]

        if uri_str.startswith(SCREENSHOT_URI_PREFIX):
            name = uri_str[len(SCREENSHOT_URI_PREFIX):].rstrip("/")
            data = context.screenshots.get(name)
            if data is not None:
                return [
                    ReadResourceContents(
                        content=base64.b64decode(data), mime_type="image/png"
                    )
                ]

        raise ValueError(f"Resource not found: {uri_str}")

    return app


def create_starlette_app(app: Server, dispatcher: Dispatcher) -> Starlette:
    """Wrap the MCP server in a Starlette app serving the SSE transport."""
    sse = SseServerTransport("/messages/")

    async def handle_sse(request):
        """Handle SSE connections from clients."""
        try:
            async with sse.connect_sse(
                request.scope, request.receive, request._send
            ) as streams:
                await app.run(
                    streams[0], streams[1], app.create_initialization_options()
                )
        except Exception as e:
            logger.error(f"Error in handle_sse: {str(e)}", exc_info=True)
            return PlainTextResponse(
                f"Internal server error in SSE handler: {str(e)}",
                status_code=500,
            )

        # Starlette needs an ASGI response once the SSE stream ends.
        return PlainTextResponse("")

    async def _health(request):
        """Simple health endpoint for Docker and load balancers."""
        return PlainTextResponse("ok")

    @asynccontextmanager
    async def lifespan(starlette_app):
        logger.info("Starting MCP server...")
        try:
            yield
        finally:
            await dispatcher.shutdown()
            logger.info("MCP server stopped")

    return Starlette(
        routes=[
            Route("/health", endpoint=_health),
            Route("/sse", endpoint=handle_sse),
            Mount("/messages/", app=sse.handle_post_message),
        ],
        lifespan=lifespan,
    )


def _handle_loop_exception(
    loop: asyncio.AbstractEventLoop, context: Dict[str, Any]
) -> None:
    exc = context.get("exception")
    message = context.get("message", "Unhandled error in event loop")
    if exc is not None:
        logger.error(f"{message}: {exc}", exc_info=exc)
    else:
        logger.error(message)


async def run_stdio(app: Server, dispatcher: Dispatcher) -> None:
    """Serve over stdio until the client disconnects or a signal arrives."""
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_handle_loop_exception)

    async def serve() -> None:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream, write_stream, app.create_initialization_options()
            )

    serve_task = asyncio.ensure_future(serve())
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, serve_task.cancel)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on some platforms.
            logger.debug(f"Cannot install handler for {sig!r}")

    try:
        await serve_task
    except asyncio.CancelledError:
        logger.info("Shutdown requested")
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
        await dispatcher.shutdown()
        logger.info("Browser resources released")


def run_sse(app: Server, dispatcher: Dispatcher, port: int, log_level: str) -> None:
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": LOG_FORMAT,
            }
        },
        "handlers": {
            "default": {
                "formatter": "json",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": log_level.upper(),
                "propagate": False,
            },
            "uvicorn.error": {"level": log_level.upper()},
            "uvicorn.access": {
                "handlers": ["default"],
                "level": log_level.upper(),
                "propagate": False,
            },
        },
    }

    logger.info(f"Running in SSE mode on port {port}")
    uvicorn.run(
        create_starlette_app(app, dispatcher),
        host="0.0.0.0",  # nosec
        port=port,
        log_config=log_config,
        log_level=log_level.lower(),
    )


@click.command()
@click.option(
    "--headless",
    is_flag=True,
    default=False,
    help="Run every browser headless (overrides PLAYWRIGHT_HEADLESS)",
)
@click.option(
    "--proxy",
    default=None,
    help=(
        "Proxy as JSON, e.g. '{\"server\": \"http://proxy:8080\"}' "
        "(overrides PLAYWRIGHT_PROXY)"
    ),
)
@click.option(
    "--sse", is_flag=True, default=False, help="Serve over SSE instead of stdio"
)
@click.option("--port", default=8081, help="Port to listen on for SSE")
@click.option(
    "--log-level",
    envvar="LOG_LEVEL",
    default="INFO",
    help="Logging level for server (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
def main(
    headless: bool,
    proxy: Optional[str],
    sse: bool,
    port: int,
    log_level: str,
) -> int:
    """
    Run the Playwright MCP server.

    Global settings are resolved once here and stay fixed for the lifetime
    of the process.

    Args:
        headless: Force headless mode for every browser launch
        proxy: Proxy configuration as a JSON object
        sse: Serve over SSE instead of stdio
        port: Port to listen on for SSE
        log_level: Logging level

    Returns:
        Exit code (0 for success)
    """
    load_dotenv()
    apply_log_level(log_level)

    if sse and (port <= 0 or port > 65535):
        logger.error(f"Invalid port number: {port}")
        raise click.BadParameter(f"Invalid port number: {port}", param_hint="--port")

    settings = resolve_settings(headless_flag=headless, proxy_arg=proxy)
    for line in describe_settings(settings):
        logger.info(line)

    dispatcher = create_dispatcher(settings)
    app = create_mcp_server(dispatcher)

    if sse:
        run_sse(app, dispatcher, port, log_level)
    else:
        asyncio.run(run_stdio(app, dispatcher))
    return 0


if __name__ == "__main__":
    main()
