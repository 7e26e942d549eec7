"""Command line interface for mcp-playwright-server.

This module provides a command-line interface for starting the Playwright MCP
Server and for running a single tool call outside of an MCP client, which is
handy for smoke testing a machine's browser and proxy setup.
"""

import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

import click
from dotenv import load_dotenv
from pythonjsonlogger import jsonlogger


def _import_server():
    """Lazily import server functions to avoid early logging configuration."""
    from server.config import describe_settings, resolve_settings
    from server.server import apply_log_level, create_dispatcher
    from server.server import main as server_main

    return resolve_settings, describe_settings, create_dispatcher, apply_log_level, server_main


# Configure logging for CLI
logger = logging.getLogger()
logger.handlers = []  # Remove any existing handlers
handler = logging.StreamHandler(sys.stderr)
formatter = jsonlogger.JsonFormatter(
    '{"time":"%(asctime)s","level":"%(levelname)s",'
    '"name":"%(name)s","message":"%(message)s"}'
)
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(logging.INFO)


def log_error(message: str, error: Optional[Exception] = None):
    """Log error in JSON format to stderr"""
    error_data = {"error": message, "traceback": str(error) if error else None}
    print(json.dumps(error_data), file=sys.stderr)


@click.group()
def cli():
    """Playwright MCP Server command line interface."""


@cli.command()
@click.argument("subcommand")
@click.option(
    "--headless",
    is_flag=True,
    default=False,
    help="Run every browser headless (overrides PLAYWRIGHT_HEADLESS)",
)
@click.option("--proxy", default=None, help="Proxy configuration as JSON")
@click.option("--sse", is_flag=True, default=False, help="Serve over SSE")
@click.option("--port", default=8081, help="Port to listen on for SSE")
@click.option(
    "--log-level",
    default=None,
    help="Logging level for server (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
def run(subcommand, headless, proxy, sse, port, log_level):
    """Run the Playwright MCP server.

    SUBCOMMAND: should be 'server'
    """
    if subcommand != "server":
        log_error(
            f"Unknown subcommand: {subcommand}. Only 'server' is supported."
        )
        sys.exit(1)

    try:
        # Load .env early to respect LOG_LEVEL setting
        load_dotenv(override=False)

        server_args = ["--port", str(port)]
        if headless:
            server_args.append("--headless")
        if proxy:
            server_args.extend(["--proxy", proxy])
        if sse:
            server_args.append("--sse")

        # Determine effective log level: CLI flag > LOG_LEVEL env var > INFO default
        effective_log_level = log_level or os.getenv("LOG_LEVEL", "INFO")
        server_args.extend(["--log-level", effective_log_level])

        # Import server main lazily here so CLI logging config takes effect
        *_, server_main = _import_server()
        return server_main.main(
            args=server_args, prog_name="server", standalone_mode=False
        )
    except Exception as e:
        log_error("Error starting server", e)
        sys.exit(1)


def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise click.BadParameter("ARGUMENTS must be a JSON object")
    return data


@cli.command("call-tool")
@click.option(
    "--env-file",
    "env_file",
    "-e",
    default=None,
    help="Path to a .env file to load configurations from.",
)
@click.option(
    "--log-level",
    "-l",
    default=None,
    help="Override the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
@click.option("--headless", is_flag=True, default=False, help="Run headless")
@click.option("--proxy", default=None, help="Proxy configuration as JSON")
@click.argument("name", required=True)
@click.argument("arguments", required=False)
def call_tool(
    env_file: Optional[str],
    log_level: Optional[str],
    headless: bool,
    proxy: Optional[str],
    name: str,
    arguments: Optional[str],
):
    """Runs a single tool call from the CLI and prints the result.

    NAME: The tool to call, e.g. playwright_navigate.
    ARGUMENTS: The tool arguments as a JSON object.
    """
    try:
        # Load .env early to get LOG_LEVEL and other settings
        load_dotenv(override=False)  # Load default .env first

        # Load custom env file if provided (overrides default .env)
        if env_file:
            load_dotenv(dotenv_path=env_file, override=True)

        resolve_settings, describe_settings, create_dispatcher, apply_log_level, _ = (
            _import_server()
        )
        # Determine effective log level: CLI flag > LOG_LEVEL env var > INFO default
        apply_log_level(log_level or os.getenv("LOG_LEVEL") or "INFO")

        tool_arguments = _parse_arguments(arguments)
        settings = resolve_settings(headless_flag=headless, proxy_arg=proxy)
        for line in describe_settings(settings):
            logger.info(line)
        dispatcher = create_dispatcher(settings)

        async def _run():
            try:
                return await dispatcher.dispatch(name, tool_arguments)
            finally:
                await dispatcher.shutdown()

        response = asyncio.run(_run())
        print(json.dumps({"isError": response.is_error, "text": response.text}))
        if response.is_error:
            sys.exit(1)

    except (ValueError, click.BadParameter) as e:
        log_error("Invalid tool arguments", e)
        sys.exit(2)
    except Exception as e:
        log_error("CLI call-tool command failed", e)
        sys.exit(1)


@cli.command("list-tools")
def list_tools():
    """Print the name and description of every tool."""
    from server.tools import create_tool_registry

    for descriptor in create_tool_registry().list():
        print(f"{descriptor.name}\t{descriptor.description}")


if __name__ == "__main__":
    cli()
