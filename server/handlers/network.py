"""Network response expectations and assertions."""

import asyncio
import json
import logging
from fnmatch import fnmatch
from typing import Any

from server.errors import ArgumentValidationError, UpstreamFailure
from server.responses import artifact_limit, truncate_text
from server.schemas import AssertResponseArguments, ExpectResponseArguments
from server.session import ExecutionContext

logger = logging.getLogger(__name__)

RESPONSE_WAIT_TIMEOUT_MS = 30000


def url_matches(pattern: str, url: str) -> bool:
    """Glob match when the pattern has a wildcard, substring match otherwise."""
    if "*" in pattern:
        return fnmatch(url, pattern)
    return pattern in url


def _log_waiter_outcome(waiter_id: str, task: "asyncio.Task[Any]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Response waiter %s finished with %r", waiter_id, exc)


async def expect_response(
    args: ExpectResponseArguments, ctx: ExecutionContext
) -> str:
    previous = ctx.response_waiters.pop(args.id, None)
    if previous is not None:
        previous.cancel()

    pattern = args.url
    task = asyncio.ensure_future(
        ctx.page.wait_for_event(
            "response",
            predicate=lambda response: url_matches(pattern, response.url),
            timeout=RESPONSE_WAIT_TIMEOUT_MS,
        )
    )
    task.add_done_callback(lambda t: _log_waiter_outcome(args.id, t))
    ctx.response_waiters[args.id] = task
    return f"Started waiting for response with ID {args.id}"


async def assert_response(
    args: AssertResponseArguments, ctx: ExecutionContext
) -> list:
    task = ctx.response_waiters.pop(args.id, None)
    if task is None:
        raise ArgumentValidationError(
            f"No response promise found for ID: {args.id}. "
            "Call playwright_expect_response first."
        )

    response = await task
    body_text = await response.text()
    try:
        body = json.loads(body_text)
        rendered = json.dumps(body, indent=2, ensure_ascii=False)
        searchable = json.dumps(body, ensure_ascii=False)
    except ValueError:
        rendered = body_text
        searchable = body_text

    if args.value is not None and args.value not in searchable:
        raise UpstreamFailure(
            f"Response body does not contain expected value: {args.value}\n"
            f"Actual body: {truncate_text(rendered, artifact_limit())}"
        )

    return [
        f"Response assertion for ID {args.id} successful",
        f"URL: {response.url}",
        f"Status: {response.status}",
        f"Body: {truncate_text(rendered, artifact_limit())}",
    ]
