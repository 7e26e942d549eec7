"""Navigation and session lifecycle tools."""

from server.errors import UpstreamFailure
from server.schemas import CustomUserAgentArguments, NavigateArguments, NoArguments
from server.session import ExecutionContext

DEFAULT_NAVIGATION_TIMEOUT_MS = 30000


async def navigate(args: NavigateArguments, ctx: ExecutionContext) -> str:
    await ctx.page.goto(
        args.url,
        timeout=(
            DEFAULT_NAVIGATION_TIMEOUT_MS if args.timeout is None else args.timeout
        ),
        wait_until=args.wait_until,
    )
    return f"Navigated to {args.url}"


async def go_back(args: NoArguments, ctx: ExecutionContext) -> str:
    await ctx.page.go_back()
    return "Navigated back in browser history"


async def go_forward(args: NoArguments, ctx: ExecutionContext) -> str:
    await ctx.page.go_forward()
    return "Navigated forward in browser history"


async def close(args: NoArguments, ctx: ExecutionContext) -> str:
    if await ctx.close_session():
        return "Browser closed successfully"
    return "No browser instance to close"


async def custom_user_agent(
    args: CustomUserAgentArguments, ctx: ExecutionContext
) -> str:
    # The agent is applied when the session is created; a live session keeps
    # whatever it was launched with.
    current = await ctx.page.evaluate("() => navigator.userAgent")
    if current != args.user_agent:
        raise UpstreamFailure(
            "Page was already initialized with a different User Agent. "
            f"Requested: {args.user_agent}, Current: {current}"
        )
    return f"User Agent set to: {args.user_agent}"
