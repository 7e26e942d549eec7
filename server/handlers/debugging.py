"""Script evaluation and console log inspection."""

import json

from server.responses import artifact_limit, truncate_text
from server.schemas import ConsoleLogsArguments, EvaluateArguments
from server.session import ExecutionContext


async def evaluate(args: EvaluateArguments, ctx: ExecutionContext) -> list:
    result = await ctx.page.evaluate(args.script)
    try:
        rendered = json.dumps(result, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        rendered = str(result)
    return [
        "Executed JavaScript:",
        args.script,
        "Result:",
        truncate_text(rendered, artifact_limit()),
    ]


async def console_logs(args: ConsoleLogsArguments, ctx: ExecutionContext) -> list:
    logs = list(ctx.console_logs)
    if args.type != "all":
        logs = [entry for entry in logs if entry.startswith(f"[{args.type}]")]
    if args.search:
        logs = [entry for entry in logs if args.search in entry]
    if args.limit is not None:
        logs = logs[-args.limit:] if args.limit > 0 else []

    if args.clear:
        ctx.console_logs.clear()

    if not logs:
        return ["No console logs matching the criteria"]
    return [
        f"Retrieved {len(logs)} console log(s):",
        truncate_text("\n".join(logs), artifact_limit()),
    ]
