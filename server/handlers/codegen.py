"""Codegen session tools."""

import json

from server.schemas import CodegenSessionArguments, StartCodegenArguments
from server.session import ExecutionContext


async def start_codegen_session(
    args: StartCodegenArguments, ctx: ExecutionContext
) -> str:
    session = ctx.recorder.start(args.options)
    return json.dumps(
        {
            "sessionId": session.id,
            "options": session.options.model_dump(by_alias=True),
            "message": (
                "Started codegen session. Browser actions will be recorded "
                f"until end_codegen_session is called with {session.id}."
            ),
        },
        indent=2,
    )


async def end_codegen_session(
    args: CodegenSessionArguments, ctx: ExecutionContext
) -> str:
    file_path, code = ctx.recorder.end(args.session_id)
    return json.dumps(
        {
            "filePath": str(file_path),
            "testCode": code,
            "message": "Generated test file from recorded session",
        },
        indent=2,
    )


async def get_codegen_session(
    args: CodegenSessionArguments, ctx: ExecutionContext
) -> str:
    return json.dumps(ctx.recorder.get(args.session_id).summary(), indent=2)


async def clear_codegen_session(
    args: CodegenSessionArguments, ctx: ExecutionContext
) -> str:
    ctx.recorder.clear(args.session_id)
    return f"Session {args.session_id} cleared"
