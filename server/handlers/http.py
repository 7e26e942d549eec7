"""Raw HTTP calls through the shared ``requests`` session."""

from typing import Dict, List, Optional

import requests

from server.responses import artifact_limit, truncate_text
from server.schemas import (
    HttpBodyArguments,
    HttpPostArguments,
    HttpUrlArguments,
)
from server.session import ExecutionContext

JSON_HEADERS = {"Content-Type": "application/json"}


def _format(method: str, url: str, response: requests.Response) -> List[str]:
    return [
        f"Performed {method} Operation {url}",
        f"Response: {truncate_text(response.text, artifact_limit())}",
        f"Response code {response.status_code}",
    ]


def _headers(
    token: Optional[str] = None, extra: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    headers = dict(JSON_HEADERS)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if extra:
        headers.update(extra)
    return headers


async def get(args: HttpUrlArguments, ctx: ExecutionContext) -> List[str]:
    response = await ctx.http_request("GET", args.url)
    return _format("GET", args.url, response)


async def post(args: HttpPostArguments, ctx: ExecutionContext) -> List[str]:
    response = await ctx.http_request(
        "POST",
        args.url,
        data=args.value.encode("utf-8"),
        headers=_headers(args.token, args.headers),
    )
    return _format("POST", args.url, response)


async def put(args: HttpBodyArguments, ctx: ExecutionContext) -> List[str]:
    response = await ctx.http_request(
        "PUT", args.url, data=args.value.encode("utf-8"), headers=_headers()
    )
    return _format("PUT", args.url, response)


async def patch(args: HttpBodyArguments, ctx: ExecutionContext) -> List[str]:
    response = await ctx.http_request(
        "PATCH", args.url, data=args.value.encode("utf-8"), headers=_headers()
    )
    return _format("PATCH", args.url, response)


async def delete(args: HttpUrlArguments, ctx: ExecutionContext) -> List[str]:
    response = await ctx.http_request("DELETE", args.url)
    return _format("DELETE", args.url, response)
