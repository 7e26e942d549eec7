"""Content extraction tools: visible text, HTML, screenshots and PDF."""

import base64
import logging
import re
from datetime import datetime
from pathlib import Path

from server.errors import UpstreamFailure
from server.responses import (
    ImagePayload,
    ToolResponse,
    artifact_limit,
    build_success,
    truncate_text,
)
from server.schemas import (
    SaveAsPdfArguments,
    ScreenshotArguments,
    VisibleHtmlArguments,
    VisibleTextArguments,
)
from server.session import ExecutionContext

logger = logging.getLogger(__name__)

VISIBLE_TEXT_SCRIPT = """
() => {
  const walker = document.createTreeWalker(document.body, NodeFilter.SHOW_TEXT, {
    acceptNode: (node) => {
      const parent = node.parentElement;
      if (!parent) return NodeFilter.FILTER_REJECT;
      const style = window.getComputedStyle(parent);
      return style.display !== "none" && style.visibility !== "hidden"
        ? NodeFilter.FILTER_ACCEPT
        : NodeFilter.FILTER_REJECT;
    },
  });
  let text = "";
  let node;
  while ((node = walker.nextNode())) {
    const trimmed = node.textContent.trim();
    if (trimmed) text += trimmed + "\\n";
  }
  return text.trim();
}
"""

CLEAN_HTML_SCRIPT = """
(opts) => {
  const root = opts.selector
    ? document.querySelector(opts.selector)
    : document.documentElement;
  if (!root) return null;
  const clone = root.cloneNode(true);
  const strip = (sel) => clone.querySelectorAll(sel).forEach((el) => el.remove());
  if (opts.removeScripts) strip("script");
  if (opts.removeStyles) {
    strip("style");
    strip('link[rel="stylesheet"]');
    clone.querySelectorAll("[style]").forEach((el) => el.removeAttribute("style"));
  }
  if (opts.removeMeta) strip("meta");
  if (opts.removeComments) {
    const walker = document.createTreeWalker(clone, NodeFilter.SHOW_COMMENT);
    const comments = [];
    while (walker.nextNode()) comments.push(walker.currentNode);
    comments.forEach((c) => c.remove());
  }
  return clone.outerHTML;
}
"""

DEFAULT_PDF_MARGIN = {"top": "1cm", "right": "1cm", "bottom": "1cm", "left": "1cm"}


def minify_html(html: str) -> str:
    html = re.sub(r">\s+<", "><", html)
    return re.sub(r"\s{2,}", " ", html).strip()


async def get_visible_text(
    args: VisibleTextArguments, ctx: ExecutionContext
) -> ToolResponse:
    text = await ctx.page.evaluate(VISIBLE_TEXT_SCRIPT)
    return build_success(text or "", max_length=args.max_length)


async def get_visible_html(
    args: VisibleHtmlArguments, ctx: ExecutionContext
) -> ToolResponse:
    clean = args.clean_html
    html = await ctx.page.evaluate(
        CLEAN_HTML_SCRIPT,
        {
            "selector": args.selector,
            "removeScripts": args.remove_scripts or clean,
            "removeStyles": args.remove_styles or clean,
            "removeMeta": args.remove_meta or clean,
            "removeComments": args.remove_comments or clean,
        },
    )
    if html is None:
        raise UpstreamFailure(f"Element not found: {args.selector}")
    if args.minify:
        html = minify_html(html)
    body = truncate_text(html, artifact_limit(args.max_length))
    return build_success(["HTML content:", body], max_length=args.max_length)


async def screenshot(
    args: ScreenshotArguments, ctx: ExecutionContext
) -> ToolResponse:
    if args.selector:
        element = await ctx.page.query_selector(args.selector)
        if element is None:
            raise UpstreamFailure(f"Element not found: {args.selector}")
        data = await element.screenshot(type="png")
    else:
        data = await ctx.page.screenshot(type="png", full_page=args.full_page)

    messages = []
    if args.save_png:
        directory = (
            Path(args.downloads_dir).expanduser()
            if args.downloads_dir
            else ctx.settings.downloads_dir
        )
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%dT%H%M%S")
        path = directory / f"{args.name}-{timestamp}.png"
        path.write_bytes(data)
        logger.info("Saved screenshot %s to %s", args.name, path)
        messages.append(f"Screenshot saved to: {path}")

    images = []
    if args.store_base64:
        ctx.screenshots[args.name] = base64.b64encode(data).decode("ascii")
        messages.append(f"Screenshot stored in memory with name: '{args.name}'")
        images.append(ImagePayload(data=data))

    if not messages:
        messages.append(f"Screenshot '{args.name}' taken")
    return build_success(messages, images=images)


async def save_as_pdf(args: SaveAsPdfArguments, ctx: ExecutionContext) -> str:
    directory = Path(args.output_path).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / args.filename
    margin = (
        args.margin.model_dump(exclude_none=True)
        if args.margin is not None
        else DEFAULT_PDF_MARGIN
    )
    await ctx.page.pdf(
        path=str(path),
        format=args.format,
        print_background=args.print_background,
        margin=margin,
    )
    return f"Saved page as PDF: {path}"
