"""DOM and iframe interaction tools."""

from server.schemas import (
    DragArguments,
    IframeClickArguments,
    IframeFillArguments,
    PressKeyArguments,
    SelectorArguments,
    SelectorValueArguments,
    UploadFileArguments,
)
from server.session import ExecutionContext


async def click(args: SelectorArguments, ctx: ExecutionContext) -> str:
    await ctx.page.click(args.selector)
    return f"Clicked element: {args.selector}"


async def iframe_click(args: IframeClickArguments, ctx: ExecutionContext) -> str:
    frame = ctx.page.frame_locator(args.iframe_selector)
    await frame.locator(args.selector).click()
    return f"Clicked element {args.selector} inside iframe {args.iframe_selector}"


async def iframe_fill(args: IframeFillArguments, ctx: ExecutionContext) -> str:
    frame = ctx.page.frame_locator(args.iframe_selector)
    await frame.locator(args.selector).fill(args.value)
    return (
        f"Filled element {args.selector} inside iframe "
        f"{args.iframe_selector} with: {args.value}"
    )


async def fill(args: SelectorValueArguments, ctx: ExecutionContext) -> str:
    await ctx.page.wait_for_selector(args.selector)
    await ctx.page.fill(args.selector, args.value)
    return f"Filled {args.selector} with: {args.value}"


async def select(args: SelectorValueArguments, ctx: ExecutionContext) -> str:
    await ctx.page.wait_for_selector(args.selector)
    await ctx.page.select_option(args.selector, args.value)
    return f"Selected {args.selector} with: {args.value}"


async def hover(args: SelectorArguments, ctx: ExecutionContext) -> str:
    await ctx.page.wait_for_selector(args.selector)
    await ctx.page.hover(args.selector)
    return f"Hovered {args.selector}"


async def upload_file(args: UploadFileArguments, ctx: ExecutionContext) -> str:
    await ctx.page.wait_for_selector(args.selector)
    await ctx.page.set_input_files(args.selector, args.file_path)
    return f"Uploaded file '{args.file_path}' to '{args.selector}'"


async def drag(args: DragArguments, ctx: ExecutionContext) -> str:
    await ctx.page.drag_and_drop(args.source_selector, args.target_selector)
    return f"Dragged element from {args.source_selector} to {args.target_selector}"


async def press_key(args: PressKeyArguments, ctx: ExecutionContext) -> str:
    if args.selector:
        await ctx.page.wait_for_selector(args.selector)
        await ctx.page.focus(args.selector)
    await ctx.page.keyboard.press(args.key)
    return f"Pressed key: {args.key}"


async def click_and_switch_tab(
    args: SelectorArguments, ctx: ExecutionContext
) -> str:
    async with ctx.browser_context.expect_page() as new_page_info:
        await ctx.page.click(args.selector)
    new_page = await new_page_info.value
    await new_page.wait_for_load_state()
    ctx.switch_page(new_page)
    return f"Clicked link and switched to new tab: {new_page.url}"
