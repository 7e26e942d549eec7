"""Typed argument models, one per tool.

Wire names are camelCase (what MCP clients send); Python code uses the
snake_case attribute names. The JSON schema advertised through
``tools/list`` is generated from these models.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from server.config import ProxySettings

BrowserType = Literal["chromium", "firefox", "webkit"]
WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]
ConsoleLogType = Literal[
    "all", "error", "warning", "log", "info", "debug", "exception"
]


class ToolArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NoArguments(ToolArguments):
    pass


# Browser operations


class NavigateArguments(ToolArguments):
    url: str = Field(description="URL to navigate to")
    browser_type: BrowserType = Field(
        default="chromium",
        alias="browserType",
        description="Browser engine used when a new session is launched",
    )
    width: int = Field(default=1280, description="Viewport width in pixels")
    height: int = Field(default=720, description="Viewport height in pixels")
    timeout: Optional[int] = Field(
        default=None, description="Navigation timeout in milliseconds"
    )
    wait_until: WaitUntil = Field(
        default="load", alias="waitUntil", description="Navigation wait condition"
    )
    headless: Optional[bool] = Field(
        default=None,
        description="Run the browser headless (ignored when set globally)",
    )
    proxy: Optional[ProxySettings] = Field(
        default=None,
        description="Proxy for a new session (ignored when set globally)",
    )


class ScreenshotArguments(ToolArguments):
    name: str = Field(description="Name for the screenshot")
    selector: Optional[str] = Field(
        default=None, description="CSS selector of the element to capture"
    )
    store_base64: bool = Field(
        default=True,
        alias="storeBase64",
        description="Keep the image in memory and return it inline",
    )
    full_page: bool = Field(
        default=False, alias="fullPage", description="Capture the whole page"
    )
    save_png: bool = Field(
        default=False, alias="savePng", description="Write the image to disk"
    )
    downloads_dir: Optional[str] = Field(
        default=None,
        alias="downloadsDir",
        description="Directory for saved PNG files",
    )


class SelectorArguments(ToolArguments):
    selector: str = Field(description="CSS selector of the target element")


class SelectorValueArguments(SelectorArguments):
    value: str = Field(description="Value to use")


class IframeClickArguments(ToolArguments):
    iframe_selector: str = Field(
        alias="iframeSelector", description="CSS selector of the iframe"
    )
    selector: str = Field(description="CSS selector of the element in the iframe")


class IframeFillArguments(IframeClickArguments):
    value: str = Field(description="Value to fill")


class UploadFileArguments(SelectorArguments):
    file_path: str = Field(
        alias="filePath", description="Absolute path of the file to upload"
    )


class EvaluateArguments(ToolArguments):
    script: str = Field(description="JavaScript to run in the page")


class ConsoleLogsArguments(ToolArguments):
    type: ConsoleLogType = Field(default="all", description="Log type filter")
    search: Optional[str] = Field(
        default=None, description="Only return entries containing this text"
    )
    limit: Optional[int] = Field(
        default=None, description="Maximum number of most recent entries"
    )
    clear: bool = Field(
        default=False, description="Clear the buffer after reading"
    )


class ExpectResponseArguments(ToolArguments):
    id: str = Field(description="Identifier used later by assert_response")
    url: str = Field(description="URL pattern (substring, or glob with *)")


class AssertResponseArguments(ToolArguments):
    id: str = Field(description="Identifier given to expect_response")
    value: Optional[str] = Field(
        default=None, description="Text the response body must contain"
    )


class CustomUserAgentArguments(ToolArguments):
    user_agent: str = Field(alias="userAgent", description="User agent string")


class VisibleTextArguments(ToolArguments):
    max_length: Optional[int] = Field(
        default=None,
        alias="maxLength",
        description="Maximum characters to return (hard capped at 20000)",
    )


class VisibleHtmlArguments(ToolArguments):
    selector: Optional[str] = Field(
        default=None, description="Only return the HTML of this element"
    )
    remove_scripts: bool = Field(default=True, alias="removeScripts")
    remove_comments: bool = Field(default=False, alias="removeComments")
    remove_styles: bool = Field(default=False, alias="removeStyles")
    remove_meta: bool = Field(default=False, alias="removeMeta")
    clean_html: bool = Field(
        default=False,
        alias="cleanHtml",
        description="Remove scripts, styles, comments and meta tags at once",
    )
    minify: bool = Field(default=False, description="Collapse whitespace")
    max_length: Optional[int] = Field(
        default=None,
        alias="maxLength",
        description="Maximum characters to return (hard capped at 20000)",
    )


class DragArguments(ToolArguments):
    source_selector: str = Field(alias="sourceSelector")
    target_selector: str = Field(alias="targetSelector")


class PressKeyArguments(ToolArguments):
    key: str = Field(description="Key to press, e.g. 'Enter' or 'ArrowDown'")
    selector: Optional[str] = Field(
        default=None, description="Element to focus before pressing"
    )


class PdfMargin(BaseModel):
    top: Optional[str] = None
    right: Optional[str] = None
    bottom: Optional[str] = None
    left: Optional[str] = None


class SaveAsPdfArguments(ToolArguments):
    output_path: str = Field(
        alias="outputPath", description="Directory to write the PDF into"
    )
    filename: str = Field(default="page.pdf")
    format: str = Field(default="A4", description="Paper format")
    print_background: bool = Field(default=True, alias="printBackground")
    margin: Optional[PdfMargin] = None


# HTTP operations


class HttpUrlArguments(ToolArguments):
    url: str = Field(description="URL to request")


class HttpBodyArguments(HttpUrlArguments):
    value: str = Field(description="Request body (usually JSON)")


class HttpPostArguments(HttpBodyArguments):
    token: Optional[str] = Field(
        default=None, description="Bearer token for the Authorization header"
    )
    headers: Optional[Dict[str, str]] = Field(
        default=None, description="Additional request headers"
    )


# Codegen operations


class CodegenOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    output_path: str = Field(
        alias="outputPath", description="Directory for the generated test"
    )
    test_name_prefix: str = Field(default="GeneratedTest", alias="testNamePrefix")
    include_comments: bool = Field(default=True, alias="includeComments")


class StartCodegenArguments(ToolArguments):
    options: CodegenOptions


class CodegenSessionArguments(ToolArguments):
    session_id: str = Field(alias="sessionId")
