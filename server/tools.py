"""The tool catalog advertised to MCP clients."""

from server.handlers import codegen, content, debugging, http, interaction, navigation, network
from server.registry import ToolCategory, ToolDescriptor, ToolRegistry
from server.schemas import (
    AssertResponseArguments,
    CodegenSessionArguments,
    ConsoleLogsArguments,
    CustomUserAgentArguments,
    DragArguments,
    EvaluateArguments,
    ExpectResponseArguments,
    HttpBodyArguments,
    HttpPostArguments,
    HttpUrlArguments,
    IframeClickArguments,
    IframeFillArguments,
    NavigateArguments,
    NoArguments,
    PressKeyArguments,
    SaveAsPdfArguments,
    ScreenshotArguments,
    SelectorArguments,
    SelectorValueArguments,
    StartCodegenArguments,
    UploadFileArguments,
    VisibleHtmlArguments,
    VisibleTextArguments,
)

BROWSER = ToolCategory.BROWSER
HTTP = ToolCategory.HTTP
CODEGEN = ToolCategory.CODEGEN


def create_tool_registry() -> ToolRegistry:
    """Build the frozen registry; order here is the advertised order."""
    descriptors = [
        ToolDescriptor(
            "start_codegen_session",
            "Start a new code generation session to record Playwright actions",
            StartCodegenArguments,
            CODEGEN,
            codegen.start_codegen_session,
        ),
        ToolDescriptor(
            "end_codegen_session",
            "End the code generation session and write the generated test",
            CodegenSessionArguments,
            CODEGEN,
            codegen.end_codegen_session,
        ),
        ToolDescriptor(
            "get_codegen_session",
            "Get information about a code generation session",
            CodegenSessionArguments,
            CODEGEN,
            codegen.get_codegen_session,
        ),
        ToolDescriptor(
            "clear_codegen_session",
            "Clear a code generation session without generating a test",
            CodegenSessionArguments,
            CODEGEN,
            codegen.clear_codegen_session,
        ),
        ToolDescriptor(
            "playwright_navigate",
            "Navigate to a URL",
            NavigateArguments,
            BROWSER,
            navigation.navigate,
        ),
        ToolDescriptor(
            "playwright_screenshot",
            "Take a screenshot of the current page or a specific element",
            ScreenshotArguments,
            BROWSER,
            content.screenshot,
        ),
        ToolDescriptor(
            "playwright_click",
            "Click an element on the page",
            SelectorArguments,
            BROWSER,
            interaction.click,
        ),
        ToolDescriptor(
            "playwright_iframe_click",
            "Click an element inside an iframe on the page",
            IframeClickArguments,
            BROWSER,
            interaction.iframe_click,
        ),
        ToolDescriptor(
            "playwright_iframe_fill",
            "Fill an element inside an iframe on the page",
            IframeFillArguments,
            BROWSER,
            interaction.iframe_fill,
        ),
        ToolDescriptor(
            "playwright_fill",
            "Fill out an input field",
            SelectorValueArguments,
            BROWSER,
            interaction.fill,
        ),
        ToolDescriptor(
            "playwright_select",
            "Select an option in a select element",
            SelectorValueArguments,
            BROWSER,
            interaction.select,
        ),
        ToolDescriptor(
            "playwright_hover",
            "Hover an element on the page",
            SelectorArguments,
            BROWSER,
            interaction.hover,
        ),
        ToolDescriptor(
            "playwright_upload_file",
            "Upload a file to an input[type='file'] element",
            UploadFileArguments,
            BROWSER,
            interaction.upload_file,
        ),
        ToolDescriptor(
            "playwright_evaluate",
            "Execute JavaScript in the browser console",
            EvaluateArguments,
            BROWSER,
            debugging.evaluate,
        ),
        ToolDescriptor(
            "playwright_console_logs",
            "Retrieve console logs from the browser with filtering options",
            ConsoleLogsArguments,
            BROWSER,
            debugging.console_logs,
        ),
        ToolDescriptor(
            "playwright_close",
            "Close the browser and release all resources",
            NoArguments,
            BROWSER,
            navigation.close,
            requires_session=False,
        ),
        ToolDescriptor(
            "playwright_get",
            "Perform an HTTP GET request",
            HttpUrlArguments,
            HTTP,
            http.get,
        ),
        ToolDescriptor(
            "playwright_post",
            "Perform an HTTP POST request",
            HttpPostArguments,
            HTTP,
            http.post,
        ),
        ToolDescriptor(
            "playwright_put",
            "Perform an HTTP PUT request",
            HttpBodyArguments,
            HTTP,
            http.put,
        ),
        ToolDescriptor(
            "playwright_patch",
            "Perform an HTTP PATCH request",
            HttpBodyArguments,
            HTTP,
            http.patch,
        ),
        ToolDescriptor(
            "playwright_delete",
            "Perform an HTTP DELETE request",
            HttpUrlArguments,
            HTTP,
            http.delete,
        ),
        ToolDescriptor(
            "playwright_expect_response",
            "Start waiting for an HTTP response; assert it later by id",
            ExpectResponseArguments,
            BROWSER,
            network.expect_response,
        ),
        ToolDescriptor(
            "playwright_assert_response",
            "Wait for and validate a response started by expect_response",
            AssertResponseArguments,
            BROWSER,
            network.assert_response,
            requires_session=False,
        ),
        ToolDescriptor(
            "playwright_custom_user_agent",
            "Set a custom User Agent for the browser session",
            CustomUserAgentArguments,
            BROWSER,
            navigation.custom_user_agent,
        ),
        ToolDescriptor(
            "playwright_get_visible_text",
            "Get the visible text content of the current page",
            VisibleTextArguments,
            BROWSER,
            content.get_visible_text,
        ),
        ToolDescriptor(
            "playwright_get_visible_html",
            "Get the HTML content of the current page",
            VisibleHtmlArguments,
            BROWSER,
            content.get_visible_html,
        ),
        ToolDescriptor(
            "playwright_go_back",
            "Navigate back in browser history",
            NoArguments,
            BROWSER,
            navigation.go_back,
        ),
        ToolDescriptor(
            "playwright_go_forward",
            "Navigate forward in browser history",
            NoArguments,
            BROWSER,
            navigation.go_forward,
        ),
        ToolDescriptor(
            "playwright_drag",
            "Drag an element to a target location",
            DragArguments,
            BROWSER,
            interaction.drag,
        ),
        ToolDescriptor(
            "playwright_press_key",
            "Press a keyboard key",
            PressKeyArguments,
            BROWSER,
            interaction.press_key,
        ),
        ToolDescriptor(
            "playwright_save_as_pdf",
            "Save the current page as a PDF file",
            SaveAsPdfArguments,
            BROWSER,
            content.save_as_pdf,
        ),
        ToolDescriptor(
            "playwright_click_and_switch_tab",
            "Click a link and switch to the newly opened tab",
            SelectorArguments,
            BROWSER,
            interaction.click_and_switch_tab,
        ),
    ]
    return ToolRegistry(descriptors).freeze()
