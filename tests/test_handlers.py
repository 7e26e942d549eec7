"""Tests for the browser tool handlers, driven through the dispatcher."""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import mcp.types as types
import pytest

from server.handlers.network import url_matches
from server.responses import (
    ARTIFACT_HEADROOM,
    MAX_RESPONSE_LENGTH,
    TRUNCATION_MARKER,
)
from tests._helpers import assert_error_kind, make_fake_page


class TestNavigation:
    @pytest.mark.asyncio
    async def test_navigate(self, dispatcher, fake_playwright):
        response = await dispatcher.dispatch(
            "playwright_navigate",
            {"url": "https://example.com", "waitUntil": "networkidle", "timeout": 5000},
        )

        assert response.text == "Navigated to https://example.com"
        fake_playwright.page.goto.assert_awaited_once_with(
            "https://example.com", timeout=5000, wait_until="networkidle"
        )

    @pytest.mark.asyncio
    async def test_navigate_zero_timeout_disables_wait_limit(
        self, dispatcher, fake_playwright
    ):
        await dispatcher.dispatch(
            "playwright_navigate", {"url": "https://example.com", "timeout": 0}
        )

        fake_playwright.page.goto.assert_awaited_once_with(
            "https://example.com", timeout=0, wait_until="load"
        )

    @pytest.mark.asyncio
    async def test_navigate_default_timeout(self, dispatcher, fake_playwright):
        await dispatcher.dispatch("playwright_navigate", {"url": "https://example.com"})

        fake_playwright.page.goto.assert_awaited_once_with(
            "https://example.com", timeout=30000, wait_until="load"
        )

    @pytest.mark.asyncio
    async def test_history(self, dispatcher, fake_playwright):
        back = await dispatcher.dispatch("playwright_go_back", {})
        forward = await dispatcher.dispatch("playwright_go_forward", {})

        assert back.text == "Navigated back in browser history"
        assert forward.text == "Navigated forward in browser history"

    @pytest.mark.asyncio
    async def test_custom_user_agent_on_new_session(self, dispatcher, fake_playwright):
        fake_playwright.page.evaluate.return_value = "agent/2.0"

        response = await dispatcher.dispatch(
            "playwright_custom_user_agent", {"userAgent": "agent/2.0"}
        )

        assert response.text == "User Agent set to: agent/2.0"
        _, kwargs = fake_playwright.browser.new_context.call_args
        assert kwargs["user_agent"] == "agent/2.0"

    @pytest.mark.asyncio
    async def test_custom_user_agent_on_live_session(self, dispatcher, fake_playwright):
        await dispatcher.dispatch("playwright_navigate", {"url": "https://a.test"})
        fake_playwright.page.evaluate.return_value = "Mozilla/5.0"

        response = await dispatcher.dispatch(
            "playwright_custom_user_agent", {"userAgent": "agent/2.0"}
        )

        assert_error_kind(response, "UpstreamFailure")
        assert "different User Agent" in response.text


class TestInteraction:
    @pytest.mark.asyncio
    async def test_fill_waits_for_selector(self, dispatcher, fake_playwright):
        response = await dispatcher.dispatch(
            "playwright_fill", {"selector": "#q", "value": "mcp"}
        )

        assert response.text == "Filled #q with: mcp"
        fake_playwright.page.wait_for_selector.assert_awaited_with("#q")
        fake_playwright.page.fill.assert_awaited_once_with("#q", "mcp")

    @pytest.mark.asyncio
    async def test_select_and_hover(self, dispatcher, fake_playwright):
        await dispatcher.dispatch(
            "playwright_select", {"selector": "#size", "value": "L"}
        )
        await dispatcher.dispatch("playwright_hover", {"selector": "#menu"})

        fake_playwright.page.select_option.assert_awaited_once_with("#size", "L")
        fake_playwright.page.hover.assert_awaited_once_with("#menu")

    @pytest.mark.asyncio
    async def test_upload_file(self, dispatcher, fake_playwright):
        await dispatcher.dispatch(
            "playwright_upload_file", {"selector": "#f", "filePath": "/tmp/a.txt"}
        )
        fake_playwright.page.set_input_files.assert_awaited_once_with(
            "#f", "/tmp/a.txt"
        )

    @pytest.mark.asyncio
    async def test_iframe_click_and_fill(self, dispatcher, fake_playwright):
        locator = MagicMock()
        locator.click = AsyncMock()
        locator.fill = AsyncMock()
        fake_playwright.page.frame_locator.return_value.locator.return_value = locator

        await dispatcher.dispatch(
            "playwright_iframe_click", {"iframeSelector": "#frame", "selector": "button"}
        )
        await dispatcher.dispatch(
            "playwright_iframe_fill",
            {"iframeSelector": "#frame", "selector": "input", "value": "x"},
        )

        fake_playwright.page.frame_locator.assert_called_with("#frame")
        locator.click.assert_awaited_once()
        locator.fill.assert_awaited_once_with("x")

    @pytest.mark.asyncio
    async def test_drag(self, dispatcher, fake_playwright):
        await dispatcher.dispatch(
            "playwright_drag", {"sourceSelector": "#a", "targetSelector": "#b"}
        )
        fake_playwright.page.drag_and_drop.assert_awaited_once_with("#a", "#b")

    @pytest.mark.asyncio
    async def test_press_key_focuses_first(self, dispatcher, fake_playwright):
        response = await dispatcher.dispatch(
            "playwright_press_key", {"key": "Enter", "selector": "#q"}
        )

        assert response.text == "Pressed key: Enter"
        fake_playwright.page.focus.assert_awaited_once_with("#q")
        fake_playwright.page.keyboard.press.assert_awaited_once_with("Enter")

    @pytest.mark.asyncio
    async def test_click_and_switch_tab(self, dispatcher, fake_playwright):
        new_page = make_fake_page("https://new.test/")

        async def _value():
            return new_page

        page_info = MagicMock()
        page_info.value = _value()
        expectation = MagicMock()
        expectation.__aenter__ = AsyncMock(return_value=page_info)
        expectation.__aexit__ = AsyncMock(return_value=False)
        fake_playwright.browser_context.expect_page = MagicMock(
            return_value=expectation
        )

        response = await dispatcher.dispatch(
            "playwright_click_and_switch_tab", {"selector": "a[target=_blank]"}
        )

        assert response.text == (
            "Clicked link and switched to new tab: https://new.test/"
        )
        assert dispatcher.context.page is new_page
        new_page.wait_for_load_state.assert_awaited_once()

        await dispatcher.dispatch("playwright_click", {"selector": "#next"})
        new_page.click.assert_awaited_once_with("#next")


class TestContent:
    @pytest.mark.asyncio
    async def test_visible_html_is_prefixed_and_bounded(
        self, dispatcher, fake_playwright
    ):
        fake_playwright.page.evaluate.return_value = "<p>" + "h" * 30000 + "</p>"

        response = await dispatcher.dispatch("playwright_get_visible_html", {})

        lines = response.text.split("\n", 1)
        assert lines[0] == "HTML content:"
        assert len(response.text) <= MAX_RESPONSE_LENGTH + len(TRUNCATION_MARKER)
        assert TRUNCATION_MARKER in response.text

    @pytest.mark.asyncio
    async def test_visible_html_options_reach_the_page(
        self, dispatcher, fake_playwright
    ):
        fake_playwright.page.evaluate.return_value = "<div>\n   <b>x</b>\n</div>"

        response = await dispatcher.dispatch(
            "playwright_get_visible_html",
            {"selector": "main", "cleanHtml": True, "minify": True},
        )

        assert response.text == "HTML content:\n<div><b>x</b></div>"
        _, options = fake_playwright.page.evaluate.call_args.args
        assert options["selector"] == "main"
        assert options["removeStyles"] is True
        assert options["removeComments"] is True

    @pytest.mark.asyncio
    async def test_visible_html_missing_element(self, dispatcher, fake_playwright):
        fake_playwright.page.evaluate.return_value = None

        response = await dispatcher.dispatch(
            "playwright_get_visible_html", {"selector": "#missing"}
        )

        assert_error_kind(response, "UpstreamFailure")

    @pytest.mark.asyncio
    async def test_visible_html_small_limit_keeps_html(
        self, dispatcher, fake_playwright
    ):
        html = "<p>" + "h" * 5006 + "</p>"
        fake_playwright.page.evaluate.return_value = html

        response = await dispatcher.dispatch(
            "playwright_get_visible_html", {"maxLength": 120}
        )

        prefix = "HTML content:\n"
        assert response.text == (
            prefix + html[: 120 - len(prefix)] + TRUNCATION_MARKER
        )
        assert response.text.count(TRUNCATION_MARKER) == 1

    @pytest.mark.asyncio
    async def test_screenshot_stores_and_returns_image(
        self, dispatcher, fake_playwright
    ):
        fake_playwright.page.screenshot.return_value = b"png-bytes"

        response = await dispatcher.dispatch(
            "playwright_screenshot", {"name": "home", "fullPage": True}
        )

        assert "Screenshot stored in memory with name: 'home'" in response.text
        image = response.content[1]
        assert isinstance(image, types.ImageContent)
        assert base64.b64decode(image.data) == b"png-bytes"
        assert dispatcher.context.screenshots["home"] == base64.b64encode(
            b"png-bytes"
        ).decode("ascii")
        fake_playwright.page.screenshot.assert_awaited_once_with(
            type="png", full_page=True
        )

    @pytest.mark.asyncio
    async def test_screenshot_saved_to_disk(self, dispatcher, fake_playwright, tmp_path):
        fake_playwright.page.screenshot.return_value = b"png-bytes"

        response = await dispatcher.dispatch(
            "playwright_screenshot",
            {
                "name": "saved",
                "savePng": True,
                "storeBase64": False,
                "downloadsDir": str(tmp_path),
            },
        )

        files = list(tmp_path.glob("saved-*.png"))
        assert len(files) == 1
        assert files[0].read_bytes() == b"png-bytes"
        assert f"Screenshot saved to: {files[0]}" in response.text
        assert len(response.content) == 1

    @pytest.mark.asyncio
    async def test_element_screenshot_missing_element(
        self, dispatcher, fake_playwright
    ):
        fake_playwright.page.query_selector.return_value = None

        response = await dispatcher.dispatch(
            "playwright_screenshot", {"name": "x", "selector": "#gone"}
        )

        assert_error_kind(response, "UpstreamFailure")

    @pytest.mark.asyncio
    async def test_save_as_pdf(self, dispatcher, fake_playwright, tmp_path):
        response = await dispatcher.dispatch(
            "playwright_save_as_pdf",
            {"outputPath": str(tmp_path / "out"), "filename": "doc.pdf"},
        )

        expected = tmp_path / "out" / "doc.pdf"
        assert response.text == f"Saved page as PDF: {expected}"
        _, kwargs = fake_playwright.page.pdf.call_args
        assert kwargs["path"] == str(expected)
        assert kwargs["format"] == "A4"
        assert kwargs["print_background"] is True


class TestDebugging:
    @pytest.mark.asyncio
    async def test_evaluate_renders_json(self, dispatcher, fake_playwright):
        fake_playwright.page.evaluate.return_value = {"title": "Example"}

        response = await dispatcher.dispatch(
            "playwright_evaluate", {"script": "({title: document.title})"}
        )

        assert response.text.startswith(
            "Executed JavaScript:\n({title: document.title})\nResult:\n"
        )
        assert '"title": "Example"' in response.text

    @pytest.mark.asyncio
    async def test_evaluate_result_is_bounded(self, dispatcher, fake_playwright):
        fake_playwright.page.evaluate.return_value = "r" * 50000

        response = await dispatcher.dispatch("playwright_evaluate", {"script": "x"})

        assert len(response.text) <= MAX_RESPONSE_LENGTH + len(TRUNCATION_MARKER)

    @pytest.mark.asyncio
    async def test_console_logs_filters(self, dispatcher):
        await dispatcher.dispatch("playwright_navigate", {"url": "https://a.test"})
        dispatcher.context.console_logs.extend(
            ["[log] ready", "[error] boom", "[error] bang", "[warning] slow"]
        )

        errors = await dispatcher.dispatch(
            "playwright_console_logs", {"type": "error", "limit": 1}
        )
        searched = await dispatcher.dispatch(
            "playwright_console_logs", {"search": "slow", "clear": True}
        )
        empty = await dispatcher.dispatch("playwright_console_logs", {})

        assert errors.text == "Retrieved 1 console log(s):\n[error] bang"
        assert searched.text == "Retrieved 1 console log(s):\n[warning] slow"
        assert empty.text == "No console logs matching the criteria"


class TestNetwork:
    @pytest.mark.parametrize(
        "pattern, url, expected",
        [
            ("/api/items", "https://a.test/api/items?page=2", True),
            ("/api/users", "https://a.test/api/items", False),
            ("https://a.test/*/items", "https://a.test/v1/items", True),
            ("*.png", "https://a.test/logo.svg", False),
        ],
    )
    def test_url_matches(self, pattern, url, expected):
        assert url_matches(pattern, url) is expected

    @pytest.mark.asyncio
    async def test_expect_then_assert(self, dispatcher, fake_playwright):
        upstream = MagicMock()
        upstream.url = "https://a.test/api/items"
        upstream.status = 200
        upstream.text = AsyncMock(return_value=json.dumps({"items": ["apple"]}))
        fake_playwright.page.wait_for_event.return_value = upstream

        started = await dispatcher.dispatch(
            "playwright_expect_response", {"id": "r1", "url": "/api/items"}
        )
        asserted = await dispatcher.dispatch(
            "playwright_assert_response", {"id": "r1", "value": "apple"}
        )

        assert started.text == "Started waiting for response with ID r1"
        assert asserted.text.startswith("Response assertion for ID r1 successful")
        assert "Status: 200" in asserted.text
        _, kwargs = fake_playwright.page.wait_for_event.call_args
        assert kwargs["predicate"](upstream) is True
        assert dispatcher.context.response_waiters == {}

    @pytest.mark.asyncio
    async def test_assert_body_mismatch(self, dispatcher, fake_playwright):
        upstream = MagicMock(url="https://a.test/api", status=200)
        upstream.text = AsyncMock(return_value='{"items": []}')
        fake_playwright.page.wait_for_event.return_value = upstream

        await dispatcher.dispatch(
            "playwright_expect_response", {"id": "r2", "url": "/api"}
        )
        response = await dispatcher.dispatch(
            "playwright_assert_response", {"id": "r2", "value": "banana"}
        )

        assert_error_kind(response, "UpstreamFailure")
        assert "banana" in response.text

    @pytest.mark.asyncio
    async def test_assert_unknown_id(self, dispatcher, fake_playwright):
        response = await dispatcher.dispatch(
            "playwright_assert_response", {"id": "never"}
        )

        assert_error_kind(response, "ValidationFailure")
        fake_playwright.factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_wait_timeout_is_classified(self, dispatcher, fake_playwright):
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        fake_playwright.page.wait_for_event.side_effect = PlaywrightTimeoutError(
            "Timeout 30000ms exceeded while waiting for event \"response\""
        )

        await dispatcher.dispatch(
            "playwright_expect_response", {"id": "r3", "url": "/never"}
        )
        response = await dispatcher.dispatch(
            "playwright_assert_response", {"id": "r3"}
        )

        assert_error_kind(response, "Timeout")


def test_artifact_headroom_is_smaller_than_ceiling():
    assert 0 < ARTIFACT_HEADROOM < MAX_RESPONSE_LENGTH
