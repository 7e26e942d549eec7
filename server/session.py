"""Execution context for the MCP server.

This module owns the single browser session (Playwright driver, browser,
browser context and current page) plus the HTTP client used by the API
tools. Handles are created lazily on first use and reused until closed.
"""

import asyncio
import functools
import logging
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Deque, Dict, Optional, Tuple

import requests
from playwright.async_api import async_playwright
from pydantic import BaseModel

from server.codegen import CodegenRecorder
from server.config import GatewaySettings, ProxySettings
from server.errors import LaunchFailure

logger = logging.getLogger(__name__)

MAX_CONSOLE_ENTRIES = 1000


@dataclass(frozen=True)
class LaunchSettings:
    """Settings fixed for the lifetime of one browser session."""

    browser_type: str = "chromium"
    headless: bool = False
    proxy: Optional[ProxySettings] = None
    width: int = 1280
    height: int = 720
    user_agent: Optional[str] = None


def resolve_launch_settings(
    settings: GatewaySettings, arguments: Optional[BaseModel] = None
) -> LaunchSettings:
    """Combine global settings with per-call arguments.

    Global headless/proxy values always win; per-call values are only used
    when the global setting is unset.
    """
    per_call_headless = getattr(arguments, "headless", None)
    if settings.headless.is_set:
        headless = bool(settings.headless.value)
    elif per_call_headless is not None:
        headless = bool(per_call_headless)
    else:
        headless = False

    if settings.proxy.is_set:
        proxy = settings.proxy.value
    else:
        proxy = getattr(arguments, "proxy", None)

    return LaunchSettings(
        browser_type=getattr(arguments, "browser_type", None) or "chromium",
        headless=headless,
        proxy=proxy,
        width=getattr(arguments, "width", None) or 1280,
        height=getattr(arguments, "height", None) or 720,
        user_agent=getattr(arguments, "user_agent", None),
    )


class ExecutionContext:
    """Process-lifetime browser and HTTP client state.

    Not thread-safe; the dispatcher serializes every access.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        playwright_factory: Callable[[], Any] = async_playwright,
        http_client_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.settings = settings
        self._playwright_factory = playwright_factory
        self._http_client_factory = http_client_factory

        self.playwright: Any = None
        self.browser: Any = None
        self.browser_context: Any = None
        self.page: Any = None
        self.http_client: Optional[requests.Session] = None

        self.session_id: Optional[str] = None
        self.launch_settings: Optional[LaunchSettings] = None
        self.created_at: Optional[str] = None

        self.console_logs: Deque[str] = deque(maxlen=MAX_CONSOLE_ENTRIES)
        self.screenshots: Dict[str, str] = {}
        self.response_waiters: Dict[str, "asyncio.Task[Any]"] = {}
        self.recorder = CodegenRecorder()

    # Browser session

    def has_session(self) -> bool:
        return self.page is not None

    def _session_alive(self) -> bool:
        try:
            return bool(self.browser.is_connected()) and not self.page.is_closed()
        except Exception:
            logger.debug("Session liveness check failed", exc_info=True)
            return False

    async def ensure_session(self, launch: LaunchSettings) -> Tuple[Any, Any]:
        """Return the live (browser, page), launching a session if needed.

        Launch settings passed while a session is alive are ignored.
        """
        if self.page is not None:
            if self._session_alive():
                if launch != self.launch_settings:
                    logger.debug(
                        "Ignoring launch settings for live session %s",
                        self.session_id,
                    )
                return self.browser, self.page
            logger.warning(
                "Browser session %s is no longer usable; relaunching",
                self.session_id,
            )
            await self._release_browser()

        try:
            await self._launch(launch)
        except asyncio.CancelledError:
            await self._release_browser()
            raise
        except Exception as e:
            await self._release_browser()
            logger.error("Failed to launch %s: %s", launch.browser_type, e)
            raise LaunchFailure(
                f"Failed to launch {launch.browser_type} browser: {e}"
            ) from e

        return self.browser, self.page

    async def _launch(self, launch: LaunchSettings) -> None:
        logger.info(
            "Launching %s browser (headless=%s, proxy=%s)",
            launch.browser_type,
            launch.headless,
            launch.proxy.describe() if launch.proxy else "none",
        )
        self.playwright = await self._playwright_factory().start()
        browser_type = getattr(self.playwright, launch.browser_type)

        launch_kwargs: Dict[str, Any] = {"headless": launch.headless}
        if launch.proxy is not None:
            launch_kwargs["proxy"] = launch.proxy.to_playwright()
        self.browser = await browser_type.launch(**launch_kwargs)

        context_kwargs: Dict[str, Any] = {
            "viewport": {"width": launch.width, "height": launch.height}
        }
        if launch.user_agent:
            context_kwargs["user_agent"] = launch.user_agent
        self.browser_context = await self.browser.new_context(**context_kwargs)
        self.browser_context.on("page", self._attach_page_listeners)

        # The context "page" event attaches listeners to this page too.
        self.page = await self.browser_context.new_page()

        self.session_id = uuid.uuid4().hex[:12]
        self.launch_settings = launch
        self.created_at = datetime.now().isoformat()
        self.console_logs.clear()
        logger.info("Browser session %s created", self.session_id)

    def _attach_page_listeners(self, page: Any) -> None:
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)

    def _on_console(self, message: Any) -> None:
        self.console_logs.append(f"[{message.type}] {message.text}")

    def _on_page_error(self, error: Any) -> None:
        self.console_logs.append(f"[exception] {getattr(error, 'message', error)}")

    def switch_page(self, page: Any) -> None:
        """Make ``page`` the current page of the live session."""
        if self.browser is None:
            raise LaunchFailure("No browser session to switch pages in")
        self.page = page

    async def _release_browser(self) -> None:
        for waiter in self.response_waiters.values():
            waiter.cancel()
        self.response_waiters.clear()

        if self.browser is not None:
            try:
                await self.browser.close()
            except Exception as e:
                logger.error(f"Error closing browser session {self.session_id}: {e}")
        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.error(f"Error stopping Playwright: {e}")

        self.playwright = None
        self.browser = None
        self.browser_context = None
        self.page = None
        self.session_id = None
        self.launch_settings = None
        self.created_at = None

    async def close_session(self) -> bool:
        """Close the browser session.

        Returns:
            True if a session was closed, False if none was open
        """
        if self.browser is None and self.playwright is None:
            return False
        session_id = self.session_id
        await self._release_browser()
        logger.info(f"Closed browser session {session_id}")
        return True

    def session_info(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "browser_type": (
                self.launch_settings.browser_type if self.launch_settings else None
            ),
            "url": getattr(self.page, "url", None),
        }

    # HTTP client

    def ensure_http_client(self) -> requests.Session:
        if self.http_client is None:
            self.http_client = self._http_client_factory()
            logger.debug("Created HTTP client")
        return self.http_client

    async def http_request(
        self, method: str, url: str, **kwargs: Any
    ) -> requests.Response:
        """Run a blocking ``requests`` call without blocking the event loop."""
        client = self.ensure_http_client()
        kwargs.setdefault("timeout", self.settings.http_timeout)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(client.request, method, url, **kwargs)
        )

    async def close_all(self) -> None:
        """Release every handle; used on shutdown."""
        await self.close_session()
        if self.http_client is not None:
            try:
                self.http_client.close()
            except Exception as e:
                logger.error(f"Error closing HTTP client: {e}")
            self.http_client = None
