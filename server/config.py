"""Process-wide configuration.

Headless mode and proxy settings can come from a CLI argument or from an
environment variable. The CLI always wins; when neither source provides a
value the setting is unset and per-call tool arguments are honoured.
Everything here is resolved once at process entry and never mutated.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError

from server.errors import ConfigParseError

logger = logging.getLogger(__name__)

HEADLESS_ENV = "PLAYWRIGHT_HEADLESS"
PROXY_ENV = "PLAYWRIGHT_PROXY"
DOWNLOADS_DIR_ENV = "PLAYWRIGHT_DOWNLOADS_DIR"
HTTP_TIMEOUT_ENV = "PLAYWRIGHT_HTTP_TIMEOUT"

DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

T = TypeVar("T")


class ProxySettings(BaseModel):
    """Proxy server configuration in the shape Playwright accepts."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    server: str
    bypass: Optional[str] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None

    def to_playwright(self) -> dict:
        proxy = {"server": self.server}
        if self.bypass:
            proxy["bypass"] = self.bypass
        if self.username:
            proxy["username"] = self.username
        if self.password is not None:
            proxy["password"] = self.password.get_secret_value()
        return proxy

    def describe(self) -> str:
        """Human readable summary; never includes credentials."""
        auth_info = " (authenticated)" if self.username else ""
        bypass_info = f" (bypass: {self.bypass})" if self.bypass else ""
        return f"{self.server}{auth_info}{bypass_info}"


@dataclass(frozen=True)
class ResolvedSetting(Generic[T]):
    """A setting after CLI-over-environment precedence has been applied."""

    value: Optional[T] = None
    source_cli: bool = False
    source_env: bool = False

    @property
    def is_set(self) -> bool:
        return self.value is not None

    @property
    def source(self) -> Optional[str]:
        if self.source_cli:
            return "cli"
        if self.source_env:
            return "env"
        return None


@dataclass(frozen=True)
class GatewaySettings:
    headless: ResolvedSetting[bool] = field(default_factory=ResolvedSetting)
    proxy: ResolvedSetting[ProxySettings] = field(default_factory=ResolvedSetting)
    downloads_dir: Path = field(
        default_factory=lambda: Path.home() / "Downloads"
    )
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    errors: tuple = ()


def parse_proxy(raw: str, origin: str) -> ProxySettings:
    """Parse a JSON proxy object.

    Raises:
        ConfigParseError: if ``raw`` is not a JSON object with a ``server``.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Failed to parse {origin}: {e.msg}") from e
    if not isinstance(data, dict):
        raise ConfigParseError(f"Failed to parse {origin}: expected a JSON object")
    try:
        return ProxySettings.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) for err in e.errors()
        )
        raise ConfigParseError(
            f"Failed to parse {origin}: invalid field(s) {fields}"
        ) from e


def resolve_headless(
    cli_flag: bool, environ: Mapping[str, str]
) -> ResolvedSetting[bool]:
    if cli_flag:
        return ResolvedSetting(value=True, source_cli=True)
    # Only the literal "true" enables headless from the environment.
    if environ.get(HEADLESS_ENV) == "true":
        return ResolvedSetting(value=True, source_env=True)
    return ResolvedSetting()


def resolve_proxy(
    cli_value: Optional[str],
    environ: Mapping[str, str],
    errors: List[ConfigParseError],
) -> ResolvedSetting[ProxySettings]:
    if cli_value:
        try:
            return ResolvedSetting(
                value=parse_proxy(cli_value, "--proxy argument"), source_cli=True
            )
        except ConfigParseError as e:
            logger.error(e.render())
            errors.append(e)

    env_value = environ.get(PROXY_ENV)
    if env_value:
        try:
            return ResolvedSetting(
                value=parse_proxy(env_value, PROXY_ENV), source_env=True
            )
        except ConfigParseError as e:
            logger.error(e.render())
            errors.append(e)

    return ResolvedSetting()


def _http_timeout(environ: Mapping[str, str], errors: List[ConfigParseError]) -> float:
    raw = environ.get(HTTP_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        value = float(raw)
        if value <= 0:
            raise ValueError(raw)
        return value
    except ValueError:
        err = ConfigParseError(f"Invalid {HTTP_TIMEOUT_ENV}: {raw!r}")
        logger.error(err.render())
        errors.append(err)
        return DEFAULT_HTTP_TIMEOUT_SECONDS


def resolve_settings(
    headless_flag: bool = False,
    proxy_arg: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GatewaySettings:
    """Build the immutable settings object from CLI values and the environment."""
    env = dict(os.environ if environ is None else environ)
    errors: List[ConfigParseError] = []

    downloads = env.get(DOWNLOADS_DIR_ENV)
    downloads_dir = (
        Path(downloads).expanduser() if downloads else Path.home() / "Downloads"
    )

    return GatewaySettings(
        headless=resolve_headless(headless_flag, env),
        proxy=resolve_proxy(proxy_arg, env, errors),
        downloads_dir=downloads_dir,
        http_timeout=_http_timeout(env, errors),
        errors=tuple(errors),
    )


def describe_settings(settings: GatewaySettings) -> List[str]:
    """Startup diagnostic lines for the active global modes."""
    lines = []
    if settings.headless.is_set:
        source = (
            "--headless flag"
            if settings.headless.source_cli
            else f"{HEADLESS_ENV} environment variable"
        )
        lines.append(f"Playwright MCP Server starting in headless mode ({source})")

    if settings.proxy.is_set:
        source = (
            "--proxy flag"
            if settings.proxy.source_cli
            else f"{PROXY_ENV} environment variable"
        )
        lines.append(
            "Playwright MCP Server starting with proxy: "
            f"{settings.proxy.value.describe()} ({source})"
        )
    return lines
