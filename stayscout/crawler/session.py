"""
Browser session management.

One Chromium process per job; each unit of work (a date block, an
enrichment fetch) gets its own isolated browser context and page.

Each context:
- gets a user agent from the injectable UserAgentProvider
- masks navigator.webdriver
- aborts blocked resource types and, when allowed_hosts is set, any
  request to a host outside it

A failed launch (after retries) raises ResourceAcquisitionFailure, the
only failure that ends a job.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple

from playwright.async_api import async_playwright, Browser, BrowserContext, Page

from stayscout.core.config import get_config
from stayscout.core.errors import ResourceAcquisitionFailure
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from stayscout.core.logging import get_logger
from stayscout.crawler.url_utils import host_allowed
from stayscout.utils.retry import RetryConfig, retry_async_with_backoff
from stayscout.utils.user_agents import UserAgentProvider

logger = get_logger(__name__)

LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
)
BLOCK_RESOURCE_TYPES = frozenset({"media", "font", "image"})
WEBDRIVER_MASK_JS = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"


@dataclass(frozen=True)
class SessionConfig:
    """Per-context settings. user_agent=None draws from the provider."""
    headless: bool = True
    user_agent: Optional[str] = None
    locale: str = "en-US"
    viewport: Tuple[int, int] = (1366, 768)
    allowed_hosts: Tuple[str, ...] = ()
    block_resource_types: FrozenSet[str] = BLOCK_RESOURCE_TYPES
    extra_headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class PageSession:
    """An isolated context plus its single page."""
    context: BrowserContext
    page: Page
    config: SessionConfig
    user_agent: str = ""
    consent_script_installed: bool = False


async def _start_playwright():
    return await async_playwright().start()


class BrowserSessionManager:
    """
    Owns the browser process and every live PageSession.

    Example:
        >>> manager = BrowserSessionManager()
        >>> await manager.start()
        >>> async with manager.session(SessionConfig(locale="es-ES")) as s:
        ...     await s.page.goto("https://www.songkick.com")
        >>> await manager.close()
    """

    def __init__(
        self,
        user_agents: Optional[UserAgentProvider] = None,
        launch_timeout_ms: Optional[int] = None,
        launch_retries: Optional[int] = None,
        playwright_factory: Callable[[], Awaitable] = _start_playwright,
    ):
        config = get_config()
        self.user_agents = user_agents or UserAgentProvider()
        self.launch_timeout_ms = launch_timeout_ms or config.browser_launch_timeout_ms
        self.launch_retries = config.browser_launch_retries if launch_retries is None else launch_retries
        self._playwright_factory = playwright_factory
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._sessions: List[PageSession] = []

    @property
    def started(self) -> bool:
        return self._browser is not None

    @property
    def live_sessions(self) -> int:
        return len(self._sessions)

    async def start(self, headless: bool = True) -> None:
        """
        Launch the browser if not already running.

        Raises:
            ResourceAcquisitionFailure: browser could not be started
        """
        if self._browser is not None:
            return

        try:
            self._playwright = await self._playwright_factory()
            launch = retry_async_with_backoff(
                self._playwright.chromium.launch,
                RetryConfig(max_retries=self.launch_retries, base_delay=1.0, max_delay=10.0),
            )
            self._browser = await launch(
                headless=headless,
                args=list(LAUNCH_ARGS),
                timeout=self.launch_timeout_ms,
            )
            logger.info(f"Browser launched (headless={headless})")
        except Exception as e:
            failure = ResourceAcquisitionFailure(f"browser launch failed: {e}")
            get_error_logger().log_exception(
                failure,
                component=ErrorComponent.BROWSER,
                stage=ErrorStage.LAUNCH_BROWSER,
                domain="local",
                severity=ErrorSeverity.CRITICAL,
                error_type=ErrorType.RESOURCE_ACQUISITION_FAILURE,
                metadata={"cause": type(e).__name__, "retries": self.launch_retries},
            )
            await self._stop_playwright()
            raise failure from e

    async def acquire(self, config: Optional[SessionConfig] = None) -> PageSession:
        """Open a new isolated context and page, launching the browser if needed."""
        config = config or SessionConfig()
        if self._browser is None:
            await self.start(headless=config.headless)

        user_agent = config.user_agent or self.user_agents.next()
        context = await self._browser.new_context(
            user_agent=user_agent,
            locale=config.locale,
            viewport={"width": config.viewport[0], "height": config.viewport[1]},
            extra_http_headers=dict(config.extra_headers) or None,
            java_script_enabled=True,
        )
        await context.add_init_script(WEBDRIVER_MASK_JS)

        async def _route(route):
            request = route.request
            if request.resource_type in config.block_resource_types:
                return await route.abort()
            if config.allowed_hosts and not host_allowed(request.url, config.allowed_hosts):
                return await route.abort()
            return await route.continue_()

        await context.route("**/*", _route)
        page = await context.new_page()

        session = PageSession(context=context, page=page, config=config, user_agent=user_agent)
        self._sessions.append(session)
        logger.debug(f"Session opened ({len(self._sessions)} live)")
        return session

    async def release(self, session: PageSession) -> None:
        """Close a session's context. Safe to call twice."""
        if session in self._sessions:
            self._sessions.remove(session)
        try:
            await session.context.close()
        except Exception as e:
            logger.debug(f"Context close failed: {e}")

    @asynccontextmanager
    async def session(self, config: Optional[SessionConfig] = None):
        s = await self.acquire(config)
        try:
            yield s
        finally:
            await self.release(s)

    async def close(self) -> None:
        """Release every live session, then the browser. Never raises."""
        for s in list(self._sessions):
            await self.release(s)

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                get_error_logger().log_exception(
                    e,
                    component=ErrorComponent.BROWSER,
                    stage=ErrorStage.CLOSE_SESSION,
                    domain="local",
                    severity=ErrorSeverity.WARNING,
                )
            self._browser = None

        await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        if self._playwright is None:
            return
        try:
            await self._playwright.stop()
        except Exception as e:
            logger.debug(f"Playwright stop failed: {e}")
        self._playwright = None

    async def __aenter__(self) -> "BrowserSessionManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
