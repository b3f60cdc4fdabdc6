"""
Page navigation and readiness for the crawler.

navigate() drives a page through a layered readiness sequence. Every step
is best-effort: a step that fails or times out is logged and the sequence
continues, so the caller always gets whatever HTML the page holds, with
degraded=True when the page never reached its expected state.

1. goto (domcontentloaded)
2. consent-banner dismissal across the main document and all frames
3. bounded network-idle wait
4. viewport-height scroll steps to trigger lazy loading
5. bounded wait for content markers
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from playwright.async_api import Page

from stayscout.core.config import get_config
from stayscout.core.errors import NavigationFailure
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from stayscout.core.logging import get_logger
from stayscout.crawler.session import PageSession
from stayscout.crawler.url_utils import domain_of

logger = get_logger(__name__)

# Persist consent so later navigations in the same context skip the banner
CONSENT_FLAG_JS = "try { localStorage.setItem('cookie_consent', 'true'); } catch (e) {}"

SCROLL_VIEWPORT_JS = "() => window.scrollBy(0, window.innerHeight)"

DEFAULT_CONSENT_SELECTORS = (
    "#onetrust-accept-btn-handler",
    'button[aria-label="Accept"]',
    'button[aria-label="Accept all"]',
    'button[data-testid="accept-cookies"]',
    'button:has-text("Accept all")',
    'button:has-text("Accept")',
    'button:has-text("Aceptar")',
)


@dataclass(frozen=True)
class ReadinessPolicy:
    """
    Knobs for one navigate() call.

    Zero/empty values skip the corresponding step.
    """
    consent_selectors: Tuple[str, ...] = DEFAULT_CONSENT_SELECTORS
    persist_consent: bool = True
    settle_ms: int = 0
    network_idle_ms: int = 20_000
    scroll_steps: int = 0
    scroll_pause_ms: int = 1_200
    markers: Tuple[str, ...] = ()
    marker_timeout_ms: int = 15_000
    nav_timeout_ms: Optional[int] = None


@dataclass(frozen=True)
class RenderedPage:
    url: str
    html: str
    degraded: bool = False
    consent_clicked: bool = False


class NavigationController:
    """Runs the readiness sequence against a PageSession."""

    def __init__(self, nav_timeout_ms: Optional[int] = None, click_timeout_ms: int = 5_000):
        self.nav_timeout_ms = nav_timeout_ms or get_config().nav_timeout_ms
        self.click_timeout_ms = click_timeout_ms

    async def navigate(self, session: PageSession, url: str,
                       readiness: Optional[ReadinessPolicy] = None) -> RenderedPage:
        """
        Navigate and wait for readiness. Never raises for page-level problems.

        Args:
            session: Session whose page is used
            url: Target URL
            readiness: Readiness policy (default: consent + network idle)

        Returns:
            RenderedPage with the final HTML and the degraded flag
        """
        policy = readiness or ReadinessPolicy()
        page = session.page
        degraded = False

        if policy.persist_consent and not session.consent_script_installed:
            try:
                await session.context.add_init_script(CONSENT_FLAG_JS)
                session.consent_script_installed = True
            except Exception as e:
                logger.debug(f"Consent init script failed: {e}")

        try:
            await page.goto(url, wait_until="domcontentloaded",
                            timeout=policy.nav_timeout_ms or self.nav_timeout_ms)
        except Exception as e:
            degraded = True
            self._log(NavigationFailure(f"goto failed: {e}", url=url), ErrorStage.NAVIGATE, url,
                      ErrorType.NAVIGATION_FAILURE)

        if policy.settle_ms:
            await self._pause(page, policy.settle_ms)

        consent_clicked = False
        if policy.consent_selectors:
            consent_clicked = await self.dismiss_consent(page, policy.consent_selectors)

        if policy.network_idle_ms:
            try:
                await page.wait_for_load_state("networkidle", timeout=policy.network_idle_ms)
            except Exception:
                logger.debug(f"[nav] network idle not reached in {policy.network_idle_ms}ms: {url}")

        if policy.scroll_steps:
            await self.scroll(page, policy.scroll_steps, policy.scroll_pause_ms)

        if policy.markers:
            if not await self.wait_for_markers(page, policy.markers, policy.marker_timeout_ms):
                degraded = True
                self._log(
                    NavigationFailure(f"no content markers after {policy.marker_timeout_ms}ms", url=url),
                    ErrorStage.WAIT_FOR_MARKERS, url, ErrorType.TIMEOUT,
                    metadata={"markers": list(policy.markers)},
                )

        html = await self.content(page)
        final_url = page.url or url
        logger.info(f"[nav] {final_url} ({len(html)} chars{', degraded' if degraded else ''})")
        return RenderedPage(url=final_url, html=html, degraded=degraded, consent_clicked=consent_clicked)

    async def dismiss_consent(self, page: Page, selectors: Sequence[str]) -> bool:
        """
        Click the first visible consent button.

        Probes the main document first, then every child frame.
        """
        try:
            frames = list(page.frames)
        except Exception:
            frames = []
        frames = [page.main_frame] + [f for f in frames if f is not page.main_frame]

        for frame in frames:
            for sel in selectors:
                try:
                    loc = frame.locator(sel).first
                    if await loc.count() and await loc.is_visible():
                        await loc.click(timeout=self.click_timeout_ms)
                        logger.debug(f"[click] consent: {sel}")
                        await self._pause(page, 500)
                        return True
                except Exception:
                    continue
        return False

    async def scroll(self, page: Page, steps: int, pause_ms: int) -> int:
        """Scroll one viewport per step. Returns the steps completed."""
        done = 0
        for _ in range(steps):
            try:
                await page.evaluate(SCROLL_VIEWPORT_JS)
                await page.wait_for_timeout(pause_ms)
            except Exception as e:
                logger.debug(f"[scroll] stopped after {done} steps: {e}")
                break
            done += 1
        return done

    async def wait_for_markers(self, page: Page, markers: Sequence[str], timeout_ms: int) -> bool:
        """True once any marker selector is attached to the DOM."""
        try:
            await page.wait_for_selector(", ".join(markers), state="attached", timeout=timeout_ms)
            return True
        except Exception:
            return False

    async def click_first_visible(self, session: PageSession, selectors: Sequence[str],
                                  settle_ms: int = 1_500) -> Optional[str]:
        """
        Click the first visible and enabled element matching one of selectors.

        Returns:
            The selector that was clicked, or None
        """
        page = session.page
        for sel in selectors:
            try:
                loc = page.locator(sel).first
                if await loc.count() and await loc.is_visible() and await loc.is_enabled():
                    await loc.click(timeout=self.click_timeout_ms)
                    logger.debug(f"[click] cta: {sel}")
                    await self._pause(page, settle_ms)
                    return sel
            except Exception:
                continue
        return None

    async def content(self, page: Page) -> str:
        try:
            return await page.content()
        except Exception as e:
            logger.debug(f"page.content() failed: {e}")
            return ""

    async def _pause(self, page: Page, ms: int) -> None:
        try:
            await page.wait_for_timeout(ms)
        except Exception:
            pass

    def _log(self, exc: Exception, stage: str, url: str, error_type: ErrorType,
             metadata: Optional[dict] = None) -> None:
        get_error_logger().log_exception(
            exc,
            component=ErrorComponent.NAVIGATION,
            stage=stage,
            domain=domain_of(url),
            url=url,
            severity=ErrorSeverity.WARNING,
            error_type=error_type,
            metadata=metadata,
        )
