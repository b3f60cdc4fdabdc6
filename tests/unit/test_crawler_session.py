"""
Unit tests for browser sessions and page navigation, run against the
in-memory playwright stand-ins from conftest.
"""

import asyncio
import pytest

from stayscout.core.errors import ResourceAcquisitionFailure
from stayscout.crawler.navigation import (
    CONSENT_FLAG_JS,
    NavigationController,
    ReadinessPolicy,
)
from stayscout.crawler.session import (
    LAUNCH_ARGS,
    WEBDRIVER_MASK_JS,
    BrowserSessionManager,
    PageSession,
    SessionConfig,
)
from stayscout.utils.user_agents import UserAgentProvider
from tests.conftest import FakeContext, FakeFrame, FakeLocator, FakePage, FakeRoute


def _manager(factory, retries=0):
    return BrowserSessionManager(
        user_agents=UserAgentProvider.seeded(3),
        launch_timeout_ms=1000,
        launch_retries=retries,
        playwright_factory=factory,
    )


# ============================================================================
# BrowserSessionManager
# ============================================================================

class TestBrowserSessionManager:
    """Tests for BrowserSessionManager."""

    def test_launch_arguments(self, fake_playwright_factory):
        factory, pw = fake_playwright_factory()

        async def scenario():
            manager = _manager(factory)
            await manager.start(headless=False)
            await manager.start(headless=False)
            await manager.close()

        asyncio.run(scenario())
        assert len(pw.chromium.launches) == 1
        launch = pw.chromium.launches[0]
        assert launch["headless"] is False
        assert launch["args"] == list(LAUNCH_ARGS)
        assert launch["timeout"] == 1000

    def test_context_options(self, fake_playwright_factory):
        factory, pw = fake_playwright_factory()
        config = SessionConfig(locale="es-ES", extra_headers={"Accept-Language": "es-ES,es;q=0.9"})

        async def scenario():
            manager = _manager(factory)
            session = await manager.acquire(config)
            await manager.close()
            return session

        session = asyncio.run(scenario())
        (ctx,) = pw.browser.contexts
        assert ctx.options["locale"] == "es-ES"
        assert ctx.options["viewport"] == {"width": 1366, "height": 768}
        assert ctx.options["extra_http_headers"] == {"Accept-Language": "es-ES,es;q=0.9"}
        assert ctx.options["user_agent"] == session.user_agent
        assert WEBDRIVER_MASK_JS in ctx.init_scripts

    def test_user_agent_override(self, fake_playwright_factory):
        factory, pw = fake_playwright_factory()

        async def scenario():
            manager = _manager(factory)
            await manager.acquire(SessionConfig(user_agent="test-agent/1.0"))
            await manager.close()

        asyncio.run(scenario())
        assert pw.browser.contexts[0].options["user_agent"] == "test-agent/1.0"
        assert pw.browser.contexts[0].options["extra_http_headers"] is None

    def test_resource_routing(self, fake_playwright_factory):
        factory, pw = fake_playwright_factory()
        config = SessionConfig(allowed_hosts=("songkick.com",))

        async def scenario():
            manager = _manager(factory)
            await manager.acquire(config)
            handler = pw.browser.contexts[0].route_handler
            routes = [
                FakeRoute("https://www.songkick.com/metro-areas/1", "document"),
                FakeRoute("https://assets.songkick.com/app.js", "script"),
                FakeRoute("https://www.songkick.com/poster.jpg", "image"),
                FakeRoute("https://www.songkick.com/font.woff2", "font"),
                FakeRoute("https://ads.tracker.net/pixel.js", "script"),
            ]
            for route in routes:
                await handler(route)
            await manager.close()
            return [r.outcome for r in routes]

        assert asyncio.run(scenario()) == ["continue", "continue", "abort", "abort", "abort"]

    def test_launch_failure_is_fatal(self, fake_playwright_factory, error_records):
        factory, pw = fake_playwright_factory(fail_times=1)
        manager = _manager(factory, retries=0)

        with pytest.raises(ResourceAcquisitionFailure):
            asyncio.run(manager.start())

        assert not manager.started
        assert pw.stopped
        (record,) = error_records()
        assert record["severity"] == "critical"
        assert record["error_type"] == "resource_acquisition_failure"
        assert record["stage"] == "launch_browser"

    def test_playwright_start_failure_is_fatal(self):
        async def broken_factory():
            raise RuntimeError("playwright driver missing")

        with pytest.raises(ResourceAcquisitionFailure):
            asyncio.run(_manager(broken_factory).start())

    @pytest.mark.slow
    def test_launch_retried(self, fake_playwright_factory):
        factory, pw = fake_playwright_factory(fail_times=1)
        manager = _manager(factory, retries=1)

        async def scenario():
            await manager.start()
            started = manager.started
            await manager.close()
            return started

        assert asyncio.run(scenario()) is True
        assert len(pw.chromium.launches) == 2

    def test_close_releases_everything(self, fake_playwright_factory):
        factory, pw = fake_playwright_factory()

        async def scenario():
            manager = _manager(factory)
            await manager.acquire()
            await manager.acquire()
            live = manager.live_sessions
            await manager.close()
            return manager, live

        manager, live = asyncio.run(scenario())
        assert live == 2
        assert manager.live_sessions == 0
        assert all(ctx.closed for ctx in pw.browser.contexts)
        assert pw.browser.closed
        assert pw.stopped

    def test_session_context_manager_releases(self, fake_playwright_factory):
        factory, pw = fake_playwright_factory()

        async def scenario():
            async with _manager(factory) as manager:
                async with manager.session() as s:
                    inside = manager.live_sessions
                    assert isinstance(s, PageSession)
                after = manager.live_sessions
            return inside, after

        assert asyncio.run(scenario()) == (1, 0)
        assert pw.browser.contexts[0].closed


# ============================================================================
# NavigationController
# ============================================================================

def _session(page: FakePage) -> PageSession:
    return PageSession(context=FakeContext(page, {}), page=page, config=SessionConfig())


FAST = dict(network_idle_ms=0, marker_timeout_ms=10)


class TestNavigationController:
    """Tests for NavigationController.navigate and helpers."""

    def test_ready_page(self):
        page = FakePage(content_for=lambda url: f"<html>{url}</html>")
        session = _session(page)
        nav = NavigationController(nav_timeout_ms=1000)

        rendered = asyncio.run(nav.navigate(
            session, "https://www.booking.com/hotel/mx/a.html",
            ReadinessPolicy(markers=(".hprt-table",), **FAST),
        ))
        assert not rendered.degraded
        assert rendered.html == "<html>https://www.booking.com/hotel/mx/a.html</html>"
        assert page.visited == ["https://www.booking.com/hotel/mx/a.html"]

    def test_goto_error_degrades_but_returns_html(self, error_records):
        page = FakePage(content_for=lambda url: "<html>partial</html>",
                        goto_error=TimeoutError("Timeout 1000ms exceeded"))
        nav = NavigationController(nav_timeout_ms=1000)

        rendered = asyncio.run(nav.navigate(_session(page), "https://www.booking.com/x", ReadinessPolicy(**FAST)))
        assert rendered.degraded
        assert rendered.html == "<html>partial</html>"
        assert rendered.url == "https://www.booking.com/x"
        (record,) = error_records()
        assert record["error_type"] == "navigation_failure"
        assert record["stage"] == "navigate"

    def test_missing_markers_degrade(self, error_records):
        page = FakePage(content_for=lambda url: "<html></html>", markers_ready=False)
        nav = NavigationController(nav_timeout_ms=1000)

        rendered = asyncio.run(nav.navigate(
            _session(page), "https://www.booking.com/x",
            ReadinessPolicy(markers=(".hprt-table", ".bui-price-display__value"), **FAST),
        ))
        assert rendered.degraded
        (record,) = error_records()
        assert record["stage"] == "wait_for_markers"
        assert record["metadata"]["markers"] == [".hprt-table", ".bui-price-display__value"]

    def test_consent_script_installed_once(self):
        page = FakePage()
        session = _session(page)
        nav = NavigationController(nav_timeout_ms=1000)

        async def scenario():
            await nav.navigate(session, "https://www.songkick.com/a", ReadinessPolicy(**FAST))
            await nav.navigate(session, "https://www.songkick.com/b", ReadinessPolicy(**FAST))

        asyncio.run(scenario())
        assert session.context.init_scripts == [CONSENT_FLAG_JS]
        assert session.consent_script_installed

    def test_consent_in_child_frame(self):
        button = FakeLocator()
        page = FakePage(child_frames=[FakeFrame({"#onetrust-accept-btn-handler": button})])
        nav = NavigationController(nav_timeout_ms=1000)

        rendered = asyncio.run(nav.navigate(_session(page), "https://www.songkick.com/", ReadinessPolicy(**FAST)))
        assert rendered.consent_clicked
        assert button.clicks == 1

    def test_main_frame_probed_first(self):
        main_button = FakeLocator()
        frame_button = FakeLocator()
        page = FakePage(
            main_frame=FakeFrame({'button:has-text("Aceptar")': main_button}),
            child_frames=[FakeFrame({"#onetrust-accept-btn-handler": frame_button})],
        )
        clicked = asyncio.run(NavigationController(nav_timeout_ms=1000).dismiss_consent(
            page, ("#onetrust-accept-btn-handler", 'button:has-text("Aceptar")'),
        ))
        assert clicked
        assert main_button.clicks == 1
        assert frame_button.clicks == 0

    def test_invisible_consent_ignored(self):
        page = FakePage(main_frame=FakeFrame({"#onetrust-accept-btn-handler": FakeLocator(visible=False)}))
        clicked = asyncio.run(NavigationController(nav_timeout_ms=1000).dismiss_consent(
            page, ("#onetrust-accept-btn-handler",),
        ))
        assert not clicked

    def test_scroll_steps(self):
        page = FakePage()
        nav = NavigationController(nav_timeout_ms=1000)
        asyncio.run(nav.navigate(_session(page), "https://www.songkick.com/",
                                 ReadinessPolicy(scroll_steps=4, scroll_pause_ms=1, **FAST)))
        assert page.scrolls == 4

    def test_click_first_visible_skips_disabled(self):
        enabled = FakeLocator()
        page = FakePage(main_frame=FakeFrame({
            "#hp_book_now_button": FakeLocator(enabled=False),
            'button:has-text("See availability")': enabled,
        }))
        nav = NavigationController(nav_timeout_ms=1000)
        clicked = asyncio.run(nav.click_first_visible(
            _session(page),
            ("#missing", "#hp_book_now_button", 'button:has-text("See availability")'),
            settle_ms=1,
        ))
        assert clicked == 'button:has-text("See availability")'
        assert enabled.clicks == 1

    def test_click_first_visible_nothing(self):
        nav = NavigationController(nav_timeout_ms=1000)
        assert asyncio.run(nav.click_first_visible(_session(FakePage()), ("#missing",))) is None
