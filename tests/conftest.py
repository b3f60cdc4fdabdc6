"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all tests in the test suite: HTML fixtures for the extraction
strategies, an in-memory stand-in for the playwright object graph, a fake
clock and an error logger that writes into the test's tmp_path.
"""

import json
import pytest
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlparse


# ============================================================================
# Paths and Directories
# ============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# ============================================================================
# Isolation
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_error_logger(tmp_path, monkeypatch):
    """Route structured error records to tmp_path, never to Supabase."""
    import stayscout.core.error_logger as error_logger_module

    err_logger = error_logger_module.ErrorLogger(fallback_dir=tmp_path / "errors", use_database=False)
    monkeypatch.setattr(error_logger_module, "_error_logger", err_logger)
    return err_logger


@pytest.fixture
def error_records(isolated_error_logger, tmp_path) -> Callable[[], List[dict]]:
    """Read back every error record written during the test."""
    def _read() -> List[dict]:
        out: List[dict] = []
        for path in sorted((tmp_path / "errors").glob("errors_*.jsonl")):
            for line in path.read_text(encoding="utf-8").splitlines():
                if line.strip():
                    out.append(json.loads(line))
        return out
    return _read


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# HTML Fixtures
# ============================================================================

@pytest.fixture
def pricing_table_html() -> str:
    """Availability table: two distinct rooms, one repeated rate, a header row."""
    return """
    <html><body>
      <table id="hprt-table" class="hprt-table">
        <thead>
          <tr><th>Room type</th><th>Number of guests</th><th>Today's price</th></tr>
        </thead>
        <tbody>
          <tr>
            <td>
              <a class="hprt-roomtype-link" href="#RD1">
                <span class="hprt-roomtype-icon-link">Deluxe King Room</span>
              </a>
              <div>Max. people: 2</div>
            </td>
            <td>2</td>
            <td><div class="prco-valign-middle-helper">MXN 1,850</div></td>
          </tr>
          <tr>
            <td><span class="hprt-roomtype-icon-link">Deluxe King Room</span></td>
            <td>2</td>
            <td><div class="prco-valign-middle-helper">MXN 2,100</div></td>
          </tr>
          <tr>
            <td><span class="hprt-roomtype-icon-link">Standard Twin Room</span></td>
            <td>Only 1 left</td>
            <td>MXN 1,200</td>
          </tr>
          <tr><td>Sold out</td></tr>
        </tbody>
      </table>
    </body></html>
    """


@pytest.fixture
def generic_prices_html() -> str:
    """No availability table; prices sit next to their room headings."""
    return """
    <html><body>
      <section>
        <div class="room">
          <h3>Ocean View Suite</h3>
          <span class="bui-price-display__value">MXN 3,400</span>
        </div>
        <div class="room">
          <h3>Garden Room</h3>
          <div data-testid="price-and-discounted-price">MXN 2,150</div>
        </div>
        <div class="room">
          <h3>Garden Room</h3>
          <div data-testid="price-and-discounted-price">MXN 2,900</div>
        </div>
      </section>
    </body></html>
    """


@pytest.fixture
def jsonld_events_html() -> str:
    """Three JSON-LD events: two near Tijuana, one in Mexico City."""
    events = [
        {
            "@context": "https://schema.org",
            "@type": "Event",
            "name": "Rock en la Frontera",
            "startDate": "2026-03-14T20:00:00-07:00",
            "url": "/concerts/100-rock-en-la-frontera",
            "location": {
                "@type": "Place",
                "name": "Audiorama El Trompo",
                "geo": {"latitude": 32.5333, "longitude": -117.0190},
            },
        },
        {
            "@context": "https://schema.org",
            "@type": "Event",
            "name": "Jazz at the Bay",
            "startDate": "2026-03-15T19:30:00-07:00",
            "url": "https://www.songkick.com/concerts/101-jazz-at-the-bay",
            "location": {
                "@type": "Place",
                "name": "Balboa Theatre",
                "geo": {"latitude": "32.7157", "longitude": "-117.1611"},
            },
        },
    ]
    far_away = {
        "@context": "https://schema.org",
        "@type": "Event",
        "name": "Festival del Zocalo",
        "startDate": "2026-03-16",
        "url": "/concerts/102-festival-del-zocalo",
        "location": {"name": "Zocalo", "geo": {"latitude": 19.4326, "longitude": -99.1332}},
    }
    return f"""
    <html><head>
      <script type="application/ld+json">{json.dumps(events)}</script>
      <script type="application/ld+json">{json.dumps({"@graph": [far_away]})}</script>
    </head><body><h1>Upcoming</h1></body></html>
    """


def _microformat(lat: float, lon: float) -> str:
    data = {"@type": "MusicEvent", "location": {"geo": {"latitude": lat, "longitude": lon}}}
    return f'<div class="microformat"><script type="application/ld+json">{json.dumps(data)}</script></div>'


@pytest.fixture
def anchor_events_html() -> str:
    """Listing without JSON-LD Event objects; three event-link anchors."""
    return f"""
    <html><body>
      <ul class="event-listings">
        <li class="event-listings-element">
          <time datetime="2026-04-02T21:00:00-0700"></time>
          <a class="event-link" href="/concerts/200-los-tigres">
            <span><strong>Los Tigres del Norte</strong></span>
          </a>
          <a class="venue-link" href="/venues/1-plaza-monumental">Plaza Monumental</a>
          {_microformat(32.5149, -117.0382)}
        </li>
        <li class="event-listings-element">
          <time datetime="2026-04-05T20:00:00-0700"></time>
          <a class="event-link" href="/concerts/201-natalia-lafourcade">
            <span><strong>Natalia Lafourcade</strong></span>
          </a>
          <span class="venue">Teatro del CECUT</span>
        </li>
        <li class="event-listings-element">
          <a class="event-link" href="/concerts/202-caifanes">
            <span><strong>Caifanes</strong></span>
          </a>
        </li>
      </ul>
    </body></html>
    """


@pytest.fixture
def event_detail_html() -> str:
    return """
    <html><head>
      <script type="application/ld+json">
        {"@type": "Event", "name": "Caifanes", "startDate": "2026-04-09T21:00:00-07:00",
         "location": {"@type": "Place", "name": "Estadio Caliente"}}
      </script>
    </head><body><h1>Caifanes</h1></body></html>
    """


@pytest.fixture
def search_results_html() -> str:
    return """
    <html><body>
      <div data-testid="property-card">
        <a href="/hotel/us/lucerna-san-diego.html"><div data-testid="title">Hotel Lucerna San Diego</div></a>
      </div>
      <div data-testid="property-card">
        <a href="/hotel/mx/lucerna-tijuana.html"><div data-testid="title">Hotel Lucerna Tijuana</div></a>
      </div>
      <div data-testid="property-card">
        <a href="/hotel/mx/grand-tijuana.html"><div data-testid="title">Grand Hotel Tijuana</div></a>
      </div>
    </body></html>
    """


# ============================================================================
# Playwright stand-ins
# ============================================================================

class FakeLocator:
    def __init__(self, present: bool = True, visible: bool = True, enabled: bool = True,
                 on_click: Optional[Callable[[], None]] = None):
        self.present = present
        self.visible = visible
        self.enabled = enabled
        self.clicks = 0
        self._on_click = on_click

    @property
    def first(self) -> "FakeLocator":
        return self

    async def count(self) -> int:
        return 1 if self.present else 0

    async def is_visible(self) -> bool:
        return self.visible

    async def is_enabled(self) -> bool:
        return self.enabled

    async def click(self, timeout=None) -> None:
        self.clicks += 1
        if self._on_click:
            self._on_click()


class FakeFrame:
    def __init__(self, locators: Optional[Dict[str, FakeLocator]] = None):
        self.locators = dict(locators or {})

    def locator(self, selector: str) -> FakeLocator:
        return self.locators.get(selector) or FakeLocator(present=False)


class FakePage:
    """
    Page whose HTML is computed from its current URL.

    content_for(url) -> html. markers_ready controls wait_for_selector.
    """

    def __init__(self, content_for: Callable[[str], str] = lambda url: "",
                 goto_error: Optional[Exception] = None, markers_ready: bool = True,
                 main_frame: Optional[FakeFrame] = None, child_frames: Optional[List[FakeFrame]] = None):
        self.content_for = content_for
        self.goto_error = goto_error
        self.markers_ready = markers_ready
        self.main_frame = main_frame or FakeFrame()
        self.child_frames = list(child_frames or [])
        self.url = ""
        self.visited: List[str] = []
        self.scrolls = 0
        self.waits: List[int] = []

    @property
    def frames(self) -> List[FakeFrame]:
        return [self.main_frame] + self.child_frames

    def locator(self, selector: str) -> FakeLocator:
        return self.main_frame.locator(selector)

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def wait_for_load_state(self, state, timeout=None):
        return None

    async def evaluate(self, script):
        self.scrolls += 1

    async def wait_for_selector(self, selector, state=None, timeout=None):
        if not self.markers_ready:
            raise TimeoutError(f"Timeout {timeout}ms waiting for {selector}")

    async def content(self) -> str:
        return self.content_for(self.url)


class FakeContext:
    def __init__(self, page: FakePage, options: dict):
        self.page = page
        self.options = options
        self.init_scripts: List[str] = []
        self.route_handler = None
        self.closed = False

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def route(self, pattern, handler):
        self.route_handler = handler

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page_factory: Callable[[], FakePage]):
        self.page_factory = page_factory
        self.contexts: List[FakeContext] = []
        self.closed = False

    async def new_context(self, **options) -> FakeContext:
        ctx = FakeContext(self.page_factory(), options)
        self.contexts.append(ctx)
        return ctx

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser: FakeBrowser, fail_times: int = 0):
        self.browser = browser
        self.fail_times = fail_times
        self.launches: List[dict] = []

    async def launch(self, **kwargs) -> FakeBrowser:
        self.launches.append(kwargs)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("Executable doesn't exist at /ms-playwright/chromium")
        return self.browser


class FakePlaywright:
    def __init__(self, page_factory: Callable[[], FakePage] = FakePage, fail_times: int = 0):
        self.browser = FakeBrowser(page_factory)
        self.chromium = FakeChromium(self.browser, fail_times=fail_times)
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakeRoute:
    def __init__(self, url: str, resource_type: str = "document"):
        self.request = type("Request", (), {"url": url, "resource_type": resource_type})()
        self.outcome = None

    async def abort(self):
        self.outcome = "abort"

    async def continue_(self):
        self.outcome = "continue"


def query_value(url: str, name: str) -> str:
    return (parse_qs(urlparse(url).query).get(name) or [""])[0]


@pytest.fixture
def fake_playwright_factory():
    """
    Build a (factory, FakePlaywright) pair for BrowserSessionManager.

    Usage:
        factory, pw = fake_playwright_factory(content_for=..., fail_times=0)
        manager = BrowserSessionManager(playwright_factory=factory, launch_retries=0)
    """
    def _build(content_for: Callable[[str], str] = lambda url: "", fail_times: int = 0,
               markers_ready: bool = True):
        pw = FakePlaywright(
            page_factory=lambda: FakePage(content_for=content_for, markers_ready=markers_ready),
            fail_times=fail_times,
        )

        async def factory():
            return pw

        return factory, pw
    return _build


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_supabase_client(monkeypatch):
    """Mock Supabase client for testing."""
    class MockTable:
        def __init__(self):
            self.data = []
            self.conflicts = []

        def upsert(self, rows, on_conflict=None):
            self.data.extend(rows)
            self.conflicts.append(on_conflict)
            return self

        def insert(self, row):
            self.data.append(row)
            return self

        def execute(self):
            class Result:
                def __init__(self, data):
                    self.data = data
            return Result(self.data)

    class MockClient:
        def __init__(self):
            self.tables = {}

        def table(self, name: str):
            if name not in self.tables:
                self.tables[name] = MockTable()
            return self.tables[name]

    mock_client = MockClient()

    import stayscout.db.supabase_client as supabase_module
    monkeypatch.setattr(supabase_module, "_client", mock_client)

    return mock_client


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
