import contextlib
import json
from typing import Dict, List, Optional

import pytest
from playwright.sync_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError


class FakeRequest:
    def __init__(self, resource_type: str):
        self.resource_type = resource_type


class FakeResponse:
    def __init__(
        self,
        url: str,
        body="",
        status: int = 200,
        content_type: Optional[str] = "application/json",
        resource_type: str = "fetch",
        error: Optional[Exception] = None,
    ):
        self.url = url
        self.status = status
        self.headers: Dict[str, str] = {"content-type": content_type} if content_type else {}
        self.request = FakeRequest(resource_type)
        self._body = body if isinstance(body, str) else json.dumps(body)
        self._error = error
        self.text_calls = 0

    def text(self) -> str:
        self.text_calls += 1
        if self._error is not None:
            raise self._error
        return self._body


class FakePage:
    """Replays canned responses through the registered handlers on goto()."""

    def __init__(self, responses=(), goto_error: Optional[Exception] = None, cookie_banner: bool = False,
                 idle_error: Optional[Exception] = None):
        self.responses = list(responses)
        self.goto_error = goto_error
        self.idle_error = idle_error
        self.cookie_banner = cookie_banner
        self.handlers: Dict[str, List] = {}
        self.visited: List[str] = []
        self.clicked: List[str] = []
        self.waits: List[int] = []
        self.load_states: List[str] = []

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    def goto(self, url):
        self.visited.append(url)
        for response in self.responses:
            for handler in self.handlers.get("response", []):
                handler(response)
        if self.goto_error is not None:
            raise self.goto_error

    def wait_for_selector(self, selector, timeout=None, state=None):
        if state == "detached":
            self.cookie_banner = False
            return None
        if not self.cookie_banner:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return object()

    def click(self, selector):
        self.clicked.append(selector)

    def wait_for_load_state(self, state):
        self.load_states.append(state)
        if self.idle_error is not None:
            raise self.idle_error

    def wait_for_timeout(self, timeout):
        self.waits.append(timeout)


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.closed = False

    def new_page(self):
        return self.page

    def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, context: FakeContext):
        self.context = context
        self.context_options: List[dict] = []
        self.closed = False

    def new_context(self, **options):
        self.context_options.append(options)
        return self.context

    def close(self):
        self.closed = True


class FakeBrowserType:
    """Fails the first `failures` launches, then returns the browser."""

    def __init__(self, browser: Optional[FakeBrowser] = None, failures: int = 0):
        self.browser = browser
        self.failures = failures
        self.launches: List[dict] = []

    def launch(self, **options):
        self.launches.append(options)
        if len(self.launches) <= self.failures:
            raise PlaywrightError(f"launch attempt {len(self.launches)} failed")
        return self.browser


class FakePlaywright:
    def __init__(self, chromium: FakeBrowserType):
        self.chromium = chromium


def playwright_factory(browser_type: FakeBrowserType):
    return lambda: contextlib.nullcontext(FakePlaywright(browser_type))


@pytest.fixture
def no_sleep():
    delays = []
    return delays, delays.append
