from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

from playwright.sync_api import Browser, BrowserContext, BrowserType

from config.settings import settings
from core.errors import LaunchFailure
from core.proxy import ProxyConfig, SessionProxyState
from utils.logger import get_logger
from utils.user_agents import UserAgentPool

logger = get_logger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}


class BrowserSessionManager:
    """
    Launches Chromium with bounded retries and a one-shot proxy fallback.

    Arguments left as None are read from settings (BROWSER_* keys).
    """

    def __init__(
        self,
        proxy: ProxyConfig,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        headless: Optional[bool] = None,
        slow_mo: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.proxy = proxy
        self.max_retries = settings.BROWSER_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.BROWSER_RETRY_DELAY if retry_delay is None else retry_delay
        self.headless = settings.BROWSER_HEADLESS if headless is None else headless
        self.slow_mo = settings.BROWSER_SLOW_MO if slow_mo is None else slow_mo
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._sleep = sleep

    def _launch_options(self, state: SessionProxyState) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": self.headless, "slow_mo": self.slow_mo}
        if state.use_proxy and self.proxy.configured:
            logger.info(f"Setting global proxy at browser launch: {self.proxy.masked_url()}")
            options["proxy"] = self.proxy.as_playwright()
        elif self.proxy.configured:
            logger.info("Launching browser without proxy after previous failures")
        return options

    def launch(self, browser_type: BrowserType, state: Optional[SessionProxyState] = None) -> Browser:
        """
        Start a browser, retrying up to max_retries times.

        Args:
            browser_type: Playwright browser type, usually playwright.chromium
            state: Proxy switch for this scrape call. A fresh one is created
                when omitted so failures never leak between calls.

        Returns:
            The launched browser

        Raises:
            LaunchFailure: every attempt failed
        """
        if state is None:
            state = SessionProxyState.for_proxy(self.proxy)

        attempts = 0
        while True:
            options = self._launch_options(state)
            proxied = "proxy" in options
            try:
                logger.info(f"Launching browser (headless={self.headless})")
                return browser_type.launch(**options)
            except Exception as e:
                attempts += 1
                logger.warning(f"Failed to launch browser (attempt {attempts}/{self.max_retries}): {e}")

                if attempts == 1 and proxied:
                    state.disable()
                    logger.info("Proxy connection failed. Will try without proxy on next attempt.")

                if attempts >= self.max_retries:
                    logger.error("Max retries reached. Unable to launch browser.", exc_info=True)
                    raise LaunchFailure(attempts, e) from e

                self._sleep(self.retry_delay)


class SessionContextFactory:
    """Creates an isolated browser context for one scrape call."""

    def __init__(self, proxy: ProxyConfig, user_agents: Optional[UserAgentPool] = None):
        self.proxy = proxy
        self.user_agents = user_agents or UserAgentPool()

    def create(self, browser: Browser, state: SessionProxyState) -> BrowserContext:
        user_agent = self.user_agents.random_agent()
        logger.info(f"Using user agent: {user_agent}")

        options: Dict[str, Any] = {
            "user_agent": user_agent,
            "viewport": dict(VIEWPORT),
            "ignore_https_errors": True,
        }

        if state.use_proxy and self.proxy.configured:
            logger.info(f"Using proxy in browser context: {self.proxy.masked_url()}")
            options["proxy"] = self.proxy.as_playwright()
        elif self.proxy.configured:
            logger.info("Creating browser context without proxy (fallback mode)")
        else:
            logger.info("No proxy configured")

        return browser.new_context(**options)
