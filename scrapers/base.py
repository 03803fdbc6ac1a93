from __future__ import annotations

from typing import Callable, ContextManager, Iterable, Optional

from playwright.sync_api import Error as PlaywrightError, Page, Playwright, Response, sync_playwright

from config.settings import settings
from core.browser import BrowserSessionManager, SessionContextFactory
from core.classifier import TrafficClassifier
from core.errors import Failure, FailureKind
from core.normalizer import PayloadNormalizer
from core.proxy import ProxyConfig, SessionProxyState
from core.resolver import MatchPathResolver
from core.result import ScrapeResult
from utils.logger import get_logger

logger = get_logger(__name__)

COOKIE_ACCEPT_SELECTOR = 'button:has-text("Accept")'


class ScrapeOrchestrator:
    """
    Runs one intercept-and-normalize pass against a bookmaker page.

    Every call gets its own browser, context, proxy state and result buffer.
    Only LaunchFailure escapes scrape(); navigation and teardown problems are
    recorded on the result, which then holds whatever was captured so far.
    Timing, proxy and dedup arguments left as None are read from settings.
    """

    def __init__(
        self,
        bookmaker: str,
        base_url: str,
        endpoints: Optional[Iterable[str]] = None,
        proxy: Optional[ProxyConfig] = None,
        resolver: Optional[MatchPathResolver] = None,
        sessions: Optional[BrowserSessionManager] = None,
        contexts: Optional[SessionContextFactory] = None,
        normalizer: Optional[PayloadNormalizer] = None,
        settle_delay_ms: Optional[int] = None,
        cookie_timeout_ms: Optional[int] = None,
        navigation_timeout_ms: Optional[int] = None,
        deduplicate: Optional[bool] = None,
        playwright_factory: Callable[[], ContextManager[Playwright]] = sync_playwright,
    ):
        self.bookmaker = bookmaker
        self.base_url = base_url.rstrip("/")
        self.endpoints = tuple(endpoints or ())
        self.proxy = proxy or ProxyConfig.from_settings()
        self.resolver = resolver
        self.sessions = sessions or BrowserSessionManager(self.proxy)
        self.contexts = contexts or SessionContextFactory(self.proxy)
        self.normalizer = normalizer or PayloadNormalizer()
        self.settle_delay_ms = settings.SETTLE_DELAY_MS if settle_delay_ms is None else settle_delay_ms
        self.cookie_timeout_ms = settings.COOKIE_BANNER_TIMEOUT_MS if cookie_timeout_ms is None else cookie_timeout_ms
        self.navigation_timeout_ms = (
            settings.NAVIGATION_TIMEOUT_MS if navigation_timeout_ms is None else navigation_timeout_ms
        )
        self.deduplicate = settings.DEDUPLICATE_EVENTS if deduplicate is None else deduplicate
        self._playwright_factory = playwright_factory

    def target_url(self, path: str) -> str:
        """Absolute URLs are used as given, anything else is a path under base_url."""
        if not path:
            return self.base_url
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _response_handler(
        self, classifier: TrafficClassifier, result: ScrapeResult, match_filter: Optional[str]
    ) -> Callable[[Response], None]:
        def handle(response: Response) -> None:
            verdict = classifier.inspect(response)
            if not verdict.qualifying:
                return

            body = classifier.read_body(response)
            if not body.ok:
                result.record_failure(body.failure)
                return

            outcome = self.normalizer.parse_text(body.text, match_filter, source=verdict.url)
            result.record_failure(outcome.failure)
            if outcome.events:
                added = result.extend(outcome.events)
                logger.info(f"Parsed {added} events from {verdict.url}")

        def on_response(response: Response) -> None:
            # An exception here would surface in page.goto and end the capture
            try:
                handle(response)
            except Exception as e:
                url = getattr(response, "url", None)
                logger.warning(f"Error handling response from {url}: {e!r}")
                result.record_failure(Failure(FailureKind.PAYLOAD_PARSE, repr(e), url))

        return on_response

    def _dismiss_cookie_banner(self, page: Page) -> None:
        try:
            page.wait_for_selector(COOKIE_ACCEPT_SELECTOR, timeout=self.cookie_timeout_ms)
            page.click(COOKIE_ACCEPT_SELECTOR)
            page.wait_for_selector(COOKIE_ACCEPT_SELECTOR, state="detached", timeout=self.cookie_timeout_ms)
            logger.debug("Cookie banner accepted")
        except PlaywrightError:
            logger.debug("Cookie banner not found or already dismissed")

    def _visit(self, page: Page, url: str) -> None:
        logger.info(f"Navigating to {url}")
        if self.navigation_timeout_ms:
            page.set_default_timeout(self.navigation_timeout_ms)
        page.goto(url)
        self._dismiss_cookie_banner(page)
        page.wait_for_load_state("networkidle")
        # Late XHRs keep arriving after networkidle on most odds pages
        page.wait_for_timeout(self.settle_delay_ms)

    def scrape(self, identifier: Optional[str] = None) -> ScrapeResult:
        """
        Capture and normalize the odds traffic of one page load.

        Args:
            identifier: Optional match id, slug or absolute URL. When given,
                it is resolved to a page path and used to filter events.

        Returns:
            ScrapeResult with the captured events, possibly partial

        Raises:
            LaunchFailure: the browser could not be started
        """
        logger.info(f"Starting {self.bookmaker} scraping process" + (f" for match: {identifier}" if identifier else ""))

        identifier = identifier.strip() if identifier and identifier.strip() else None
        path = ""
        resolve_failure = None
        if identifier and self.resolver is not None:
            path, resolve_failure = self.resolver.resolve_outcome(identifier)
        elif identifier:
            path = identifier

        result = ScrapeResult(deduplicate=self.deduplicate, target_url=self.target_url(path))
        result.record_failure(resolve_failure)

        match_filter = identifier
        if match_filter and match_filter.startswith(("http://", "https://")):
            # A full page URL says where to go, not which event to keep
            match_filter = None
        classifier = TrafficClassifier(self.endpoints)
        state = SessionProxyState.for_proxy(self.proxy)

        with self._playwright_factory() as p:
            browser = self.sessions.launch(p.chromium, state)
            try:
                self._run_context(browser, state, classifier, result, match_filter)
            finally:
                self._close(browser, "browser", result)

        result.endpoint_observed = classifier.endpoint_observed
        if not result.endpoint_observed:
            logger.warning(
                f"No {self.bookmaker} endpoint was observed; the page may not have triggered the expected APIs"
            )
        logger.info(f"{self.bookmaker} scraping finished. Total events captured: {len(result)}")
        return result

    def _run_context(self, browser, state, classifier, result, match_filter) -> None:
        try:
            context = self.contexts.create(browser, state)
        except Exception as e:
            logger.error(f"Error creating browser context: {e}", exc_info=True)
            result.record_failure(Failure(FailureKind.NAVIGATION, str(e), result.target_url))
            return

        try:
            page = context.new_page()
            page.on("response", self._response_handler(classifier, result, match_filter))
            self._visit(page, result.target_url)
        except Exception as e:
            logger.error(f"Error during {self.bookmaker} scraping: {e}", exc_info=True)
            result.record_failure(Failure(FailureKind.NAVIGATION, str(e), result.target_url))
        finally:
            self._close(context, "context", result)

    def _close(self, resource, name: str, result: ScrapeResult) -> None:
        try:
            resource.close()
        except Exception as e:
            logger.error(f"Error closing {name}: {e}")
            result.record_failure(Failure(FailureKind.NAVIGATION, f"closing {name}: {e}", result.target_url))
