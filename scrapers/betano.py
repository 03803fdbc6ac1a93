from __future__ import annotations

from typing import Optional

from config.settings import settings
from core.resolver import MatchPathResolver
from core.result import ScrapeResult
from scrapers.base import ScrapeOrchestrator

BOOKMAKER = "betano"


def build_scraper() -> ScrapeOrchestrator:
    """
    Betano pages are match-specific: numeric ids are turned into page slugs
    through the event lookup API. The endpoint list is empty by default so
    every JSON XHR is inspected until the real odds endpoints are pinned down.
    """
    resolver = MatchPathResolver(lookup_url=settings.BETANO_LOOKUP_URL or None)
    return ScrapeOrchestrator(
        BOOKMAKER,
        settings.BETANO_URL,
        endpoints=settings.BETANO_ENDPOINTS,
        resolver=resolver,
    )


def fetch(match_id: Optional[str] = None) -> ScrapeResult:
    """Scrape Betano, optionally narrowed to one match id or slug."""
    return build_scraper().scrape(match_id)
