from __future__ import annotations

from typing import Optional

from config.settings import settings
from core.result import ScrapeResult
from scrapers.base import ScrapeOrchestrator
from utils.logger import get_logger

logger = get_logger(__name__)

BOOKMAKER = "efbet"


def build_scraper() -> ScrapeOrchestrator:
    """Efbet serves its odds from "offer" endpoints on the sports landing page."""
    return ScrapeOrchestrator(
        BOOKMAKER,
        settings.EFBET_URL,
        endpoints=settings.EFBET_ENDPOINTS,
    )


def fetch(match_id: Optional[str] = None) -> ScrapeResult:
    """
    Scrape the Efbet sports page.

    Efbet has no per-match pages, so match_id is accepted for a uniform
    runner interface and ignored: the landing page is always visited and
    every captured event is kept.
    """
    if match_id:
        logger.debug(f"Ignoring match id {match_id} for {BOOKMAKER}, scraping the sports page")
    return build_scraper().scrape()
