import argparse
import json
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from scrapers import betano, efbet
from core.errors import LaunchFailure
from core.models import BettingEvent
from config.settings import settings
from utils.logger import get_logger

logger = get_logger(__name__)

SCRAPERS = [
    betano,
    efbet,
]


def save_events(bookmaker: str, events: List[BettingEvent], output_dir: Optional[str] = None) -> Optional[Path]:
    """
    Save events as a pretty-printed JSON array in the output directory.

    Args:
        bookmaker: Name of the bookmaker
        events: Events to save
        output_dir: Target directory, defaults to settings.OUTPUT_DIR

    Returns:
        Path of the written file, or None if writing failed
    """
    directory = Path(output_dir or settings.OUTPUT_DIR)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = directory / f"{bookmaker}_odds_{timestamp}.json"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        payload = [e.model_dump(mode="json") for e in events]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        logger.info(f"Saved {len(events)} events for {bookmaker} -> {filepath.resolve()}")
        return filepath
    except OSError as e:
        logger.error(f"Failed to save events for {bookmaker}: {e}")
        return None


def run_once(scrapers=None, match_id: Optional[str] = None) -> int:
    """Run every scraper once and return the total number of captured events."""
    scrapers = SCRAPERS if scrapers is None else scrapers
    total_events = 0
    successful_scrapers = 0

    for scraper in scrapers:
        logger.info(f"Processing {scraper.BOOKMAKER}...")
        try:
            result = scraper.fetch(match_id or None)
        except LaunchFailure as e:
            logger.error(f"Failed to scrape {scraper.BOOKMAKER}: {e}")
            continue

        for failure in result.failures:
            logger.debug(f"{scraper.BOOKMAKER} recovered failure: {failure.kind.value} {failure.url or ''} {failure.reason}")

        if not result.endpoint_observed:
            logger.warning(f"{scraper.BOOKMAKER}: no matching API endpoint was seen, results may be incomplete")

        if len(result):
            successful_scrapers += 1
            total_events += len(result)
            if settings.OUTPUT_ENABLED:
                save_events(scraper.BOOKMAKER, result.events)
        else:
            logger.warning(f"No events found for {scraper.BOOKMAKER}")

    logger.info(f"Scraping completed: {successful_scrapers}/{len(scrapers)} scrapers successful, {total_events} total events")
    return total_events


def main(argv=None):
    """Fetch odds from the configured bookmakers, once or on an interval."""
    parser = argparse.ArgumentParser(description="Intercept and normalize bookmaker odds traffic")
    parser.add_argument("--match-id", default=settings.MATCH_ID, help="Match id, slug or URL to target")
    parser.add_argument("--site", action="append", choices=[s.BOOKMAKER for s in SCRAPERS],
                        help="Only run the given bookmaker (repeatable)")
    parser.add_argument("--loop", action="store_true", help="Keep scraping every SCRAPE_INTERVAL seconds")
    args = parser.parse_args(argv)

    scrapers = [s for s in SCRAPERS if not args.site or s.BOOKMAKER in args.site]
    logger.info(f"Starting scraping process for {', '.join(s.BOOKMAKER for s in scrapers)}")

    while True:
        started = time.monotonic()
        run_once(scrapers, args.match_id)
        if not args.loop:
            break
        time.sleep(max(0.0, settings.SCRAPE_INTERVAL - (time.monotonic() - started)))


if __name__ == "__main__":
    main()
