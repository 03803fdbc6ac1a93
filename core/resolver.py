from __future__ import annotations

import re
from typing import Any, Callable, Optional, Tuple

import requests

from core.errors import Failure, FailureKind
from utils.logger import get_logger

logger = get_logger(__name__)

NUMERIC_ID = re.compile(r"[0-9]+")

# Fetches the lookup URL and returns the decoded JSON, or None on any failure
SlugLookup = Callable[[str], Optional[Any]]


def http_lookup(url: str, timeout: float = 10) -> Optional[Any]:
    """
    GET a lookup endpoint and decode its JSON body.

    Args:
        url: Fully formatted lookup URL
        timeout: Request timeout in seconds

    Returns:
        Decoded JSON on a 2xx response, None otherwise
    """
    try:
        response = requests.get(url, headers={"Accept": "application/json"}, timeout=timeout)
    except requests.exceptions.Timeout:
        logger.warning(f"Slug lookup timed out after {timeout} seconds: {url}")
        return None
    except requests.exceptions.ConnectionError:
        logger.warning(f"Could not connect to slug lookup URL: {url}")
        return None
    except requests.exceptions.RequestException as e:
        logger.warning(f"Slug lookup request failed for {url}: {e}")
        return None

    if not 200 <= response.status_code < 300:
        logger.warning(f"Slug lookup failed with status {response.status_code}: {url}")
        return None

    try:
        return response.json()
    except ValueError:
        logger.warning(f"Slug lookup returned a non-JSON body: {url}")
        return None


class MatchPathResolver:
    """
    Turns a match identifier into a path on the bookmaker site.

    Numeric identifiers are looked up on a secondary endpoint for their slug;
    anything else is already a path and is returned as given. Lookup problems
    only cost the nicer path, they never fail the scrape.
    """

    def __init__(self, lookup_url: Optional[str] = None, lookup: Optional[SlugLookup] = None):
        self.lookup_url = lookup_url
        self.lookup = lookup or http_lookup

    def resolve(self, identifier: Optional[str]) -> str:
        path, _ = self.resolve_outcome(identifier)
        return path

    def resolve_outcome(self, identifier: Optional[str]) -> Tuple[str, Optional[Failure]]:
        """Resolved path plus the lookup failure, if one was swallowed."""
        if identifier is None or not identifier.strip():
            return "", None

        if not NUMERIC_ID.fullmatch(identifier) or not self.lookup_url:
            return identifier, None

        url = self.lookup_url.format(match_id=identifier)
        try:
            payload = self.lookup(url)
        except Exception as e:
            logger.warning(f"Slug lookup for {identifier} raised: {e}")
            return identifier, Failure(FailureKind.RESOLVER_LOOKUP, str(e), url)

        path = self._extract_path(payload)
        if path is None:
            logger.info(f"No slug found for match {identifier}, using it as-is")
            return identifier, Failure(FailureKind.RESOLVER_LOOKUP, "no slug or url in lookup response", url)

        logger.info(f"Resolved match {identifier} -> {path}")
        return path, None

    @staticmethod
    def _extract_path(payload: Any) -> Optional[str]:
        if not isinstance(payload, dict):
            return None
        for key in ("slug", "url"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value[1:] if value.startswith("/") else value
        return None
