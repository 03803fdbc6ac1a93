from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from playwright.sync_api import Error as PlaywrightError, Response

from core.errors import BodyOutcome, Failure, FailureKind
from utils.logger import get_logger

logger = get_logger(__name__)

API_RESOURCE_TYPES = ("xhr", "fetch")
JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class ResponseVerdict:
    url: str
    status: int
    content_type: str
    resource_type: str
    endpoint_match: bool
    qualifying: bool


class TrafficClassifier:
    """
    Decides which intercepted responses carry odds payloads.

    A response qualifies when its URL contains one of the endpoint keywords
    (or no keywords are configured), the status is 2xx, the content type is
    JSON and the request was an XHR/fetch call. Nothing here raises: rejected
    responses are only noted at DEBUG.
    """

    def __init__(self, endpoints: Optional[Iterable[str]] = None):
        self.endpoints: Tuple[str, ...] = tuple(e for e in (endpoints or ()) if e)
        self.endpoint_observed = False

    @property
    def accept_all(self) -> bool:
        return not self.endpoints

    def matches_endpoint(self, url: str) -> bool:
        if self.accept_all:
            return True
        return any(keyword in url for keyword in self.endpoints)

    def inspect(self, response: Response) -> ResponseVerdict:
        url = response.url
        status = response.status
        content_type = response.headers.get("content-type") or ""
        resource_type = response.request.resource_type

        endpoint_match = self.matches_endpoint(url)
        if endpoint_match:
            self.endpoint_observed = True

        qualifying = (
            endpoint_match
            and 200 <= status < 300
            and JSON_CONTENT_TYPE in content_type.lower()
            and resource_type in API_RESOURCE_TYPES
        )

        if not qualifying:
            logger.debug(
                f"Skipping response from {url} (status: {status}, "
                f"content-type: {content_type or None}, type: {resource_type})"
            )

        return ResponseVerdict(
            url=url,
            status=status,
            content_type=content_type,
            resource_type=resource_type,
            endpoint_match=endpoint_match,
            qualifying=qualifying,
        )

    @staticmethod
    def read_body(response: Response) -> BodyOutcome:
        # Bodies can vanish once the page navigates away or the context closes
        try:
            return BodyOutcome(text=response.text())
        except PlaywrightError as e:
            logger.debug(f"Could not read body from {response.url}: {e}")
            return BodyOutcome(failure=Failure(FailureKind.BODY_READ, str(e), response.url))
