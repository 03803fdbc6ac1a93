"""
Failure taxonomy for a scrape call.

Only LaunchFailure is raised out of a scrape. Everything else is recovered
and travels as a Failure value attached to the outcome that produced it, so
the orchestrator decides what ends up on the ScrapeResult.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from core.models import BettingEvent


class LaunchFailure(RuntimeError):
    """The browser could not be started within the retry budget."""

    def __init__(self, attempts: int, cause: Optional[BaseException] = None):
        message = f"Failed to launch browser after {attempts} attempts"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class FailureKind(str, Enum):
    NAVIGATION = "navigation"
    PAYLOAD_PARSE = "payload_parse"
    TIMESTAMP_PARSE = "timestamp_parse"
    RESOLVER_LOOKUP = "resolver_lookup"
    BODY_READ = "body_read"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    reason: str
    url: Optional[str] = None


@dataclass
class ParseOutcome:
    """Events salvaged from one payload, plus why the rest was dropped."""

    events: List[BettingEvent] = field(default_factory=list)
    shape: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class BodyOutcome:
    text: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None
