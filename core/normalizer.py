"""
Payload normalizer for intercepted odds JSON.

Betting sites expose the same information in a handful of layouts. Each
known layout is a PayloadShape, detected by probing for its keys, and has
its own extractor that turns the payload into plain "event nodes":

    {"id", "name", "startTime", "url", "markets": [{"id", "name", "selections": [...]}]}

Field extraction then runs once over the nodes regardless of where they
came from. Nothing in here raises on bad input; whatever could be salvaged
is returned together with the reason for anything that was dropped.
"""
from __future__ import annotations

import json
import math
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from zoneinfo import ZoneInfo

from config.settings import settings
from core.errors import Failure, FailureKind, ParseOutcome
from core.models import BettingEvent, BettingMarket, BettingSelection
from utils.logger import get_logger

logger = get_logger(__name__)

EventNode = Dict[str, Any]


class PayloadShape(str, Enum):
    EVENTS = "events"            # {"events": [...]}
    DATA_EVENTS = "data.events"  # {"data": {"events": [...]}}
    FIXTURES = "fixtures"        # {"fixtures": [{"event": {...}, "markets": [...]}]}
    BETSLIP = "bets"             # {"bets": [{"legs": [{"event", "market", "selection"}]}]}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def detect_shape(payload: Any) -> Optional[PayloadShape]:
    """Return the first known shape the payload matches, in probing order."""
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get("events"), list):
        return PayloadShape.EVENTS
    if isinstance(_as_dict(payload.get("data")).get("events"), list):
        return PayloadShape.DATA_EVENTS
    if isinstance(payload.get("fixtures"), list):
        return PayloadShape.FIXTURES
    if isinstance(payload.get("bets"), list):
        return PayloadShape.BETSLIP
    return None


def _events_nodes(payload: Dict[str, Any]) -> Iterator[EventNode]:
    for ev in payload["events"]:
        if isinstance(ev, dict):
            yield ev


def _data_events_nodes(payload: Dict[str, Any]) -> Iterator[EventNode]:
    for ev in payload["data"]["events"]:
        if isinstance(ev, dict):
            yield ev


def _fixtures_nodes(payload: Dict[str, Any]) -> Iterator[EventNode]:
    for fx in payload["fixtures"]:
        if not isinstance(fx, dict):
            continue
        event = fx.get("event")
        node = dict(event) if isinstance(event, dict) else dict(fx)
        # Markets usually live next to the event object, not inside it
        if "markets" not in node and "markets" in fx:
            node["markets"] = fx["markets"]
        yield node


def _betslip_nodes(payload: Dict[str, Any]) -> Iterator[EventNode]:
    for bet in payload["bets"]:
        for leg in _as_list(_as_dict(bet).get("legs")):
            leg = _as_dict(leg)
            event = _as_dict(leg.get("event"))
            market = _as_dict(leg.get("market"))
            selection = leg.get("selection")

            node = dict(event)
            node["markets"] = [
                {
                    "id": market.get("id"),
                    "name": market.get("name"),
                    "type": market.get("type"),
                    "selections": [selection] if isinstance(selection, dict) else [],
                }
            ]
            yield node


EXTRACTORS: Dict[PayloadShape, Callable[[Dict[str, Any]], Iterator[EventNode]]] = {
    PayloadShape.EVENTS: _events_nodes,
    PayloadShape.DATA_EVENTS: _data_events_nodes,
    PayloadShape.FIXTURES: _fixtures_nodes,
    PayloadShape.BETSLIP: _betslip_nodes,
}


def _optional_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _text(value: Any) -> str:
    text = _optional_str(value)
    return text if text is not None else ""


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _price_value(value: Any) -> Optional[float]:
    """Bare number, or an object carrying a "decimal" field."""
    if isinstance(value, dict):
        return _to_float(value.get("decimal"))
    return _to_float(value)


def extract_odds(selection: Dict[str, Any]) -> float:
    """First populated of odds / odds.decimal / price / price.decimal, else 0.0."""
    for key in ("odds", "price"):
        odds = _price_value(selection.get(key))
        if odds is not None:
            return odds
    return 0.0


def matches_filter(node: EventNode, match_filter: Optional[str]) -> bool:
    """
    Keep the node when the filter is blank, equals its id, or is part of its url.
    """
    if match_filter is None or not match_filter.strip():
        return True
    event_id = _optional_str(node.get("id"))
    if event_id is not None and event_id == match_filter:
        return True
    url = node.get("url")
    return isinstance(url, str) and match_filter in url


class PayloadNormalizer:
    """Turns intercepted JSON payloads into BettingEvent records."""

    def __init__(self, tz: Optional[tzinfo] = None, clock: Optional[Callable[[tzinfo], datetime]] = None):
        self.tz = tz or ZoneInfo(settings.TIMEZONE)
        self._clock = clock or datetime.now

    def parse_start_time(self, raw: Any) -> Tuple[datetime, Optional[Failure]]:
        """
        Parse an ISO-8601 string or epoch milliseconds into the configured zone.

        Naive values are taken as UTC. Unparseable values fall back to the
        current time and the failure is returned alongside.
        """
        try:
            if isinstance(raw, bool):
                raise ValueError("boolean start time")
            if isinstance(raw, (int, float)):
                dt = datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
            elif isinstance(raw, str) and raw.strip():
                dt = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
            else:
                raise ValueError("missing start time")
            return dt.astimezone(self.tz), None
        except (TypeError, ValueError, OverflowError, OSError) as e:
            logger.warning(f"Failed to parse date-time {raw!r}: {e}")
            return self._clock(self.tz), Failure(FailureKind.TIMESTAMP_PARSE, f"{raw!r}: {e}")

    def _selection(self, raw: Any) -> Optional[BettingSelection]:
        if not isinstance(raw, dict):
            return None
        return BettingSelection(
            selection_id=_optional_str(raw.get("id")),
            selection_name=_text(raw.get("name")),
            odds=extract_odds(raw),
        )

    def _market(self, raw: Any) -> Optional[BettingMarket]:
        if not isinstance(raw, dict):
            return None
        raw_selections = _as_list(raw.get("selections")) or _as_list(raw.get("outcomes"))
        selections = [s for s in (self._selection(r) for r in raw_selections) if s is not None]
        market_type = raw.get("name")
        if market_type is None:
            market_type = raw.get("type")
        return BettingMarket(
            market_id=_optional_str(raw.get("id")),
            market_type=_text(market_type),
            selections=selections,
        )

    def build_event(self, node: EventNode) -> Tuple[BettingEvent, Optional[Failure]]:
        start_time, failure = self.parse_start_time(node.get("startTime"))
        markets = [m for m in (self._market(r) for r in _as_list(node.get("markets"))) if m is not None]
        event = BettingEvent(
            event_id=_optional_str(node.get("id")),
            match_name=_text(node.get("name")),
            start_time=start_time,
            markets=markets,
        )
        return event, failure

    def parse(self, payload: Any, match_filter: Optional[str] = None, source: Optional[str] = None) -> ParseOutcome:
        shape = detect_shape(payload)
        if shape is None:
            logger.debug(f"Skipping JSON without a known events layout from {source or 'payload'}")
            return ParseOutcome(failure=Failure(FailureKind.PAYLOAD_PARSE, "no known event layout", source))

        outcome = ParseOutcome(shape=shape.value)
        try:
            for node in EXTRACTORS[shape](payload):
                if not matches_filter(node, match_filter):
                    continue
                event, failure = self.build_event(node)
                outcome.events.append(event)
                if failure is not None and outcome.failure is None:
                    outcome.failure = Failure(failure.kind, failure.reason, source)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected {shape.value} payload structure from {source or 'payload'}: {e}")
            outcome.failure = Failure(FailureKind.PAYLOAD_PARSE, str(e), source)

        logger.debug(f"Parsed {len(outcome.events)} events ({shape.value}) from {source or 'payload'}")
        return outcome

    def parse_text(self, body: str, match_filter: Optional[str] = None, source: Optional[str] = None) -> ParseOutcome:
        try:
            payload = json.loads(body)
        except (TypeError, ValueError, RecursionError) as e:
            logger.debug(f"Error parsing response from {source or 'payload'}: {e}")
            return ParseOutcome(failure=Failure(FailureKind.PAYLOAD_PARSE, f"invalid JSON: {e}", source))
        return self.parse(payload, match_filter, source)

    def normalize(self, payload: Any, match_filter: Optional[str] = None) -> List[BettingEvent]:
        return self.parse(payload, match_filter).events
