from unittest.mock import MagicMock, patch

import requests

from core.errors import FailureKind
from core.resolver import MatchPathResolver, http_lookup

LOOKUP_URL = "https://www.betano.bg/api/events/{match_id}"


class RecordingLookup:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.urls = []

    def __call__(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.payload


def test_numeric_identifier_is_resolved_to_slug():
    lookup = RecordingLookup({"slug": "sport/football/match-slug"})
    resolver = MatchPathResolver(LOOKUP_URL, lookup)

    assert resolver.resolve("123") == "sport/football/match-slug"
    assert lookup.urls == ["https://www.betano.bg/api/events/123"]


def test_non_numeric_identifier_skips_lookup():
    lookup = RecordingLookup({"slug": "other"})
    resolver = MatchPathResolver(LOOKUP_URL, lookup)

    assert resolver.resolve("sport/football/match-slug") == "sport/football/match-slug"
    assert lookup.urls == []


def test_blank_identifier_resolves_to_blank():
    lookup = RecordingLookup({"slug": "x"})
    resolver = MatchPathResolver(LOOKUP_URL, lookup)

    assert resolver.resolve("") == ""
    assert resolver.resolve("   ") == ""
    assert resolver.resolve(None) == ""
    assert lookup.urls == []


def test_url_field_is_used_when_slug_is_missing():
    resolver = MatchPathResolver(LOOKUP_URL, RecordingLookup({"url": "/sport/football/from-url"}))

    assert resolver.resolve("77") == "sport/football/from-url"


def test_only_one_leading_slash_is_stripped():
    resolver = MatchPathResolver(LOOKUP_URL, RecordingLookup({"slug": "//double"}))

    assert resolver.resolve("1") == "/double"


def test_lookup_failures_fall_back_to_identifier():
    for lookup in (
        RecordingLookup(None),
        RecordingLookup({"name": "no slug here"}),
        RecordingLookup(["slug"]),
        RecordingLookup(error=RuntimeError("boom")),
    ):
        resolver = MatchPathResolver(LOOKUP_URL, lookup)
        path, failure = resolver.resolve_outcome("123")
        assert path == "123"
        assert failure.kind is FailureKind.RESOLVER_LOOKUP


def test_no_lookup_url_means_no_lookup():
    lookup = RecordingLookup({"slug": "x"})

    assert MatchPathResolver(None, lookup).resolve("123") == "123"
    assert lookup.urls == []


def test_http_lookup_decodes_json_on_success():
    response = MagicMock(status_code=200)
    response.json.return_value = {"slug": "a/b"}
    with patch("core.resolver.requests.get", return_value=response) as get:
        assert http_lookup("https://x/1") == {"slug": "a/b"}
    assert get.call_args[0][0] == "https://x/1"


def test_http_lookup_returns_none_on_error_status():
    with patch("core.resolver.requests.get", return_value=MagicMock(status_code=404)):
        assert http_lookup("https://x/1") is None


def test_http_lookup_returns_none_on_network_errors():
    for error in (requests.exceptions.Timeout(), requests.exceptions.ConnectionError(), requests.exceptions.TooManyRedirects()):
        with patch("core.resolver.requests.get", side_effect=error):
            assert http_lookup("https://x/1") is None


def test_http_lookup_returns_none_on_bad_json():
    response = MagicMock(status_code=200)
    response.json.side_effect = ValueError("no json")
    with patch("core.resolver.requests.get", return_value=response):
        assert http_lookup("https://x/1") is None


def test_default_strategy_goes_through_requests():
    response = MagicMock(status_code=200)
    response.json.return_value = {"slug": "sport/football/match-slug"}
    with patch("core.resolver.requests.get", return_value=response):
        assert MatchPathResolver(LOOKUP_URL).resolve("123") == "sport/football/match-slug"
