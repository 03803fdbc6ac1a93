import json
from datetime import datetime, timezone
from types import SimpleNamespace

import run_all
from core.errors import LaunchFailure
from core.models import BettingEvent, BettingMarket, BettingSelection
from core.result import ScrapeResult


def _event(event_id="1"):
    return BettingEvent(
        event_id=event_id,
        match_name="Levski - CSKA",
        start_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        markets=[BettingMarket(market_id="m1", market_type="1X2",
                               selections=[BettingSelection(selection_id="s1", selection_name="1", odds=2.1)])],
    )


def _scraper(name, result=None, error=None):
    calls = []

    def fetch(match_id=None):
        calls.append(match_id)
        if error is not None:
            raise error
        return result

    return SimpleNamespace(BOOKMAKER=name, fetch=fetch, calls=calls)


def test_save_events_writes_json_array(tmp_path):
    path = run_all.save_events("betano", [_event()], output_dir=str(tmp_path / "out"))

    assert path.name.startswith("betano_odds_") and path.suffix == ".json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data[0]["event_id"] == "1"
    assert data[0]["markets"][0]["selections"][0]["odds"] == 2.1


def test_run_once_continues_after_launch_failure(monkeypatch):
    monkeypatch.setattr(run_all.settings, "OUTPUT_ENABLED", False)
    result = ScrapeResult()
    result.extend([_event("1"), _event("2")])
    broken = _scraper("broken", error=LaunchFailure(3))
    working = _scraper("working", result=result)

    total = run_all.run_once([broken, working], match_id="123")

    assert total == 2
    assert broken.calls == ["123"]
    assert working.calls == ["123"]


def test_run_once_saves_when_output_enabled(monkeypatch, tmp_path):
    monkeypatch.setattr(run_all.settings, "OUTPUT_ENABLED", True)
    monkeypatch.setattr(run_all.settings, "OUTPUT_DIR", str(tmp_path))
    result = ScrapeResult()
    result.extend([_event()])

    run_all.run_once([_scraper("betano", result=result)])

    assert len(list(tmp_path.glob("betano_odds_*.json"))) == 1


def test_run_once_skips_saving_empty_results(monkeypatch, tmp_path):
    monkeypatch.setattr(run_all.settings, "OUTPUT_ENABLED", True)
    monkeypatch.setattr(run_all.settings, "OUTPUT_DIR", str(tmp_path))

    total = run_all.run_once([_scraper("efbet", result=ScrapeResult())])

    assert total == 0
    assert list(tmp_path.iterdir()) == []
