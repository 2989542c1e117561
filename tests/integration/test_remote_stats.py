"""Remote stats viewer tests"""
import pytest
import requests

import show_remote_stats
from show_remote_stats import StatsUnavailable, fetch_player_summary, format_summary, normalize_url


SUMMARY = {
    'player': 'alice',
    'stats': {
        'total_games_played': 3, 'total_games_won': 2, 'total_time_played': 125,
        'total_moves': 16, 'current_streak': 0, 'best_streak': 2,
    },
    'win_rate': 66,
    'records': [{'level': 1, 'best_time': 7, 'best_moves': 3, 'times_completed': 2}],
    'recent_history': [
        {'level': 2, 'moves': 8, 'time_spent': 25, 'completed': False, 'relax_mode': False},
        {'level': 1, 'moves': 3, 'time_spent': 9, 'completed': True, 'relax_mode': True},
    ],
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload

    def json(self):
        if self.payload is None:
            raise ValueError("no JSON")
        return self.payload


class TestNormalizeUrl:
    """normalize_url tests"""

    def test_adds_scheme(self):
        assert normalize_url("localhost:5000") == "http://localhost:5000"

    def test_keeps_scheme_strips_slash(self):
        assert normalize_url("https://stats.example/") == "https://stats.example"


class TestFetch:
    """fetch_player_summary tests"""

    def test_success(self, monkeypatch):
        calls = []

        def fake_get(url, params=None, timeout=None):
            calls.append((url, params, timeout))
            return FakeResponse(payload=SUMMARY)

        monkeypatch.setattr(show_remote_stats.requests, "get", fake_get)
        assert fetch_player_summary("localhost:5000", "alice") == SUMMARY
        assert calls == [("http://localhost:5000/api/stats/alice", {'limit': 10}, 5)]

    def test_unknown_player(self, monkeypatch):
        monkeypatch.setattr(show_remote_stats.requests, "get",
                            lambda url, params=None, timeout=None: FakeResponse(404, {"error": "x"}))
        with pytest.raises(StatsUnavailable, match="No player named alice"):
            fetch_player_summary("localhost:5000", "alice")

    def test_server_error(self, monkeypatch):
        monkeypatch.setattr(show_remote_stats.requests, "get",
                            lambda url, params=None, timeout=None: FakeResponse(500, {}))
        with pytest.raises(StatsUnavailable, match="500"):
            fetch_player_summary("localhost:5000", "alice")

    def test_invalid_json(self, monkeypatch):
        monkeypatch.setattr(show_remote_stats.requests, "get",
                            lambda url, params=None, timeout=None: FakeResponse(200, None))
        with pytest.raises(StatsUnavailable):
            fetch_player_summary("localhost:5000", "alice")

    def test_connection_error(self, monkeypatch):
        def fake_get(url, params=None, timeout=None):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(show_remote_stats.requests, "get", fake_get)
        with pytest.raises(StatsUnavailable, match="Could not reach"):
            fetch_player_summary("localhost:5000", "alice")


class TestFormatSummary:
    """format_summary tests"""

    def test_full_summary(self):
        text = format_summary(SUMMARY)
        assert "===== alice =====" in text
        assert "Games won:      2 (66%)" in text
        assert "Time played:    02:05" in text
        assert "Level 1: 00:07, 3 moves, cleared 2x" in text
        assert "Level 2: Lost, 8 moves, 00:25" in text
        assert "Level 1 (relax): Won, 3 moves, 00:09" in text

    def test_empty_summary(self):
        text = format_summary({'player': 'bob', 'stats': None, 'records': [], 'recent_history': []})
        assert "No games played yet." in text
        assert "No records yet" in text


class TestMain:
    """main tests"""

    def test_usage(self, capsys):
        assert show_remote_stats.main([]) == 2
        assert "Usage" in capsys.readouterr().out

    def test_prints_summary(self, monkeypatch, capsys):
        monkeypatch.setattr(show_remote_stats.requests, "get",
                            lambda url, params=None, timeout=None: FakeResponse(payload=SUMMARY))
        assert show_remote_stats.main(["alice", "localhost:9999"]) == 0
        assert "===== alice =====" in capsys.readouterr().out

    def test_reports_errors(self, monkeypatch, capsys):
        def fake_get(url, params=None, timeout=None):
            raise requests.exceptions.Timeout("slow")

        monkeypatch.setattr(show_remote_stats.requests, "get", fake_get)
        assert show_remote_stats.main(["alice", "localhost:9999"]) == 1
        assert "Could not reach" in capsys.readouterr().out
