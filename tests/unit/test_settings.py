"""Settings tests"""
import json

from settings import DEFAULT_SETTINGS, load_settings, save_settings, toggle_setting


class TestSettings:
    """load_settings / save_settings tests"""

    def test_defaults_when_missing(self, tmp_path):
        assert load_settings(str(tmp_path / "missing.json")) == DEFAULT_SETTINGS

    def test_merges_over_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"relax_mode": True, "db_file": "other.db"}))

        settings = load_settings(str(path))
        assert settings["relax_mode"] is True
        assert settings["db_file"] == "other.db"
        assert settings["log_level"] == DEFAULT_SETTINGS["log_level"]

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        assert load_settings(str(path)) == DEFAULT_SETTINGS

    def test_non_object(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")
        assert load_settings(str(path)) == DEFAULT_SETTINGS

    def test_round_trip(self, tmp_path):
        path = str(tmp_path / "settings.json")
        settings = dict(DEFAULT_SETTINGS, sound_enabled=False)
        save_settings(settings, path)
        assert load_settings(path)["sound_enabled"] is False

    def test_defaults_not_mutated(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.json"))
        settings["db_file"] = "changed.db"
        assert DEFAULT_SETTINGS["db_file"] == "memory_game.db"

    def test_toggle_saves(self, tmp_path):
        path = str(tmp_path / "settings.json")
        settings = load_settings(path)

        assert toggle_setting(settings, "sound_enabled", path) is False
        assert load_settings(path)["sound_enabled"] is False
        assert toggle_setting(settings, "sound_enabled", path) is True
        assert load_settings(path)["sound_enabled"] is True

    def test_toggle_unwritable_path(self, tmp_path, caplog):
        path = str(tmp_path / "missing_dir" / "settings.json")
        settings = dict(DEFAULT_SETTINGS)
        assert toggle_setting(settings, "relax_mode", path) is True
        assert settings["relax_mode"] is True
        assert "Could not save settings" in caplog.text
