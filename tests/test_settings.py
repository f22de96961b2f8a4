import json

from portfolio.settings import (
    AppSettings,
    load_settings,
    save_settings,
    seed_path,
    settings_path,
)


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.json")
    assert settings == AppSettings()
    assert settings.default_time_filter == "3m"
    assert settings.dark_mode is False


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    save_settings(AppSettings(dark_mode=True, default_time_filter="ytd"), path)
    assert load_settings(path) == AppSettings(dark_mode=True, default_time_filter="ytd")


def test_unknown_filter_is_normalized(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"dark_mode": True, "default_time_filter": "10y"}))
    settings = load_settings(path)
    assert settings.dark_mode is True
    assert settings.default_time_filter == "3m"


def test_corrupt_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{dark_mode: yes")
    assert load_settings(path) == AppSettings()


def test_paths_from_environment():
    env = {"PORTFOLIO_SETTINGS_PATH": "/tmp/s.json", "PORTFOLIO_SEED_PATH": "/tmp/seed.json"}
    assert str(settings_path(env)) == "/tmp/s.json"
    assert str(seed_path(env)) == "/tmp/seed.json"
    assert str(settings_path({})) == "data/settings.json"
