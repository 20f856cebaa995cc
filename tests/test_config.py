from config.loader import ConfigLoader
from host.preferences import HostPreferences


def test_env_file_values_are_typed_by_default(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("SM_TEST_PORT=9000\nSM_TEST_SOUNDS=off\nSM_TEST_VOLUME=0.25\nSM_TEST_URL=https://x.test\n")
    for name in ("SM_TEST_PORT", "SM_TEST_SOUNDS", "SM_TEST_VOLUME", "SM_TEST_URL"):
        monkeypatch.delenv(name, raising=False)

    loader = ConfigLoader(str(env_file))

    assert loader.get("SM_TEST_PORT", 8765) == 9000
    assert loader.get("SM_TEST_SOUNDS", True) is False
    assert loader.get("SM_TEST_VOLUME", 0.5) == 0.25
    assert loader.get("SM_TEST_URL", "https://default.test") == "https://x.test"


def test_environment_beats_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("SM_TEST_LEVEL=debug\n")
    monkeypatch.setenv("SM_TEST_LEVEL", "warning")

    assert ConfigLoader(str(env_file)).get("SM_TEST_LEVEL", "info") == "warning"


def test_unparseable_number_falls_back_to_default(tmp_path, monkeypatch):
    monkeypatch.setenv("SM_TEST_TIMEOUT", "soon")

    assert ConfigLoader(str(tmp_path / "missing.env")).get("SM_TEST_TIMEOUT", 300) == 300


def test_home_relative_default_is_expanded(tmp_path, monkeypatch):
    monkeypatch.delenv("SM_TEST_FILE", raising=False)

    value = ConfigLoader(str(tmp_path / "missing.env")).get("SM_TEST_FILE", "~/.specmanager/x.json")

    assert not value.startswith("~")
    assert value.endswith(".specmanager/x.json")


def test_preferences_defaults_and_overrides(state_store):
    preferences = HostPreferences(state_store)

    assert preferences.get_config()["language"] == "auto"
    assert preferences.get_config()["soundsEnabled"] is True

    changed = preferences.update({"soundsVolume": 0.8, "soundsEnabled": True, "language": "ja"})

    assert changed == {"soundsVolume": 0.8, "language": "ja"}
    assert preferences.get_config()["soundsVolume"] == 0.8
    assert preferences.language == "ja"


def test_welcome_flag_is_set_once(state_store):
    preferences = HostPreferences(state_store)

    assert preferences.mark_welcome_shown() is True
    assert preferences.mark_welcome_shown() is False
