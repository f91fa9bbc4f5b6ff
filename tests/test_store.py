import json

from nadir.store import SettingsStore, default_path


def test_missing_value_returns_default(tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    assert store.value("Main", "speed", 30) == 30


def test_set_value_then_read(tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    store.set_value("Main", "keysym", "SPACE")
    assert store.value("Main", "keysym", "x") == "SPACE"


def test_groups_are_separate(tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    store.set_value("Main", "hidden", 1)
    assert store.value("mainWidget", "hidden", 0) == 0


def test_sync_persists_across_instances(tmp_path):
    path = tmp_path / "sub" / "settings.json"
    store = SettingsStore(path)
    store.set_value("Main", "keycode", 65)
    store.set_value("confWidget", "size", (770, 670))
    store.sync()
    reloaded = SettingsStore(path)
    assert reloaded.value("Main", "keycode") == 65
    assert reloaded.value("confWidget", "size") == [770, 670]


def test_unsynced_changes_are_not_written(tmp_path):
    path = tmp_path / "settings.json"
    store = SettingsStore(path)
    store.set_value("Main", "speed", 10)
    assert not path.exists()
    assert SettingsStore(path).value("Main", "speed", 30) == 30


def test_corrupt_file_is_treated_as_empty(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    store = SettingsStore(path)
    assert store.value("Main", "mode", 0) == 0


def test_file_content_is_grouped_json(tmp_path):
    path = tmp_path / "settings.json"
    store = SettingsStore(path)
    store.set_value("Main", "color", "255,0,0")
    store.sync()
    assert json.loads(path.read_text(encoding="utf-8")) == {"Main": {"color": "255,0,0"}}


def test_default_path_uses_xdg_config_home(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_path() == tmp_path / "nadir" / "nadir.json"
    assert SettingsStore().path == default_path()