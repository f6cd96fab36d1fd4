import json

from sideloader.settings import SettingsStore, TitleStore, load_settings, save_settings


def test_title_settings_override_global_defaults_and_are_reread(tmp_path):
    global_file = tmp_path / "_sideloader.json"
    save_settings(global_file, {"use_gamemode": True, "launcher_args": "-global", "bogus": 1})
    store = SettingsStore(global_file, tmp_path / "settings", prefix_root=tmp_path / "prefixes",
                          defaults={"sandbox_box": "Games"})

    s = store.get_settings("game")
    assert s.use_gamemode is True
    assert s.launcher_args == "-global"
    assert s.sandbox_box == "Games"
    assert s.wine_prefix == str(tmp_path / "prefixes" / "game")

    store.save_title_settings("game", {
        "launcher_args": "-title",
        "wrapper_options": [{"exe": "strace", "args": "-f"}, {"args": "no exe"}],
        "environment_options": [{"key": "A", "value": "1"}, {"value": "orphan"}],
    })
    s = store.get_settings("game")
    assert s.launcher_args == "-title"
    assert [(w.exe, w.args) for w in s.wrapper_options] == [("strace", "-f")]
    assert s.environment_options == {"A": "1"}


def test_broken_settings_file_falls_back_to_defaults(tmp_path):
    f = tmp_path / "_sideloader.json"
    f.write_text("[1, 2", encoding="utf-8")
    assert load_settings(f)["launcher_args"] == ""


def test_title_store(tmp_path):
    f = tmp_path / "titles.json"
    f.write_text(json.dumps({
        "b-game": {"title": "B", "executable": "/g/b", "unknown_key": True},
        "a-web": {"browser_url": "https://example.com", "launch_fullscreen": True},
        "junk": "not a dict",
    }), encoding="utf-8")
    store = TitleStore(f)

    web = store.get_title("a-web")
    assert web.title == "a-web" and web.launch_fullscreen is True
    assert store.get_title("junk") is None
    assert store.get_title("missing") is None
    assert [t.title_id for t in store.list_titles()] == ["a-web", "b-game"]
