import json

from sideloader.environment import (
    KnownFixTable,
    compose_environment,
    merge_env_layers,
    setup_env_vars,
    setup_wrapper_env_vars,
)
from sideloader.models import ResolvedSettings


def test_later_layer_wins():
    assert merge_env_layers({"KEY": "A"}, {"KEY": "B"}, {"KEY": "C"}) == {"KEY": "C"}
    assert merge_env_layers({"KEY": "A"}, {"KEY": "B"}, None) == {"KEY": "B"}
    assert merge_env_layers(None, {}, {"X": 1}) == {"X": "1"}


def test_settings_override_wrapper_and_known_fix_overrides_both():
    settings = ResolvedSettings(show_mangohud=True, environment_options={"MANGOHUD": "0", "DXVK_HUD": "full"})
    fixes = KnownFixTable(fixes={"game": {"envVariables": {"DXVK_HUD": "off"}}})

    env = compose_environment(settings, "/games/g", "sideload", "game", fixes)

    assert setup_wrapper_env_vars("game", "sideload", settings)["MANGOHUD"] == "1"
    assert env["MANGOHUD"] == "0"
    assert env["DXVK_HUD"] == "off"
    assert env["SIDELOADER_APP_NAME"] == "game"
    assert env["SIDELOADER_APP_RUNNER"] == "sideload"
    assert env["STEAM_COMPAT_INSTALL_PATH"] == "/games/g"


def test_settings_env_toggles():
    env = setup_env_vars(ResolvedSettings(nvidia_prime=True, show_fps=True, enable_fsr=True, max_sharpness=4))
    assert env["__NV_PRIME_RENDER_OFFLOAD"] == "1"
    assert env["DXVK_HUD"] == "fps"
    assert env["WINE_FULLSCREEN_FSR"] == "1"
    assert env["WINE_FULLSCREEN_FSR_STRENGTH"] == "4"
    assert "STEAM_COMPAT_INSTALL_PATH" not in env


def test_known_fix_files_respect_runner(tmp_path):
    (tmp_path / "game.json").write_text(
        json.dumps({"runner": "sideload", "envVariables": {"PROTON_USE_WINED3D": "1"}}), encoding="utf-8"
    )
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    table = KnownFixTable(tmp_path)

    assert table.lookup("game", "sideload") == {"PROTON_USE_WINED3D": "1"}
    assert table.lookup("game", "legendary") == {}
    assert table.lookup("broken", "sideload") == {}
    assert table.lookup("missing", "sideload") == {}
