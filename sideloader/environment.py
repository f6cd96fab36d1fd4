from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional

from .models import ResolvedSettings

logger = logging.getLogger(__name__)

def merge_env_layers(*layers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge left to right; a later layer wins on key collision. None layers are skipped."""
    merged: Dict[str, str] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            merged[str(key)] = str(value)
    return merged

def setup_wrapper_env_vars(title_id: str, runner: str, settings: Optional[ResolvedSettings] = None) -> Dict[str, str]:
    env = {
        "SIDELOADER_APP_NAME": title_id,
        "SIDELOADER_APP_RUNNER": runner,
        "SIDELOADER_APP_SOURCE": "sideload",
    }
    if settings is not None and settings.show_mangohud:
        env["MANGOHUD"] = "1"
    return env

def setup_env_vars(settings: ResolvedSettings, install_path: str = "") -> Dict[str, str]:
    """Environment derived from the title's settings. User options win over the toggles."""
    env: Dict[str, str] = {}
    if install_path:
        env["STEAM_COMPAT_INSTALL_PATH"] = install_path
    if settings.nvidia_prime:
        env["DRI_PRIME"] = "1"
        env["__NV_PRIME_RENDER_OFFLOAD"] = "1"
        env["__GLX_VENDOR_LIBRARY_NAME"] = "nvidia"
    if settings.show_fps:
        env["DXVK_HUD"] = "fps"
    if settings.enable_fsr:
        env["WINE_FULLSCREEN_FSR"] = "1"
        env["WINE_FULLSCREEN_FSR_STRENGTH"] = str(settings.max_sharpness)
    for key, value in (settings.environment_options or {}).items():
        if key:
            env[key] = value
    return env

class KnownFixTable:
    """Per-title environment remediations, one JSON file per title id.

    File shape: {"envVariables": {"KEY": "value"}, "runner": "sideload"}.
    `runner` is optional; when present the fix only applies to that runner.
    """

    def __init__(self, fixes_dir: Optional[Path] = None, fixes: Optional[Dict[str, dict]] = None):
        self.fixes_dir = Path(fixes_dir) if fixes_dir else None
        self._fixes = dict(fixes or {})

    def _load(self, title_id: str) -> dict:
        if title_id in self._fixes:
            return self._fixes[title_id]
        if self.fixes_dir is None:
            return {}
        path = self.fixes_dir / f"{title_id}.json"
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text("utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable known fix %s: %s", path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def lookup(self, title_id: str, runner: str) -> Dict[str, str]:
        fix = self._load(title_id)
        if not fix:
            return {}
        wanted = fix.get("runner")
        if wanted and wanted != runner:
            return {}
        env = fix.get("envVariables") or {}
        if not isinstance(env, dict):
            return {}
        return {str(k): str(v) for k, v in env.items()}

def compose_environment(
    settings: ResolvedSettings,
    install_path: str,
    runner: str,
    title_id: str,
    known_fixes: Optional[KnownFixTable] = None,
) -> Dict[str, str]:
    """Wrapper env < settings env < known fixes."""
    return merge_env_layers(
        setup_wrapper_env_vars(title_id, runner, settings),
        setup_env_vars(settings, install_path),
        known_fixes.lookup(title_id, runner) if known_fixes else None,
    )
