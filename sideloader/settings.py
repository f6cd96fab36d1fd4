import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Dict, List, Optional

from .models import ResolvedSettings, TitleInfo, WrapperOption

logger = logging.getLogger(__name__)

_SETTING_KEYS = {f.name for f in fields(ResolvedSettings)}
_TITLE_KEYS = {f.name for f in fields(TitleInfo)}

def _read_json(path: Path) -> dict:
    try:
        if path.exists():
            data = json.loads(path.read_text("utf-8"))
            if isinstance(data, dict):
                return data
            logger.warning("Ignoring %s: expected a JSON object", path)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable %s: %s", path, e)
    return {}

def load_settings(settings_file: Path, defaults: Optional[dict] = None) -> Dict:
    """Global defaults. Unknown keys are dropped."""
    default = asdict(ResolvedSettings())
    default.update(defaults or {})
    data = _read_json(Path(settings_file))
    default.update({k: v for k, v in data.items() if k in _SETTING_KEYS})
    return default

def save_settings(settings_file: Path, settings: dict) -> None:
    Path(settings_file).write_text(json.dumps(settings, indent=2), encoding="utf-8")

def _wrapper_options(raw) -> List[WrapperOption]:
    out: List[WrapperOption] = []
    for item in raw or []:
        if isinstance(item, WrapperOption):
            out.append(item)
        elif isinstance(item, dict) and item.get("exe"):
            out.append(WrapperOption(exe=str(item["exe"]), args=str(item.get("args") or "")))
    return out

def settings_from_dict(data: dict) -> ResolvedSettings:
    values = {k: v for k, v in data.items() if k in _SETTING_KEYS}
    values["wrapper_options"] = _wrapper_options(values.get("wrapper_options"))
    env = values.get("environment_options") or {}
    if isinstance(env, list):
        # [{"key": "A", "value": "1"}, ...]
        env = {str(e.get("key")): str(e.get("value", "")) for e in env if isinstance(e, dict) and e.get("key")}
    values["environment_options"] = dict(env) if isinstance(env, dict) else {}
    return ResolvedSettings(**values)

class SettingsStore:
    """
    Per-title settings: global defaults file overlaid with settings/<id>.json.
    Always read from disk so a launch sees edits made since the last one.
    """

    def __init__(self, settings_file: Path, settings_dir: Path, prefix_root: Optional[Path] = None,
                 defaults: Optional[dict] = None):
        self.settings_file = Path(settings_file)
        self.settings_dir = Path(settings_dir)
        self.prefix_root = Path(prefix_root) if prefix_root else None
        self.defaults = dict(defaults or {})

    def get_settings(self, title_id: str) -> ResolvedSettings:
        data = load_settings(self.settings_file, self.defaults)
        data.update(_read_json(self.settings_dir / f"{title_id}.json"))
        if not data.get("wine_prefix") and self.prefix_root is not None:
            data["wine_prefix"] = str(self.prefix_root / title_id)
        return settings_from_dict(data)

    def save_title_settings(self, title_id: str, overrides: dict) -> None:
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        path = self.settings_dir / f"{title_id}.json"
        path.write_text(json.dumps(overrides, indent=2), encoding="utf-8")

class TitleStore:
    """Installed titles from titles.json: {"<id>": {"title": ..., "executable": ...}}."""

    def __init__(self, titles_file: Path):
        self.titles_file = Path(titles_file)

    def _all(self) -> Dict[str, dict]:
        return _read_json(self.titles_file)

    def get_title(self, title_id: str) -> Optional[TitleInfo]:
        raw = self._all().get(title_id)
        if not isinstance(raw, dict):
            return None
        values = {k: v for k, v in raw.items() if k in _TITLE_KEYS}
        values["title_id"] = title_id
        values.setdefault("title", title_id)
        return TitleInfo(**values)

    def list_titles(self) -> List[TitleInfo]:
        out = []
        for tid in sorted(self._all(), key=str.lower):
            t = self.get_title(tid)
            if t is not None:
                out.append(t)
        return out
