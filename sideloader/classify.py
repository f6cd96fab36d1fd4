from __future__ import annotations

from typing import Dict, Optional

from .errors import LaunchError
from .utils import is_linux, is_mac, is_windows

WINDOWS_EXEC_EXT = (".exe", ".bat", ".cmd", ".com", ".msi")

class SideloadClassifier:
    """Decides whether a sideloaded title runs natively on this host."""

    def __init__(self, title_store):
        self.title_store = title_store

    def is_native(self, title_id: str) -> bool:
        if is_windows():
            return True
        title = self.title_store.get_title(title_id)
        if title is None:
            return False
        platform = (title.platform or "").lower()
        if platform:
            if platform == "browser":
                return True
            if is_linux() and platform == "linux":
                return True
            if is_mac() and platform in ("mac", "osx"):
                return True
            return False
        return not title.executable.lower().endswith(WINDOWS_EXEC_EXT)

class RunnerClassifiers:
    """runner name -> classifier; replaces any global runner lookup."""

    def __init__(self, classifiers: Optional[Dict[str, object]] = None):
        self._by_runner = dict(classifiers or {})

    def __contains__(self, runner: str) -> bool:
        return runner in self._by_runner

    def is_native(self, runner: str, title_id: str) -> bool:
        try:
            classifier = self._by_runner[runner]
        except KeyError:
            raise LaunchError(f"No classifier registered for runner {runner!r}") from None
        return bool(classifier.is_native(title_id))
