from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

class CancellationToken:
    """Single-fire abort signal for one launch."""

    def __init__(self, launch_id: str):
        self.launch_id = launch_id
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._listeners: List[Callable[[], None]] = []

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def add_listener(self, fn: Callable[[], None]) -> None:
        """Run `fn` on abort. Runs right away if the token already fired."""
        with self._lock:
            if not self._event.is_set():
                self._listeners.append(fn)
                return
        fn()

    def abort(self) -> bool:
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            listeners, self._listeners = self._listeners, []
        for fn in listeners:
            try:
                fn()
            except Exception:
                logger.exception("abort listener failed for %s", self.launch_id)
        return True

class CancellationRegistry:
    """At most one live token per launch id; creating again replaces the old one."""

    def __init__(self):
        self._tokens: Dict[str, CancellationToken] = {}
        self._lock = threading.Lock()

    def create(self, launch_id: str) -> CancellationToken:
        token = CancellationToken(launch_id)
        with self._lock:
            if launch_id in self._tokens:
                logger.debug("Replacing abort token for %s", launch_id)
            self._tokens[launch_id] = token
        return token

    def get(self, launch_id: str) -> Optional[CancellationToken]:
        with self._lock:
            return self._tokens.get(launch_id)

    def delete(self, launch_id: str, token: Optional[CancellationToken] = None) -> None:
        """Forget `launch_id`. With `token`, only if that token is still the live one."""
        with self._lock:
            current = self._tokens.get(launch_id)
            if current is None:
                return
            if token is not None and current is not token:
                return
            del self._tokens[launch_id]

    def abort(self, launch_id: str) -> bool:
        """Fire the live token for `launch_id`. Unknown or spent ids are a no-op."""
        token = self.get(launch_id)
        if token is None:
            return False
        return token.abort()

    def active(self) -> List[str]:
        with self._lock:
            return sorted(self._tokens)
