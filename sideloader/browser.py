"""Embedded browser sessions for URL-based titles.

The launcher only talks to an `EmbeddedSessionHost`; whatever toolkit draws
the window lives behind it.
"""
from __future__ import annotations

import logging
import threading
import webbrowser
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import urlparse

from .aborthandler import CancellationRegistry

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
)
CONFIRM_EXIT_TITLE = "Are you sure you want to quit?"
CONFIRM_EXIT_MESSAGE = "Any unsaved progress might be lost"

@dataclass(frozen=True)
class SessionConfig:
    url: str
    partition: str
    user_agent: str
    fullscreen: bool = False

class SessionHandle:
    """What a host hands back from open(). Hosts subclass and call the _fire_* hooks."""

    def __init__(self):
        self._close_attempt: Optional[Callable[[], bool]] = None
        self._closed_callbacks: List[Callable[[], None]] = []
        self._closed = False
        self._lock = threading.Lock()

    def on_close_attempt(self, handler: Callable[[], bool]) -> None:
        """`handler` returns True to let an in-page unload close the session."""
        self._close_attempt = handler

    def on_closed(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._closed:
                self._closed_callbacks.append(callback)
                return
        callback()

    def confirm(self, title: str, message: str) -> bool:
        """Yes/No question shown over the session. Hosts without UI accept."""
        return True

    def close(self) -> None:
        self._fire_closed()

    def _fire_close_attempt(self) -> bool:
        allowed = self._close_attempt() if self._close_attempt else True
        if allowed:
            self.close()
        return allowed

    def _fire_closed(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            callbacks, self._closed_callbacks = self._closed_callbacks, []
        for cb in callbacks:
            cb()

class EmbeddedSessionHost:
    def open(self, config: SessionConfig) -> SessionHandle:
        raise NotImplementedError

class SystemBrowserHost(EmbeddedSessionHost):
    """Hands the URL to the desktop browser. There is no window to watch, so the session ends at once."""

    def open(self, config: SessionConfig) -> SessionHandle:
        logger.info("Opening %s in the system browser (partition/user agent not applied)", config.url)
        webbrowser.open_new(config.url)
        handle = SessionHandle()
        handle.close()
        return handle

def session_config(url: str, user_agent: Optional[str] = None, fullscreen: Optional[bool] = None) -> SessionConfig:
    hostname = urlparse(url).hostname or ""
    return SessionConfig(
        url=url,
        partition=f"persist:{hostname}",
        user_agent=user_agent or DEFAULT_USER_AGENT,
        fullscreen=bool(fullscreen),
    )

def open_browser_session(
    host: EmbeddedSessionHost,
    registry: CancellationRegistry,
    *,
    url: str,
    abort_id: str,
    user_agent: Optional[str] = None,
    fullscreen: Optional[bool] = None,
) -> bool:
    """Open `url` in its own session and block until the session closes."""
    closed = threading.Event()
    token = registry.create(abort_id)

    try:
        handle = host.open(session_config(url, user_agent, fullscreen))

        def _confirm_unload() -> bool:
            return bool(handle.confirm(CONFIRM_EXIT_TITLE, CONFIRM_EXIT_MESSAGE))

        handle.on_close_attempt(_confirm_unload)
        handle.on_closed(closed.set)
        token.add_listener(handle.close)

        closed.wait()
    finally:
        registry.delete(abort_id, token)
    logger.info("Browser session for %s closed", abort_id)
    return True
