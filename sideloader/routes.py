from __future__ import annotations

import logging
import threading
from collections import deque
from pathlib import Path
from typing import Dict, Optional

from flask import Blueprint, current_app, jsonify, request

from .logs import create_game_log_writer
from .models import ErrorNotice, LaunchRequest, StatusEvent
from .process import split_args

logger = logging.getLogger(__name__)

bp = Blueprint("sideloader", __name__)

class LaunchBoard:
    """What the UI polls: in-flight launches, who is playing, recent errors."""

    def __init__(self, max_notices: int = 20):
        self._lock = threading.Lock()
        self._threads: Dict[str, threading.Thread] = {}
        self._playing: Dict[str, str] = {}
        self._notices = deque(maxlen=max_notices)

    def record_status(self, event: StatusEvent) -> None:
        with self._lock:
            if event.status == "playing":
                self._playing[event.title_id] = event.runner

    def record_error(self, notice: ErrorNotice) -> None:
        with self._lock:
            self._notices.append({"title": notice.title, "message": notice.message, "severity": notice.severity})

    def is_running(self, title_id: str) -> bool:
        with self._lock:
            return title_id in self._threads

    def start(self, title_id: str, target) -> bool:
        """Run `target` on a daemon thread unless `title_id` is already in flight."""
        def _wait():
            try:
                target()
            finally:
                with self._lock:
                    self._threads.pop(title_id, None)
                    self._playing.pop(title_id, None)

        with self._lock:
            if title_id in self._threads:
                return False
            t = threading.Thread(target=_wait, name=f"launch-{title_id}", daemon=True)
            self._threads[title_id] = t
        t.start()
        return True

    def join(self, title_id: str, timeout: Optional[float] = None) -> None:
        with self._lock:
            t = self._threads.get(title_id)
        if t is not None:
            t.join(timeout)

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "launching": sorted(self._threads),
                "playing": dict(self._playing),
                "notices": list(self._notices),
            }

def _ext():
    ext = current_app.extensions["sideloader"]
    return ext["orchestrator"], ext["board"]

def _error(message: str, code: int):
    return jsonify({"ok": False, "error": message}), code

@bp.get("/titles")
def titles():
    orch, board = _ext()
    return jsonify([
        {
            "id": t.title_id,
            "title": t.title,
            "executable": t.executable,
            "browser_url": t.browser_url or None,
            "running": board.is_running(t.title_id),
        }
        for t in orch.titles.list_titles()
    ])

@bp.post("/launch/<title_id>")
def launch_title(title_id):
    orch, board = _ext()
    if orch.titles.get_title(title_id) is None:
        return _error("Unknown title.", 404)

    payload = request.get_json(silent=True) or {}
    raw_args = payload.get("args", request.form.get("args", ""))
    try:
        args = [str(a) for a in raw_args] if isinstance(raw_args, list) else split_args(str(raw_args))
    except ValueError as e:
        return _error(f"Invalid arguments: {e}", 400)
    runner = payload.get("runner") or request.form.get("runner") or current_app.config["DEFAULT_RUNNER"]
    if runner not in orch.classifiers:
        return _error(f"Unknown runner: {runner}", 400)

    log_writer = create_game_log_writer(Path(current_app.config["LOG_DIR"]), title_id, "launch")
    req = LaunchRequest(title_id=title_id, runner=runner, log_writer=log_writer, args=tuple(args))

    def _run():
        try:
            ok = orch.launch(req)
            logger.info("Launch of %s finished (launched=%s)", title_id, ok)
        except Exception:
            logger.exception("Launch of %s failed", title_id)
        finally:
            log_writer.close()

    if not board.start(title_id, _run):
        log_writer.close()
        return _error("Already running.", 409)
    return jsonify({"ok": True, "message": "Launch requested."}), 202

@bp.post("/stop/<title_id>")
def stop_title(title_id):
    orch, _ = _ext()
    return jsonify({"ok": True, "stopped": orch.stop(title_id)})

@bp.get("/status")
def status():
    _, board = _ext()
    return jsonify(board.snapshot())

@bp.get("/favicon.ico")
def favicon():
    return ("", 204)
