# sideloader/launch.py
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Callable, List, Optional

from .aborthandler import CancellationRegistry, CancellationToken
from .browser import EmbeddedSessionHost, SystemBrowserHost, open_browser_session
from .environment import KnownFixTable, compose_environment
from .errors import PermissionRepairFailure
from .logs import create_game_log_writer
from .models import ErrorNotice, LaunchRequest, ResolvedSettings, StatusEvent, TitleInfo
from .process import call_runner, spawn_env, split_args
from .runtime import WAIT_FOR_EXIT_AND_RUN
from .utils import can_fix_permissions
from .wrappers import setup_wrappers, splice_wrappers

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Small helpers
# ──────────────────────────────────────────────────────────────────────────────

def launch_cleanup(session=None) -> None:
    """Release whatever the preparation step handed out."""
    if session is not None:
        session.close()
    logger.debug("Launch cleanup done")

def _resolve_executable(title: TitleInfo, executable: str) -> str:
    """Relative executables are looked up under the install path."""
    if executable and not os.path.isabs(executable) and title.install_path:
        full = os.path.join(title.install_path, executable)
        if os.path.exists(full):
            return full
    return executable

def _chmod(path: str, mode: int) -> None:
    try:
        os.chmod(path, mode)
    except OSError as e:
        raise PermissionRepairFailure(f"chmod {oct(mode)} {path}: {e}") from e

def ensure_executable(executable: str) -> Optional[int]:
    """
    Make `executable` runnable if it is not. Returns the mode to put back
    afterwards, or None when nothing was changed.
    """
    if os.access(executable, os.X_OK):
        return None
    logger.warning("File not executable, changing permissions temporarily: %s", executable)
    if not can_fix_permissions(executable):
        return None
    try:
        original = stat.S_IMODE(os.stat(executable).st_mode)
        _chmod(executable, 0o775)
    except (OSError, PermissionRepairFailure) as e:
        logger.warning("Could not fix permissions: %s", e)
        return None
    return original

def restore_permissions(executable: str, original: Optional[int]) -> None:
    if original is None:
        return
    try:
        _chmod(executable, original)
    except PermissionRepairFailure as e:
        logger.warning("Could not restore permissions: %s", e)

# ──────────────────────────────────────────────────────────────────────────────
# Orchestrator
# ──────────────────────────────────────────────────────────────────────────────

class Orchestrator:
    """
    Decides how a title runs (browser session, native process or Wine/Proton)
    and drives that launch to completion.

    Every collaborator is injected: stores, per-runner classifiers, the
    compatibility runtime, the abort registry and the status/error callbacks.
    """

    def __init__(
        self,
        *,
        titles,
        settings,
        classifiers,
        runtime,
        registry: Optional[CancellationRegistry] = None,
        known_fixes: Optional[KnownFixTable] = None,
        browser_host: Optional[EmbeddedSessionHost] = None,
        log_dir: Optional[Path] = None,
        on_status: Optional[Callable[[StatusEvent], None]] = None,
        on_error: Optional[Callable[[ErrorNotice], None]] = None,
        run: Callable = call_runner,
        cleanup: Callable = launch_cleanup,
    ):
        self.titles = titles
        self.settings = settings
        self.classifiers = classifiers
        self.runtime = runtime
        self.registry = registry or CancellationRegistry()
        self.known_fixes = known_fixes
        self.browser_host = browser_host or SystemBrowserHost()
        self.log_dir = log_dir
        self.on_status = on_status
        self.on_error = on_error
        self.run = run
        self.cleanup = cleanup

    def _emit(self, callback, event) -> None:
        if callback is None:
            return
        try:
            callback(event)
        except Exception:
            logger.exception("Observer failed for %r", event)

    def stop(self, title_id: str) -> bool:
        return self.registry.abort(title_id)

    def launch(self, request: LaunchRequest) -> bool:
        """Run one launch to the end. Returns False when nothing was started."""
        title_id, runner, log_writer = request.title_id, request.runner, request.log_writer

        title = self.titles.get_title(title_id)
        if title is None:
            return False

        settings: ResolvedSettings = self.settings.get_settings(title_id)
        executable = settings.target_exe or title.executable

        if title.browser_url:
            return open_browser_session(
                self.browser_host,
                self.registry,
                url=title.browser_url,
                abort_id=title_id,
                user_agent=title.custom_user_agent,
                fullscreen=title.launch_fullscreen,
            )

        extra_args = split_args(settings.launcher_args) + list(request.args)
        if not executable:
            logger.info("No executable configured for %s, nothing to launch", title_id)
            return False
        executable = _resolve_executable(title, executable)

        is_native = self.classifiers.is_native(runner, title_id)
        prep = self.runtime.prepare(settings, log_writer, title, is_native)
        if not prep.success:
            log_writer.log_error(["Launch aborted:", prep.failure_reason])
            self.cleanup()
            self._emit(self.on_error, ErrorNotice(title="Launch aborted", message=prep.failure_reason or ""))
            return False

        token = self.registry.create(title_id)
        try:
            if not is_native:
                self.runtime.prime_session(runner, title_id, log_writer)

            w = prep.wrappers
            wrappers = setup_wrappers(settings, w.overlay, w.mode_switch, w.container, w.runtime_prefix)

            self._emit(self.on_status, StatusEvent(title_id=title_id, runner=runner, status="playing"))

            if is_native:
                self._launch_native(request, title, settings, executable, extra_args, wrappers, token)
            else:
                self._launch_compat(request, settings, executable, extra_args, wrappers, token)
        finally:
            self.cleanup(prep.session)
            self.registry.delete(title_id, token)
        return True

    def _launch_native(
        self,
        request: LaunchRequest,
        title: TitleInfo,
        settings: ResolvedSettings,
        executable: str,
        extra_args: List[str],
        wrappers: List[str],
        token: CancellationToken,
    ) -> None:
        msg = f"launching native sideloaded game: {executable} {' '.join(extra_args)}".rstrip()
        logger.info(msg)
        request.log_writer.log_info(msg)

        original_mode = ensure_executable(executable)
        game_log = None
        try:
            env = compose_environment(settings, title.install_path, request.runner, request.title_id, self.known_fixes)
            binary, tail = splice_wrappers(wrappers, executable, extra_args)
            game_log = create_game_log_writer(self.log_dir, request.title_id, "sideload")
            self.run(
                [binary, *tail],
                cwd=str(Path(executable).parent),
                env=spawn_env(env),
                log_writers=[game_log],
                abort=token,
            )
        finally:
            if game_log is not None:
                game_log.close()
            restore_permissions(executable, original_mode)

    def _launch_compat(
        self,
        request: LaunchRequest,
        settings: ResolvedSettings,
        executable: str,
        extra_args: List[str],
        wrappers: List[str],
        token: CancellationToken,
    ) -> None:
        msg = f"launching non-native sideloaded: {executable} {' '.join(extra_args)}".rstrip()
        logger.info(msg)
        request.log_writer.log_info(msg)

        self.runtime.invoke(
            [executable, *extra_args],
            settings,
            wait=True,
            verb=WAIT_FOR_EXIT_AND_RUN,
            start_dir=str(Path(executable).parent),
            wrappers=wrappers,
            log_writers=[request.log_writer],
            abort=token,
        )
