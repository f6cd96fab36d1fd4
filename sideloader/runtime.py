from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .environment import merge_env_layers, setup_env_vars
from .errors import ExecutionFailure
from .models import PreparationResult, ResolvedSettings, TitleInfo, WrapperCommands
from .process import call_runner, spawn_env
from .utils import find_on_path, find_sandboxie_start, find_wine, is_windows

logger = logging.getLogger(__name__)

WAIT_FOR_EXIT_AND_RUN = "waitforexitandrun"

class CompatSession:
    """Resolved compatibility runtime for one launch. Released by launch cleanup."""

    def __init__(self, runtime_bin: str, kind: str, prefix: str):
        self.runtime_bin = runtime_bin
        self.kind = kind
        self.prefix = prefix
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        logger.debug("Released %s session for prefix %s", self.kind, self.prefix)

def runtime_kind(settings: ResolvedSettings, runtime_bin: str) -> str:
    kind = (settings.wine_version or {}).get("type", "")
    if kind in ("wine", "proton"):
        return kind
    return "proton" if Path(runtime_bin).name.lower() == "proton" else "wine"

def prefix_for(settings: ResolvedSettings) -> str:
    return settings.wine_prefix or str(Path.home() / ".wine")

def runtime_env(kind: str, prefix: str) -> Dict[str, str]:
    if kind == "proton":
        return {
            "STEAM_COMPAT_DATA_PATH": prefix,
            "STEAM_COMPAT_CLIENT_INSTALL_PATH": os.environ.get(
                "STEAM_COMPAT_CLIENT_INSTALL_PATH", str(Path.home() / ".steam" / "steam")
            ),
        }
    return {"WINEPREFIX": prefix}

class CompatRuntime:
    """
    Launch preparation plus the Wine/Proton invocation primitives.

    `settings_store` is only consulted by prime_session, which (like the real
    launch) needs a current view of the title's settings.
    """

    def __init__(self, settings_store=None, run: Callable = call_runner):
        self.settings_store = settings_store
        self.run = run

    # ──────────────────────────────────────────────────────────────────────────
    # Preparation
    # ──────────────────────────────────────────────────────────────────────────

    def _steam_runtime(self, settings: ResolvedSettings) -> Optional[List[str]]:
        path = settings.steam_runtime_path or os.environ.get("STEAM_RUNTIME_PATH", "")
        entry = find_on_path(path) if path else None
        if not entry:
            return None
        return [entry, f"--verb={WAIT_FOR_EXIT_AND_RUN}", "--"]

    def prepare(self, settings: ResolvedSettings, log_writer, title: TitleInfo, is_native: bool) -> PreparationResult:
        wrappers = WrapperCommands()

        if settings.show_mangohud:
            mangohud = find_on_path("mangohud")
            if not mangohud:
                return PreparationResult(False, "Mangohud was enabled, but `mangohud` was not found on $PATH")
            wrappers.overlay = [mangohud, "--dlsym"]

        if settings.use_gamemode:
            gamemode = find_on_path("gamemoderun")
            if gamemode:
                wrappers.mode_switch = [gamemode]
            else:
                log_writer.log_warning("GameMode was enabled, but `gamemoderun` was not found on $PATH; continuing without it")

        if settings.use_gamescope:
            gamescope = find_on_path("gamescope")
            if not gamescope:
                return PreparationResult(False, "Gamescope was enabled, but `gamescope` was not found on $PATH")
            wrappers.container = [gamescope, *shlex.split(settings.gamescope_args or ""), "--"]

        prefix: List[str] = []
        if settings.use_steam_runtime:
            rt = self._steam_runtime(settings)
            if rt:
                prefix.extend(rt)
            else:
                log_writer.log_warning("Steam Runtime was enabled, but no runtime entry point was found; continuing without it")
        if settings.sandboxed and is_windows():
            sbie = find_sandboxie_start()
            if sbie:
                # Start.exe [/box:Name] [/wait] [/silent] program [args...]
                prefix.extend([str(sbie), f"/box:{settings.sandbox_box}", "/wait", "/silent"])
            else:
                log_writer.log_warning("Sandboxing requested, but Sandboxie Start.exe was not found")
        wrappers.runtime_prefix = prefix or None

        session = None
        if not is_native:
            runtime_bin = find_wine((settings.wine_version or {}).get("bin", ""))
            if not runtime_bin:
                return PreparationResult(
                    False,
                    f"No Wine or Proton found to run {title.title or title.title_id}. "
                    "Set a compatibility runtime for this title.",
                )
            session = CompatSession(runtime_bin, runtime_kind(settings, runtime_bin), prefix_for(settings))
            log_writer.log_info(["Using", session.kind, runtime_bin, "with prefix", session.prefix])

        return PreparationResult(True, session=session, wrappers=wrappers)

    # ──────────────────────────────────────────────────────────────────────────
    # Invocation
    # ──────────────────────────────────────────────────────────────────────────

    def _base_command(self, settings: ResolvedSettings, verb: str = "") -> List[str]:
        runtime_bin = find_wine((settings.wine_version or {}).get("bin", ""))
        if not runtime_bin:
            raise ExecutionFailure(["wine"], FileNotFoundError("no Wine or Proton binary available"))
        if runtime_kind(settings, runtime_bin) == "proton":
            return [runtime_bin, verb or "run"]
        return [runtime_bin]

    def prime_session(self, runner: str, title_id: str, log_writer) -> None:
        """Create the prefix on first use. Anything that fails here surfaces at spawn time."""
        if self.settings_store is None:
            return
        settings = self.settings_store.get_settings(title_id)
        prefix = Path(prefix_for(settings))
        if (prefix / "system.reg").exists() or (prefix / "pfx").exists():
            return
        prefix.mkdir(parents=True, exist_ok=True)
        kind = runtime_kind(settings, find_wine((settings.wine_version or {}).get("bin", "")) or "wine")
        log_writer.log_info(["Initializing", kind, "prefix", str(prefix)])
        argv = self._base_command(settings) + ["wineboot", "--init"]
        self.run(
            argv,
            cwd=str(prefix),
            env=spawn_env(runtime_env(kind, str(prefix))),
            log_writers=[log_writer],
        )

    def invoke(
        self,
        command_parts: Sequence[str],
        settings: ResolvedSettings,
        wait: bool,
        verb: str,
        start_dir: str,
        wrappers: Sequence[str] = (),
        log_writers: Sequence = (),
        abort=None,
    ):
        base = self._base_command(settings, verb)
        kind = runtime_kind(settings, base[0])
        argv = [*wrappers, *base, *command_parts]
        env = spawn_env(merge_env_layers(setup_env_vars(settings), runtime_env(kind, prefix_for(settings))))
        return self.run(argv, cwd=start_dir, env=env, log_writers=log_writers, abort=abort, wait=wait)
