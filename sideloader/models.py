from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

@dataclass(frozen=True)
class TitleInfo:
    title_id: str
    title: str
    install_path: str = ""
    executable: str = ""
    browser_url: str = ""
    custom_user_agent: Optional[str] = None
    launch_fullscreen: bool = False
    platform: str = ""              # "windows" | "linux" | "mac" | "" (unknown)

@dataclass
class WrapperOption:
    exe: str
    args: str = ""

@dataclass
class ResolvedSettings:
    target_exe: str = ""
    launcher_args: str = ""
    wrapper_options: List[WrapperOption] = field(default_factory=list)
    show_mangohud: bool = False
    use_gamemode: bool = False
    use_gamescope: bool = False
    gamescope_args: str = ""
    use_steam_runtime: bool = False
    steam_runtime_path: str = ""
    sandboxed: bool = False         # Sandboxie wrap (Windows hosts only)
    sandbox_box: str = "DefaultBox"
    environment_options: Dict[str, str] = field(default_factory=dict)
    nvidia_prime: bool = False
    show_fps: bool = False
    enable_fsr: bool = False
    max_sharpness: int = 2
    wine_version: Dict[str, str] = field(default_factory=dict)   # {"bin", "type", "name"}
    wine_prefix: str = ""

@dataclass
class WrapperCommands:
    overlay: Optional[List[str]] = None
    mode_switch: Optional[List[str]] = None
    container: Optional[List[str]] = None
    runtime_prefix: Optional[List[str]] = None

@dataclass
class PreparationResult:
    success: bool
    failure_reason: Optional[str] = None
    session: Any = None             # compatibility session handle, exposes close()
    wrappers: WrapperCommands = field(default_factory=WrapperCommands)

@dataclass(frozen=True)
class LaunchRequest:
    title_id: str
    runner: str
    log_writer: Any
    args: Tuple[str, ...] = ()

@dataclass(frozen=True)
class StatusEvent:
    title_id: str
    runner: str
    status: str

@dataclass(frozen=True)
class ErrorNotice:
    title: str
    message: str
    severity: str = "ERROR"

@dataclass
class RunResult:
    argv: List[str]
    returncode: Optional[int]       # None when the process was not waited on
