import os
import shutil
import sys
from pathlib import Path
from typing import Optional

def is_windows() -> bool:
    return os.name == "nt"

def is_linux() -> bool:
    return sys.platform.startswith("linux")

def is_mac() -> bool:
    return sys.platform == "darwin"

def find_on_path(name: str) -> Optional[str]:
    """Absolute path of `name` on $PATH, or an existing absolute path as given."""
    if not name:
        return None
    if os.path.isabs(name):
        return name if os.path.exists(name) else None
    return shutil.which(name)

def find_sandboxie_start() -> Optional[Path]:
    env = os.environ.get("SANDBOXIE_START")
    if env and Path(env).exists():
        return Path(env)
    p = Path(r"C:\Program Files\Sandboxie-Plus\Start.exe")
    return p if p.exists() else None

def find_wine(preferred: str = "") -> Optional[str]:
    """Resolve the wine/proton binary: explicit setting, then $SIDELOADER_WINE, then PATH."""
    for candidate in (preferred, os.environ.get("SIDELOADER_WINE", ""), "wine"):
        found = find_on_path(candidate)
        if found:
            return found
    return None

def can_fix_permissions(executable: str) -> bool:
    # macOS refuses chmod inside .app bundles; scripts and plain binaries are fine
    return is_linux() or (is_mac() and not executable.endswith(".app"))
