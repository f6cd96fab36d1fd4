from __future__ import annotations

import shlex
from typing import List, Optional, Sequence, Tuple

from .models import ResolvedSettings

def setup_wrappers(
    settings: ResolvedSettings,
    overlay: Optional[Sequence[str]] = None,
    mode_switch: Optional[Sequence[str]] = None,
    container: Optional[Sequence[str]] = None,
    runtime_prefix: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Flatten the command prefixes that wrap the game, outermost first:
    user wrappers, overlay, mode switch, container, runtime prefix.
    Missing tools are dropped; nothing is reordered.
    """
    wrappers: List[str] = []
    for opt in settings.wrapper_options or []:
        if opt.exe:
            wrappers.append(opt.exe)
            wrappers.extend(shlex.split(opt.args or ""))
    for part in (overlay, mode_switch, container, runtime_prefix):
        if part:
            wrappers.extend(t for t in part if t)
    return wrappers

def splice_wrappers(wrappers: Sequence[str], executable: str, args: Sequence[str]) -> Tuple[str, List[str]]:
    """Return (binary to exec, its argv tail).

    No wrappers: (executable, args). Otherwise the executable goes after the
    last wrapper and the first wrapper becomes the binary that is exec'd.
    """
    if not wrappers:
        return executable, list(args)
    chain = [*wrappers, executable]
    return chain[0], chain[1:] + list(args)
