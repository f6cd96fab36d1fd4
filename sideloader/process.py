from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import threading
from typing import Dict, List, Optional, Sequence

from .aborthandler import CancellationToken
from .errors import ExecutionFailure
from .models import RunResult
from .utils import is_windows

logger = logging.getLogger(__name__)

def _terminate(p) -> None:
    """Stop the process group we started (wrappers fork the real game)."""
    if p.poll() is not None:
        return
    try:
        if is_windows():
            p.terminate()
        else:
            os.killpg(p.pid, signal.SIGTERM)
    except ProcessLookupError:
        pass
    except OSError as e:
        logger.warning("Could not terminate pid %s: %s", p.pid, e)

def _pump_and_wait(p, argv: Sequence[str], log_writers: Sequence) -> int:
    if p.stdout is not None:
        for line in p.stdout:
            for w in log_writers:
                w.write(line)
    code = p.wait()
    if code:
        logger.warning("%s exited with code %s", argv[0], code)
    else:
        logger.info("%s exited cleanly", argv[0])
    return code

def call_runner(
    argv: Sequence[str],
    *,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    log_writers: Sequence = (),
    abort: Optional[CancellationToken] = None,
    wait: bool = True,
) -> RunResult:
    """
    Spawn `argv`, stream its combined stdout/stderr into `log_writers`.
    With wait=False the output is pumped on a daemon thread and we return at once.
    An abort on `abort` terminates the process group.
    """
    argv = list(argv)
    logger.info("Running: %s (cwd=%s)", shlex.join(argv), cwd)
    extra = {} if is_windows() else {"start_new_session": True}
    try:
        p = subprocess.Popen(
            argv,
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            **extra,
        )
    except OSError as e:
        raise ExecutionFailure(argv, e) from e

    if abort is not None:
        abort.add_listener(lambda: _terminate(p))

    if not wait:
        threading.Thread(target=_pump_and_wait, args=(p, argv, list(log_writers)), daemon=True).start()
        return RunResult(argv, None)

    return RunResult(argv, _pump_and_wait(p, argv, log_writers))

def spawn_env(overlay: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    env: Dict[str, str] = os.environ.copy()
    if overlay:
        env.update(overlay)
    return env

def split_args(*chunks: str) -> List[str]:
    tokens: List[str] = []
    for chunk in chunks:
        tokens.extend(shlex.split(chunk or "", posix=True))
    return tokens
