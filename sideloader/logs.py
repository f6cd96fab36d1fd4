from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

class LogWriter:
    """Per-launch log sink.

    Backed by a standalone logger that is never registered with the logging
    manager, so game output stays out of the application log and nothing is
    left behind per launch. Pass any `logging.Handler`; `for_file` is the usual one.
    """

    def __init__(self, name: str, handler: logging.Handler):
        self.name = name
        self._handler = handler
        self._logger = logging.Logger(f"sideloader.game.{name}", logging.DEBUG)
        self._logger.propagate = False
        handler.setFormatter(logging.Formatter("(%(asctime)s) %(levelname)s: %(message)s", "%H:%M:%S"))
        self._logger.addHandler(handler)

    @classmethod
    def for_file(cls, name: str, path: Path) -> "LogWriter":
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(name, logging.FileHandler(path, encoding="utf-8"))

    @staticmethod
    def _join(parts) -> str:
        if isinstance(parts, str):
            return parts
        return " ".join(str(p) for p in parts)

    def log_info(self, parts) -> None:
        self._logger.info(self._join(parts))

    def log_warning(self, parts) -> None:
        self._logger.warning(self._join(parts))

    def log_error(self, parts) -> None:
        self._logger.error(self._join(parts))

    def write(self, text: str) -> None:
        """Raw process output, one line at a time."""
        line = text.rstrip("\r\n")
        if line:
            self._logger.info(line)

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()

def create_game_log_writer(log_dir: Optional[Path], title_id: str, kind: str) -> LogWriter:
    """Dedicated log for one launch: <log_dir>/<title_id>-<kind>.log."""
    if log_dir is None:
        return LogWriter(f"{title_id}-{kind}", logging.NullHandler())
    return LogWriter.for_file(f"{title_id}-{kind}", Path(log_dir) / f"{title_id}-{kind}.log")
