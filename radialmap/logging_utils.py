"""Logging setup shared by the CLI and embedding applications."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional, TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class DailyLogFileHandler(logging.Handler):
    """Append records to ``<log_dir>/<YYYY-MM-DD>.log``, keeping ``keep_days`` files."""

    terminator = "\n"

    def __init__(self, log_dir: Path, *, keep_days: int = 7) -> None:
        super().__init__()
        self.log_dir = Path(log_dir)
        self.keep_days = max(keep_days, 1)
        self._current_day: Optional[date] = None
        self._stream: Optional[TextIO] = None

    def emit(self, record: logging.LogRecord) -> None:
        try:
            today = datetime.now().date()
            if self._stream is None or self._current_day != today:
                self._rotate(today)
            stream = self._stream
            if stream is None:
                return
            stream.write(self.format(record) + self.terminator)
            stream.flush()
        except Exception:  # noqa: PIE786 - standard logging pattern
            self.handleError(record)

    def close(self) -> None:  # pragma: no cover - trivial
        try:
            if self._stream:
                self._stream.close()
        finally:
            self._stream = None
            super().close()

    def _rotate(self, today: date) -> None:
        if self._stream is not None:
            self._stream.close()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._prune(today)
        path = self.log_dir / f"{today.isoformat()}.log"
        self._stream = path.open("a", encoding="utf-8")
        self._current_day = today

    def _prune(self, today: date) -> None:
        cutoff = today - timedelta(days=self.keep_days - 1)
        for path in sorted(self.log_dir.glob("*.log")):
            try:
                file_day = date.fromisoformat(path.stem)
            except ValueError:
                continue
            if file_day < cutoff:
                try:
                    path.unlink()
                except OSError:
                    continue


def configure_logging(
    verbose: bool, log_dir: Optional[Path] = None, *, keep_days: int = 7
) -> None:
    """Reset root logging to a console handler plus, optionally, daily log files."""

    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        handlers.append(DailyLogFileHandler(log_dir, keep_days=keep_days))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        root.addHandler(handler)

    logging.captureWarnings(True)


__all__ = ["DailyLogFileHandler", "configure_logging"]
