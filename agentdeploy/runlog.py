"""
Per-run log file with optional console echo.

All modules log through ``logging.getLogger("agentdeploy")``.  While a
:class:`RunLog` is open it owns that logger's handlers:

- a file handler writing ``[YYYY-MM-DD HH:MM:SS] message`` lines, which
  truncates the file on the first open of the run and appends afterwards.
  A failed write raises from the logging call.
- a stdout handler and a stderr handler that only see records logged with
  ``extra=CONSOLE``.  Errors go to stderr, everything else to stdout.

Usage::

    with RunLog("/tmp/agentdeploy.log") as run_log:
        run_log.log("Checking agent service", console=True)
        logger.error("Download failed", extra=CONSOLE)
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "agentdeploy"
LINE_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Pass as ``extra=`` to echo a record to the console as well as the file.
CONSOLE = {"console": True}

logger = logging.getLogger(LOGGER_NAME)


class _ConsoleFilter(logging.Filter):
    """Pass console-flagged records on one side of the ERROR threshold."""

    def __init__(self, errors: bool) -> None:
        super().__init__()
        self._errors = errors

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "console", False):
            return False
        return (record.levelno >= logging.ERROR) == self._errors


class _FileHandler(logging.FileHandler):
    """File handler whose write failures propagate to the logging call."""

    def handleError(self, record: logging.LogRecord) -> None:
        raise


class RunLog:
    """Owns the ``agentdeploy`` logger's handlers for the duration of a run."""

    def __init__(
        self,
        path:    str,
        *,
        level:   int           = logging.INFO,
        echo:    bool          = True,
        stdout:  TextIO | None = None,
        stderr:  TextIO | None = None,
    ) -> None:
        self.path      = path
        self._level    = level
        self._echo     = echo
        self._stdout   = stdout
        self._stderr   = stderr
        self._handlers: list[logging.Handler] = []
        self._opened   = False
        self._saved_propagate = logger.propagate
        self._saved_level     = logger.level

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def open(self, overwrite: bool | None = None) -> "RunLog":
        """
        Attach the handlers.

        :param overwrite: Truncate the file instead of appending.  Defaults
                          to ``True`` on the first open of this instance and
                          ``False`` on any reopen.
        :raises OSError:  If the log file cannot be opened.
        """
        if self._handlers:
            return self
        if overwrite is None:
            overwrite = not self._opened

        formatter = logging.Formatter(LINE_FORMAT, datefmt=DATE_FORMAT)

        file_handler = _FileHandler(self.path, mode="w" if overwrite else "a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(self._level)
        self._handlers.append(file_handler)

        if self._echo:
            for stream, errors in (
                (self._stdout or sys.stdout, False),
                (self._stderr or sys.stderr, True),
            ):
                handler = logging.StreamHandler(stream)
                handler.setFormatter(formatter)
                handler.setLevel(logging.INFO)
                handler.addFilter(_ConsoleFilter(errors))
                self._handlers.append(handler)

        self._saved_propagate = logger.propagate
        self._saved_level     = logger.level
        for handler in self._handlers:
            logger.addHandler(handler)
        logger.setLevel(min(self._level, logging.INFO))
        logger.propagate = False
        self._opened = True
        return self

    def close(self) -> None:
        """Detach and close the handlers, restoring the logger's previous setup."""
        for handler in self._handlers:
            logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        logger.propagate = self._saved_propagate
        logger.setLevel(self._saved_level)

    def __enter__(self) -> "RunLog":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    # ── Writing ───────────────────────────────────────────────────────────────

    def log(self, message: str, *, error: bool = False, console: bool = False) -> None:
        """Write *message* to the file and, if *console*, to stdout or stderr."""
        level = logging.ERROR if error else logging.INFO
        logger.log(level, message, extra=CONSOLE if console else None)
