"""
=============================================================================
LOGGING
=============================================================================

Process-wide output for the server, built on the standard logging module.

=============================================================================
LOGGERS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ blankserver           diagnostics                                   │
    │   DEBUG/INFO   → stdout  "[info] Connected, handling requests."    │
    │   WARNING      → stderr  "[warning] Error sending data to client." │
    │   CRITICAL     → stderr  "[panic] Couldn't bind to specified port."│
    ├─────────────────────────────────────────────────────────────────────┤
    │ blankserver.access    one line per answered request → stdout        │
    │ blankserver.headers   echoed request headers        → stdout        │
    └─────────────────────────────────────────────────────────────────────┘

Verbosity decides whether INFO/DEBUG are shown. Quiet mode hides warnings
and panics only; it never changes exit codes. The access log and header echo have their own
switches in ServerConfig and are not affected by either.

A panic is a CRITICAL record followed by sys.exit(1). It is used for
conditions that make serving impossible (bind failures, fork failures).

Until configure_logging() runs, nothing is attached and every record
propagates to the root logger. That keeps the module usable when the
server is embedded or under test.

=============================================================================
"""

import sys
import logging
from typing import Optional, TextIO

from .config import ServerConfig


logger = logging.getLogger("blankserver")
access_logger = logging.getLogger("blankserver.access")
headers_logger = logging.getLogger("blankserver.headers")

# Above CRITICAL, so nothing gets through
_SILENT = logging.CRITICAL + 10


class LevelFormatter(logging.Formatter):
    """Formats diagnostics as "[level] message"."""

    LABELS = {
        logging.DEBUG: "debug",
        logging.INFO: "info",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "panic",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname.lower())
        message = f"[{label}] {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def _diagnostic_level(config: ServerConfig) -> int:
    if config.debug:
        return logging.DEBUG
    if config.verbose:
        return logging.INFO
    return logging.WARNING


def _reset(target: logging.Logger) -> None:
    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()


def configure_logging(
    config: ServerConfig,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> None:
    """
    Attach handlers for the diagnostic, access and header loggers.

    Safe to call more than once; previous handlers are replaced.

    Args:
        config: Decides verbosity, quiet mode and the two request outputs.
        stdout: Stream for info/debug, access log and header echo.
                Defaults to sys.stdout.
        stderr: Stream for warnings and panics. Defaults to sys.stderr.
    """
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr

    # ─────────────────────────────────────────────────────────────────
    # DIAGNOSTICS
    # ─────────────────────────────────────────────────────────────────
    _reset(logger)
    logger.setLevel(_diagnostic_level(config))
    logger.propagate = False

    out_handler = logging.StreamHandler(stdout)
    out_handler.addFilter(_BelowWarning())
    out_handler.setFormatter(LevelFormatter())
    logger.addHandler(out_handler)

    err_handler = logging.StreamHandler(stderr)
    err_handler.setLevel(_SILENT if config.quiet else logging.WARNING)
    err_handler.setFormatter(LevelFormatter())
    logger.addHandler(err_handler)

    # ─────────────────────────────────────────────────────────────────
    # REQUEST OUTPUT
    # ─────────────────────────────────────────────────────────────────
    # StreamHandler flushes after every record, so each access line is
    # on the stream as soon as it is written.
    for target, enabled in (
        (access_logger, config.access_log),
        (headers_logger, config.print_headers),
    ):
        _reset(target)
        target.propagate = False
        target.setLevel(logging.INFO if enabled else _SILENT)
        handler = logging.StreamHandler(stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        target.addHandler(handler)


def panic(message: str) -> None:
    """Report an unrecoverable error and terminate with status 1."""
    logger.critical(message)
    sys.exit(1)
