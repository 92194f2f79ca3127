"""Centralized nfo logging configuration for redigir.

Shows which pipeline stage (cache, local rules, LLM, fallback) served each
request, with call durations for the LLM path.

Usage:
    from redigir.logging_setup import setup_logging, get_logger

    setup_logging("DEBUG")          # call once at startup
    logger = get_logger()
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from nfo.configure import configure
from nfo.decorators import set_default_logger
from nfo.logger import Logger
from nfo.sinks import MarkdownSink
from nfo.terminal import TerminalSink

_logger: Optional[Logger] = None
_bridge_handlers: list[logging.Handler] = []

_NOISY_LOGGERS = ("LiteLLM", "litellm", "httpx", "httpcore")


class _CurrentStderr:
    """File-like view of whatever ``sys.stderr`` is at write time.

    Callers that swap stderr (test runners, CLI harnesses) may close the
    stream they installed; log lines then go to the restored one.
    """

    def __getattr__(self, name):
        return getattr(sys.stderr, name)


def setup_logging(
    level: str = "INFO",
    markdown_file: str | None = None,
    terminal_format: str = "markdown",
) -> Logger:
    """Initialize nfo logging once for the whole package.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        markdown_file: Optional path of a markdown log file.
        terminal_format: Terminal sink format ("markdown", "color", "toon", "ascii").
    """
    global _logger

    if _logger is not None:
        return _logger

    sinks = [
        TerminalSink(
            format=terminal_format,
            stream=_CurrentStderr(),
            show_args=False,
            show_return=False,
            show_duration=True,
            show_traceback=True,
        ),
    ]

    if markdown_file:
        sinks.append(MarkdownSink(file_path=markdown_file))

    root = logging.getLogger()
    before = list(root.handlers)
    _logger = configure(
        name="redigir",
        level=level.upper(),
        sinks=sinks,
        bridge_stdlib=True,
        propagate_stdlib=False,
        env_prefix="REDIGIR_NFO_",
        version=_get_version(),
        force=True,
    )
    _bridge_handlers[:] = [h for h in root.handlers if h not in before]

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    import litellm
    litellm.suppress_debug_info = True

    return _logger


def get_logger() -> Logger:
    """Get the nfo logger, initialising it from REDIGIR_LOG_LEVEL if needed."""
    if _logger is None:
        setup_logging(
            level=os.getenv("REDIGIR_LOG_LEVEL", "INFO").upper(),
            markdown_file=os.getenv("REDIGIR_NFO_LOG_FILE", None),
            terminal_format=os.getenv("REDIGIR_NFO_FORMAT", "markdown"),
        )
    return _logger  # type: ignore[return-value]


def reset_logging() -> None:
    """Undo ``setup_logging``: detach the stdlib bridge and drop the nfo default logger."""
    global _logger

    root = logging.getLogger()
    for handler in _bridge_handlers:
        root.removeHandler(handler)
    _bridge_handlers.clear()
    set_default_logger(None)
    _logger = None


def _get_version() -> str:
    from redigir import __version__
    return __version__
