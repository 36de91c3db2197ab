# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging interface for ManUp.

This module provides a configurable logging interface that library modules
can use for output without depending on the CLI. The logger can be configured
globally or passed as a parameter for better isolation.

The logger supports four output levels:
- Step: Always printed (for progress indicators)
- Warning: Always printed (fail-open decisions an operator must notice)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

A FileLogger can wrap any logger to also persist a human-readable log file,
one timestamped line per message.

Example:
    Configure global logger:
        ```python
        from manup.logging import get_logger, set_global_logger

        logger = get_logger(verbose=True, log_file=Path("state/manup.log"))
        set_global_logger(logger)
        ```

    Use in library code:
        ```python
        from manup.logging import get_global_logger

        logger = get_global_logger()
        logger.verbose("CACHE", "Cached policy is fresh")
        logger.warning("POLICY", "Malformed version '1.x', using 0")
        ```

Note:
    The default logger is silent, so library functions won't print anything
    unless explicitly configured. The CLI configures the global logger when
    commands are executed.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import threading
from typing import Protocol

# Day-first timestamp, e.g. [18-10-26 09:15:02]
LOG_TIMESTAMP_FORMAT = "[%d-%m-%y %H:%M:%S]"


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning that is shown regardless of verbosity.

        Args:
            prefix: Message prefix (e.g., "POLICY", "FETCH").
            message: Log message.
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "CACHE", "ENGINE").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "HTTP", "POLICY").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Default logger implementation that prints to stdout.

    This logger respects verbose and debug flags and formats output
    consistently with the CLI output format.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
        """
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator."""
        print(f"[{step}/{total}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning (always)."""
        print(f"[{prefix}] WARNING: {message}")

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message (only when verbose mode is active)."""
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message (only when debug mode is active)."""
        if self._debug:
            print(f"[{prefix}] {message}")


class SilentLogger:
    """Logger that suppresses all output.

    Useful for programmatic usage when output is not desired.
    """

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


class FileLogger:
    """Logger that appends every message to a file and forwards it.

    Every call is written to the log file regardless of the inner logger's
    verbosity, so the file is a complete trace of gate activity. Output
    to the console is left to the wrapped logger.

    Attributes:
        log_file: Path of the appended log file.
        enabled: False once a write has failed; later messages skip the file.
    """

    def __init__(self, log_file: Path, inner: Logger | None = None) -> None:
        self.log_file = log_file
        self._inner: Logger = inner if inner is not None else SilentLogger()
        self._lock = threading.Lock()
        self.enabled = True

    def _append(self, line: str) -> None:
        if not self.enabled:
            return
        stamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        with self._lock:
            try:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write(f"{stamp} {line}\n")
            except OSError as err:
                # Disabled after the first failure; console output continues
                self.enabled = False
                failure = err
            else:
                return
        self._inner.warning(
            "LOG", f"Cannot write log file {self.log_file}: {failure}; file logging disabled"
        )

    def step(self, step: int, total: int, message: str) -> None:
        self._append(f"[{step}/{total}] {message}")
        self._inner.step(step, total, message)

    def warning(self, prefix: str, message: str) -> None:
        self._append(f"[{prefix}] WARNING: {message}")
        self._inner.warning(prefix, message)

    def verbose(self, prefix: str, message: str) -> None:
        self._append(f"[{prefix}] {message}")
        self._inner.verbose(prefix, message)

    def debug(self, prefix: str, message: str) -> None:
        self._append(f"[{prefix}] {message}")
        self._inner.debug(prefix, message)


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_logger(
    verbose: bool = False,
    debug: bool = False,
    log_file: Path | None = None,
) -> Logger:
    """Get a logger instance with specified verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).
        log_file: If set, messages are also appended to this file.

    Returns:
        A logger instance configured with the specified verbosity.

    Example:
        Get a verbose logger that also persists a log:
            ```python
            logger = get_logger(verbose=True, log_file=Path("manup.log"))
            logger.verbose("ENGINE", "Check triggered")
            ```
    """
    logger: Logger = DefaultLogger(verbose=verbose, debug=debug)
    if log_file is not None:
        logger = FileLogger(log_file, inner=logger)
    return logger


def get_global_logger() -> Logger:
    """Get the global logger instance.

    Returns:
        The current global logger instance.

    Note:
        The default global logger is silent. Use set_global_logger() to
        configure it, or pass a logger instance directly to functions.
    """
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        This affects all library functions that fall back to the global
        logger when no logger instance is passed. For better isolation,
        pass logger instances directly instead.
    """
    global _global_logger
    _global_logger = logger
