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

"""Logging interface for automodsync.

Library modules report progress through a small logger object instead of
printing directly, so the reconciliation can run silently when embedded in
other tooling and loudly when driven from the CLI.

Output levels:

- Step: Always printed (per-target progress such as "[2/6] Finding module")
- Warning: Always printed, prefixed with the area it came from
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure the global logger (what the CLI does):
        ```python
        from automodsync.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    Use in library code:
        ```python
        from automodsync.logging import get_global_logger

        logger = get_global_logger()
        logger.step(3, 6, "Inspecting target account...")
        logger.verbose("ARM", "GET automationAccounts/aa-prod-01")
        logger.debug("POLL", "provisioningState=Creating")
        ```

Note:
    The default global logger is silent, so importing the library never
    prints anything on its own.
"""

from __future__ import annotations

from typing import Protocol


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
        """Print a warning that is shown regardless of verbosity."""
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Area of the code the message comes from (e.g., "REPO").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Area of the code the message comes from (e.g., "HTTP").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Logger that prints to stdout, honouring verbose and debug flags."""

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        print(f"[{prefix}] WARNING: {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] {message}")


class SilentLogger:
    """Logger that suppresses all output."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Return a stdout logger with the requested verbosity."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Return the process-wide logger used by library code."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Replace the process-wide logger.

    Args:
        logger: Logger instance to use from now on.

    Note:
        Affects every library function that calls get_global_logger().
        Tests that install a logger should restore a SilentLogger afterwards.
    """
    global _global_logger
    _global_logger = logger
