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

"""Host environment actions for ManUp.

The engine decides when the application must send the user to the store or
stop; the host carries it out. Applications with their own lifecycle
(GUI toolkits, game loops) implement HostActions themselves.
"""

from __future__ import annotations

from typing import Protocol
import webbrowser

from manup.logging import Logger, get_global_logger


class HostActions(Protocol):
    """Protocol for side effects delegated to the host."""

    def open_url(self, url: str) -> None:
        """Open 'url' in the user's browser or store app."""
        ...

    def quit(self) -> None:
        """Terminate the application."""
        ...


class SystemHostActions:
    """HostActions for plain Python processes.

    Opens URLs with the webbrowser module and quits by raising SystemExit.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger

    @property
    def logger(self) -> Logger:
        return self._logger if self._logger is not None else get_global_logger()

    def open_url(self, url: str) -> None:
        if not url:
            self.logger.warning("HOST", "No update link to open")
            return
        self.logger.verbose("HOST", f"Opening URL {url}")
        webbrowser.open(url)

    def quit(self) -> None:
        self.logger.verbose("HOST", "Quitting application")
        raise SystemExit(0)
