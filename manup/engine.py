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

"""Gate engine for ManUp.

This module provides the GateEngine, which runs check cycles and owns the
state machine that sequences them:

    idle -> checking -> downloading | loading_cache -> parsing
         -> evaluating -> valid | invalid

with two fail-open exits that also let the application proceed:

- no_local_file: the fetch failed (or was skipped) and there is no cache
- parse_failed: the policy text could not be parsed

Cycle Steps:

1. Staleness: the cache is stale when it has no record, or the record is a
   day old or older than hours_before_stale. A stale cache triggers a
   fetch; a successful fetch is written to the cache with the current time.
   A failed fetch is logged and the cycle falls back to the cache.
2. Parsing: the text becomes a PolicyDocument for the resolved platform.
3. Evaluating: maintenance > hard update > soft update > allowed.

Serialization:

At most one cycle runs at a time. A trigger arriving during a cycle only
marks a single pending slot; the running caller performs one more cycle
when it finishes, so any burst of triggers collapses into one re-check.

Example:
    Wiring an engine at application start:
        ```python
        from pathlib import Path
        from manup.config import load_gate_config
        from manup.engine import GateEngine

        config = load_gate_config(Path("manup.yaml"))
        engine = GateEngine(config, on_verdict=panel.show)
        engine.trigger()

        # later, from the presentation layer
        engine.acknowledge()      # OK / Later pressed
        engine.choose_update()    # Update pressed
        ```

"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
import threading

from manup.cache import CacheStore, FileCacheStore
from manup.config import GateConfig
from manup.exceptions import PolicyParseError, UnsupportedPlatformError
from manup.host import HostActions, SystemHostActions
from manup.io import Fetcher, HttpFetcher
from manup.logging import FileLogger, Logger, get_global_logger
from manup.platforms import PlatformKey, resolve_platform
from manup.policy import PolicyDocument, build_verdict, decide, parse_policy
from manup.results import Verdict, VerdictKind
from manup.versioning import Version


class GateState(str, Enum):
    """States of the check cycle."""

    IDLE = "idle"
    CHECKING = "checking"
    DOWNLOADING = "downloading"
    LOADING_CACHE = "loading_cache"
    PARSING = "parsing"
    EVALUATING = "evaluating"
    VALID = "valid"
    INVALID = "invalid"
    NO_LOCAL_FILE = "no_local_file"
    PARSE_FAILED = "parse_failed"


# Terminal states in which the application may proceed
ALLOWING_STATES = frozenset(
    {GateState.VALID, GateState.NO_LOCAL_FILE, GateState.PARSE_FAILED}
)


def utc_now() -> datetime:
    return datetime.now(UTC)


class GateEngine:
    """Runs check cycles and turns the remote policy into verdicts.

    Collaborators are injected; defaults are built from the config when
    omitted (HTTP fetcher, JSON file cache, system host actions, UTC clock).

    Attributes:
        config: Effective gate settings.
        platform: Resolved policy platform, None when deactivated.
        activated: False when the runtime platform is unsupported. A
            deactivated engine never fetches or parses and always allows.

    """

    def __init__(
        self,
        config: GateConfig,
        *,
        fetcher: Fetcher | None = None,
        cache: CacheStore | None = None,
        host: HostActions | None = None,
        clock: Callable[[], datetime] | None = None,
        runtime_platform: str | None = None,
        logger: Logger | None = None,
        on_verdict: Callable[[Verdict], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        """Create an engine.

        Args:
            config: Effective gate settings.
            fetcher: Policy fetcher. Default: HttpFetcher with
                config.fetch_timeout.
            cache: Cached policy store. Default: FileCacheStore at
                config.cache_file.
            host: Host actions for quit/open URL. Default: SystemHostActions.
            clock: Returns the current timezone-aware time. Default: UTC now.
            runtime_platform: Platform string to resolve instead of
                sys.platform. The debug platform override still wins.
            logger: Logger. Default: the global logger. Wrapped in a
                FileLogger when config.log_to_file is set.
            on_verdict: Called with every verdict a cycle produces.
            on_complete: Called when the gate lets the application proceed
                (allowing cycle, or a dismissed soft update).

        """
        base_logger = logger if logger is not None else get_global_logger()
        if config.log_to_file:
            base_logger = FileLogger(config.log_file, inner=base_logger)
        self.logger: Logger = base_logger

        self.config = config
        self.fetcher: Fetcher = (
            fetcher
            if fetcher is not None
            else HttpFetcher(timeout=config.fetch_timeout, logger=self.logger)
        )
        self.cache: CacheStore = (
            cache
            if cache is not None
            else FileCacheStore(config.cache_file, logger=self.logger)
        )
        self.host: HostActions = (
            host if host is not None else SystemHostActions(logger=self.logger)
        )
        self.clock = clock if clock is not None else utc_now
        self.on_verdict = on_verdict
        self.on_complete = on_complete

        self._lock = threading.Lock()
        self._running = False
        self._pending = False
        self._state = GateState.IDLE
        self._verdict: Verdict | None = None
        self._document: PolicyDocument | None = None

        self.platform: PlatformKey | None = None
        self.activated = True
        try:
            self.platform = resolve_platform(runtime_platform, config.platform_override)
        except UnsupportedPlatformError as err:
            self.logger.warning("ENGINE", f"{err}; deactivating")
            self.activated = False

        self.logger.verbose(
            "ENGINE",
            f"Current version is {config.current_version}, "
            f"platform {self.platform.value if self.platform else 'unsupported'}",
        )

    # -------------------------------
    # Observable state
    # -------------------------------

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def verdict(self) -> Verdict | None:
        """Verdict of the last completed cycle."""
        return self._verdict

    @property
    def document(self) -> PolicyDocument | None:
        """Policy parsed by the last completed cycle, if any."""
        return self._document

    @property
    def current_version(self) -> Version:
        return self.config.current_version

    @property
    def config_is_valid(self) -> bool:
        """True when the application may proceed."""
        return not self.activated or self._state in ALLOWING_STATES

    @property
    def maintenance_mode(self) -> bool:
        return self._document is not None and self._document.maintenance_enabled

    @property
    def busy(self) -> bool:
        """True while a check cycle is in flight."""
        with self._lock:
            return self._running

    def _set_state(self, state: GateState) -> None:
        self.logger.debug("ENGINE", f"State {self._state.value} -> {state.value}")
        self._state = state

    # -------------------------------
    # Triggers
    # -------------------------------

    def trigger(self) -> Verdict | None:
        """Run a check cycle, or queue one behind the cycle in flight.

        Returns:
            The verdict of the last cycle this call ran, or None when another
                caller's cycle was in flight and this trigger was queued.

        """
        with self._lock:
            if self._running:
                self._pending = True
                self.logger.verbose("ENGINE", "Check already running, queued")
                return None
            self._running = True

        try:
            while True:
                verdict = self._run_cycle()
                if not self._take_pending():
                    return verdict
        except BaseException:
            with self._lock:
                self._running = False
                self._pending = False
            raise

    def _take_pending(self) -> bool:
        """Consume the pending slot, or release the running flag."""
        with self._lock:
            if self._pending:
                self._pending = False
                return True
            self._running = False
            return False

    def on_focus(self, focused: bool) -> Verdict | None:
        """Handle the application gaining or losing the foreground.

        Regaining focus re-checks, even if the last cycle ended invalid.
        """
        self.logger.verbose("ENGINE", f"Application focus {focused}")
        if not focused:
            return None
        return self.trigger()

    # -------------------------------
    # Cycle
    # -------------------------------

    def _run_cycle(self) -> Verdict:
        self.logger.verbose("ENGINE", "Check triggered")

        if not self.activated:
            self.logger.verbose("ENGINE", "Engine deactivated, allowing")
            return self._finish(Verdict.allowed(), None)

        self._set_state(GateState.CHECKING)
        self.logger.step(1, 3, "Loading policy...")
        text = self._load_policy_text()
        if text is None:
            self._set_state(GateState.NO_LOCAL_FILE)
            return self._finish(Verdict.allowed(), None)

        self._set_state(GateState.PARSING)
        self.logger.step(2, 3, "Parsing policy...")
        try:
            document = parse_policy(text, self.platform, logger=self.logger)
        except PolicyParseError as err:
            self.logger.warning(
                "POLICY", f"Could not parse policy: {err.reason}; allowing"
            )
            self._set_state(GateState.PARSE_FAILED)
            return self._finish(Verdict.allowed(), None)

        self._set_state(GateState.EVALUATING)
        self.logger.step(3, 3, "Evaluating policy...")
        kind = decide(document, self.config.current_version)
        verdict = build_verdict(kind, document, app_name=self.config.app_name)

        if kind is VerdictKind.ALLOWED:
            self._set_state(GateState.VALID)
        else:
            self._set_state(GateState.INVALID)
        return self._finish(verdict, document)

    def _load_policy_text(self) -> str | None:
        """Return policy text from the debug file, network or cache."""
        override = self.config.policy_override_file
        if override is not None:
            self.logger.verbose("ENGINE", f"Using debug policy file: {override}")
            try:
                return override.read_text(encoding="utf-8")
            except OSError as err:
                self.logger.warning("ENGINE", f"Cannot read debug policy file: {err}")
                return None

        if self.cache.is_stale(self.config.hours_before_stale, self.clock()):
            self._set_state(GateState.DOWNLOADING)
            self.logger.verbose("FETCH", "Downloading latest policy")
            result = self.fetcher.fetch(self.config.config_url)
            if result.ok:
                self._store(result.text)
                return result.text
            self.logger.warning(
                "FETCH", f"Download error: {result.error}; falling back to cache"
            )
        else:
            self.logger.verbose("CACHE", "Cached policy is fresh")

        self._set_state(GateState.LOADING_CACHE)
        record = self.cache.read()
        if record is None:
            self.logger.verbose("CACHE", "No local policy")
            return None
        self.logger.verbose(
            "CACHE", f"Loaded policy fetched at {record.fetched_at.isoformat()}"
        )
        return record.text

    def _store(self, text: str) -> None:
        try:
            self.cache.write(text, fetched_at=self.clock())
        except OSError as err:
            self.logger.warning("CACHE", f"Failed to save policy: {err}")

    def _finish(self, verdict: Verdict, document: PolicyDocument | None) -> Verdict:
        self._verdict = verdict
        self._document = document
        self.logger.verbose("ENGINE", f"Verdict: {verdict.kind.value}")

        if self.on_verdict is not None:
            self.on_verdict(verdict)
        if verdict.kind is VerdictKind.ALLOWED and self.on_complete is not None:
            self.on_complete()
        return verdict

    # -------------------------------
    # User actions
    # -------------------------------

    def acknowledge(self) -> None:
        """Handle the OK/Later button.

        Maintenance and hard update flip the kill switch (a hard update
        also opens the update link). A soft update is dismissed and the
        application proceeds.
        """
        verdict = self._verdict
        self.logger.verbose("ENGINE", "OK clicked")
        if verdict is None or verdict.kind is VerdictKind.ALLOWED:
            return

        if verdict.kind.blocking:
            self._flip_killswitch(verdict)
            return

        self.logger.verbose("ENGINE", "Soft update dismissed")
        self._set_state(GateState.VALID)
        if self.on_complete is not None:
            self.on_complete()

    def choose_update(self) -> None:
        """Handle the Update button: open the update link and quit."""
        verdict = self._verdict
        self.logger.verbose("ENGINE", "Update clicked")
        if verdict is None or verdict.buttons.update is None:
            self.logger.verbose("ENGINE", "No update offered, ignoring")
            return
        self.host.open_url(verdict.update_link)
        self.logger.verbose("ENGINE", "Killswitch flipped")
        self.host.quit()

    def _flip_killswitch(self, verdict: Verdict) -> None:
        self.logger.verbose("ENGINE", "Killswitch flipped")
        if verdict.kind is VerdictKind.HARD_UPDATE:
            self.host.open_url(verdict.update_link)
        self.host.quit()
