# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Latest-wins statement session.

A user can change the selected period while a computation is still
running. The session tags every computation with a monotonically increasing
request token and only accepts a result whose token is still the latest one
issued; late results of superseded requests are discarded.

The session only holds the latest accepted report. Reports themselves are
immutable and computed by ``StatementEngine``.
"""

import logging
import threading
from concurrent.futures import Executor, Future
from typing import Optional

from .comparison import StatementEngine, StatementReport, StatementRequest

logger = logging.getLogger(__name__)


class StatementSession:
    """Holds the report currently displayed for one user/view."""

    def __init__(self, engine: StatementEngine):
        self.engine = engine
        self._lock = threading.Lock()
        self._latest_token = 0
        self._current: Optional[StatementReport] = None

    @property
    def current(self) -> Optional[StatementReport]:
        with self._lock:
            return self._current

    @property
    def latest_token(self) -> int:
        with self._lock:
            return self._latest_token

    def begin(self) -> int:
        """Issue a new request token, superseding every earlier one."""
        with self._lock:
            self._latest_token += 1
            return self._latest_token

    def is_latest(self, token: int) -> bool:
        with self._lock:
            return token == self._latest_token

    def apply(self, token: int, report: StatementReport) -> bool:
        """Store ``report`` if ``token`` is still the latest request.

        Returns:
            True if the report was accepted, False if it was stale.
        """
        with self._lock:
            if token != self._latest_token:
                logger.debug(
                    "Discarding stale statement report (token %s, latest %s)",
                    token,
                    self._latest_token,
                )
                return False
            self._current = report
            return True

    def refresh(self, request: StatementRequest) -> Optional[StatementReport]:
        """Compute synchronously and apply the result.

        Returns the report if it was accepted, None if a newer request was
        issued while it was being computed.
        """
        token = self.begin()
        report = self.engine.compute(request)
        return report if self.apply(token, report) else None

    def refresh_async(
        self, request: StatementRequest, executor: Executor
    ) -> "Future[StatementReport]":
        """Compute on ``executor``; the result is applied when it completes,
        unless a newer request has been issued in the meantime."""
        token = self.begin()
        future = executor.submit(self.engine.compute, request)

        def _on_done(f: "Future[StatementReport]") -> None:
            if f.cancelled() or f.exception() is not None:
                return
            self.apply(token, f.result())

        future.add_done_callback(_on_done)
        return future
