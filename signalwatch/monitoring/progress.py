"""Monitoring run progress and cooperative cancellation.

``MonitorProgress`` is immutable: every step returns a new snapshot, so a
run's counters can be inspected (or persisted) at any point without
shared mutable state.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_STOPPED = "stopped"


@dataclass(frozen=True)
class MonitorProgress:
    status: str = STATUS_IDLE
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    companies_total: int = 0
    companies_processed: int = 0
    current_company_id: Optional[int] = None
    signals_found: int = 0
    signals_created: int = 0
    duplicates_skipped: int = 0
    near_duplicates_skipped: int = 0

    @property
    def is_running(self) -> bool:
        return self.status == STATUS_RUNNING

    def start(self, companies_total: int, now: Optional[datetime] = None) -> "MonitorProgress":
        return MonitorProgress(
            status=STATUS_RUNNING,
            started_at=now or datetime.now(timezone.utc),
            companies_total=companies_total,
        )

    def begin_company(self, company_id: int) -> "MonitorProgress":
        return replace(self, current_company_id=company_id)

    def advance(
        self,
        *,
        found: int = 0,
        created: int = 0,
        duplicates: int = 0,
        near_duplicates: int = 0,
        company_done: bool = False,
    ) -> "MonitorProgress":
        return replace(
            self,
            signals_found=self.signals_found + found,
            signals_created=self.signals_created + created,
            duplicates_skipped=self.duplicates_skipped + duplicates,
            near_duplicates_skipped=self.near_duplicates_skipped + near_duplicates,
            companies_processed=self.companies_processed + (1 if company_done else 0),
        )

    def finish(self, *, stopped: bool = False, now: Optional[datetime] = None) -> "MonitorProgress":
        return replace(
            self,
            status=STATUS_STOPPED if stopped else STATUS_COMPLETED,
            finished_at=now or datetime.now(timezone.utc),
            current_company_id=None,
        )


class StopFlag:
    """Thread-safe stop request checked between batch items."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def request_stop(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    __call__ = is_set
