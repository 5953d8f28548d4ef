# shipsync/services/order_change_job.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from shipsync.core.config import AppSettings
from shipsync.limits import Clock, MonotonicClock
from shipsync.services.errors import JobAlreadyRunning
from shipsync.services.order_scan_service import ReconciliationScanner
from shipsync.services.order_scan_types import ScanFilter

logger = logging.getLogger("shipsync.job")

ScannerFactory = Callable[[], ReconciliationScanner]


@dataclass(frozen=True)
class JobConfig:
    enabled: bool = False
    interval_minutes: int = 15
    hours_to_scan: int = 24
    auto_tag: bool = False
    max_orders_per_run: int = 500

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "JobConfig":
        return cls(
            enabled=settings.ORDER_CHANGE_DETECTOR_ENABLED,
            interval_minutes=settings.ORDER_CHANGE_DETECTOR_INTERVAL,
            hours_to_scan=settings.ORDER_CHANGE_DETECTOR_HOURS,
            auto_tag=settings.ORDER_CHANGE_DETECTOR_AUTO_TAG,
            max_orders_per_run=settings.ORDER_CHANGE_DETECTOR_MAX_ORDERS,
        )


@dataclass
class RunStats:
    orders_scanned: int = 0
    changes_detected: int = 0
    orders_tagged: int = 0
    tag_skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)


class OrderChangeJob:
    """
    Periodic change detection over recently created orders.

    Stats live in memory only; a restart starts from zero.
    """

    def __init__(
        self,
        scanner_factory: ScannerFactory,
        config: JobConfig,
        *,
        scan_status: str = "awaiting_shipment",
        clock: Optional[Clock] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._scanner_factory = scanner_factory
        self.config = config
        self.scan_status = scan_status
        self._clock = clock or MonotonicClock()
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._running = False

        self.total_runs = 0
        self.last_run_at: Optional[datetime] = None
        self.last_run_duration: float = 0.0
        self.orders_scanned = 0
        self.changes_detected = 0
        self.orders_tagged = 0
        self.last_errors: List[Dict[str, Any]] = []

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def next_run_at(self) -> Optional[datetime]:
        if not (self.config.enabled and self.last_run_at):
            return None
        return self.last_run_at + timedelta(minutes=self.config.interval_minutes)

    async def run(self) -> RunStats:
        if self._running:
            raise JobAlreadyRunning("order change job is already running")

        scanner = self._scanner_factory()
        self._running = True
        started = self._clock.now()
        self.last_run_at = self._now()
        stats = RunStats()
        logger.info(
            "order change job start: hours=%d max_orders=%d auto_tag=%s",
            self.config.hours_to_scan,
            self.config.max_orders_per_run,
            self.config.auto_tag,
        )
        try:
            await self._run(scanner, stats)
        except Exception as e:
            logger.exception("order change job failed")
            stats.errors.append({"error": f"Job failed: {e}"})
        finally:
            self._running = False
            self.total_runs += 1
            self.last_run_duration = self._clock.now() - started
            self.orders_scanned += stats.orders_scanned
            self.changes_detected += stats.changes_detected
            self.orders_tagged += stats.orders_tagged
            self.last_errors = list(stats.errors)

        logger.info(
            "order change job done: scanned=%d changes=%d tagged=%d skipped=%d errors=%d",
            stats.orders_scanned,
            stats.changes_detected,
            stats.orders_tagged,
            stats.tag_skipped,
            len(stats.errors),
        )
        return stats

    async def _run(self, scanner: ReconciliationScanner, stats: RunStats) -> None:
        flt = ScanFilter(
            status=self.scan_status,
            created_since=self._now() - timedelta(hours=self.config.hours_to_scan),
            max_orders=self.config.max_orders_per_run,
            page_size=min(self.config.max_orders_per_run, 500),
        )
        summary = await scanner.scan(flt)

        stats.orders_scanned = summary.total_scanned
        stats.changes_detected = len(summary.reports)
        for o in summary.outcomes:
            if o.status == "no_counterpart_match":
                stats.errors.append(
                    {
                        "order_id": o.order_id,
                        "order_number": o.order_number,
                        "error": "No matching storefront order found",
                    }
                )
            elif o.status == "error":
                stats.errors.append(
                    {"order_id": o.order_id, "order_number": o.order_number, "error": o.error}
                )

        for r in summary.reports:
            logger.warning(
                "changes detected order_number=%s customer=%s: %s",
                r.order_number,
                r.customer_name,
                "; ".join(c.description for c in r.changes),
            )

        if not (self.config.auto_tag and summary.reports):
            return
        if summary.tag_id is None:
            logger.warning(
                "auto-tag skipped: tag %r does not exist", scanner.reconciliation_tag_name
            )
            return

        to_tag = [
            r.order_id
            for r in summary.reports
            if not r.has_reconciliation_tag and r.order_id is not None
        ]
        if not to_tag:
            return
        result = await scanner.bulk_tag(to_tag, summary.tag_id)
        stats.orders_tagged = result.success
        stats.tag_skipped = result.skipped
        for err in result.errors:
            stats.errors.append({**err, "error": f"Tagging failed: {err['error']}"})

    def stats(self) -> Dict[str, Any]:
        return {
            "total_runs": self.total_runs,
            "last_run_at": self.last_run_at,
            "last_run_duration": self.last_run_duration,
            "orders_scanned": self.orders_scanned,
            "changes_detected": self.changes_detected,
            "orders_tagged": self.orders_tagged,
            "last_errors": list(self.last_errors),
            "config": asdict(self.config),
            "is_running": self._running,
            "next_run_at": self.next_run_at,
        }
