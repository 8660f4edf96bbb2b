"""
Certificate check cycle and daily scheduling for SSL Certificate Notifier.
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Tuple, Union

from ssl_cert_notifier.config import Config
from ssl_cert_notifier.exceptions import InspectionError
from ssl_cert_notifier.inspector import CertificateInspector
from ssl_cert_notifier.logger import (
    get_logger,
    log_certificate_checked,
    log_cycle_complete,
    log_cycle_start,
    log_inspection_error,
)
from ssl_cert_notifier.models import CertificateRecord, CheckResult
from ssl_cert_notifier.notifications import AlertNotifier, ReportNotifier


def seconds_until(hour: int, minute: int, now: datetime) -> float:
    """
    Seconds from ``now`` until the next occurrence of ``hour:minute``.

    ``now`` is local wall-clock time, naive or zone-aware. The target is
    found on the wall clock and the delay is taken between real timestamps,
    so days with a DST change are 23 or 25 hours long.
    """
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target.timestamp() - now.timestamp()


class CertificateChecker:
    """
    Runs check cycles over the configured endpoints.

    Inspections run concurrently in a worker pool; results are collected on
    the event loop in configuration order. Only one cycle runs at a time.
    """

    def __init__(
        self,
        config: Config,
        inspector: CertificateInspector,
        report_notifier: ReportNotifier,
        alert_notifier: AlertNotifier,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.inspector = inspector
        self.report_notifier = report_notifier
        self.alert_notifier = alert_notifier
        self.logger = logger or get_logger("checker")

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._executor = ThreadPoolExecutor(max_workers=config.workers)
        self._cycle_lock: Optional[asyncio.Lock] = None  # Initialize lock lazily in async context

        self.logger.info(f"Certificate checker initialized - Workers: {config.workers}")

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock is not None and self._cycle_lock.locked()

    async def start(self) -> None:
        """Start the daily check loop."""
        if self._running:
            self.logger.warning("Checker is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._check_loop())
        self.logger.info(f"Scheduled daily check at {self.config.check_time}")

    async def stop(self) -> None:
        """Stop the check loop, abandoning any cycle in progress."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._executor.shutdown(wait=False, cancel_futures=True)
        self.logger.info("Certificate checker stopped")

    def request_stop(self) -> None:
        """Cancel the check loop without waiting for it; safe to call from signal handlers."""
        self._running = False
        if self._task:
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the check loop to finish."""
        if self._task:
            await self._task

    async def _check_loop(self) -> None:
        """Main scheduling loop."""
        if self.config.run_on_start:
            await self._run_cycle_logged()

        hour, minute = self.config.check_hour_minute
        while self._running:
            try:
                await asyncio.sleep(seconds_until(hour, minute, datetime.now()))
            except asyncio.CancelledError:
                break
            await self._run_cycle_logged()

    async def _run_cycle_logged(self) -> None:
        try:
            await self.run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(f"Error in check cycle: {e}", exc_info=True)

    async def run_cycle(self) -> Optional[CheckResult]:
        """
        Perform one check cycle.

        Returns:
            Cycle result, or None when no endpoints are configured or another
            cycle is already running
        """
        # Initialize lock lazily if needed
        if self._cycle_lock is None:
            self._cycle_lock = asyncio.Lock()

        if self._cycle_lock.locked():
            self.logger.warning("Certificate check already in progress, skipping")
            return None

        async with self._cycle_lock:
            endpoints = list(self.config.endpoints.items())
            if not endpoints:
                self.logger.info("No endpoints configured, nothing to check")
                return None

            result = CheckResult(started_at=time.time())
            log_cycle_start(self.logger, len(endpoints))

            outcomes = await self._inspect_all(endpoints)
            for (label, address), outcome in zip(endpoints, outcomes):
                if isinstance(outcome, CertificateRecord):
                    result.add(outcome)
                    log_certificate_checked(
                        self.logger,
                        label,
                        outcome.host_port,
                        outcome.common_name,
                        outcome.days_remaining,
                    )
                else:
                    result.failed.append(label)
                    log_inspection_error(
                        self.logger, label, getattr(outcome, "address", address), outcome
                    )

            await self._dispatch(result)

            result.duration = time.time() - result.started_at
            log_cycle_complete(
                self.logger,
                result.duration,
                len(result.all),
                len(result.expiring),
                len(result.failed),
            )
            return result

    async def _inspect_all(
        self, endpoints: List[Tuple[str, str]]
    ) -> List[Union[CertificateRecord, BaseException]]:
        semaphore = asyncio.Semaphore(self.config.workers)
        tasks = [
            asyncio.create_task(self._inspect(label, address, semaphore))
            for label, address in endpoints
        ]
        try:
            return await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

    async def _inspect(
        self, label: str, address: str, semaphore: asyncio.Semaphore
    ) -> CertificateRecord:
        async with semaphore:
            loop = asyncio.get_running_loop()
            try:
                return await loop.run_in_executor(
                    self._executor, self.inspector.inspect, label, address
                )
            except InspectionError:
                raise
            except Exception as e:
                raise InspectionError(label, address, e) from e

    async def _dispatch(self, result: CheckResult) -> None:
        """Send the report for all certificates and the alert for expiring ones."""
        if result.all:
            await self._notify(
                "report", self.report_notifier.send_report, list(result.all), list(result.expiring)
            )

        if result.expiring:
            await self._notify("alert", self.alert_notifier.send_alert, list(result.expiring))

    async def _notify(self, kind: str, send: Callable[..., bool], *args: Any) -> None:
        # A failing channel must not stop the other one or the cycle
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, send, *args)
        except Exception as e:
            self.logger.error(f"Unexpected error sending {kind} notification: {e}", exc_info=True)
