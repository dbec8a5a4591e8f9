"""
Background persistence: periodic binary snapshots, JSON exports and anomaly reports.
"""

import threading
import time
from collections.abc import Callable

import structlog

from sensorlog.anomaly.search import SortKey, search, summarize
from sensorlog.core.config import ServerConfig
from sensorlog.store.base import TelemetryStore

from .export import write_export
from .snapshot import write_snapshot

logger = structlog.get_logger(__name__)


class PersistenceScheduler:
    """Runs the periodic persistence actions on a dedicated thread

    Each action has its own interval and a ``force`` flag that bypasses it.
    When the shutdown event is set the loop waits for ``writers_done`` (the
    supervisor sets it once every handler has finished), then exits after one
    forced export and one forced snapshot.
    """

    def __init__(
        self,
        store: TelemetryStore,
        config: ServerConfig,
        shutdown_event: threading.Event,
        writers_done: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.config = config
        self.thresholds = config.thresholds
        self.shutdown_event = shutdown_event
        self.writers_done = writers_done
        self.clock = clock

        start = clock()
        self.last_snapshot_time = start
        self.last_export_time = start
        self.last_report_time = start

        self._thread: threading.Thread | None = None

        self.stats = {
            "snapshots_written": 0,
            "snapshot_failures": 0,
            "exports_written": 0,
            "export_failures": 0,
            "records_exported": 0,
            "reports": 0,
            "action_failures": 0,
        }

    def start(self) -> threading.Thread:
        """Start the scheduler thread"""
        self._thread = threading.Thread(target=self.run, name="persistence-scheduler")
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None):
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self):
        """Tick until shutdown is requested, then flush everything once"""
        logger.info(
            "Starting persistence scheduler",
            snapshot_path=self.config.snapshot_path,
            snapshot_interval=self.config.snapshot_interval,
            export_dir=self.config.export_dir,
            export_interval=self.config.export_interval,
        )

        try:
            while not self.shutdown_event.wait(self.config.tick_interval):
                self.tick()

        except Exception as e:
            logger.error("Persistence scheduler error", error=str(e), exc_info=True)
            raise

        finally:
            self._wait_for_writers()
            logger.info("Flushing before shutdown")
            self.export_batch(force=True)
            self.save_snapshot(force=True)
            logger.info("Persistence scheduler stopped", **self.stats)

    def tick(self):
        """Run every action whose interval has elapsed

        A failing action is logged and does not stop the others or later ticks.
        """
        for action in (self.save_snapshot, self.export_batch, self.report_anomalies):
            try:
                action()
            except Exception as e:
                self.stats["action_failures"] += 1
                logger.error(
                    "Persistence action failed",
                    action=action.__name__,
                    error=str(e),
                    exc_info=True,
                )

    def save_snapshot(self, force: bool = False) -> bool:
        """Write the full store to the binary snapshot file

        A failed write, whatever the cause, leaves the in-memory state
        untouched; the next interval tries again.

        Returns:
            True if a snapshot was written
        """
        now = self.clock()
        if not force and now - self.last_snapshot_time < self.config.snapshot_interval:
            return False
        self.last_snapshot_time = now

        records = self.store.snapshot()
        try:
            count = write_snapshot(self.config.snapshot_path, records)
        except Exception as e:
            self.stats["snapshot_failures"] += 1
            logger.error(
                "Failed to write snapshot",
                path=self.config.snapshot_path,
                error=str(e),
                exc_info=True,
            )
            return False

        self.stats["snapshots_written"] += 1
        logger.info("Snapshot saved", path=self.config.snapshot_path, count=count)
        return True

    def export_batch(self, force: bool = False) -> bool:
        """Drain the pending export batch into a new JSON file

        Nothing is written when the batch is empty. If the write fails the
        drained records go back to the front of the pending batch.

        Returns:
            True if an export file was written
        """
        now = self.clock()
        if not force and now - self.last_export_time < self.config.export_interval:
            return False
        self.last_export_time = now

        batch = self.store.drain_export_batch()
        if not batch:
            logger.debug("No new data to export")
            return False

        try:
            path = write_export(
                self.config.export_dir,
                batch,
                prefix=self.config.export_prefix,
                suffix=self.config.export_suffix,
            )
        except Exception as e:
            self.store.restore_export_batch(batch)
            self.stats["export_failures"] += 1
            logger.error(
                "Failed to write export",
                export_dir=self.config.export_dir,
                count=len(batch),
                error=str(e),
                exc_info=True,
            )
            return False

        self.stats["exports_written"] += 1
        self.stats["records_exported"] += len(batch)
        logger.info("Export written", path=str(path), count=len(batch))
        return True

    def report_anomalies(self, force: bool = False) -> dict | None:
        """Log the most severe historical anomalies

        Returns:
            The summary that was logged, or None if the report was not due
        """
        interval = self.config.report_interval
        now = self.clock()
        if not force and (interval <= 0 or now - self.last_report_time < interval):
            return None
        self.last_report_time = now

        findings = search(
            self.store.snapshot(),
            self.thresholds,
            sort_key=SortKey.DEVIATION,
            descending=True,
        )
        summary = summarize(findings)
        self.stats["reports"] += 1

        if not findings:
            logger.info("No historical anomalies found")
            return summary

        logger.info(
            "Historical anomalies by deviation",
            total=summary["total"],
            omitted=summary["omitted"],
        )
        for entry in summary["top"]:
            logger.info(
                "Historical anomaly",
                timestamp=entry["timestamp"],
                sensor_id=entry["sensor_id"],
                deviation_score=entry["deviation_score"],
                descriptions=entry["descriptions"],
            )
        return summary

    def _wait_for_writers(self):
        if self.writers_done is None:
            return
        if not self.writers_done.wait(self.config.shutdown_grace):
            logger.warning(
                "Handlers still running after grace period, flushing anyway",
                grace_seconds=self.config.shutdown_grace,
            )
