"""
Data set monitor worker.

One call to ``run_one_pass`` scans the bucket for pending ``manifest.xml``
objects and selects the oldest eligible data set. It then waits for all of
the data set's files to finish uploading, hands the data set to the batch
handler (blocking until it returns), and finally moves the data set's objects
from ``Incoming/`` to ``Done/``.

Per-pass states::

    SCANNING -> IDLE
    SCANNING -> FOUND -> WAITING_AVAILABLE -> DISPATCHING -> MOVING -> DONE

Nothing carries over between passes except the recently-processed set and
whatever is left in the bucket.
"""

from __future__ import annotations

import threading

from dataset_monitor.connections.s3 import S3Connection
from dataset_monitor.exceptions import (
    HandlerError,
    ManifestParseError,
    StorageError,
    WaitInterruptedError,
)
from dataset_monitor.monitor.files import S3RifFile
from dataset_monitor.monitor.filters import DataSetFilter, accept_all
from dataset_monitor.monitor.handlers import BatchHandler
from dataset_monitor.monitor.instants import format_instant
from dataset_monitor.monitor.manifest import (
    COMPLETED_MANIFEST_PATTERN,
    MANIFEST_FILE_NAME,
    PENDING_MANIFEST_PATTERN,
    data_set_prefix,
    object_key,
    parse_manifest,
    pending_manifest_timestamp,
)
from dataset_monitor.monitor.recent import DEFAULT_RECENTLY_PROCESSED_CAPACITY, RecentlyProcessed
from dataset_monitor.monitor.types import (
    DataSetFound,
    DataSetManifest,
    NoDataAvailable,
    PassResult,
    PassStatus,
    RifFilesEvent,
    ScanResult,
)
from dataset_monitor.utils.logging import get_logger

logger = get_logger("dataset_monitor.monitor.worker")

LOG_MESSAGE_SCANNING = "Scanning for data sets to process..."
LOG_MESSAGE_NO_DATA_SETS = "No data sets to process found."
LOG_MESSAGE_DATA_SET_COMPLETE = "Data set renamed in S3, now that processing is complete."

DEFAULT_AVAILABILITY_POLL_S = 1.0


class DataSetMonitorWorker:
    """
    Scans, waits for, dispatches and relocates one data set per pass.

    The worker owns its state (storage connection, recently-processed set,
    cancellation token). It must not be re-entered concurrently: the caller
    runs one pass at a time.
    """

    def __init__(
        self,
        connection: S3Connection,
        handler: BatchHandler,
        *,
        data_set_filter: DataSetFilter = accept_all,
        availability_poll_s: float = DEFAULT_AVAILABILITY_POLL_S,
        recently_processed_capacity: int = DEFAULT_RECENTLY_PROCESSED_CAPACITY,
        cancel_event: threading.Event | None = None,
    ):
        if availability_poll_s <= 0:
            raise ValueError("availability_poll_s must be > 0")
        self.connection = connection
        self.handler = handler
        self.data_set_filter = data_set_filter
        self.availability_poll_s = availability_poll_s
        self.recently_processed = RecentlyProcessed(recently_processed_capacity)
        self.cancel_event = cancel_event or threading.Event()

    # ------------------------------------------------------------------
    # Entry point

    def run_one_pass(self) -> PassResult:
        """
        Run a single scan/process pass.

        Modelled failures come back as a failed PassResult instead of being
        raised; the caller decides whether to log, stop or exit. Anything
        else (programming errors) propagates.
        """
        logger.info(LOG_MESSAGE_SCANNING)
        timestamp = None
        try:
            scan = self.scan()
            if isinstance(scan, NoDataAvailable):
                logger.info(LOG_MESSAGE_NO_DATA_SETS)
                return PassResult(PassStatus.NO_DATA)

            manifest = scan.manifest
            timestamp = manifest.timestamp
            logger.info(
                f"Found data set to process: '{manifest}'. There were '{scan.pending_count}' total pending "
                f"data sets and '{scan.completed_count}' completed ones."
            )
            self.process(manifest)
            return PassResult(PassStatus.PROCESSED, timestamp=timestamp)
        except StorageError as e:
            logger.error(f"Storage failure, aborting pass: {e}")
            return PassResult(PassStatus.STORAGE_ERROR, timestamp=timestamp, error=e)
        except ManifestParseError as e:
            logger.error(f"Unreadable manifest, aborting pass: {e}")
            return PassResult(PassStatus.PARSE_ERROR, timestamp=timestamp, error=e)
        except HandlerError as e:
            logger.error(f"{e}. The data set stays pending.")
            return PassResult(PassStatus.HANDLER_ERROR, timestamp=timestamp, error=e)
        except WaitInterruptedError as e:
            logger.error(str(e))
            return PassResult(PassStatus.INTERRUPTED, timestamp=timestamp, error=e)

    def process(self, manifest: DataSetManifest) -> None:
        """Wait for, dispatch and relocate one selected data set."""
        self.wait_for_availability(manifest)
        logger.info("Data set ready. Processing it...")
        self.dispatch(manifest)
        self.mark_data_set_complete(manifest)
        self.recently_processed.add(manifest.timestamp)

    # ------------------------------------------------------------------
    # Scan-and-select

    def scan(self) -> ScanResult:
        """
        Find the oldest pending data set that may be processed.

        Pending manifests whose data set id is not an instant are ignored.
        Data sets already processed by this worker, or rejected by the
        filter, are skipped. A manifest that cannot be parsed aborts the
        scan with ManifestParseError.
        """
        selected: DataSetManifest | None = None
        pending_count = 0
        completed_count = 0

        for obj in self.connection.list_objects():
            key = obj["Key"]
            if PENDING_MANIFEST_PATTERN.match(key):
                pending_count += 1
                key_timestamp = pending_manifest_timestamp(key)
                if key_timestamp is None:
                    logger.debug(f"Ignoring manifest whose data set id is not a canonical instant: '{key}'")
                    continue

                manifest = self.read_manifest(key)
                if manifest.timestamp != key_timestamp:
                    raise ManifestParseError(
                        f"timestamp {format_instant(manifest.timestamp)} does not match its key", key=key
                    )
                if manifest.timestamp in self.recently_processed:
                    logger.debug(f"Skipping data set that was already processed: {format_instant(manifest.timestamp)}")
                    continue
                if not self.data_set_filter(manifest):
                    logger.debug(f"Skipping data set that doesn't pass filter: {manifest}")
                    continue

                if selected is None or manifest.timestamp < selected.timestamp:
                    selected = manifest
            elif COMPLETED_MANIFEST_PATTERN.match(key):
                completed_count += 1

        if selected is None:
            return NoDataAvailable(pending_count=pending_count, completed_count=completed_count)
        return DataSetFound(manifest=selected, pending_count=pending_count, completed_count=completed_count)

    def read_manifest(self, key: str) -> DataSetManifest:
        """Fetch and deserialize the manifest stored at ``key``."""
        return parse_manifest(self.connection.get_object(key), key=key)

    # ------------------------------------------------------------------
    # Availability

    def data_set_is_available(self, manifest: DataSetManifest) -> bool:
        """Whether every file the manifest declares is present next to it."""
        prefix = data_set_prefix(manifest.timestamp)
        present = set()
        for obj in self.connection.list_objects(prefix):
            key = obj["Key"]
            logger.debug(f"Found object: '{key}'")
            present.add(key[len(prefix) :])
        return set(manifest.entry_names).issubset(present)

    def wait_for_availability(self, manifest: DataSetManifest) -> None:
        """
        Block until the data set is fully uploaded.

        There is no timeout. Setting the cancellation token (or a
        KeyboardInterrupt) ends the wait with WaitInterruptedError.
        """
        logged_waiting = False
        while not self.data_set_is_available(manifest):
            if not logged_waiting:
                logger.info(f"Data set not ready: '{manifest}'. Waiting for it to finish uploading...")
                logged_waiting = True
            try:
                cancelled = self.cancel_event.wait(self.availability_poll_s)
            except KeyboardInterrupt:
                raise WaitInterruptedError(format_instant(manifest.timestamp)) from None
            if cancelled:
                raise WaitInterruptedError(format_instant(manifest.timestamp))

    # ------------------------------------------------------------------
    # Dispatch

    def build_event(self, manifest: DataSetManifest) -> RifFilesEvent:
        """Build the batch-ready event, one pending-key handle per entry."""
        files = tuple(
            S3RifFile(self.connection, entry.type, object_key(manifest.timestamp, entry.name))
            for entry in manifest.entries
        )
        return RifFilesEvent(timestamp=manifest.timestamp, files=files)

    def dispatch(self, manifest: DataSetManifest) -> None:
        """
        Hand the data set to the batch handler and block until it returns.

        Temp files are cleaned up whether or not the handler succeeded.
        """
        event = self.build_event(manifest)
        try:
            self.handler.on_batch_ready(event)
        except Exception as e:
            raise HandlerError(format_instant(manifest.timestamp), str(e), cause=e) from e
        finally:
            for rif_file in event.files:
                rif_file.cleanup_temp_file()

    # ------------------------------------------------------------------
    # Relocation

    def mark_data_set_complete(self, manifest: DataSetManifest) -> None:
        """
        Move the data set from ``Incoming/`` to ``Done/``.

        S3 has no atomic move: every object (entries, then the manifest) is
        copied first, then all sources are removed with one batch delete. A
        failure part way leaves orphaned objects behind; nothing is rolled
        back.
        """
        names = [*manifest.entry_names, MANIFEST_FILE_NAME]
        source_keys = [object_key(manifest.timestamp, name) for name in names]

        for name, source_key in zip(names, source_keys):
            target_key = object_key(manifest.timestamp, name, completed=True)
            # Copies drop server-side encryption settings; carry the KMS key over explicitly
            metadata = self.connection.head_object(source_key)
            self.connection.copy_object(source_key, target_key, kms_key_id=metadata.get("SSEKMSKeyId"))
        logger.debug("Data set copied in S3 (step 1 of move).")

        self.connection.delete_objects(source_keys)
        logger.debug("Data set deleted in S3 (step 2 of move).")

        logger.info(LOG_MESSAGE_DATA_SET_COMPLETE)
