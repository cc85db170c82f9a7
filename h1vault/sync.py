"""
Sync cycle: fetch reports and earnings, build notes, reconcile with the vault.

BugBountySync.sync() is the single entry point used by both the manual
trigger and the recurring SyncScheduler. Only one cycle runs at a time;
a trigger arriving while a cycle is in flight is skipped.
"""

import logging
import threading
from typing import Optional

from .api import HackerOneClient
from .dashboards import ensure_dashboards
from .errors import ConfigurationError, FetchError, ReconciliationError
from .models import EARNING_BOUNTY_EARNED, EARNING_RETEST_COMPLETED, Earning, Report
from .notes import build_note
from .notify import ConsoleNotifier
from .reconcile import reconcile
from .vault import VaultStore

logger = logging.getLogger(__name__)

STATUS_OK = 'ok'
STATUS_SKIPPED = 'skipped'
STATUS_CONFIG_ERROR = 'config_error'
STATUS_FETCH_ERROR = 'fetch_error'
STATUS_WRITE_ERROR = 'write_error'


def new_counters(status=STATUS_OK) -> dict:
    return {'status': status, 'created': 0, 'updated': 0, 'unchanged': 0, 'errors': 0}


def parse_reports(raw_reports) -> list:
    """Converts API records to Reports, dropping id-less and repeated reports."""
    reports = []
    seen_ids = set()
    for data in raw_reports:
        report = Report.from_api(data)
        if not report.id:
            logger.warning(f"Skipping report without an id: {report.title!r}")
            continue
        if report.id in seen_ids:
            logger.warning(f"Report {report.id} was returned twice, keeping the first copy.")
            continue
        seen_ids.add(report.id)
        reports.append(report)
    return reports


def parse_earnings(raw_earnings) -> list:
    earnings = []
    for data in raw_earnings:
        earning = Earning.from_api(data)
        if earning.kind not in (EARNING_BOUNTY_EARNED, EARNING_RETEST_COMPLETED):
            logger.info(f"Ignoring earning {earning.id} of type '{earning.kind}'")
        elif earning.report_id is None:
            logger.debug(f"Earning {earning.id} ({earning.kind}) does not reference a report.")
        earnings.append(earning)
    return earnings


def build_notes(reports, earnings, folder) -> list:
    return [build_note(report, earnings, folder) for report in reports]


class BugBountySync:
    """Owns the collaborators of one account's sync and runs cycles on demand."""

    def __init__(self, settings, store=None, notifier=None, client=None):
        self.settings = settings
        self.store = store or VaultStore(settings.vault_path)
        self.notifier = notifier or ConsoleNotifier()
        self.client = client
        self._in_flight = threading.Lock()

    def startup(self):
        """Creates the bugs folder and the dashboards if they are missing."""
        try:
            self.store.create_folder(self.settings.bugs_folder)
        except OSError as e:
            logger.error(f"Error creating bug folder {self.settings.bugs_folder}: {e}")
        try:
            ensure_dashboards(self.store, self.settings.directory)
        except OSError as e:
            logger.error(f"Error creating summary file: {e}")

    def check_settings(self):
        if not self.settings.username:
            raise ConfigurationError("You need to fill your HackerOne username in the settings (H1_USERNAME).")
        if not self.settings.api_token:
            raise ConfigurationError("You need to fill your HackerOne API token in the settings (H1_API_TOKEN).")

    def _get_client(self) -> HackerOneClient:
        if self.client is None:
            self.client = HackerOneClient(
                self.settings.username,
                self.settings.api_token,
                base_url=self.settings.api_base_url,
                strict_pagination=self.settings.strict_pagination,
                notifier=self.notifier,
            )
        return self.client

    @property
    def is_running(self) -> bool:
        return self._in_flight.locked()

    def run_cycle(self) -> dict:
        """One full cycle. Raises ConfigurationError, FetchError or ReconciliationError."""
        self.check_settings()
        self.notifier.notify("fetching your HackerOne Reports...")
        client = self._get_client()

        # Earnings are joined only once both collections are complete
        reports = parse_reports(client.fetch_reports())
        earnings = parse_earnings(client.fetch_earnings())

        notes = build_notes(reports, earnings, self.settings.bugs_folder)
        counters = new_counters()
        counters.update(reconcile(notes, self.store, self.settings.bugs_folder))
        return counters

    def sync(self) -> dict:
        """
        Runs a cycle unless one is already in flight.

        Never raises for configuration, fetch or write problems; they are
        logged, shown to the user and reflected in the returned counters.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.warning("A sync is already running, skipping this trigger.")
            return new_counters(STATUS_SKIPPED)
        try:
            counters = self.run_cycle()
        except ConfigurationError as e:
            logger.error(str(e))
            self.notifier.notify(str(e))
            return new_counters(STATUS_CONFIG_ERROR)
        except FetchError as e:
            logger.error(f"Error fetching HackerOne reports: {e}")
            self.notifier.notify(f"Error fetching HackerOne reports: {e}")
            counters = new_counters(STATUS_FETCH_ERROR)
            counters['errors'] = 1
            return counters
        except ReconciliationError as e:
            for report_id, message in e.failures:
                logger.error(f"  report {report_id}: {message}")
            self.notifier.notify(f"Error: {e}")
            counters = new_counters(STATUS_WRITE_ERROR)
            counters.update(e.counters)
            return counters
        finally:
            self._in_flight.release()

        self.notifier.notify("Bugs has been updated successfully.")
        return counters


class SyncScheduler:
    """Re-runs a sync callable every interval_seconds on a background thread."""

    def __init__(self, sync_fn, interval_seconds=600):
        self.sync_fn = sync_fn
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self, run_immediately=True):
        if self._thread and self._thread.is_alive():
            raise RuntimeError("Scheduler is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, args=(run_immediately,), name="h1vault-sync", daemon=True
        )
        self._thread.start()
        logger.info(f"Sync scheduled every {self.interval_seconds} seconds.")

    def _run(self, run_immediately):
        if run_immediately:
            self._tick()
        while not self._stop_event.wait(self.interval_seconds):
            self._tick()

    def _tick(self):
        try:
            self.sync_fn()
        except Exception:
            # The next tick retries; the timer must survive unexpected failures
            logger.exception("Unexpected error during scheduled sync")

    def stop(self, timeout=None):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout)
        logger.info("Sync scheduler stopped.")

    def is_alive(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def wait(self, poll_seconds=0.5):
        """Blocks until the scheduler stops. Ctrl-C raises KeyboardInterrupt here."""
        while self.is_alive():
            self._thread.join(poll_seconds)
