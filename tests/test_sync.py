"""
Tests for the sync cycle, its in-flight guard and the recurring scheduler.
"""

import threading
from unittest.mock import MagicMock

from h1vault.config import Settings
from h1vault.errors import FetchError
from h1vault.sync import (
    STATUS_CONFIG_ERROR,
    STATUS_FETCH_ERROR,
    STATUS_OK,
    STATUS_SKIPPED,
    STATUS_WRITE_ERROR,
    BugBountySync,
    SyncScheduler,
    parse_reports,
)

from payloads import bounty_earning, make_report, retest_earning

SETTINGS = Settings(username="alice", api_token="tok")


def make_syncer(vault, reports=(), earnings=(), settings=SETTINGS):
    client = MagicMock()
    client.fetch_reports.return_value = list(reports)
    client.fetch_earnings.return_value = list(earnings)
    notifier = MagicMock()
    return BugBountySync(settings, store=vault, notifier=notifier, client=client), client, notifier


class TestSyncCycle:

    def test_full_cycle_creates_notes(self, vault):
        syncer, client, notifier = make_syncer(
            vault,
            reports=[make_report("101", title="XSS"), make_report("102", title="SSRF", severity=None)],
            earnings=[bounty_earning("101", amount="500", bonus_amount="100"), retest_earning("102")],
        )

        counters = syncer.sync()

        assert counters == {"status": STATUS_OK, "created": 2, "updated": 0, "unchanged": 0, "errors": 0}
        xss = vault.read_file("Bug Bounty/Bugs/XSS-101.md")
        ssrf = vault.read_file("Bug Bounty/Bugs/SSRF-102.md")
        assert "bounty: 600\n" in xss
        assert "bounty: 50\n" in ssrf
        assert "severity: undefined\n" in ssrf
        notifier.notify.assert_any_call("Bugs has been updated successfully.")

    def test_reports_fetched_before_earnings(self, vault):
        syncer, client, _ = make_syncer(vault)
        calls = []
        client.fetch_reports.side_effect = lambda: calls.append("reports") or []
        client.fetch_earnings.side_effect = lambda: calls.append("earnings") or []

        syncer.sync()

        assert calls == ["reports", "earnings"]

    def test_second_run_with_same_data_writes_nothing(self, vault):
        syncer, _, _ = make_syncer(vault, reports=[make_report("1"), make_report("2")])
        syncer.sync()

        counters = syncer.sync()

        assert counters["unchanged"] == 2
        assert counters["created"] == counters["updated"] == 0

    def test_remote_change_updates_note(self, vault):
        syncer, client, _ = make_syncer(vault, reports=[make_report("1")])
        syncer.sync()
        client.fetch_reports.return_value = [make_report("1", state="duplicate")]

        counters = syncer.sync()

        assert counters["updated"] == 1
        assert "state: duplicate\n" in vault.read_file("Bug Bounty/Bugs/Stored XSS in profile-1.md")


class TestSyncErrors:

    def test_missing_username_aborts_before_network(self, vault):
        syncer, client, notifier = make_syncer(vault, settings=Settings(api_token="tok"))

        counters = syncer.sync()

        assert counters["status"] == STATUS_CONFIG_ERROR
        client.fetch_reports.assert_not_called()
        assert "username" in notifier.notify.call_args.args[0]

    def test_missing_token_aborts_before_network(self, vault):
        syncer, client, notifier = make_syncer(vault, settings=Settings(username="alice"))

        assert syncer.sync()["status"] == STATUS_CONFIG_ERROR
        client.fetch_reports.assert_not_called()
        assert "token" in notifier.notify.call_args.args[0]

    def test_fetch_error_is_reported_not_raised(self, vault):
        syncer, client, notifier = make_syncer(vault)
        client.fetch_earnings.side_effect = FetchError("connection reset")

        counters = syncer.sync()

        assert counters["status"] == STATUS_FETCH_ERROR
        assert counters["errors"] == 1
        assert vault.list_files() == []
        assert "connection reset" in notifier.notify.call_args.args[0]

    def test_write_error_is_reported_with_counters(self, vault):
        syncer, _, notifier = make_syncer(vault, reports=[make_report("1"), make_report("2")])
        vault.write_file = MagicMock(side_effect=[None, PermissionError("denied")])

        counters = syncer.sync()

        assert counters["status"] == STATUS_WRITE_ERROR
        assert counters["created"] == 1
        assert counters["errors"] == 1
        assert notifier.notify.call_args.args[0].startswith("Error:")

    def test_guard_is_released_after_failure(self, vault):
        syncer, client, _ = make_syncer(vault)
        client.fetch_reports.side_effect = FetchError("boom")

        syncer.sync()

        assert not syncer.is_running


class TestInFlightGuard:

    def test_trigger_while_running_is_skipped(self, vault):
        syncer, client, _ = make_syncer(vault)
        syncer._in_flight.acquire()
        try:
            counters = syncer.sync()
        finally:
            syncer._in_flight.release()

        assert counters["status"] == STATUS_SKIPPED
        client.fetch_reports.assert_not_called()

    def test_overlapping_threads_run_one_cycle(self, vault):
        syncer, client, _ = make_syncer(vault)
        started = threading.Event()
        release = threading.Event()

        def slow_fetch():
            started.set()
            release.wait(5)
            return []

        client.fetch_reports.side_effect = slow_fetch
        worker = threading.Thread(target=syncer.sync)
        worker.start()
        assert started.wait(5)

        counters = syncer.sync()
        release.set()
        worker.join(5)

        assert counters["status"] == STATUS_SKIPPED
        assert client.fetch_reports.call_count == 1


class TestStartup:

    def test_creates_bug_folder_and_dashboards(self, vault):
        syncer, _, _ = make_syncer(vault)

        syncer.startup()

        assert (vault.root / "Bug Bounty" / "Bugs").is_dir()
        assert vault.exists("Bug Bounty/bugs-summary-all-time.md")

    def test_dashboards_are_not_overwritten(self, vault):
        vault.write_file("Bug Bounty/bugs-summary-all-time.md", "my edits")
        syncer, _, _ = make_syncer(vault)

        syncer.startup()

        assert vault.read_file("Bug Bounty/bugs-summary-all-time.md") == "my edits"


class TestParseReports:

    def test_drops_reports_without_id_and_repeats(self):
        raw = [make_report("1"), make_report("1", title="again"), {"type": "report", "attributes": {}}]

        reports = parse_reports(raw)

        assert [r.id for r in reports] == ["1"]
        assert reports[0].title == "Stored XSS in profile"


class TestScheduler:

    def test_runs_immediately_and_repeats(self):
        ran_twice = threading.Event()
        calls = []

        def sync_fn():
            calls.append(1)
            if len(calls) >= 2:
                ran_twice.set()

        scheduler = SyncScheduler(sync_fn, interval_seconds=0.01)
        scheduler.start(run_immediately=True)
        try:
            assert ran_twice.wait(5)
        finally:
            scheduler.stop(timeout=5)

        assert not scheduler.is_alive()

    def test_survives_unexpected_errors(self):
        recovered = threading.Event()
        outcomes = iter([RuntimeError("unexpected")])

        def sync_fn():
            error = next(outcomes, None)
            if error:
                raise error
            recovered.set()

        scheduler = SyncScheduler(sync_fn, interval_seconds=0.01)
        scheduler.start()
        try:
            assert recovered.wait(5)
        finally:
            scheduler.stop(timeout=5)

    def test_stop_before_first_interval(self):
        sync_fn = MagicMock()
        scheduler = SyncScheduler(sync_fn, interval_seconds=60)

        scheduler.start(run_immediately=False)
        scheduler.stop(timeout=5)

        sync_fn.assert_not_called()
        assert not scheduler.is_alive()
