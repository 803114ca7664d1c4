"""Tests for the access audit log."""

import logging
import threading

import pytest

from health_registry.registries import (
    AccessAction,
    AccessLogEntry,
    ErrorCode,
    InvalidActionError,
)

from conftest import ALICE, BOB, PATIENT_ID, START_TIME

RECORD_TYPE = "lab-results"


@pytest.fixture
def audit_log(service):
    return service.audit_log


class TestLogAccess:
    """Tests for log_access."""

    def test_first_entry_gets_id_zero(self, audit_log, ctx):
        log_id = audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, "view", "Viewed lab results for diagnosis")
        assert log_id == 0

        entry = audit_log.get_access_log(0)
        assert isinstance(entry, AccessLogEntry)
        assert entry.patient_id == PATIENT_ID
        assert entry.provider_id == ALICE
        assert entry.record_type == RECORD_TYPE
        assert entry.action == AccessAction.VIEW
        assert entry.details == "Viewed lab results for diagnosis"
        assert entry.timestamp == START_TIME

    def test_invalid_action_rejected(self, audit_log, ctx):
        with pytest.raises(InvalidActionError) as exc_info:
            audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, "invalid-action", "Invalid action")
        assert exc_info.value.code == ErrorCode.INVALID_ACTION == 1005
        assert audit_log.get_log_count() == 0

    def test_action_is_case_sensitive(self, audit_log, ctx):
        with pytest.raises(InvalidActionError):
            audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, "VIEW", "")

    def test_accepts_enum_members(self, audit_log, ctx):
        log_id = audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, AccessAction.DELETE, "")
        assert audit_log.get_access_log(log_id).action == AccessAction.DELETE

    def test_ids_are_sequential(self, audit_log, ctx):
        actions = ["view", "update", "view", "create", "delete"]
        ids = [
            audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, action, f"{action} {i}")
            for i, action in enumerate(actions)
        ]
        assert ids == [0, 1, 2, 3, 4]
        assert audit_log.get_log_count() == 5

        for i, action in enumerate(actions):
            entry = audit_log.get_access_log(i)
            assert entry.action.value == action
            assert entry.details == f"{action} {i}"

    def test_failed_call_does_not_consume_id(self, audit_log, ctx):
        assert audit_log.log_access(ctx(ALICE), PATIENT_ID, "labs", "view", "...") == 0
        with pytest.raises(InvalidActionError):
            audit_log.log_access(ctx(ALICE), PATIENT_ID, "labs", "bogus", "...")
        assert audit_log.get_log_count() == 1
        assert audit_log.log_access(ctx(BOB), PATIENT_ID, "labs", "update", "...") == 1

    def test_unregistered_patient_is_logged(self, audit_log, service, ctx):
        """The log records claims without checking the other registries."""
        assert service.patients.get_patient("ghost") is None
        log_id = audit_log.log_access(ctx(BOB), "ghost", "no-such-type", "view", "")
        assert audit_log.get_access_log(log_id).patient_id == "ghost"

    def test_entries_are_immutable(self, audit_log, ctx):
        audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, "view", "")
        entry = audit_log.get_access_log(0)
        with pytest.raises(AttributeError):
            entry.details = "tampered"

    def test_concurrent_logging_keeps_ids_dense(self, audit_log, ctx):
        def worker(caller):
            for _ in range(25):
                audit_log.log_access(ctx(caller), PATIENT_ID, RECORD_TYPE, "view", "")

        threads = [threading.Thread(target=worker, args=(f"caller-{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert audit_log.get_log_count() == 100
        assert all(audit_log.get_access_log(i) is not None for i in range(100))


class TestLookups:
    """Tests for get_access_log, get_log_count and list_access_logs."""

    def test_missing_entry(self, audit_log):
        assert audit_log.get_access_log(999) is None

    def test_empty_count(self, audit_log):
        assert audit_log.get_log_count() == 0

    def test_list_newest_first(self, audit_log, ctx, clock):
        for action in ("create", "view", "update"):
            audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, action, "")
            clock.advance(60)

        entries = audit_log.list_access_logs()
        assert [e.log_id for e in entries] == [2, 1, 0]
        assert entries[0].timestamp == START_TIME + 120

    def test_list_filters_by_patient(self, audit_log, ctx):
        audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, "view", "")
        audit_log.log_access(ctx(ALICE), "other", RECORD_TYPE, "view", "")
        audit_log.log_access(ctx(BOB), PATIENT_ID, "imaging", "create", "")

        entries = audit_log.list_access_logs(patient_id=PATIENT_ID)
        assert [e.log_id for e in entries] == [2, 0]

    def test_list_limit_and_offset(self, audit_log, ctx):
        for _ in range(5):
            audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, "view", "")

        entries = audit_log.list_access_logs(limit=2, offset=1)
        assert [e.log_id for e in entries] == [3, 2]

    def test_ids_beyond_storage_range_are_absent(self, audit_log, ctx):
        audit_log.log_access(ctx(ALICE), PATIENT_ID, RECORD_TYPE, "view", "")
        assert audit_log.get_access_log(2**63) is None
        assert audit_log.get_access_log(2**64 - 1) is None
        assert audit_log.get_access_log(-1) is None


class TestRejectionLogging:
    """Rejected calls are logged with their error code."""

    def test_invalid_action_logged_with_code(self, audit_log, ctx, caplog):
        with caplog.at_level(logging.WARNING, logger="health_registry.registries.access_audit_log"):
            with pytest.raises(InvalidActionError):
                audit_log.log_access(ctx(BOB), PATIENT_ID, RECORD_TYPE, "bogus", "")
        assert "1005 INVALID_ACTION" in caplog.text
