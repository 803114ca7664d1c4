"""Append-only access audit log.

The log is a claims ledger: it records that a caller says it accessed a
patient's record, without checking that the patient or record exists.
Entry ids are dense and assigned in call order starting at 0; a rejected
call never consumes an id.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from .connection import IN_MEMORY, get_connection, init_database
from .context import CallContext, Principal
from .errors import InvalidActionError
from .schema import ACCESS_LOG_SCHEMA

logger = logging.getLogger(__name__)

MAX_LOG_ID = 2**63 - 1


class AccessAction(str, Enum):
    """Kinds of access that can be logged."""
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class AccessLogEntry:
    log_id: int
    patient_id: str
    provider_id: Principal
    record_type: str
    action: AccessAction
    timestamp: int
    details: str


def parse_action(action: "AccessAction | str") -> AccessAction:
    """Resolve an action value, raising InvalidActionError if unrecognized."""
    try:
        return AccessAction(action)
    except ValueError:
        raise InvalidActionError(f"unrecognized action {action!r}") from None


class AccessAuditLog:
    """Sequentially numbered, immutable access log."""

    def __init__(self, db_path: str = IN_MEMORY):
        self._lock = threading.Lock()
        self._conn = get_connection(db_path)
        init_database(self._conn, ACCESS_LOG_SCHEMA)

    def log_access(
        self,
        ctx: CallContext,
        patient_id: str,
        record_type: str,
        action: AccessAction | str,
        details: str = "",
    ) -> int:
        """Append an entry for the caller and return its log id."""
        try:
            action = parse_action(action)
        except InvalidActionError as error:
            logger.warning("log_access rejected for %s: %s", ctx.caller, error)
            raise

        with self._lock, self._conn:
            log_id = self._next_id()
            self._conn.execute("""
                INSERT INTO access_logs (log_id, patient_id, provider_id, record_type, action, timestamp, details)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (log_id, patient_id, ctx.caller, record_type, action.value, ctx.now, details))

        logger.info("Logged %s on %s/%s as entry %d", action.value, patient_id, record_type, log_id)
        return log_id

    def get_access_log(self, log_id: int) -> AccessLogEntry | None:
        """Get a log entry by id."""
        # Ids outside SQLite's signed 64-bit range can never have been assigned
        if not 0 <= log_id <= MAX_LOG_ID:
            return None
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM access_logs WHERE log_id = ?", (log_id,)
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def get_log_count(self) -> int:
        """Number of entries logged so far, which is also the next id."""
        with self._lock:
            return self._next_id()

    def list_access_logs(
        self,
        patient_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AccessLogEntry]:
        """Get log entries newest first, optionally for one patient."""
        query = "SELECT * FROM access_logs"
        params: list = []
        if patient_id is not None:
            query += " WHERE patient_id = ?"
            params.append(patient_id)
        query += " ORDER BY log_id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # Private helpers

    def _next_id(self) -> int:
        row = self._conn.execute("SELECT COALESCE(MAX(log_id) + 1, 0) FROM access_logs").fetchone()
        return row[0]

    def _row_to_entry(self, row) -> AccessLogEntry:
        """Convert a database row to an AccessLogEntry object."""
        return AccessLogEntry(
            log_id=row["log_id"],
            patient_id=row["patient_id"],
            provider_id=row["provider_id"],
            record_type=row["record_type"],
            action=AccessAction(row["action"]),
            timestamp=row["timestamp"],
            details=row["details"],
        )
