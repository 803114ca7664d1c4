"""Record location registry: pointers to off-system record payloads."""

import logging
import threading
from dataclasses import dataclass

from .connection import IN_MEMORY, get_connection, init_database
from .context import CallContext, Principal
from .errors import NotAuthorizedError, NotFoundError
from .schema import RECORD_LOCATION_SCHEMA

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordKey:
    """Composite key of a record location."""
    patient_id: str
    record_type: str


@dataclass
class RecordLocation:
    patient_id: str
    record_type: str
    provider_id: Principal
    location_uri: str
    metadata: str
    created_at: int
    updated_at: int

    @property
    def key(self) -> RecordKey:
        return RecordKey(self.patient_id, self.record_type)


class RecordLocationRegistry:
    """Registry of record locations keyed by (patient_id, record_type).

    The registering caller becomes the provider of an entry. Only the provider
    may update it; the provider or the admin may delete it.
    """

    def __init__(self, admin: Principal, db_path: str = IN_MEMORY):
        self.admin = admin
        self._lock = threading.Lock()
        self._conn = get_connection(db_path)
        init_database(self._conn, RECORD_LOCATION_SCHEMA)

    def register_record_location(
        self,
        ctx: CallContext,
        patient_id: str,
        record_type: str,
        location_uri: str,
        metadata: str = "",
    ) -> bool:
        """Write the location for a key, replacing any existing entry.

        There is no existence check: registering over a live key makes the
        caller its new provider and resets both timestamps.
        """
        key = RecordKey(patient_id, record_type)
        with self._lock, self._conn:
            previous = self._fetch(key)
            self._conn.execute("""
                INSERT OR REPLACE INTO record_locations (
                    patient_id, record_type, provider_id, location_uri, metadata,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                key.patient_id, key.record_type, ctx.caller, location_uri, metadata,
                ctx.now, ctx.now
            ))

        if previous is not None:
            logger.info(
                "Re-registered record location %s/%s (provider %s -> %s)",
                patient_id, record_type, previous.provider_id, ctx.caller,
            )
        else:
            logger.info("Registered record location %s/%s (provider=%s)", patient_id, record_type, ctx.caller)
        return True

    def update_record_location(
        self,
        ctx: CallContext,
        patient_id: str,
        record_type: str,
        location_uri: str,
        metadata: str = "",
    ) -> bool:
        """Update URI and metadata. Only the provider may do this."""
        key = RecordKey(patient_id, record_type)
        with self._lock, self._conn:
            location = self._require(key)
            if ctx.caller != location.provider_id:
                error = NotAuthorizedError(f"only the provider may update {patient_id!r}/{record_type!r}")
                logger.warning("update_record_location rejected for %s: %s", ctx.caller, error)
                raise error

            self._conn.execute("""
                UPDATE record_locations
                SET location_uri = ?, metadata = ?, updated_at = ?
                WHERE patient_id = ? AND record_type = ?
            """, (location_uri, metadata, ctx.now, key.patient_id, key.record_type))

        logger.info("Updated record location %s/%s", patient_id, record_type)
        return True

    def delete_record_location(self, ctx: CallContext, patient_id: str, record_type: str) -> bool:
        """Remove an entry entirely. Allowed for the provider or the admin."""
        key = RecordKey(patient_id, record_type)
        with self._lock, self._conn:
            location = self._require(key)
            if ctx.caller not in (location.provider_id, self.admin):
                error = NotAuthorizedError(
                    f"only the provider or admin may delete {patient_id!r}/{record_type!r}"
                )
                logger.warning("delete_record_location rejected for %s: %s", ctx.caller, error)
                raise error

            self._conn.execute(
                "DELETE FROM record_locations WHERE patient_id = ? AND record_type = ?",
                (key.patient_id, key.record_type),
            )

        logger.info("Deleted record location %s/%s (by %s)", patient_id, record_type, ctx.caller)
        return True

    def get_record_location(self, patient_id: str, record_type: str) -> RecordLocation | None:
        """Get the live location for a key."""
        with self._lock:
            return self._fetch(RecordKey(patient_id, record_type))

    def list_record_locations(self, patient_id: str) -> list[RecordLocation]:
        """Get every live location for a patient, ordered by record type."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM record_locations WHERE patient_id = ? ORDER BY record_type",
                (patient_id,),
            ).fetchall()
        return [self._row_to_location(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # Private helpers

    def _fetch(self, key: RecordKey) -> RecordLocation | None:
        row = self._conn.execute(
            "SELECT * FROM record_locations WHERE patient_id = ? AND record_type = ?",
            (key.patient_id, key.record_type),
        ).fetchone()
        return self._row_to_location(row) if row else None

    def _require(self, key: RecordKey) -> RecordLocation:
        location = self._fetch(key)
        if location is None:
            error = NotFoundError(f"no record location for {key.patient_id!r}/{key.record_type!r}")
            logger.warning("Lookup failed: %s", error)
            raise error
        return location

    def _row_to_location(self, row) -> RecordLocation:
        """Convert a database row to a RecordLocation object."""
        return RecordLocation(
            patient_id=row["patient_id"],
            record_type=row["record_type"],
            provider_id=row["provider_id"],
            location_uri=row["location_uri"],
            metadata=row["metadata"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
