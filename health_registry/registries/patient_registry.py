"""Patient identity registry: existence, ownership, and metadata-hash pointers."""

import logging
import threading
from dataclasses import dataclass

from .connection import IN_MEMORY, get_connection, init_database
from .context import CallContext, Principal
from .errors import AlreadyExistsError, NotAuthorizedError, NotFoundError
from .schema import PATIENT_SCHEMA

logger = logging.getLogger(__name__)

METADATA_HASH_SIZE = 32


@dataclass
class PatientRecord:
    patient_id: str
    owner: Principal
    metadata_hash: bytes
    active: bool
    created_at: int
    updated_at: int


def check_metadata_hash(metadata_hash: bytes) -> bytes:
    """Ensure a metadata hash is exactly 32 bytes."""
    if not isinstance(metadata_hash, (bytes, bytearray)):
        raise TypeError("metadata_hash must be bytes")
    if len(metadata_hash) != METADATA_HASH_SIZE:
        raise ValueError(
            f"metadata_hash must be {METADATA_HASH_SIZE} bytes, got {len(metadata_hash)}"
        )
    return bytes(metadata_hash)


class PatientRegistry:
    """Registry of patient identities.

    A patient id can be registered exactly once; the registering caller becomes
    its owner for good. Reads are public.
    """

    def __init__(self, admin: Principal, db_path: str = IN_MEMORY):
        self.admin = admin
        self._lock = threading.Lock()
        self._conn = get_connection(db_path)
        init_database(self._conn, PATIENT_SCHEMA)

    def register_patient(self, ctx: CallContext, patient_id: str, metadata_hash: bytes) -> bool:
        """Register a new patient owned by the caller."""
        metadata_hash = check_metadata_hash(metadata_hash)
        with self._lock, self._conn:
            if self._fetch(patient_id) is not None:
                error = AlreadyExistsError(f"patient {patient_id!r} already registered")
                logger.warning("register_patient rejected: %s", error)
                raise error

            self._conn.execute("""
                INSERT INTO patients (patient_id, owner, metadata_hash, active, created_at, updated_at)
                VALUES (?, ?, ?, 1, ?, ?)
            """, (patient_id, ctx.caller, metadata_hash, ctx.now, ctx.now))

        logger.info("Registered patient %s (owner=%s)", patient_id, ctx.caller)
        return True

    def update_patient_metadata(self, ctx: CallContext, patient_id: str, metadata_hash: bytes) -> bool:
        """Replace the metadata hash. Only the owner may do this."""
        metadata_hash = check_metadata_hash(metadata_hash)
        with self._lock, self._conn:
            patient = self._require(patient_id)
            if ctx.caller != patient.owner:
                error = NotAuthorizedError(f"only the owner may update patient {patient_id!r}")
                logger.warning("update_patient_metadata rejected for %s: %s", ctx.caller, error)
                raise error

            self._conn.execute(
                "UPDATE patients SET metadata_hash = ?, updated_at = ? WHERE patient_id = ?",
                (metadata_hash, ctx.now, patient_id),
            )

        logger.info("Updated metadata for patient %s", patient_id)
        return True

    def deactivate_patient(self, ctx: CallContext, patient_id: str) -> bool:
        """Mark a patient inactive. Allowed for the owner or the admin."""
        with self._lock, self._conn:
            patient = self._require(patient_id)
            if ctx.caller not in (patient.owner, self.admin):
                error = NotAuthorizedError(f"only the owner or admin may deactivate patient {patient_id!r}")
                logger.warning("deactivate_patient rejected for %s: %s", ctx.caller, error)
                raise error

            if patient.active:
                self._conn.execute(
                    "UPDATE patients SET active = 0, updated_at = ? WHERE patient_id = ?",
                    (ctx.now, patient_id),
                )
                logger.info("Deactivated patient %s", patient_id)
        return True

    def get_patient(self, patient_id: str) -> PatientRecord | None:
        """Get a patient by ID."""
        with self._lock:
            return self._fetch(patient_id)

    def is_patient_active(self, patient_id: str) -> bool:
        """Whether the patient exists and is active.

        Absent and inactive patients both read as False; callers that need to
        tell them apart should use get_patient.
        """
        patient = self.get_patient(patient_id)
        return patient is not None and patient.active

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # Private helpers

    def _fetch(self, patient_id: str) -> PatientRecord | None:
        row = self._conn.execute(
            "SELECT * FROM patients WHERE patient_id = ?", (patient_id,)
        ).fetchone()
        return self._row_to_patient(row) if row else None

    def _require(self, patient_id: str) -> PatientRecord:
        patient = self._fetch(patient_id)
        if patient is None:
            error = NotFoundError(f"patient {patient_id!r} not found")
            logger.warning("Lookup failed: %s", error)
            raise error
        return patient

    def _row_to_patient(self, row) -> PatientRecord:
        """Convert a database row to a PatientRecord object."""
        return PatientRecord(
            patient_id=row["patient_id"],
            owner=row["owner"],
            metadata_hash=bytes(row["metadata_hash"]),
            active=bool(row["active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
