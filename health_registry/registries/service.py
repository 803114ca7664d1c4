"""Registry service: one instance of each registry under a fixed admin."""

import logging

from .access_audit_log import AccessAuditLog
from .connection import IN_MEMORY
from .context import CallContext, Principal, SystemClock
from .patient_registry import PatientRegistry
from .record_location_registry import RecordLocationRegistry

logger = logging.getLogger(__name__)


class RegistryService:
    """Owns the three registries, the admin principal, and the clock.

    Create one per process (or one per test) and pass it where needed. The
    registries do not call each other; callers compose them, typically by
    logging an access after touching identity or location data.
    """

    def __init__(self, admin: Principal, db_path: str = IN_MEMORY, clock=None):
        self.admin = admin
        self.clock = clock or SystemClock()
        self.patients = PatientRegistry(admin, db_path)
        self.locations = RecordLocationRegistry(admin, db_path)
        self.audit_log = AccessAuditLog(db_path)
        logger.info("Registry service started (admin=%s, db=%s)", admin, db_path)

    def context(self, caller: Principal) -> CallContext:
        """Capture the caller and the current time for one operation."""
        return CallContext(caller=caller, now=self.clock.now())

    def close(self) -> None:
        self.patients.close()
        self.locations.close()
        self.audit_log.close()
