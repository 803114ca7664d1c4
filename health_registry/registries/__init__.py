from .access_audit_log import AccessAction, AccessAuditLog, AccessLogEntry
from .context import CallContext, FixedClock, SystemClock
from .errors import (
    AlreadyExistsError,
    ErrorCode,
    InvalidActionError,
    NotAuthorizedError,
    NotFoundError,
    RegistryError,
)
from .patient_registry import PatientRecord, PatientRegistry
from .record_location_registry import RecordKey, RecordLocation, RecordLocationRegistry
from .service import RegistryService

__all__ = [
    "AccessAction",
    "AccessAuditLog",
    "AccessLogEntry",
    "AlreadyExistsError",
    "CallContext",
    "ErrorCode",
    "FixedClock",
    "InvalidActionError",
    "NotAuthorizedError",
    "NotFoundError",
    "PatientRecord",
    "PatientRegistry",
    "RecordKey",
    "RecordLocation",
    "RecordLocationRegistry",
    "RegistryError",
    "RegistryService",
    "SystemClock",
]
