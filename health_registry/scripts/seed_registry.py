"""Seed a registry database with sample patients, record locations, and access logs."""

import hashlib
import logging
import sys

from health_registry import settings
from health_registry.registries import FixedClock, RegistryService
from health_registry.registries.connection import IN_MEMORY

logger = logging.getLogger(__name__)

# Mid-2021, an arbitrary fixed starting point so seeded timestamps are stable
SEED_START = 1625097600

MOCK_PATIENTS = [
    # (patient_id, owner)
    ("123e4567-e89b-12d3-a456-426614174000", "clinic-north"),
    ("9b2f7c1e-4d3a-4b8e-9f61-0c5d2a7e8b14", "clinic-north"),
    ("5a8d0e3f-1c7b-4e92-b6a4-3f9e8d2c1b70", "clinic-south"),
]

MOCK_LOCATIONS = [
    # (patient_id, record_type, provider, location_uri, metadata)
    (
        "123e4567-e89b-12d3-a456-426614174000",
        "lab-results",
        "lab-west",
        "ipfs://QmXoypizjW3WknFiJnKLwHCnL72vedxjQkDDP1mXWo6uco",
        '{"format": "pdf", "size": "1.2MB"}',
    ),
    (
        "123e4567-e89b-12d3-a456-426614174000",
        "imaging",
        "radiology-east",
        "s3://records/imaging/123e4567/chest-xray.dcm",
        '{"format": "dicom", "modality": "CR"}',
    ),
    (
        "5a8d0e3f-1c7b-4e92-b6a4-3f9e8d2c1b70",
        "prescriptions",
        "clinic-south",
        "https://records.example.org/rx/5a8d0e3f",
        '{"format": "fhir+json"}',
    ),
]

MOCK_ACCESS = [
    # (patient_id, record_type, caller, action, details)
    ("123e4567-e89b-12d3-a456-426614174000", "lab-results", "lab-west", "create", "Uploaded CBC panel"),
    ("123e4567-e89b-12d3-a456-426614174000", "lab-results", "clinic-north", "view", "Reviewed lab results for diagnosis"),
    ("123e4567-e89b-12d3-a456-426614174000", "imaging", "radiology-east", "create", "Chest X-ray stored"),
    ("5a8d0e3f-1c7b-4e92-b6a4-3f9e8d2c1b70", "prescriptions", "clinic-south", "update", "Dosage adjusted"),
]


def metadata_hash_for(patient_id: str) -> bytes:
    """Deterministic stand-in for a real metadata hash."""
    return hashlib.sha256(f"metadata:{patient_id}".encode()).digest()


def seed(service: RegistryService, clock: FixedClock) -> None:
    """Populate every registry, advancing the clock a minute per write."""
    for patient_id, owner in MOCK_PATIENTS:
        if service.patients.get_patient(patient_id) is None:
            service.patients.register_patient(service.context(owner), patient_id, metadata_hash_for(patient_id))
        clock.advance(60)

    for patient_id, record_type, provider, uri, metadata in MOCK_LOCATIONS:
        service.locations.register_record_location(
            service.context(provider), patient_id, record_type, uri, metadata
        )
        clock.advance(60)

    for patient_id, record_type, caller, action, details in MOCK_ACCESS:
        service.audit_log.log_access(service.context(caller), patient_id, record_type, action, details)
        clock.advance(60)


def main():
    logging.basicConfig(level=settings.LOG_LEVEL)
    if settings.REGISTRY_DB_PATH == IN_MEMORY:
        sys.exit(
            "REGISTRY_DB_PATH is not set: seeding an in-memory database would discard "
            "everything on exit. Point it at a database file and run again."
        )

    clock = FixedClock(SEED_START)
    service = RegistryService(settings.REGISTRY_ADMIN, settings.REGISTRY_DB_PATH, clock=clock)
    try:
        seed(service, clock)
        print(f"Seeded {len(MOCK_PATIENTS)} patients, {len(MOCK_LOCATIONS)} record locations, "
              f"{service.audit_log.get_log_count()} access log entries into {settings.REGISTRY_DB_PATH}")
    finally:
        service.close()


if __name__ == "__main__":
    main()
