"""
Health Record Registry Schema
Supports patient identities, record locations, and the access audit log.
"""

PATIENT_SCHEMA = """
-- =============================================================================
-- 1. PATIENTS - Patient identity and metadata-hash pointer
-- =============================================================================
CREATE TABLE IF NOT EXISTS patients (
    patient_id TEXT PRIMARY KEY,
    owner TEXT NOT NULL,

    -- SHA-256 sized pointer to off-system metadata
    metadata_hash BLOB NOT NULL CHECK (length(metadata_hash) = 32),
    active INTEGER NOT NULL DEFAULT 1,

    -- Metadata (caller-supplied clock, unix seconds)
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_patients_owner ON patients(owner);
"""

RECORD_LOCATION_SCHEMA = """
-- =============================================================================
-- 2. RECORD_LOCATIONS - Pointers to off-system record payloads
-- =============================================================================
-- One live row per (patient_id, record_type); deleting a row frees the key
CREATE TABLE IF NOT EXISTS record_locations (
    patient_id TEXT NOT NULL,
    record_type TEXT NOT NULL,

    provider_id TEXT NOT NULL,
    location_uri TEXT NOT NULL,
    metadata TEXT NOT NULL DEFAULT '',

    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,

    PRIMARY KEY (patient_id, record_type)
);

CREATE INDEX IF NOT EXISTS idx_record_locations_provider ON record_locations(provider_id);
"""

ACCESS_LOG_SCHEMA = """
-- =============================================================================
-- 3. ACCESS_LOGS - Append-only claims ledger
-- =============================================================================
-- No foreign keys: entries record claims, not validated references
CREATE TABLE IF NOT EXISTS access_logs (
    log_id INTEGER PRIMARY KEY,
    patient_id TEXT NOT NULL,
    provider_id TEXT NOT NULL,
    record_type TEXT NOT NULL,
    action TEXT NOT NULL CHECK (action IN ('view', 'create', 'update', 'delete')),
    timestamp INTEGER NOT NULL,
    details TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_access_logs_patient ON access_logs(patient_id);
CREATE INDEX IF NOT EXISTS idx_access_logs_time ON access_logs(timestamp);
"""
