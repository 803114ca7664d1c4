"""Console command parsing using Pydantic models."""

import re
import shlex

from pydantic import BaseModel, Field, ValidationError, field_validator


class CommandError(Exception):
    """Raised when a console command cannot be parsed."""
    pass


class NoArgs(BaseModel):
    pass


class PrincipalArgs(BaseModel):
    principal: str = Field(..., min_length=1, description="Caller identity to act as")


class PatientArgs(BaseModel):
    patient_id: str = Field(..., min_length=1, description="Patient identifier")


class PatientHashArgs(PatientArgs):
    metadata_hash: bytes = Field(..., description="32-byte metadata hash, hex encoded")

    @field_validator("metadata_hash", mode="before")
    @classmethod
    def parse_hex(cls, v):
        """Decode a 64-character hex string (optional 0x prefix) to 32 bytes."""
        if isinstance(v, (bytes, bytearray)):
            data = bytes(v)
        else:
            text = str(v).strip().lower()
            if text.startswith("0x"):
                text = text[2:]
            if not re.fullmatch(r"[0-9a-f]*", text) or len(text) % 2:
                raise ValueError("metadata hash must be hex encoded")
            data = bytes.fromhex(text)
        if len(data) != 32:
            raise ValueError(f"metadata hash must be 32 bytes, got {len(data)}")
        return data


class LocationKeyArgs(PatientArgs):
    record_type: str = Field(..., min_length=1, description="Record type, e.g. lab-results")


class LocationArgs(LocationKeyArgs):
    location_uri: str = Field(..., min_length=1, description="Where the record payload lives")
    metadata: str = Field("", description="Free-form metadata, usually JSON")


class LogAccessArgs(LocationKeyArgs):
    # Left unchecked here so the audit log reports unknown actions itself
    action: str = Field(..., description="view, create, update or delete")
    details: str = Field("", description="Free-form description of the access")

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v):
        return str(v).strip().lower()


class LogIdArgs(BaseModel):
    log_id: int = Field(..., ge=0, le=2**64 - 1, description="Access log entry id")


class ListLogsArgs(BaseModel):
    patient_id: str | None = Field(None, description="Only entries for this patient")
    limit: int = Field(20, ge=1, le=500, description="Maximum entries to show")


# command name -> (argument model, positional field order)
# The last field of a model absorbs any remaining words.
COMMANDS: dict[str, tuple[type[BaseModel], list[str]]] = {
    "help": (NoArgs, []),
    "whoami": (NoArgs, []),
    "as": (PrincipalArgs, ["principal"]),
    "register-patient": (PatientHashArgs, ["patient_id", "metadata_hash"]),
    "update-patient": (PatientHashArgs, ["patient_id", "metadata_hash"]),
    "deactivate-patient": (PatientArgs, ["patient_id"]),
    "get-patient": (PatientArgs, ["patient_id"]),
    "patient-active": (PatientArgs, ["patient_id"]),
    "register-location": (LocationArgs, ["patient_id", "record_type", "location_uri", "metadata"]),
    "update-location": (LocationArgs, ["patient_id", "record_type", "location_uri", "metadata"]),
    "delete-location": (LocationKeyArgs, ["patient_id", "record_type"]),
    "get-location": (LocationKeyArgs, ["patient_id", "record_type"]),
    "list-locations": (PatientArgs, ["patient_id"]),
    "log-access": (LogAccessArgs, ["patient_id", "record_type", "action", "details"]),
    "get-log": (LogIdArgs, ["log_id"]),
    "log-count": (NoArgs, []),
    "list-logs": (ListLogsArgs, ["patient_id", "limit"]),
}


def parse_command(line: str) -> tuple[str, BaseModel]:
    """Split a console line into a command name and validated arguments."""
    try:
        words = shlex.split(line)
    except ValueError as e:
        raise CommandError(f"Could not parse input: {e}") from e
    if not words:
        raise CommandError("Empty command")

    name, values = words[0].lower(), words[1:]
    if name not in COMMANDS:
        raise CommandError(f"Unknown command '{name}'. Type 'help' for a list of commands.")

    model, fields = COMMANDS[name]
    if len(values) > len(fields):
        if not fields:
            raise CommandError(f"'{name}' takes no arguments")
        # Fold trailing words into the last field
        values = values[:len(fields) - 1] + [" ".join(values[len(fields) - 1:])]

    try:
        args = model(**dict(zip(fields, values)))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or name}: {err['msg']}" for err in e.errors()
        )
        raise CommandError(f"Invalid arguments for '{name}': {problems}") from e
    return name, args


def usage() -> str:
    """One line per command showing its positional arguments."""
    lines = []
    for name, (_, fields) in COMMANDS.items():
        lines.append(" ".join([name] + [f"<{f}>" for f in fields]))
    return "\n".join(lines)
