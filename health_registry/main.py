"""Interactive console for the health record registry."""

import logging
import sys
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from health_registry import settings
from health_registry.commands import CommandError, parse_command, usage
from health_registry.registries import RegistryError, RegistryService

console = Console()


@dataclass
class Session:
    """A console session: the service and who is currently calling."""
    service: RegistryService
    caller: str


def _format_fields(fields: dict) -> str:
    return "\n".join(f"  {name}: {escape(str(value))}" for name, value in fields.items())


def format_patient(patient) -> str:
    return _format_fields({
        "patient_id": patient.patient_id,
        "owner": patient.owner,
        "metadata_hash": patient.metadata_hash.hex(),
        "active": patient.active,
        "created_at": patient.created_at,
        "updated_at": patient.updated_at,
    })


def format_location(location) -> str:
    return _format_fields({
        "patient_id": location.patient_id,
        "record_type": location.record_type,
        "provider_id": location.provider_id,
        "location_uri": location.location_uri,
        "metadata": location.metadata,
        "created_at": location.created_at,
        "updated_at": location.updated_at,
    })


def format_log_entry(entry) -> str:
    return (
        f"#{entry.log_id} {entry.timestamp} {escape(entry.provider_id)} "
        f"{entry.action.value} {escape(entry.patient_id)}/{escape(entry.record_type)}"
        + (f" - {escape(entry.details)}" if entry.details else "")
    )


# Command handlers

def handle_help(session: Session, args) -> str:
    return escape(usage())


def handle_whoami(session: Session, args) -> str:
    role = " (admin)" if session.caller == session.service.admin else ""
    return f"Acting as [bold]{escape(session.caller)}[/bold]{role}"


def handle_as(session: Session, args) -> str:
    session.caller = args.principal
    return handle_whoami(session, args)


def handle_register_patient(session: Session, args) -> str:
    ctx = session.service.context(session.caller)
    session.service.patients.register_patient(ctx, args.patient_id, args.metadata_hash)
    return f"ok: registered patient {escape(args.patient_id)}"


def handle_update_patient(session: Session, args) -> str:
    ctx = session.service.context(session.caller)
    session.service.patients.update_patient_metadata(ctx, args.patient_id, args.metadata_hash)
    return f"ok: updated metadata for {escape(args.patient_id)}"


def handle_deactivate_patient(session: Session, args) -> str:
    ctx = session.service.context(session.caller)
    session.service.patients.deactivate_patient(ctx, args.patient_id)
    return f"ok: deactivated {escape(args.patient_id)}"


def handle_get_patient(session: Session, args) -> str:
    patient = session.service.patients.get_patient(args.patient_id)
    if patient is None:
        return "none"
    return format_patient(patient)


def handle_patient_active(session: Session, args) -> str:
    return str(session.service.patients.is_patient_active(args.patient_id)).lower()


def handle_register_location(session: Session, args) -> str:
    ctx = session.service.context(session.caller)
    session.service.locations.register_record_location(
        ctx, args.patient_id, args.record_type, args.location_uri, args.metadata
    )
    return f"ok: registered {escape(args.patient_id)}/{escape(args.record_type)}"


def handle_update_location(session: Session, args) -> str:
    ctx = session.service.context(session.caller)
    session.service.locations.update_record_location(
        ctx, args.patient_id, args.record_type, args.location_uri, args.metadata
    )
    return f"ok: updated {escape(args.patient_id)}/{escape(args.record_type)}"


def handle_delete_location(session: Session, args) -> str:
    ctx = session.service.context(session.caller)
    session.service.locations.delete_record_location(ctx, args.patient_id, args.record_type)
    return f"ok: deleted {escape(args.patient_id)}/{escape(args.record_type)}"


def handle_get_location(session: Session, args) -> str:
    location = session.service.locations.get_record_location(args.patient_id, args.record_type)
    if location is None:
        return "none"
    return format_location(location)


def handle_list_locations(session: Session, args) -> str:
    locations = session.service.locations.list_record_locations(args.patient_id)
    if not locations:
        return "No record locations."
    return "\n\n".join(format_location(loc) for loc in locations)


def handle_log_access(session: Session, args) -> str:
    ctx = session.service.context(session.caller)
    log_id = session.service.audit_log.log_access(
        ctx, args.patient_id, args.record_type, args.action, args.details
    )
    return f"ok: log id {log_id}"


def handle_get_log(session: Session, args) -> str:
    entry = session.service.audit_log.get_access_log(args.log_id)
    if entry is None:
        return "none"
    return format_log_entry(entry)


def handle_log_count(session: Session, args) -> str:
    return str(session.service.audit_log.get_log_count())


def handle_list_logs(session: Session, args) -> str:
    entries = session.service.audit_log.list_access_logs(args.patient_id, limit=args.limit)
    if not entries:
        return "No access log entries."
    return "\n".join(format_log_entry(e) for e in entries)


COMMAND_HANDLERS = {
    "help": handle_help,
    "whoami": handle_whoami,
    "as": handle_as,
    "register-patient": handle_register_patient,
    "update-patient": handle_update_patient,
    "deactivate-patient": handle_deactivate_patient,
    "get-patient": handle_get_patient,
    "patient-active": handle_patient_active,
    "register-location": handle_register_location,
    "update-location": handle_update_location,
    "delete-location": handle_delete_location,
    "get-location": handle_get_location,
    "list-locations": handle_list_locations,
    "log-access": handle_log_access,
    "get-log": handle_get_log,
    "log-count": handle_log_count,
    "list-logs": handle_list_logs,
}


def process_command(session: Session, line: str) -> str:
    """Run one console line and return the text to show."""
    try:
        name, args = parse_command(line)
    except CommandError as e:
        return f"[yellow]{escape(str(e))}[/yellow]"

    handler = COMMAND_HANDLERS[name]
    try:
        return handler(session, args)
    except RegistryError as e:
        return f"[bold red]err {e.code.value} {e.code.name}[/bold red] {escape(str(e.args[0]))}"


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=settings.resolve_log_level(level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    """Main console loop."""
    configure_logging()
    service = RegistryService(settings.REGISTRY_ADMIN, settings.REGISTRY_DB_PATH)
    session = Session(service=service, caller=service.admin)

    console.print("[bold blue]Health Record Registry[/bold blue]")
    console.print("Type 'help' for commands, 'quit' or 'exit' to leave.")
    console.print(handle_whoami(session, None), "\n")

    is_tty = sys.stdin.isatty()

    try:
        while True:
            try:
                line = console.input(f"[bold green]{escape(session.caller)}>[/bold green] ").strip()
                # Echo input when stdin is piped (not interactive)
                if not is_tty and line:
                    console.print(f"[dim]{escape(line)}[/dim]")
            except (EOFError, KeyboardInterrupt):
                console.print("\n[bold blue]Goodbye![/bold blue]")
                break

            if not line:
                continue

            if line.lower() in ("quit", "exit"):
                console.print("[bold blue]Goodbye![/bold blue]")
                break

            console.print(process_command(session, line), "\n")
    finally:
        service.close()


if __name__ == "__main__":
    main()
