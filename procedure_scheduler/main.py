"""Operator console for the procedure scheduler."""

import sys

from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.status import Status

from procedure_scheduler.clinic.database import OpHistoryRepository, ReferencedRecordError, init_database
from procedure_scheduler.commands import (
    BatchRequest,
    RescheduleRequest,
    ScheduleAnyRequest,
    ScheduleSpecificRequest,
    parse_args,
)
from procedure_scheduler.logging_config import configure_logging
from procedure_scheduler.scheduling import (
    BatchSummary,
    ScheduleResult,
    Scheduler,
    SchedulingError,
)

console = Console()
scheduler = Scheduler()

HELP_TEXT = """**Commands**

- `patients` - patients waiting for a slot
- `schedule <patient_id> <doctor_id>` - earliest slot on any upcoming day
- `book <patient_id> <doctor_id> <day_id> <HH:MM>` - specific slot
- `batch <day_id> <doctor_id>` - fill a day with waiting patients
- `availability <patient_id>` - next free time per upcoming day
- `day <day_id>` - bookings of a day
- `patient <patient_id>` - bookings of a patient
- `validate <day_id>` - check a day against its location rules
- `reschedule <booking_id> <day_id> <HH:MM>` - move a booking
- `unschedule <booking_id>` - remove a booking
- `lock <day_id>` / `unlock <day_id>`
- `history <patient_id>` - past operations and consultations of a patient
- `stats [year]` - operation history summary
- `help`, `quit`
"""


def format_booking(booking) -> str:
    return (
        f"`{booking.id}` {booking.start_time}-{booking.end_time} "
        f"{booking.procedure_type} (patient `{booking.patient_id}`)"
    )


def format_result(result: ScheduleResult) -> str:
    if not result.success:
        return f"**Failed** ({result.error_code}): {result.message}"
    return f"{result.message}\n\n- {format_booking(result.booking)} on day `{result.booking.operation_day_id}`"


def format_batch(summary: BatchSummary) -> str:
    if not summary.success:
        return f"**Failed** ({summary.error_code}): {summary.message}"
    lines = [summary.message, ""]
    lines += [f"- {format_booking(b)}" for b in summary.bookings]
    return "\n".join(lines)


def _single_id(args: list[str], usage: str) -> str:
    if len(args) != 1:
        raise ValueError(f"Usage: {usage}")
    return args[0]


def handle_patients(args: list[str]) -> str:
    """List patients waiting to be scheduled."""
    patients = scheduler.get_available_patients()
    if not patients:
        return "No patients are waiting to be scheduled."
    lines = [f"**{len(patients)} patient(s) waiting**", ""]
    for p in patients:
        lines.append(
            f"- `{p.id}` {p.full_name} ({p.hc_provider}) - {p.procedure_type}, visit {p.visit_date}"
        )
    return "\n".join(lines)


def handle_schedule(args: list[str]) -> str:
    request = parse_args(ScheduleAnyRequest, args)
    return format_result(scheduler.schedule_for_any_day(request.patient_id, request.doctor_id))


def handle_book(args: list[str]) -> str:
    request = parse_args(ScheduleSpecificRequest, args)
    return format_result(scheduler.schedule_specific(
        request.patient_id, request.doctor_id, request.day_id, request.start_time
    ))


def handle_batch(args: list[str]) -> str:
    request = parse_args(BatchRequest, args)
    return format_batch(scheduler.batch_schedule_for_day(request.day_id, request.doctor_id))


def handle_availability(args: list[str]) -> str:
    """Show the next free time on every upcoming day for a patient."""
    patient_id = _single_id(args, "availability <patient_id>")
    days = scheduler.find_available_days(patient_id)
    if not days:
        return "No upcoming operation days."
    lines = []
    for d in days:
        if d.is_valid:
            lines.append(f"- {d.date} {d.location} (day `{d.operation_day_id}`): from **{d.next_available_time}**")
        else:
            lines.append(f"- {d.date} {d.location} (day `{d.operation_day_id}`): unavailable - {d.reason}")
    return "\n".join(lines)


def handle_day(args: list[str]) -> str:
    day_id = _single_id(args, "day <day_id>")
    bookings = scheduler.get_day_schedule(day_id)
    if not bookings:
        return f"No bookings on day `{day_id}`."
    return "\n".join(f"- {format_booking(b)}" for b in bookings)


def handle_patient(args: list[str]) -> str:
    patient_id = _single_id(args, "patient <patient_id>")
    bookings = scheduler.get_patient_schedule(patient_id)
    if not bookings:
        return f"Patient `{patient_id}` has no bookings."
    return "\n".join(f"- day `{b.operation_day_id}` {format_booking(b)}" for b in bookings)


def handle_validate(args: list[str]) -> str:
    validation = scheduler.validate_day(_single_id(args, "validate <day_id>"))
    status = "Valid" if validation.is_valid else f"Invalid ({validation.reason})"
    return f"**{status}**: {validation.message}"


def handle_reschedule(args: list[str]) -> str:
    request = parse_args(RescheduleRequest, args)
    return format_result(scheduler.reschedule(request.booking_id, request.day_id, request.start_time))


def handle_unschedule(args: list[str]) -> str:
    return format_result(scheduler.unschedule(_single_id(args, "unschedule <booking_id>")))


def handle_lock(args: list[str]) -> str:
    day = scheduler.lock_day(_single_id(args, "lock <day_id>"))
    return f"Day `{day.id}` ({day.date}, {day.location}) is locked."


def handle_unlock(args: list[str]) -> str:
    day = scheduler.unlock_day(_single_id(args, "unlock <day_id>"))
    return f"Day `{day.id}` ({day.date}, {day.location}) is unlocked."


def handle_history(args: list[str]) -> str:
    patient_id = _single_id(args, "history <patient_id>")
    records = OpHistoryRepository().find_for_patient(patient_id)
    if not records:
        return f"No operation history for patient `{patient_id}`."
    lines = []
    for r in records:
        kind = r.op_type if r.is_operation else f"consultation ({r.op_type})"
        lines.append(f"- {r.date} {r.start_hour}-{r.end_hour} {kind} at {r.location}, prep {r.prep_type}")
    return "\n".join(lines)


def handle_stats(args: list[str]) -> str:
    """Summarize the operation history for a year (default: this year)."""
    if len(args) > 1 or (args and not args[0].isdigit()):
        raise ValueError("Usage: stats [year]")
    stats = OpHistoryRepository().stats_summary(int(args[0]) if args else None)
    lines = [
        f"**Operations**: {stats.total_operations}, **consultations**: {stats.total_consultations}",
        "",
    ]
    lines += [f"- {op_type}: {n}" for op_type, n in stats.op_type_counts.items()]
    lines += [f"- {location}: {n}" for location, n in stats.location_counts.items()]
    lines += [f"- month {month:02d}: {n}" for month, n in stats.monthly_counts.items()]
    return "\n".join(lines)


def handle_help(args: list[str]) -> str:
    return HELP_TEXT


# Command handlers mapping
COMMAND_HANDLERS = {
    "patients": handle_patients,
    "schedule": handle_schedule,
    "book": handle_book,
    "batch": handle_batch,
    "availability": handle_availability,
    "day": handle_day,
    "patient": handle_patient,
    "validate": handle_validate,
    "reschedule": handle_reschedule,
    "unschedule": handle_unschedule,
    "lock": handle_lock,
    "unlock": handle_unlock,
    "history": handle_history,
    "stats": handle_stats,
    "help": handle_help,
}


def process_command(line: str) -> str:
    """Run one console command and return the response as markdown."""
    command, *args = line.split()
    handler = COMMAND_HANDLERS.get(command.lower())
    if not handler:
        return f"Unknown command `{command}`. Type `help` for the list of commands."
    try:
        return handler(args)
    except ValidationError as e:
        problems = "; ".join(err["msg"] for err in e.errors())
        return f"**Invalid input**: {problems}"
    except SchedulingError as e:
        return f"**Failed** ({e.code}): {e.message}"
    except (ValueError, ReferencedRecordError) as e:
        return str(e)


def main():
    """Main command loop."""
    configure_logging()
    init_database()

    console.print("[bold blue]Procedure Scheduler[/bold blue]")
    console.print("Type 'help' for commands, 'quit' or 'exit' to leave.\n")

    is_tty = sys.stdin.isatty()

    while True:
        try:
            line = console.input("[bold green]>[/bold green] ").strip()
            # Echo input when stdin is piped (not interactive)
            if not is_tty and line:
                console.print(f"[dim]{line}[/dim]")
        except (EOFError, KeyboardInterrupt):
            console.print("\n[bold blue]Goodbye![/bold blue]")
            break

        if not line:
            continue

        if line.lower() in ("quit", "exit"):
            console.print("[bold blue]Goodbye![/bold blue]")
            break

        try:
            with Status("Working...", console=console, spinner="dots"):
                response = process_command(line)
            console.print(Markdown(response), "\n")
        except Exception as e:
            console.print(f"[bold red]Error:[/bold red] {e}\n")


if __name__ == "__main__":
    main()
