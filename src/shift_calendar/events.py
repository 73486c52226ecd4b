"""
Event Synthesis for Shift Calendar

Turns schedule entries into calendar events: one timed event per working
shift (night shifts end the next morning) and one all-day event per run of
consecutive days carrying the same absence code.
"""

from datetime import date, datetime, time, timedelta, timezone
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union
import logging

from .models import Employee, Schedule, ScheduleEntry
from .shift_codes import ShiftCode, lookup

logger = logging.getLogger(__name__)

DEFAULT_UID_DOMAIN = "chuv-planning"


@dataclass
class CalendarEvent:
    """A single calendar event ready to be serialized"""
    uid: str
    stamp: datetime  # generation time, UTC
    start: Union[date, datetime]
    end: Union[date, datetime]  # exclusive for all-day events
    all_day: bool
    summary: str
    description: str
    employee_id: str
    code: str


@dataclass
class AllDaySpan:
    """Run of consecutive days sharing one all-day code"""
    start: int
    end: int
    code: str

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass
class SynthesisResult:
    """Events produced for a schedule and the entries that were skipped"""
    events: List[CalendarEvent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def parse_clock(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def group_all_day_entries(entries: List[ScheduleEntry]) -> List[AllDaySpan]:
    """
    Merge consecutive same-code entries into spans.

    Entries are ordered by date first; a change of code or a missing day
    closes the current span.
    """
    ordered = sorted(entries, key=lambda entry: entry.date)
    if not ordered:
        return []

    spans = []
    current = AllDaySpan(ordered[0].date, ordered[0].date, ordered[0].code)
    for entry in ordered[1:]:
        if entry.code == current.code and entry.date == current.end + 1:
            current.end = entry.date
        else:
            spans.append(current)
            current = AllDaySpan(entry.date, entry.date, entry.code)
    spans.append(current)

    return spans


class EventSynthesizer:
    """Builds calendar events from the entries of a schedule"""

    def __init__(self, uid_domain: str = DEFAULT_UID_DOMAIN,
                 clock: Optional[Callable[[], datetime]] = None):
        self.uid_domain = uid_domain
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def synthesize(self, schedule: Schedule,
                   employees: Optional[List[Employee]] = None) -> SynthesisResult:
        """
        Synthesize events for the given employees of a schedule.

        Args:
            schedule: Schedule providing the month context and the entries
            employees: Employees to include; the whole roster when omitted

        Returns:
            SynthesisResult with timed events first (roster order, then date
            order), followed by the all-day events of each employee
        """
        result = SynthesisResult()
        stamp = self.clock().astimezone(timezone.utc).replace(microsecond=0)
        selected = schedule.employees if employees is None else employees

        timed: List[Tuple[Employee, ScheduleEntry, ShiftCode, date]] = []
        all_day: Dict[str, List[ScheduleEntry]] = {}

        for employee in selected:
            employee_entries = sorted(schedule.entries_for(employee.id), key=lambda e: e.date)
            all_day[employee.id] = []
            for entry in employee_entries:
                shift_code = lookup(entry.code)
                if shift_code is None:
                    self._warn(result, f"Unknown schedule code '{entry.code}' for employee "
                                       f"{employee.id} on day {entry.date}, entry skipped")
                    continue
                day = self._resolve_date(schedule, entry, result)
                if day is None:
                    continue
                if shift_code.is_all_day:
                    all_day[employee.id].append(entry)
                else:
                    timed.append((employee, entry, shift_code, day))

        if employees is None:
            self._warn_orphan_entries(schedule, result)

        for employee, entry, shift_code, day in timed:
            result.events.append(self._timed_event(employee, shift_code, day, stamp))

        for employee in selected:
            for span in group_all_day_entries(all_day[employee.id]):
                result.events.append(self._all_day_event(employee, span, schedule, stamp))

        return result

    def _resolve_date(self, schedule: Schedule, entry: ScheduleEntry,
                      result: SynthesisResult) -> Optional[date]:
        try:
            return date(schedule.year, schedule.month, entry.date)
        except (TypeError, ValueError):
            self._warn(result, f"Day {entry.date} does not exist in {schedule.year}-{schedule.month:02d}, "
                               f"entry for employee {entry.employee_id} skipped")
            return None

    def _warn_orphan_entries(self, schedule: Schedule, result: SynthesisResult):
        roster = {employee.id for employee in schedule.employees}
        for entry in schedule.entries:
            if entry.employee_id not in roster:
                self._warn(result, f"Entry on day {entry.date} references unknown employee "
                                   f"{entry.employee_id}, entry skipped")

    def _warn(self, result: SynthesisResult, message: str):
        logger.warning(message)
        result.warnings.append(message)

    def _timed_event(self, employee: Employee, shift_code: ShiftCode, day: date,
                     stamp: datetime) -> CalendarEvent:
        start = datetime.combine(day, parse_clock(shift_code.start_time))
        end_day = day + timedelta(days=1) if shift_code.is_overnight else day
        end = datetime.combine(end_day, parse_clock(shift_code.end_time))

        return CalendarEvent(
            uid=f"shift-{start:%Y%m%dT%H%M%S}-{end:%Y%m%dT%H%M%S}-{employee.id}-{shift_code.code}@{self.uid_domain}",
            stamp=stamp,
            start=start,
            end=end,
            all_day=False,
            summary=f"{shift_code.description} - {employee.name}",
            description=f"{shift_code.code}: {shift_code.description}",
            employee_id=employee.id,
            code=shift_code.code
        )

    def _all_day_event(self, employee: Employee, span: AllDaySpan, schedule: Schedule,
                       stamp: datetime) -> CalendarEvent:
        shift_code = lookup(span.code)
        start = date(schedule.year, schedule.month, span.start)
        end = date(schedule.year, schedule.month, span.end) + timedelta(days=1)

        return CalendarEvent(
            uid=f"allday-{start:%Y%m%d}-{end:%Y%m%d}-{employee.id}-{span.code}@{self.uid_domain}",
            stamp=stamp,
            start=start,
            end=end,
            all_day=True,
            summary=f"{shift_code.description} - {employee.name}",
            description=f"{shift_code.code}: {shift_code.description}",
            employee_id=employee.id,
            code=span.code
        )
