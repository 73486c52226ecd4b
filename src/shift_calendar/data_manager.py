"""
Schedule Store for Shift Calendar

Handles persistence and CRUD operations for schedules, their employees and
entries, and the "current schedule" pointer of an editing session.

Every mutation reads the whole schedule record, validates the change and
writes the whole record back. There is no locking or versioning: two
interleaved read-modify-write cycles on the same schedule lose one of the
updates (last write wins).
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .models import Employee, Schedule, ScheduleEntry
from .storage import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "schedule_"
SCHEDULES_LIST_KEY = "schedules_list"
CURRENT_SCHEDULE_KEY = "currentSchedule"

MIN_DAY = 1
MAX_DAY = 31


class ScheduleStoreError(Exception):
    """Base exception for ScheduleStore operations"""
    pass


class ValidationError(ScheduleStoreError):
    """Raised when a required field is missing or out of range"""
    pass


class InvalidMonthError(ValidationError):
    """Raised when a schedule month is outside 1..12"""
    pass


class NotFoundError(ScheduleStoreError):
    """Raised when a referenced schedule or employee does not exist"""
    pass


class DuplicateEmployeeError(ScheduleStoreError):
    """Raised when an employee id is already used in the schedule"""
    pass


class CannotRemoveLastEmployeeError(ScheduleStoreError):
    """Raised when removing the only employee of a schedule"""
    pass


class UnknownEmployeeError(ScheduleStoreError):
    """Raised when an entry references an employee absent from the schedule"""
    pass


@dataclass
class StoreSession:
    """Editing session owning a current-schedule pointer"""
    name: Optional[str] = None

    @property
    def current_key(self) -> str:
        if not self.name:
            return CURRENT_SCHEDULE_KEY
        return f"{CURRENT_SCHEDULE_KEY}:{self.name}"


def generate_id() -> str:
    """Opaque id: hex millisecond timestamp followed by a random uuid4 suffix"""
    return f"{int(time.time() * 1000):x}{uuid.uuid4().hex[:12]}"


class ScheduleStore:
    """Manages schedule persistence and keeps every stored schedule consistent"""

    def __init__(self, storage: KeyValueStorage, session: Optional[StoreSession] = None):
        self.storage = storage
        self.session = session or StoreSession()

    # Storage access
    def _schedule_key(self, schedule_id: str) -> str:
        return f"{STORAGE_PREFIX}{schedule_id}"

    def _read(self, key: str) -> Optional[Any]:
        """Read a raw value; medium failures are logged and treated as absence"""
        try:
            return self.storage.get(key)
        except StorageError as e:
            logger.error(f"Error reading '{key}': {e}")
            return None

    def _write(self, key: str, value: Any):
        try:
            self.storage.set(key, value)
        except StorageError as e:
            logger.error(f"Error writing '{key}': {e}", exc_info=True)
            raise

    def _read_index(self) -> List[str]:
        index = self._read(SCHEDULES_LIST_KEY)
        if not isinstance(index, list):
            if index is not None:
                logger.error(f"Ignoring malformed schedule index: {index!r}")
            return []
        return [schedule_id for schedule_id in index if isinstance(schedule_id, str)]

    def _require_schedule(self, schedule_id: str) -> Schedule:
        schedule = self.get_schedule(schedule_id)
        if schedule is None:
            raise NotFoundError(f"Schedule with id {schedule_id} not found")
        return schedule

    # Validation
    def _validate_schedule(self, schedule: Schedule):
        if not schedule.id or not schedule.month or not schedule.year:
            raise ValidationError("Invalid schedule: missing required fields")
        if not isinstance(schedule.month, int) or not 1 <= schedule.month <= 12:
            raise InvalidMonthError("Invalid schedule: month must be between 1 and 12")
        if not isinstance(schedule.year, int):
            raise ValidationError("Invalid schedule: year must be an integer")
        if not schedule.employees:
            raise ValidationError("Invalid schedule: at least one employee is required")

        seen_employees = set()
        for employee in schedule.employees:
            self._validate_employee(employee)
            if employee.id in seen_employees:
                raise DuplicateEmployeeError(f"Employee {employee.id} appears twice in schedule")
            seen_employees.add(employee.id)

        seen_entries = set()
        for entry in schedule.entries:
            self._validate_entry_fields(entry)
            if entry.employee_id not in seen_employees:
                raise UnknownEmployeeError(f"Entry references employee {entry.employee_id} "
                                           f"not found in schedule")
            if entry.key in seen_entries:
                raise ValidationError(f"Duplicate entry for employee {entry.employee_id} "
                                      f"on day {entry.date}")
            seen_entries.add(entry.key)

    def _validate_employee(self, employee: Employee):
        if not employee.id or not employee.name or not employee.name.strip():
            raise ValidationError("Invalid employee: missing required fields")

    def _validate_entry_fields(self, entry: ScheduleEntry):
        # Codes are accepted as-is; unknown codes are only reported when exporting
        if not entry.employee_id or not entry.code or not entry.date:
            raise ValidationError("Invalid entry: missing required fields")
        if not isinstance(entry.date, int) or not MIN_DAY <= entry.date <= MAX_DAY:
            raise ValidationError(f"Invalid entry: date must be between {MIN_DAY} and {MAX_DAY}")

    # Schedule Management
    def get_schedule(self, schedule_id: str) -> Optional[Schedule]:
        """Get schedule by ID, or None when it is missing or unreadable"""
        data = self._read(self._schedule_key(schedule_id))
        if data is None:
            return None
        try:
            return Schedule.from_dict(data)
        except (AttributeError, KeyError, TypeError) as e:
            logger.error(f"Error decoding schedule {schedule_id}: {e}")
            return None

    def save_schedule(self, schedule: Schedule) -> Schedule:
        """Validate and persist a schedule, registering new ids in the index"""
        self._validate_schedule(schedule)

        self._write(self._schedule_key(schedule.id), schedule.to_dict())

        index = self._read_index()
        if schedule.id not in index:
            index.append(schedule.id)
            self._write(SCHEDULES_LIST_KEY, index)
            logger.info(f"Registered new schedule {schedule.id} ({schedule.year}-{schedule.month:02d})")

        return schedule

    def list_schedules(self) -> List[Schedule]:
        """All indexed schedules, skipping ids whose record is missing"""
        schedules = []
        for schedule_id in self._read_index():
            schedule = self.get_schedule(schedule_id)
            if schedule is not None:
                schedules.append(schedule)
        return schedules

    def delete_schedule(self, schedule_id: str):
        """Delete a schedule, its index entry and every session pointer targeting it"""
        try:
            self.storage.remove(self._schedule_key(schedule_id))

            index = self._read_index()
            if schedule_id in index:
                self._write(SCHEDULES_LIST_KEY, [sid for sid in index if sid != schedule_id])

            for key in self.storage.keys():
                if key != CURRENT_SCHEDULE_KEY and not key.startswith(f"{CURRENT_SCHEDULE_KEY}:"):
                    continue
                if self._read(key) == schedule_id:
                    self.storage.remove(key)
        except StorageError as e:
            logger.error(f"Error deleting schedule {schedule_id}: {e}", exc_info=True)
            raise

        logger.info(f"Deleted schedule {schedule_id}")

    def create_blank_schedule(self, month: int, year: int, employee_names: Iterable[str]) -> Schedule:
        """
        Create and persist an empty schedule for a month.

        Names are trimmed and blank names dropped; each remaining name gets a
        freshly generated employee id.
        """
        employees = [Employee(id=generate_id(), name=name.strip())
                     for name in employee_names if name and name.strip()]
        if not employees:
            raise ValidationError("At least one employee is required")

        schedule = Schedule(id=generate_id(), month=month, year=year, employees=employees, entries=[])
        return self.save_schedule(schedule)

    # Current Schedule
    def set_current_schedule(self, schedule_id: str):
        self._require_schedule(schedule_id)
        self._write(self.session.current_key, schedule_id)

    def get_current_schedule(self) -> Optional[Schedule]:
        """Resolve the session pointer; None when unset or dangling"""
        current_id = self._read(self.session.current_key)
        if not current_id or not isinstance(current_id, str):
            return None
        return self.get_schedule(current_id)

    def clear_current_schedule(self):
        self.storage.remove(self.session.current_key)

    # Entry Management
    def add_entry(self, schedule_id: str, entry: ScheduleEntry) -> ScheduleEntry:
        """Insert an entry, replacing in place any entry for the same employee and day"""
        schedule = self._require_schedule(schedule_id)

        self._validate_entry_fields(entry)
        if not schedule.has_employee(entry.employee_id):
            raise UnknownEmployeeError(f"Invalid entry: employee {entry.employee_id} not found in schedule")

        for index, existing in enumerate(schedule.entries):
            if existing.key == entry.key:
                schedule.entries[index] = entry
                break
        else:
            schedule.entries.append(entry)

        self.save_schedule(schedule)
        return entry

    def update_entry(self, schedule_id: str, entry: ScheduleEntry) -> ScheduleEntry:
        """Same as add_entry, which already replaces existing entries"""
        return self.add_entry(schedule_id, entry)

    def remove_entry(self, schedule_id: str, employee_id: str, date: int):
        schedule = self._require_schedule(schedule_id)
        schedule.entries = [entry for entry in schedule.entries
                            if not (entry.employee_id == employee_id and entry.date == date)]
        self.save_schedule(schedule)

    def get_entries_for_employee(self, schedule_id: str, employee_id: str) -> List[ScheduleEntry]:
        schedule = self.get_schedule(schedule_id)
        if schedule is None:
            return []
        return schedule.entries_for(employee_id)

    def get_entry(self, schedule_id: str, employee_id: str, date: int) -> Optional[ScheduleEntry]:
        schedule = self.get_schedule(schedule_id)
        if schedule is None:
            return None
        return schedule.find_entry(employee_id, date)

    # Employee Management
    def add_employee(self, schedule_id: str, employee: Employee) -> Employee:
        schedule = self._require_schedule(schedule_id)

        self._validate_employee(employee)
        if schedule.has_employee(employee.id):
            raise DuplicateEmployeeError(f"Employee {employee.id} already exists in schedule")

        schedule.employees.append(employee)
        self.save_schedule(schedule)
        return employee

    def update_employee(self, schedule_id: str, employee: Employee) -> Employee:
        """Replace an employee record, keeping its position in the roster"""
        schedule = self._require_schedule(schedule_id)

        self._validate_employee(employee)
        for index, existing in enumerate(schedule.employees):
            if existing.id == employee.id:
                schedule.employees[index] = employee
                break
        else:
            raise NotFoundError(f"Employee {employee.id} not found in schedule")

        self.save_schedule(schedule)
        return employee

    def remove_employee(self, schedule_id: str, employee_id: str):
        """Remove an employee together with all of their entries"""
        schedule = self._require_schedule(schedule_id)

        if len(schedule.employees) <= 1:
            raise CannotRemoveLastEmployeeError("Cannot remove the last employee")

        schedule.employees = [emp for emp in schedule.employees if emp.id != employee_id]
        schedule.entries = [entry for entry in schedule.entries if entry.employee_id != employee_id]

        self.save_schedule(schedule)
