"""
Test Suite for the Schedule Store

Covers schedule persistence, validation, entry upserts, employee
management with cascading deletes and the current-schedule pointer.
"""

import pytest
import sys
from pathlib import Path

# Setup import path for src
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_calendar.data_manager import (
    CannotRemoveLastEmployeeError, DuplicateEmployeeError, InvalidMonthError, NotFoundError,
    ScheduleStore, StoreSession, UnknownEmployeeError, ValidationError, generate_id
)
from shift_calendar.models import Employee, Schedule, ScheduleEntry
from shift_calendar.storage import InMemoryStorage, StorageError


class FlakyStorage(InMemoryStorage):
    """In-memory medium that can be told to fail reads or writes"""

    def __init__(self):
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key):
        if self.fail_reads:
            raise StorageError("medium unavailable")
        return super().get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise StorageError("medium unavailable")
        super().set(key, value)


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def store(storage):
    """Clean ScheduleStore with one two-employee schedule"""
    store = ScheduleStore(storage)
    store.save_schedule(Schedule(
        id="s1",
        month=12,
        year=2025,
        employees=[Employee("e1", "John"), Employee("e2", "Jane")],
        entries=[],
    ))
    return store


def make_schedule(schedule_id="s2", **overrides):
    fields = dict(id=schedule_id, month=3, year=2026, employees=[Employee("a", "Alice")], entries=[])
    fields.update(overrides)
    return Schedule(**fields)


# Schedules
def test_save_and_get_round_trip(store):
    schedule = make_schedule(employees=[Employee("a", "Alice"), Employee("b", "Bob")],
                             entries=[ScheduleEntry("a", 1, "J"), ScheduleEntry("b", 2, "V")])
    store.save_schedule(schedule)
    assert store.get_schedule("s2") == schedule


def test_get_missing_schedule_returns_none(store):
    assert store.get_schedule("nope") is None


@pytest.mark.parametrize("overrides", [
    {"id": ""},
    {"month": 0},
    {"year": 0},
    {"employees": []},
    {"employees": [Employee("a", "  ")]},
    {"entries": [ScheduleEntry("a", 32, "J")]},
])
def test_save_rejects_invalid_schedules(store, overrides):
    with pytest.raises(ValidationError):
        store.save_schedule(make_schedule(**overrides))
    assert store.get_schedule("s2") is None


def test_save_rejects_month_out_of_range(store):
    with pytest.raises(InvalidMonthError):
        store.save_schedule(make_schedule(month=13))


def test_save_rejects_inconsistent_records(store):
    with pytest.raises(DuplicateEmployeeError):
        store.save_schedule(make_schedule(employees=[Employee("a", "Alice"), Employee("a", "Again")]))
    with pytest.raises(UnknownEmployeeError):
        store.save_schedule(make_schedule(entries=[ScheduleEntry("ghost", 1, "J")]))
    with pytest.raises(ValidationError):
        store.save_schedule(make_schedule(entries=[ScheduleEntry("a", 1, "J"), ScheduleEntry("a", 1, "N")]))


def test_list_schedules_in_creation_order(store):
    store.save_schedule(make_schedule("s2"))
    store.save_schedule(make_schedule("s3"))
    store.save_schedule(make_schedule("s2", year=2027))

    assert [schedule.id for schedule in store.list_schedules()] == ["s1", "s2", "s3"]
    assert store.get_schedule("s2").year == 2027


def test_list_schedules_skips_missing_records(store, storage):
    store.save_schedule(make_schedule("s2"))
    storage.remove("schedule_s1")

    assert [schedule.id for schedule in store.list_schedules()] == ["s2"]


def test_delete_schedule(store, storage):
    store.save_schedule(make_schedule("s2"))
    store.delete_schedule("s1")

    assert store.get_schedule("s1") is None
    assert storage.get("schedules_list") == ["s2"]
    store.delete_schedule("never-existed")


def test_create_blank_schedule(store):
    schedule = store.create_blank_schedule(6, 2026, ["  Alice Smith ", "", "   ", "Bob"])

    assert [employee.name for employee in schedule.employees] == ["Alice Smith", "Bob"]
    assert len({employee.id for employee in schedule.employees}) == 2
    assert schedule.entries == []
    assert store.get_schedule(schedule.id) == schedule


def test_create_blank_schedule_requires_an_employee(store):
    with pytest.raises(ValidationError):
        store.create_blank_schedule(6, 2026, ["", "  "])


def test_create_blank_schedule_validates_month(store):
    with pytest.raises(InvalidMonthError):
        store.create_blank_schedule(14, 2026, ["Alice"])


def test_generated_ids_are_unique():
    ids = {generate_id() for _ in range(200)}
    assert len(ids) == 200


# Current schedule
def test_current_schedule_pointer(store):
    assert store.get_current_schedule() is None

    store.set_current_schedule("s1")
    assert store.get_current_schedule().id == "s1"

    store.clear_current_schedule()
    assert store.get_current_schedule() is None


def test_set_current_schedule_requires_existing_schedule(store):
    with pytest.raises(NotFoundError):
        store.set_current_schedule("missing")


def test_deleting_current_schedule_clears_pointer(store):
    """
    Why this is important: a pointer left behind after deletion would make
    the editor reopen a schedule that no longer exists.
    """
    store.save_schedule(make_schedule("s2"))
    store.set_current_schedule("s2")

    store.delete_schedule("s1")
    assert store.get_current_schedule().id == "s2"

    store.delete_schedule("s2")
    assert store.get_current_schedule() is None
    assert store.storage.get("currentSchedule") is None


def test_dangling_pointer_resolves_to_none(store, storage):
    store.set_current_schedule("s1")
    storage.remove("schedule_s1")
    assert store.get_current_schedule() is None


def test_sessions_keep_independent_pointers(store, storage):
    other = ScheduleStore(storage, StoreSession("planner-2"))
    store.save_schedule(make_schedule("s2"))

    store.set_current_schedule("s1")
    other.set_current_schedule("s2")

    assert store.get_current_schedule().id == "s1"
    assert other.get_current_schedule().id == "s2"

    other.delete_schedule("s1")
    assert store.get_current_schedule() is None
    assert storage.get("currentSchedule") is None
    assert other.get_current_schedule().id == "s2"


# Entries
def test_add_entry_appends_and_replaces(store):
    store.add_entry("s1", ScheduleEntry("e1", 5, "J"))
    store.add_entry("s1", ScheduleEntry("e2", 5, "N"))
    store.add_entry("s1", ScheduleEntry("e1", 5, "V"))

    schedule = store.get_schedule("s1")
    assert schedule.entries == [ScheduleEntry("e1", 5, "V"), ScheduleEntry("e2", 5, "N")]


def test_add_entry_is_idempotent(store):
    entry = ScheduleEntry("e1", 7, "R")
    store.add_entry("s1", entry)
    store.add_entry("s1", entry)

    assert store.get_entries_for_employee("s1", "e1") == [entry]


def test_update_entry_upserts(store):
    store.update_entry("s1", ScheduleEntry("e2", 9, "F"))
    assert store.get_entry("s1", "e2", 9) == ScheduleEntry("e2", 9, "F")


def test_add_entry_accepts_unknown_codes(store):
    store.add_entry("s1", ScheduleEntry("e1", 3, "ZZ"))
    assert store.get_entry("s1", "e1", 3).code == "ZZ"


@pytest.mark.parametrize("entry", [
    ScheduleEntry("e1", 0, "J"),
    ScheduleEntry("e1", 32, "J"),
    ScheduleEntry("", 3, "J"),
    ScheduleEntry("e1", 3, ""),
])
def test_add_entry_validates_fields(store, entry):
    with pytest.raises(ValidationError):
        store.add_entry("s1", entry)
    assert store.get_schedule("s1").entries == []


def test_add_entry_requires_known_employee(store):
    with pytest.raises(UnknownEmployeeError):
        store.add_entry("s1", ScheduleEntry("ghost", 3, "J"))


def test_add_entry_requires_existing_schedule(store):
    with pytest.raises(NotFoundError):
        store.add_entry("missing", ScheduleEntry("e1", 3, "J"))


def test_remove_entry(store):
    store.add_entry("s1", ScheduleEntry("e1", 1, "J"))
    store.add_entry("s1", ScheduleEntry("e1", 2, "J"))

    store.remove_entry("s1", "e1", 1)
    store.remove_entry("s1", "e1", 25)

    assert store.get_entries_for_employee("s1", "e1") == [ScheduleEntry("e1", 2, "J")]
    with pytest.raises(NotFoundError):
        store.remove_entry("missing", "e1", 2)


def test_entry_queries_on_missing_schedule(store):
    assert store.get_entries_for_employee("missing", "e1") == []
    assert store.get_entry("missing", "e1", 1) is None
    assert store.get_entry("s1", "e1", 1) is None


def test_entries_for_employee_keep_storage_order(store):
    for day in (10, 2, 7):
        store.add_entry("s1", ScheduleEntry("e1", day, "J"))
    assert [entry.date for entry in store.get_entries_for_employee("s1", "e1")] == [10, 2, 7]


# Employees
def test_add_employee(store):
    store.add_employee("s1", Employee("e3", "Zoe"))
    assert [employee.id for employee in store.get_schedule("s1").employees] == ["e1", "e2", "e3"]


def test_add_employee_rejects_duplicates_and_blanks(store):
    with pytest.raises(DuplicateEmployeeError):
        store.add_employee("s1", Employee("e1", "Other John"))
    with pytest.raises(ValidationError):
        store.add_employee("s1", Employee("e9", ""))
    with pytest.raises(NotFoundError):
        store.add_employee("missing", Employee("e9", "Nobody"))


def test_update_employee_keeps_position(store):
    store.update_employee("s1", Employee("e1", "Johnny"))
    assert store.get_schedule("s1").employees == [Employee("e1", "Johnny"), Employee("e2", "Jane")]


def test_update_unknown_employee(store):
    with pytest.raises(NotFoundError):
        store.update_employee("s1", Employee("e9", "Nobody"))
    with pytest.raises(ValidationError):
        store.update_employee("s1", Employee("e1", ""))


def test_remove_employee_cascades_entries(store):
    """
    Why this is important: entries of a removed employee would otherwise
    reference a missing employee and break the consistency of the schedule.
    """
    store.add_entry("s1", ScheduleEntry("e1", 1, "J"))
    store.add_entry("s1", ScheduleEntry("e2", 1, "N"))
    store.add_entry("s1", ScheduleEntry("e1", 2, "V"))

    store.remove_employee("s1", "e1")

    schedule = store.get_schedule("s1")
    assert schedule.employees == [Employee("e2", "Jane")]
    assert schedule.entries == [ScheduleEntry("e2", 1, "N")]


def test_cannot_remove_last_employee(store):
    store.remove_employee("s1", "e2")
    store.add_entry("s1", ScheduleEntry("e1", 4, "J"))
    before = store.get_schedule("s1")

    with pytest.raises(CannotRemoveLastEmployeeError):
        store.remove_employee("s1", "e1")

    assert store.get_schedule("s1") == before


def test_remove_employee_requires_existing_schedule(store):
    with pytest.raises(NotFoundError):
        store.remove_employee("missing", "e1")


# Storage failures
def test_read_failures_are_treated_as_absence(store, storage):
    storage.fail_reads = True
    assert store.get_schedule("s1") is None
    assert store.list_schedules() == []
    assert store.get_current_schedule() is None


def test_write_failures_propagate(store, storage):
    storage.fail_writes = True
    with pytest.raises(StorageError):
        store.add_entry("s1", ScheduleEntry("e1", 1, "J"))

    storage.fail_writes = False
    assert store.get_schedule("s1").entries == []


def test_corrupted_record_is_treated_as_absence(store, storage):
    storage.set("schedule_s1", ["not", "a", "schedule"])
    assert store.get_schedule("s1") is None


def test_generated_ids_are_opaque_tokens():
    first, second = generate_id(), generate_id()
    assert first != second
    assert first.isalnum() and first == first.lower()
    assert len(first) > 12
