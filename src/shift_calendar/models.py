"""
Data structures for Shift Calendar

Employees, schedule entries and monthly schedules, with the camelCase JSON
representation used in persisted records.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Employee:
    """Employee listed on a schedule"""
    id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Employee':
        return cls(
            id=data.get("id", ""),
            name=data.get("name", "")
        )


@dataclass
class ScheduleEntry:
    """Shift code assigned to an employee on one day of the month"""
    employee_id: str
    date: int  # day of month, 1..31
    code: str

    @property
    def key(self):
        return (self.employee_id, self.date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "date": self.date,
            "code": self.code
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduleEntry':
        return cls(
            employee_id=data.get("employeeId", ""),
            date=data.get("date", 0),
            code=data.get("code", "")
        )


@dataclass
class Schedule:
    """Monthly schedule: the roster in display order and its entries"""
    id: str
    month: int  # 1..12
    year: int
    employees: List[Employee] = field(default_factory=list)
    entries: List[ScheduleEntry] = field(default_factory=list)

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        return None

    def has_employee(self, employee_id: str) -> bool:
        return self.get_employee(employee_id) is not None

    def entries_for(self, employee_id: str) -> List[ScheduleEntry]:
        """Entries of one employee, in storage order"""
        return [entry for entry in self.entries if entry.employee_id == employee_id]

    def find_entry(self, employee_id: str, date: int) -> Optional[ScheduleEntry]:
        for entry in self.entries:
            if entry.employee_id == employee_id and entry.date == date:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "month": self.month,
            "year": self.year,
            "employees": [emp.to_dict() for emp in self.employees],
            "entries": [entry.to_dict() for entry in self.entries]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Schedule':
        return cls(
            id=data.get("id", ""),
            month=data.get("month", 0),
            year=data.get("year", 0),
            employees=[Employee.from_dict(emp) for emp in data.get("employees", [])],
            entries=[ScheduleEntry.from_dict(entry) for entry in data.get("entries", [])]
        )
