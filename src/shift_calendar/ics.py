"""
iCalendar Document Builder for Shift Calendar

Wraps synthesized events into VCALENDAR documents, one per employee or one
for the whole schedule, and derives the filenames they are exported under.
"""

from datetime import date, datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import re

from .events import CalendarEvent, EventSynthesizer
from .models import Employee, Schedule

CRLF = "\r\n"
ICS_EXTENSION = ".ics"
DEFAULT_PRODUCT_ID = "CHUV Planning//Digitalizer"
DEFAULT_LOCALE = "fr"

# Month names as used in exported filenames (lowercase, no accents)
MONTH_NAMES: Dict[str, List[str]] = {
    "fr": ["janvier", "fevrier", "mars", "avril", "mai", "juin",
           "juillet", "aout", "septembre", "octobre", "novembre", "decembre"],
    "en": ["january", "february", "march", "april", "may", "june",
           "july", "august", "september", "october", "november", "december"],
    "de": ["januar", "februar", "maerz", "april", "mai", "juni",
           "juli", "august", "september", "oktober", "november", "dezember"],
}


def escape_text(text: str) -> str:
    """Escape a free-text property value"""
    return (text.replace("\\", "\\\\")
                .replace(";", "\\;")
                .replace(",", "\\,")
                .replace("\r\n", "\\n")
                .replace("\r", "\\n")
                .replace("\n", "\\n"))


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%SZ")


def format_date(value: date) -> str:
    return value.strftime("%Y%m%d")


def month_name(month: int, locale: str = DEFAULT_LOCALE) -> str:
    names = MONTH_NAMES.get(locale, MONTH_NAMES[DEFAULT_LOCALE])
    return names[month - 1]


def employee_filename(employee: Employee, month: int, year: int,
                      locale: str = DEFAULT_LOCALE) -> str:
    safe_name = re.sub(r"\s+", "_", employee.name)
    return f"{safe_name}_{month_name(month, locale)}_{year}{ICS_EXTENSION}"


def aggregate_filename(month: int, year: int, locale: str = DEFAULT_LOCALE) -> str:
    return f"Planning_{month_name(month, locale)}_{year}{ICS_EXTENSION}"


@dataclass
class CalendarDocument:
    """A VCALENDAR document and the warnings raised while building it"""
    events: List[CalendarEvent] = field(default_factory=list)
    product_id: str = DEFAULT_PRODUCT_ID
    warnings: List[str] = field(default_factory=list)

    def to_lines(self) -> List[str]:
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:-//{self.product_id}//EN",
            "CALSCALE:GREGORIAN",
            "METHOD:PUBLISH",
        ]
        for event in self.events:
            lines.extend(self._event_lines(event))
        lines.append("END:VCALENDAR")
        return lines

    def to_ics(self) -> str:
        return CRLF.join(self.to_lines()) + CRLF

    @staticmethod
    def _event_lines(event: CalendarEvent) -> List[str]:
        if event.all_day:
            start = f"DTSTART;VALUE=DATE:{format_date(event.start)}"
            end = f"DTEND;VALUE=DATE:{format_date(event.end)}"
        else:
            # Wall-clock values are written as-is, no timezone conversion
            start = f"DTSTART:{format_timestamp(event.start)}"
            end = f"DTEND:{format_timestamp(event.end)}"

        return [
            "BEGIN:VEVENT",
            f"UID:{event.uid}",
            f"DTSTAMP:{format_timestamp(event.stamp)}",
            start,
            end,
            f"SUMMARY:{escape_text(event.summary)}",
            f"DESCRIPTION:{escape_text(event.description)}",
            "END:VEVENT",
        ]


class CalendarDocumentBuilder:
    """Builds per-employee and whole-schedule calendar documents"""

    def __init__(self, synthesizer: Optional[EventSynthesizer] = None,
                 product_id: str = DEFAULT_PRODUCT_ID, locale: str = DEFAULT_LOCALE):
        self.synthesizer = synthesizer or EventSynthesizer()
        self.product_id = product_id
        self.locale = locale

    def build_employee_document(self, schedule: Schedule,
                                employee: Employee) -> Optional[CalendarDocument]:
        """Document for one employee, or None when they have no entries"""
        if not schedule.entries_for(employee.id):
            return None

        result = self.synthesizer.synthesize(schedule, [employee])
        return CalendarDocument(events=result.events, product_id=self.product_id,
                                warnings=result.warnings)

    def build_aggregate_document(self, schedule: Schedule) -> CalendarDocument:
        """Document holding the events of every employee on the roster"""
        result = self.synthesizer.synthesize(schedule)
        return CalendarDocument(events=result.events, product_id=self.product_id,
                                warnings=result.warnings)

    def build_all_employee_documents(self, schedule: Schedule) -> List[Tuple[Employee, CalendarDocument]]:
        """One document per employee that has entries, in roster order"""
        documents = []
        for employee in schedule.employees:
            document = self.build_employee_document(schedule, employee)
            if document is not None:
                documents.append((employee, document))
        return documents

    def employee_filename(self, schedule: Schedule, employee: Employee) -> str:
        return employee_filename(employee, schedule.month, schedule.year, self.locale)

    def aggregate_filename(self, schedule: Schedule) -> str:
        return aggregate_filename(schedule.month, schedule.year, self.locale)
