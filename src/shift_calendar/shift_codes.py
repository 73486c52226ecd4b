"""
Shift Code Registry for Shift Calendar

Defines the closed set of shift codes used in schedules, with their time
windows, descriptions and display colors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


ALL_DAY_START = "00:00"
ALL_DAY_END = "23:59"


class ShiftCategory(Enum):
    DAY = "day"
    NIGHT = "night"
    ABSENCE = "absence"
    TRAINING = "training"


class ShiftCodeId(Enum):
    """Every code a schedule entry may carry"""
    J = "J"
    JC = "JC"
    JB = "JB"
    N = "N"
    NC = "NC"
    NA = "NA"
    M = "M"
    CM = "CM"
    MM = "MM"
    R = "R"
    V = "V"
    X = "X"
    F = "F"


@dataclass(frozen=True)
class ShiftCode:
    """Time window and classification of a shift code"""
    code: str
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    description: str
    color_tag: str
    category: ShiftCategory

    @property
    def is_all_day(self) -> bool:
        return self.start_time == ALL_DAY_START and self.end_time == ALL_DAY_END

    @property
    def is_overnight(self) -> bool:
        # "HH:MM" strings compare in clock order
        return self.start_time > self.end_time


def _day(code: ShiftCodeId, description: str, color: str) -> ShiftCode:
    return ShiftCode(code.value, "07:00", "19:30", description, color, ShiftCategory.DAY)


def _night(code: ShiftCodeId, description: str, color: str) -> ShiftCode:
    return ShiftCode(code.value, "19:00", "07:30", description, color, ShiftCategory.NIGHT)


def _absence(code: ShiftCodeId, description: str, color: str) -> ShiftCode:
    return ShiftCode(code.value, ALL_DAY_START, ALL_DAY_END, description, color, ShiftCategory.ABSENCE)


SHIFT_CODES: Dict[ShiftCodeId, ShiftCode] = {
    # Day shifts and variants
    ShiftCodeId.J: _day(ShiftCodeId.J, "Jour", "blue"),
    ShiftCodeId.JC: _day(ShiftCodeId.JC, "Jour jumelé", "light-green"),
    ShiftCodeId.JB: _day(ShiftCodeId.JB, "Jour de jumelage", "dark-green"),

    # Night shifts, ending the next morning
    ShiftCodeId.N: _night(ShiftCodeId.N, "Nuit", "black"),
    ShiftCodeId.NC: _night(ShiftCodeId.NC, "Nuit jumelée", "dark-grey"),
    ShiftCodeId.NA: _night(ShiftCodeId.NA, "Nuit de jumelage", "black"),

    # Leave and absences
    ShiftCodeId.M: _absence(ShiftCodeId.M, "Maladie", "purple"),
    ShiftCodeId.CM: _absence(ShiftCodeId.CM, "Congé maternité", "pink"),
    ShiftCodeId.MM: _absence(ShiftCodeId.MM, "Arrêt maternité", "dark-pink"),
    ShiftCodeId.R: _absence(ShiftCodeId.R, "Repos", "yellow"),
    ShiftCodeId.V: _absence(ShiftCodeId.V, "Vacances", "orange"),
    ShiftCodeId.X: _absence(ShiftCodeId.X, "Bloqué", "red"),

    # Training
    ShiftCodeId.F: ShiftCode(ShiftCodeId.F.value, "08:00", "16:00", "Formation", "teal",
                             ShiftCategory.TRAINING),
}


def _check_registry(table: Dict[ShiftCodeId, ShiftCode]) -> None:
    missing = [code_id.value for code_id in ShiftCodeId if code_id not in table]
    if missing:
        raise RuntimeError(f"Shift codes without a registry entry: {', '.join(missing)}")


# Fails at import time if a code is added to the enum without a table entry
_check_registry(SHIFT_CODES)


def lookup(code: str) -> Optional[ShiftCode]:
    """Return the registry entry for a code string, or None when it is unknown"""
    try:
        code_id = ShiftCodeId(code)
    except ValueError:
        return None
    return SHIFT_CODES[code_id]


def all_codes() -> List[ShiftCode]:
    """Registry entries in declaration order"""
    return [SHIFT_CODES[code_id] for code_id in ShiftCodeId]


def is_all_day(code: str) -> bool:
    shift_code = lookup(code)
    return shift_code is not None and shift_code.is_all_day


def is_overnight(code: str) -> bool:
    shift_code = lookup(code)
    return shift_code is not None and shift_code.is_overnight
