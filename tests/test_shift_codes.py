import pytest
import re
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_calendar.shift_codes import (
    SHIFT_CODES, ShiftCategory, ShiftCodeId, _check_registry, all_codes, is_all_day, is_overnight,
    lookup
)


EXPECTED_CODES = ['J', 'JC', 'JB', 'N', 'NC', 'NA', 'M', 'CM', 'MM', 'R', 'V', 'X', 'F']


def test_registry_contains_exactly_expected_codes():
    assert [code.code for code in all_codes()] == EXPECTED_CODES
    assert len(SHIFT_CODES) == len(EXPECTED_CODES)


def test_code_field_matches_registry_key():
    for code_id, shift_code in SHIFT_CODES.items():
        assert shift_code.code == code_id.value


def test_times_are_valid_clock_values():
    time_format = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
    for shift_code in all_codes():
        assert time_format.match(shift_code.start_time)
        assert time_format.match(shift_code.end_time)


def test_lookup_known_and_unknown_codes():
    """
    Why this is important: lookup is the boundary where user-entered codes
    meet the registry. Unknown codes must come back as None rather than
    raising, so that synthesis can skip them.
    """
    jour = lookup('J')
    assert jour is not None
    assert (jour.start_time, jour.end_time, jour.description) == ('07:00', '19:30', 'Jour')

    assert lookup('ZZ') is None
    assert lookup('') is None
    assert lookup('j') is None


@pytest.mark.parametrize("code", ['M', 'CM', 'MM', 'R', 'V', 'X'])
def test_all_day_codes(code):
    shift_code = lookup(code)
    assert shift_code.is_all_day
    assert not shift_code.is_overnight
    assert shift_code.category == ShiftCategory.ABSENCE
    assert is_all_day(code)


@pytest.mark.parametrize("code", ['N', 'NC', 'NA'])
def test_night_codes_cross_midnight(code):
    shift_code = lookup(code)
    assert (shift_code.start_time, shift_code.end_time) == ('19:00', '07:30')
    assert shift_code.is_overnight
    assert not shift_code.is_all_day
    assert is_overnight(code)


def test_day_and_training_codes_are_timed_same_day():
    for code in ['J', 'JC', 'JB', 'F']:
        shift_code = lookup(code)
        assert not shift_code.is_all_day
        assert not shift_code.is_overnight

    formation = lookup('F')
    assert (formation.start_time, formation.end_time) == ('08:00', '16:00')
    assert formation.color_tag == 'teal'
    assert formation.category == ShiftCategory.TRAINING


def test_predicates_are_false_for_unknown_codes():
    assert not is_all_day('UNKNOWN')
    assert not is_overnight('UNKNOWN')


def test_expected_colors():
    assert lookup('J').color_tag == 'blue'
    assert lookup('JC').color_tag == 'light-green'
    assert lookup('N').color_tag == 'black'
    assert lookup('V').color_tag == 'orange'
    assert lookup('X').color_tag == 'red'
    assert lookup('R').color_tag == 'yellow'


def test_enum_and_table_are_in_sync():
    assert set(SHIFT_CODES) == set(ShiftCodeId)
    _check_registry(SHIFT_CODES)


def test_incomplete_registry_is_rejected():
    partial = {code_id: code for code_id, code in SHIFT_CODES.items() if code_id is not ShiftCodeId.F}
    with pytest.raises(RuntimeError, match="registry entry: F$"):
        _check_registry(partial)
