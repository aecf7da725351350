"""
Tests for field parsing and row cleaning
"""

from datetime import date
from decimal import Decimal

import pytest

from armory.business.core.entity_registry import get_kind
from armory.business.errors import ValidationError
from armory.business.validation.field_validator import (
    parse_choice,
    parse_date,
    parse_money,
    parse_non_negative_int,
    parse_reference,
    require_order,
)


def test_parse_date_accepts_iso_dates():
    assert parse_date('d', '2024-01-01') == date(2024, 1, 1)
    assert parse_date('d', ' 2024-01-01 ') == date(2024, 1, 1)
    assert parse_date('d', '') is None
    assert parse_date('d', None) is None


def test_parse_date_rejects_garbage():
    with pytest.raises(ValidationError) as excinfo:
        parse_date('assignment_date', '01/02/2024')
    assert excinfo.value.field == 'assignment_date'


def test_parse_date_rejects_other_iso_forms():
    for value in ('20240101', '2024-01-01T23:59:59.000Z', '2024-W01-1', '2024-02-30'):
        with pytest.raises(ValidationError):
            parse_date('return_date', value)


def test_parse_money_keeps_two_fraction_digits():
    assert parse_money('cost', '85.5') == Decimal('85.50')
    assert parse_money('cost', 350.75) == Decimal('350.75')

    with pytest.raises(ValidationError):
        parse_money('cost', '12.345')
    with pytest.raises(ValidationError):
        parse_money('cost', '-1')
    with pytest.raises(ValidationError):
        parse_money('cost', 'NaN')


def test_parse_non_negative_int():
    assert parse_non_negative_int('capacity', '250') == 250
    assert parse_non_negative_int('capacity', 0) == 0

    with pytest.raises(ValidationError):
        parse_non_negative_int('capacity', -5)
    with pytest.raises(ValidationError):
        parse_non_negative_int('capacity', 2.5)
    with pytest.raises(ValidationError):
        parse_non_negative_int('capacity', True)


def test_parse_reference():
    assert parse_reference('unit_id', '3') == 3
    assert parse_reference('unit_id', None) is None
    with pytest.raises(ValidationError):
        parse_reference('unit_id', 'abc')


def test_parse_choice_is_case_insensitive_and_maps_aliases():
    parser = parse_choice(('Active', 'Under Maintenance'), {'UnderMaintenance': 'Under Maintenance'})

    assert parser('status', 'active') == 'Active'
    assert parser('status', 'UnderMaintenance') == 'Under Maintenance'
    with pytest.raises(ValidationError):
        parser('status', 'Broken')


def test_facility_accepts_legacy_operational_status():
    cleaned = get_kind('storage_facilities').cleaner.clean({'name': 'Main Armory', 'status': 'Operational'})
    assert cleaned['status'] == 'Active'


def test_clean_applies_named_defaults():
    cleaned = get_kind('storage_facilities').cleaner.clean({'name': 'Main Armory'})

    assert cleaned['security_level'] == 'Medium'
    assert cleaned['status'] == 'Active'
    assert cleaned['capacity'] is None


def test_clean_enforces_required_fields():
    with pytest.raises(ValidationError) as excinfo:
        get_kind('weapons').cleaner.clean({'name': 'M4A1 Carbine'})
    assert excinfo.value.field == 'serial_number'


def test_partial_clean_leaves_absent_fields_out():
    cleaned = get_kind('weapons').cleaner.clean({'caliber': '5.56mm', 'unknown': 'ignored'}, partial=True)
    assert cleaned == {'caliber': '5.56mm'}


def test_partial_clean_refuses_to_blank_a_defaulted_field():
    with pytest.raises(ValidationError):
        get_kind('weapons').cleaner.clean({'status': None}, partial=True)


def test_require_order():
    require_order('start_date', date(2024, 1, 1), 'end_date', None)
    require_order('start_date', date(2024, 1, 1), 'end_date', date(2024, 1, 1))
    with pytest.raises(ValidationError) as excinfo:
        require_order('start_date', date(2024, 1, 2), 'end_date', date(2024, 1, 1))
    assert excinfo.value.field == 'end_date'
