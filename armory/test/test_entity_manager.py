"""
Tests for generic entity CRUD
"""

from decimal import Decimal

import pytest

from armory.business.core.entity_manager import EntityManager
from armory.business.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    RefError,
    ValidationError,
)
from armory.data.weapon import Weapon
from armory.data.weapon_maintenance import WeaponMaintenance


@pytest.fixture
def entities(session):
    return EntityManager(session)


def test_create_applies_defaults(entities):
    facility = entities.create('storage_facilities', {'name': 'Main Armory', 'capacity': '1000'})

    assert facility['security_level'] == 'Medium'
    assert facility['status'] == 'Active'
    assert facility['capacity'] == 1000
    assert facility['weapon_count'] == 0


def test_create_returns_joined_names(entities, build):
    manufacturer = build.manufacturer(name='Beretta', country='Italy')
    facility = build.facility(name='Field Armory 1')

    weapon = entities.create('weapons', {
        'name': 'M9 Beretta',
        'type': 'Pistol',
        'serial_number': 'W10002',
        'manufacturer_id': manufacturer['id'],
        'facility_id': facility['id'],
        'acquisition_date': '2019-05-20',
    })

    assert weapon['manufacturer_name'] == 'Beretta'
    assert weapon['facility_name'] == 'Field Armory 1'
    assert weapon['assigned_unit_name'] is None
    assert weapon['acquisition_date'] == '2019-05-20'


def test_duplicate_serial_number_conflicts(entities, build):
    build.weapon(serial_number='W10001')

    with pytest.raises(ConflictError) as excinfo:
        build.weapon(serial_number='W10001')
    assert excinfo.value.field == 'serial_number'


def test_update_to_duplicate_serial_conflicts(entities, build):
    build.soldier(serial_number='S20001')
    other = build.soldier(serial_number='S20002')

    with pytest.raises(ConflictError):
        entities.update('soldiers', other['id'], {'serial_number': 'S20001'})


def test_unresolved_reference_is_rejected(entities):
    with pytest.raises(RefError) as excinfo:
        entities.create('weapons', {'name': 'MP5', 'serial_number': 'W10006', 'manufacturer_id': 12})
    assert excinfo.value.field == 'manufacturer_id'
    assert entities.list('weapons') == []


def test_assigned_unit_is_read_only(entities, build):
    unit = build.unit()

    with pytest.raises(ValidationError) as excinfo:
        entities.create('weapons', {'name': 'M4A1', 'serial_number': 'W1', 'assigned_unit_id': unit['id']})
    assert excinfo.value.field == 'assigned_unit_id'

    weapon = build.weapon()
    with pytest.raises(ValidationError):
        entities.update('weapons', weapon['id'], {'assigned_unit_id': unit['id']})

    # Echoing the current value back is harmless
    entities.update('weapons', weapon['id'], {'assigned_unit_id': None, 'caliber': '9mm'})


def test_get_is_repeatable(entities, build):
    weapon = build.weapon()
    assert entities.get('weapons', weapon['id']) == entities.get('weapons', weapon['id'])


def test_get_missing_row_is_not_found(entities):
    with pytest.raises(NotFoundError) as excinfo:
        entities.get('weapons', 31337)
    assert excinfo.value.http_status == 404


def test_unknown_kind_is_a_validation_error(entities):
    with pytest.raises(ValidationError):
        entities.list('tanks')


def test_partial_update_leaves_other_fields(entities, build):
    weapon = build.weapon(caliber='9mm', model='G19')

    updated = entities.update('weapons', weapon['id'], {'last_inspection_date': '2024-01-12'})

    assert updated['caliber'] == '9mm'
    assert updated['model'] == 'G19'
    assert updated['last_inspection_date'] == '2024-01-12'


def test_update_status_goes_through_state_machine(entities, build):
    weapon = build.weapon()
    record = build.maintenance(weapon['id'])

    with pytest.raises(InvalidTransitionError):
        entities.update('weapon_maintenance', record['id'], {'status': 'Completed'})

    entities.update('weapon_maintenance', record['id'], {'status': 'In Progress'})
    done = entities.update('weapon_maintenance', record['id'], {'status': 'Completed', 'end_date': '2024-01-12'})
    assert done['end_date'] == '2024-01-12'


def test_update_applies_fields_before_status_guard(entities, build):
    lot = build.ammunition(quantity=100)

    updated = entities.update('ammunition', lot['id'], {'quantity': 0, 'status': 'Depleted'})

    assert updated['status'] == 'Depleted'
    assert updated['quantity'] == 0


def test_ammunition_cannot_start_depleted_with_stock(entities):
    with pytest.raises(ValidationError):
        entities.create('ammunition', {'name': 'M80', 'quantity': 10, 'status': 'Depleted'})


def test_ammunition_expiration_after_production(entities):
    with pytest.raises(ValidationError) as excinfo:
        entities.create('ammunition', {
            'name': 'M80', 'quantity': 10,
            'production_date': '2022-03-05', 'expiration_date': '2021-03-05',
        })
    assert excinfo.value.field == 'expiration_date'


def test_ammunition_name_falls_back_to_type(entities):
    lot = entities.create('ammunition', {'type': 'Buckshot', 'caliber': '12 Gauge', 'quantity': 3000})
    assert lot['name'] == 'Buckshot'


def test_maintenance_end_date_requires_closed_status(entities, build):
    weapon = build.weapon()
    with pytest.raises(ValidationError):
        build.maintenance(weapon['id'], end_date='2024-01-12')


def test_maintenance_created_completed_is_stamped(entities, build, session):
    weapon = build.weapon()
    record = build.maintenance(
        weapon['id'], start_date='2023-01-15', end_date='2023-01-18', status='Completed', cost='350.75'
    )

    row = session.get(WeaponMaintenance, record['id'])
    assert row.cost == Decimal('350.75')
    assert record['cost'] == '350.75'
    assert record['weapon_name'] == 'Glock 19'


def test_maintenance_end_before_start_is_rejected(entities, build):
    weapon = build.weapon()
    with pytest.raises(ValidationError):
        build.maintenance(weapon['id'], start_date='2023-01-15', end_date='2023-01-10', status='Cancelled')


def test_assignments_route_through_custody(entities, build, session):
    unit = build.unit()
    soldier = build.soldier(unit_id=unit['id'])
    weapon = build.weapon()

    assignment = entities.create('weapon_assignments', {
        'weapon_id': weapon['id'], 'soldier_id': soldier['id'], 'unit_id': unit['id'],
        'assignment_date': '2024-01-01',
    })
    assert assignment['status'] == 'Active'
    assert assignment['unit_name'] == unit['name']
    assert session.get(Weapon, weapon['id']).assigned_unit_id == unit['id']

    entities.update('weapon_assignments', assignment['id'], {'status': 'Returned', 'return_date': '2024-01-05'})
    assert session.get(Weapon, weapon['id']).assigned_unit_id is None

    entities.delete('weapon_assignments', assignment['id'])
    assert entities.list('weapon_assignments') == []


def test_delete_then_get_is_not_found(entities, build):
    manufacturer = build.manufacturer()
    entities.delete('manufacturers', manufacturer['id'])
    with pytest.raises(NotFoundError):
        entities.get('manufacturers', manufacturer['id'])


def test_status_update_without_lifecycle(entities, build):
    soldier = build.soldier()
    manufacturer = build.manufacturer(name='Beretta')
    unit = build.unit(name='82nd Airborne Division')

    on_leave = entities.update('soldiers', soldier['id'], {'status': 'On Leave'})
    inactive = entities.update('soldiers', soldier['id'], {'status': 'inactive'})
    retired = entities.update('manufacturers', manufacturer['id'], {'status': 'Inactive'})
    disbanded = entities.update('military_units', unit['id'], {'status': 'Inactive', 'location': 'Fort Liberty'})

    assert on_leave['status'] == 'On Leave'
    assert inactive['status'] == 'Inactive'
    assert retired['status'] == 'Inactive'
    assert (disbanded['status'], disbanded['location']) == ('Inactive', 'Fort Liberty')

    with pytest.raises(ValidationError):
        entities.update('soldiers', soldier['id'], {'status': 'Deployed'})


def test_facility_can_be_full(entities, build):
    facility = build.facility(status='Full')
    reopened = entities.update('storage_facilities', facility['id'], {'status': 'Active'})

    assert facility['status'] == 'Full'
    assert reopened['status'] == 'Active'

    with pytest.raises(ValidationError):
        build.facility(status='Inactive')
