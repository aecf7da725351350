"""
Tests for the dependency gate on deletes and facility decommissioning
"""

import pytest

from armory.business.assignments.assignment_coordinator import AssignmentCoordinator
from armory.business.core.entity_manager import EntityManager
from armory.business.deletion.deletion_guard import DeletionGuard
from armory.business.errors import BlockedError, NotFoundError
from armory.business.lifecycle.status_manager import StatusManager
from armory.data.storage_facility import StorageFacility


def test_facility_with_weapons_is_blocked(session, build):
    facility = build.facility(name='Main Armory')
    build.weapon(facility_id=facility['id'])
    build.weapon(facility_id=facility['id'])

    with pytest.raises(BlockedError) as excinfo:
        EntityManager(session).delete('storage_facilities', facility['id'])

    assert excinfo.value.dependents == {'weapons': 2, 'ammunition': 0}
    assert excinfo.value.to_dict()['kind'] == 'Blocked'
    assert session.get(StorageFacility, facility['id']) is not None


def test_facility_with_ammunition_is_blocked(session, build):
    facility = build.facility()
    build.ammunition(facility_id=facility['id'])

    with pytest.raises(BlockedError) as excinfo:
        DeletionGuard(session).before_delete('storage_facilities', facility['id'])
    assert excinfo.value.dependents == {'weapons': 0, 'ammunition': 1}


def test_empty_facility_is_deleted(session, build):
    facility = build.facility()

    EntityManager(session).delete('storage_facilities', facility['id'])

    assert session.get(StorageFacility, facility['id']) is None


def test_delete_of_missing_row_is_not_found(session, build):
    with pytest.raises(NotFoundError):
        EntityManager(session).delete('storage_facilities', 777)


def test_counts_report_zeros(session, build):
    manufacturer = build.manufacturer()
    assert DeletionGuard(session).check('manufacturers', manufacturer['id']) == {'weapons': 0, 'ammunition': 0}
    assert DeletionGuard(session).is_deletable('manufacturers', manufacturer['id'])


def test_manufacturer_with_weapons_is_blocked(session, build):
    manufacturer = build.manufacturer(name='Colt Defense')
    build.weapon(manufacturer_id=manufacturer['id'])

    with pytest.raises(BlockedError):
        EntityManager(session).delete('manufacturers', manufacturer['id'])


def test_unit_with_soldiers_or_custody_is_blocked(session, build):
    unit = build.unit()
    soldier = build.soldier(unit_id=unit['id'])
    weapon = build.weapon()
    AssignmentCoordinator(session).create_assignment(weapon['id'], soldier['id'], unit['id'], '2024-01-01')

    counts = DeletionGuard(session).check('military_units', unit['id'])

    assert counts == {'soldiers': 1, 'weapon_assignments': 1, 'weapons': 1}
    with pytest.raises(BlockedError):
        EntityManager(session).delete('military_units', unit['id'])


def test_weapon_with_history_is_blocked(session, build):
    weapon = build.weapon()
    build.maintenance(weapon['id'])

    with pytest.raises(BlockedError) as excinfo:
        EntityManager(session).delete('weapons', weapon['id'])
    assert excinfo.value.dependents == {'weapon_assignments': 0, 'weapon_maintenance': 1}


def test_soldier_without_assignments_is_deleted(session, build):
    soldier = build.soldier()
    EntityManager(session).delete('soldiers', soldier['id'])
    assert EntityManager(session).list('soldiers') == []


def test_decommissioning_a_stocked_facility_is_blocked(session, build):
    facility = build.facility()
    build.weapon(facility_id=facility['id'])

    with pytest.raises(BlockedError) as excinfo:
        StatusManager(session).change_status('storage_facilities', facility['id'], 'Decommissioned')

    assert excinfo.value.details['dependents'] == {'weapons': 1, 'ammunition': 0}
    assert session.get(StorageFacility, facility['id']).status == 'Active'


def test_decommissioning_an_empty_facility(session, build):
    facility = build.facility()

    change = StatusManager(session).change_status('storage_facilities', facility['id'], 'Decommissioned')

    assert change.to_status == 'Decommissioned'
    assert session.get(StorageFacility, facility['id']).status == 'Decommissioned'
