"""
Tests for the status lifecycle state machines
"""

from datetime import date
from types import SimpleNamespace

import pytest

from armory.business.errors import InvalidTransitionError
from armory.business.lifecycle.state_machine import (
    AmmunitionStateMachine,
    AssignmentStateMachine,
    FacilityStateMachine,
    MaintenanceStateMachine,
    WeaponStateMachine,
)


def test_weapon_statuses_are_mutually_reachable():
    for source in WeaponStateMachine.STATUSES:
        for target in WeaponStateMachine.STATUSES:
            assert WeaponStateMachine.can_transition(source, target), f"{source} -> {target} should be allowed"


def test_same_state_is_a_noop():
    assert AssignmentStateMachine.can_transition('Returned', 'Returned')
    AssignmentStateMachine.validate_transition('Returned', 'Returned')


def test_assignment_outcomes_are_terminal():
    assert AssignmentStateMachine.can_transition('Active', 'Returned')
    assert AssignmentStateMachine.can_transition('Active', 'Lost')
    assert not AssignmentStateMachine.can_transition('Returned', 'Active')
    assert not AssignmentStateMachine.can_transition('Lost', 'Returned')
    assert AssignmentStateMachine.get_allowed_transitions('Lost') == set()


def test_invalid_transition_carries_from_and_to():
    with pytest.raises(InvalidTransitionError) as excinfo:
        MaintenanceStateMachine.validate_transition('Completed', 'In Progress')

    error = excinfo.value
    assert error.from_status == 'Completed'
    assert error.to_status == 'In Progress'
    assert error.to_dict()['kind'] == 'InvalidTransition'
    assert error.http_status == 409


def test_maintenance_flow():
    assert MaintenanceStateMachine.can_transition('Scheduled', 'In Progress')
    assert MaintenanceStateMachine.can_transition('In Progress', 'Completed')
    assert MaintenanceStateMachine.can_transition('Scheduled', 'Cancelled')
    assert MaintenanceStateMachine.can_transition('In Progress', 'Cancelled')
    # Completion has to pass through In Progress
    assert not MaintenanceStateMachine.can_transition('Scheduled', 'Completed')
    assert not MaintenanceStateMachine.can_transition('Cancelled', 'Scheduled')


def test_unknown_status_is_rejected():
    assert WeaponStateMachine.rejection_reason('Active', 'Destroyed') == "unknown status 'Destroyed'"


def test_ammunition_depleted_requires_zero_quantity():
    lot = SimpleNamespace(quantity=10, expiration_date=None, status='Available')
    assert not AmmunitionStateMachine.can_transition('Available', 'Depleted', row=lot)

    lot.quantity = 0
    assert AmmunitionStateMachine.can_transition('Available', 'Depleted', row=lot)


def test_ammunition_expired_requires_past_expiration():
    lot = SimpleNamespace(quantity=10, expiration_date=date(2023, 1, 10), status='Available')

    assert not AmmunitionStateMachine.can_transition('Available', 'Expired', row=lot, on=date(2023, 1, 10))
    assert AmmunitionStateMachine.can_transition('Reserved', 'Expired', row=lot, on=date(2023, 1, 11))


def test_ammunition_derived_status():
    on = date(2024, 6, 1)
    assert AmmunitionStateMachine.derived_status(
        SimpleNamespace(quantity=0, expiration_date=None, status='Available'), on) == 'Depleted'
    assert AmmunitionStateMachine.derived_status(
        SimpleNamespace(quantity=5, expiration_date=date(2024, 5, 31), status='Reserved'), on) == 'Expired'
    assert AmmunitionStateMachine.derived_status(
        SimpleNamespace(quantity=5, expiration_date=date(2024, 6, 1), status='Available'), on) is None
    assert AmmunitionStateMachine.derived_status(
        SimpleNamespace(quantity=0, expiration_date=None, status='Expired'), on) is None


def test_facility_decommissioned_is_terminal():
    for source in ('Active', 'Full', 'Under Maintenance'):
        assert FacilityStateMachine.can_transition(source, 'Decommissioned')
    assert FacilityStateMachine.is_terminal('Decommissioned')
    assert not FacilityStateMachine.can_transition('Decommissioned', 'Active')


def test_facility_full_is_reachable_both_ways():
    assert FacilityStateMachine.can_transition('Active', 'Full')
    assert FacilityStateMachine.can_transition('Full', 'Active')
    assert FacilityStateMachine.can_transition('Under Maintenance', 'Full')
    assert FacilityStateMachine.can_transition('Full', 'Under Maintenance')
    assert 'Inactive' not in FacilityStateMachine.STATUSES
