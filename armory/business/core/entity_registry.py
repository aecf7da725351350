"""
Entity registry

One EntityKind per table the core manages: which model backs it, which
fields callers may write and how they are coerced, which foreign keys must
resolve, which columns are unique, and which state machine owns its status.

DEFAULTS holds the named per-entity defaults applied on create.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Type

from armory.business.errors import ValidationError
from armory.business.lifecycle.state_machine import (
    AmmunitionStateMachine,
    AssignmentStateMachine,
    FacilityStateMachine,
    MaintenanceStateMachine,
    StatusStateMachine,
    WeaponStateMachine,
)
from armory.business.validation.field_validator import (
    FieldSpec,
    RowCleaner,
    parse_choice,
    parse_date,
    parse_money,
    parse_non_negative_int,
    parse_reference,
    parse_text,
)
from armory.data.ammunition import Ammunition
from armory.data.manufacturer import Manufacturer
from armory.data.military_unit import MilitaryUnit
from armory.data.soldier import Soldier
from armory.data.storage_facility import StorageFacility
from armory.data.weapon import Weapon
from armory.data.weapon_assignment import WeaponAssignment
from armory.data.weapon_maintenance import WeaponMaintenance

MANUFACTURERS = 'manufacturers'
MILITARY_UNITS = 'military_units'
STORAGE_FACILITIES = 'storage_facilities'
WEAPONS = 'weapons'
SOLDIERS = 'soldiers'
WEAPON_ASSIGNMENTS = 'weapon_assignments'
WEAPON_MAINTENANCE = 'weapon_maintenance'
AMMUNITION = 'ammunition'

ACTIVE_INACTIVE = ('Active', 'Inactive')
SOLDIER_STATUSES = ('Active', 'Inactive', 'On Leave')
SECURITY_LEVELS = ('Low', 'Medium', 'High', 'Maximum')
MAINTENANCE_TYPES = ('Regular', 'Repair', 'Upgrade', 'Inspection')

DEFAULTS: Dict[str, Dict[str, object]] = {
    MANUFACTURERS: {'status': 'Active'},
    MILITARY_UNITS: {'status': 'Active'},
    STORAGE_FACILITIES: {'security_level': 'Medium', 'status': FacilityStateMachine.INITIAL},
    WEAPONS: {'status': WeaponStateMachine.INITIAL},
    SOLDIERS: {'status': 'Active'},
    WEAPON_ASSIGNMENTS: {'status': AssignmentStateMachine.INITIAL},
    WEAPON_MAINTENANCE: {'status': MaintenanceStateMachine.INITIAL},
    AMMUNITION: {'quantity': 0, 'status': AmmunitionStateMachine.INITIAL},
}


def _machine_choice(machine: Type[StatusStateMachine]):
    return parse_choice(machine.STATUSES, machine.ALIASES)


def _fields(*specs: FieldSpec) -> Dict[str, FieldSpec]:
    return {spec.name: spec for spec in specs}


@dataclass(frozen=True)
class EntityKind:
    key: str
    label: str
    model: type
    cleaner: RowCleaner
    # field name -> key of the referenced entity kind
    references: Dict[str, str]
    unique_fields: Tuple[str, ...] = ()
    machine: Optional[Type[StatusStateMachine]] = None
    # Columns only the core may write (e.g. Weapon.assigned_unit_id)
    read_only_fields: Tuple[str, ...] = ()


ENTITY_KINDS: Dict[str, EntityKind] = {}


def _register(kind: EntityKind) -> EntityKind:
    ENTITY_KINDS[kind.key] = kind
    return kind


_register(EntityKind(
    key=MANUFACTURERS,
    label='Manufacturer',
    model=Manufacturer,
    cleaner=RowCleaner('Manufacturer', _fields(
        FieldSpec('name', parse_text(100), required=True),
        FieldSpec('country', parse_text(50)),
        FieldSpec('contact_info', parse_text(255)),
        FieldSpec('status', parse_choice(ACTIVE_INACTIVE)),
    ), DEFAULTS[MANUFACTURERS]),
    references={},
))

_register(EntityKind(
    key=MILITARY_UNITS,
    label='MilitaryUnit',
    model=MilitaryUnit,
    cleaner=RowCleaner('MilitaryUnit', _fields(
        FieldSpec('name', parse_text(100), required=True),
        FieldSpec('type', parse_text(50)),
        FieldSpec('location', parse_text(100)),
        FieldSpec('commanding_officer', parse_text(100)),
        FieldSpec('status', parse_choice(ACTIVE_INACTIVE)),
    ), DEFAULTS[MILITARY_UNITS]),
    references={},
))

_register(EntityKind(
    key=STORAGE_FACILITIES,
    label='StorageFacility',
    model=StorageFacility,
    cleaner=RowCleaner('StorageFacility', _fields(
        FieldSpec('name', parse_text(100), required=True),
        FieldSpec('location', parse_text(255)),
        FieldSpec('capacity', parse_non_negative_int),
        FieldSpec('security_level', parse_choice(SECURITY_LEVELS)),
        FieldSpec('status', _machine_choice(FacilityStateMachine)),
    ), DEFAULTS[STORAGE_FACILITIES]),
    references={},
    machine=FacilityStateMachine,
))

_register(EntityKind(
    key=WEAPONS,
    label='Weapon',
    model=Weapon,
    cleaner=RowCleaner('Weapon', _fields(
        FieldSpec('name', parse_text(100), required=True),
        FieldSpec('type', parse_text(50)),
        FieldSpec('model', parse_text(50)),
        FieldSpec('serial_number', parse_text(50), required=True),
        FieldSpec('manufacturer_id', parse_reference),
        FieldSpec('caliber', parse_text(20)),
        FieldSpec('acquisition_date', parse_date),
        FieldSpec('status', _machine_choice(WeaponStateMachine)),
        FieldSpec('assigned_unit_id', parse_reference),
        FieldSpec('facility_id', parse_reference),
        FieldSpec('last_inspection_date', parse_date),
    ), DEFAULTS[WEAPONS]),
    references={
        'manufacturer_id': MANUFACTURERS,
        'assigned_unit_id': MILITARY_UNITS,
        'facility_id': STORAGE_FACILITIES,
    },
    unique_fields=('serial_number',),
    machine=WeaponStateMachine,
    read_only_fields=('assigned_unit_id',),
))

_register(EntityKind(
    key=SOLDIERS,
    label='Soldier',
    model=Soldier,
    cleaner=RowCleaner('Soldier', _fields(
        FieldSpec('first_name', parse_text(50), required=True),
        FieldSpec('last_name', parse_text(50), required=True),
        FieldSpec('rank', parse_text(30)),
        FieldSpec('serial_number', parse_text(50), required=True),
        FieldSpec('date_of_birth', parse_date),
        FieldSpec('join_date', parse_date),
        FieldSpec('unit_id', parse_reference),
        FieldSpec('status', parse_choice(SOLDIER_STATUSES, {'OnLeave': 'On Leave'})),
        FieldSpec('specialization', parse_text(100)),
    ), DEFAULTS[SOLDIERS]),
    references={'unit_id': MILITARY_UNITS},
    unique_fields=('serial_number',),
))

_register(EntityKind(
    key=WEAPON_ASSIGNMENTS,
    label='WeaponAssignment',
    model=WeaponAssignment,
    cleaner=RowCleaner('WeaponAssignment', _fields(
        FieldSpec('weapon_id', parse_reference, required=True),
        FieldSpec('soldier_id', parse_reference, required=True),
        FieldSpec('unit_id', parse_reference, required=True),
        FieldSpec('assignment_date', parse_date, required=True),
        FieldSpec('return_date', parse_date),
        FieldSpec('status', _machine_choice(AssignmentStateMachine)),
        FieldSpec('notes', parse_text()),
    ), DEFAULTS[WEAPON_ASSIGNMENTS]),
    references={
        'weapon_id': WEAPONS,
        'soldier_id': SOLDIERS,
        'unit_id': MILITARY_UNITS,
    },
    machine=AssignmentStateMachine,
))

_register(EntityKind(
    key=WEAPON_MAINTENANCE,
    label='WeaponMaintenance',
    model=WeaponMaintenance,
    cleaner=RowCleaner('WeaponMaintenance', _fields(
        FieldSpec('weapon_id', parse_reference, required=True),
        FieldSpec('type', parse_choice(MAINTENANCE_TYPES), required=True),
        FieldSpec('start_date', parse_date, required=True),
        FieldSpec('end_date', parse_date),
        FieldSpec('technician', parse_text(100)),
        FieldSpec('status', _machine_choice(MaintenanceStateMachine)),
        FieldSpec('cost', parse_money),
        FieldSpec('notes', parse_text()),
    ), DEFAULTS[WEAPON_MAINTENANCE]),
    references={'weapon_id': WEAPONS},
    machine=MaintenanceStateMachine,
))

_register(EntityKind(
    key=AMMUNITION,
    label='Ammunition',
    model=Ammunition,
    cleaner=RowCleaner('Ammunition', _fields(
        FieldSpec('name', parse_text(100)),
        FieldSpec('type', parse_text(50)),
        FieldSpec('caliber', parse_text(20)),
        FieldSpec('quantity', parse_non_negative_int),
        FieldSpec('manufacturer_id', parse_reference),
        FieldSpec('batch_number', parse_text(50)),
        FieldSpec('production_date', parse_date),
        FieldSpec('expiration_date', parse_date),
        FieldSpec('facility_id', parse_reference),
        FieldSpec('status', _machine_choice(AmmunitionStateMachine)),
    ), DEFAULTS[AMMUNITION]),
    references={
        'manufacturer_id': MANUFACTURERS,
        'facility_id': STORAGE_FACILITIES,
    },
    machine=AmmunitionStateMachine,
))


def get_kind(key: str) -> EntityKind:
    """
    Look up an entity kind by its key.

    Raises:
        ValidationError: If the key names no managed entity
    """
    kind = ENTITY_KINDS.get(key)
    if kind is None:
        raise ValidationError('kind', f"Unknown entity kind: {key}")
    return kind
