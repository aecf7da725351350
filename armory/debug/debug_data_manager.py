#!/usr/bin/env python3
"""
Debug Data Manager
Central controller for debug data insertion

Handles:
- Loading the debug data JSON file
- Checking if data is already present
- Resolving natural keys (names, serial numbers) to row IDs
- Inserting through the business layer, so seeded rows obey the same
  rules as rows created over the API
- Fail-fast error handling
"""

import json
from pathlib import Path

from armory import db
from armory.business.assignments.assignment_coordinator import AssignmentCoordinator
from armory.business.core.entity_manager import EntityManager
from armory.business.core.entity_registry import (
    AMMUNITION,
    MANUFACTURERS,
    MILITARY_UNITS,
    SOLDIERS,
    STORAGE_FACILITIES,
    WEAPON_MAINTENANCE,
    WEAPONS,
)
from armory.data.manufacturer import Manufacturer
from armory.data.military_unit import MilitaryUnit
from armory.data.soldier import Soldier
from armory.data.storage_facility import StorageFacility
from armory.data.weapon import Weapon
from armory.logger import get_logger

logger = get_logger("armory.debug_data_manager")

DEBUG_DATA_FILE = Path(__file__).parent / 'data' / 'armory_debug_data.json'

# JSON section -> entity kind, in insertion order (parents first)
SECTIONS = [
    ('Manufacturers', MANUFACTURERS),
    ('MilitaryUnits', MILITARY_UNITS),
    ('StorageFacilities', STORAGE_FACILITIES),
    ('Weapons', WEAPONS),
    ('Soldiers', SOLDIERS),
    ('WeaponAssignments', None),
    ('WeaponMaintenance', WEAPON_MAINTENANCE),
    ('Ammunition', AMMUNITION),
]


def insert_debug_data(enabled=True, session=None, data_file=None):
    """
    Insert debug data

    Args:
        enabled (bool): Whether to insert debug data (default: True)
        session: SQLAlchemy session (defaults to db.session)
        data_file (Path, optional): Alternate JSON file

    Returns:
        dict: Summary of inserted rows per section

    Raises:
        ArmoryDomainError: If any record violates a business rule (fail-fast)
    """
    if not enabled:
        logger.info("Debug data insertion is disabled")
        return {}

    session = session or db.session
    debug_data = _load_debug_data_file(data_file or DEBUG_DATA_FILE)
    if not debug_data:
        logger.info("No debug data file found, skipping")
        return {}

    if _check_debug_data_present(session):
        logger.info("Debug data already present, skipping")
        return {'status': 'skipped'}

    manager = EntityManager(session)
    coordinator = AssignmentCoordinator(session)
    summary = {}

    for section, kind_key in SECTIONS:
        records = debug_data.get(section, [])
        try:
            for record in records:
                if kind_key is None:
                    _insert_assignment(session, coordinator, record)
                else:
                    manager.create(kind_key, _resolve(session, record))
        except Exception as e:
            logger.error(f"Failed to insert debug data for {section}: {e}")
            session.rollback()
            raise
        summary[section] = len(records)
        logger.info(f"Inserted {len(records)} {section} debug rows")

    logger.info("Debug data insertion completed successfully")
    return summary


def _load_debug_data_file(path):
    """
    Load the debug data JSON file

    Returns:
        dict: Debug data or None if the file doesn't exist
    """
    if not path.exists():
        return None
    with open(path, 'r') as f:
        data = json.load(f)
    logger.debug(f"Loaded debug data file: {path}")
    return data


def _check_debug_data_present(session):
    return session.query(Manufacturer.id).first() is not None


def _lookup(session, model, column, value):
    row = session.query(model).filter(column == value).first()
    if row is None:
        raise LookupError(f"Debug data references unknown {model.__name__} {value!r}")
    return row.id


def _resolve(session, record):
    """Replace natural-key references with foreign-key IDs"""
    resolved = dict(record)
    if 'manufacturer' in resolved:
        resolved['manufacturer_id'] = _lookup(session, Manufacturer, Manufacturer.name, resolved.pop('manufacturer'))
    if 'facility' in resolved:
        resolved['facility_id'] = _lookup(session, StorageFacility, StorageFacility.name, resolved.pop('facility'))
    if 'unit' in resolved:
        resolved['unit_id'] = _lookup(session, MilitaryUnit, MilitaryUnit.name, resolved.pop('unit'))
    if 'weapon' in resolved:
        resolved['weapon_id'] = _lookup(session, Weapon, Weapon.serial_number, resolved.pop('weapon'))
    if 'soldier' in resolved:
        resolved['soldier_id'] = _lookup(session, Soldier, Soldier.serial_number, resolved.pop('soldier'))
    return resolved


def _insert_assignment(session, coordinator, record):
    """Replay one custody period: issue, then return or lose if recorded"""
    row = _resolve(session, record)
    assignment = coordinator.create_assignment(
        row['weapon_id'], row['soldier_id'], row['unit_id'], row['assignment_date'], row.get('notes')
    )
    if row.get('returned_on'):
        coordinator.return_assignment(assignment.id, row['returned_on'])
    elif row.get('lost_on'):
        coordinator.mark_lost(assignment.id, row['lost_on'])
