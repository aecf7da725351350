"""
Reporting Service
Read-only presentation data for the armory API.

Handles:
- List and detail views with the names of referenced rows joined in
- Dependent counts per manufacturer, unit and facility
- Dashboard aggregates

Every count is an outer join or a COALESCEd subquery, so a row with no
dependents reports 0 rather than null or disappearing from the list.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import distinct, func, select

from armory.business.core.entity_registry import (
    AMMUNITION,
    ENTITY_KINDS,
    MANUFACTURERS,
    MILITARY_UNITS,
    SOLDIERS,
    STORAGE_FACILITIES,
    WEAPON_ASSIGNMENTS,
    WEAPON_MAINTENANCE,
    WEAPONS,
    get_kind,
)
from armory.business.errors import NotFoundError
from armory.business.lifecycle.state_machine import AssignmentStateMachine
from armory.data.ammunition import Ammunition
from armory.data.manufacturer import Manufacturer
from armory.data.military_unit import MilitaryUnit
from armory.data.soldier import Soldier
from armory.data.storage_facility import StorageFacility
from armory.data.weapon import Weapon
from armory.data.weapon_assignment import WeaponAssignment
from armory.data.weapon_maintenance import WeaponMaintenance


def _count_of(model, column, parent_column):
    """Correlated COUNT(*) of model rows whose column points at parent_column."""
    return func.coalesce(
        select(func.count(model.id)).where(column == parent_column).scalar_subquery(),
        0,
    )


def _merge(row, **extra) -> Dict[str, Any]:
    data = row.to_dict()
    data.update(extra)
    return data


class ReportingService:
    """
    Service for armory presentation data.

    Provides methods for:
    - Joined list views (weapons, ammunition, maintenance, assignments, soldiers)
    - Count aggregations (manufacturers, units, facilities)
    - Dashboard summary
    """

    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------ counts

    def _manufacturer_query(self):
        return self.session.query(
            Manufacturer,
            _count_of(Weapon, Weapon.manufacturer_id, Manufacturer.id).label('weapon_count'),
            _count_of(Ammunition, Ammunition.manufacturer_id, Manufacturer.id).label('ammunition_count'),
        )

    def manufacturers_with_counts(self) -> List[Dict[str, Any]]:
        rows = self._manufacturer_query().order_by(Manufacturer.name, Manufacturer.id).all()
        return [
            _merge(m, weapon_count=int(weapons), ammunition_count=int(ammo))
            for m, weapons, ammo in rows
        ]

    def manufacturer_with_counts(self, manufacturer_id: int) -> Dict[str, Any]:
        row = self._manufacturer_query().filter(Manufacturer.id == manufacturer_id).one_or_none()
        if row is None:
            raise NotFoundError('Manufacturer', manufacturer_id)
        manufacturer, weapons, ammo = row
        return _merge(manufacturer, weapon_count=int(weapons), ammunition_count=int(ammo))

    def _unit_query(self):
        # Assignments are counted through the unit's soldiers
        assignment_count = func.coalesce(
            select(func.count(distinct(WeaponAssignment.id)))
            .select_from(WeaponAssignment)
            .join(Soldier, Soldier.id == WeaponAssignment.soldier_id)
            .where(Soldier.unit_id == MilitaryUnit.id)
            .scalar_subquery(),
            0,
        )
        return self.session.query(
            MilitaryUnit,
            _count_of(Soldier, Soldier.unit_id, MilitaryUnit.id).label('soldier_count'),
            assignment_count.label('weapon_assignment_count'),
        )

    def units_with_counts(self) -> List[Dict[str, Any]]:
        rows = self._unit_query().order_by(MilitaryUnit.name, MilitaryUnit.id).all()
        return [
            _merge(u, soldier_count=int(soldiers), weapon_assignment_count=int(assignments))
            for u, soldiers, assignments in rows
        ]

    def unit_with_counts(self, unit_id: int) -> Dict[str, Any]:
        row = self._unit_query().filter(MilitaryUnit.id == unit_id).one_or_none()
        if row is None:
            raise NotFoundError('MilitaryUnit', unit_id)
        unit, soldiers, assignments = row
        return _merge(unit, soldier_count=int(soldiers), weapon_assignment_count=int(assignments))

    def facilities_with_counts(self, facility_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Facilities with stored weapon and ammunition counts.

        Args:
            facility_id: Restrict to one facility

        Returns:
            list of dicts with weapon_count, ammunition_count and ammunition_quantity
        """
        ammo = (
            self.session.query(
                Ammunition.facility_id.label('facility_id'),
                func.count(Ammunition.id).label('lots'),
                func.sum(Ammunition.quantity).label('rounds'),
            )
            .group_by(Ammunition.facility_id)
            .subquery()
        )
        query = (
            self.session.query(
                StorageFacility,
                _count_of(Weapon, Weapon.facility_id, StorageFacility.id).label('weapon_count'),
                func.coalesce(ammo.c.lots, 0).label('ammunition_count'),
                func.coalesce(ammo.c.rounds, 0).label('ammunition_quantity'),
            )
            .outerjoin(ammo, ammo.c.facility_id == StorageFacility.id)
        )
        if facility_id is not None:
            query = query.filter(StorageFacility.id == facility_id)

        return [
            _merge(f, weapon_count=int(weapons), ammunition_count=int(lots), ammunition_quantity=int(rounds))
            for f, weapons, lots, rounds in query.order_by(StorageFacility.name, StorageFacility.id).all()
        ]

    # ------------------------------------------------------- joined views

    def weapons_with_names(self, weapon_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = (
            self.session.query(Weapon, Manufacturer.name, StorageFacility.name, MilitaryUnit.name)
            .outerjoin(Manufacturer, Weapon.manufacturer_id == Manufacturer.id)
            .outerjoin(StorageFacility, Weapon.facility_id == StorageFacility.id)
            .outerjoin(MilitaryUnit, Weapon.assigned_unit_id == MilitaryUnit.id)
        )
        if weapon_id is not None:
            query = query.filter(Weapon.id == weapon_id)
        return [
            _merge(w, manufacturer_name=maker, facility_name=facility, assigned_unit_name=unit)
            for w, maker, facility, unit in query.order_by(Weapon.id).all()
        ]

    def ammunition_with_names(self, ammunition_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = (
            self.session.query(Ammunition, Manufacturer.name, StorageFacility.name)
            .outerjoin(Manufacturer, Ammunition.manufacturer_id == Manufacturer.id)
            .outerjoin(StorageFacility, Ammunition.facility_id == StorageFacility.id)
        )
        if ammunition_id is not None:
            query = query.filter(Ammunition.id == ammunition_id)
        return [
            _merge(a, name=a.display_name, manufacturer_name=maker, facility_name=facility)
            for a, maker, facility in query.order_by(Ammunition.id).all()
        ]

    def maintenance_with_weapon(self, maintenance_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = (
            self.session.query(WeaponMaintenance, Weapon.name, Weapon.serial_number)
            .outerjoin(Weapon, WeaponMaintenance.weapon_id == Weapon.id)
        )
        if maintenance_id is not None:
            query = query.filter(WeaponMaintenance.id == maintenance_id)
        return [
            _merge(m, weapon_name=name, weapon_serial=serial)
            for m, name, serial in query.order_by(WeaponMaintenance.start_date.desc(), WeaponMaintenance.id).all()
        ]

    def assignments_with_names(self, assignment_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = (
            self.session.query(
                WeaponAssignment,
                Weapon.serial_number,
                Weapon.name,
                Soldier.first_name,
                Soldier.last_name,
                MilitaryUnit.name,
            )
            .outerjoin(Weapon, WeaponAssignment.weapon_id == Weapon.id)
            .outerjoin(Soldier, WeaponAssignment.soldier_id == Soldier.id)
            .outerjoin(MilitaryUnit, WeaponAssignment.unit_id == MilitaryUnit.id)
        )
        if assignment_id is not None:
            query = query.filter(WeaponAssignment.id == assignment_id)
        rows = query.order_by(WeaponAssignment.assignment_date.desc(), WeaponAssignment.id).all()
        return [
            _merge(
                a,
                weapon_serial=serial,
                weapon_name=weapon_name,
                first_name=first,
                last_name=last,
                unit_name=unit,
            )
            for a, serial, weapon_name, first, last, unit in rows
        ]

    def soldiers_with_unit(self, soldier_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = (
            self.session.query(Soldier, MilitaryUnit.name)
            .outerjoin(MilitaryUnit, Soldier.unit_id == MilitaryUnit.id)
        )
        if soldier_id is not None:
            query = query.filter(Soldier.id == soldier_id)
        return [
            _merge(s, unit_name=unit)
            for s, unit in query.order_by(Soldier.last_name, Soldier.first_name, Soldier.id).all()
        ]

    # ------------------------------------------------------- dispatching

    def list_view(self, kind_key: str) -> List[Dict[str, Any]]:
        """List view for an entity kind, with joins and counts applied."""
        get_kind(kind_key)
        if kind_key == MANUFACTURERS:
            return self.manufacturers_with_counts()
        if kind_key == MILITARY_UNITS:
            return self.units_with_counts()
        return self._filtered_view(kind_key, None)

    def detail_view(self, kind_key: str, entity_id: int) -> Dict[str, Any]:
        """
        Detail view of one row.

        Raises:
            NotFoundError: If the row does not exist
        """
        kind = get_kind(kind_key)
        if kind_key == MANUFACTURERS:
            return self.manufacturer_with_counts(entity_id)
        if kind_key == MILITARY_UNITS:
            return self.unit_with_counts(entity_id)
        rows = self._filtered_view(kind_key, entity_id)
        if not rows:
            raise NotFoundError(kind.label, entity_id)
        return rows[0]

    def _filtered_view(self, kind_key, entity_id):
        views = {
            STORAGE_FACILITIES: self.facilities_with_counts,
            WEAPONS: self.weapons_with_names,
            SOLDIERS: self.soldiers_with_unit,
            WEAPON_ASSIGNMENTS: self.assignments_with_names,
            WEAPON_MAINTENANCE: self.maintenance_with_weapon,
            AMMUNITION: self.ammunition_with_names,
        }
        return views[kind_key](entity_id)

    # ---------------------------------------------------------- dashboard

    def dashboard_summary(self) -> Dict[str, Any]:
        """
        Aggregate figures for the dashboard.

        Returns:
            dict with totals per entity kind, weapons by type, active
            assignments per unit, maintenance by status and ammunition
            quantity by caliber
        """
        totals = {
            key: self.session.query(func.count(kind.model.id)).scalar() or 0
            for key, kind in ENTITY_KINDS.items()
        }

        weapons_by_type = [
            {'type': weapon_type, 'count': count}
            for weapon_type, count in self.session.query(Weapon.type, func.count(Weapon.id))
            .group_by(Weapon.type)
            .order_by(Weapon.type)
            .all()
        ]

        active_by_unit = [
            {'unit_id': unit_id, 'unit_name': name, 'active_assignments': count}
            for unit_id, name, count in self.session.query(
                MilitaryUnit.id, MilitaryUnit.name, func.count(WeaponAssignment.id)
            )
            .outerjoin(
                WeaponAssignment,
                (WeaponAssignment.unit_id == MilitaryUnit.id)
                & (WeaponAssignment.status == AssignmentStateMachine.ACTIVE),
            )
            .group_by(MilitaryUnit.id, MilitaryUnit.name)
            .order_by(MilitaryUnit.name)
            .all()
        ]

        maintenance_by_status = [
            {'status': status, 'count': count}
            for status, count in self.session.query(WeaponMaintenance.status, func.count(WeaponMaintenance.id))
            .group_by(WeaponMaintenance.status)
            .order_by(WeaponMaintenance.status)
            .all()
        ]

        ammunition_by_caliber = [
            {'caliber': caliber, 'total_quantity': int(total)}
            for caliber, total in self.session.query(
                Ammunition.caliber, func.coalesce(func.sum(Ammunition.quantity), 0)
            )
            .group_by(Ammunition.caliber)
            .order_by(Ammunition.caliber)
            .all()
        ]

        return {
            'totals': totals,
            'weapons_by_type': weapons_by_type,
            'active_assignments_by_unit': active_by_unit,
            'maintenance_by_status': maintenance_by_status,
            'ammunition_by_caliber': ammunition_by_caliber,
        }
