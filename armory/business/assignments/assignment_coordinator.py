"""
Assignment Coordinator
Business logic for weapon custody: issuing, returning and losing weapons.

This is the only place that writes WeaponAssignment.status or
Weapon.assigned_unit_id, so the "one Active assignment per weapon" rule has
a single enforcement point.
"""

from datetime import date
from typing import Any, Dict, Optional

from armory.business.core.entity_registry import WEAPON_ASSIGNMENTS, get_kind
from armory.business.core.transaction import atomic
from armory.business.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    RefError,
    ValidationError,
)
from armory.business.lifecycle.state_machine import AssignmentStateMachine, WeaponStateMachine
from armory.business.validation.field_validator import parse_date, require_order
from armory.business.validation.reference_validator import ReferenceValidator
from armory.data.weapon import Weapon
from armory.data.weapon_assignment import WeaponAssignment
from armory.logger import get_logger

logger = get_logger("armory.business.assignments")

ENTITY = 'WeaponAssignment'


class AssignmentCoordinator:
    """
    Coordinates WeaponAssignment rows with the Weapon they cover.

    Every public operation runs in one transaction and locks the weapon row
    (SELECT ... FOR UPDATE) before reading its Active assignment, so two
    concurrent requests for the same weapon are serialized. The partial
    unique index on weapon_assignments backs this up at the store level.
    """

    def __init__(self, session):
        """
        Args:
            session: SQLAlchemy session (explicit store handle)
        """
        self.session = session
        self.references = ReferenceValidator(session)
        self.kind = get_kind(WEAPON_ASSIGNMENTS)

    # ------------------------------------------------------------------ reads

    def active_assignment_for(self, weapon_id: int) -> Optional[WeaponAssignment]:
        """Get the Active assignment of a weapon, if any"""
        return (
            self.session.query(WeaponAssignment)
            .filter_by(weapon_id=weapon_id, status=AssignmentStateMachine.ACTIVE)
            .one_or_none()
        )

    def get_assignment(self, assignment_id: int) -> WeaponAssignment:
        assignment = self.session.get(WeaponAssignment, assignment_id)
        if assignment is None:
            raise NotFoundError(ENTITY, assignment_id)
        return assignment

    def _lock_weapon(self, weapon_id: int) -> Weapon:
        weapon = (
            self.session.query(Weapon)
            .filter(Weapon.id == weapon_id)
            .with_for_update()
            .one_or_none()
        )
        if weapon is None:
            raise RefError('weapon_id', weapon_id, entity='Weapon')
        return weapon

    # ----------------------------------------------------------------- writes

    def create_assignment(
        self,
        weapon_id: int,
        soldier_id: int,
        unit_id: int,
        assignment_date: Any,
        notes: Optional[str] = None,
    ) -> WeaponAssignment:
        """
        Issue a weapon to a soldier on behalf of a unit.

        Args:
            weapon_id: Weapon being issued
            soldier_id: Soldier taking custody
            unit_id: Unit the custody is recorded against
            assignment_date: Date of issue (date or YYYY-MM-DD)
            notes: Optional free text

        Returns:
            The new Active WeaponAssignment

        Raises:
            ValidationError: If a field is missing or malformed
            RefError: If weapon, soldier or unit does not exist
            ConflictError: If the weapon already has an Active assignment
        """
        row = self.kind.cleaner.clean({
            'weapon_id': weapon_id,
            'soldier_id': soldier_id,
            'unit_id': unit_id,
            'assignment_date': assignment_date,
            'notes': notes,
        })

        with atomic(self.session, ENTITY, 'create'):
            weapon = self._lock_weapon(row['weapon_id'])
            self.references.validate(WEAPON_ASSIGNMENTS, row)

            existing = self.active_assignment_for(weapon.id)
            if existing is not None:
                logger.warning(
                    f"Rejected assignment of weapon {weapon.id}: Active assignment {existing.id} exists"
                )
                raise ConflictError(
                    'weapon_id',
                    weapon.id,
                    f"Weapon {weapon.id} already has an Active assignment (ID {existing.id})",
                )

            assignment = WeaponAssignment(
                weapon_id=weapon.id,
                soldier_id=row['soldier_id'],
                unit_id=row['unit_id'],
                assignment_date=row['assignment_date'],
                return_date=None,
                status=AssignmentStateMachine.ACTIVE,
                notes=row['notes'],
            )
            self.session.add(assignment)
            weapon.assigned_unit_id = row['unit_id']
            self.session.flush()

        logger.info(
            f"Weapon {weapon.id} assigned to soldier {assignment.soldier_id} "
            f"(unit {assignment.unit_id}) as assignment {assignment.id}"
        )
        return assignment

    def create_from_dict(self, data: Dict[str, Any]) -> WeaponAssignment:
        """Create through the generic create path; new rows always start Active."""
        row = self.kind.cleaner.clean(data)
        if row['status'] != AssignmentStateMachine.ACTIVE:
            raise ValidationError('status', "New assignments start Active; return or mark lost afterwards")
        if row['return_date'] is not None:
            raise ValidationError('return_date', "return_date is set when the assignment is returned or lost")
        return self.create_assignment(
            row['weapon_id'], row['soldier_id'], row['unit_id'], row['assignment_date'], row['notes']
        )

    def return_assignment(self, assignment_id: int, return_date: Any = None) -> WeaponAssignment:
        """
        Close an Active assignment because the weapon came back.

        Raises:
            NotFoundError: If the assignment does not exist
            InvalidTransitionError: If the assignment is not Active
        """
        return self._close(assignment_id, AssignmentStateMachine.RETURNED, return_date)

    def mark_lost(self, assignment_id: int, lost_date: Any = None) -> WeaponAssignment:
        """
        Close an Active assignment because the weapon is lost.
        The weapon itself is also set Inactive.

        Raises:
            NotFoundError: If the assignment does not exist
            InvalidTransitionError: If the assignment is not Active
        """
        return self._close(assignment_id, AssignmentStateMachine.LOST, lost_date)

    def _close(self, assignment_id, to_status, on) -> WeaponAssignment:
        closing_date = parse_date('return_date', on) or date.today()

        with atomic(self.session, ENTITY, f'set {to_status}'):
            assignment = self.get_assignment(assignment_id)
            weapon = self._lock_weapon(assignment.weapon_id)
            # Re-read under the weapon lock
            self.session.refresh(assignment)
            self._apply_close(assignment, weapon, to_status, closing_date)
            self.session.flush()

        logger.info(f"Assignment {assignment.id} {to_status} on {closing_date.isoformat()}")
        return assignment

    def _apply_close(self, assignment, weapon, to_status, closing_date):
        if assignment.status != AssignmentStateMachine.ACTIVE:
            raise InvalidTransitionError(ENTITY, assignment.status, to_status, "assignment is not Active")
        AssignmentStateMachine.validate_transition(assignment.status, to_status)
        require_order('assignment_date', assignment.assignment_date, 'return_date', closing_date)

        assignment.status = to_status
        assignment.return_date = closing_date
        weapon.assigned_unit_id = None

        if to_status == AssignmentStateMachine.LOST and weapon.status != WeaponStateMachine.INACTIVE:
            WeaponStateMachine.validate_transition(weapon.status, WeaponStateMachine.INACTIVE)
            weapon.status = WeaponStateMachine.INACTIVE

    def update_assignment(self, assignment_id: int, data: Dict[str, Any]) -> WeaponAssignment:
        """
        Edit an assignment.

        soldier, unit, dates and notes may be corrected; the weapon may not
        change. A status change is routed to return/mark-lost handling.

        Raises:
            NotFoundError, ValidationError, RefError, InvalidTransitionError
        """
        patch = self.kind.cleaner.clean(data, partial=True)

        with atomic(self.session, ENTITY, 'update'):
            assignment = self.get_assignment(assignment_id)
            weapon = self._lock_weapon(assignment.weapon_id)
            self.session.refresh(assignment)

            if 'weapon_id' in patch and patch['weapon_id'] != assignment.weapon_id:
                raise ValidationError(
                    'weapon_id', "weapon_id cannot change; return this assignment and create a new one"
                )

            self.references.validate(WEAPON_ASSIGNMENTS, patch, fields=('soldier_id', 'unit_id'))

            new_status = patch.get('status', assignment.status)
            closing = new_status != assignment.status

            if not closing and assignment.is_active and patch.get('return_date') is not None:
                raise ValidationError(
                    'return_date', "return_date is set when the assignment is returned or lost"
                )
            if not closing and not assignment.is_active and 'return_date' in patch and patch['return_date'] is None:
                raise ValidationError('return_date', f"A {assignment.status} assignment requires return_date")

            for field in ('soldier_id', 'unit_id', 'assignment_date', 'notes'):
                if field in patch:
                    setattr(assignment, field, patch[field])
            if assignment.is_active and not closing:
                weapon.assigned_unit_id = assignment.unit_id

            if closing:
                self._apply_close(assignment, weapon, new_status, patch.get('return_date') or date.today())
            elif 'return_date' in patch:
                assignment.return_date = patch['return_date']

            require_order('assignment_date', assignment.assignment_date, 'return_date', assignment.return_date)
            self.session.flush()

        logger.info(f"Assignment {assignment.id} updated")
        return assignment

    def delete_assignment(self, assignment_id: int) -> None:
        """
        Hard-delete an assignment. Deleting the Active row releases the weapon.

        Raises:
            NotFoundError: If the assignment does not exist
        """
        with atomic(self.session, ENTITY, 'delete'):
            assignment = self.get_assignment(assignment_id)
            weapon = self._lock_weapon(assignment.weapon_id)
            self.session.refresh(assignment)
            if assignment.is_active:
                weapon.assigned_unit_id = None
            self.session.delete(assignment)
            self.session.flush()

        logger.info(f"Assignment {assignment_id} deleted")
