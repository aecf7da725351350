from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from armory.business.assignments.assignment_coordinator import AssignmentCoordinator
from armory.business.core.entity_registry import (
    AMMUNITION,
    STORAGE_FACILITIES,
    WEAPON_ASSIGNMENTS,
    WEAPON_MAINTENANCE,
    get_kind,
)
from armory.business.core.transaction import atomic
from armory.business.deletion.deletion_guard import DeletionGuard
from armory.business.errors import NotFoundError, ValidationError
from armory.business.lifecycle.state_machine import (
    AmmunitionStateMachine,
    AssignmentStateMachine,
    FacilityStateMachine,
)
from armory.business.validation.field_validator import parse_date, parse_reference, require_order
from armory.data.ammunition import Ammunition
from armory.logger import get_logger

logger = get_logger("armory.business.lifecycle.status")


@dataclass(frozen=True)
class StatusChange:
    entity_type: str
    entity_id: int
    from_status: str | None
    to_status: str

    @property
    def changed(self) -> bool:
        return self.from_status != self.to_status

    def to_dict(self):
        return {
            'entity': self.entity_type,
            'id': self.entity_id,
            'from': self.from_status,
            'to': self.to_status,
        }


class StatusManager:
    """
    Status manager for every status-bearing entity.

    This class is responsible for:
    - validating transitions against the entity's state machine
    - setting the status field on the target row
    - the side effects a transition carries (maintenance end date,
      facility decommission gate)

    Nothing here runs on its own: expiry and depletion are only applied
    when refresh_ammunition() is called.
    """

    def __init__(self, session):
        """
        Args:
            session: SQLAlchemy session (explicit store handle)
        """
        self.session = session

    def apply(self, kind_key: str, row, new_status: str, on: Optional[date] = None) -> StatusChange:
        """
        Validate and set a new status on a loaded row without committing.

        Args:
            kind_key: Entity kind of the row
            row: Model instance
            new_status: Canonical target status
            on: Effective date (defaults to today)

        Raises:
            InvalidTransitionError: If the machine refuses the transition
            BlockedError: If a facility still stores weapons or ammunition
        """
        kind = get_kind(kind_key)
        machine = kind.machine
        if machine is None:
            raise ValidationError('status', f"{kind.label} has no status lifecycle")

        on = on or date.today()
        old = row.status
        if old == new_status:
            return StatusChange(kind.label, row.id, old, new_status)

        machine.validate_transition(old, new_status, row=row, on=on)

        if kind_key == STORAGE_FACILITIES and new_status == FacilityStateMachine.DECOMMISSIONED:
            DeletionGuard(self.session).before_delete(kind_key, row.id, action='decommission')

        if kind_key == WEAPON_MAINTENANCE and machine.is_terminal(new_status) and row.end_date is None:
            require_order('start_date', row.start_date, 'end_date', on)
            row.end_date = on

        row.status = new_status
        logger.info(f"{kind.label} {row.id} status {old} -> {new_status}")
        return StatusChange(kind.label, row.id, old, new_status)

    def change_status(self, kind_key: str, entity_id: int, new_status, on=None) -> StatusChange:
        """
        Move one row to a new status in its own transaction.

        Assignment status changes are handed to the AssignmentCoordinator so
        the weapon is released together with the assignment.

        Raises:
            NotFoundError, ValidationError, InvalidTransitionError, BlockedError
        """
        kind = get_kind(kind_key)
        if kind.machine is None:
            raise ValidationError('status', f"{kind.label} has no status lifecycle")
        target = kind.cleaner.fields['status'].parser('status', new_status)
        if target is None:
            raise ValidationError('status', "status is required")
        effective = parse_date('date', on)

        if kind_key == WEAPON_ASSIGNMENTS:
            return self._change_assignment_status(entity_id, target, effective)

        with atomic(self.session, kind.label, 'change status'):
            row = self.session.get(kind.model, entity_id)
            if row is None:
                raise NotFoundError(kind.label, entity_id)
            change = self.apply(kind_key, row, target, on=effective)
            self.session.flush()
        return change

    def _change_assignment_status(self, assignment_id, target, effective) -> StatusChange:
        coordinator = AssignmentCoordinator(self.session)
        before = coordinator.get_assignment(assignment_id).status
        if target == before:
            return StatusChange(AssignmentStateMachine.ENTITY, assignment_id, before, target)
        if target == AssignmentStateMachine.RETURNED:
            coordinator.return_assignment(assignment_id, effective)
        elif target == AssignmentStateMachine.LOST:
            coordinator.mark_lost(assignment_id, effective)
        else:
            AssignmentStateMachine.validate_transition(before, target)
        return StatusChange(AssignmentStateMachine.ENTITY, assignment_id, before, target)

    def refresh_ammunition(self, as_of=None, ammunition_id: Optional[int] = None) -> list[StatusChange]:
        """
        Explicit expiry/depletion pass over ammunition lots.

        Lots with quantity 0 become Depleted; lots whose expiration date is
        before as_of become Expired. Terminal lots are left alone.

        Args:
            as_of: Reference date (defaults to today)
            ammunition_id: Restrict the pass to one lot

        Returns:
            list of StatusChange for the lots that moved
        """
        on = parse_date('as_of', as_of) or date.today()
        ammunition_id = parse_reference('ammunition_id', ammunition_id)
        changes: list[StatusChange] = []

        with atomic(self.session, 'Ammunition', 'refresh status'):
            query = self.session.query(Ammunition).filter(
                Ammunition.status.in_((AmmunitionStateMachine.AVAILABLE, AmmunitionStateMachine.RESERVED))
            )
            if ammunition_id is not None:
                if self.session.get(Ammunition, ammunition_id) is None:
                    raise NotFoundError('Ammunition', ammunition_id)
                query = query.filter(Ammunition.id == ammunition_id)

            for lot in query.order_by(Ammunition.id).all():
                target = AmmunitionStateMachine.derived_status(lot, on)
                if target is not None:
                    changes.append(self.apply(AMMUNITION, lot, target, on=on))
            self.session.flush()

        logger.info(f"Ammunition status refresh as of {on.isoformat()}: {len(changes)} lot(s) changed")
        return changes

    def allowed_transitions(self, kind_key: str, entity_id: int):
        kind = get_kind(kind_key)
        row = self.session.get(kind.model, entity_id)
        if row is None:
            raise NotFoundError(kind.label, entity_id)
        if kind.machine is None:
            return []
        return sorted(kind.machine.get_allowed_transitions(row.status))
