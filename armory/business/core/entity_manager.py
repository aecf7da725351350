"""
Entity Manager
Generic create/read/update/delete for every armory entity kind.

Writes are validated (fields, uniqueness, references, status lifecycle)
before anything reaches the store and run inside one transaction.
Assignments are handed to the AssignmentCoordinator, destructive deletes to
the DeletionGuard, and reads to the ReportingService views.
"""

from datetime import date
from typing import Any, Dict, List

from armory.business.assignments.assignment_coordinator import AssignmentCoordinator
from armory.business.core.entity_registry import (
    AMMUNITION,
    WEAPON_ASSIGNMENTS,
    WEAPON_MAINTENANCE,
    EntityKind,
    get_kind,
)
from armory.business.core.transaction import atomic
from armory.business.deletion.deletion_guard import DeletionGuard
from armory.business.errors import ConflictError, NotFoundError, ValidationError
from armory.business.lifecycle.state_machine import MaintenanceStateMachine
from armory.business.lifecycle.status_manager import StatusManager
from armory.business.validation.field_validator import require_order
from armory.business.validation.reference_validator import ReferenceValidator
from armory.logger import get_logger
from armory.services.reporting_service import ReportingService

logger = get_logger("armory.business.core.entities")


class EntityManager:
    """
    Single entry point for entity CRUD.

    Every method takes the entity kind key ("weapons", "ammunition", ...)
    and returns plain dicts in the reporting view shape.
    """

    def __init__(self, session):
        """
        Args:
            session: SQLAlchemy session (explicit store handle)
        """
        self.session = session
        self.references = ReferenceValidator(session)
        self.status = StatusManager(session)
        self.guard = DeletionGuard(session)
        self.reports = ReportingService(session)
        self.assignments = AssignmentCoordinator(session)

    # ------------------------------------------------------------------ reads

    def list(self, kind_key: str) -> List[Dict[str, Any]]:
        return self.reports.list_view(kind_key)

    def get(self, kind_key: str, entity_id: int) -> Dict[str, Any]:
        return self.reports.detail_view(kind_key, entity_id)

    # ----------------------------------------------------------------- writes

    def create(self, kind_key: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and insert a row.

        Args:
            kind_key: Entity kind
            data: Raw field mapping (unknown keys are ignored)

        Returns:
            The new row in its detail view shape

        Raises:
            ValidationError, RefError, ConflictError, InvalidTransitionError
        """
        kind = get_kind(kind_key)
        if kind_key == WEAPON_ASSIGNMENTS:
            assignment = self.assignments.create_from_dict(data)
            return self.get(kind_key, assignment.id)

        self._reject_read_only(kind, data)
        values = kind.cleaner.clean(data)

        with atomic(self.session, kind.label, 'create'):
            self._check_unique(kind, values)
            self.references.validate(kind_key, values)

            row = kind.model.from_dict(values)
            self._check_initial_status(kind, row)
            self._check_row(kind_key, row)
            self.session.add(row)
            self.session.flush()

        logger.info(f"Created {kind.label} {row.id}")
        return self.get(kind_key, row.id)

    def update(self, kind_key: str, entity_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update to a row.

        A status change is validated by the entity's state machine, after
        the other fields of the same patch have been applied. Kinds without
        a lifecycle take any of their enumerated statuses directly.

        Raises:
            NotFoundError, ValidationError, RefError, ConflictError,
            InvalidTransitionError, BlockedError
        """
        kind = get_kind(kind_key)
        if kind_key == WEAPON_ASSIGNMENTS:
            self.assignments.update_assignment(entity_id, data)
            return self.get(kind_key, entity_id)

        patch = kind.cleaner.clean(data, partial=True)

        with atomic(self.session, kind.label, 'update'):
            row = self.session.get(kind.model, entity_id)
            if row is None:
                raise NotFoundError(kind.label, entity_id)

            self._reject_read_only(kind, data, row)
            self._check_unique(kind, patch, exclude_id=row.id)
            self.references.validate(kind_key, patch)

            new_status = patch.pop('status', None) if kind.machine is not None else None
            changed = row.apply_dict(patch, skip_fields=kind.read_only_fields)
            if new_status is not None and new_status != row.status:
                self.status.apply(kind_key, row, new_status)
                changed.append('status')

            self._check_row(kind_key, row)
            self.session.flush()

        logger.info(f"Updated {kind.label} {entity_id}: {', '.join(changed) or 'no changes'}")
        return self.get(kind_key, entity_id)

    def delete(self, kind_key: str, entity_id: int) -> None:
        """
        Hard-delete a row once nothing references it.

        Raises:
            NotFoundError: If the row does not exist
            BlockedError: If dependent rows exist (counts in the error)
        """
        kind = get_kind(kind_key)
        if kind_key == WEAPON_ASSIGNMENTS:
            self.assignments.delete_assignment(entity_id)
            return

        with atomic(self.session, kind.label, 'delete'):
            self.guard.before_delete(kind_key, entity_id)
            row = self.session.get(kind.model, entity_id)
            self.session.delete(row)
            self.session.flush()

        logger.info(f"Deleted {kind.label} {entity_id}")

    def dependents(self, kind_key: str, entity_id: int) -> Dict[str, int]:
        """Preview of what blocks a delete (all counts, zeros included)."""
        return self.guard.check(kind_key, entity_id)

    # ------------------------------------------------------------- checks

    @staticmethod
    def _reject_read_only(kind: EntityKind, data, row=None):
        if not isinstance(data, dict):
            return
        for field in kind.read_only_fields:
            if field not in data:
                continue
            current = getattr(row, field) if row is not None else None
            supplied = data[field]
            if supplied in (None, '') and current is None:
                continue
            if row is not None and supplied is not None and str(supplied) == str(current):
                continue
            logger.warning(f"Rejected {kind.label} write to read-only field {field}")
            raise ValidationError(field, f"{field} is maintained by weapon assignments and cannot be set directly")

    def _check_unique(self, kind: EntityKind, values, exclude_id=None):
        for field in kind.unique_fields:
            value = values.get(field)
            if value is None:
                continue
            query = self.session.query(kind.model.id).filter(getattr(kind.model, field) == value)
            if exclude_id is not None:
                query = query.filter(kind.model.id != exclude_id)
            if query.first() is not None:
                logger.warning(f"Rejected {kind.label}: duplicate {field} {value!r}")
                raise ConflictError(field, value, f"{kind.label} {field} {value!r} already exists")

    @staticmethod
    def _check_initial_status(kind: EntityKind, row):
        """A new row may start in any status whose guard it already satisfies."""
        machine = kind.machine
        if machine is None:
            return
        reason = machine.guard(machine.INITIAL, row.status, row, date.today())
        if reason is not None:
            raise ValidationError('status', f"{kind.label} cannot start as {row.status}: {reason}")
        if kind.key == WEAPON_MAINTENANCE and machine.is_terminal(row.status) and row.end_date is None:
            row.end_date = date.today()

    @staticmethod
    def _check_row(kind_key: str, row):
        """Cross-field rules checked on the final state of the row."""
        if kind_key == WEAPON_MAINTENANCE:
            closed = MaintenanceStateMachine.is_terminal(row.status)
            if closed and row.end_date is None:
                raise ValidationError('end_date', f"A {row.status} maintenance record requires end_date")
            if not closed and row.end_date is not None:
                raise ValidationError('end_date', "end_date is set when maintenance is completed or cancelled")
            require_order('start_date', row.start_date, 'end_date', row.end_date)
        elif kind_key == AMMUNITION:
            require_order('production_date', row.production_date, 'expiration_date', row.expiration_date)
