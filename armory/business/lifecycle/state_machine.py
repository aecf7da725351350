"""
State machines for status-bearing armory entities

Encodes valid transitions and provides guard hooks.
Keeps "what is allowed" separate from "how persistence occurs"
(see StatusManager and AssignmentCoordinator for the latter).
"""

from datetime import date
from typing import Dict, Optional, Set

from armory.business.errors import InvalidTransitionError


class StatusStateMachine:
    """
    Base state machine for a single status column.

    Subclasses declare STATUSES, TRANSITIONS and TERMINAL_STATES; the
    classmethods below are shared. Transitions only happen on explicit
    request - nothing here runs on a timer.
    """

    ENTITY = 'Entity'
    STATUSES: tuple = ()
    # Alternate spellings accepted on input, mapped to the canonical value
    ALIASES: Dict[str, str] = {}
    INITIAL = None
    TERMINAL_STATES: Set[str] = set()
    TRANSITIONS: Dict[str, Set[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str, row=None, on: Optional[date] = None) -> bool:
        """
        Check if transition is valid.

        Args:
            from_status: Current status
            to_status: Target status
            row: Optional model instance for guard checks
            on: Optional as-of date for date-based guards

        Returns:
            bool: True if transition is allowed
        """
        return cls.rejection_reason(from_status, to_status, row, on) is None

    @classmethod
    def rejection_reason(cls, from_status: str, to_status: str, row=None, on: Optional[date] = None) -> Optional[str]:
        """Return why a transition is refused, or None when it is allowed."""
        if to_status not in cls.STATUSES:
            return f"unknown status {to_status!r}"

        # Allow staying in same state (no-op)
        if from_status == to_status:
            return None

        if from_status in cls.TERMINAL_STATES:
            return f"{from_status} is terminal"

        if to_status not in cls.TRANSITIONS.get(from_status, set()):
            return "not an allowed transition"

        if row is not None:
            return cls.guard(from_status, to_status, row, on or date.today())
        return None

    @classmethod
    def guard(cls, from_status: str, to_status: str, row, on: date) -> Optional[str]:
        """Per-entity guard hook; returns a refusal reason or None."""
        return None

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str, row=None, on: Optional[date] = None) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            InvalidTransitionError: If transition is not allowed
        """
        reason = cls.rejection_reason(from_status, to_status, row, on)
        if reason is not None:
            raise InvalidTransitionError(cls.ENTITY, from_status, to_status, reason)

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        """Get set of allowed target statuses from current status"""
        if from_status in cls.TERMINAL_STATES:
            return set()
        return set(cls.TRANSITIONS.get(from_status, set()))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL_STATES


class WeaponStateMachine(StatusStateMachine):
    """
    Weapon.status: Active, Inactive and Under Maintenance are mutually reachable.
    """

    ENTITY = 'Weapon'
    ACTIVE = 'Active'
    INACTIVE = 'Inactive'
    UNDER_MAINTENANCE = 'Under Maintenance'

    STATUSES = (ACTIVE, INACTIVE, UNDER_MAINTENANCE)
    ALIASES = {'UnderMaintenance': UNDER_MAINTENANCE}
    INITIAL = ACTIVE
    TERMINAL_STATES: Set[str] = set()

    TRANSITIONS: Dict[str, Set[str]] = {
        ACTIVE: {INACTIVE, UNDER_MAINTENANCE},
        INACTIVE: {ACTIVE, UNDER_MAINTENANCE},
        UNDER_MAINTENANCE: {ACTIVE, INACTIVE},
    }


class AssignmentStateMachine(StatusStateMachine):
    """
    WeaponAssignment.status: Active -> Returned | Lost.

    Both outcomes are terminal; reassigning a weapon means a new row.
    """

    ENTITY = 'WeaponAssignment'
    ACTIVE = 'Active'
    RETURNED = 'Returned'
    LOST = 'Lost'

    STATUSES = (ACTIVE, RETURNED, LOST)
    INITIAL = ACTIVE
    TERMINAL_STATES = {RETURNED, LOST}

    TRANSITIONS: Dict[str, Set[str]] = {
        ACTIVE: {RETURNED, LOST},
    }


class MaintenanceStateMachine(StatusStateMachine):
    """
    WeaponMaintenance.status: Scheduled -> In Progress -> Completed,
    with Cancelled reachable from either open state.
    """

    ENTITY = 'WeaponMaintenance'
    SCHEDULED = 'Scheduled'
    IN_PROGRESS = 'In Progress'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'

    STATUSES = (SCHEDULED, IN_PROGRESS, COMPLETED, CANCELLED)
    ALIASES = {'InProgress': IN_PROGRESS}
    INITIAL = SCHEDULED
    TERMINAL_STATES = {COMPLETED, CANCELLED}

    TRANSITIONS: Dict[str, Set[str]] = {
        SCHEDULED: {IN_PROGRESS, CANCELLED},
        IN_PROGRESS: {COMPLETED, CANCELLED},
    }


class AmmunitionStateMachine(StatusStateMachine):
    """
    Ammunition.status: Available <-> Reserved; either may become Depleted
    (quantity is zero) or Expired (expiration date has passed).
    Depleted and Expired lots can no longer be issued.
    """

    ENTITY = 'Ammunition'
    AVAILABLE = 'Available'
    RESERVED = 'Reserved'
    DEPLETED = 'Depleted'
    EXPIRED = 'Expired'

    STATUSES = (AVAILABLE, RESERVED, DEPLETED, EXPIRED)
    INITIAL = AVAILABLE
    TERMINAL_STATES = {DEPLETED, EXPIRED}

    TRANSITIONS: Dict[str, Set[str]] = {
        AVAILABLE: {RESERVED, DEPLETED, EXPIRED},
        RESERVED: {AVAILABLE, DEPLETED, EXPIRED},
    }

    @classmethod
    def guard(cls, from_status, to_status, row, on):
        if to_status == cls.DEPLETED and (row.quantity or 0) != 0:
            return f"quantity is {row.quantity}, not 0"
        if to_status == cls.EXPIRED:
            if row.expiration_date is None:
                return "no expiration date recorded"
            if row.expiration_date >= on:
                return f"expiration date {row.expiration_date.isoformat()} has not passed"
        return None

    @classmethod
    def derived_status(cls, row, on: date) -> Optional[str]:
        """Status an explicit refresh would move this lot to, if any."""
        if row.status in cls.TERMINAL_STATES:
            return None
        if (row.quantity or 0) == 0:
            return cls.DEPLETED
        if row.expiration_date is not None and row.expiration_date < on:
            return cls.EXPIRED
        return None


class FacilityStateMachine(StatusStateMachine):
    """
    StorageFacility.status: Active, Full and Under Maintenance are
    mutually reachable; any of them may become Decommissioned (terminal).

    Decommissioning is additionally gated on the facility being empty,
    which StatusManager checks through the DeletionGuard.
    """

    ENTITY = 'StorageFacility'
    ACTIVE = 'Active'
    FULL = 'Full'
    UNDER_MAINTENANCE = 'Under Maintenance'
    DECOMMISSIONED = 'Decommissioned'

    STATUSES = (ACTIVE, FULL, UNDER_MAINTENANCE, DECOMMISSIONED)
    ALIASES = {'Operational': ACTIVE, 'UnderMaintenance': UNDER_MAINTENANCE}
    INITIAL = ACTIVE
    TERMINAL_STATES = {DECOMMISSIONED}

    TRANSITIONS: Dict[str, Set[str]] = {
        ACTIVE: {FULL, UNDER_MAINTENANCE, DECOMMISSIONED},
        FULL: {ACTIVE, UNDER_MAINTENANCE, DECOMMISSIONED},
        UNDER_MAINTENANCE: {ACTIVE, FULL, DECOMMISSIONED},
    }
