"""
Deletion Guard

Counts the rows that reference an entity and refuses destructive operations
(hard delete, facility decommissioning) while any exist.
"""

from typing import Dict, List, Tuple

from sqlalchemy import func

from armory.business.core.entity_registry import (
    AMMUNITION,
    MANUFACTURERS,
    MILITARY_UNITS,
    SOLDIERS,
    STORAGE_FACILITIES,
    WEAPON_ASSIGNMENTS,
    WEAPON_MAINTENANCE,
    WEAPONS,
    get_kind,
)
from armory.business.errors import BlockedError, NotFoundError
from armory.logger import get_logger

logger = get_logger("armory.business.deletion.guard")

# entity kind -> [(dependent label, dependent kind, referencing column)]
DEPENDENTS: Dict[str, List[Tuple[str, str, str]]] = {
    STORAGE_FACILITIES: [
        ('weapons', WEAPONS, 'facility_id'),
        ('ammunition', AMMUNITION, 'facility_id'),
    ],
    MANUFACTURERS: [
        ('weapons', WEAPONS, 'manufacturer_id'),
        ('ammunition', AMMUNITION, 'manufacturer_id'),
    ],
    MILITARY_UNITS: [
        ('soldiers', SOLDIERS, 'unit_id'),
        ('weapon_assignments', WEAPON_ASSIGNMENTS, 'unit_id'),
        ('weapons', WEAPONS, 'assigned_unit_id'),
    ],
    WEAPONS: [
        ('weapon_assignments', WEAPON_ASSIGNMENTS, 'weapon_id'),
        ('weapon_maintenance', WEAPON_MAINTENANCE, 'weapon_id'),
    ],
    SOLDIERS: [
        ('weapon_assignments', WEAPON_ASSIGNMENTS, 'soldier_id'),
    ],
}


class DeletionGuard:
    """
    Dependency gate for destructive operations.

    Every count is reported, including zeros, so callers can show the
    full picture (e.g. {"weapons": 2, "ammunition": 0}).
    """

    def __init__(self, session):
        self.session = session

    def count_dependents(self, kind_key: str, entity_id: int) -> Dict[str, int]:
        """
        Count rows referencing an entity.

        Args:
            kind_key: Entity kind of the row about to be removed
            entity_id: Primary key of that row

        Returns:
            dict of dependent label -> row count (empty for kinds nothing references)
        """
        counts = {}
        for label, dependent_key, column in DEPENDENTS.get(kind_key, []):
            model = get_kind(dependent_key).model
            count = (
                self.session.query(func.count(model.id))
                .filter(getattr(model, column) == entity_id)
                .scalar()
            )
            counts[label] = count or 0
        return counts

    def check(self, kind_key: str, entity_id: int) -> Dict[str, int]:
        """
        Confirm the entity exists and return its dependent counts.

        Raises:
            NotFoundError: If the entity does not exist
        """
        kind = get_kind(kind_key)
        if self.session.get(kind.model, entity_id) is None:
            raise NotFoundError(kind.label, entity_id)
        return self.count_dependents(kind_key, entity_id)

    def before_delete(self, kind_key: str, entity_id: int, action: str = 'delete') -> None:
        """
        Gate a destructive operation.

        Raises:
            NotFoundError: If the entity does not exist
            BlockedError: If any dependent rows exist
        """
        counts = self.check(kind_key, entity_id)
        if any(counts.values()):
            label = get_kind(kind_key).label
            logger.warning(f"Blocked {action} of {label} {entity_id}: {counts}")
            raise BlockedError(label, entity_id, counts, action=action)

    def is_deletable(self, kind_key: str, entity_id: int) -> bool:
        return not any(self.count_dependents(kind_key, entity_id).values())
