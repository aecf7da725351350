"""
Reference validation utilities

Confirms that every foreign key on an incoming row resolves to an existing
row before the row is written. Pure read: nothing is added to or flushed
from the session.
"""

from typing import Any, Dict, Optional

from armory.business.core.entity_registry import get_kind
from armory.business.errors import RefError
from armory.logger import get_logger

logger = get_logger("armory.business.validation.references")


class ReferenceValidator:
    """
    Point-lookup validator for foreign-key fields.

    Null or absent optional references are always valid; required-ness is
    the field validator's concern, not this one's.
    """

    def __init__(self, session):
        """
        Args:
            session: SQLAlchemy session used for the lookups
        """
        self.session = session

    def resolve(self, target_key: str, ref_id: Optional[int]):
        """Return the referenced row, or None if the id is null or unknown."""
        if ref_id is None:
            return None
        return self.session.get(get_kind(target_key).model, ref_id)

    def validate(self, kind_key: str, row: Dict[str, Any], fields=None) -> None:
        """
        Validate foreign keys of a row.

        Args:
            kind_key: Entity kind of the row (e.g. "weapons")
            row: Mapping of column values
            fields: Optional subset of reference fields to check

        Raises:
            RefError: For the first non-null reference that does not resolve
        """
        kind = get_kind(kind_key)

        for field, target_key in kind.references.items():
            if fields is not None and field not in fields:
                continue
            value = row.get(field)
            if value is None:
                continue
            if self.resolve(target_key, value) is None:
                target = get_kind(target_key).label
                logger.warning(f"Rejected {kind.label}: {field}={value} does not resolve to a {target}")
                raise RefError(field, value, entity=target)