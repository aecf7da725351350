"""
Transaction scope for multi-row business operations

atomic() commits once when the outermost scope exits cleanly and rolls back
on any error, so an operation that touches several rows is applied wholly
or not at all. Nested scopes (e.g. EntityManager calling the
AssignmentCoordinator) join the outer transaction.
"""

import re
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from armory.business.errors import ArmoryDomainError, ConflictError, StoreError
from armory.logger import get_logger

logger = get_logger("armory.business.core.transaction")

_DEPTH_KEY = 'armory_atomic_depth'

# sqlite: "UNIQUE constraint failed: weapons.serial_number"
# postgresql: 'duplicate key value violates unique constraint "weapons_serial_number_key"'
_UNIQUE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: (?P<table>\w+)\.(?P<column>\w+)"),
    re.compile(r'unique constraint "(?P<constraint>\w+)"'),
)


def _conflict_from_integrity_error(entity, error):
    text = str(error.orig) if getattr(error, 'orig', None) is not None else str(error)
    for pattern in _UNIQUE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        groups = match.groupdict()
        if groups.get('constraint') == 'uq_weapon_assignments_active_weapon' or (
            groups.get('table') == 'weapon_assignments' and groups.get('column') == 'weapon_id'
        ):
            return ConflictError('weapon_id', None, "Weapon already has an Active assignment")
        column = groups.get('column') or 'serial_number'
        return ConflictError(column, None, f"{entity} {column} must be unique")
    return None


@contextmanager
def atomic(session, entity, operation):
    """
    Run a block inside one transaction.

    Args:
        session: SQLAlchemy session (the explicit store handle)
        entity: Entity label used in StoreError context
        operation: Operation name used in StoreError context

    Raises:
        ArmoryDomainError: Re-raised unchanged after rollback
        ConflictError: If the store reports a unique-constraint violation
        StoreError: For any other storage failure
    """
    depth = session.info.get(_DEPTH_KEY, 0)
    session.info[_DEPTH_KEY] = depth + 1
    outermost = depth == 0
    try:
        yield session
        if outermost:
            session.commit()
    except ArmoryDomainError:
        if outermost:
            session.rollback()
        raise
    except IntegrityError as e:
        if outermost:
            session.rollback()
        conflict = _conflict_from_integrity_error(entity, e)
        if conflict is not None:
            logger.warning(f"{operation} on {entity} rejected by store constraint: {conflict.message}")
            raise conflict from e
        logger.error(f"Integrity failure during {operation} on {entity}: {e}")
        raise StoreError(entity, operation, e.orig if e.orig is not None else e) from e
    except SQLAlchemyError as e:
        if outermost:
            session.rollback()
        logger.error(f"Storage failure during {operation} on {entity}: {e}")
        raise StoreError(entity, operation, e) from e
    finally:
        session.info[_DEPTH_KEY] = depth
