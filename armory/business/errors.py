"""
Domain exceptions for armory business logic

These exceptions represent business rule violations and store failures.
They are raised by the business layer and carry structured details so the
request layer can turn them into a {kind, message} response.
"""


class ArmoryDomainError(Exception):
    """Base exception for all armory domain errors"""

    kind = 'DomainError'
    http_status = 400

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'kind': self.kind, 'message': self.message}
        payload.update(self.details)
        return payload


class ValidationError(ArmoryDomainError):
    """Raised when a field is missing or malformed"""

    kind = 'ValidationError'

    def __init__(self, field, message):
        super().__init__(message, field=field)
        self.field = field


class RefError(ArmoryDomainError):
    """Raised when a foreign key does not resolve to an existing row"""

    kind = 'RefError'

    def __init__(self, field, value, entity=None):
        target = entity or 'Referenced row'
        super().__init__(f"{target} with ID {value} does not exist ({field})", field=field, value=value)
        self.field = field
        self.value = value


class NotFoundError(ArmoryDomainError):
    """Raised when a primary key does not resolve"""

    kind = 'NotFound'
    http_status = 404

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} with ID {entity_id} not found", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ArmoryDomainError):
    """Raised on uniqueness violations, including a second Active assignment"""

    kind = 'Conflict'
    http_status = 409

    def __init__(self, field, value, message=None):
        super().__init__(message or f"{field} {value} conflicts with an existing row", field=field, value=value)
        self.field = field
        self.value = value


class BlockedError(ArmoryDomainError):
    """Raised when dependent rows prevent a destructive operation"""

    kind = 'Blocked'
    http_status = 409

    def __init__(self, entity, entity_id, dependents, action='delete'):
        listed = ", ".join(f"{count} {name}" for name, count in dependents.items() if count)
        super().__init__(
            f"Cannot {action} {entity} {entity_id}: dependent rows exist ({listed})",
            entity=entity,
            id=entity_id,
            dependents=dict(dependents),
        )
        self.entity = entity
        self.entity_id = entity_id
        self.dependents = dict(dependents)


class InvalidTransitionError(ArmoryDomainError):
    """Raised when a status change is not allowed by the entity's state machine"""

    kind = 'InvalidTransition'
    http_status = 409

    def __init__(self, entity, from_status, to_status, reason=None):
        message = f"Invalid {entity} status transition: {from_status} → {to_status}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, entity=entity, **{'from': from_status, 'to': to_status})
        self.entity = entity
        self.from_status = from_status
        self.to_status = to_status


class StoreError(ArmoryDomainError):
    """Raised when the underlying storage fails; never retried"""

    kind = 'StoreError'
    http_status = 500

    def __init__(self, entity, operation, cause=None):
        message = f"Storage failure during {operation} on {entity}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, entity=entity, operation=operation)
        self.entity = entity
        self.operation = operation
        self.cause = cause
