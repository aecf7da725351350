"""
Generic data insertion mixin for SQLAlchemy models
Provides from_dict, apply_dict and to_dict so the business layer can move
rows in and out of plain dictionaries without per-model boilerplate.

Persistence is not done here: the caller owns the session and the
transaction boundary (see armory.business.core.transaction).
"""

from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import inspect

AUDIT_FIELDS = ('created_at', 'updated_at')


class DataInsertionMixin:
    """
    Mixin that provides generic dictionary conversion for SQLAlchemy models

    This mixin adds:
    - from_dict(): Create model instance from dictionary
    - apply_dict(): Copy dictionary values onto an existing instance
    - to_dict(): Convert model instance to dictionary
    """

    @classmethod
    def column_names(cls):
        return [c.key for c in inspect(cls).columns]

    @classmethod
    def from_dict(cls, data_dict, skip_fields=None):
        """
        Create a model instance from a dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            skip_fields (list, optional): Fields to skip during creation

        Returns:
            Model instance (not added to any session)
        """
        if skip_fields is None:
            skip_fields = []

        columns = set(cls.column_names())

        filtered_data = {}
        for key, value in data_dict.items():
            if key in columns and key not in skip_fields:
                if key in AUDIT_FIELDS and value is None:
                    # Skip timestamp fields if None
                    continue
                filtered_data[key] = value

        return cls(**filtered_data)

    def apply_dict(self, data_dict, skip_fields=None):
        """
        Copy values from a dictionary onto this instance

        Args:
            data_dict (dict): Column values to set
            skip_fields (list, optional): Fields never to overwrite

        Returns:
            list: Names of the columns whose value actually changed
        """
        skip = set(skip_fields or []) | {'id', *AUDIT_FIELDS}
        changed = []
        for key in self.column_names():
            if key in data_dict and key not in skip:
                if getattr(self, key) != data_dict[key]:
                    setattr(self, key, data_dict[key])
                    changed.append(key)
        return changed

    def to_dict(self, include_audit_fields=True):
        """
        Convert model instance to dictionary

        Dates become ISO strings and Decimals keep their exact text form.

        Args:
            include_audit_fields (bool): Whether to include audit fields

        Returns:
            dict: Dictionary representation of the model
        """
        result = {}
        for key in self.column_names():
            if not include_audit_fields and key in AUDIT_FIELDS:
                continue
            result[key] = serialize_value(getattr(self, key))
        return result


def serialize_value(value):
    """Convert a column value into its JSON-safe boundary form"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value
