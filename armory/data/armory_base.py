from armory import db
from datetime import datetime, timezone
from armory.business.core.data_insertion_mixin import DataInsertionMixin


def utcnow():
    return datetime.now(timezone.utc)


class ArmoryBase(db.Model, DataInsertionMixin):
    """Abstract base class for all armory tables with an audit trail"""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
