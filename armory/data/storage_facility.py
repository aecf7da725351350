"""
Storage Facility Model

Represents an armory, depot or other secured room where weapons and
ammunition lots are stored.
"""

from armory import db
from armory.data.armory_base import ArmoryBase


class StorageFacility(ArmoryBase):
    """Physical storage location for weapons and ammunition"""
    __tablename__ = 'storage_facilities'

    name = db.Column(db.String(100), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    capacity = db.Column(db.Integer, nullable=True)
    security_level = db.Column(db.String(20), nullable=False, default='Medium')
    status = db.Column(db.String(30), nullable=False, default='Active')

    __table_args__ = (
        db.CheckConstraint('capacity IS NULL OR capacity >= 0', name='ck_storage_facilities_capacity'),
    )

    def __repr__(self):
        return f'<StorageFacility {self.name}>'
