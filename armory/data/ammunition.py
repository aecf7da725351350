"""
Ammunition Model

A lot of identical rounds from one production batch held at one facility.
"""

from armory import db
from armory.data.armory_base import ArmoryBase


class Ammunition(ArmoryBase):
    """Ammunition lot"""
    __tablename__ = 'ammunition'

    name = db.Column(db.String(100), nullable=True)
    type = db.Column(db.String(50), nullable=True)
    caliber = db.Column(db.String(20), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    manufacturer_id = db.Column(db.Integer, db.ForeignKey('manufacturers.id'), nullable=True)
    batch_number = db.Column(db.String(50), nullable=True)
    production_date = db.Column(db.Date, nullable=True)
    expiration_date = db.Column(db.Date, nullable=True)
    facility_id = db.Column(db.Integer, db.ForeignKey('storage_facilities.id'), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='Available')

    __table_args__ = (
        db.CheckConstraint('quantity >= 0', name='ck_ammunition_quantity'),
    )

    @property
    def display_name(self):
        return self.name or self.type

    def __repr__(self):
        return f'<Ammunition {self.display_name} x{self.quantity}>'
