from armory.data.armory_base import ArmoryBase
from armory import db


class Manufacturer(ArmoryBase):
    __tablename__ = 'manufacturers'

    name = db.Column(db.String(100), nullable=False)
    country = db.Column(db.String(50), nullable=True)
    contact_info = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='Active')

    def __repr__(self):
        return f'<Manufacturer {self.name}>'
