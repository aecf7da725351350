from armory.data.armory_base import ArmoryBase
from armory import db


class MilitaryUnit(ArmoryBase):
    __tablename__ = 'military_units'

    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(50), nullable=True)
    location = db.Column(db.String(100), nullable=True)
    commanding_officer = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='Active')

    def __repr__(self):
        return f'<MilitaryUnit {self.name}>'
