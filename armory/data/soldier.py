from armory.data.armory_base import ArmoryBase
from armory import db


class Soldier(ArmoryBase):
    __tablename__ = 'soldiers'

    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    rank = db.Column(db.String(30), nullable=True)
    serial_number = db.Column(db.String(50), unique=True, nullable=False)
    date_of_birth = db.Column(db.Date, nullable=True)
    join_date = db.Column(db.Date, nullable=True)
    unit_id = db.Column(db.Integer, db.ForeignKey('military_units.id'), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='Active')
    specialization = db.Column(db.String(100), nullable=True)

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'

    def __repr__(self):
        return f'<Soldier {self.rank} {self.full_name} ({self.serial_number})>'
