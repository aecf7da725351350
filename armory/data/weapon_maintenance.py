from armory.data.armory_base import ArmoryBase
from armory import db


class WeaponMaintenance(ArmoryBase):
    __tablename__ = 'weapon_maintenance'

    weapon_id = db.Column(db.Integer, db.ForeignKey('weapons.id'), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=True)
    technician = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='Scheduled')
    cost = db.Column(db.Numeric(10, 2), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<WeaponMaintenance {self.type} weapon={self.weapon_id} {self.status}>'
