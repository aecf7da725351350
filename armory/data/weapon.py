from armory.data.armory_base import ArmoryBase
from armory import db


class Weapon(ArmoryBase):
    __tablename__ = 'weapons'

    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(50), nullable=True)
    model = db.Column(db.String(50), nullable=True)
    serial_number = db.Column(db.String(50), unique=True, nullable=False)
    manufacturer_id = db.Column(db.Integer, db.ForeignKey('manufacturers.id'), nullable=True)
    caliber = db.Column(db.String(20), nullable=True)
    acquisition_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(30), nullable=False, default='Active')
    # Mirrors the unit of the Active assignment; written only by AssignmentCoordinator
    assigned_unit_id = db.Column(db.Integer, db.ForeignKey('military_units.id'), nullable=True)
    facility_id = db.Column(db.Integer, db.ForeignKey('storage_facilities.id'), nullable=True)
    last_inspection_date = db.Column(db.Date, nullable=True)

    def __repr__(self):
        return f'<Weapon {self.name} ({self.serial_number})>'
