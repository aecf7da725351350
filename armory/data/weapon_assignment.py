"""
Weapon Assignment Model

One row per custody period of a weapon. The partial unique index makes the
store itself refuse a second Active row for the same weapon.
"""

from armory import db
from armory.data.armory_base import ArmoryBase

ACTIVE_ONLY = db.text("status = 'Active'")


class WeaponAssignment(ArmoryBase):
    """Custody of a weapon by a soldier on behalf of a unit"""
    __tablename__ = 'weapon_assignments'

    weapon_id = db.Column(db.Integer, db.ForeignKey('weapons.id'), nullable=False)
    soldier_id = db.Column(db.Integer, db.ForeignKey('soldiers.id'), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey('military_units.id'), nullable=False)
    assignment_date = db.Column(db.Date, nullable=False)
    return_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='Active')
    notes = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.Index(
            'uq_weapon_assignments_active_weapon',
            'weapon_id',
            unique=True,
            sqlite_where=ACTIVE_ONLY,
            postgresql_where=ACTIVE_ONLY,
        ),
    )

    @property
    def is_active(self):
        return self.status == 'Active'

    def __repr__(self):
        return f'<WeaponAssignment weapon={self.weapon_id} soldier={self.soldier_id} {self.status}>'
