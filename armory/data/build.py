"""
Model build module for the armory system
Imports every model so SQLAlchemy registers its table before create_all()
"""

from armory import db
from armory.logger import get_logger

logger = get_logger("armory.data.build")


def build_models():
    """
    Register all models - importing a model module is enough to register
    its table with SQLAlchemy
    """
    import armory.data.manufacturer
    import armory.data.military_unit
    import armory.data.storage_facility
    import armory.data.weapon
    import armory.data.soldier
    import armory.data.weapon_assignment
    import armory.data.weapon_maintenance
    import armory.data.ammunition

    logger.debug("Armory models registered")


def create_tables():
    """Create all registered tables that do not exist yet"""
    build_models()
    db.create_all()
    logger.info("Armory tables created")
