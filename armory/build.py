#!/usr/bin/env python3
"""
Main build orchestrator for the armory system
Handles table creation, debug data insertion and the explicit ammunition
status refresh
"""

from armory.data.build import create_tables
from armory.logger import get_logger

logger = get_logger("armory.build")


def check_database(session):
    """
    Check whether the armory tables are reachable

    Returns:
        bool: True if the manufacturers table can be queried
    """
    from sqlalchemy.exc import SQLAlchemyError
    from armory.data.manufacturer import Manufacturer

    try:
        session.query(Manufacturer.id).first()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error checking database: {e}")
        return False
    return True


def build_database(app, enable_debug_data=True, refresh_ammunition=False):
    """
    Build the armory database

    Args:
        app: Flask application (provides the database configuration)
        enable_debug_data (bool): Whether to insert debug data (default: True)
        refresh_ammunition (bool): Run the expiry/depletion pass after seeding

    Returns:
        dict: Summary of what was done
    """
    from armory import db

    summary = {}
    with app.app_context():
        logger.info("Starting database build")
        create_tables()

        if not check_database(db.session):
            raise RuntimeError("Armory tables are not reachable after create_all()")

        if enable_debug_data:
            from armory.debug.debug_data_manager import insert_debug_data
            logger.info("Inserting debug data...")
            try:
                summary['debug_data'] = insert_debug_data(enabled=True, session=db.session)
            except Exception as e:
                logger.error(f"Debug data insertion failed: {e}")
                raise

        if refresh_ammunition:
            from armory.business.lifecycle.status_manager import StatusManager
            changes = StatusManager(db.session).refresh_ammunition()
            summary['ammunition_refreshed'] = [c.to_dict() for c in changes]

        logger.info("Database build completed successfully")
    return summary
