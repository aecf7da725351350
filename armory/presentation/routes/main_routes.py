"""
Top-level routes (health check)
"""

from flask import Blueprint, jsonify
from sqlalchemy import text

from armory import db
from armory.logger import get_logger

main = Blueprint('main', __name__)
logger = get_logger("armory.routes.main")


@main.route('/health')
def health():
    """Liveness plus a trivial database round trip"""
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        db.session.rollback()
        logger.error(f"Health check failed: {e}")
        return jsonify({'status': 'error', 'database': 'unavailable'}), 503
    return jsonify({'status': 'ok', 'database': 'ok'})
