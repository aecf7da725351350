"""
Routes package for the armory JSON API
"""

from flask import jsonify
from werkzeug.exceptions import HTTPException

from armory.business.errors import ArmoryDomainError
from armory.logger import get_logger

logger = get_logger("armory.routes")


def _domain_error(error):
    if error.http_status >= 500:
        logger.error(f"{error.kind}: {error.message}")
    else:
        logger.info(f"{error.kind}: {error.message}")
    return jsonify(error.to_dict()), error.http_status


def _http_error(error):
    return jsonify({'kind': error.name, 'message': error.description}), error.code


def init_app(app):
    """Initialize all route blueprints and JSON error handlers with the Flask app"""
    logger.debug("Initializing route blueprints")

    from .main_routes import main
    from .api import bp as api_bp

    app.register_blueprint(main)
    app.register_blueprint(api_bp, url_prefix='/api')

    app.register_error_handler(ArmoryDomainError, _domain_error)
    app.register_error_handler(HTTPException, _http_error)

    logger.info("Registered armory blueprints")
