"""
Armory API routes
CRUD, lifecycle and reporting endpoints for every entity kind.

Routes stay thin: they parse the JSON body, call the business layer with
db.session and serialize the result. Domain errors are turned into
{kind, message, ...} responses by the handler in routes/__init__.py.
"""

from flask import Blueprint, abort, jsonify, request

from armory import db, limiter
from armory.business.assignments.assignment_coordinator import AssignmentCoordinator
from armory.business.core.entity_manager import EntityManager
from armory.business.core.entity_registry import ENTITY_KINDS, WEAPON_ASSIGNMENTS
from armory.business.errors import ValidationError
from armory.business.lifecycle.status_manager import StatusManager
from armory.logger import get_logger
from armory.services.reporting_service import ReportingService

bp = Blueprint('api', __name__)
logger = get_logger("armory.routes.api")


def _kind(kind):
    key = kind.replace('-', '_')
    if key not in ENTITY_KINDS:
        abort(404, description=f"Unknown entity kind: {kind}")
    return key


def _json_body(required=True):
    data = request.get_json(silent=True)
    if data is None:
        if not required:
            return {}
        raise ValidationError(None, "Request body must be a JSON object")
    if not isinstance(data, dict):
        raise ValidationError(None, "Request body must be a JSON object")
    return data


@bp.route('/dashboard')
def dashboard():
    """Aggregate figures for the dashboard"""
    return jsonify(ReportingService(db.session).dashboard_summary())


@bp.route('/ammunition/refresh-status', methods=['POST'])
@limiter.limit("30 per minute")
def refresh_ammunition_status():
    """Explicit expiry/depletion pass over ammunition lots"""
    body = _json_body(required=False)
    changes = StatusManager(db.session).refresh_ammunition(
        as_of=body.get('as_of'),
        ammunition_id=body.get('ammunition_id'),
    )
    return jsonify({'changed': [c.to_dict() for c in changes], 'count': len(changes)})


@bp.route('/<kind>', methods=['GET'])
def list_rows(kind):
    """List all rows of a kind"""
    return jsonify(EntityManager(db.session).list(_kind(kind)))


@bp.route('/<kind>', methods=['POST'])
def create_row(kind):
    """Create a row"""
    key = _kind(kind)
    row = EntityManager(db.session).create(key, _json_body())
    return jsonify(row), 201


@bp.route('/<kind>/<int:entity_id>', methods=['GET'])
def get_row(kind, entity_id):
    """View one row"""
    return jsonify(EntityManager(db.session).get(_kind(kind), entity_id))


@bp.route('/<kind>/<int:entity_id>', methods=['PUT', 'PATCH'])
def update_row(kind, entity_id):
    """Update a row; absent fields are left unchanged"""
    key = _kind(kind)
    return jsonify(EntityManager(db.session).update(key, entity_id, _json_body()))


@bp.route('/<kind>/<int:entity_id>', methods=['DELETE'])
def delete_row(kind, entity_id):
    """Delete a row once nothing references it"""
    key = _kind(kind)
    EntityManager(db.session).delete(key, entity_id)
    return jsonify({'message': f"{ENTITY_KINDS[key].label} {entity_id} deleted", 'id': entity_id})


@bp.route('/<kind>/<int:entity_id>/dependents', methods=['GET'])
def dependents(kind, entity_id):
    """Rows that would block deleting this one"""
    key = _kind(kind)
    counts = EntityManager(db.session).dependents(key, entity_id)
    return jsonify({'id': entity_id, 'dependents': counts, 'deletable': not any(counts.values())})


@bp.route('/<kind>/<int:entity_id>/status', methods=['POST'])
def change_status(kind, entity_id):
    """Move a row to a new status"""
    key = _kind(kind)
    body = _json_body()
    change = StatusManager(db.session).change_status(key, entity_id, body.get('status'), body.get('date'))
    return jsonify({
        'change': change.to_dict(),
        'row': EntityManager(db.session).get(key, entity_id),
    })


@bp.route('/weapon_assignments/<int:assignment_id>/return', methods=['POST'])
def return_assignment(assignment_id):
    """Record that an assigned weapon came back"""
    body = _json_body(required=False)
    AssignmentCoordinator(db.session).return_assignment(assignment_id, body.get('return_date'))
    return jsonify(EntityManager(db.session).get(WEAPON_ASSIGNMENTS, assignment_id))


@bp.route('/weapon_assignments/<int:assignment_id>/lost', methods=['POST'])
def mark_assignment_lost(assignment_id):
    """Record that an assigned weapon is lost"""
    body = _json_body(required=False)
    AssignmentCoordinator(db.session).mark_lost(assignment_id, body.get('lost_date') or body.get('date'))
    return jsonify(EntityManager(db.session).get(WEAPON_ASSIGNMENTS, assignment_id))


@bp.route('/<kind>/<int:entity_id>/transitions', methods=['GET'])
def allowed_transitions(kind, entity_id):
    """Statuses this row may move to next"""
    key = _kind(kind)
    return jsonify({'id': entity_id, 'allowed': StatusManager(db.session).allowed_transitions(key, entity_id)})
