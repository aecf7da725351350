"""
Pytest configuration and fixtures for the armory tests
"""
import itertools
import os
import tempfile

# Keep test logs out of the project directory
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='armory-test-logs-'))
os.environ.setdefault('LOG_LEVEL', 'WARNING')

import pytest

from armory import create_app
from armory import db as _db
from armory.business.core.entity_manager import EntityManager
from armory.business.core.entity_registry import (
    AMMUNITION,
    MANUFACTURERS,
    MILITARY_UNITS,
    SOLDIERS,
    STORAGE_FACILITIES,
    WEAPON_MAINTENANCE,
    WEAPONS,
)


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing on an in-memory database"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'RATELIMIT_ENABLED': False,
    })

    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def db(app):
    """Fresh schema for every test"""
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope='function')
def session(db):
    return db.session


@pytest.fixture(scope='function')
def client(app, db):
    """Create Flask test client"""
    return app.test_client()


class Builder:
    """Creates valid rows through the EntityManager with sensible defaults"""

    def __init__(self, session):
        self.entities = EntityManager(session)
        self._serials = itertools.count(1)

    def manufacturer(self, **fields):
        return self.entities.create(MANUFACTURERS, {'name': 'Glock', 'country': 'Austria', **fields})

    def unit(self, **fields):
        return self.entities.create(MILITARY_UNITS, {'name': f'Unit {next(self._serials)}', **fields})

    def facility(self, **fields):
        return self.entities.create(STORAGE_FACILITIES, {'name': f'Armory {next(self._serials)}', **fields})

    def weapon(self, **fields):
        data = {'name': 'Glock 19', 'type': 'Pistol', 'serial_number': f'W{next(self._serials):05d}'}
        data.update(fields)
        return self.entities.create(WEAPONS, data)

    def soldier(self, **fields):
        data = {'first_name': 'James', 'last_name': 'Smith', 'serial_number': f'S{next(self._serials):05d}'}
        data.update(fields)
        return self.entities.create(SOLDIERS, data)

    def ammunition(self, **fields):
        data = {'name': 'M855', 'type': 'Ball', 'caliber': '5.56mm', 'quantity': 1000}
        data.update(fields)
        return self.entities.create(AMMUNITION, data)

    def maintenance(self, weapon_id, **fields):
        data = {'weapon_id': weapon_id, 'type': 'Regular', 'start_date': '2024-01-10'}
        data.update(fields)
        return self.entities.create(WEAPON_MAINTENANCE, data)


@pytest.fixture(scope='function')
def build(session):
    return Builder(session)
