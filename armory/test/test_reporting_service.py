"""
Tests for joined views, dependent counts and the dashboard
"""

from armory.business.assignments.assignment_coordinator import AssignmentCoordinator
from armory.services.reporting_service import ReportingService


def test_counts_are_zero_not_null(session, build):
    build.manufacturer(name='Heckler & Koch')
    build.unit(name='7th Marine Regiment')
    build.facility(name='Emergency Armory')
    reports = ReportingService(session)

    [manufacturer] = reports.manufacturers_with_counts()
    [unit] = reports.units_with_counts()
    [facility] = reports.facilities_with_counts()

    assert (manufacturer['weapon_count'], manufacturer['ammunition_count']) == (0, 0)
    assert (unit['soldier_count'], unit['weapon_assignment_count']) == (0, 0)
    assert (facility['weapon_count'], facility['ammunition_count'], facility['ammunition_quantity']) == (0, 0, 0)


def test_manufacturer_counts(session, build):
    colt = build.manufacturer(name='Colt Defense')
    build.manufacturer(name='Glock')
    build.weapon(manufacturer_id=colt['id'])
    build.weapon(manufacturer_id=colt['id'])
    build.ammunition(manufacturer_id=colt['id'])

    row = ReportingService(session).manufacturer_with_counts(colt['id'])

    assert row['name'] == 'Colt Defense'
    assert row['weapon_count'] == 2
    assert row['ammunition_count'] == 1


def test_unit_assignment_count_goes_through_soldiers(session, build):
    infantry = build.unit(name='1st Infantry Division')
    armored = build.unit(name='3rd Armored Brigade')
    smith = build.soldier(unit_id=infantry['id'])
    build.soldier(unit_id=infantry['id'])
    coordinator = AssignmentCoordinator(session)

    first = coordinator.create_assignment(build.weapon()['id'], smith['id'], armored['id'], '2022-01-20')
    coordinator.return_assignment(first.id, '2022-02-01')
    coordinator.create_assignment(build.weapon()['id'], smith['id'], armored['id'], '2022-03-01')

    reports = ReportingService(session)
    infantry_row = reports.unit_with_counts(infantry['id'])
    armored_row = reports.unit_with_counts(armored['id'])

    assert infantry_row['soldier_count'] == 2
    assert infantry_row['weapon_assignment_count'] == 2
    assert armored_row['soldier_count'] == 0
    assert armored_row['weapon_assignment_count'] == 0


def test_facility_totals(session, build):
    facility = build.facility(name='Special Weapons Depot')
    build.weapon(facility_id=facility['id'])
    build.ammunition(facility_id=facility['id'], quantity=5000)
    build.ammunition(facility_id=facility['id'], quantity=2000)

    [row] = ReportingService(session).facilities_with_counts(facility['id'])

    assert row['weapon_count'] == 1
    assert row['ammunition_count'] == 2
    assert row['ammunition_quantity'] == 7000


def test_assignment_view_names(session, build):
    unit = build.unit(name='5th Special Forces Group')
    soldier = build.soldier(first_name='Robert', last_name='Brown', unit_id=unit['id'])
    weapon = build.weapon(name='MP5', serial_number='W10006')
    AssignmentCoordinator(session).create_assignment(weapon['id'], soldier['id'], unit['id'], '2022-01-05')

    [row] = ReportingService(session).assignments_with_names()

    assert row['weapon_serial'] == 'W10006'
    assert row['weapon_name'] == 'MP5'
    assert (row['first_name'], row['last_name']) == ('Robert', 'Brown')
    assert row['unit_name'] == '5th Special Forces Group'


def test_soldier_view_without_unit(session, build):
    build.soldier(first_name='Lisa', last_name='Wilson')
    [row] = ReportingService(session).soldiers_with_unit()
    assert row['unit_name'] is None


def test_dashboard_summary(session, build):
    infantry = build.unit(name='1st Infantry Division')
    build.unit(name='101st Airborne Division')
    soldier = build.soldier(unit_id=infantry['id'])
    rifle = build.weapon(type='Rifle')
    build.weapon(type='Rifle')
    build.weapon(type='Pistol')
    build.maintenance(rifle['id'])
    build.ammunition(caliber='5.56mm', quantity=10000)
    build.ammunition(caliber='5.56mm', quantity=8000)
    build.ammunition(caliber='9mm', quantity=12000)
    AssignmentCoordinator(session).create_assignment(rifle['id'], soldier['id'], infantry['id'], '2022-01-20')

    summary = ReportingService(session).dashboard_summary()

    assert summary['totals']['weapons'] == 3
    assert summary['totals']['weapon_assignments'] == 1
    assert {'type': 'Rifle', 'count': 2} in summary['weapons_by_type']
    assert {'status': 'Scheduled', 'count': 1} in summary['maintenance_by_status']
    assert {'caliber': '5.56mm', 'total_quantity': 18000} in summary['ammunition_by_caliber']

    by_unit = {row['unit_name']: row['active_assignments'] for row in summary['active_assignments_by_unit']}
    assert by_unit == {'1st Infantry Division': 1, '101st Airborne Division': 0}
