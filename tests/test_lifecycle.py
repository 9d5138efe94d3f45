"""
Load lifecycle engine tests: state invariants, concurrency and
notification isolation
"""
import threading

import pytest

from conftest import LOAD_DATA
from truckconnect import db
from truckconnect.errors import (
    ConflictError, DuplicateApplicationError, InvalidStateError, NotFoundError, ValidationError,
)
from truckconnect.models import Load, LoadApplicant, Notification, User
from truckconnect.services import lifecycle, notifications


def _assignment_shape_holds():
    """assigned/completed loads carry a driver snapshot, pending ones never do."""
    for load in Load.query.all():
        if load.status in ('assigned', 'completed'):
            assert load.assigned_driver and load.assigned_driver.get('driverId')
            assert load.assigned_driver_id == load.assigned_driver['driverId']
        elif load.status == 'pending':
            assert load.assigned_driver is None
            assert load.assigned_driver_id is None


class TestStateInvariants:
    """Test the status / assigned-driver relationship across transitions"""

    def test_invariant_through_lifecycle(self, test_customer, test_driver):
        load = lifecycle.create_load(test_customer, dict(LOAD_DATA))
        _assignment_shape_holds()

        lifecycle.apply_to_load(load.id, test_driver)
        _assignment_shape_holds()

        lifecycle.assign_driver(load.id, test_customer, test_driver.driver_profile.id)
        _assignment_shape_holds()

        lifecycle.complete_load(load.id, test_customer)
        _assignment_shape_holds()
        assert db.session.get(Load, load.id).completed_at is not None

    def test_assigned_snapshot_copies_applicant(self, assigned_load, test_driver):
        snapshot = db.session.get(Load, assigned_load.id).assigned_driver
        profile = test_driver.driver_profile

        assert snapshot['driverId'] == profile.id
        assert snapshot['name'] == test_driver.name
        assert snapshot['mobile'] == test_driver.phone
        assert snapshot['lorryType'] == profile.lorry_type
        assert snapshot['documents'] == profile.documents
        assert 'assignedAt' in snapshot
        applicant = LoadApplicant.query.filter_by(load_id=assigned_load.id).one()
        assert snapshot['appliedAt'] == applicant.to_dict()['appliedAt']

    def test_create_validates_input(self, test_customer):
        with pytest.raises(ValidationError):
            lifecycle.create_load(test_customer, dict(LOAD_DATA, quantity='ten'))
        with pytest.raises(ValidationError):
            lifecycle.create_load(test_customer, dict(LOAD_DATA, source='   '))
        with pytest.raises(ValidationError):
            lifecycle.create_load(test_customer, dict(LOAD_DATA, estimatedDeliveryDate='next week'))
        assert Load.query.count() == 0

    def test_apply_to_non_pending_always_fails(self, test_customer, make_driver, completed_load):
        cancelled = lifecycle.create_load(test_customer, dict(LOAD_DATA))
        lifecycle.cancel_load(cancelled.id, test_customer)
        other_driver = make_driver(name='Late Applicant')

        for load_id in (completed_load.id, cancelled.id):
            with pytest.raises(InvalidStateError):
                lifecycle.apply_to_load(load_id, other_driver)

    def test_apply_unknown_load(self, test_driver):
        with pytest.raises(NotFoundError):
            lifecycle.apply_to_load('missing', test_driver)

    def test_complete_requires_assigned(self, test_customer, completed_load):
        fresh = lifecycle.create_load(test_customer, dict(LOAD_DATA))
        for load_id in (fresh.id, completed_load.id):
            with pytest.raises(InvalidStateError):
                lifecycle.complete_load(load_id, test_customer)

    def test_other_applicants_kept_after_assignment(self, test_customer, test_driver, make_driver, pending_load):
        runner_up = make_driver(name='Runner Up')
        lifecycle.apply_to_load(pending_load.id, test_driver)
        lifecycle.apply_to_load(pending_load.id, runner_up)

        lifecycle.assign_driver(pending_load.id, test_customer, test_driver.driver_profile.id)

        applicants = lifecycle.get_applicants(pending_load.id, test_customer)
        assert [a['driverId'] for a in applicants] == [
            test_driver.driver_profile.id, runner_up.driver_profile.id,
        ]

    def test_guarded_update_detects_stale_status(self, test_customer, pending_load):
        # Another request cancels the load after this one read it
        Load.query.filter_by(id=pending_load.id).update({'status': 'cancelled'})
        db.session.commit()

        with pytest.raises(InvalidStateError):
            lifecycle._guarded_update(pending_load.id, 'pending', 'Only pending loads can be assigned',
                                      status='assigned')
        assert db.session.get(Load, pending_load.id).status == 'cancelled'


class TestUniqueness:
    """Test the database constraints behind the precondition checks"""

    def test_duplicate_application_rejected_by_constraint(self, test_driver, pending_load, monkeypatch):
        lifecycle.apply_to_load(pending_load.id, test_driver)
        monkeypatch.setattr(Load, 'has_applicant', lambda self, driver_id: False)

        with pytest.raises(DuplicateApplicationError):
            lifecycle.apply_to_load(pending_load.id, test_driver)
        assert LoadApplicant.query.filter_by(load_id=pending_load.id).count() == 1

    def test_active_load_index_rejects_second_assignment(self, make_customer, test_driver, monkeypatch):
        first_customer, second_customer = make_customer(), make_customer()
        first = lifecycle.create_load(first_customer, dict(LOAD_DATA))
        second = lifecycle.create_load(second_customer, dict(LOAD_DATA))
        lifecycle.apply_to_load(first.id, test_driver)
        lifecycle.apply_to_load(second.id, test_driver)
        driver_id = test_driver.driver_profile.id

        monkeypatch.setattr(lifecycle, '_driver_has_active_load', lambda *args, **kwargs: False)
        lifecycle.assign_driver(first.id, first_customer, driver_id)

        with pytest.raises(ConflictError):
            lifecycle.assign_driver(second.id, second_customer, driver_id)

        second = db.session.get(Load, second.id)
        assert second.status == 'pending'
        assert second.assigned_driver is None
        assert second.assigned_driver_id is None


class TestConcurrentApplication:
    """A driver gets assigned elsewhere while applying to another load"""

    def test_apply_refused_when_assigned_meanwhile(self, app, make_customer, test_driver, monkeypatch):
        first_customer, second_customer = make_customer(), make_customer()
        first = lifecycle.create_load(first_customer, dict(LOAD_DATA))
        second = lifecycle.create_load(second_customer, dict(LOAD_DATA, source='Chennai'))
        lifecycle.apply_to_load(first.id, test_driver)
        driver_id = test_driver.driver_profile.id
        first_id, first_customer_id, second_id = first.id, first_customer.id, second.id

        original_check = lifecycle._driver_has_active_load
        checked = []

        def assign_elsewhere():
            with app.app_context():
                try:
                    customer = db.session.get(User, first_customer_id)
                    lifecycle.assign_driver(first_id, customer, driver_id)
                finally:
                    db.session.remove()

        def check_then_assign(*args, **kwargs):
            result = original_check(*args, **kwargs)
            if not checked:
                # First look comes back clean, then the other customer assigns
                checked.append(result)
                worker = threading.Thread(target=assign_elsewhere)
                worker.start()
                worker.join(timeout=30)
            return result

        monkeypatch.setattr(lifecycle, '_driver_has_active_load', check_then_assign)

        with pytest.raises(ConflictError):
            lifecycle.apply_to_load(second_id, test_driver)

        assert checked == [False]
        assert db.session.get(Load, first_id).status == 'assigned'
        assert LoadApplicant.query.filter_by(load_id=second_id).count() == 0


class TestConcurrentAssignment:
    """Race two customers assigning the same driver to different loads"""

    def test_exactly_one_assignment_wins(self, app, make_customer, test_driver):
        first_customer, second_customer = make_customer(), make_customer()
        first = lifecycle.create_load(first_customer, dict(LOAD_DATA))
        second = lifecycle.create_load(second_customer, dict(LOAD_DATA, source='Chennai'))
        lifecycle.apply_to_load(first.id, test_driver)
        lifecycle.apply_to_load(second.id, test_driver)

        driver_id = test_driver.driver_profile.id
        attempts = [(first.id, first_customer.id), (second.id, second_customer.id)]
        db.session.close()

        barrier = threading.Barrier(len(attempts))
        outcomes = []
        lock = threading.Lock()

        def attempt(load_id, customer_id):
            with app.app_context():
                try:
                    customer = db.session.get(User, customer_id)
                    barrier.wait(timeout=10)
                    lifecycle.assign_driver(load_id, customer, driver_id)
                    result = 'assigned'
                except ConflictError:
                    result = 'conflict'
                except Exception as exc:
                    result = exc
                finally:
                    db.session.remove()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=args) for args in attempts]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes, key=str) == ['assigned', 'conflict']
        assigned = Load.query.filter_by(assigned_driver_id=driver_id, status='assigned').all()
        assert len(assigned) == 1
        _assignment_shape_holds()


class TestNotificationIsolation:
    """Notification failures never fail a lifecycle operation"""

    def test_apply_succeeds_when_notify_raises(self, test_driver, pending_load, monkeypatch):
        def broken_notify(*args, **kwargs):
            raise RuntimeError('notification store unavailable')

        monkeypatch.setattr(notifications, 'notify', broken_notify)

        load = lifecycle.apply_to_load(pending_load.id, test_driver)

        assert load.has_applicant(test_driver.driver_profile.id)
        assert Notification.query.count() == 0

    def test_assign_succeeds_when_email_transport_raises(self, test_customer, test_driver, pending_load,
                                                         monkeypatch):
        from truckconnect.services import email as mailer

        def broken_send(*args, **kwargs):
            raise ConnectionError('smtp down')

        monkeypatch.setattr(mailer, '_send_email_sync', broken_send)
        lifecycle.apply_to_load(pending_load.id, test_driver)

        load = lifecycle.assign_driver(pending_load.id, test_customer, test_driver.driver_profile.id)

        assert load.status == 'assigned'
        assert Notification.query.filter_by(type='load_assigned').count() == 1

    def test_notify_rejects_unknown_type(self, test_customer):
        assert notifications.notify(test_customer.id, 'surprise', 'Hi', 'Hello') is None
        assert Notification.query.count() == 0
