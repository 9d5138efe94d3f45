"""
Load lifecycle engine.

State machine per load::

    pending --assign--> assigned --complete--> completed
    pending --cancel--> cancelled

Every mutation runs as one transaction that writes the load with a
status-guarded conditional UPDATE (``WHERE id = :id AND status = :expected``).
If no row matches, the load changed underneath us and the call fails with
InvalidStateError instead of overwriting the newer state.

"A driver holds at most one assigned load" is checked inside the write
transaction, after taking the driver's row lock, by both Apply and Assign.
It is also enforced by the partial unique index ``uq_loads_active_driver``;
an IntegrityError from it becomes ConflictError.
Duplicate applications are enforced the same way by
``uq_load_applicants_load_driver``.

Notifications are dispatched only after commit and never raise.
"""
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from truckconnect import db
from truckconnect.errors import (
    ValidationError, NotFoundError, ForbiddenError, InvalidStateError,
    ConflictError, DuplicateApplicationError,
)
from truckconnect.models import Load, LoadApplicant, Driver, User, EDITABLE_FIELDS, utcnow
from truckconnect.models.base import isoformat
from truckconnect.services import notifications
from truckconnect.utils import require_fields, positive_number, parse_date

logger = logging.getLogger(__name__)

REQUIRED_LOAD_FIELDS = ('source', 'destination', 'loadType', 'quantity', 'estimatedFare')
TEXT_FIELDS = ('source', 'destination', 'loadType')

ACTIVE_LOAD_MESSAGE = (
    'You already have an assigned load. Complete your current job before applying to a new one.'
)
DRIVER_BUSY_MESSAGE = (
    'This driver already has an assigned load and cannot be assigned another load '
    'until the current one is completed'
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _get_load(load_id):
    load = db.session.get(Load, load_id)
    if not load:
        raise NotFoundError('Load not found', load_id=load_id)
    return load


def _owned_load(load_id, customer):
    """The load, provided ``customer`` owns it. Foreign loads look missing."""
    load = db.session.get(Load, load_id)
    if not load or load.customer_id != customer.id:
        raise NotFoundError('Load not found or you are not authorized', load_id=load_id)
    return load


def _require_customer(user):
    if user.role != 'customer':
        raise ForbiddenError('Only customers can manage loads')


def _driver_profile(user):
    """Resolve the Driver profile of a driver user."""
    if user.role != 'driver':
        raise ForbiddenError('Only drivers can apply for loads')
    driver = user.driver_profile
    if not driver:
        raise NotFoundError('Driver profile not found')
    return driver


def _driver_has_active_load(driver_id, exclude_load_id=None):
    query = Load.query.filter(
        Load.assigned_driver_id == driver_id,
        Load.status == 'assigned',
    )
    if exclude_load_id:
        query = query.filter(Load.id != exclude_load_id)
    return db.session.query(query.exists()).scalar()


def _lock_driver(driver_id):
    """Take the driver's row lock for the rest of the transaction.

    Apply and Assign both write this row before checking for an active load,
    so the check sees every assignment committed ahead of them. Driver row
    first, load row second.
    """
    result = db.session.execute(
        update(Driver)
        .where(Driver.id == driver_id)
        .values(updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise NotFoundError('Driver profile not found')


def _guarded_update(load_id, expected_status, message, **values):
    """UPDATE the load only while it is still in ``expected_status``."""
    values.setdefault('updated_at', utcnow())
    result = db.session.execute(
        update(Load)
        .where(Load.id == load_id, Load.status == expected_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        logger.info("Guarded update on load %s lost: expected status %s", load_id, expected_status)
        raise InvalidStateError(message, load_id=load_id)


def _load_fields(data, partial=False):
    """Validate and convert camelCase load input into column values."""
    if not partial:
        require_fields(data, REQUIRED_LOAD_FIELDS)

    values = {}
    for key, column in EDITABLE_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if key in TEXT_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f'{key} must be a non-empty string')
            value = value.strip()
        elif key in ('quantity', 'estimatedFare'):
            value = positive_number(value, key)
        elif key == 'estimatedDeliveryDate':
            value = parse_date(value, key)
        elif key == 'description':
            value = '' if value is None else str(value)
        values[column] = value
    return values


# ---------------------------------------------------------------------------
# Read boundary
# ---------------------------------------------------------------------------
def merge_live_reputation(applicants):
    """Serialize applicant snapshots with ratings taken from the live Driver rows.

    Identity and document fields stay as they were when the driver applied;
    ``averageRating`` and ``totalRatings`` come from the current profile.
    """
    applicants = list(applicants)
    if not applicants:
        return []
    driver_ids = {a.driver_id for a in applicants}
    live = {d.id: d for d in Driver.query.filter(Driver.id.in_(driver_ids)).all()}

    merged = []
    for applicant in applicants:
        data = applicant.to_dict()
        driver = live.get(applicant.driver_id)
        if driver is not None:
            data['averageRating'] = driver.average_rating or 0.0
            data['totalRatings'] = driver.total_ratings or 0
        merged.append(data)
    return merged


def load_for_owner(load):
    """Full load view for its customer, applicants merged with live ratings."""
    data = load.to_dict(include_applicants=False)
    data['applicants'] = merge_live_reputation(load.applicants)
    return data


def get_load(load_id, user):
    """A load as seen by its owner or its assigned driver."""
    load = _get_load(load_id)
    if user.role == 'customer' and load.customer_id == user.id:
        return load_for_owner(load)
    if user.role == 'driver' and user.driver_profile and load.assigned_driver_id == user.driver_profile.id:
        return load.to_dict(include_applicants=False)
    if user.role == 'admin':
        return load_for_owner(load)
    raise NotFoundError('Load not found or you are not authorized', load_id=load_id)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def create_load(customer, data):
    """Post a new pending load with no applicants and no assigned driver."""
    _require_customer(customer)
    values = _load_fields(data)
    values.setdefault('description', '')

    load = Load(customer_id=customer.id, status='pending', **values)
    db.session.add(load)
    db.session.commit()
    logger.info("Load %s created by customer %s (%s -> %s)", load.id, customer.id, load.source, load.destination)
    return load


def apply_to_load(load_id, user):
    """Record a snapshot of the driver's public profile on a pending load."""
    driver = _driver_profile(user)
    load = _get_load(load_id)

    if load.status != 'pending':
        raise InvalidStateError('This load is no longer available', load_id=load_id)
    if not driver.is_accepted:
        raise ForbiddenError('Your driver account has not been approved yet')
    if load.has_applicant(driver.id):
        raise DuplicateApplicationError(load_id=load_id)
    if _driver_has_active_load(driver.id):
        raise ConflictError(ACTIVE_LOAD_MESSAGE, load_id=load_id)

    now = utcnow()
    _lock_driver(driver.id)
    if _driver_has_active_load(driver.id):
        db.session.rollback()
        raise ConflictError(ACTIVE_LOAD_MESSAGE, load_id=load_id)
    _guarded_update(load.id, 'pending', 'This load is no longer available', updated_at=now)
    db.session.add(LoadApplicant.from_profile(load.id, driver.public_profile(), applied_at=now))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info("Duplicate application by driver %s on load %s", driver.id, load_id)
        raise DuplicateApplicationError(load_id=load_id)

    logger.info("Driver %s applied to load %s", driver.id, load.id)
    notifications.notify_load_application(load, driver)
    return load


def assign_driver(load_id, customer, driver_id):
    """Pick one applicant. Other applicants stay recorded."""
    load = _owned_load(load_id, customer)
    if load.status != 'pending':
        raise InvalidStateError('Only pending loads can be assigned', load_id=load_id)

    applicant = load.find_applicant(driver_id)
    if applicant is None:
        raise NotFoundError('This driver has not applied for the load', load_id=load_id)

    now = utcnow()
    snapshot = applicant.to_dict()
    snapshot['assignedAt'] = isoformat(now)

    try:
        _lock_driver(driver_id)
        if _driver_has_active_load(driver_id, exclude_load_id=load.id):
            db.session.rollback()
            raise ConflictError(DRIVER_BUSY_MESSAGE, load_id=load_id)
        _guarded_update(
            load.id, 'pending', 'Only pending loads can be assigned',
            status='assigned',
            assigned_driver_id=driver_id,
            assigned_driver=snapshot,
            updated_at=now,
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Driver %s already holds an assigned load; assignment to %s refused", driver_id, load_id)
        raise ConflictError(DRIVER_BUSY_MESSAGE, load_id=load_id)

    logger.info("Load %s assigned to driver %s", load.id, driver_id)
    driver = db.session.get(Driver, driver_id)
    if driver is not None:
        notifications.notify_load_assigned(load, driver)
    return load


def complete_load(load_id, customer):
    load = _owned_load(load_id, customer)
    if load.status != 'assigned':
        raise InvalidStateError('Only assigned loads can be completed', load_id=load_id)

    now = utcnow()
    _guarded_update(
        load.id, 'assigned', 'Only assigned loads can be completed',
        status='completed', completed_at=now, updated_at=now,
    )
    db.session.commit()

    logger.info("Load %s completed", load.id)
    driver = db.session.get(Driver, load.assigned_driver_id) if load.assigned_driver_id else None
    notifications.notify_load_completed(load, driver)
    return load


def cancel_load(load_id, customer):
    """Cancel a pending load. Assigned loads cannot be cancelled."""
    load = _owned_load(load_id, customer)
    if load.status != 'pending':
        raise InvalidStateError('Only pending loads can be cancelled', load_id=load_id)

    _guarded_update(load.id, 'pending', 'Only pending loads can be cancelled', status='cancelled')
    db.session.commit()
    logger.info("Load %s cancelled", load.id)
    return load


def edit_load(load_id, customer, data):
    load = _owned_load(load_id, customer)
    if load.status != 'pending':
        raise InvalidStateError('Only pending loads can be edited', load_id=load_id)

    values = _load_fields(data, partial=True)
    _guarded_update(load.id, 'pending', 'Only pending loads can be edited', **values)
    db.session.commit()
    logger.info("Load %s edited (%s)", load.id, ', '.join(sorted(values)) or 'no changes')
    return load


def update_load_status(load_id, customer, status):
    """Entry point for ``PUT /loads/<id>`` with a target status."""
    if status == 'completed':
        return complete_load(load_id, customer)
    if status == 'cancelled':
        return cancel_load(load_id, customer)
    raise ValidationError('Invalid status')


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def list_available_loads(user=None):
    """Pending loads without an assigned driver, newest first."""
    loads = (
        Load.query
        .filter(Load.status == 'pending', Load.assigned_driver_id.is_(None))
        .order_by(Load.created_at.desc())
        .all()
    )
    driver = user.driver_profile if user is not None and user.role == 'driver' else None
    results = []
    for load in loads:
        data = load.to_dict(include_applicants=False)
        data['applicantCount'] = len(load.applicants)
        if driver is not None:
            data['hasApplied'] = load.has_applicant(driver.id)
        results.append(data)
    return results


def list_customer_loads(customer):
    _require_customer(customer)
    loads = (
        Load.query
        .filter_by(customer_id=customer.id)
        .order_by(Load.created_at.desc())
        .all()
    )
    return [load_for_owner(load) for load in loads]


def list_driver_loads(user):
    """Assigned and completed loads of a driver with the customer's contact details."""
    if user.role != 'driver':
        raise ForbiddenError('Access denied')
    driver = user.driver_profile
    if not driver:
        return []

    rows = (
        db.session.query(Load, User)
        .join(User, User.id == Load.customer_id)
        .filter(
            Load.assigned_driver_id == driver.id,
            Load.status.in_(('assigned', 'completed')),
        )
        .order_by(Load.created_at.desc())
        .all()
    )
    results = []
    for load, customer in rows:
        data = load.to_dict(include_applicants=False)
        data['customerName'] = customer.name
        data['customerPhone'] = customer.phone
        data['customerEmail'] = customer.email
        results.append(data)
    return results


def get_applicants(load_id, customer):
    load = _owned_load(load_id, customer)
    return merge_live_reputation(load.applicants)
