"""
Rating subsystem.

A completed load carries at most one Rating row holding both directions:
the customer's score for the driver and the driver's score for the
customer. Re-rating overwrites the submitter's half in place, and either
party may rate first.

Aggregates (``average_rating`` / ``total_ratings``) on the rated party are
recomputed from every rating they have received on each submission, while
holding that party's row lock so concurrent submissions cannot lose a count.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from truckconnect import db
from truckconnect.errors import NotFoundError, ForbiddenError, InvalidStateError, ConflictError
from truckconnect.models import Load, Rating, Driver, User, utcnow
from truckconnect.services import notifications
from truckconnect.utils import star_rating

logger = logging.getLogger(__name__)

STARS = (5, 4, 3, 2, 1)


def round_rating(value):
    """Round half up to one decimal place (4.25 -> 4.3)."""
    return float(Decimal(str(value)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def _average(column, *criteria):
    total, count = db.session.query(func.sum(column), func.count(column)).filter(
        column.isnot(None), *criteria
    ).one()
    if not count:
        return 0.0, 0
    return round_rating(total / count), count


def recompute_driver_rating(driver):
    driver.average_rating, driver.total_ratings = _average(
        Rating.customer_rating, Rating.driver_id == driver.id
    )
    return driver


def recompute_customer_rating(customer):
    customer.average_rating, customer.total_ratings = _average(
        Rating.driver_rating, Rating.customer_id == customer.id
    )
    return customer


def _completed_load(load_id):
    load = db.session.get(Load, load_id)
    if not load:
        raise NotFoundError('Load not found', load_id=load_id)
    if load.status != 'completed':
        raise InvalidStateError('Can only rate completed loads', load_id=load_id)
    return load


def _locked(model, key):
    """Re-read a rated party's row, locked until commit (FOR UPDATE)."""
    return db.session.get(model, key, with_for_update={'of': model}, populate_existing=True)


def _insert_rating(load):
    """INSERT the load's Rating row unless another request already has."""
    dialect = db.session.get_bind().dialect.name
    insert = postgresql.insert if dialect == 'postgresql' else sqlite.insert
    db.session.execute(
        insert(Rating)
        .values(load_id=load.id, customer_id=load.customer_id, driver_id=load.assigned_driver_id)
        .on_conflict_do_nothing(index_elements=['load_id'])
    )


def _rating_for(load):
    """The load's Rating row, created on first submission by either party."""
    record = Rating.query.filter_by(load_id=load.id).first()
    if record is None:
        _insert_rating(load)
        record = Rating.query.filter_by(load_id=load.id).one()
    return record


def _commit(load_id):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Concurrent rating submission on load %s", load_id)
        raise ConflictError('This load is being rated by another request, please retry', load_id=load_id)


def rate_driver(load_id, customer, rating, review=None):
    """Customer rates the driver who carried the load."""
    stars = star_rating(rating)
    load = _completed_load(load_id)
    if customer.role != 'customer' or load.customer_id != customer.id:
        raise ForbiddenError('Not authorized to rate this load')

    driver = _locked(Driver, load.assigned_driver_id)
    record = _rating_for(load)
    record.customer_rating = stars
    record.customer_review = review or ''
    record.customer_rated_at = utcnow()
    load.customer_rated = True
    db.session.flush()
    if driver is not None:
        recompute_driver_rating(driver)
    _commit(load_id)

    logger.info("Customer %s rated driver %s %d stars on load %s", customer.id, load.assigned_driver_id, stars, load_id)
    if driver is not None:
        notifications.notify_new_rating(driver.user, customer.name, stars, review, load.id)
    return record


def rate_customer(load_id, driver_user, rating, review=None):
    """Assigned driver rates the customer who posted the load."""
    stars = star_rating(rating)
    load = _completed_load(load_id)
    driver = driver_user.driver_profile if driver_user.role == 'driver' else None
    if driver is None or load.assigned_driver_id != driver.id:
        raise ForbiddenError('Not authorized to rate this load')

    customer = _locked(User, load.customer_id)
    record = _rating_for(load)
    record.driver_rating = stars
    record.driver_review = review or ''
    record.driver_rated_at = utcnow()
    load.driver_rated = True
    db.session.flush()
    recompute_customer_rating(customer)
    _commit(load_id)

    logger.info("Driver %s rated customer %s %d stars on load %s", driver.id, customer.id, stars, load_id)
    notifications.notify_new_rating(customer, driver.name, stars, review, load.id)
    return record


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_load_rating(load_id):
    record = Rating.query.filter_by(load_id=load_id).first()
    if not record:
        raise NotFoundError('No rating found for this load', load_id=load_id)
    return record


def driver_ratings(driver_id):
    """Ratings a driver received from customers, newest first."""
    if not db.session.get(Driver, driver_id):
        raise NotFoundError('Driver not found')
    return (
        Rating.query
        .filter(Rating.driver_id == driver_id, Rating.customer_rating.isnot(None))
        .order_by(Rating.customer_rated_at.desc())
        .all()
    )


def customer_ratings(customer_id):
    """Ratings a customer received from drivers, newest first."""
    if not db.session.get(User, customer_id):
        raise NotFoundError('Customer not found')
    return (
        Rating.query
        .filter(Rating.customer_id == customer_id, Rating.driver_rating.isnot(None))
        .order_by(Rating.driver_rated_at.desc())
        .all()
    )


def _received_ratings(user):
    """Query of the ratings ``user`` received, with the score column that counts."""
    if user.role == 'driver':
        driver = user.driver_profile
        if driver is None:
            raise NotFoundError('Driver profile not found')
        column = Rating.customer_rating
        query = Rating.query.filter(Rating.driver_id == driver.id, column.isnot(None))
        return query.order_by(Rating.customer_rated_at.desc()), column
    column = Rating.driver_rating
    query = Rating.query.filter(Rating.customer_id == user.id, column.isnot(None))
    return query.order_by(Rating.driver_rated_at.desc()), column


def my_ratings(user):
    """Ratings the caller has received, newest first."""
    query, _ = _received_ratings(user)
    return query.all()


def rating_breakdown(user):
    """Star distribution of the ratings the caller has received: {5: n, ..., 1: n}."""
    query, column = _received_ratings(user)
    counts = dict(
        query.order_by(None)
        .with_entities(column, func.count())
        .group_by(column)
        .all()
    )
    return {stars: counts.get(stars, 0) for stars in STARS}
