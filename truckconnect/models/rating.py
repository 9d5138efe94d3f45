"""Rating model"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from truckconnect import db
from .base import generate_uuid, utcnow, isoformat


class Rating(db.Model):
    """
    Rating model - one row per completed load holding both directions.

    ``customer_rating`` is the customer's score for the driver and
    ``driver_rating`` the driver's score for the customer; either may be
    absent, and re-rating overwrites in place.
    """
    __tablename__ = 'ratings'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    load_id = Column(String(36), ForeignKey('loads.id', ondelete='CASCADE'), nullable=False, unique=True)
    customer_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    driver_id = Column(String(36), ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True)

    customer_rating = Column(Integer, nullable=True)
    customer_review = Column(Text, nullable=True)
    customer_rated_at = Column(DateTime, nullable=True)

    driver_rating = Column(Integer, nullable=True)
    driver_review = Column(Text, nullable=True)
    driver_rated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    load = relationship('Load', backref=db.backref('rating', uselist=False))
    customer = relationship('User', foreign_keys=[customer_id])
    driver = relationship('Driver', foreign_keys=[driver_id])

    __table_args__ = (
        CheckConstraint(
            'customer_rating IS NULL OR (customer_rating >= 1 AND customer_rating <= 5)',
            name='ck_ratings_customer_rating',
        ),
        CheckConstraint(
            'driver_rating IS NULL OR (driver_rating >= 1 AND driver_rating <= 5)',
            name='ck_ratings_driver_rating',
        ),
    )

    def __repr__(self):
        return f'<Rating load={self.load_id}>'

    @staticmethod
    def _sub_rating(rating, review, rated_at):
        if rating is None:
            return None
        return {'rating': rating, 'review': review or '', 'ratedAt': isoformat(rated_at)}

    def to_dict(self, include_parties=False):
        data = {
            'id': self.id,
            'loadId': self.load_id,
            'customerId': self.customer_id,
            'driverId': self.driver_id,
            'customerRating': self._sub_rating(self.customer_rating, self.customer_review, self.customer_rated_at),
            'driverRating': self._sub_rating(self.driver_rating, self.driver_review, self.driver_rated_at),
            'createdAt': isoformat(self.created_at),
        }
        if include_parties:
            data['customerName'] = self.customer.name if self.customer else None
            data['driverName'] = self.driver.name if self.driver else None
            if self.load:
                data['load'] = {'source': self.load.source, 'destination': self.load.destination}
        return data
