"""Load and LoadApplicant models"""
from sqlalchemy import (
    Column, String, Float, Integer, Boolean, Text, Date, DateTime, ForeignKey, JSON,
    CheckConstraint, UniqueConstraint, Index, text
)
from sqlalchemy.orm import relationship

from truckconnect import db
from .base import generate_uuid, utcnow, isoformat

EDITABLE_FIELDS = {
    'source': 'source',
    'destination': 'destination',
    'loadType': 'load_type',
    'quantity': 'quantity',
    'estimatedFare': 'estimated_fare',
    'description': 'description',
    'estimatedDeliveryDate': 'estimated_delivery_date',
}


class Load(db.Model):
    """
    Load model - a shipment posted by a customer.

    ``assigned_driver`` holds the snapshot of the selected applicant and is
    NULL until the load is assigned; ``assigned_driver_id`` mirrors its
    driverId so the single-active-load rule can be expressed as an index.
    """
    __tablename__ = 'loads'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    customer_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    source = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    load_type = Column(String(100), nullable=False)
    quantity = Column(Float, nullable=False)
    estimated_fare = Column(Float, nullable=False)
    description = Column(Text, nullable=False, default='')
    estimated_delivery_date = Column(Date, nullable=True)

    status = Column(String(20), nullable=False, default='pending')

    assigned_driver_id = Column(String(36), ForeignKey('drivers.id', ondelete='SET NULL'), nullable=True, index=True)
    assigned_driver = Column(JSON(none_as_null=True), nullable=True)

    customer_rated = Column(Boolean, nullable=False, default=False)
    driver_rated = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)

    customer = relationship('User', foreign_keys=[customer_id], backref='loads')
    applicants = relationship(
        'LoadApplicant',
        back_populates='load',
        order_by='LoadApplicant.applied_at',
        cascade='all, delete-orphan',
        lazy='selectin',
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'assigned', 'completed', 'cancelled')",
            name='ck_loads_status',
        ),
        CheckConstraint('quantity > 0', name='ck_loads_quantity_positive'),
        CheckConstraint('estimated_fare > 0', name='ck_loads_fare_positive'),
        # A driver holds at most one assigned load, system-wide.
        Index(
            'uq_loads_active_driver',
            'assigned_driver_id',
            unique=True,
            sqlite_where=text("status = 'assigned'"),
            postgresql_where=text("status = 'assigned'"),
        ),
        Index('ix_loads_status_created', 'status', 'created_at'),
    )

    def __repr__(self):
        return f'<Load {self.id} {self.source}->{self.destination} - {self.status}>'

    def has_applicant(self, driver_id):
        return any(a.driver_id == driver_id for a in self.applicants)

    def find_applicant(self, driver_id):
        return next((a for a in self.applicants if a.driver_id == driver_id), None)

    def to_dict(self, include_applicants=True):
        data = {
            'id': self.id,
            'customerId': self.customer_id,
            'source': self.source,
            'destination': self.destination,
            'loadType': self.load_type,
            'quantity': self.quantity,
            'estimatedFare': self.estimated_fare,
            'description': self.description or '',
            'estimatedDeliveryDate': isoformat(self.estimated_delivery_date),
            'status': self.status,
            'assignedDriver': self.assigned_driver,
            'customerRated': bool(self.customer_rated),
            'driverRated': bool(self.driver_rated),
            'createdAt': isoformat(self.created_at),
            'completedAt': isoformat(self.completed_at),
        }
        if include_applicants:
            data['applicants'] = [a.to_dict() for a in self.applicants]
        return data


class LoadApplicant(db.Model):
    """
    Snapshot of a driver's public profile taken when they applied to a load.
    """
    __tablename__ = 'load_applicants'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    load_id = Column(String(36), ForeignKey('loads.id', ondelete='CASCADE'), nullable=False)
    driver_id = Column(String(36), ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True)

    name = Column(String(255), nullable=True)
    mobile = Column(String(20), nullable=True)
    lorry_type = Column(String(100), nullable=True)
    max_capacity = Column(Float, nullable=True)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)
    documents = Column(JSON, nullable=True, default=dict)

    applied_at = Column(DateTime, default=utcnow, nullable=False)

    load = relationship('Load', back_populates='applicants')

    __table_args__ = (
        UniqueConstraint('load_id', 'driver_id', name='uq_load_applicants_load_driver'),
    )

    def __repr__(self):
        return f'<LoadApplicant load={self.load_id} driver={self.driver_id}>'

    @classmethod
    def from_profile(cls, load_id, profile, applied_at=None):
        """Build an applicant row from ``Driver.public_profile()``."""
        return cls(
            id=generate_uuid(),
            load_id=load_id,
            driver_id=profile['driverId'],
            name=profile['name'],
            mobile=profile['mobile'],
            lorry_type=profile['lorryType'],
            max_capacity=profile['maxCapacity'],
            average_rating=profile['averageRating'],
            total_ratings=profile['totalRatings'],
            documents=profile['documents'],
            applied_at=applied_at or utcnow(),
        )

    def to_dict(self):
        return {
            'driverId': self.driver_id,
            'name': self.name,
            'mobile': self.mobile,
            'lorryType': self.lorry_type,
            'maxCapacity': self.max_capacity,
            'appliedAt': isoformat(self.applied_at),
            'averageRating': self.average_rating or 0.0,
            'totalRatings': self.total_ratings or 0,
            'documents': dict(self.documents or {}),
        }
