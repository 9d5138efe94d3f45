"""Driver model"""
from sqlalchemy import (
    Column, String, Float, Integer, Text, Date, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from truckconnect import db
from .base import generate_uuid, utcnow, isoformat

DRIVER_STATUSES = ('pending', 'accepted', 'rejected')

# Public document key -> column prefix. The set is fixed business policy.
DOCUMENT_TYPES = {
    'license': 'license',
    'rc': 'rc',
    'fitness': 'fitness',
    'insurance': 'insurance',
    'medical': 'medical',
    'allIndiaPermit': 'all_india_permit',
}
REQUIRED_DOCUMENTS = ('license', 'rc', 'fitness', 'insurance', 'medical')


class Driver(db.Model):
    """
    Driver profile - capability, approval status and documents of a driver.

    ``status`` is changed only by the admin approval workflow and the rating
    aggregate only by the rating subsystem.
    """
    __tablename__ = 'drivers'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)

    address = Column(Text, nullable=False)
    lorry_type = Column(String(100), nullable=False)
    max_capacity = Column(Float, nullable=False)  # tons

    status = Column(String(20), nullable=False, default='pending')
    rejection_reason = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    # Documents: stored links, never file content
    license_url = Column(String(500), nullable=True)
    license_expiry = Column(Date, nullable=True)
    rc_url = Column(String(500), nullable=True)
    rc_expiry = Column(Date, nullable=True)
    fitness_url = Column(String(500), nullable=True)
    fitness_expiry = Column(Date, nullable=True)
    insurance_url = Column(String(500), nullable=True)
    insurance_expiry = Column(Date, nullable=True)
    medical_url = Column(String(500), nullable=True)
    medical_expiry = Column(Date, nullable=True)
    all_india_permit_url = Column(String(500), nullable=True)
    all_india_permit_expiry = Column(Date, nullable=True)

    average_rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship('User', back_populates='driver_profile', lazy='joined')

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name='ck_drivers_status'),
        CheckConstraint('max_capacity > 0', name='ck_drivers_max_capacity'),
        Index('ix_drivers_status', 'status'),
    )

    def __repr__(self):
        return f'<Driver {self.id} - {self.status}>'

    @property
    def name(self):
        return self.user.name if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    @property
    def phone(self):
        return self.user.phone if self.user else None

    @property
    def is_accepted(self):
        return self.status == 'accepted'

    @property
    def documents(self):
        """Fixed record of document links keyed by document type."""
        return {key: getattr(self, f'{prefix}_url') for key, prefix in DOCUMENT_TYPES.items()}

    @property
    def document_expiries(self):
        return {key: getattr(self, f'{prefix}_expiry') for key, prefix in DOCUMENT_TYPES.items()}

    def set_document(self, key, url=None, expiry=None):
        """Store the link (and optional expiry date) for one document type."""
        prefix = DOCUMENT_TYPES[key]
        setattr(self, f'{prefix}_url', url)
        setattr(self, f'{prefix}_expiry', expiry)

    def missing_required_documents(self):
        docs = self.documents
        return [key for key in REQUIRED_DOCUMENTS if not docs.get(key)]

    def public_profile(self):
        """The fields copied into load applicant / assigned-driver snapshots."""
        return {
            'driverId': self.id,
            'name': self.name,
            'mobile': self.phone,
            'lorryType': self.lorry_type,
            'maxCapacity': self.max_capacity,
            'averageRating': self.average_rating or 0.0,
            'totalRatings': self.total_ratings or 0,
            'documents': dict(self.documents),
        }

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'lorryType': self.lorry_type,
            'maxCapacity': self.max_capacity,
            'status': self.status,
            'rejectionReason': self.rejection_reason,
            'reviewedAt': isoformat(self.reviewed_at),
            'documents': self.documents,
            'documentExpiry': {key: isoformat(value) for key, value in self.document_expiries.items()},
            'averageRating': self.average_rating or 0.0,
            'totalRatings': self.total_ratings or 0,
            'createdAt': isoformat(self.created_at),
        }
