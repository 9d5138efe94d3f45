"""User model"""
from sqlalchemy import Column, String, Float, Integer, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from truckconnect import db
from .base import generate_uuid, utcnow, isoformat


class User(db.Model):
    """
    User model - the login identity for customers, drivers and admins.
    Drivers additionally own a Driver profile row.
    """
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default='customer')

    # Maintained by the rating subsystem (drivers rating this customer)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    driver_profile = relationship('Driver', back_populates='user', uselist=False)

    __table_args__ = (
        CheckConstraint("role IN ('customer', 'driver', 'admin')", name='ck_users_role'),
    )

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

    def set_password(self, password):
        from truckconnect.auth import hash_password
        self.password_hash = hash_password(password)

    def check_password(self, password):
        from truckconnect.auth import verify_password
        if not self.password_hash:
            return False
        return verify_password(password, self.password_hash)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'averageRating': self.average_rating or 0.0,
            'totalRatings': self.total_ratings or 0,
            'createdAt': isoformat(self.created_at),
        }
