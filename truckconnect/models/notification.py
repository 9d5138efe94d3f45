"""Notification model"""
from sqlalchemy import Column, String, Boolean, Text, DateTime, ForeignKey, Index

from truckconnect import db
from .base import generate_uuid, utcnow, isoformat

NOTIFICATION_TYPES = (
    'load_application',
    'load_assigned',
    'load_completed',
    'new_rating',
    'document_expiry',
    'driver_approved',
    'driver_rejected',
)


class Notification(db.Model):
    """
    Notification model - in-app notifications for users
    """
    __tablename__ = 'notifications'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    load_id = Column(String(36), ForeignKey('loads.id', ondelete='SET NULL'), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index('idx_notifications_user_unread', 'user_id', 'is_read', 'created_at'),
    )

    def __repr__(self):
        return f'<Notification {self.type} - user={self.user_id}>'

    def mark_read(self):
        """Mark notification as read"""
        self.is_read = True

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'loadId': self.load_id,
            'read': bool(self.is_read),
            'createdAt': isoformat(self.created_at),
        }
