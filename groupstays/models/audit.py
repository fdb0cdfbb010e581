# ================================
# AUDIT MODELS (models/audit.py)
# ================================

from sqlalchemy import Column, String, Text, JSON, ForeignKey, Integer, Index
from sqlalchemy.orm import relationship
from groupstays.models.base import Base
from groupstays.models.enums import AuditAction, enum_column_type

class GroupBookingAudit(Base):
    """Append-only history of actions on a group booking; rows are never updated or deleted"""
    __tablename__ = "group_booking_audits"

    # Foreign Keys
    group_booking_id = Column(Integer, ForeignKey('group_bookings.id', ondelete='CASCADE'), nullable=False)
    actor_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)  # NULL for system actions

    # Action Information
    action = Column(enum_column_type(AuditAction, 40), nullable=False)
    description = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    actor_role = Column(String(20), nullable=True)

    # Relationships
    group_booking = relationship("GroupBooking", back_populates="audits")
    actor = relationship("User", foreign_keys=[actor_id])

    __table_args__ = (
        Index('idx_group_booking_audits_booking_action', 'group_booking_id', 'action', 'id'),
    )

    def __repr__(self):
        return f"<GroupBookingAudit(booking={self.group_booking_id}, action='{self.action}')>"
