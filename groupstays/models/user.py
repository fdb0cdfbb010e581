# ================================
# USER MODELS (models/user.py)
# ================================

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from groupstays.models.base import Base
from groupstays.models.enums import UserRole, enum_column_type

class User(Base):
    """Actor reference data (customers, owners, admins); managed by the account service"""
    __tablename__ = "users"

    # Basic Information
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(enum_column_type(UserRole, 20), default=UserRole.CUSTOMER, nullable=False)

    # Account Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    properties = relationship("Property", back_populates="owner", foreign_keys="Property.owner_id")
    group_bookings = relationship("GroupBooking", back_populates="user", foreign_keys="GroupBooking.user_id")
    claims = relationship("GroupBookingClaim", back_populates="owner", foreign_keys="GroupBookingClaim.owner_id")

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def __repr__(self):
        return f"<User(email='{self.email}', role='{self.role}')>"
