# ================================
# GROUP STAY MODELS (models/business.py)
# ================================

from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, JSON, Numeric, Index, text
from sqlalchemy.orm import relationship
from groupstays.models.base import Base
from groupstays.models.enums import (
    PropertyStatus, GroupBookingStatus, ClaimStatus, TERMINAL_BOOKING_STATUSES, enum_column_type
)

class Property(Base):
    """Owner property (directory reference data, never mutated by the claims engine)"""
    __tablename__ = "properties"

    # Foreign Keys
    owner_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    # Basic Information
    title = Column(String(255), nullable=False)
    type = Column(String(100), nullable=True)  # 'Hotel', 'Guest House', 'VILLA', ...
    status = Column(enum_column_type(PropertyStatus, 20), default=PropertyStatus.PENDING, nullable=False)

    # Location
    region_name = Column(String(255), nullable=True)
    district = Column(String(255), nullable=True)
    city = Column(String(255), nullable=True)

    # Capabilities
    hotel_star = Column(String(50), nullable=True)  # 'basic'..'luxury' or '1'..'5'
    services = Column(JSON, nullable=True)  # Capability tags, e.g. ["Group Stay", "Parking"]

    # Pricing
    base_price = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(10), nullable=True)

    # Relationships
    owner = relationship("User", back_populates="properties", foreign_keys=[owner_id])

    __table_args__ = (
        Index('idx_properties_owner_status', 'owner_id', 'status'),
        Index('idx_properties_region', 'region_name'),
    )

    def __repr__(self):
        return f"<Property(title='{self.title}', type='{self.type}', status='{self.status}')>"

class GroupBooking(Base):
    """Multi-person accommodation request; the aggregate a claims window is opened on"""
    __tablename__ = "group_bookings"

    # Foreign Keys
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)  # Customer
    assigned_owner_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    confirmed_property_id = Column(Integer, ForeignKey('properties.id', ondelete='SET NULL'), nullable=True)

    # Request Details
    status = Column(enum_column_type(GroupBookingStatus, 20), default=GroupBookingStatus.PENDING, nullable=False)
    group_type = Column(String(100), nullable=True)
    accommodation_type = Column(String(100), nullable=True)
    headcount = Column(Integer, nullable=False, default=1)
    rooms_needed = Column(Integer, nullable=False, default=1)
    to_region = Column(String(255), nullable=True)
    to_district = Column(String(255), nullable=True)
    to_location = Column(String(255), nullable=True)
    check_in = Column(DateTime(timezone=True), nullable=True)
    check_out = Column(DateTime(timezone=True), nullable=True)  # Both NULL for flexible-date requests
    min_hotel_star_label = Column(String(50), nullable=True)  # Customer's minimum hotel class
    currency = Column(String(10), nullable=True)

    # Direct handling (admin assigned an owner / recommended properties)
    owner_assigned_at = Column(DateTime(timezone=True), nullable=True)
    recommended_property_ids = Column(JSON, nullable=False, default=list)

    # Claims window
    is_open_for_claims = Column(Boolean, default=False, nullable=False)
    opened_for_claims_at = Column(DateTime(timezone=True), nullable=True)
    claims_config = Column(JSON, nullable=True)  # {deadline, notes, minDiscountPercent, minHotelStar}
    claims_config_version = Column(Integer, default=0, nullable=False)

    # Relationships
    user = relationship("User", back_populates="group_bookings", foreign_keys=[user_id])
    assigned_owner = relationship("User", foreign_keys=[assigned_owner_id])
    confirmed_property = relationship("Property", foreign_keys=[confirmed_property_id])
    claims = relationship("GroupBookingClaim", back_populates="group_booking", cascade="all, delete-orphan")
    audits = relationship(
        "GroupBookingAudit",
        back_populates="group_booking",
        order_by="GroupBookingAudit.id",
        passive_deletes=True,
    )

    __table_args__ = (
        Index('idx_group_bookings_open', 'is_open_for_claims', 'status'),
        Index('idx_group_bookings_region', 'to_region'),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES

    @property
    def is_admin_handled(self) -> bool:
        """An owner was assigned or properties were recommended directly"""
        return self.assigned_owner_id is not None or bool(self.recommended_property_ids)

    def __repr__(self):
        return f"<GroupBooking(id={self.id}, status='{self.status}', open={self.is_open_for_claims})>"

class GroupBookingClaim(Base):
    """Owner offer against a group booking"""
    __tablename__ = "group_booking_claims"

    # Foreign Keys
    group_booking_id = Column(Integer, ForeignKey('group_bookings.id', ondelete='CASCADE'), nullable=False)
    owner_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)

    # Offer
    offered_price_per_night = Column(Numeric(12, 2), nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False)  # price x nights x rooms
    currency = Column(String(10), nullable=False)
    special_offers = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Review
    status = Column(enum_column_type(ClaimStatus, 20), default=ClaimStatus.PENDING, nullable=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    # Relationships
    group_booking = relationship("GroupBooking", back_populates="claims")
    owner = relationship("User", back_populates="claims", foreign_keys=[owner_id])
    property = relationship("Property")
    reviewer = relationship("User", foreign_keys=[reviewed_by])

    __table_args__ = (
        # At most one non-withdrawn claim per owner and booking; concurrent duplicates fail here
        Index(
            'uq_group_booking_claims_booking_owner_live',
            'group_booking_id', 'owner_id',
            unique=True,
            postgresql_where=text("status <> 'WITHDRAWN'"),
            sqlite_where=text("status <> 'WITHDRAWN'"),
        ),
        Index('idx_group_booking_claims_owner', 'owner_id', 'status'),
    )

    def __repr__(self):
        return f"<GroupBookingClaim(booking={self.group_booking_id}, owner={self.owner_id}, status='{self.status}')>"
