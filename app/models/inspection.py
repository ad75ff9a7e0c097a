"""
Vehicle Inspection Models

- VehicleInspection: condition check at delivery or return, one per
  (booking, vehicle, type) in normal operation
- InspectionLink: public, time-limited token to view a booking's inspection photos
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class InspectionType(str, enum.Enum):
    DELIVERY = "delivery"
    RETURN = "return"


PHOTO_FIELDS = ("front_photo", "left_photo", "rear_photo", "right_photo", "odometer_photo")


class VehicleInspection(Base):
    __tablename__ = "vehicle_inspections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("cars.id", ondelete="SET NULL"), nullable=True)
    inspection_type = Column(String(20), nullable=False)

    inspection_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    # Server clock at insert; inspection_date is whatever the client sent
    recorded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    odometer_reading = Column(Integer, nullable=True)
    fuel_level = Column(String(20), nullable=True)
    general_condition = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    # Storage keys / paths of the photos
    front_photo = Column(String(500), nullable=True)
    left_photo = Column(String(500), nullable=True)
    rear_photo = Column(String(500), nullable=True)
    right_photo = Column(String(500), nullable=True)
    odometer_photo = Column(String(500), nullable=True)

    # AssetStorage value telling where the photo paths live
    photo_storage = Column(String(20), default="object_storage")

    booking = relationship("Booking", back_populates="inspections")
    vehicle = relationship("Car")

    __table_args__ = (
        Index("ix_inspection_booking_vehicle_type", "booking_id", "vehicle_id", "inspection_type"),
    )

    def photo_paths(self) -> dict:
        """Photo storage paths keyed by position (front, left, ...)"""
        return {
            field.replace("_photo", ""): getattr(self, field)
            for field in PHOTO_FIELDS
        }

    def __repr__(self):
        return f"<VehicleInspection {self.inspection_type} booking={self.booking_id} vehicle={self.vehicle_id}>"


class InspectionLink(Base):
    """
    Public read access to a booking's inspection photos.

    There is no revocation: expires_at is the only access boundary.
    """
    __tablename__ = "inspection_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(128), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    booking = relationship("Booking")

    def is_expired(self, now: datetime = None) -> bool:
        return (now or datetime.utcnow()) > self.expires_at

    def __repr__(self):
        return f"<InspectionLink booking={self.booking_id} expires={self.expires_at}>"
