from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, Text, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Bookings whose inspections can still be viewed through a public link
PUBLIC_VISIBLE_STATUSES = (
    BookingStatus.CONFIRMED.value,
    BookingStatus.ACTIVE.value,
    BookingStatus.COMPLETED.value,
)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)

    # Legacy single-vehicle bookings keep the car here; newer ones use booking_vehicles
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="SET NULL"), nullable=True)

    # Business-local wall-clock timestamps
    pickup_date = Column(DateTime, nullable=True, index=True)
    return_date = Column(DateTime, nullable=True)
    pickup_location = Column(String(150), nullable=True)
    return_location = Column(String(150), nullable=True)

    total_price = Column(Numeric(10, 2), default=0)
    status = Column(String(30), default=BookingStatus.CONFIRMED.value)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="bookings")
    car = relationship("Car", foreign_keys=[car_id])
    vehicles = relationship(
        "BookingVehicle", back_populates="booking",
        cascade="all, delete-orphan", order_by="BookingVehicle.id"
    )
    drivers = relationship(
        "BookingDriver", back_populates="booking",
        cascade="all, delete-orphan", order_by="BookingDriver.id"
    )
    extras = relationship(
        "BookingExtra", back_populates="booking",
        cascade="all, delete-orphan", order_by="BookingExtra.id"
    )
    upgrades = relationship(
        "BookingUpgrade", back_populates="booking",
        cascade="all, delete-orphan", order_by="BookingUpgrade.id"
    )
    inspections = relationship(
        "VehicleInspection", back_populates="booking",
        order_by="VehicleInspection.inspection_date"
    )
    contract = relationship("Contract", back_populates="booking", uselist=False)

    __table_args__ = (
        Index("ix_booking_customer", "customer_id"),
    )

    def __repr__(self):
        return f"<Booking {self.id} - {self.pickup_date}>"


class BookingVehicle(Base):
    """Vehicle attached to a multi-vehicle booking, with its own price for the whole rental"""
    __tablename__ = "booking_vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False)
    vehicle_price = Column(Numeric(10, 2), default=0)

    booking = relationship("Booking", back_populates="vehicles")
    car = relationship("Car")


class BookingDriver(Base):
    """Additional driver authorised on a booking"""
    __tablename__ = "booking_drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    full_name = Column(String(200), nullable=True)
    driver_license = Column(String(50), nullable=True)

    booking = relationship("Booking", back_populates="drivers")


class RentalExtra(Base):
    """Catalog of extras (helmet, top case, ...)"""
    __tablename__ = "rental_extras"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), default=0)


class BookingExtra(Base):
    __tablename__ = "booking_extras"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    extra_id = Column(Integer, ForeignKey("rental_extras.id", ondelete="SET NULL"), nullable=True)
    unit_price = Column(Numeric(10, 2), default=0)
    quantity = Column(Integer, default=1)
    total_price = Column(Numeric(10, 2), default=0)

    booking = relationship("Booking", back_populates="extras")
    extra = relationship("RentalExtra")


class RentalUpgrade(Base):
    """Catalog of per-day upgrades (full insurance, ...)"""
    __tablename__ = "rental_upgrades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    price_per_day = Column(Numeric(10, 2), default=0)


class BookingUpgrade(Base):
    __tablename__ = "booking_upgrades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    upgrade_id = Column(Integer, ForeignKey("rental_upgrades.id", ondelete="SET NULL"), nullable=True)
    unit_price_per_day = Column(Numeric(10, 2), default=0)
    days = Column(Integer, default=1)
    total_price = Column(Numeric(10, 2), default=0)

    booking = relationship("Booking", back_populates="upgrades")
    upgrade = relationship("RentalUpgrade")
