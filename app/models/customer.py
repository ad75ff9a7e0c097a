from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship
from ..database import Base


class Customer(Base):
    """Rental customer - identity, contact and fiscal data"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    dni_nie = Column(String(30), nullable=True)  # DNI / NIE / passport
    phone = Column(String(30), nullable=False)
    email = Column(String(255), nullable=True)
    street_address = Column(String(255), nullable=True)
    driver_license = Column(String(50), nullable=True)

    # Language used for contracts (es, en, ...)
    preferred_language = Column(String(5), nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="customer")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<Customer {self.full_name} - {self.phone}>"
