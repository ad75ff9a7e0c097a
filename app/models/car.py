from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, DateTime
from ..database import Base


class Car(Base):
    """Rental vehicle (scooter, motorbike, car)"""
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    registration_number = Column(String(20), nullable=True, index=True)
    make = Column(String(50), nullable=False, default="")
    model = Column(String(50), nullable=False, default="")

    # Legacy single-vehicle bookings are priced from the daily rate
    daily_rate = Column(Numeric(10, 2), default=0)
    pricing_group_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model}".strip()

    def __repr__(self):
        return f"<Car {self.registration_number} {self.display_name}>"
