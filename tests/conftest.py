"""
Shared fixtures: in-memory SQLite database, model factories, authenticated client.
"""

import os
import sys
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import Base, get_db
from app import models
from app.utils.security import hash_password, create_access_token


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_customer(db):
    def _make(**overrides):
        data = dict(
            first_name="Laura",
            last_name="Martín",
            dni_nie="12345678Z",
            phone="600111222",
            email="laura@example.com",
            street_address="Calle Mayor 1, Madrid",
            driver_license="B-998877",
            preferred_language="es",
        )
        data.update(overrides)
        customer = models.Customer(**data)
        db.add(customer)
        db.commit()
        return customer
    return _make


@pytest.fixture
def make_car(db):
    def _make(**overrides):
        data = dict(registration_number="1234ABC", make="Yamaha", model="NMAX 125", daily_rate=Decimal("30.00"))
        data.update(overrides)
        car = models.Car(**data)
        db.add(car)
        db.commit()
        return car
    return _make


@pytest.fixture
def make_booking(db, make_customer, make_car):
    """
    Booking factory. By default a legacy single-vehicle booking of 3 days
    with a customer; pass customer=None for a booking without customer.
    """
    default = object()

    def _make(pickup=datetime(2025, 11, 15, 10, 0), days=3, customer=default, car=default, **overrides):
        if customer is default:
            customer = make_customer()
        if car is default:
            car = make_car()
        return_date = None
        if pickup is not None:
            return_date = pickup + timedelta(days=days)
        data = dict(
            customer_id=customer.id if customer else None,
            car_id=car.id if car else None,
            pickup_date=pickup,
            return_date=return_date,
            status=models.BookingStatus.CONFIRMED.value,
        )
        data.update(overrides)
        booking = models.Booking(**data)
        db.add(booking)
        db.commit()
        return booking
    return _make


@pytest.fixture
def make_inspection(db):
    def _make(booking, vehicle_id=None, inspection_type="delivery", inspection_date=None, **overrides):
        inspection = models.VehicleInspection(
            booking_id=booking.id,
            vehicle_id=vehicle_id if vehicle_id is not None else booking.car_id,
            inspection_type=inspection_type,
            inspection_date=inspection_date or datetime.utcnow(),
            odometer_reading=overrides.pop("odometer_reading", 12000),
            fuel_level=overrides.pop("fuel_level", "full"),
            **overrides
        )
        db.add(inspection)
        db.commit()
        return inspection
    return _make


@pytest.fixture
def user(db):
    user = models.User(
        username="recepcion",
        email="recepcion@example.com",
        hashed_password=hash_password("Secreta123!"),
        first_name="Recepción",
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def auth_headers(user):
    token = create_access_token(data={"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db):
    from app.main import app
    from app.utils.rate_limiter import limiter

    app.dependency_overrides[get_db] = lambda: db
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        limiter.enabled = True
        app.dependency_overrides.clear()
