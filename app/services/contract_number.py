"""
Contract Number Allocator

Format: YYYYMMDD####

- YYYYMMDD is the booking's PICKUP day, not the day the contract is created
- #### is the booking's rank among all bookings picking up that same day,
  ordered by pickup time and then by booking id

Example:
    pickup 15/11 10:00 -> 202511150001
    pickup 15/11 14:00 -> 202511150002
    pickup 20/12 09:00 -> 202512200001
"""

from datetime import datetime, timedelta

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from ..models.booking import Booking
from .contract_errors import MissingPickupDateError


def day_bounds(moment: datetime) -> tuple:
    """[start, end) of the calendar day containing moment"""
    start = datetime(moment.year, moment.month, moment.day)
    return start, start + timedelta(days=1)


def format_contract_number(pickup_date: datetime, sequence: int) -> str:
    return f"{pickup_date.strftime('%Y%m%d')}{sequence:04d}"


def allocate_contract_number(db: Session, booking: Booking) -> str:
    """
    Derive the contract number for a booking. Pure read: the caller persists
    the number when it creates the contract.
    """
    if booking is None or booking.pickup_date is None:
        raise MissingPickupDateError()

    pickup = booking.pickup_date
    start, end = day_bounds(pickup)

    earlier = db.query(func.count(Booking.id)).filter(
        Booking.pickup_date >= start,
        Booking.pickup_date < end,
        Booking.id != booking.id,
        or_(
            Booking.pickup_date < pickup,
            and_(Booking.pickup_date == pickup, Booking.id < booking.id),
        ),
    ).scalar() or 0

    return format_contract_number(pickup, earlier + 1)
