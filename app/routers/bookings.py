from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from decimal import Decimal
import logging

from ..database import get_db
from ..models.booking import Booking, BookingVehicle
from ..models.car import Car
from ..models.user import User
from ..schemas.booking import BookingResponse, BookingUpdate, BookingVehiclesUpdate
from ..services.contract_errors import ContractError
from ..services.contract_service import ContractService, REASON_BOOKING_EDIT, REASON_VEHICLE_CHANGE
from ..utils.dependencies import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Reservas"])


def _get_booking_or_404(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reserva no encontrada"
        )
    return booking


def _refresh_contract(db: Session, booking_id: int, reason: str, actor: str) -> bool:
    """
    Regenerate the booking's unsigned contract after an edit.
    The edit is already committed, so a contract failure only gets logged.
    """
    try:
        return ContractService(db).regenerate_if_not_signed(booking_id, reason=reason, actor=actor)
    except ContractError as e:
        logger.warning(f"Contract of booking {booking_id} not regenerated: {e.message}")
        return False


def _to_response(booking: Booking, regenerated: bool) -> BookingResponse:
    response = BookingResponse.model_validate(booking)
    response.contract_regenerated = regenerated
    return response


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _get_booking_or_404(db, booking_id)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    payload: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Edit dates, locations or notes; an unsigned contract is regenerated"""
    booking = _get_booking_or_404(db, booking_id)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return _to_response(booking, False)

    pickup = changes.get("pickup_date", booking.pickup_date)
    return_ = changes.get("return_date", booking.return_date)
    if pickup and return_ and return_ < pickup:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La fecha de devolución debe ser posterior a la de recogida"
        )

    for field, value in changes.items():
        setattr(booking, field, value)
    db.commit()

    logger.info(f"Booking {booking_id} updated: {', '.join(changes)}")

    regenerated = _refresh_contract(db, booking_id, REASON_BOOKING_EDIT, current_user.username)
    db.refresh(booking)
    return _to_response(booking, regenerated)


@router.put("/{booking_id}/vehicles", response_model=BookingResponse)
async def replace_booking_vehicles(
    booking_id: int,
    payload: BookingVehiclesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Replace the vehicles attached to a booking (vehicle swap)"""
    booking = _get_booking_or_404(db, booking_id)

    car_ids = {item.car_id for item in payload.vehicles}
    found = {c.id for c in db.query(Car.id).filter(Car.id.in_(car_ids)).all()}
    missing = car_ids - found
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Vehículos no encontrados: {', '.join(str(i) for i in sorted(missing))}"
        )

    booking.vehicles.clear()
    for item in payload.vehicles:
        booking.vehicles.append(BookingVehicle(car_id=item.car_id, vehicle_price=item.vehicle_price))

    booking.total_price = sum((item.vehicle_price for item in payload.vehicles), Decimal("0")) \
        + sum((e.total_price or 0 for e in booking.extras), Decimal("0")) \
        + sum((u.total_price or 0 for u in booking.upgrades), Decimal("0"))
    db.commit()

    logger.info(f"Booking {booking_id} vehicles replaced: {sorted(car_ids)}")

    regenerated = _refresh_contract(db, booking_id, REASON_VEHICLE_CHANGE, current_user.username)
    db.refresh(booking)
    return _to_response(booking, regenerated)
