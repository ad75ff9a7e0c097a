from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session, joinedload
from datetime import datetime
import logging

from ..config import settings
from ..database import get_db
from ..models.booking import Booking, PUBLIC_VISIBLE_STATUSES
from ..models.car import Car
from ..models.inspection import VehicleInspection
from ..models.user import User
from ..schemas.inspection import (
    GenerateLinkRequest, InspectionLinkResponse, InspectionCreate, InspectionResponse,
    PublicInspection, PublicInspectionBooking, PublicInspectionResponse
)
from ..services.asset_resolver import get_asset_resolver
from ..services.contract_data import resolve_photo_urls
from ..services.contract_errors import ContractError
from ..services.contract_service import ContractService, REASON_NEW_INSPECTION
from ..services.inspection_links import (
    InspectionLinkExpired, InspectionLinkNotFound,
    build_inspection_url, find_valid_link, get_or_create_inspection_link, resolve_link
)
from ..utils.dependencies import get_current_user
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inspections", tags=["Inspecciones"])


def _get_booking_or_404(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reserva no encontrada"
        )
    return booking


@router.post("/generate-link", response_model=InspectionLinkResponse)
@limiter.limit(get_rate_limit("inspection_link"))
async def generate_inspection_link(
    request: Request,
    payload: GenerateLinkRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Public link to the booking's inspection photos (reused while valid)"""
    _get_booking_or_404(db, payload.booking_id)

    issued = get_or_create_inspection_link(
        db,
        payload.booking_id,
        settings.inspection_base_url,
        valid_days=settings.inspection_link_days,
    )
    db.commit()

    return InspectionLinkResponse(token=issued.token, url=issued.url, expires_at=issued.expires_at)


@router.get("/generate-link", response_model=InspectionLinkResponse)
async def get_inspection_link(
    booking_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Existing valid link of a booking, without minting a new one"""
    link = find_valid_link(db, booking_id)
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No hay enlace de inspección vigente"
        )

    return InspectionLinkResponse(
        token=link.token,
        url=build_inspection_url(settings.inspection_base_url, link.token),
        expires_at=link.expires_at,
    )


@router.get("/by-token/{token}", response_model=PublicInspectionResponse)
async def get_inspections_by_token(
    token: str,
    db: Session = Depends(get_db)
):
    """Public (no auth) view of a booking's inspections; expiry is the only boundary"""
    try:
        link = resolve_link(db, token)
    except InspectionLinkNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Enlace no válido"
        )
    except InspectionLinkExpired:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail="El enlace ha caducado"
        )

    booking = db.query(Booking).options(
        joinedload(Booking.customer)
    ).filter(Booking.id == link.booking_id).first()

    if not booking or booking.status not in PUBLIC_VISIBLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reserva no disponible"
        )

    inspections = db.query(VehicleInspection).options(
        joinedload(VehicleInspection.vehicle)
    ).filter(
        VehicleInspection.booking_id == booking.id
    ).order_by(VehicleInspection.inspection_date).all()

    items = [
        PublicInspection(
            id=insp.id,
            vehicle_id=insp.vehicle_id,
            vehicle_registration=insp.vehicle.registration_number if insp.vehicle else None,
            inspection_type=insp.inspection_type,
            inspection_date=insp.inspection_date,
            odometer_reading=insp.odometer_reading,
            fuel_level=insp.fuel_level,
            general_condition=insp.general_condition,
            notes=insp.notes,
            photos=resolve_photo_urls(insp, get_asset_resolver, settings.photo_url_expiry_seconds),
        )
        for insp in inspections
    ]

    return PublicInspectionResponse(
        booking=PublicInspectionBooking(
            id=booking.id,
            customer_name=booking.customer.full_name if booking.customer else None,
            pickup_date=booking.pickup_date,
            return_date=booking.return_date,
            status=booking.status,
        ),
        inspections=items,
        expires_at=link.expires_at,
    )


@router.post("", response_model=InspectionResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=InspectionResponse, status_code=status.HTTP_201_CREATED)
async def create_inspection(
    payload: InspectionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Record a delivery/return inspection and refresh the unsigned contract"""
    _get_booking_or_404(db, payload.booking_id)

    if not db.query(Car).filter(Car.id == payload.vehicle_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vehículo no encontrado"
        )

    data = payload.model_dump()
    data["inspection_type"] = payload.inspection_type.value
    data["photo_storage"] = payload.photo_storage.value
    data["inspection_date"] = payload.inspection_date or datetime.utcnow()

    inspection = VehicleInspection(**data)
    db.add(inspection)
    db.commit()
    db.refresh(inspection)

    # Signed contracts pick the inspection up on their next read
    try:
        ContractService(db).regenerate_if_not_signed(
            payload.booking_id, reason=REASON_NEW_INSPECTION, actor=current_user.username
        )
    except ContractError as e:
        logger.warning(f"Contract not regenerated after inspection {inspection.id}: {e.message}")

    return inspection
