"""
Contract Data Aggregator

Collects everything printed on a rental contract into one flat ContractData
value: customer, vehicles (with their latest delivery/return inspection),
additional drivers, extras, upgrades, price breakdown, branding, signature
and the public inspection link.

Only a missing customer is fatal. Logo, photos and the inspection link are
best-effort: any failure is logged and the contract is built without them.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..config import Settings
from ..models.booking import Booking
from ..models.company_config import CompanyConfig
from ..models.inspection import VehicleInspection, InspectionType
from .asset_resolver import AssetResolver, get_asset_resolver
from .contract_errors import IncompleteBookingError
from .inspection_links import get_or_create_inspection_link

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

DATE_FORMATS = {
    "es": "%d/%m/%Y",
    "en": "%m/%d/%Y",
}
TIME_FORMAT = "%H:%M:%S"

DEFAULT_LOCATION = "No especificada"


# ================================
# INPUT VALUES
# ================================

@dataclass
class CompanyBranding:
    """Company identity printed on the contract header"""
    company_name: Optional[str] = None
    logo_path: Optional[str] = None
    logo_storage: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None

    @classmethod
    def from_config(cls, config: Optional[CompanyConfig]) -> "CompanyBranding":
        if config is None:
            return cls()
        return cls(
            company_name=config.company_name,
            logo_path=config.logo_path,
            logo_storage=config.logo_storage,
            primary_color=config.primary_color,
            secondary_color=config.secondary_color,
        )


def load_active_branding(db: Session) -> CompanyBranding:
    config = db.query(CompanyConfig).filter(CompanyConfig.active == True).first()  # noqa: E712
    return CompanyBranding.from_config(config)


@dataclass
class SignatureInfo:
    """Signature metadata to print on the contract"""
    signed_at: datetime
    ip_address: Optional[str] = None
    signature_data: Optional[str] = None


@dataclass
class AggregationOptions:
    tax_rate: Decimal = Decimal("0.21")
    default_language: str = "es"
    inspection_base_url: str = "https://app.alquiloscooter.com"
    inspection_link_days: int = 30
    photo_url_expiry_seconds: int = 604800

    @classmethod
    def from_settings(cls, config: Settings) -> "AggregationOptions":
        return cls(
            tax_rate=config.contract_tax_rate,
            default_language=config.default_contract_language,
            inspection_base_url=config.inspection_base_url,
            inspection_link_days=config.inspection_link_days,
            photo_url_expiry_seconds=config.photo_url_expiry_seconds,
        )


# ================================
# OUTPUT VALUES
# ================================

@dataclass
class InspectionSummary:
    inspection_date: Optional[str] = None
    odometer_reading: Optional[int] = None
    fuel_level: Optional[str] = None
    general_condition: Optional[str] = None
    notes: Optional[str] = None
    photos: Dict[str, str] = field(default_factory=dict)


@dataclass
class VehicleLine:
    registration: str
    make: str
    model: str
    price_per_day: Decimal
    days: int
    total: Decimal
    delivery_inspection: Optional[InspectionSummary] = None
    return_inspection: Optional[InspectionSummary] = None

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model}".strip()


@dataclass
class DriverLine:
    full_name: str
    license: Optional[str] = None


@dataclass
class ChargeLine:
    """Extra or upgrade row in the price table"""
    description: str
    unit_price: Decimal
    quantity: int
    total: Decimal


@dataclass
class ContractData:
    contract_number: str
    contract_date: str
    language: str

    customer_fullname: str
    customer_dni: str
    customer_phone: str
    customer_email: str
    customer_address: str
    driver_license: str

    pickup_date: str
    return_date: str
    pickup_location: str
    return_location: str
    rental_days: int

    vehicles: List[VehicleLine] = field(default_factory=list)
    additional_drivers: List[DriverLine] = field(default_factory=list)
    extras: List[ChargeLine] = field(default_factory=list)
    upgrades: List[ChargeLine] = field(default_factory=list)

    subtotal: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total_price: Decimal = Decimal("0.00")
    tax_rate: Decimal = Decimal("0.21")

    comments: Optional[str] = None

    signature_date: Optional[str] = None
    signature_time: Optional[str] = None
    signature_data: Optional[str] = None
    ip_address: Optional[str] = None

    company_name: Optional[str] = None
    logo_data_uri: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None

    inspection_link: Optional[str] = None
    version: Optional[int] = None

    @property
    def is_signed(self) -> bool:
        return self.signature_date is not None


# ================================
# HELPERS
# ================================

def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def rental_days(pickup: Optional[datetime], return_: Optional[datetime], now: datetime) -> int:
    """max(1, ceil((return - pickup) / 1 day))"""
    start = pickup or now
    end = return_ or now
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / 86400))


def split_tax(total: Decimal, tax_rate: Decimal) -> tuple:
    """Prices include VAT: returns (subtotal, tax) with tax = total - subtotal"""
    subtotal = money(total / (Decimal("1") + to_decimal(tax_rate)))
    return subtotal, money(total) - subtotal


def resolve_language(override: Optional[str], booking: Booking, default: str) -> str:
    candidate = override or (booking.customer.preferred_language if booking.customer else None) or default
    return candidate.strip().lower()[:2] or default


def format_date(value: Optional[datetime], language: str) -> str:
    if value is None:
        return ""
    return value.strftime(DATE_FORMATS.get(language, DATE_FORMATS["en"]))


def format_time(value: Optional[datetime]) -> str:
    return value.strftime(TIME_FORMAT) if value else ""


def _photo_url(resolver: AssetResolver, path: str, expires_in: int) -> Optional[str]:
    try:
        return resolver.viewable_url(path, expires_in)
    except Exception as e:
        logger.warning(f"Could not resolve inspection photo '{path}': {e}")
        return None


def resolve_photo_urls(
    inspection: VehicleInspection,
    asset_resolver_factory: Callable[[Optional[str]], AssetResolver],
    expires_in: int,
) -> Dict[str, str]:
    """
    Viewable URLs of an inspection's photos keyed by position.
    Photos that cannot be resolved are left out.
    """
    paths = {k: v for k, v in inspection.photo_paths().items() if v}
    if not paths:
        return {}

    try:
        resolver = asset_resolver_factory(inspection.photo_storage)
    except Exception as e:
        logger.warning(f"No resolver for photos of inspection {inspection.id}: {e}")
        return {}

    # Photos of one inspection are independent: resolve them concurrently
    with ThreadPoolExecutor(max_workers=len(paths)) as pool:
        urls = pool.map(lambda p: _photo_url(resolver, p, expires_in), paths.values())
        resolved = dict(zip(paths.keys(), urls))

    return {k: v for k, v in resolved.items() if v}


# ================================
# AGGREGATOR
# ================================

class ContractDataBuilder:
    """
    Builds ContractData for one booking.

    asset_resolver_factory maps an AssetStorage value to the resolver used
    for the logo and the inspection photos.
    """

    def __init__(
        self,
        db: Session,
        options: AggregationOptions,
        asset_resolver_factory: Callable[[Optional[str]], AssetResolver] = None,
    ):
        self.db = db
        self.options = options
        self.asset_resolver_factory = asset_resolver_factory or get_asset_resolver

    # ---------- branding ----------

    def resolve_logo(self, branding: CompanyBranding) -> Optional[str]:
        if not branding.logo_path:
            return None
        try:
            resolver = self.asset_resolver_factory(branding.logo_storage)
            return resolver.as_data_uri(branding.logo_path)
        except Exception as e:
            logger.warning(f"Could not load company logo '{branding.logo_path}': {e}")
            return None

    # ---------- inspections ----------

    def _latest_inspection(self, booking_id: int, vehicle_id: Optional[int], kind: InspectionType):
        if vehicle_id is None:
            return None
        return self.db.query(VehicleInspection).filter(
            VehicleInspection.booking_id == booking_id,
            VehicleInspection.vehicle_id == vehicle_id,
            VehicleInspection.inspection_type == kind.value,
        ).order_by(VehicleInspection.inspection_date.desc()).first()

    def summarize_inspection(self, inspection: Optional[VehicleInspection], language: str) -> Optional[InspectionSummary]:
        if inspection is None:
            return None

        photos = resolve_photo_urls(
            inspection, self.asset_resolver_factory, self.options.photo_url_expiry_seconds
        )

        return InspectionSummary(
            inspection_date=format_date(inspection.inspection_date, language),
            odometer_reading=inspection.odometer_reading,
            fuel_level=inspection.fuel_level,
            general_condition=inspection.general_condition,
            notes=inspection.notes,
            photos=photos,
        )

    # ---------- line items ----------

    def build_vehicle_lines(self, booking: Booking, days: int, language: str) -> List[VehicleLine]:
        lines = []

        if booking.vehicles:
            # Multi-vehicle booking: the stored price covers the whole rental
            for bv in booking.vehicles:
                car = bv.car
                total = money(bv.vehicle_price)
                lines.append(self._vehicle_line(
                    booking, car, bv.car_id, money(total / days), days, total, language
                ))
        elif booking.car is not None:
            # Legacy single-vehicle booking: daily rate x days
            rate = money(booking.car.daily_rate)
            lines.append(self._vehicle_line(
                booking, booking.car, booking.car_id, rate, days, money(rate * days), language
            ))

        return lines

    def _vehicle_line(self, booking, car, car_id, price_per_day, days, total, language) -> VehicleLine:
        delivery = self._latest_inspection(booking.id, car_id, InspectionType.DELIVERY)
        returned = self._latest_inspection(booking.id, car_id, InspectionType.RETURN)
        return VehicleLine(
            registration=(car.registration_number if car else None) or "N/A",
            make=(car.make if car else "") or "",
            model=(car.model if car else "") or "",
            price_per_day=price_per_day,
            days=days,
            total=total,
            delivery_inspection=self.summarize_inspection(delivery, language),
            return_inspection=self.summarize_inspection(returned, language),
        )

    @staticmethod
    def build_driver_lines(booking: Booking) -> List[DriverLine]:
        return [
            DriverLine(full_name=d.full_name or "N/A", license=d.driver_license or None)
            for d in booking.drivers or []
        ]

    @staticmethod
    def build_extra_lines(booking: Booking) -> List[ChargeLine]:
        return [
            ChargeLine(
                description=(be.extra.name if be.extra else None) or "Extra",
                unit_price=money(be.unit_price),
                quantity=be.quantity or 1,
                total=money(be.total_price),
            )
            for be in booking.extras or []
        ]

    @staticmethod
    def build_upgrade_lines(booking: Booking) -> List[ChargeLine]:
        return [
            ChargeLine(
                description=(bu.upgrade.name if bu.upgrade else None) or "Upgrade",
                unit_price=money(bu.unit_price_per_day),
                quantity=bu.days or 1,
                total=money(bu.total_price),
            )
            for bu in booking.upgrades or []
        ]

    # ---------- inspection link ----------

    def resolve_inspection_link(self, booking_id: int) -> Optional[str]:
        try:
            issued = get_or_create_inspection_link(
                self.db,
                booking_id,
                self.options.inspection_base_url,
                valid_days=self.options.inspection_link_days,
            )
            return issued.url
        except Exception as e:
            logger.warning(f"Could not issue inspection link for booking {booking_id}: {e}")
            return None

    # ---------- main entry ----------

    def build(
        self,
        booking: Booking,
        contract_number: str,
        branding: CompanyBranding,
        signature: Optional[SignatureInfo] = None,
        language: Optional[str] = None,
        version: Optional[int] = None,
        now: Optional[datetime] = None,
        contract_date: Optional[datetime] = None,
    ) -> ContractData:
        """contract_date is the contract's created_at; defaults to now for a new contract"""
        customer = booking.customer
        if customer is None:
            raise IncompleteBookingError()

        now = now or datetime.utcnow()
        lang = resolve_language(language, booking, self.options.default_language)
        days = rental_days(booking.pickup_date, booking.return_date, now)

        vehicles = self.build_vehicle_lines(booking, days, lang)
        extras = self.build_extra_lines(booking)
        upgrades = self.build_upgrade_lines(booking)

        total = sum((v.total for v in vehicles), Decimal("0")) \
            + sum((e.total for e in extras), Decimal("0")) \
            + sum((u.total for u in upgrades), Decimal("0"))
        subtotal, tax = split_tax(total, self.options.tax_rate)

        data = ContractData(
            contract_number=contract_number,
            contract_date=format_date(contract_date or now, lang),
            language=lang,
            customer_fullname=customer.full_name,
            customer_dni=customer.dni_nie or "",
            customer_phone=customer.phone or "",
            customer_email=customer.email or "",
            customer_address=customer.street_address or "",
            driver_license=customer.driver_license or "",
            pickup_date=format_date(booking.pickup_date, lang),
            return_date=format_date(booking.return_date, lang),
            pickup_location=booking.pickup_location or DEFAULT_LOCATION,
            return_location=booking.return_location or DEFAULT_LOCATION,
            rental_days=days,
            vehicles=vehicles,
            additional_drivers=self.build_driver_lines(booking),
            extras=extras,
            upgrades=upgrades,
            subtotal=subtotal,
            tax=tax,
            total_price=money(total),
            tax_rate=to_decimal(self.options.tax_rate),
            comments=booking.notes or None,
            company_name=branding.company_name,
            logo_data_uri=self.resolve_logo(branding),
            primary_color=branding.primary_color,
            secondary_color=branding.secondary_color,
            inspection_link=self.resolve_inspection_link(booking.id),
            version=version,
        )

        if signature is not None:
            data.signature_date = format_date(signature.signed_at, lang)
            data.signature_time = format_time(signature.signed_at)
            data.ip_address = signature.ip_address
            data.signature_data = signature.signature_data

        return data


def build_contract_data(
    db: Session,
    booking: Booking,
    contract_number: str,
    branding: CompanyBranding,
    options: AggregationOptions,
    signature: Optional[SignatureInfo] = None,
    language: Optional[str] = None,
    version: Optional[int] = None,
    asset_resolver_factory: Callable[[Optional[str]], AssetResolver] = None,
    contract_date: Optional[datetime] = None,
) -> ContractData:
    """Convenience wrapper around ContractDataBuilder.build"""
    builder = ContractDataBuilder(db, options, asset_resolver_factory)
    return builder.build(
        booking,
        contract_number,
        branding,
        signature=signature,
        language=language,
        version=version,
        contract_date=contract_date,
    )
