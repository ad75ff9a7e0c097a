"""
Contract Lifecycle Service

Decides when a booking's contract must be (re)generated and persists it:

    no contract        -> create at the base version (signed right away if a signature is given)
    unsigned           -> snapshot into history, re-render, version + 1
    unsigned + sign    -> re-render with signature, signed_at = now, version + 1
    signed + new inspections -> re-render keeping the original signature, version + 1
    signed otherwise   -> returned as-is

Remote signing hands the customer a public, time-limited token; signing
through it follows the same path as a signature taken at the desk.

Every write on an existing contract is a compare-and-swap on `version`,
so two concurrent regenerations cannot silently overwrite each other.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..config import Settings, settings as default_settings
from ..models.booking import Booking, BookingVehicle, BookingExtra, BookingUpgrade
from ..models.contract import Contract, ContractHistory
from ..models.inspection import VehicleInspection, InspectionType
from ..models.notification import Notification, NotificationType
from ..utils.logging_config import get_logger
from .asset_resolver import AssetResolver
from .contract_data import (
    AggregationOptions,
    CompanyBranding,
    SignatureInfo,
    build_contract_data,
    load_active_branding,
)
from .contract_errors import (
    BookingNotFoundError,
    ContractAlreadySignedError,
    ContractNotFoundError,
    ContractVersionConflict,
    IncompleteBookingError,
    MissingPickupDateError,
    RemoteSignatureClosedError,
    RemoteSignatureExpiredError,
    RemoteSignatureNotFoundError,
)
from .contract_number import allocate_contract_number
from .contract_renderer import render_contract

logger = get_logger(__name__)

REASON_AUTO_REFRESH = "Actualización automática"
REASON_BOOKING_EDIT = "Modificación en la reserva"
REASON_VEHICLE_CHANGE = "Cambio de vehículo"
REASON_NEW_INSPECTION = "Nueva inspección"


@dataclass
class RemoteSignatureLink:
    token: str
    url: str
    expires_at: datetime
    sent_to: Optional[str] = None


def build_remote_signature_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/firma/{token}"


class ContractService:
    def __init__(
        self,
        db: Session,
        config: Settings = None,
        branding: Optional[CompanyBranding] = None,
        asset_resolver_factory: Callable[[Optional[str]], AssetResolver] = None,
    ):
        self.db = db
        self.settings = config or default_settings
        self.options = AggregationOptions.from_settings(self.settings)
        self._branding = branding
        self.asset_resolver_factory = asset_resolver_factory

    @property
    def branding(self) -> CompanyBranding:
        # Loaded once per service instance (one request)
        if self._branding is None:
            self._branding = load_active_branding(self.db)
        return self._branding

    # ================================
    # LOOKUPS
    # ================================

    def load_booking(self, booking_id: int) -> Booking:
        booking = self.db.query(Booking).options(
            joinedload(Booking.customer),
            joinedload(Booking.car),
            selectinload(Booking.vehicles).joinedload(BookingVehicle.car),
            selectinload(Booking.drivers),
            selectinload(Booking.extras).joinedload(BookingExtra.extra),
            selectinload(Booking.upgrades).joinedload(BookingUpgrade.upgrade),
        ).filter(Booking.id == booking_id).first()

        if not booking:
            raise BookingNotFoundError()
        return booking

    def find_contract(self, booking_id: int) -> Optional[Contract]:
        return self.db.query(Contract).filter(Contract.booking_id == booking_id).first()

    def get_contract_by_id(self, contract_id: int) -> Contract:
        contract = self.db.query(Contract).filter(Contract.id == contract_id).first()
        if not contract:
            raise ContractNotFoundError()
        return contract

    def get_history(self, contract_id: int) -> List[ContractHistory]:
        """History snapshots of a contract, newest version first"""
        self.get_contract_by_id(contract_id)
        return self.db.query(ContractHistory).filter(
            ContractHistory.contract_id == contract_id
        ).order_by(ContractHistory.version.desc(), ContractHistory.id.desc()).all()

    def latest_inspection_recorded_at(self, booking_id: int) -> Optional[datetime]:
        return self.db.query(func.max(VehicleInspection.recorded_at)).filter(
            VehicleInspection.booking_id == booking_id
        ).scalar()

    def has_new_inspections(self, contract: Contract) -> bool:
        """
        Inspections recorded after the contract text was last synced with them.

        recorded_at is the server insert time, so a backdated inspection
        entered after signing still counts as new.
        """
        count = self.db.query(func.count(VehicleInspection.id)).filter(
            VehicleInspection.booking_id == contract.booking_id,
            VehicleInspection.recorded_at > contract.inspection_baseline,
        ).scalar()
        return count > 0

    def get_contract_by_remote_token(self, token: str, now: Optional[datetime] = None) -> Contract:
        """Unsigned contract behind a remote signature token; raises when unknown, expired or signed"""
        contract = None
        if token:
            contract = self.db.query(Contract).filter(Contract.remote_signature_token == token).first()
        if contract is None:
            raise RemoteSignatureNotFoundError()

        now = now or datetime.utcnow()
        if contract.remote_signature_expires_at is not None and contract.remote_signature_expires_at < now:
            raise RemoteSignatureExpiredError()
        if contract.is_signed:
            raise RemoteSignatureClosedError()
        return contract

    @staticmethod
    def require_pickup_date(booking: Booking) -> None:
        if booking.pickup_date is None:
            raise MissingPickupDateError()

    def _inspections_sync_point(self, booking_id: int, now: datetime) -> datetime:
        # Taken before rendering: anything recorded later triggers another refresh
        latest = self.latest_inspection_recorded_at(booking_id)
        return max(now, latest) if latest else now

    # ================================
    # RENDER + WRITE HELPERS
    # ================================

    def _render(
        self,
        booking: Booking,
        contract_number: str,
        version: int,
        signature: Optional[SignatureInfo] = None,
        language: Optional[str] = None,
        contract_date: Optional[datetime] = None,
    ) -> str:
        data = build_contract_data(
            self.db,
            booking,
            contract_number,
            self.branding,
            self.options,
            signature=signature,
            language=language,
            version=version,
            asset_resolver_factory=self.asset_resolver_factory,
            contract_date=contract_date,
        )
        return render_contract(data)

    def _compare_and_swap(
        self,
        contract: Contract,
        expected_version: int,
        values: dict,
        history: Optional[ContractHistory] = None,
    ) -> Contract:
        """
        Apply `values` only if the row is still at expected_version.
        The optional history snapshot is committed in the same transaction.
        """
        if history is not None:
            self.db.add(history)
            self.db.flush()

        updated = self.db.query(Contract).filter(
            Contract.id == contract.id,
            Contract.version == expected_version,
        ).update(values, synchronize_session=False)

        if updated != 1:
            self.db.rollback()
            logger.log_with_context(
                logging.WARNING,
                f"Version conflict writing contract (expected v{expected_version})",
                entity_type="contract",
                entity_id=str(contract.id),
            )
            raise ContractVersionConflict()

        self.db.commit()
        self.db.refresh(contract)
        return contract

    # ================================
    # CREATE
    # ================================

    def _create(
        self,
        booking: Booking,
        actor: Optional[str] = None,
        signature_data: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Contract:
        if booking.customer is None:
            raise IncompleteBookingError()

        contract_number = allocate_contract_number(self.db, booking)
        version = self.settings.contract_base_version
        now = datetime.utcnow()

        signature = None
        if signature_data:
            signature = SignatureInfo(signed_at=now, ip_address=ip_address, signature_data=signature_data)

        contract_text = self._render(booking, contract_number, version, signature, language, contract_date=now)

        contract = Contract(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            contract_number=contract_number,
            contract_text=contract_text,
            version=version,
            signed_at=now if signature else None,
            signature_data=signature_data if signature else None,
            ip_address=ip_address if signature else None,
            user_agent=user_agent if signature else None,
            created_at=now,
            updated_at=now,
        )
        self.db.add(contract)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request created the contract for this booking first
            self.db.rollback()
            raise ContractVersionConflict("El contrato de esta reserva ya fue creado por otra petición")
        self.db.refresh(contract)

        logger.contract_created(str(contract.id), booking.id, contract_number, signed=contract.is_signed)
        if contract.is_signed:
            self._notify_signed(contract, booking)
        return contract

    # ================================
    # REGENERATION PATHS
    # ================================

    def _regenerate_unsigned(self, contract: Contract, booking: Booking, reason: str, actor: Optional[str]) -> Contract:
        expected = contract.version
        new_text = self._render(booking, contract.contract_number, expected + 1, contract_date=contract.created_at)

        history = ContractHistory(
            contract_id=contract.id,
            version=expected,
            contract_text=contract.contract_text,
            change_reason=reason,
            created_by=actor,
            created_at=datetime.utcnow(),
        )
        self._compare_and_swap(contract, expected, {
            Contract.contract_text: new_text,
            Contract.version: expected + 1,
            Contract.updated_at: datetime.utcnow(),
        }, history=history)

        logger.contract_regenerated(str(contract.id), expected, contract.version, "unsigned", reason)
        return contract

    def _regenerate_signed(self, contract: Contract, booking: Booking, reason: str) -> Contract:
        expected = contract.version
        signature = SignatureInfo(
            signed_at=contract.signed_at,
            ip_address=contract.ip_address,
            signature_data=contract.signature_data,
        )
        now = datetime.utcnow()
        synced_at = self._inspections_sync_point(booking.id, now)
        new_text = self._render(
            booking, contract.contract_number, expected + 1, signature, contract_date=contract.created_at
        )

        # signed_at / ip_address / signature_data stay as signed
        self._compare_and_swap(contract, expected, {
            Contract.contract_text: new_text,
            Contract.version: expected + 1,
            Contract.inspections_synced_at: synced_at,
            Contract.updated_at: now,
        })

        logger.contract_regenerated(str(contract.id), expected, contract.version, "signed", reason)
        return contract

    def regenerate_if_not_signed(
        self,
        booking_id: int,
        reason: str = REASON_BOOKING_EDIT,
        actor: Optional[str] = None,
    ) -> bool:
        """
        Refresh an unsigned contract after its booking changed.

        Returns False (and writes nothing) when the booking has no contract
        or the contract is already signed.
        """
        contract = self.find_contract(booking_id)
        if contract is None or contract.is_signed:
            return False

        booking = self.load_booking(booking_id)
        self.require_pickup_date(booking)
        self._regenerate_unsigned(contract, booking, reason, actor)
        return True

    def regenerate_signed(
        self,
        booking_id: int,
        reason: str = REASON_NEW_INSPECTION,
        actor: Optional[str] = None,
    ) -> bool:
        """
        Refresh a signed contract with new inspection data.

        The original signature date, IP and image are printed again; no
        history row is written.
        """
        contract = self.find_contract(booking_id)
        if contract is None or not contract.is_signed:
            return False

        booking = self.load_booking(booking_id)
        self.require_pickup_date(booking)
        self._regenerate_signed(contract, booking, reason)
        return True

    # ================================
    # SIGNING
    # ================================

    def _sign(
        self,
        contract: Contract,
        booking: Booking,
        signature_data: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        language: Optional[str] = None,
        channel: Optional[str] = None,
        extra_values: Optional[dict] = None,
    ) -> Contract:
        expected = contract.version
        now = datetime.utcnow()
        synced_at = self._inspections_sync_point(booking.id, now)
        signature = SignatureInfo(signed_at=now, ip_address=ip_address, signature_data=signature_data)
        new_text = self._render(
            booking, contract.contract_number, expected + 1, signature, language, contract_date=contract.created_at
        )

        values = {
            Contract.contract_text: new_text,
            Contract.version: expected + 1,
            Contract.signed_at: now,
            Contract.signature_data: signature_data,
            Contract.ip_address: ip_address,
            Contract.user_agent: user_agent,
            Contract.inspections_synced_at: synced_at,
            Contract.updated_at: now,
        }
        values.update(extra_values or {})
        self._compare_and_swap(contract, expected, values)

        logger.contract_signed(str(contract.id), contract.version, ip_address, channel=channel)
        self._notify_signed(contract, booking)
        return contract

    # ================================
    # PUBLIC OPERATIONS
    # ================================

    def get_contract(self, booking_id: int, actor: Optional[str] = None) -> Contract:
        """
        Contract for a booking, created lazily and refreshed when stale:
        unsigned contracts always, signed ones only if new inspections exist.
        """
        booking = self.load_booking(booking_id)
        self.require_pickup_date(booking)
        contract = self.find_contract(booking_id)

        if contract is None:
            return self._create(booking, actor)

        if not contract.is_signed:
            return self._regenerate_unsigned(contract, booking, REASON_AUTO_REFRESH, actor)

        if self.has_new_inspections(contract):
            return self._regenerate_signed(contract, booking, REASON_NEW_INSPECTION)

        return contract

    def create_or_sign(
        self,
        booking_id: int,
        signature_data: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        actor: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Contract:
        booking = self.load_booking(booking_id)
        self.require_pickup_date(booking)
        contract = self.find_contract(booking_id)

        if contract is None:
            return self._create(booking, actor, signature_data, ip_address, user_agent, language)

        if not signature_data:
            return contract

        if contract.is_signed:
            raise ContractAlreadySignedError()

        return self._sign(contract, booking, signature_data, ip_address, user_agent, language)

    # ================================
    # REMOTE SIGNATURE
    # ================================

    def issue_remote_signature(
        self,
        contract_id: int,
        sent_to: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> RemoteSignatureLink:
        """
        Mint a new remote signature token for an unsigned contract.

        Any previous token stops working. Delivery to the customer is left to
        staff: a notification carries the link.
        """
        contract = self.get_contract_by_id(contract_id)
        if contract.is_signed:
            raise RemoteSignatureClosedError()

        now = datetime.utcnow()
        token = secrets.token_hex(32)
        expires_at = now + timedelta(days=self.settings.remote_signature_days)
        url = build_remote_signature_url(self.settings.inspection_base_url, token)

        updated = self.db.query(Contract).filter(
            Contract.id == contract.id,
            Contract.signed_at.is_(None),
        ).update({
            Contract.remote_signature_token: token,
            Contract.remote_signature_expires_at: expires_at,
            Contract.remote_signature_sent_at: now,
            Contract.remote_signature_sent_to: sent_to,
        }, synchronize_session=False)
        if updated != 1:
            self.db.rollback()
            raise RemoteSignatureClosedError()

        self.db.add(Notification(
            type=NotificationType.REMOTE_SIGNATURE_SENT.value,
            title=f"Firma remota del contrato {contract.contract_number}",
            message=f"Enlace para {sent_to or 'el cliente'}: {url} (caduca el {expires_at:%d/%m/%Y})",
            entity_type="contract",
            entity_id=str(contract.id),
        ))
        self.db.commit()
        self.db.refresh(contract)

        logger.log_with_context(
            logging.INFO,
            "Remote signature link issued",
            entity_type="contract",
            entity_id=str(contract.id),
            sent_to=sent_to,
            issued_by=actor,
        )
        return RemoteSignatureLink(token=token, url=url, expires_at=expires_at, sent_to=sent_to)

    def sign_remotely(
        self,
        token: str,
        signature_data: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Contract:
        """Sign through a public token; the token is spent on success"""
        contract = self.get_contract_by_remote_token(token)
        booking = self.load_booking(contract.booking_id)
        self.require_pickup_date(booking)

        return self._sign(
            contract, booking, signature_data, ip_address, user_agent,
            channel="remote",
            extra_values={
                Contract.remote_signature_token: None,
                Contract.remote_signature_expires_at: None,
            },
        )


    # ================================
    # NOTIFICATIONS
    # ================================

    def _notify_signed(self, contract: Contract, booking: Booking) -> None:
        """In-app notice once a contract is signed and the vehicle was already delivered"""
        try:
            has_delivery = self.db.query(VehicleInspection.id).filter(
                VehicleInspection.booking_id == booking.id,
                VehicleInspection.inspection_type == InspectionType.DELIVERY.value,
            ).first() is not None
            if not has_delivery:
                return

            customer_name = booking.customer.full_name if booking.customer else ""
            self.db.add(Notification(
                type=NotificationType.CONTRACT_SIGNED.value,
                title=f"Contrato {contract.contract_number} firmado",
                message=f"{customer_name} ha firmado el contrato de la reserva #{booking.id}",
                entity_type="contract",
                entity_id=str(contract.id),
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"Could not create signature notification for contract {contract.id}")
