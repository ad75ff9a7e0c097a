"""
Rental Contract Models

- Contract: one per booking, holds the current rendered HTML and its version
- ContractHistory: append-only snapshots of superseded contract texts
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from ..database import Base


class Contract(Base):
    """
    Rental agreement tied one-to-one to a booking.

    contract_number and booking_id never change after creation.
    version strictly increases on every regeneration.
    signed_at is NULL while the contract is unsigned.
    """
    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)

    contract_number = Column(String(20), nullable=False, index=True)
    contract_text = Column(Text, nullable=False, default="")
    version = Column(Integer, nullable=False, default=1)

    # Signature
    signed_at = Column(DateTime, nullable=True)
    signature_data = Column(Text, nullable=True)  # data:image/png;base64,...
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)

    # Last time the text was refreshed with inspection data (NULL = created_at).
    # Compared with vehicle_inspections.recorded_at, never with inspection_date.
    inspections_synced_at = Column(DateTime, nullable=True)

    # Remote signature link; cleared once the contract is signed
    remote_signature_token = Column(String(128), unique=True, nullable=True, index=True)
    remote_signature_expires_at = Column(DateTime, nullable=True)
    remote_signature_sent_at = Column(DateTime, nullable=True)
    remote_signature_sent_to = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    booking = relationship("Booking", back_populates="contract")
    history = relationship(
        "ContractHistory", back_populates="contract",
        order_by="ContractHistory.version.desc()"
    )

    @property
    def is_signed(self) -> bool:
        return self.signed_at is not None

    @property
    def inspection_baseline(self) -> datetime:
        """Inspections recorded after this moment are not yet in the text"""
        return self.inspections_synced_at or self.created_at

    def remote_signature_active(self, now: datetime = None) -> bool:
        if not self.remote_signature_token or self.remote_signature_expires_at is None:
            return False
        return self.remote_signature_expires_at >= (now or datetime.utcnow())

    def __repr__(self):
        return f"<Contract {self.contract_number} v{self.version} signed={self.is_signed}>"


class ContractHistory(Base):
    """Snapshot of a contract text taken right before it was replaced"""
    __tablename__ = "contract_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contract_id = Column(Integer, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False)

    # Version the snapshot superseded
    version = Column(Integer, nullable=False)
    contract_text = Column(Text, nullable=False)
    change_reason = Column(String(255), nullable=True)
    created_by = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    contract = relationship("Contract", back_populates="history")

    __table_args__ = (
        Index("ix_contract_history_contract_version", "contract_id", "version"),
    )

    def __repr__(self):
        return f"<ContractHistory contract={self.contract_id} v{self.version}>"
