"""
Notification Model - in-app notifications for back-office staff
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from ..database import Base


class NotificationType(str, enum.Enum):
    # Contracts
    CONTRACT_SIGNED = "contract_signed"
    CONTRACT_REGENERATED = "contract_regenerated"
    REMOTE_SIGNATURE_SENT = "remote_signature_sent"

    # Inspections
    INSPECTION_LINK_CREATED = "inspection_link_created"

    # System
    SYSTEM_ALERT = "system_alert"


NOTIFICATION_TYPE_LABELS = {
    NotificationType.CONTRACT_SIGNED: "Contrato firmado",
    NotificationType.CONTRACT_REGENERATED: "Contrato regenerado",
    NotificationType.REMOTE_SIGNATURE_SENT: "Enlace de firma remota",
    NotificationType.INSPECTION_LINK_CREATED: "Enlace de inspección creado",
    NotificationType.SYSTEM_ALERT: "Alerta del sistema",
}

NOTIFICATION_ICONS = {
    NotificationType.CONTRACT_SIGNED: "✍️",
    NotificationType.CONTRACT_REGENERATED: "🔄",
    NotificationType.REMOTE_SIGNATURE_SENT: "🔗",
    NotificationType.INSPECTION_LINK_CREATED: "📸",
    NotificationType.SYSTEM_ALERT: "⚠️",
}


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Target user (null = broadcast to every user)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)

    type = Column(String(50), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=True)

    # Related entity (optional)
    entity_type = Column(String(50), nullable=True)  # contract, booking, ...
    entity_id = Column(String(36), nullable=True)

    is_read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<Notification {self.type} - {self.title}>"

    @property
    def icon(self) -> str:
        try:
            return NOTIFICATION_ICONS.get(NotificationType(self.type), "🔔")
        except ValueError:
            return "🔔"

    @property
    def type_label(self) -> str:
        try:
            return NOTIFICATION_TYPE_LABELS.get(NotificationType(self.type), self.type)
        except ValueError:
            return self.type

    def mark_as_read(self):
        self.is_read = True
        self.read_at = datetime.utcnow()
