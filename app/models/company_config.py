from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from ..database import Base
import enum


class AssetStorage(str, enum.Enum):
    """Where an uploaded asset (logo, photo) lives"""
    LOCAL = "local"                    # File on local disk (absolute or under the public dir)
    OBJECT_STORAGE = "object_storage"  # Blob key in the object storage container
    URL = "url"                        # Any other http(s) URL


class CompanyConfig(Base):
    """Company branding printed on contracts"""
    __tablename__ = "company_config"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(150), nullable=True)

    logo_path = Column(String(500), nullable=True)
    logo_storage = Column(String(20), default=AssetStorage.OBJECT_STORAGE.value)

    primary_color = Column(String(20), nullable=True)
    secondary_color = Column(String(20), nullable=True)

    active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<CompanyConfig {self.company_name} active={self.active}>"
