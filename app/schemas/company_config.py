from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from ..models.company_config import AssetStorage


class CompanyConfigUpdate(BaseModel):
    company_name: Optional[str] = Field(None, max_length=150)
    logo_path: Optional[str] = Field(None, max_length=500)
    logo_storage: Optional[AssetStorage] = None
    primary_color: Optional[str] = Field(None, max_length=20, pattern=r"^#[0-9a-fA-F]{3,8}$")
    secondary_color: Optional[str] = Field(None, max_length=20, pattern=r"^#[0-9a-fA-F]{3,8}$")


class CompanyConfigResponse(BaseModel):
    id: int
    company_name: Optional[str] = None
    logo_path: Optional[str] = None
    logo_storage: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    active: bool = True
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
