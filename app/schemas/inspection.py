from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime

from ..models.inspection import InspectionType
from ..models.company_config import AssetStorage


class GenerateLinkRequest(BaseModel):
    booking_id: int = Field(..., gt=0)


class InspectionLinkResponse(BaseModel):
    success: bool = True
    token: str
    url: str
    expires_at: datetime


class InspectionCreate(BaseModel):
    booking_id: int = Field(..., gt=0)
    vehicle_id: int = Field(..., gt=0)
    inspection_type: InspectionType
    inspection_date: Optional[datetime] = None
    odometer_reading: Optional[int] = Field(None, ge=0)
    fuel_level: Optional[str] = Field(None, max_length=20)
    general_condition: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)
    front_photo: Optional[str] = Field(None, max_length=500)
    left_photo: Optional[str] = Field(None, max_length=500)
    rear_photo: Optional[str] = Field(None, max_length=500)
    right_photo: Optional[str] = Field(None, max_length=500)
    odometer_photo: Optional[str] = Field(None, max_length=500)
    photo_storage: AssetStorage = AssetStorage.OBJECT_STORAGE

    @field_validator('fuel_level', 'general_condition', 'notes', mode='before')
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class InspectionResponse(BaseModel):
    id: int
    booking_id: int
    vehicle_id: Optional[int] = None
    inspection_type: str
    inspection_date: datetime
    odometer_reading: Optional[int] = None
    fuel_level: Optional[str] = None
    general_condition: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class PublicInspection(BaseModel):
    """Inspection as shown through a public link: photos already resolved to URLs"""
    id: int
    vehicle_id: Optional[int] = None
    vehicle_registration: Optional[str] = None
    inspection_type: str
    inspection_date: datetime
    odometer_reading: Optional[int] = None
    fuel_level: Optional[str] = None
    general_condition: Optional[str] = None
    notes: Optional[str] = None
    photos: Dict[str, str] = Field(default_factory=dict)


class PublicInspectionBooking(BaseModel):
    id: int
    customer_name: Optional[str] = None
    pickup_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    status: Optional[str] = None


class PublicInspectionResponse(BaseModel):
    booking: PublicInspectionBooking
    inspections: List[PublicInspection]
    expires_at: datetime
