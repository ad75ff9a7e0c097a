from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class ContractCustomerSummary(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    dni_nie: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class ContractBookingSummary(BaseModel):
    """Booking nested inside the contract JSON"""
    id: int
    pickup_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    pickup_location: Optional[str] = None
    return_location: Optional[str] = None
    status: Optional[str] = None
    total_price: Optional[Decimal] = None
    customer: Optional[ContractCustomerSummary] = None

    class Config:
        from_attributes = True


class ContractResponse(BaseModel):
    id: int
    booking_id: int
    contract_number: str
    contract_text: str
    version: int
    signed_at: Optional[datetime] = None
    signature_data: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    booking: Optional[ContractBookingSummary] = None

    class Config:
        from_attributes = True


class ContractCreateRequest(BaseModel):
    """Body of POST /api/contracts (camelCase as sent by the web client)"""
    model_config = ConfigDict(populate_by_name=True)

    booking_id: int = Field(..., alias="bookingId", gt=0)
    signature_data: Optional[str] = Field(None, alias="signatureData", description="data:image/png;base64,...")
    language: Optional[str] = Field(None, max_length=10)


class ContractHistoryResponse(BaseModel):
    id: int
    contract_id: int
    version: int
    contract_text: str
    change_reason: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ContractHistoryList(BaseModel):
    contract_id: int
    current_version: int
    items: List[ContractHistoryResponse]


class RemoteSignatureRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # E-mail or phone the link is meant for; informative only
    sent_to: Optional[str] = Field(None, alias="sendTo", max_length=255)


class RemoteSignatureIssued(BaseModel):
    token: str
    url: str
    expires_at: datetime
    sent_to: Optional[str] = None


class RemoteSignatureStatus(BaseModel):
    has_active_token: bool
    expires_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    sent_to: Optional[str] = None
    is_signed: bool


class RemoteSignatureView(BaseModel):
    """What the customer sees before signing; no staff-only fields"""
    contract_number: str
    contract_text: str
    customer_first_name: str = ""
    customer_last_name: str = ""


class RemoteSignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., min_length=1, max_length=128)
    signature_data: str = Field(..., alias="signatureData", min_length=1)


class RemoteSignResult(BaseModel):
    success: bool = True
    message: str
    contract_number: str
    signed_at: datetime
