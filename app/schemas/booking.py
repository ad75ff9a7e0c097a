from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class BookingUpdate(BaseModel):
    pickup_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    pickup_location: Optional[str] = Field(None, max_length=150)
    return_location: Optional[str] = Field(None, max_length=150)
    notes: Optional[str] = Field(None, max_length=2000)
    status: Optional[str] = Field(None, max_length=30)

    @model_validator(mode='after')
    def validate_dates(self):
        # Omitted means unchanged; an explicit null would leave the contract without pickup date
        if 'pickup_date' in self.model_fields_set and self.pickup_date is None:
            raise ValueError('La fecha de recogida no puede quedar vacía')
        if self.pickup_date and self.return_date and self.return_date < self.pickup_date:
            raise ValueError('La fecha de devolución debe ser posterior a la de recogida')
        return self


class BookingVehicleItem(BaseModel):
    car_id: int = Field(..., gt=0)
    vehicle_price: Decimal = Field(Decimal("0"), ge=0)


class BookingVehiclesUpdate(BaseModel):
    vehicles: List[BookingVehicleItem] = Field(..., min_length=1)


class BookingResponse(BaseModel):
    id: int
    customer_id: Optional[int] = None
    car_id: Optional[int] = None
    pickup_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    pickup_location: Optional[str] = None
    return_location: Optional[str] = None
    total_price: Optional[Decimal] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    contract_regenerated: bool = False

    class Config:
        from_attributes = True
