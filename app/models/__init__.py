# Models package
from .user import User
from .customer import Customer
from .car import Car
from .booking import (
    Booking,
    BookingStatus,
    BookingVehicle,
    BookingDriver,
    BookingExtra,
    BookingUpgrade,
    RentalExtra,
    RentalUpgrade,
    PUBLIC_VISIBLE_STATUSES,
)
from .inspection import VehicleInspection, InspectionLink, InspectionType, PHOTO_FIELDS
from .contract import Contract, ContractHistory
from .company_config import CompanyConfig, AssetStorage
from .notification import Notification, NotificationType, NOTIFICATION_TYPE_LABELS, NOTIFICATION_ICONS

__all__ = [
    "User", "Customer", "Car",
    "Booking", "BookingStatus", "BookingVehicle", "BookingDriver",
    "BookingExtra", "BookingUpgrade", "RentalExtra", "RentalUpgrade",
    "PUBLIC_VISIBLE_STATUSES",
    "VehicleInspection", "InspectionLink", "InspectionType", "PHOTO_FIELDS",
    "Contract", "ContractHistory",
    "CompanyConfig", "AssetStorage",
    "Notification", "NotificationType", "NOTIFICATION_TYPE_LABELS", "NOTIFICATION_ICONS",
]
