# Services package
from .contract_errors import (
    ContractError,
    BookingNotFoundError,
    ContractNotFoundError,
    IncompleteBookingError,
    MissingPickupDateError,
    ContractAlreadySignedError,
    ContractVersionConflict,
    RemoteSignatureClosedError,
    RemoteSignatureNotFoundError,
    RemoteSignatureExpiredError,
)
from .contract_number import allocate_contract_number, format_contract_number
from .contract_data import ContractData, ContractDataBuilder, CompanyBranding, build_contract_data
from .contract_renderer import render_contract
from .contract_service import ContractService, RemoteSignatureLink
from .inspection_links import get_or_create_inspection_link, find_valid_link, resolve_link
from .asset_resolver import get_asset_resolver
from .storage_service import StorageService, storage_service

__all__ = [
    "ContractError", "BookingNotFoundError", "ContractNotFoundError",
    "IncompleteBookingError", "MissingPickupDateError",
    "ContractAlreadySignedError", "ContractVersionConflict",
    "RemoteSignatureClosedError", "RemoteSignatureNotFoundError", "RemoteSignatureExpiredError",
    "allocate_contract_number", "format_contract_number",
    "ContractData", "ContractDataBuilder", "CompanyBranding", "build_contract_data",
    "render_contract",
    "ContractService", "RemoteSignatureLink",
    "get_or_create_inspection_link", "find_valid_link", "resolve_link",
    "get_asset_resolver",
    "StorageService", "storage_service",
]
