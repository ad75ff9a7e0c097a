"""
Contract workflow errors.

Routers translate these into HTTP responses; services never raise HTTPException.
"""


class ContractError(Exception):
    """Base class for contract workflow failures"""
    status_code = 400
    message = "Error procesando contrato"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class BookingNotFoundError(ContractError):
    status_code = 404
    message = "Reserva no encontrada"


class ContractNotFoundError(ContractError):
    status_code = 404
    message = "Contrato no encontrado"


class IncompleteBookingError(ContractError):
    """Booking has no customer, so the contract cannot identify a party"""
    status_code = 400
    message = "Datos incompletos de la reserva"


class MissingPickupDateError(ContractError):
    status_code = 400
    message = "La reserva no tiene fecha de recogida"


class ContractAlreadySignedError(ContractError):
    status_code = 409
    message = "El contrato ya está firmado"


class RemoteSignatureClosedError(ContractError):
    """Remote signing requested for a contract that is already signed"""
    status_code = 400
    message = "Este contrato ya ha sido firmado"


class RemoteSignatureNotFoundError(ContractError):
    status_code = 404
    message = "Token inválido o no encontrado"


class RemoteSignatureExpiredError(ContractError):
    status_code = 410
    message = "El enlace de firma ha expirado"


class ContractVersionConflict(ContractError):
    """Another request updated the contract between our read and our write"""
    status_code = 409
    message = "El contrato fue modificado por otra operación, inténtelo de nuevo"
