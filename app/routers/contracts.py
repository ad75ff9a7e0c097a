from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..database import get_db
from ..models.user import User
from ..schemas.contract import (
    ContractResponse, ContractCreateRequest, ContractHistoryResponse, ContractHistoryList,
    RemoteSignatureRequest, RemoteSignatureIssued, RemoteSignatureStatus,
    RemoteSignatureView, RemoteSignRequest, RemoteSignResult
)
from ..services.contract_errors import ContractError
from ..services.contract_service import ContractService
from ..utils.dependencies import get_current_user
from ..utils.rate_limiter import limiter, get_rate_limit, get_real_client_ip, get_user_agent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contracts", tags=["Contratos"])


def contract_http_error(error: ContractError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


@router.get("", response_model=ContractResponse)
@router.get("/", response_model=ContractResponse)
async def get_contract(
    booking_id: Optional[int] = Query(None, alias="bookingId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Contract of a booking, created or refreshed on demand"""
    if not booking_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bookingId es obligatorio"
        )

    service = ContractService(db)
    try:
        return service.get_contract(booking_id, actor=current_user.username)
    except ContractError as e:
        raise contract_http_error(e)


@router.post("", response_model=ContractResponse)
@router.post("/", response_model=ContractResponse)
@limiter.limit(get_rate_limit("contract_write"))
async def create_or_sign_contract(
    request: Request,
    payload: ContractCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create the contract of a booking, or sign it when signatureData is sent"""
    service = ContractService(db)
    try:
        return service.create_or_sign(
            payload.booking_id,
            signature_data=payload.signature_data,
            ip_address=get_real_client_ip(request),
            user_agent=get_user_agent(request),
            actor=current_user.username,
            language=payload.language,
        )
    except ContractError as e:
        raise contract_http_error(e)


@router.get("/{contract_id}/history", response_model=ContractHistoryList)
async def get_contract_history(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Previous versions of a contract, newest first"""
    service = ContractService(db)
    try:
        contract = service.get_contract_by_id(contract_id)
        items = service.get_history(contract_id)
    except ContractError as e:
        raise contract_http_error(e)

    return ContractHistoryList(
        contract_id=contract.id,
        current_version=contract.version,
        items=[ContractHistoryResponse.model_validate(h) for h in items],
    )


@router.get("/{contract_id}/html", response_class=HTMLResponse)
async def get_contract_html(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Stored contract document, ready to print"""
    service = ContractService(db)
    try:
        contract = service.get_contract_by_id(contract_id)
    except ContractError as e:
        raise contract_http_error(e)

    if not contract.contract_text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El contrato no tiene contenido"
        )

    return HTMLResponse(content=contract.contract_text)


# ================================
# REMOTE SIGNATURE (public, by token)
# ================================

@router.get("/remote-sign", response_model=RemoteSignatureView)
@limiter.limit(get_rate_limit("remote_sign"))
async def get_contract_for_remote_signature(
    request: Request,
    token: Optional[str] = Query(None, max_length=128),
    db: Session = Depends(get_db)
):
    """Contract text shown to the customer before signing. No auth: the token is the credential"""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token no proporcionado"
        )

    try:
        contract = ContractService(db).get_contract_by_remote_token(token)
    except ContractError as e:
        raise contract_http_error(e)

    customer = contract.booking.customer if contract.booking else None
    return RemoteSignatureView(
        contract_number=contract.contract_number,
        contract_text=contract.contract_text,
        customer_first_name=(customer.first_name if customer else "") or "",
        customer_last_name=(customer.last_name if customer else "") or "",
    )


@router.post("/remote-sign", response_model=RemoteSignResult)
@limiter.limit(get_rate_limit("remote_sign"))
async def sign_contract_remotely(
    request: Request,
    payload: RemoteSignRequest,
    db: Session = Depends(get_db)
):
    """Customer signature through a remote signature link"""
    service = ContractService(db)
    try:
        contract = service.sign_remotely(
            payload.token,
            payload.signature_data,
            ip_address=get_real_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except ContractError as e:
        raise contract_http_error(e)

    return RemoteSignResult(
        message="Contrato firmado correctamente",
        contract_number=contract.contract_number,
        signed_at=contract.signed_at,
    )


@router.post("/{contract_id}/remote-signature", response_model=RemoteSignatureIssued)
@limiter.limit(get_rate_limit("contract_write"))
async def issue_remote_signature(
    request: Request,
    contract_id: int,
    payload: Optional[RemoteSignatureRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mint a remote signature link (REMOTE_SIGNATURE_DAYS, 30 by default) for an unsigned contract"""
    service = ContractService(db)
    try:
        issued = service.issue_remote_signature(
            contract_id,
            sent_to=payload.sent_to if payload else None,
            actor=current_user.username,
        )
    except ContractError as e:
        raise contract_http_error(e)

    return RemoteSignatureIssued(
        token=issued.token,
        url=issued.url,
        expires_at=issued.expires_at,
        sent_to=issued.sent_to,
    )


@router.get("/{contract_id}/remote-signature", response_model=RemoteSignatureStatus)
async def get_remote_signature_status(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Whether a usable remote signature link exists for the contract"""
    try:
        contract = ContractService(db).get_contract_by_id(contract_id)
    except ContractError as e:
        raise contract_http_error(e)

    return RemoteSignatureStatus(
        has_active_token=contract.remote_signature_active(),
        expires_at=contract.remote_signature_expires_at,
        sent_at=contract.remote_signature_sent_at,
        sent_to=contract.remote_signature_sent_to,
        is_signed=contract.is_signed,
    )
