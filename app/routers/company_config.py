from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.company_config import CompanyConfig
from ..models.user import User
from ..schemas.company_config import CompanyConfigResponse, CompanyConfigUpdate
from ..utils.dependencies import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/company-config", tags=["Configuración"])


def get_active_config(db: Session):
    return db.query(CompanyConfig).filter(CompanyConfig.active == True).first()


@router.get("", response_model=CompanyConfigResponse)
@router.get("/", response_model=CompanyConfigResponse)
async def get_company_config(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Branding printed on contracts"""
    config = get_active_config(db)
    if not config:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No hay configuración de empresa"
        )
    return config


@router.put("", response_model=CompanyConfigResponse)
@router.put("/", response_model=CompanyConfigResponse)
async def update_company_config(
    payload: CompanyConfigUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update the active branding record (created on first save)"""
    config = get_active_config(db)
    if not config:
        config = CompanyConfig(active=True)
        db.add(config)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(config, field, value.value if hasattr(value, "value") else value)

    db.commit()
    db.refresh(config)

    logger.info(f"Company config updated by {current_user.username}: {', '.join(changes) or 'no changes'}")
    return config
