from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from datetime import datetime
import logging

from ..database import get_db
from ..config import settings
from ..models.user import User
from ..schemas.user import Token, UserResponse
from ..utils.security import verify_password, create_access_token
from ..utils.rate_limiter import limiter, get_rate_limit, get_real_client_ip
from ..utils.dependencies import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Autenticación"])


@router.post("/login", response_model=Token)
@router.post("/login/", response_model=Token)
@limiter.limit(get_rate_limit("login"))
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """Exchange username/password for a Bearer access token"""
    # Trim whitespace that mobile keyboards may add
    username = form_data.username.strip()
    password = form_data.password.strip() if form_data.password else ""

    user = db.query(User).filter(User.username == username).first()

    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login for '{username}' from {get_real_client_ip(request)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cuenta desactivada"
        )

    access_token = create_access_token(data={"sub": user.id})

    user.last_login = datetime.utcnow()
    db.commit()

    logger.info(f"User {user.username} logged in")

    return Token(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=UserResponse)
@router.get("/me/", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user
