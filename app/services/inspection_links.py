"""
Inspection Link Issuer

Public, unauthenticated links to a booking's inspection photos:
    {base_url}/inspeccion/{token}

An unexpired link is always reused; a new one is minted only when none
exists or all have expired. Expiry is the only access boundary.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..models.inspection import InspectionLink

logger = logging.getLogger(__name__)

DEFAULT_LINK_DAYS = 30


class InspectionLinkNotFound(Exception):
    pass


class InspectionLinkExpired(Exception):
    pass


@dataclass
class IssuedLink:
    token: str
    url: str
    expires_at: datetime
    created: bool


def build_inspection_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/inspeccion/{token}"


def find_valid_link(db: Session, booking_id: int, now: Optional[datetime] = None) -> Optional[InspectionLink]:
    """Latest unexpired link for a booking, without minting"""
    now = now or datetime.utcnow()
    return db.query(InspectionLink).filter(
        InspectionLink.booking_id == booking_id,
        InspectionLink.expires_at >= now,
    ).order_by(InspectionLink.expires_at.desc()).first()


def get_or_create_inspection_link(
    db: Session,
    booking_id: int,
    base_url: str,
    now: Optional[datetime] = None,
    valid_days: int = DEFAULT_LINK_DAYS,
) -> IssuedLink:
    """
    Reuse the booking's valid link or mint a new one (now + valid_days).

    The insert runs in a savepoint: if it fails, only the link is rolled
    back and the caller's session stays usable.
    """
    now = now or datetime.utcnow()
    link = find_valid_link(db, booking_id, now)
    created = False

    if link is None:
        link = InspectionLink(
            booking_id=booking_id,
            token=secrets.token_hex(32),
            expires_at=now + timedelta(days=valid_days),
            created_at=now,
        )
        with db.begin_nested():
            db.add(link)
            db.flush()
        created = True
        logger.info(f"Created inspection link for booking {booking_id}")
    else:
        logger.debug(f"Reusing inspection link for booking {booking_id}")

    return IssuedLink(
        token=link.token,
        url=build_inspection_url(base_url, link.token),
        expires_at=link.expires_at,
        created=created,
    )


def resolve_link(db: Session, token: str, now: Optional[datetime] = None) -> InspectionLink:
    """Look up a public token; raises when unknown or expired"""
    link = db.query(InspectionLink).filter(InspectionLink.token == token).first()
    if link is None:
        raise InspectionLinkNotFound(token)
    if link.is_expired(now):
        raise InspectionLinkExpired(token)
    return link
