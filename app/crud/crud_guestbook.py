from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.guestbook import Guestbook

DOMAIN_FIELDS = (
    "custom_domain",
    "domain_verified",
    "domain_vercel_status",
    "domain_verification_data",
)


def get(db: Session, guestbook_id: UUID) -> Optional[Guestbook]:
    return db.query(Guestbook).filter(Guestbook.id == guestbook_id).first()


def get_verified_by_domain(db: Session, hostname: str) -> Optional[Guestbook]:
    """Resolver lookup: only verified domains with a public slug route traffic."""
    return db.query(Guestbook).filter(
        Guestbook.custom_domain == hostname,
        Guestbook.domain_verified.is_(True),
        Guestbook.slug.isnot(None),
    ).first()


def is_domain_taken(db: Session, hostname: str, exclude_guestbook_id: UUID) -> bool:
    return db.query(Guestbook.id).filter(
        Guestbook.custom_domain == hostname,
        Guestbook.id != exclude_guestbook_id,
    ).first() is not None


def update_domain(db: Session, *, db_obj: Guestbook, fields: Dict[str, Any]) -> Guestbook:
    for field, value in fields.items():
        if field not in DOMAIN_FIELDS:
            raise ValueError(f"{field} is not a domain field")
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
