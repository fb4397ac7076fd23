"""
Source-of-truth boundary for guestbook domain state.

The JSON column ``domain_verification_data`` is converted to the typed
``DomainVerificationData`` here and nowhere else.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import crud_guestbook
from app.models.guestbook import Guestbook
from app.schemas.domain import DomainMapping, DomainVercelStatus, DomainVerificationData
from app.services.domain_errors import DomainConflictError, DomainNotFoundError

logger = logging.getLogger("guestbook.domain_store")


@dataclass(frozen=True)
class GuestbookDomainState:
    id: UUID
    user_id: UUID
    slug: Optional[str]
    custom_domain: Optional[str]
    domain_verified: bool
    vercel_status: DomainVercelStatus
    verification_data: Optional[DomainVerificationData]


def _to_state(row: Guestbook) -> GuestbookDomainState:
    return GuestbookDomainState(
        id=row.id,
        user_id=row.user_id,
        slug=row.slug,
        custom_domain=row.custom_domain,
        domain_verified=bool(row.domain_verified),
        vercel_status=DomainVercelStatus(row.domain_vercel_status or "none"),
        verification_data=DomainVerificationData.from_json(row.domain_verification_data),
    )


class DomainStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get_guestbook(self, guestbook_id: UUID) -> Optional[GuestbookDomainState]:
        with self._session_factory() as db:
            row = crud_guestbook.get(db, guestbook_id)
            return _to_state(row) if row else None

    def find_mapping(self, hostname: str) -> Optional[DomainMapping]:
        with self._session_factory() as db:
            row = crud_guestbook.get_verified_by_domain(db, hostname)
            if row is None:
                return None
            return DomainMapping(slug=row.slug, guestbook_id=str(row.id))

    def is_domain_taken(self, hostname: str, exclude_guestbook_id: UUID) -> bool:
        with self._session_factory() as db:
            return crud_guestbook.is_domain_taken(db, hostname, exclude_guestbook_id)

    def save_domain(
        self,
        guestbook_id: UUID,
        *,
        hostname: str,
        verification_data: DomainVerificationData,
    ) -> GuestbookDomainState:
        """Persist a freshly added (unverified) domain in one write."""
        return self._update(guestbook_id, {
            "custom_domain": hostname,
            "domain_verified": False,
            "domain_vercel_status": DomainVercelStatus.PENDING_DNS.value,
            "domain_verification_data": verification_data.to_json(),
        })

    def mark_verified(self, guestbook_id: UUID) -> GuestbookDomainState:
        return self._update(guestbook_id, {
            "domain_verified": True,
            "domain_vercel_status": DomainVercelStatus.VERIFIED.value,
        })

    def set_vercel_status(self, guestbook_id: UUID, status: DomainVercelStatus) -> GuestbookDomainState:
        return self._update(guestbook_id, {"domain_vercel_status": status.value})

    def clear_domain(self, guestbook_id: UUID) -> GuestbookDomainState:
        return self._update(guestbook_id, {
            "custom_domain": None,
            "domain_verified": False,
            "domain_vercel_status": DomainVercelStatus.NONE.value,
            "domain_verification_data": None,
        })

    def _update(self, guestbook_id: UUID, fields: dict) -> GuestbookDomainState:
        with self._session_factory() as db:
            row = crud_guestbook.get(db, guestbook_id)
            if row is None:
                raise DomainNotFoundError()
            try:
                row = crud_guestbook.update_domain(db, db_obj=row, fields=fields)
            except IntegrityError as e:
                db.rollback()
                # The unique constraint on custom_domain is the authoritative guard
                logger.info("Unique constraint rejected domain for guestbook %s: %s", guestbook_id, e.orig)
                raise DomainConflictError() from e
            return _to_state(row)
