"""
Custom Domain Management API

Lets a guestbook owner (via the dashboard):
  1. Connect a custom domain and receive the DNS records to publish
  2. Check DNS and mark the domain verified
  3. Disconnect the domain
  4. Read current status / DNS instructions
  5. Refresh the hosting platform's view of the domain

Every response has the shape {"error": str | null, "error_code": str | null, ...};
the HTTP status mirrors the error kind.
"""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.api import deps
from app.schemas.domain import (
    AddDomainResult,
    DomainCreate,
    DomainOperationResult,
    DomainStatusResult,
    RemoveDomainResult,
    VerifyDomainResult,
)
from app.services.domain_errors import (
    DomainConflictError,
    DomainNotFoundError,
    DomainRateLimitError,
    DomainValidationError,
    NoDomainConnectedError,
    RegistrarError,
    RegistrarUnavailableError,
)
from app.services.domain_lifecycle import DomainLifecycle

router = APIRouter()

_STATUS_BY_CODE = {
    cls.code: cls.status_code
    for cls in (
        DomainValidationError,
        DomainConflictError,
        DomainRateLimitError,
        DomainNotFoundError,
        NoDomainConnectedError,
        RegistrarError,
        RegistrarUnavailableError,
    )
}


def _respond(result: DomainOperationResult, response: Response) -> Any:
    if result.error_code:
        response.status_code = _STATUS_BY_CODE.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return result


@router.get("/{guestbook_id}/domain", response_model=DomainStatusResult)
def get_domain_status(
    guestbook_id: UUID,
    response: Response,
    user_id: UUID = Depends(deps.get_current_user_id),
    lifecycle: DomainLifecycle = Depends(deps.get_domain_lifecycle),
) -> Any:
    """Current domain, verification state and DNS instructions."""
    return _respond(lifecycle.get_domain_status(guestbook_id, user_id), response)


@router.post("/{guestbook_id}/domain", response_model=AddDomainResult)
def add_domain(
    guestbook_id: UUID,
    body: DomainCreate,
    response: Response,
    user_id: UUID = Depends(deps.get_current_user_id),
    lifecycle: DomainLifecycle = Depends(deps.get_domain_lifecycle),
) -> Any:
    """Connect ``body.domain``, replacing any previous domain."""
    return _respond(lifecycle.add_domain(guestbook_id, user_id, body.domain), response)


@router.post("/{guestbook_id}/domain/verify", response_model=VerifyDomainResult)
def verify_domain(
    guestbook_id: UUID,
    response: Response,
    user_id: UUID = Depends(deps.get_current_user_id),
    lifecycle: DomainLifecycle = Depends(deps.get_domain_lifecycle),
) -> Any:
    return _respond(lifecycle.verify_domain(guestbook_id, user_id), response)


@router.post("/{guestbook_id}/domain/refresh", response_model=DomainStatusResult)
def refresh_domain_status(
    guestbook_id: UUID,
    response: Response,
    user_id: UUID = Depends(deps.get_current_user_id),
    lifecycle: DomainLifecycle = Depends(deps.get_domain_lifecycle),
) -> Any:
    return _respond(lifecycle.refresh_registrar_status(guestbook_id, user_id), response)


@router.delete("/{guestbook_id}/domain", response_model=RemoveDomainResult)
def remove_domain(
    guestbook_id: UUID,
    response: Response,
    user_id: UUID = Depends(deps.get_current_user_id),
    lifecycle: DomainLifecycle = Depends(deps.get_domain_lifecycle),
) -> Any:
    return _respond(lifecycle.remove_domain(guestbook_id, user_id), response)
