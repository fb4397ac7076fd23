"""
Custom domain lifecycle (add / verify / remove / status / registrar refresh).

State per guestbook:  none → pending_dns → verified   (error on registrar failure)

Every transition that touches the domain columns invalidates the cache entry
of the affected hostname(s) before reporting success, so the edge resolver
never keeps routing a domain the store no longer maps.
"""
import logging
from typing import Any, Callable, Iterable, List, Optional
from uuid import UUID

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.schemas.domain import (
    AddDomainResult,
    DnsRecord,
    DomainStatusResult,
    DomainVercelStatus,
    DomainVerificationData,
    RemoveDomainResult,
    VerifyDomainResult,
)
from app.services.dns_records import build_dns_instructions
from app.services.dns_verifier import DnsVerifier
from app.services.domain_cache import DomainCache
from app.services.domain_errors import (
    DomainConflictError,
    DomainError,
    DomainNotFoundError,
    DomainRateLimitError,
    DomainValidationError,
    NoDomainConnectedError,
    RegistrarUnavailableError,
)
from app.services.domain_store import DomainStore, GuestbookDomainState
from app.services.domain_validation import BLOCKED_DOMAINS, is_apex_domain, validate_domain
from app.services.rate_limit import RateLimiter, domain_op_key
from app.services.registrar_client import VercelDomainsClient

logger = logging.getLogger("guestbook.domain_lifecycle")


def best_effort(operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
    """Run ``func``; on any failure log and carry on. Returns True on success."""
    try:
        func(*args, **kwargs)
        return True
    except Exception:
        logger.warning("Best-effort %s failed", operation, exc_info=True)
        return False


class DomainLifecycle:
    def __init__(
        self,
        store: DomainStore,
        cache: DomainCache,
        registrar: VercelDomainsClient,
        verifier: DnsVerifier,
        limiter: RateLimiter,
        *,
        ops_limit: int = 10,
        ops_window_seconds: int = 3600,
        registrar_attempts: int = 2,
        reserved_domains: Iterable[str] = BLOCKED_DOMAINS,
        apex_ip: Optional[str] = None,
        cname_target: Optional[str] = None,
    ):
        self._store = store
        self._cache = cache
        self._registrar = registrar
        self._verifier = verifier
        self._limiter = limiter
        self.ops_limit = ops_limit
        self.ops_window_seconds = ops_window_seconds
        self.registrar_attempts = max(registrar_attempts, 1)
        self.reserved_domains = tuple(reserved_domains)
        self.apex_ip = apex_ip
        self.cname_target = cname_target

    # ═══════════════════════════════════════════
    #  Public entry points: always return {error, ...}
    # ═══════════════════════════════════════════

    def add_domain(self, guestbook_id: UUID, user_id: UUID, domain: str) -> AddDomainResult:
        try:
            return AddDomainResult(dns_records=self._add(guestbook_id, user_id, domain))
        except DomainError as e:
            return AddDomainResult(error=e.message, error_code=e.code)

    def verify_domain(self, guestbook_id: UUID, user_id: UUID) -> VerifyDomainResult:
        try:
            return self._verify(guestbook_id, user_id)
        except DomainError as e:
            return VerifyDomainResult(error=e.message, error_code=e.code)

    def remove_domain(self, guestbook_id: UUID, user_id: UUID) -> RemoveDomainResult:
        try:
            self._remove(guestbook_id, user_id)
            return RemoveDomainResult()
        except DomainError as e:
            return RemoveDomainResult(error=e.message, error_code=e.code)

    def get_domain_status(self, guestbook_id: UUID, user_id: UUID) -> DomainStatusResult:
        """Read-only: no registrar, DNS or rate-limit involvement."""
        try:
            guestbook = self._owned_guestbook(guestbook_id, user_id)
        except DomainError as e:
            return DomainStatusResult(error=e.message, error_code=e.code)
        return self._status_of(guestbook)

    def refresh_registrar_status(self, guestbook_id: UUID, user_id: UUID) -> DomainStatusResult:
        try:
            return self._status_of(self._refresh(guestbook_id, user_id))
        except DomainError as e:
            return DomainStatusResult(error=e.message, error_code=e.code)

    # ═══════════════════════════════════════════
    #  Transitions
    # ═══════════════════════════════════════════

    def _add(self, guestbook_id: UUID, user_id: UUID, domain: str) -> List[DnsRecord]:
        guestbook = self._owned_guestbook(guestbook_id, user_id)

        validation = validate_domain(domain, self.reserved_domains)
        if not validation.valid:
            raise DomainValidationError(validation.error or "Invalid domain name")
        hostname = validation.hostname
        is_apex = bool(validation.is_apex)

        self._check_rate_limit(user_id)

        # Advisory only: the unique constraint decides on save
        if self._store.is_domain_taken(hostname, guestbook_id):
            raise DomainConflictError()

        old_domain = guestbook.custom_domain
        if old_domain and old_domain != hostname:
            best_effort(
                f"registrar removal of {old_domain}",
                self._registrar.remove_host, old_domain, self._is_apex(guestbook),
            )
            self._cache.invalidate(old_domain)

        verification_data = self._add_to_registrar(hostname, is_apex)

        # A conflict here leaves the host on the registrar: it may belong to
        # the guestbook that won the race, so it must not be removed.
        self._store.save_domain(guestbook_id, hostname=hostname, verification_data=verification_data)
        self._cache.invalidate(hostname)
        if old_domain and old_domain != hostname:
            # The resolver may have re-cached the old host while the registrar call was in flight
            self._cache.invalidate(old_domain)

        logger.info("Custom domain %s added for guestbook %s (apex=%s)", hostname, guestbook_id, is_apex)
        return self._dns_records(hostname, verification_data)

    def _verify(self, guestbook_id: UUID, user_id: UUID) -> VerifyDomainResult:
        guestbook = self._owned_guestbook(guestbook_id, user_id)
        self._check_rate_limit(user_id)
        hostname = self._require_domain(guestbook)

        expected = self._dns_records(hostname, guestbook.verification_data)
        result = self._verifier.check_dns(hostname, expected)
        if not result.verified:
            return VerifyDomainResult(verified=False, errors=result.errors)

        self._store.mark_verified(guestbook_id)
        self._cache.invalidate(hostname)
        # DNS is ground truth; the registrar catches up on its own schedule
        best_effort(f"registrar verification of {hostname}", self._registrar.verify_host, hostname)

        logger.info("Custom domain %s verified for guestbook %s", hostname, guestbook_id)
        return VerifyDomainResult(verified=True)

    def _remove(self, guestbook_id: UUID, user_id: UUID) -> None:
        guestbook = self._owned_guestbook(guestbook_id, user_id)
        self._check_rate_limit(user_id)
        hostname = self._require_domain(guestbook)

        best_effort(
            f"registrar removal of {hostname}",
            self._registrar.remove_host, hostname, self._is_apex(guestbook),
        )
        self._store.clear_domain(guestbook_id)
        self._cache.invalidate(hostname)
        logger.info("Custom domain %s removed from guestbook %s", hostname, guestbook_id)

    def _refresh(self, guestbook_id: UUID, user_id: UUID) -> GuestbookDomainState:
        guestbook = self._owned_guestbook(guestbook_id, user_id)
        self._check_rate_limit(user_id)
        hostname = self._require_domain(guestbook)

        try:
            config = self._registrar.get_host_config(hostname)
            verification = self._registrar.verify_host(hostname)
        except DomainError as e:
            logger.warning("Registrar status refresh for %s failed: %s", hostname, e.message)
            status = DomainVercelStatus.ERROR
        else:
            if verification.get("verified") and not config.get("misconfigured"):
                status = DomainVercelStatus.VERIFIED
            else:
                status = DomainVercelStatus.PENDING_DNS

        updated = self._store.set_vercel_status(guestbook_id, status)
        self._cache.invalidate(hostname)
        return updated

    # ═══════════════════════════════════════════
    #  Helpers
    # ═══════════════════════════════════════════

    def _owned_guestbook(self, guestbook_id: UUID, user_id: UUID) -> GuestbookDomainState:
        guestbook = self._store.get_guestbook(guestbook_id)
        if guestbook is None or guestbook.user_id != user_id:
            raise DomainNotFoundError()
        return guestbook

    @staticmethod
    def _require_domain(guestbook: GuestbookDomainState) -> str:
        if not guestbook.custom_domain:
            raise NoDomainConnectedError()
        return guestbook.custom_domain

    def _check_rate_limit(self, user_id: UUID) -> None:
        allowed, _, retry_after = self._limiter.is_allowed(
            domain_op_key(user_id), self.ops_limit, self.ops_window_seconds
        )
        if not allowed:
            logger.info("Domain operation rate limit hit for user %s", user_id)
            raise DomainRateLimitError(retry_after=retry_after)

    def _add_to_registrar(self, hostname: str, is_apex: bool) -> DomainVerificationData:
        """Transport failures are retried; anything still failing aborts the add."""
        retrying = Retrying(
            stop=stop_after_attempt(self.registrar_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(RegistrarUnavailableError),
            reraise=True,
        )
        return retrying(self._registrar.add_host, hostname, is_apex)

    @staticmethod
    def _is_apex(guestbook: GuestbookDomainState) -> bool:
        if guestbook.verification_data is not None:
            return guestbook.verification_data.is_apex
        return is_apex_domain(guestbook.custom_domain)

    def _dns_records(
        self, hostname: str, verification_data: Optional[DomainVerificationData]
    ) -> List[DnsRecord]:
        is_apex = verification_data.is_apex if verification_data is not None else is_apex_domain(hostname)
        return build_dns_instructions(
            hostname,
            is_apex,
            verification_data,
            apex_ip=self.apex_ip,
            cname_target=self.cname_target,
        )

    def _status_of(self, guestbook: GuestbookDomainState) -> DomainStatusResult:
        if not guestbook.custom_domain:
            return DomainStatusResult(domain=None)
        return DomainStatusResult(
            domain=guestbook.custom_domain,
            verified=guestbook.domain_verified,
            vercel_status=guestbook.vercel_status,
            dns_records=self._dns_records(guestbook.custom_domain, guestbook.verification_data),
        )
