"""Error taxonomy for custom domain operations.

Each error carries a stable ``code`` (returned to the dashboard as
``error_code``) and the HTTP status the lifecycle API answers with.
DNS verification failures are not errors: they are a normal
``verified=False`` result with a list of reasons.
"""
from typing import Optional


class DomainError(Exception):
    code = "domain_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DomainValidationError(DomainError):
    """Malformed or reserved domain; message is shown to the user verbatim."""

    code = "invalid_domain"
    status_code = 400


class DomainConflictError(DomainError):
    code = "domain_taken"
    status_code = 409

    def __init__(self, message: str = "This domain is already connected to another guestbook"):
        super().__init__(message)


class DomainRateLimitError(DomainError):
    code = "rate_limited"
    status_code = 429

    def __init__(
        self,
        message: str = "Too many domain operations. Try again later.",
        retry_after: Optional[int] = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after


class DomainNotFoundError(DomainError):
    """Guestbook missing or not owned by the acting user."""

    code = "not_found"
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class NoDomainConnectedError(DomainError):
    code = "no_domain"
    status_code = 400

    def __init__(self, message: str = "No domain connected"):
        super().__init__(message)


class RegistrarError(DomainError):
    """The domain-hosting API rejected the request."""

    code = "registrar_error"
    status_code = 502


class RegistrarUnavailableError(RegistrarError):
    """Timeout or network failure talking to the domain-hosting API."""

    code = "registrar_unavailable"
