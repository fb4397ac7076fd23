from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class DomainVercelStatus(str, Enum):
    """Registrar-observed status, distinct from ``domain_verified``."""

    NONE = "none"
    PENDING_ADD = "pending_add"
    PENDING_DNS = "pending_dns"
    VERIFIED = "verified"
    ERROR = "error"


class VerificationToken(BaseModel):
    """Ownership challenge returned by the registrar at add time."""

    type: str
    domain: str
    value: str


class DomainVerificationData(BaseModel):
    """Frozen at add time; persisted as ``{"isApex": ..., "verification": [...]}``."""

    model_config = ConfigDict(populate_by_name=True)

    is_apex: bool = Field(default=False, alias="isApex")
    verification: List[VerificationToken] = Field(default_factory=list)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_json(cls, data: Optional[dict]) -> Optional["DomainVerificationData"]:
        if not data:
            return None
        return cls.model_validate(data)


class DnsRecord(BaseModel):
    type: Literal["TXT", "A", "CNAME"]
    name: str
    value: str


class DomainMapping(BaseModel):
    """Cached hostname → guestbook mapping."""

    slug: str
    guestbook_id: str


class DomainValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None
    hostname: Optional[str] = None
    is_apex: Optional[bool] = None


class DnsCheckResult(BaseModel):
    verified: bool
    errors: List[str] = Field(default_factory=list)


# ── Lifecycle API ──

class DomainCreate(BaseModel):
    domain: str = Field(..., min_length=1, max_length=512)


class DomainOperationResult(BaseModel):
    """Uniform envelope: ``error`` is None on success."""

    error: Optional[str] = None
    error_code: Optional[str] = None


class AddDomainResult(DomainOperationResult):
    dns_records: Optional[List[DnsRecord]] = None


class VerifyDomainResult(DomainOperationResult):
    verified: Optional[bool] = None
    errors: Optional[List[str]] = None


class RemoveDomainResult(DomainOperationResult):
    pass


class DomainStatusResult(DomainOperationResult):
    domain: Optional[str] = None
    verified: Optional[bool] = None
    vercel_status: Optional[DomainVercelStatus] = None
    dns_records: Optional[List[DnsRecord]] = None
