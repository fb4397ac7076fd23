"""DNS records a domain owner has to publish, derived from frozen verification data."""
from typing import List, Optional

from app.config import settings
from app.schemas.domain import DnsRecord, DomainVerificationData
from app.services.domain_validation import split_hostname


def build_dns_instructions(
    hostname: str,
    is_apex: bool,
    verification_data: Optional[DomainVerificationData] = None,
    *,
    apex_ip: Optional[str] = None,
    cname_target: Optional[str] = None,
) -> List[DnsRecord]:
    """Ownership (TXT) records first, the routing record last."""
    records: List[DnsRecord] = []

    if verification_data is not None:
        for token in verification_data.verification:
            if token.type.upper() == "TXT":
                records.append(DnsRecord(type="TXT", name=token.domain, value=token.value))

    if is_apex:
        records.append(DnsRecord(type="A", name="@", value=apex_ip or settings.PLATFORM_APEX_IP))
    else:
        subdomain, _ = split_hostname(hostname)
        records.append(
            DnsRecord(
                type="CNAME",
                name=subdomain or hostname.split(".")[0],
                value=cname_target or settings.PLATFORM_CNAME_TARGET,
            )
        )

    return records
