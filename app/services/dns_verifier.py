"""
Live DNS verification of a custom domain.

Compares what public DNS actually answers against the planned record set.
Purely observational; slow and unreliable by nature, so every lookup is
bounded by ``timeout`` and only the explicit "check DNS" action calls it.
"""
import logging
from typing import List, Optional

import dns.exception
import dns.resolver

from app.schemas.domain import DnsCheckResult, DnsRecord

logger = logging.getLogger("guestbook.dns_verifier")


class DnsLookupError(Exception):
    pass


class DnsVerifier:
    def __init__(self, resolver: Optional[dns.resolver.Resolver] = None, timeout: float = 5.0):
        self._resolver = resolver or dns.resolver.Resolver()
        self.timeout = timeout

    def check_dns(self, hostname: str, expected: List[DnsRecord]) -> DnsCheckResult:
        errors: List[str] = []
        for record in expected:
            try:
                if record.type == "TXT":
                    error = self._check_txt(record)
                elif record.type == "A":
                    error = self._check_a(hostname, record)
                else:
                    error = self._check_cname(hostname, record)
            except DnsLookupError as e:
                error = str(e)
            if error:
                errors.append(error)

        if errors:
            logger.info("DNS check for %s failed: %s", hostname, "; ".join(errors))
        return DnsCheckResult(verified=not errors, errors=errors)

    # ── Per-record checks (return an error message or None) ──

    def _check_txt(self, record: DnsRecord) -> Optional[str]:
        values = [
            b"".join(rdata.strings).decode("utf-8", "replace")
            for rdata in self._lookup(record.name, "TXT")
        ]
        if not values:
            return f"Missing TXT record for ownership verification ({record.name})"
        if record.value not in values:
            return f"TXT record on {record.name} does not contain the expected verification value"
        return None

    def _check_a(self, hostname: str, record: DnsRecord) -> Optional[str]:
        addresses = [rdata.to_text() for rdata in self._lookup(hostname, "A")]
        if not addresses:
            return f"Missing A record for {hostname}"
        if record.value not in addresses:
            return f"A record does not point to the expected address ({record.value})"
        extra = sorted(set(addresses) - {record.value})
        if extra:
            return f"A record has unexpected additional addresses: {', '.join(extra)}"
        return None

    def _check_cname(self, hostname: str, record: DnsRecord) -> Optional[str]:
        targets = [rdata.to_text().rstrip(".").lower() for rdata in self._lookup(hostname, "CNAME")]
        if not targets:
            return f"Missing CNAME record for {hostname}"
        if record.value.rstrip(".").lower() not in targets:
            return f"CNAME record does not point to {record.value}"
        return None

    def _lookup(self, name: str, rdtype: str) -> list:
        try:
            return list(self._resolver.resolve(name, rdtype, lifetime=self.timeout))
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return []
        except dns.exception.Timeout as e:
            raise DnsLookupError(f"DNS lookup for {name} timed out") from e
        except dns.exception.DNSException as e:
            logger.debug("DNS %s lookup for %s failed: %s", rdtype, name, e)
            raise DnsLookupError(f"DNS lookup for {name} failed") from e
