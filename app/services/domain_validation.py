"""
Custom domain format validation and normalization.

Pure functions, no network I/O: the public suffix list comes from the
snapshot bundled with tldextract.
"""

from __future__ import annotations

import ipaddress
import re
from typing import Iterable, Tuple

import tldextract

from app.schemas.domain import DomainValidationResult

# Hosting providers and our own domain: a guestbook may not claim these.
BLOCKED_DOMAINS = (
    "localhost",
    "vercel.app",
    "vercel.dev",
    "now.sh",
    "netlify.app",
    "herokuapp.com",
    "guestbook.sh",
    "supabase.co",
    "supabase.com",
)

MAX_HOSTNAME_LENGTH = 253
MAX_LABEL_LENGTH = 63

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://")
_PATH_SPLIT_RE = re.compile(r"[/?#]")
_LABEL_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")

# ICANN suffixes only, offline snapshot
_extract = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)


def normalize_domain(raw: str) -> str:
    """
    Reduce user input to a bare lowercase hostname.

    - https://Love.Example.com/path → love.example.com
    - love.example.com:8080        → love.example.com
    - love.example.com.            → love.example.com
    """
    hostname = raw
    while True:
        reduced = _normalize_once(hostname)
        if reduced == hostname:
            return hostname
        hostname = reduced


def _normalize_once(raw: str) -> str:
    # One pass can expose whitespace or dots hidden behind a scheme or port
    hostname = raw.strip().lower()
    hostname = _SCHEME_RE.sub("", hostname)
    hostname = _PATH_SPLIT_RE.split(hostname, maxsplit=1)[0]

    if hostname.startswith("["):
        # IPv6 literal, keep the brackets for the IP check
        end = hostname.find("]")
        hostname = hostname[: end + 1] if end != -1 else hostname
    else:
        hostname = hostname.split(":", 1)[0]

    return hostname.strip().rstrip(".")


def is_ip_literal(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False
    return True


def split_hostname(hostname: str) -> Tuple[str, str]:
    """Return ``(subdomain, registrable_domain)``; subdomain is "" for an apex."""
    ext = _extract(hostname)
    if not ext.domain or not ext.suffix:
        return "", hostname
    return ext.subdomain, f"{ext.domain}.{ext.suffix}"


def is_apex_domain(hostname: str) -> bool:
    subdomain, _ = split_hostname(hostname)
    return not subdomain


def validate_domain(
    raw: str,
    reserved_domains: Iterable[str] = BLOCKED_DOMAINS,
) -> DomainValidationResult:
    """Validate a user-supplied domain and classify it as apex or subdomain."""
    hostname = normalize_domain(raw or "")

    if not hostname:
        return DomainValidationResult(valid=False, error="Domain is required")

    if is_ip_literal(hostname):
        return DomainValidationResult(valid=False, error="IP addresses are not allowed")

    if len(hostname) > MAX_HOSTNAME_LENGTH:
        return DomainValidationResult(valid=False, error="Domain name is too long")

    for label in hostname.split("."):
        if len(label) > MAX_LABEL_LENGTH:
            return DomainValidationResult(valid=False, error="Domain label exceeds 63 characters")
        if not _LABEL_RE.match(label):
            return DomainValidationResult(valid=False, error="Domain contains invalid characters")

    for blocked in reserved_domains:
        blocked = blocked.lower()
        if hostname == blocked or hostname.endswith(f".{blocked}"):
            return DomainValidationResult(valid=False, error=f"{blocked} domains are not allowed")

    ext = _extract(hostname)
    if not ext.domain or not ext.suffix:
        return DomainValidationResult(valid=False, error="Invalid domain name")

    return DomainValidationResult(valid=True, hostname=hostname, is_apex=not ext.subdomain)
