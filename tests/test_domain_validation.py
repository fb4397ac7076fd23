"""Unit tests for custom domain normalization and validation."""
import random

import pytest

from app.services.domain_validation import (
    is_apex_domain,
    is_ip_literal,
    normalize_domain,
    split_hostname,
    validate_domain,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Love.Example.com", "love.example.com"),
        ("  https://Love.Example.com/path?x=1 ", "love.example.com"),
        ("http://example.com#top", "example.com"),
        ("love.example.com:8080", "love.example.com"),
        ("love.example.com.", "love.example.com"),
        ("[::1]:443", "[::1]"),
        ("", ""),
    ],
)
def test_normalize_domain(raw, expected):
    assert normalize_domain(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "HTTPS://Foo.Example.COM/a/b",
        "example.com.:80",
        " www.example.co.uk. ",
        "x",
        "example.com\xa0.",
        "https://\u2003love.example.com",
        "example.com.\u3000.",
        "http://example.com:\xa0/",
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize_domain(raw)
    assert normalize_domain(once) == once


def test_unicode_whitespace_and_dots_are_stripped_together():
    assert normalize_domain("example.com\xa0.") == "example.com"
    assert normalize_domain("https://\u2003Love.Example.com") == "love.example.com"


def test_normalize_is_idempotent_for_noisy_input():
    rng = random.Random(1234)
    alphabet = "aZ9.-:/ \t\xa0\u2003\u3000[]?#"
    for _ in range(500):
        raw = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 16)))
        once = normalize_domain(raw)
        assert normalize_domain(once) == once, repr(raw)


def test_subdomain_is_valid_and_not_apex():
    result = validate_domain("Love.Example.com")
    assert result.valid is True
    assert result.hostname == "love.example.com"
    assert result.is_apex is False
    assert result.error is None


def test_apex_under_multi_label_suffix():
    result = validate_domain("example.co.uk")
    assert result.valid is True
    assert result.is_apex is True
    assert split_hostname("a.b.example.co.uk") == ("a.b", "example.co.uk")


def test_empty_domain_rejected():
    result = validate_domain("   ")
    assert result.valid is False
    assert result.error == "Domain is required"


@pytest.mark.parametrize("raw", ["1.2.3.4", "[2001:db8::1]"])
def test_ip_literals_rejected(raw):
    result = validate_domain(raw)
    assert result.valid is False
    assert result.error == "IP addresses are not allowed"


def test_label_too_long_rejected():
    result = validate_domain(f"{'a' * 64}.example.com")
    assert result.valid is False
    assert "63" in result.error


def test_hostname_too_long_rejected():
    long_name = ".".join(["a" * 60] * 5) + ".com"
    result = validate_domain(long_name)
    assert result.valid is False
    assert result.error == "Domain name is too long"


@pytest.mark.parametrize("raw", ["bad_name.com", "-lead.example.com", "trail-.example.com", "a..b.com"])
def test_invalid_characters_rejected(raw):
    result = validate_domain(raw)
    assert result.valid is False
    assert result.error == "Domain contains invalid characters"


@pytest.mark.parametrize(
    "raw, blocked",
    [
        ("my-site.vercel.app", "vercel.app"),
        ("vercel.app", "vercel.app"),
        ("wall.guestbook.sh", "guestbook.sh"),
        ("localhost", "localhost"),
    ],
)
def test_reserved_domains_rejected(raw, blocked):
    result = validate_domain(raw)
    assert result.valid is False
    assert result.error == f"{blocked} domains are not allowed"


def test_custom_reserved_list():
    result = validate_domain("app.acme.io", reserved_domains=("acme.io",))
    assert result.valid is False
    assert validate_domain("app.acme.io", reserved_domains=()).valid is True


@pytest.mark.parametrize("raw", ["co.uk", "com", "example.notarealtld"])
def test_no_registrable_domain_rejected(raw):
    result = validate_domain(raw)
    assert result.valid is False
    assert result.error == "Invalid domain name"


def test_helpers():
    assert is_ip_literal("10.0.0.1") is True
    assert is_ip_literal("[::1]") is True
    assert is_ip_literal("example.com") is False
    assert is_apex_domain("example.com") is True
    assert is_apex_domain("www.example.com") is False
