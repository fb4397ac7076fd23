"""Unit tests for live DNS verification (resolver faked)."""
import dns.exception
import dns.resolver

from app.schemas.domain import DnsRecord
from app.services.dns_verifier import DnsVerifier

CNAME = DnsRecord(type="CNAME", name="love", value="cname.vercel-dns.com")
A = DnsRecord(type="A", name="@", value="76.76.21.21")
TXT = DnsRecord(type="TXT", name="_vercel.example.com", value="vc-domain-verify=abc")


class _Rdata:
    def __init__(self, text):
        self._text = text

    def to_text(self):
        return self._text


class _TxtRdata:
    def __init__(self, *chunks):
        self.strings = tuple(chunk.encode() for chunk in chunks)


class _FakeResolver:
    def __init__(self, answers):
        self._answers = answers
        self.lifetimes = []

    def resolve(self, name, rdtype, lifetime=None):
        self.lifetimes.append(lifetime)
        answer = self._answers.get((name, rdtype), dns.resolver.NXDOMAIN())
        if isinstance(answer, Exception):
            raise answer
        return answer


def _check(answers, hostname, expected, timeout=5.0):
    resolver = _FakeResolver(answers)
    return DnsVerifier(resolver=resolver, timeout=timeout).check_dns(hostname, expected), resolver


def test_cname_match_passes():
    result, resolver = _check(
        {("love.example.com", "CNAME"): [_Rdata("cname.vercel-dns.com.")]},
        "love.example.com", [CNAME], timeout=2.5,
    )
    assert result.verified is True
    assert result.errors == []
    assert resolver.lifetimes == [2.5]


def test_missing_cname():
    result, _ = _check({}, "love.example.com", [CNAME])
    assert result.verified is False
    assert result.errors == ["Missing CNAME record for love.example.com"]


def test_wrong_cname_target():
    result, _ = _check(
        {("love.example.com", "CNAME"): [_Rdata("other.host.net.")]},
        "love.example.com", [CNAME],
    )
    assert result.errors == ["CNAME record does not point to cname.vercel-dns.com"]


def test_apex_a_record_checks():
    ok, _ = _check({("example.com", "A"): [_Rdata("76.76.21.21")]}, "example.com", [A])
    wrong, _ = _check({("example.com", "A"): [_Rdata("1.1.1.1")]}, "example.com", [A])
    extra, _ = _check(
        {("example.com", "A"): [_Rdata("76.76.21.21"), _Rdata("1.1.1.1")]}, "example.com", [A],
    )
    assert ok.verified is True
    assert wrong.errors == ["A record does not point to the expected address (76.76.21.21)"]
    assert extra.errors == ["A record has unexpected additional addresses: 1.1.1.1"]


def test_no_answer_counts_as_missing():
    result, _ = _check({("example.com", "A"): dns.resolver.NoAnswer()}, "example.com", [A])
    assert result.errors == ["Missing A record for example.com"]


def test_txt_token_checked_at_record_name():
    answers = {
        ("_vercel.example.com", "TXT"): [_TxtRdata("vc-domain-", "verify=abc")],
        ("example.com", "A"): [_Rdata("76.76.21.21")],
    }
    result, _ = _check(answers, "example.com", [TXT, A])
    assert result.verified is True


def test_txt_errors_reported_with_routing_errors():
    answers = {("_vercel.example.com", "TXT"): [_TxtRdata("something-else")]}
    result, _ = _check(answers, "example.com", [TXT, A])
    assert result.verified is False
    assert result.errors == [
        "TXT record on _vercel.example.com does not contain the expected verification value",
        "Missing A record for example.com",
    ]


def test_missing_txt():
    result, _ = _check({("example.com", "A"): [_Rdata("76.76.21.21")]}, "example.com", [TXT, A])
    assert result.errors == ["Missing TXT record for ownership verification (_vercel.example.com)"]


def test_timeout_and_resolver_failure_are_reported():
    timed_out, _ = _check(
        {("love.example.com", "CNAME"): dns.exception.Timeout()}, "love.example.com", [CNAME],
    )
    failed, _ = _check(
        {("love.example.com", "CNAME"): dns.resolver.NoNameservers()}, "love.example.com", [CNAME],
    )
    assert timed_out.errors == ["DNS lookup for love.example.com timed out"]
    assert failed.errors == ["DNS lookup for love.example.com failed"]
