"""
Integration tests for the SigURL facade

These tests exercise sign and verify end to end with real RSA keys and a
fixed clock.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from sigurl_sdk import (
    CustomPolicy,
    ExpiredError,
    FixedClock,
    InvalidKeyError,
    IpAddressPolicy,
    KeyNotSetError,
    PolicyViolationError,
    RequestContext,
    SigURL,
    SignatureInvalidError,
    create_sigurl,
    initialize_sdk,
    is_compatible,
)
from sigurl_sdk.exceptions import ErrorCodes
from sigurl_sdk.signing import ParameterNamespace, canonicalize_url, collapse_query

from conftest import BASE_URL, ISSUE_TIME, query_dict, replace_param


class TestSpecScenario:
    """The reference blog URL signed for two hours"""

    def test_sign_and_verify(self, make_sigurl):
        signer = make_sigurl()
        signed = signer.sign(BASE_URL, ISSUE_TIME, 7200)

        for key in ("X-Sig-Algorithm", "X-Sig-Date", "X-Sig-Expires", "X-Sig-Signature"):
            assert signed.count(f"{key}=") == 1
        assert signed.count("param1=a") == 1

        at_one_second = make_sigurl(clock=FixedClock(datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc)))
        info = at_one_second.verify(signed)
        assert info.date == ISSUE_TIME
        assert info.expires == 7200

        after_expiry = make_sigurl(clock=FixedClock(datetime(2024, 1, 1, 2, 0, 1, tzinfo=timezone.utc)))
        with pytest.raises(ExpiredError):
            after_expiry.verify(signed)


class TestRoundTrip:
    """Sign then verify across URL shapes"""

    @pytest.mark.parametrize("url", [
        "https://www.example.com",
        "https://www.example.com/",
        "https://www.example.com/path?q=1",
        "https://www.example.com/path?a=1&b=2",
        "https://www.example.com/#Id1",
        "https://www.example.com/path?a=1&b=2#Id1",
        "http://www.example.com:8080/files/report.pdf",
        "/relative/path?x=y",
        "https://www.example.com/search?q=signed+urls&lang=en%2Fus",
    ])
    def test_round_trip(self, make_sigurl, url):
        sigurl = make_sigurl()
        signed = sigurl.sign(url, ISSUE_TIME, 60)
        info = sigurl.verify(signed)
        assert info.expires == 60

    @pytest.mark.parametrize("encoding", ["hex", "base64"])
    def test_round_trip_encodings(self, make_sigurl, encoding):
        sigurl = make_sigurl(encoding=encoding)
        sigurl.verify(sigurl.sign(BASE_URL, ISSUE_TIME, 60))

    def test_round_trip_custom_prefix(self, make_sigurl):
        sigurl = make_sigurl(prefix="Acme-Sig")
        signed = sigurl.sign(BASE_URL, ISSUE_TIME, 60)
        assert "Acme-Sig-Signature=" in signed
        sigurl.verify(signed)

    def test_order_independence(self, make_sigurl):
        sigurl = make_sigurl()
        first = sigurl.sign("https://example.com/p?a=1&b=2", ISSUE_TIME, 60)
        second = sigurl.sign("https://example.com/p?b=2&a=1", ISSUE_TIME, 60)

        assert first == second
        sigurl.verify(first)
        sigurl.verify(second)

        namespace = ParameterNamespace()
        stripped = [namespace.strip_reserved(collapse_query(u.split("?", 1)[1])) for u in (first, second)]
        assert stripped[0] == stripped[1] == {"a": "1", "b": "2"}

    def test_signed_url_is_canonical(self, make_sigurl):
        signed = make_sigurl().sign("https://example.com/p?z=1&a=2", ISSUE_TIME, 60)
        assert canonicalize_url(signed) == signed

    def test_tampering_any_value(self, make_sigurl):
        sigurl = make_sigurl()
        signed = sigurl.sign("https://example.com/p?a=1&b=2", ISSUE_TIME, 60)
        for key in ("a", "b", "X-Sig-Expires"):
            value = query_dict(signed)[key]
            tampered = replace_param(signed, key, value + "0")
            with pytest.raises(SignatureInvalidError):
                sigurl.verify(tampered)

    def test_ip_policy_end_to_end(self, make_sigurl):
        sigurl = make_sigurl(custom_policy=CustomPolicy(ip_address=IpAddressPolicy.allow(["10.0.0.1"])))
        signed = sigurl.sign(BASE_URL, ISSUE_TIME, 60)

        assert "X-Sig-CustomPolicy" in query_dict(signed)
        sigurl.verify(signed, RequestContext(client_ip="10.0.0.1"))
        with pytest.raises(PolicyViolationError):
            sigurl.verify(signed, RequestContext(client_ip="10.0.0.2"))

        # A verifier with the default policy still honours the embedded one
        plain = make_sigurl()
        with pytest.raises(PolicyViolationError):
            plain.verify(signed, RequestContext(client_ip="10.0.0.2"))


class TestSigURLFacade:
    """Test facade behaviour"""

    def test_sign_with_clock_time(self, key_pair):
        clock = FixedClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))
        sigurl = SigURL(private_key=key_pair.private_key, public_key=key_pair.public_key, clock=clock)
        signed = sigurl.sign(BASE_URL, None, 60)
        assert query_dict(signed)["X-Sig-Date"] == "20240601T120000Z"
        sigurl.verify(signed)

    def test_check_and_is_valid(self, make_sigurl):
        sigurl = make_sigurl()
        signed = sigurl.sign(BASE_URL, ISSUE_TIME, 60)
        assert sigurl.is_valid(signed)
        assert sigurl.check(signed).signed_info.expires == 60

        expired = make_sigurl(clock=FixedClock(ISSUE_TIME).advanced(61))
        assert not expired.is_valid(signed)
        assert expired.check(signed).error["code"] == ErrorCodes.EXPIRED

    def test_signed_info_from_url(self, make_sigurl):
        sigurl = make_sigurl()
        signed = sigurl.sign(BASE_URL, ISSUE_TIME, 60)
        info = make_sigurl(clock=FixedClock(ISSUE_TIME).advanced(10 ** 6)).signed_info_from_url(signed)
        assert info.date == ISSUE_TIME
        assert info.expires_at == FixedClock(ISSUE_TIME).advanced(60).now()

    def test_key_presence(self, key_pair):
        signer_only = SigURL(private_key=key_pair.private_key)
        verifier_only = SigURL(public_key=key_pair.public_key, clock=FixedClock(ISSUE_TIME).advanced(1))
        assert signer_only.can_sign and not signer_only.can_verify
        assert verifier_only.can_verify and not verifier_only.can_sign

        signed = signer_only.sign(BASE_URL, ISSUE_TIME, 60)
        verifier_only.verify(signed)

        with pytest.raises(KeyNotSetError) as exc_info:
            verifier_only.sign(BASE_URL, ISSUE_TIME, 60)
        assert exc_info.value.error_code == ErrorCodes.PRIVATE_KEY_NOT_SET

        with pytest.raises(KeyNotSetError) as exc_info:
            SigURL(clock=FixedClock(ISSUE_TIME).advanced(1)).verify(signed)
        assert exc_info.value.error_code == ErrorCodes.PUBLIC_KEY_NOT_SET

    def test_pkcs1_public_key(self, make_sigurl, pkcs1_public_key):
        sigurl = make_sigurl(public_key=pkcs1_public_key)
        sigurl.verify(sigurl.sign(BASE_URL, ISSUE_TIME, 60))

    def test_certificate_public_key(self, make_sigurl, certificate_pem):
        sigurl = make_sigurl(public_key=certificate_pem)
        sigurl.verify(sigurl.sign(BASE_URL, ISSUE_TIME, 60))

    def test_public_key_as_text(self, key_pair):
        sigurl = SigURL(
            private_key=key_pair.private_key.decode("ascii"),
            public_key=key_pair.public_key.decode("ascii"),
            clock=FixedClock(ISSUE_TIME).advanced(1)
        )
        sigurl.verify(sigurl.sign(BASE_URL, ISSUE_TIME, 60))

    @pytest.mark.parametrize("field", ["private_key", "public_key"])
    def test_invalid_key_fails_at_construction(self, field):
        with pytest.raises(InvalidKeyError):
            SigURL(**{field: b"-----BEGIN PUBLIC KEY-----\nnot base64\n-----END PUBLIC KEY-----\n"})

    def test_create_sigurl(self, key_pair):
        sigurl = create_sigurl(
            private_key=key_pair.private_key,
            public_key=key_pair.public_key,
            clock=FixedClock(ISSUE_TIME).advanced(1),
            prefix="Dl",
            encoding="base64"
        )
        assert sigurl.config.prefix == "Dl"
        signed = sigurl.sign(BASE_URL, ISSUE_TIME, 60)
        assert "Dl-Signature=" in signed
        sigurl.verify(signed)

    def test_concurrent_use(self, make_sigurl):
        sigurl = make_sigurl()
        urls = [f"https://example.com/item/{i}?n={i}" for i in range(16)]

        def round_trip(url):
            return sigurl.verify(sigurl.sign(url, ISSUE_TIME, 60)).expires

        with ThreadPoolExecutor(max_workers=4) as pool:
            assert list(pool.map(round_trip, urls)) == [60] * len(urls)


class TestSDKInitialization:
    """Test platform checks exposed at package level"""

    def test_initialize_sdk(self):
        info = initialize_sdk()
        assert info["compatible"]
        assert info["warnings"] == []

    def test_is_compatible(self):
        assert is_compatible()
