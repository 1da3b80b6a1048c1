"""
Test suite for signed URL generation

This module tests URL signing including reserved parameter placement,
collision detection, claim validation and signature encodings.
"""

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from sigurl_sdk.crypto.rsa import load_private_key, load_public_key, verify_signature
from sigurl_sdk.exceptions import (
    ErrorCodes,
    IllegalParameterError,
    KeyNotSetError,
    MalformedURLError,
    ParameterCollisionError,
    SigURLError,
)
from sigurl_sdk.signing import (
    MAX_EXPIRES,
    SignatureEncoding,
    SignedURLConfig,
    URLSigner,
    canonicalize_url,
)
from sigurl_sdk.verification import CustomPolicy, IpAddressPolicy

from conftest import BASE_URL, ISSUE_TIME, query_dict, replace_param


@pytest.fixture
def private_key(key_pair):
    return load_private_key(key_pair.private_key)


@pytest.fixture
def signer(private_key):
    return URLSigner(SignedURLConfig(), private_key)


class TestURLSigner:
    """Test URL signing"""

    def test_adds_reserved_parameters(self, signer):
        signed = signer.sign(BASE_URL, ISSUE_TIME, 7200)
        params = query_dict(signed)

        assert params["X-Sig-Algorithm"] == "RSA-SHA256"
        assert params["X-Sig-Date"] == "20240101T000000Z"
        assert params["X-Sig-Expires"] == "7200"
        assert len(params["X-Sig-Signature"]) == 512
        assert params["param1"] == "a"
        assert "X-Sig-CustomPolicy" not in params

    def test_each_reserved_key_appears_once(self, signer):
        signed = signer.sign(BASE_URL, ISSUE_TIME, 7200)
        for key in ("X-Sig-Algorithm", "X-Sig-Date", "X-Sig-Expires", "X-Sig-Signature"):
            assert signed.count(f"{key}=") == 1
        assert signed.count("param1=a") == 1

    def test_output_is_canonical(self, signer):
        signed = signer.sign(BASE_URL, ISSUE_TIME, 7200)
        assert canonicalize_url(signed) == signed
        assert signed.startswith("https://example.com/blog/001?X-Sig-Algorithm=RSA-SHA256&X-Sig-Date=")

    def test_signature_covers_message(self, signer, key_pair):
        signed = signer.sign(BASE_URL, ISSUE_TIME, 7200)
        signature = bytes.fromhex(query_dict(signed)["X-Sig-Signature"])
        message = replace_param(signed, "X-Sig-Signature")
        assert verify_signature(load_public_key(key_pair.public_key), canonicalize_url(message), signature)

    def test_signing_is_deterministic(self, signer):
        assert signer.sign(BASE_URL, ISSUE_TIME, 60) == signer.sign(BASE_URL, ISSUE_TIME, 60)

    def test_collapses_multi_valued_parameters(self, signer):
        signed = signer.sign("https://example.com/?a=1&a=2", ISSUE_TIME, 60)
        assert "a=1" in signed
        assert "a=2" not in signed

    def test_keeps_fragment(self, signer):
        signed = signer.sign("https://example.com/page#Id1", ISSUE_TIME, 60)
        assert signed.endswith("#Id1")

    def test_aware_issue_time_is_converted(self, signer):
        tokyo_time = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone(timedelta(hours=9)))
        signed = signer.sign(BASE_URL, tokyo_time, 60)
        assert query_dict(signed)["X-Sig-Date"] == "20240101T000000Z"

    def test_base64_encoding(self, private_key):
        signer = URLSigner(SignedURLConfig(encoding=SignatureEncoding.BASE64), private_key)
        signature = query_dict(signer.sign(BASE_URL, ISSUE_TIME, 60))["X-Sig-Signature"]
        assert len(base64.b64decode(signature, validate=True)) == 256

    def test_custom_prefix(self, private_key):
        signer = URLSigner(SignedURLConfig(prefix="Sig"), private_key)
        params = query_dict(signer.sign(BASE_URL, ISSUE_TIME, 60))
        assert {"Sig-Algorithm", "Sig-Date", "Sig-Expires", "Sig-Signature"} <= set(params)
        assert not any(k.startswith("X-Sig") for k in params)

    def test_embeds_non_default_policy(self, private_key):
        policy = CustomPolicy(ip_address=IpAddressPolicy.allow(["10.0.0.1"]))
        signer = URLSigner(SignedURLConfig(custom_policy=policy), private_key)
        params = query_dict(signer.sign(BASE_URL, ISSUE_TIME, 60))
        assert params["X-Sig-CustomPolicy"] == policy.to_json()


class TestSigningFailures:
    """Test typed signing failures"""

    def test_private_key_not_set(self):
        signer = URLSigner(SignedURLConfig(), None)
        with pytest.raises(KeyNotSetError) as exc_info:
            signer.sign(BASE_URL, ISSUE_TIME, 60)
        assert exc_info.value.error_code == ErrorCodes.PRIVATE_KEY_NOT_SET

    def test_key_checked_before_url(self):
        with pytest.raises(KeyNotSetError):
            URLSigner(SignedURLConfig(), None).sign("", ISSUE_TIME, 60)

    def test_malformed_url(self, signer):
        with pytest.raises(MalformedURLError):
            signer.sign("http://[::1/path", ISSUE_TIME, 60)

    @pytest.mark.parametrize("url", [
        "https://example.com/?X-Sig-Signature=anything",
        "https://example.com/?a=1&X-Sig-Date=20240101T000000Z",
        "https://example.com/?x-sig-expires=60",
        "https://example.com/?X-Sig-CustomPolicy=",
    ])
    def test_parameter_collision(self, signer, url):
        with pytest.raises(ParameterCollisionError):
            signer.sign(url, ISSUE_TIME, 60)

    def test_collision_detected_before_signing(self, signer):
        with patch("sigurl_sdk.signing.url_signer.sign_message") as mock_sign:
            with pytest.raises(ParameterCollisionError):
                signer.sign("https://example.com/?X-Sig-Signature=x", ISSUE_TIME, 60)
        mock_sign.assert_not_called()

    def test_other_prefix_does_not_collide(self, private_key):
        signer = URLSigner(SignedURLConfig(prefix="Sig"), private_key)
        signed = signer.sign("https://example.com/?X-Sig-Date=keep", ISSUE_TIME, 60)
        assert query_dict(signed)["X-Sig-Date"] == "keep"

    @pytest.mark.parametrize("expires", [0, -1, 1.5, "60", True, None, MAX_EXPIRES + 1])
    def test_illegal_expires(self, signer, expires):
        with pytest.raises(IllegalParameterError):
            signer.sign(BASE_URL, ISSUE_TIME, expires)

    def test_max_expires_accepted(self, signer):
        assert query_dict(signer.sign(BASE_URL, ISSUE_TIME, MAX_EXPIRES))["X-Sig-Expires"] == str(MAX_EXPIRES)

    def test_illegal_issue_time(self, signer):
        with pytest.raises(IllegalParameterError):
            signer.sign(BASE_URL, "2024-01-01", 60)

    def test_crypto_failure_is_wrapped(self, signer):
        with patch("sigurl_sdk.signing.url_signer.sign_message", side_effect=ValueError("boom")):
            with pytest.raises(SigURLError) as exc_info:
                signer.sign(BASE_URL, ISSUE_TIME, 60)
        assert exc_info.value.error_code == ErrorCodes.SIGNING_FAILED
        assert exc_info.value.details["original_error"] == "boom"
