"""
Shared fixtures for the SigURL SDK test suite

RSA keys are generated once per session; every time-dependent test runs
against a FixedClock.
"""

import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.x509.oid import NameOID

from sigurl_sdk import FixedClock, SigURL, SignedURLConfig
from sigurl_sdk.crypto.rsa import generate_key_pair, load_private_key

ISSUE_TIME = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
BASE_URL = "https://example.com/blog/001?param1=a"


@pytest.fixture(scope="session")
def key_pair():
    """Signing key pair (PEM, SubjectPublicKeyInfo public key)"""
    return generate_key_pair()


@pytest.fixture(scope="session")
def other_key_pair():
    """Unrelated key pair for wrong-key checks"""
    return generate_key_pair()


@pytest.fixture(scope="session")
def pkcs1_public_key(key_pair):
    """The signing key's public half as a PKCS#1 PEM container"""
    return load_private_key(key_pair.private_key).public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.PKCS1
    )


@pytest.fixture(scope="session")
def certificate_pem(key_pair):
    """Self-signed X.509 certificate wrapping the signing key's public half"""
    private_key = load_private_key(key_pair.private_key)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "sigurl-test")])
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(ISSUE_TIME - timedelta(days=1))
        .not_valid_after(ISSUE_TIME + timedelta(days=365))
        .sign(private_key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def issue_time():
    return ISSUE_TIME


@pytest.fixture
def clock():
    """Clock one second after the issue time"""
    return FixedClock(ISSUE_TIME).advanced(1)


@pytest.fixture
def make_sigurl(key_pair):
    """Factory for SigURL instances over the session key pair"""

    def factory(clock=None, public_key=None, **config_options):
        return SigURL(
            private_key=key_pair.private_key,
            public_key=public_key or key_pair.public_key,
            config=SignedURLConfig(**config_options),
            clock=clock or FixedClock(ISSUE_TIME).advanced(1)
        )

    return factory


@pytest.fixture(autouse=True)
def restore_sdk_logger():
    """Undo configure_logging() changes made by a test"""
    logger = logging.getLogger("sigurl_sdk")
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield
    logger.setLevel(saved[0])
    logger.handlers = saved[1]
    logger.propagate = saved[2]


def replace_param(url: str, key: str, value=None) -> str:
    """
    Return ``url`` with one query parameter replaced, or removed when
    ``value`` is None. Other parameters keep their order.
    """
    parts = urlsplit(url)
    pairs = []
    for k, v in parse_qsl(parts.query, keep_blank_values=True):
        if k == key:
            if value is None:
                continue
            v = value
        pairs.append((k, v))
    return urlunsplit(parts._replace(query=urlencode(pairs)))


def query_dict(url: str) -> dict:
    return dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))
