"""Pytest configuration and shared fixtures for freelan tests."""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Callable

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)
from cryptography.x509.oid import NameOID


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("config", "marks tests as configuration tests"),
        ("security", "marks tests as security tests"),
        ("cli", "marks tests as CLI tests"),
        ("core", "marks tests as core functionality tests"),
        ("property", "marks tests as property-based tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _clear_configuration_file_env(monkeypatch):
    """Ensure the developer's own configuration file never leaks into tests."""
    monkeypatch.delenv("FREELAN_CONFIGURATION_FILE", raising=False)


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    # setup_logging stops propagation, which would hide records from caplog
    freelan_logger = logging.getLogger("freelan")
    freelan_logger.propagate = True
    freelan_logger.setLevel(logging.NOTSET)


IdentityFactory = Callable[[str], tuple[Path, Path]]


def write_identity(directory: Path, name: str) -> tuple[Path, Path]:
    """Write a self-signed certificate and its private key as PEM files."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )

    certificate_path = directory / f"{name}.crt"
    certificate_path.write_bytes(certificate.public_bytes(Encoding.PEM))
    key_path = directory / f"{name}.key"
    key_path.write_bytes(
        key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())
    )
    return certificate_path, key_path


@pytest.fixture
def identity_factory(tmp_path) -> IdentityFactory:
    """Create certificate/key pairs in the test's temporary directory."""
    return lambda name: write_identity(tmp_path, name)


@pytest.fixture
def signature_files(identity_factory) -> tuple[Path, Path]:
    """Signature certificate and private key files."""
    return identity_factory("signature")


@pytest.fixture
def minimal_cli_values(signature_files) -> dict[str, str]:
    """Command line values holding only the required options."""
    certificate_path, key_path = signature_files
    return {
        "security.signature_certificate_file": str(certificate_path),
        "security.signature_private_key_file": str(key_path),
    }


@pytest.fixture
def missing_search_paths(tmp_path) -> list[Path]:
    """Discovery candidates that do not exist."""
    return [
        tmp_path / "home" / ".freelan" / "freelan.toml",
        tmp_path / "app" / "freelan.toml",
    ]
