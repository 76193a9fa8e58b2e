"""Certificate and private key loading.

Every function reads one file in a single scoped step and parses it. Any
failure, from a missing file to unparsable content, is reported as a
CredentialLoadError carrying the path and the underlying cause.
"""

from __future__ import annotations

import base64
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from cryptography.hazmat.primitives.serialization import (
    load_der_private_key,
    load_pem_private_key,
)

from freelan.utils.exceptions import CredentialLoadError
from freelan.utils.logging_config import get_logger

logger = get_logger(__name__)

_PEM_MARKER = b"-----BEGIN "
_TRUSTED_BEGIN = b"-----BEGIN TRUSTED CERTIFICATE-----"
_TRUSTED_END = b"-----END TRUSTED CERTIFICATE-----"


def _read_file(path: str | Path) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise CredentialLoadError(path, e) from e


def load_certificate(path: str | Path) -> x509.Certificate:
    """Load an X.509 certificate.

    Args:
        path: PEM (or DER) encoded certificate file

    Returns:
        The parsed certificate

    Raises:
        CredentialLoadError: If the file can not be read or parsed

    """
    data = _read_file(path)
    try:
        if _PEM_MARKER in data:
            certificate = x509.load_pem_x509_certificate(data)
        else:
            certificate = x509.load_der_x509_certificate(data)
    except ValueError as e:
        raise CredentialLoadError(path, e) from e

    logger.debug("Loaded certificate %s from %s", certificate.subject.rfc4514_string(), path)
    return certificate


def _trusted_certificate_der(data: bytes) -> bytes:
    body = data.split(_TRUSTED_BEGIN, 1)[1].split(_TRUSTED_END, 1)[0]
    der = base64.b64decode(b"".join(body.split()), validate=True)

    if len(der) < 2 or der[0] != 0x30:
        raise ValueError("trusted certificate does not start with a DER sequence")

    # Keep the certificate SEQUENCE, drop the trust settings that follow it
    if der[1] < 0x80:
        header, length = 2, der[1]
    else:
        header = 2 + (der[1] & 0x7F)
        length = int.from_bytes(der[2:header], "big")

    if len(der) < header + length:
        raise ValueError("truncated trusted certificate")
    return der[: header + length]


def load_trusted_certificate(path: str | Path) -> x509.Certificate:
    """Load a certificate to be trusted as a certificate authority.

    Besides plain certificates, OpenSSL "TRUSTED CERTIFICATE" PEM blocks
    are accepted. Their trust settings are ignored.

    Args:
        path: PEM (or DER) encoded certificate file

    Returns:
        The parsed certificate

    Raises:
        CredentialLoadError: If the file can not be read or parsed

    """
    data = _read_file(path)
    if _TRUSTED_BEGIN not in data:
        certificate = load_certificate(path)
    else:
        try:
            certificate = x509.load_der_x509_certificate(_trusted_certificate_der(data))
        except ValueError as e:
            raise CredentialLoadError(path, e) from e

    logger.debug("Trusting certificate authority from %s", path)
    return certificate


def load_private_key(path: str | Path) -> PrivateKeyTypes:
    """Load an unencrypted private key.

    Args:
        path: PEM (or DER) encoded private key file

    Returns:
        The parsed private key

    Raises:
        CredentialLoadError: If the file can not be read or parsed

    """
    data = _read_file(path)
    try:
        if _PEM_MARKER in data:
            private_key = load_pem_private_key(data, password=None)
        else:
            private_key = load_der_private_key(data, password=None)
    except (TypeError, ValueError) as e:
        # TypeError means the key is encrypted and no password was given
        raise CredentialLoadError(path, e) from e

    logger.debug("Loaded private key from %s", path)
    return private_key
