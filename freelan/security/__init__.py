"""Security material for freelan.

Provides:
- Certificate and private key loading (``freelan.security.credentials``)
- Certificate validation strategies
"""

from __future__ import annotations

from freelan.security.validation import (
    CertificateValidation,
    CertificateValidationKind,
    CustomValidation,
    DefaultValidation,
    NoValidation,
    ScriptValidation,
)

__all__ = [
    "CertificateValidation",
    "CertificateValidationKind",
    "CustomValidation",
    "DefaultValidation",
    "NoValidation",
    "ScriptValidation",
]
