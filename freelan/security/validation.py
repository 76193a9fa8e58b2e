"""Certificate validation strategies.

The security configuration carries one of these tagged variants. The engine
dispatches on ``kind`` when a peer presents a certificate:

- ``default``: the engine's own chain validation against the authority list
- ``none``: every certificate is accepted
- ``script``: an external program decides, see :meth:`ScriptValidation.run`
- ``custom``: an embedding application supplied a callable
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from enum import Enum
from pathlib import Path
from typing import Annotated, Callable, Literal, Union

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding
from pydantic import BaseModel, Field

# Same logger get_logger returns; logging_config imports freelan.models, which imports this module
logger = logging.getLogger(__name__)


class CertificateValidationKind(str, Enum):
    """Tags of the certificate validation variants."""

    DEFAULT = "default"
    NONE = "none"
    SCRIPT = "script"
    CUSTOM = "custom"


class DefaultValidation(BaseModel):
    """Validate certificates with the engine's default behavior."""

    kind: Literal[CertificateValidationKind.DEFAULT] = CertificateValidationKind.DEFAULT

    model_config = {"frozen": True}


class NoValidation(BaseModel):
    """Accept every certificate."""

    kind: Literal[CertificateValidationKind.NONE] = CertificateValidationKind.NONE

    model_config = {"frozen": True}


class ScriptValidation(BaseModel):
    """Delegate the decision to an external script."""

    kind: Literal[CertificateValidationKind.SCRIPT] = CertificateValidationKind.SCRIPT
    script: Path = Field(..., description="Program invoked with the certificate file")
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the script (None waits forever)",
    )

    def run(self, certificate: x509.Certificate) -> bool:
        """Run the script against a certificate.

        The certificate is written in PEM format to a temporary file whose
        path is the script's only argument.

        Args:
            certificate: The certificate to validate

        Returns:
            True if the script exited with status 0

        """
        fd, name = tempfile.mkstemp(prefix="freelan-", suffix=".pem")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(certificate.public_bytes(Encoding.PEM))

            try:
                result = subprocess.run(  # noqa: S603
                    [str(self.script), name],
                    check=False,
                    capture_output=True,
                    timeout=self.timeout,
                )
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning(
                    "Certificate validation script %s failed to run: %s",
                    self.script,
                    e,
                )
                return False

            logger.debug(
                "Certificate validation script %s returned %d",
                self.script,
                result.returncode,
            )
            return result.returncode == 0
        finally:
            Path(name).unlink(missing_ok=True)

    model_config = {"frozen": True}


class CustomValidation(BaseModel):
    """Validate certificates with a caller-provided strategy."""

    kind: Literal[CertificateValidationKind.CUSTOM] = CertificateValidationKind.CUSTOM
    strategy: Callable[[x509.Certificate], bool] = Field(
        ..., description="Returns True for acceptable certificates"
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


CertificateValidation = Annotated[
    Union[DefaultValidation, NoValidation, ScriptValidation, CustomValidation],
    Field(discriminator="kind"),
]
