"""Configuration assembly.

Turns a raw value set into the immutable Configuration aggregate. Steps run
in a fixed order and the first failure aborts the whole assembly.
"""

from __future__ import annotations

from typing import Literal

from freelan.config.converters import (
    parse_endpoint,
    parse_ethernet_address,
    parse_optional_address_prefix,
    to_bool,
    to_certificate_validation_method,
    to_duration,
    to_hostname_resolution_protocol,
    to_routing_method,
)
from freelan.config.loader import RawValueSet
from freelan.config.options import OptionSchema, combined_schema
from freelan.models import (
    AddressPrefix,
    CertificateValidationMethod,
    Configuration,
    FscpConfig,
    IdentityStore,
    SecurityConfig,
    SwitchConfig,
    TapAdapterConfig,
)
from freelan.security.credentials import (
    load_certificate,
    load_private_key,
    load_trusted_certificate,
)
from freelan.security.validation import (
    CertificateValidation,
    DefaultValidation,
    NoValidation,
    ScriptValidation,
)
from freelan.utils.exceptions import MissingRequiredOptionError
from freelan.utils.logging_config import get_logger

logger = get_logger(__name__)


class ConfigurationAssembler:
    """Build a Configuration from raw option tokens.

    Options missing from the raw value set fall back to their schema
    defaults, so a raw set holding only the required options is enough.
    """

    def __init__(self, raw: RawValueSet, schema: OptionSchema | None = None):
        """Initialize assembler."""
        self.raw = raw
        self.schema = schema if schema is not None else combined_schema()

    def _tokens(self, name: str) -> tuple[str, ...]:
        tokens = self.raw.get(name)
        if tokens is None:
            descriptor = self.schema.get(name)
            return descriptor.default_tokens if descriptor is not None else ()
        return tokens

    def _token(self, name: str) -> str | None:
        tokens = self._tokens(name)
        return tokens[0] if tokens else None

    def _required_token(self, name: str) -> str:
        token = self._token(name)
        if token is None:
            raise MissingRequiredOptionError(name)
        return token

    def assemble(self) -> Configuration:
        """Run every assembly step and return the aggregate."""
        fscp = self._assemble_fscp()
        security = self._assemble_security()
        tap_adapter = self._assemble_tap_adapter()
        switch = self._assemble_switch()

        return Configuration(
            fscp=fscp,
            security=security,
            tap_adapter=tap_adapter,
            switch=switch,
        )

    def _assemble_fscp(self) -> FscpConfig:
        name = "fscp.hostname_resolution_protocol"
        protocol = to_hostname_resolution_protocol(name, self._required_token(name))

        name = "fscp.listen_on"
        listen_on = parse_endpoint(name, self._required_token(name))

        name = "fscp.hello_timeout"
        hello_timeout = to_duration(name, self._required_token(name))

        name = "fscp.contact"
        contact_list = tuple(parse_endpoint(name, token) for token in self._tokens(name))

        return FscpConfig(
            hostname_resolution_protocol=protocol,
            listen_on=listen_on,
            hello_timeout=hello_timeout,
            contact_list=contact_list,
        )

    def _assemble_identity(self) -> IdentityStore:
        signature_certificate = load_certificate(
            self.raw.require("security.signature_certificate_file")[0]
        )
        signature_private_key = load_private_key(
            self.raw.require("security.signature_private_key_file")[0]
        )

        encryption_certificate_file = self._token("security.encryption_certificate_file")
        encryption_private_key_file = self._token("security.encryption_private_key_file")
        encryption_certificate = None
        encryption_private_key = None

        if encryption_certificate_file and encryption_private_key_file:
            encryption_certificate = load_certificate(encryption_certificate_file)
            encryption_private_key = load_private_key(encryption_private_key_file)
        elif encryption_certificate_file or encryption_private_key_file:
            logger.warning(
                "Ignoring the encryption %s: both the encryption certificate and "
                "private key must be set",
                "certificate" if encryption_certificate_file else "private key",
            )

        return IdentityStore(
            signature_certificate=signature_certificate,
            signature_private_key=signature_private_key,
            encryption_certificate=encryption_certificate,
            encryption_private_key=encryption_private_key,
        )

    def _assemble_validation(
        self,
    ) -> tuple[CertificateValidationMethod, CertificateValidation]:
        name = "security.certificate_validation_method"
        method = to_certificate_validation_method(name, self._required_token(name))

        script = self._token("security.certificate_validation_script")
        if script:
            return method, ScriptValidation(script=script)
        if method is CertificateValidationMethod.NONE:
            return method, NoValidation()
        return method, DefaultValidation()

    def _assemble_security(self) -> SecurityConfig:
        identity = self._assemble_identity()
        method, validation = self._assemble_validation()

        authorities = tuple(
            load_trusted_certificate(path)
            for path in self._tokens("security.authority_certificate_file")
        )

        return SecurityConfig(
            identity=identity,
            certificate_validation_method=method,
            certificate_validation=validation,
            certificate_authority_list=authorities,
        )

    def _assemble_tap_adapter(self) -> TapAdapterConfig:
        def flag(name: str) -> bool:
            return to_bool(name, self._required_token(name))

        def prefix(name: str, version: Literal[4, 6]) -> AddressPrefix | None:
            token = self._token(name)
            if token is None:
                return None
            return parse_optional_address_prefix(name, token, version)

        name = "tap_adapter.arp_proxy_fake_ethernet_address"
        fake_ethernet_address = parse_ethernet_address(name, self._required_token(name))

        return TapAdapterConfig(
            enabled=flag("tap_adapter.enabled"),
            ipv4_address_prefix_length=prefix("tap_adapter.ipv4_address_prefix_length", 4),
            ipv6_address_prefix_length=prefix("tap_adapter.ipv6_address_prefix_length", 6),
            arp_proxy_enabled=flag("tap_adapter.arp_proxy_enabled"),
            arp_proxy_fake_ethernet_address=fake_ethernet_address,
            dhcp_proxy_enabled=flag("tap_adapter.dhcp_proxy_enabled"),
            dhcp_server_ipv4_address_prefix_length=prefix(
                "tap_adapter.dhcp_server_ipv4_address_prefix_length", 4
            ),
            dhcp_server_ipv6_address_prefix_length=prefix(
                "tap_adapter.dhcp_server_ipv6_address_prefix_length", 6
            ),
        )

    def _assemble_switch(self) -> SwitchConfig:
        name = "switch.routing_method"
        routing_method = to_routing_method(name, self._required_token(name))

        name = "switch.relay_mode_enabled"
        relay_mode_enabled = to_bool(name, self._required_token(name))

        return SwitchConfig(
            routing_method=routing_method,
            relay_mode_enabled=relay_mode_enabled,
        )


def assemble(raw: RawValueSet, schema: OptionSchema | None = None) -> Configuration:
    """Assemble the configuration aggregate from a raw value set.

    Args:
        raw: Merged raw option tokens
        schema: Schema supplying defaults for options absent from ``raw``

    Returns:
        The immutable configuration

    Raises:
        MissingRequiredOptionError: If a mandatory option has no value
        InvalidOptionValueError: If a token can not be converted
        CredentialLoadError: If a certificate or key can not be loaded

    """
    return ConfigurationAssembler(raw, schema).assemble()
