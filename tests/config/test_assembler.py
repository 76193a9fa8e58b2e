"""Tests for configuration assembly."""

from __future__ import annotations

import ipaddress
import logging
from datetime import timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID
from pydantic import ValidationError

pytestmark = [pytest.mark.unit, pytest.mark.config]

from freelan.config.assembler import ConfigurationAssembler, assemble
from freelan.config.loader import RawValueSet
from freelan.models import (
    CertificateValidationMethod,
    HostnameEndpoint,
    HostnameResolutionProtocol,
    IPEndpoint,
    RoutingMethod,
    SwitchConfig,
    TapAdapterConfig,
)
from freelan.security.validation import (
    CertificateValidationKind,
    DefaultValidation,
    NoValidation,
    ScriptValidation,
)
from freelan.utils.exceptions import (
    CredentialLoadError,
    InvalidEnumValueError,
    MissingRequiredOptionError,
)


def _raw(minimal_cli_values, **overrides) -> RawValueSet:
    values = {name: (value,) for name, value in minimal_cli_values.items()}
    for key, value in overrides.items():
        name = key.replace("__", ".")
        values[name] = value if isinstance(value, tuple) else (value,)
    return RawValueSet(values)


class TestMinimalAssembly:
    """Tests for a raw set holding only the mandatory options."""

    def test_minimal_raw_set(self, minimal_cli_values):
        """Test assembly succeeds and optional encryption credentials are absent."""
        config = assemble(_raw(minimal_cli_values))

        identity = config.security.identity
        assert isinstance(identity.signature_certificate, x509.Certificate)
        assert identity.signature_private_key is not None
        assert identity.encryption_certificate is None
        assert identity.encryption_private_key is None
        assert not identity.has_encryption_identity

    def test_defaults_are_applied(self, minimal_cli_values):
        """Test every other option takes its default."""
        config = assemble(_raw(minimal_cli_values))

        assert config.fscp.hostname_resolution_protocol is HostnameResolutionProtocol.SYSTEM_DEFAULT
        assert config.fscp.listen_on == IPEndpoint(
            address=ipaddress.IPv4Address("0.0.0.0"), port=12000
        )
        assert config.fscp.hello_timeout == timedelta(milliseconds=3000)
        assert config.fscp.contact_list == ()
        assert config.security.certificate_validation_method is CertificateValidationMethod.DEFAULT
        assert isinstance(config.security.certificate_validation, DefaultValidation)
        assert config.security.certificate_authority_list == ()
        assert config.tap_adapter.enabled is True
        assert str(config.tap_adapter.ipv4_address_prefix_length) == "9.0.0.1/24"
        assert str(config.tap_adapter.ipv6_address_prefix_length) == "fe80::1/10"
        assert config.tap_adapter.arp_proxy_enabled is False
        assert str(config.tap_adapter.arp_proxy_fake_ethernet_address) == "00:aa:bb:cc:dd:ee"
        assert config.tap_adapter.dhcp_proxy_enabled is True
        assert str(config.tap_adapter.dhcp_server_ipv4_address_prefix_length) == "9.0.0.0/24"
        assert str(config.tap_adapter.dhcp_server_ipv6_address_prefix_length) == "fe80::/10"
        assert config.switch.routing_method is RoutingMethod.SWITCH
        assert config.switch.relay_mode_enabled is False

    def test_model_defaults_match_option_defaults(self, minimal_cli_values):
        """Test the models default to what the option schema resolves to."""
        config = assemble(_raw(minimal_cli_values))

        assert config.tap_adapter == TapAdapterConfig()
        assert config.switch == SwitchConfig()

    def test_configuration_is_frozen(self, minimal_cli_values):
        """Test the aggregate can not be modified."""
        config = assemble(_raw(minimal_cli_values))

        with pytest.raises(ValidationError):
            config.switch = None


class TestAssemblyValues:
    """Tests for converted option values."""

    def test_fscp_values(self, minimal_cli_values):
        """Test channel options are converted."""
        config = assemble(
            _raw(
                minimal_cli_values,
                fscp__hostname_resolution_protocol="ipv6",
                fscp__listen_on="[::]:12001",
                fscp__hello_timeout="500",
                fscp__contact=("peer.example.org:12000", "10.0.0.2:12000"),
            )
        )

        assert config.fscp.hostname_resolution_protocol is HostnameResolutionProtocol.IPV6
        assert str(config.fscp.listen_on) == "[::]:12001"
        assert config.fscp.hello_timeout == timedelta(milliseconds=500)
        assert config.fscp.contact_list == (
            HostnameEndpoint(host="peer.example.org", port=12000),
            IPEndpoint(address=ipaddress.IPv4Address("10.0.0.2"), port=12000),
        )

    def test_bogus_resolution_protocol(self, minimal_cli_values):
        """Test an unknown resolution protocol aborts assembly."""
        with pytest.raises(InvalidEnumValueError) as exc_info:
            assemble(_raw(minimal_cli_values, fscp__hostname_resolution_protocol="bogus"))

        assert exc_info.value.name == "fscp.hostname_resolution_protocol"

    def test_tap_adapter_and_switch_values(self, minimal_cli_values):
        """Test adapter and switch options are converted."""
        config = assemble(
            _raw(
                minimal_cli_values,
                tap_adapter__enabled="no",
                tap_adapter__ipv6_address_prefix_length="",
                tap_adapter__arp_proxy_enabled="yes",
                tap_adapter__arp_proxy_fake_ethernet_address="02:00:00:00:00:01",
                switch__routing_method="hub",
                switch__relay_mode_enabled="on",
            )
        )

        assert config.tap_adapter.enabled is False
        assert config.tap_adapter.ipv6_address_prefix_length is None
        assert config.tap_adapter.arp_proxy_enabled is True
        assert config.tap_adapter.arp_proxy_fake_ethernet_address.octets == bytes.fromhex(
            "020000000001"
        )
        assert config.switch.routing_method is RoutingMethod.HUB
        assert config.switch.relay_mode_enabled is True


class TestIdentity:
    """Tests for signature and encryption credentials."""

    def test_missing_signature_key(self, signature_files):
        """Test the missing signature key is named."""
        certificate_path, _ = signature_files
        raw = RawValueSet({"security.signature_certificate_file": (str(certificate_path),)})

        with pytest.raises(MissingRequiredOptionError) as exc_info:
            assemble(raw)

        assert exc_info.value.name == "security.signature_private_key_file"

    def test_unreadable_signature_certificate(self, minimal_cli_values, tmp_path):
        """Test an unreadable signature certificate names its path."""
        missing = tmp_path / "missing.crt"

        with pytest.raises(CredentialLoadError) as exc_info:
            assemble(_raw(minimal_cli_values, security__signature_certificate_file=str(missing)))

        assert exc_info.value.path == missing

    def test_encryption_pair(self, minimal_cli_values, identity_factory):
        """Test both encryption files load the encryption identity."""
        certificate_path, key_path = identity_factory("encryption")

        config = assemble(
            _raw(
                minimal_cli_values,
                security__encryption_certificate_file=str(certificate_path),
                security__encryption_private_key_file=str(key_path),
            )
        )

        assert config.security.identity.has_encryption_identity
        assert config.security.identity.encryption_private_key is not None

    def test_partial_encryption_pair_is_ignored(self, minimal_cli_values, identity_factory, caplog):
        """Test a lone encryption certificate is treated as absent."""
        certificate_path, _ = identity_factory("encryption")

        with caplog.at_level(logging.WARNING):
            config = assemble(
                _raw(
                    minimal_cli_values,
                    security__encryption_certificate_file=str(certificate_path),
                )
            )

        assert not config.security.identity.has_encryption_identity
        assert "Ignoring the encryption certificate" in caplog.text


class TestValidationStrategy:
    """Tests for certificate validation wiring."""

    def test_none_method(self, minimal_cli_values):
        """Test the none method selects the accept-all strategy."""
        config = assemble(_raw(minimal_cli_values, security__certificate_validation_method="none"))

        assert config.security.certificate_validation_method is CertificateValidationMethod.NONE
        assert isinstance(config.security.certificate_validation, NoValidation)

    def test_script_overrides_method(self, minimal_cli_values):
        """Test a validation script selects the script strategy."""
        config = assemble(
            _raw(
                minimal_cli_values,
                security__certificate_validation_method="none",
                security__certificate_validation_script="/usr/local/bin/check-cert",
            )
        )

        validation = config.security.certificate_validation
        assert isinstance(validation, ScriptValidation)
        assert validation.kind is CertificateValidationKind.SCRIPT
        assert validation.script == Path("/usr/local/bin/check-cert")
        assert config.security.certificate_validation_method is CertificateValidationMethod.NONE

    def test_empty_script_is_ignored(self, minimal_cli_values):
        """Test an empty script path keeps the method's strategy."""
        config = assemble(_raw(minimal_cli_values, security__certificate_validation_script=""))

        assert isinstance(config.security.certificate_validation, DefaultValidation)


class TestAuthorities:
    """Tests for authority certificates."""

    def test_authorities_keep_order(self, minimal_cli_values, identity_factory):
        """Test authority certificates are loaded in list order."""
        paths = [str(identity_factory(f"ca{i}")[0]) for i in range(3)]

        config = assemble(_raw(minimal_cli_values, security__authority_certificate_file=tuple(paths)))

        names = [
            cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value
            for cert in config.security.certificate_authority_list
        ]
        assert names == ["ca0", "ca1", "ca2"]

    def test_unreadable_authority(self, minimal_cli_values, identity_factory, tmp_path):
        """Test one unreadable authority among valid ones aborts assembly."""
        paths = [str(identity_factory(f"ca{i}")[0]) for i in range(3)]
        unreadable = tmp_path / "unreadable.crt"
        paths.insert(1, str(unreadable))

        assembler = ConfigurationAssembler(
            _raw(minimal_cli_values, security__authority_certificate_file=tuple(paths))
        )
        with pytest.raises(CredentialLoadError) as exc_info:
            assembler.assemble()

        assert exc_info.value.path == unreadable

    def test_unparsable_authority(self, minimal_cli_values, tmp_path):
        """Test garbage content is reported like a missing file."""
        garbage = tmp_path / "garbage.crt"
        garbage.write_bytes(b"not a certificate")

        with pytest.raises(CredentialLoadError) as exc_info:
            assemble(_raw(minimal_cli_values, security__authority_certificate_file=(str(garbage),)))

        assert exc_info.value.path == garbage
