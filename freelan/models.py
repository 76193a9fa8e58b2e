"""Pydantic models for freelan.

Provides the validated, immutable configuration aggregate consumed by the
engine at startup, and the value types it is made of.
"""

from __future__ import annotations

import ipaddress
from datetime import timedelta
from enum import Enum
from typing import Union

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from pydantic import BaseModel, Field, field_validator, model_validator

from freelan.security.validation import (
    CertificateValidation,
    DefaultValidation,
)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class HostnameResolutionProtocol(str, Enum):
    """Address family used when resolving hostnames."""

    SYSTEM_DEFAULT = "system_default"
    IPV4 = "ipv4"
    IPV6 = "ipv6"


class CertificateValidationMethod(str, Enum):
    """Certificate validation methods."""

    DEFAULT = "default"
    NONE = "none"


class RoutingMethod(str, Enum):
    """Routing methods for switched messages."""

    SWITCH = "switch"
    HUB = "hub"


class IPEndpoint(BaseModel):
    """An IP address and a port."""

    address: IPAddress = Field(..., description="IPv4 or IPv6 address")
    port: int = Field(..., ge=0, le=65535, description="Port number")

    def __str__(self) -> str:
        """Render as ``a.b.c.d:port`` or ``[v6]:port``."""
        if self.address.version == 6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"

    model_config = {"frozen": True}


class HostnameEndpoint(BaseModel):
    """A hostname, resolved later by the engine, and a port."""

    host: str = Field(..., min_length=1, description="Hostname")
    port: int = Field(..., ge=0, le=65535, description="Port number")

    def __str__(self) -> str:
        """Render as ``host:port``."""
        return f"{self.host}:{self.port}"

    model_config = {"frozen": True}


Endpoint = Union[IPEndpoint, HostnameEndpoint]


class AddressPrefix(BaseModel):
    """An interface address with its prefix length (CIDR notation)."""

    address: IPAddress = Field(..., description="Interface address")
    prefix_length: int = Field(..., ge=0, description="Network prefix length")

    @model_validator(mode="after")
    def validate_prefix_length(self) -> AddressPrefix:
        """Ensure the prefix length fits the address family."""
        if self.prefix_length > self.address.max_prefixlen:
            msg = (
                f"prefix length {self.prefix_length} exceeds "
                f"{self.address.max_prefixlen} for {self.address}"
            )
            raise ValueError(msg)
        return self

    @property
    def network(self) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
        """Network the address belongs to."""
        return ipaddress.ip_network(f"{self.address}/{self.prefix_length}", strict=False)

    def __str__(self) -> str:
        """Render as ``address/prefix_length``."""
        return f"{self.address}/{self.prefix_length}"

    model_config = {"frozen": True}


class EthernetAddress(BaseModel):
    """A 6-byte hardware address."""

    octets: bytes = Field(..., description="Raw address bytes")

    @field_validator("octets")
    @classmethod
    def validate_octets(cls, v: bytes) -> bytes:
        """Ethernet addresses are exactly six bytes long."""
        if len(v) != 6:
            msg = f"ethernet address must be 6 bytes long, got {len(v)}"
            raise ValueError(msg)
        return v

    def __str__(self) -> str:
        """Render as colon-separated lowercase hex."""
        return ":".join(f"{octet:02x}" for octet in self.octets)

    model_config = {"frozen": True}


class FscpConfig(BaseModel):
    """FreeLAN Secure Channel Protocol configuration."""

    hostname_resolution_protocol: HostnameResolutionProtocol = Field(
        default=HostnameResolutionProtocol.SYSTEM_DEFAULT,
        description="The hostname resolution protocol to use",
    )
    listen_on: Endpoint = Field(..., description="The endpoint to listen on")
    hello_timeout: timedelta = Field(
        default=timedelta(milliseconds=3000),
        description="The timeout for HELLO messages",
    )
    contact_list: tuple[Endpoint, ...] = Field(
        default=(),
        description="The hosts to contact at startup",
    )

    model_config = {"frozen": True}


class IdentityStore(BaseModel):
    """The certificates and private keys identifying this node."""

    signature_certificate: x509.Certificate = Field(
        ..., description="Certificate used for signing"
    )
    signature_private_key: PrivateKeyTypes = Field(
        ..., description="Private key used for signing"
    )
    encryption_certificate: x509.Certificate | None = Field(
        None, description="Certificate used for encryption"
    )
    encryption_private_key: PrivateKeyTypes | None = Field(
        None, description="Private key used for encryption"
    )

    @model_validator(mode="after")
    def validate_encryption_pair(self) -> IdentityStore:
        """The encryption certificate and key come as a pair or not at all."""
        if (self.encryption_certificate is None) != (self.encryption_private_key is None):
            msg = "encryption certificate and private key must be set together"
            raise ValueError(msg)
        return self

    @property
    def has_encryption_identity(self) -> bool:
        """Whether a distinct encryption key pair is configured."""
        return self.encryption_certificate is not None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class SecurityConfig(BaseModel):
    """Security related configuration."""

    identity: IdentityStore = Field(..., description="Node identity")
    certificate_validation_method: CertificateValidationMethod = Field(
        default=CertificateValidationMethod.DEFAULT,
        description="The certificate validation method",
    )
    certificate_validation: CertificateValidation = Field(
        default_factory=DefaultValidation,
        description="Strategy the engine dispatches on to validate peers",
    )
    certificate_authority_list: tuple[x509.Certificate, ...] = Field(
        default=(),
        description="Trusted authority certificates",
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class TapAdapterConfig(BaseModel):
    """Virtual network adapter configuration."""

    enabled: bool = Field(default=True, description="Whether to enable the tap adapter")
    ipv4_address_prefix_length: AddressPrefix | None = Field(
        default_factory=lambda: AddressPrefix(address=ipaddress.ip_address("9.0.0.1"), prefix_length=24),
        description="The tap adapter IPv4 address and prefix length",
    )
    ipv6_address_prefix_length: AddressPrefix | None = Field(
        default_factory=lambda: AddressPrefix(address=ipaddress.ip_address("fe80::1"), prefix_length=10),
        description="The tap adapter IPv6 address and prefix length",
    )
    arp_proxy_enabled: bool = Field(default=False, description="Whether to enable the ARP proxy")
    arp_proxy_fake_ethernet_address: EthernetAddress = Field(
        default_factory=lambda: EthernetAddress(octets=bytes.fromhex("00aabbccddee")),
        description="The ARP proxy fake ethernet address",
    )
    dhcp_proxy_enabled: bool = Field(default=True, description="Whether to enable the DHCP proxy")
    dhcp_server_ipv4_address_prefix_length: AddressPrefix | None = Field(
        default_factory=lambda: AddressPrefix(address=ipaddress.ip_address("9.0.0.0"), prefix_length=24),
        description="The DHCP proxy server IPv4 address and prefix length",
    )
    dhcp_server_ipv6_address_prefix_length: AddressPrefix | None = Field(
        default_factory=lambda: AddressPrefix(address=ipaddress.ip_address("fe80::"), prefix_length=10),
        description="The DHCP proxy server IPv6 address and prefix length",
    )

    model_config = {"frozen": True}


class SwitchConfig(BaseModel):
    """Message switching configuration."""

    routing_method: RoutingMethod = Field(
        default=RoutingMethod.SWITCH, description="The routing method for messages"
    )
    relay_mode_enabled: bool = Field(
        default=False, description="Whether to enable the relay mode"
    )

    model_config = {"frozen": True}


class Configuration(BaseModel):
    """Main configuration aggregate handed to the engine."""

    fscp: FscpConfig = Field(..., description="FSCP configuration")
    security: SecurityConfig = Field(..., description="Security configuration")
    tap_adapter: TapAdapterConfig = Field(
        default_factory=TapAdapterConfig,
        description="Tap adapter configuration",
    )
    switch: SwitchConfig = Field(
        default_factory=SwitchConfig,
        description="Switch configuration",
    )

    model_config = {"frozen": True}
