"""Option schema registry.

Each configuration domain declares its options in a data-only table. The
tables are combined into one schema that drives the command line, the
configuration file parser and the default values.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, model_validator

from freelan.utils.exceptions import DuplicateOptionDescriptorError

OptionDefault = Union[str, tuple[str, ...], None]
OptionSchema = dict[str, "OptionDescriptor"]


class OptionKind(str, Enum):
    """Shape of the raw value an option accepts."""

    STRING = "string"
    BOOLEAN = "boolean"
    UNSIGNED = "unsigned"
    STRING_LIST = "string_list"


class OptionDomain(str, Enum):
    """Configuration domains, also the option name prefixes."""

    FSCP = "fscp"
    SECURITY = "security"
    TAP_ADAPTER = "tap_adapter"
    SWITCH = "switch"


class OptionDescriptor(BaseModel):
    """Declaration of one configuration option."""

    name: str = Field(..., pattern=r"^[a-z_]+\.[a-z0-9_]+$", description="domain.option")
    kind: OptionKind = Field(default=OptionKind.STRING, description="Raw value shape")
    default: OptionDefault = Field(None, description="Default token(s)")
    required: bool = Field(default=False, description="Whether a value must be given")
    description: str = Field(default="", description="Help text")

    @model_validator(mode="after")
    def validate_default(self) -> OptionDescriptor:
        """List options default to a tuple, single options to a string."""
        if self.default is None:
            return self
        if self.multiple != isinstance(self.default, tuple):
            msg = f"default of {self.name} does not match kind {self.kind.value}"
            raise ValueError(msg)
        return self

    @property
    def domain(self) -> str:
        """Domain prefix of the option name."""
        return self.name.split(".", 1)[0]

    @property
    def key(self) -> str:
        """Option name without its domain prefix."""
        return self.name.split(".", 1)[1]

    @property
    def multiple(self) -> bool:
        """Whether the option accepts several values."""
        return self.kind is OptionKind.STRING_LIST

    @property
    def default_tokens(self) -> tuple[str, ...]:
        """Default value as a tuple of tokens (empty when there is none)."""
        if self.default is None:
            return ()
        if isinstance(self.default, tuple):
            return self.default
        return (self.default,)

    model_config = {"frozen": True}


def _option(
    name: str,
    description: str,
    kind: OptionKind = OptionKind.STRING,
    default: OptionDefault = None,
    required: bool = False,
) -> OptionDescriptor:
    return OptionDescriptor(
        name=name,
        kind=kind,
        default=default,
        required=required,
        description=description,
    )


FSCP_OPTIONS: tuple[OptionDescriptor, ...] = (
    _option(
        "fscp.hostname_resolution_protocol",
        "The hostname resolution protocol to use.",
        default="system_default",
    ),
    _option(
        "fscp.listen_on",
        "The endpoint to listen on.",
        default="0.0.0.0:12000",
    ),
    _option(
        "fscp.hello_timeout",
        "The default timeout for HELLO messages, in milliseconds.",
        kind=OptionKind.UNSIGNED,
        default="3000",
    ),
    _option(
        "fscp.contact",
        "The address of a host to contact.",
        kind=OptionKind.STRING_LIST,
        default=(),
    ),
)

SECURITY_OPTIONS: tuple[OptionDescriptor, ...] = (
    _option(
        "security.signature_certificate_file",
        "The certificate file to use for signing.",
        required=True,
    ),
    _option(
        "security.signature_private_key_file",
        "The private key file to use for signing.",
        required=True,
    ),
    _option(
        "security.encryption_certificate_file",
        "The certificate file to use for encryption.",
    ),
    _option(
        "security.encryption_private_key_file",
        "The private key file to use for encryption.",
    ),
    _option(
        "security.certificate_validation_method",
        "The certificate validation method.",
        default="default",
    ),
    _option(
        "security.certificate_validation_script",
        "The certificate validation script to use.",
    ),
    _option(
        "security.authority_certificate_file",
        "An authority certificate file to use.",
        kind=OptionKind.STRING_LIST,
        default=(),
    ),
)

TAP_ADAPTER_OPTIONS: tuple[OptionDescriptor, ...] = (
    _option(
        "tap_adapter.enabled",
        "Whether to enable the tap adapter.",
        kind=OptionKind.BOOLEAN,
        default="yes",
    ),
    _option(
        "tap_adapter.ipv4_address_prefix_length",
        "The tap adapter IPv4 address and prefix length.",
        default="9.0.0.1/24",
    ),
    _option(
        "tap_adapter.ipv6_address_prefix_length",
        "The tap adapter IPv6 address and prefix length.",
        default="fe80::1/10",
    ),
    _option(
        "tap_adapter.arp_proxy_enabled",
        "Whether to enable the ARP proxy.",
        kind=OptionKind.BOOLEAN,
        default="no",
    ),
    _option(
        "tap_adapter.arp_proxy_fake_ethernet_address",
        "The ARP proxy fake ethernet address.",
        default="00:aa:bb:cc:dd:ee",
    ),
    _option(
        "tap_adapter.dhcp_proxy_enabled",
        "Whether to enable the DHCP proxy.",
        kind=OptionKind.BOOLEAN,
        default="yes",
    ),
    _option(
        "tap_adapter.dhcp_server_ipv4_address_prefix_length",
        "The DHCP proxy server IPv4 address and prefix length.",
        default="9.0.0.0/24",
    ),
    _option(
        "tap_adapter.dhcp_server_ipv6_address_prefix_length",
        "The DHCP proxy server IPv6 address and prefix length.",
        default="fe80::/10",
    ),
)

SWITCH_OPTIONS: tuple[OptionDescriptor, ...] = (
    _option(
        "switch.routing_method",
        "The routing method for messages.",
        default="switch",
    ),
    _option(
        "switch.relay_mode_enabled",
        "Whether to enable the relay mode.",
        kind=OptionKind.BOOLEAN,
        default="no",
    ),
)

_DOMAIN_TABLES: dict[OptionDomain, tuple[OptionDescriptor, ...]] = {
    OptionDomain.FSCP: FSCP_OPTIONS,
    OptionDomain.SECURITY: SECURITY_OPTIONS,
    OptionDomain.TAP_ADAPTER: TAP_ADAPTER_OPTIONS,
    OptionDomain.SWITCH: SWITCH_OPTIONS,
}


def describe_domain(domain: OptionDomain | str) -> tuple[OptionDescriptor, ...]:
    """Return the option descriptors of one domain."""
    return _DOMAIN_TABLES[OptionDomain(domain)]


def combined_schema(*tables: tuple[OptionDescriptor, ...]) -> OptionSchema:
    """Combine descriptor tables into one schema keyed by option name.

    Args:
        *tables: Descriptor tables, all four domains when omitted

    Returns:
        Schema mapping each option name to its descriptor, in table order

    Raises:
        DuplicateOptionDescriptorError: If two descriptors share a name

    """
    if not tables:
        tables = tuple(_DOMAIN_TABLES.values())

    schema: OptionSchema = {}
    for table in tables:
        for descriptor in table:
            if descriptor.name in schema:
                raise DuplicateOptionDescriptorError(descriptor.name)
            schema[descriptor.name] = descriptor
    return schema
