"""Conversion of raw option tokens into typed configuration values.

Every converter takes the option name and one token. The name is only used to
build the error raised when the token is rejected.
"""

from __future__ import annotations

import ipaddress
import re
from datetime import timedelta
from typing import Literal

from pydantic import ValidationError

from freelan.models import (
    AddressPrefix,
    CertificateValidationMethod,
    Endpoint,
    EthernetAddress,
    HostnameEndpoint,
    HostnameResolutionProtocol,
    IPEndpoint,
    RoutingMethod,
)
from freelan.utils.exceptions import (
    InvalidAddressPrefixError,
    InvalidBooleanValueError,
    InvalidEndpointError,
    InvalidEnumValueError,
    InvalidHardwareAddressError,
    InvalidNumberValueError,
)

MAX_UNSIGNED = 2**32 - 1

_TRUE_TOKENS = frozenset({"true", "yes", "on", "1"})
_FALSE_TOKENS = frozenset({"false", "no", "off", "0"})

_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_ETHERNET_ADDRESS = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")
_DECIMAL = re.compile(r"^[0-9]+$")


def _enum_choices(enum_type: type) -> tuple[str, ...]:
    return tuple(member.value for member in enum_type)


def to_hostname_resolution_protocol(name: str, token: str) -> HostnameResolutionProtocol:
    """Convert a token into a hostname resolution protocol."""
    try:
        return HostnameResolutionProtocol(token)
    except ValueError:
        raise InvalidEnumValueError(
            name, token, _enum_choices(HostnameResolutionProtocol)
        ) from None


def to_certificate_validation_method(name: str, token: str) -> CertificateValidationMethod:
    """Convert a token into a certificate validation method."""
    try:
        return CertificateValidationMethod(token)
    except ValueError:
        raise InvalidEnumValueError(
            name, token, _enum_choices(CertificateValidationMethod)
        ) from None


def to_routing_method(name: str, token: str) -> RoutingMethod:
    """Convert a token into a routing method."""
    try:
        return RoutingMethod(token)
    except ValueError:
        raise InvalidEnumValueError(name, token, _enum_choices(RoutingMethod)) from None


def to_bool(name: str, token: str) -> bool:
    """Convert a token into a boolean.

    Accepts ``true/yes/on/1`` and ``false/no/off/0``, ignoring case.
    """
    lowered = token.strip().lower()
    if lowered in _TRUE_TOKENS:
        return True
    if lowered in _FALSE_TOKENS:
        return False
    raise InvalidBooleanValueError(name, token)


def to_unsigned(name: str, token: str) -> int:
    """Convert a decimal token into an unsigned 32-bit integer."""
    stripped = token.strip()
    if not _DECIMAL.match(stripped):
        raise InvalidNumberValueError(name, token)
    value = int(stripped)
    if value > MAX_UNSIGNED:
        raise InvalidNumberValueError(name, token, f"must not exceed {MAX_UNSIGNED}")
    return value


def to_duration(name: str, token: str) -> timedelta:
    """Convert a millisecond count into a duration."""
    return timedelta(milliseconds=to_unsigned(name, token))


def _is_hostname(host: str) -> bool:
    if len(host) > 253:
        return False
    labels = host[:-1].split(".") if host.endswith(".") else host.split(".")
    # A numeric last label is a malformed IPv4 address, not a hostname
    if _DECIMAL.match(labels[-1]):
        return False
    return all(_HOSTNAME_LABEL.match(label) for label in labels)


def parse_endpoint(name: str, token: str) -> Endpoint:
    """Parse a ``host:port``, ``a.b.c.d:port`` or ``[v6]:port`` endpoint.

    Args:
        name: Option name, for error reporting
        token: Endpoint text

    Returns:
        An IPEndpoint for address literals, a HostnameEndpoint otherwise

    Raises:
        InvalidEndpointError: If the token is not a valid endpoint

    """
    if token.startswith("["):
        host, sep, port_text = token[1:].partition("]:")
        if not sep:
            raise InvalidEndpointError(name, token, "expected [address]:port")
        try:
            address = ipaddress.IPv6Address(host)
        except ValueError as e:
            raise InvalidEndpointError(name, token, str(e)) from e
    else:
        host, sep, port_text = token.rpartition(":")
        if not sep or not host:
            raise InvalidEndpointError(name, token, "expected host:port")
        address = None
        try:
            address = ipaddress.IPv4Address(host)
        except ValueError:
            if not _is_hostname(host):
                raise InvalidEndpointError(name, token, "invalid host") from None

    if not _DECIMAL.match(port_text) or int(port_text) > 65535:
        raise InvalidEndpointError(name, token, "invalid port")
    port = int(port_text)

    if address is None:
        return HostnameEndpoint(host=host, port=port)
    return IPEndpoint(address=address, port=port)


def parse_address_prefix(name: str, token: str, version: Literal[4, 6]) -> AddressPrefix:
    """Parse an ``address/prefix_length`` pair of the given IP version.

    The address is kept as written, it is not reduced to its network.
    """
    address_text, sep, length_text = token.partition("/")
    if not sep:
        raise InvalidAddressPrefixError(name, token, "missing prefix length")
    if not _DECIMAL.match(length_text):
        raise InvalidAddressPrefixError(name, token, "prefix length must be a decimal number")

    try:
        address = ipaddress.ip_address(address_text)
    except ValueError as e:
        raise InvalidAddressPrefixError(name, token, str(e)) from e

    if address.version != version:
        raise InvalidAddressPrefixError(name, token, f"expected an IPv{version} address")

    try:
        return AddressPrefix(address=address, prefix_length=int(length_text))
    except ValidationError as e:
        reason = e.errors()[0]["msg"]
        raise InvalidAddressPrefixError(name, token, reason) from e


def parse_optional_address_prefix(
    name: str, token: str, version: Literal[4, 6]
) -> AddressPrefix | None:
    """Like :func:`parse_address_prefix`, but an empty token means no address."""
    if not token.strip():
        return None
    return parse_address_prefix(name, token, version)


def parse_ethernet_address(name: str, token: str) -> EthernetAddress:
    """Parse six colon-separated hexadecimal octets."""
    if not _ETHERNET_ADDRESS.match(token):
        raise InvalidHardwareAddressError(name, token)
    return EthernetAddress(octets=bytes.fromhex(token.replace(":", "")))
