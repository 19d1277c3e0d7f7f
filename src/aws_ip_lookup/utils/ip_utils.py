"""IP address parsing helpers."""

from __future__ import annotations

import ipaddress
from typing import Optional, Union

from ..models import ParameterError

IPv4Address = ipaddress.IPv4Address
IPv6Address = ipaddress.IPv6Address
IPv4Network = ipaddress.IPv4Network
IPv6Network = ipaddress.IPv6Network
IPAddress = Union[IPv4Address, IPv6Address]
IPNetwork = Union[IPv4Network, IPv6Network]

MISSING_IP_MESSAGE = '"ip" parameter is missing!'
EMPTY_IP_MESSAGE = '"ip" parameter is empty!'
INVALID_IP_MESSAGE = '"ip" parameter is not a valid IP address!'


def parse_address(value: Optional[str]) -> IPAddress:
    """Parse a requested address, raising ParameterError for bad input.

    The text is used exactly as given: surrounding whitespace, zone ids and
    CIDR suffixes are all rejected.
    """
    if value is None:
        raise ParameterError(MISSING_IP_MESSAGE)
    if value == "":
        raise ParameterError(EMPTY_IP_MESSAGE)
    if "%" in value:
        raise ParameterError(INVALID_IP_MESSAGE, details="scoped addresses are not supported")
    try:
        return ipaddress.ip_address(value)
    except ValueError as e:
        raise ParameterError(INVALID_IP_MESSAGE, details=str(e)) from e
