"""IPv4 and IPv6 address helpers.

An IPv4 address lines up with the low 32 bits of an IPv6 address.
"""

from __future__ import annotations

import ipaddress
from typing import Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

IP6_ADDR_SIZE = 16
_LOW32 = 0xFFFFFFFF


def parse_ipaddr(text: str) -> IPAddress:
    """Parse an address; text holding ':' is IPv6, anything else IPv4.

    Raises ValueError for text that is not a valid address.
    """
    if ":" in text:
        if "%" in text:
            raise ValueError(f"invalid IPv6 address: {text!r}")
        return ipaddress.IPv6Address(text)
    return ipaddress.IPv4Address(text)


def increment_ipv4(address: IPAddress, n: int) -> IPAddress:
    """Add ``n`` to the low 32 bits of the address, wrapping within them."""
    value = int(address)
    low = ((value & _LOW32) + n) & _LOW32
    if isinstance(address, ipaddress.IPv4Address):
        return ipaddress.IPv4Address(low)
    return ipaddress.IPv6Address((value & ~_LOW32) | low)


def join_address(prefix: IPAddress, last: int | ipaddress.IPv4Address) -> IPAddress:
    """Replace the low 32 bits of ``prefix`` with ``last``."""
    low = int(last) & _LOW32
    if isinstance(prefix, ipaddress.IPv4Address):
        return ipaddress.IPv4Address(low)
    return ipaddress.IPv6Address((int(prefix) & ~_LOW32) | low)


def last_byte(address: IPAddress) -> int:
    """The final byte of the address."""
    return int(address) & 0xFF