"""A bounded list of addresses of one family, handed out round-robin."""

from __future__ import annotations

import ipaddress
import socket
from typing import Iterator, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

IP_LIST_NUM_MAX = 65536


class IPList:
    """Addresses of a single address family, cycled through by ``next_*``."""

    def __init__(self, family: int | None = None) -> None:
        self.family = family
        self.addresses: list[IPAddress] = []
        self.position = 0

    def __len__(self) -> int:
        return len(self.addresses)

    def __iter__(self) -> Iterator[IPAddress]:
        return iter(self.addresses)

    def add(self, family: int, address: IPAddress) -> None:
        """Append an address; all addresses must share one family."""
        if address is None:
            raise TypeError("address must not be None")
        if family not in (socket.AF_INET, socket.AF_INET6):
            raise ValueError(f"unsupported address family {family}")
        if len(self.addresses) >= IP_LIST_NUM_MAX:
            raise OverflowError(f"address list holds at most {IP_LIST_NUM_MAX} entries")
        if not self.addresses:
            self.family = family
        elif self.family != family:
            raise ValueError("address family differs from the addresses already listed")
        self.addresses.append(address)

    def split(self, start: int, step: int) -> IPList:
        """Return a new list of every ``step``-th address from ``start``."""
        if start < 0 or step <= 0:
            raise ValueError(f"bad split start={start} step={step}")
        sub = IPList(self.family)
        sub.addresses = self.addresses[start::step]
        return sub

    def _advance(self) -> IPAddress:
        if not self.addresses:
            raise IndexError("address list is empty")
        address = self.addresses[self.position]
        self.position += 1
        if self.position >= len(self.addresses):
            self.position = 0
        return address

    def next_ipv4(self) -> ipaddress.IPv4Address:
        """The next address as IPv4 (its low 32 bits)."""
        return ipaddress.IPv4Address(int(self._advance()) & 0xFFFFFFFF)

    def next_ipv6(self) -> ipaddress.IPv6Address:
        """The next address as IPv6."""
        return ipaddress.IPv6Address(int(self._advance()))