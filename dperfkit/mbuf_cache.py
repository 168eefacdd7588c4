"""Prebuilt packet headers that every transmitted frame starts from.

A template holds the Ethernet, IP and TCP or UDP headers, with an optional
payload. The fields that change per packet (ports, sequence numbers and, for
IPv4, the addresses) stay zero and are filled in when a frame is sent.
"""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field
from typing import Optional, Union

MacLike = Union[bytes, bytearray, memoryview, str]
AddressLike = Union[ipaddress.IPv4Address, ipaddress.IPv6Address, str, int, bytes, None]
PayloadLike = Union[str, bytes, bytearray, memoryview, None]

MBUF_DATA_SIZE = 2048

ETH_HDR_LEN = 14
IPV4_HDR_LEN = 20
IPV6_HDR_LEN = 40
TCP_HDR_LEN = 20
UDP_HDR_LEN = 8

ETHER_TYPE_IPV4 = 0x0800
ETHER_TYPE_IPV6 = 0x86DD

IPPROTO_TCP = 6
IPPROTO_UDP = 17

DEFAULT_TTL = 64
IP_FLAG_DF = 0x4000
TCP_WIN = 1460 * 40
DEFAULT_WSCALE = 13

TCP_OPT_MSS = 2
TCP_OPT_NOP = 1
TCP_OPT_WSCALE = 3


def _mac(mac: MacLike) -> bytes:
    if isinstance(mac, str):
        parts = mac.split(":")
        if len(parts) != 6:
            raise ValueError(f"bad MAC address {mac!r}")
        try:
            return bytes(int(part, 16) for part in parts)
        except ValueError as exc:
            raise ValueError(f"bad MAC address {mac!r}") from exc
    value = bytes(mac)
    if len(value) != 6:
        raise ValueError(f"MAC address must be 6 bytes, got {len(value)}")
    return value


def _ip6(address: AddressLike) -> bytes:
    if address is None:
        return bytes(16)
    if isinstance(address, (bytes, bytearray, memoryview)):
        value = bytes(address)
        if len(value) != 16:
            raise ValueError(f"IPv6 address must be 16 bytes, got {len(value)}")
        return value
    return ipaddress.IPv6Address(address).packed


def _payload(data: PayloadLike) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode()
    return bytes(data)


@dataclass
class FrameTemplate:
    """The header bytes of a frame plus the offsets of each layer."""

    ipv6: bool
    data: bytearray = field(default_factory=bytearray)
    l2_len: int = 0
    l3_len: int = 0
    l4_len: int = 0
    data_len: int = 0

    @property
    def total_len(self) -> int:
        """Number of bytes in the template."""
        return len(self.data)

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    def set_destination_mac(self, mac: MacLike) -> None:
        """Rewrite the Ethernet destination; no-op before an Ethernet header exists."""
        if self.l2_len == 0:
            return
        self.data[0:6] = _mac(mac)

    def _push(self, chunk: bytes) -> None:
        if len(self.data) + len(chunk) > MBUF_DATA_SIZE:
            raise ValueError(
                f"template would exceed {MBUF_DATA_SIZE} bytes "
                f"({len(self.data)} + {len(chunk)})"
            )
        self.data += chunk

    def _grow_ip_length(self, n: int) -> None:
        if self.ipv6:
            offset = self.l2_len + 4
        else:
            offset = self.l2_len + 2
        current = struct.unpack_from("!H", self.data, offset)[0]
        struct.pack_into("!H", self.data, offset, (current + n) & 0xFFFF)

    def _set_protocol(self, proto: int) -> None:
        offset = self.l2_len + (6 if self.ipv6 else 9)
        self.data[offset] = proto

    @property
    def _l4_offset(self) -> int:
        return self.l2_len + self.l3_len


def _push_l2(tpl: FrameTemplate, local_mac: MacLike, gateway_mac: MacLike) -> None:
    ether_type = ETHER_TYPE_IPV6 if tpl.ipv6 else ETHER_TYPE_IPV4
    tpl.l2_len = ETH_HDR_LEN
    tpl._push(_mac(gateway_mac) + _mac(local_mac) + struct.pack("!H", ether_type))


def _push_ip(tpl: FrameTemplate, source_ip: AddressLike, destination_ip: AddressLike, tos: int) -> None:
    if tpl.ipv6:
        first_word = (6 << 28) | ((tos & 0xFF) << 20)
        header = struct.pack("!IHBB", first_word, 0, 0, DEFAULT_TTL)
        header += _ip6(source_ip) + _ip6(destination_ip)
        tpl.l3_len = IPV6_HDR_LEN
    else:
        header = struct.pack(
            "!BBHHHBBH4s4s",
            (4 << 4) | 5,
            tos & 0xFF,
            IPV4_HDR_LEN,
            0,
            IP_FLAG_DF,
            DEFAULT_TTL,
            0,
            0,
            bytes(4),
            bytes(4),
        )
        tpl.l3_len = IPV4_HDR_LEN
    tpl._push(header)


def _push_tcp(tpl: FrameTemplate) -> None:
    header = struct.pack("!HHIIBBHHH", 0, 0, 0, 0, 5 << 4, 0, TCP_WIN, 0, 0)
    tpl.l4_len = TCP_HDR_LEN
    tpl._push(header)
    tpl._set_protocol(IPPROTO_TCP)
    tpl._grow_ip_length(tpl.l4_len)


def _push_tcp_option(tpl: FrameTemplate, option: bytes) -> None:
    if len(option) % 4:
        raise ValueError(f"TCP option length {len(option)} is not a multiple of 4")
    offset = tpl._l4_offset + 12
    tpl.data[offset] = (tpl.data[offset] + 0x10) & 0xFF
    tpl.l4_len += len(option)
    tpl._push(option)
    tpl._grow_ip_length(len(option))


def _push_data(tpl: FrameTemplate, data: PayloadLike) -> None:
    payload = _payload(data)
    if not payload:
        return
    tpl._push(payload)
    tpl.data_len = len(payload)
    tpl._grow_ip_length(len(payload))


def build_tcp_template(
    local_mac: MacLike,
    gateway_mac: MacLike,
    ipv6: bool = False,
    source_ip: AddressLike = None,
    destination_ip: AddressLike = None,
    tos: int = 0,
    mss: int = 0,
    data: PayloadLike = None,
) -> FrameTemplate:
    """Template of a TCP frame.

    A non-zero ``mss`` adds the MSS and window-scale options. The addresses
    are written for IPv6 only; IPv4 addresses are left zero.
    Raises ValueError when the frame would not fit in MBUF_DATA_SIZE bytes.
    """
    if not 0 <= mss <= 0xFFFF:
        raise ValueError(f"mss {mss} out of range 0..65535")
    tpl = FrameTemplate(ipv6=bool(ipv6))
    _push_l2(tpl, local_mac, gateway_mac)
    _push_ip(tpl, source_ip, destination_ip, tos)
    _push_tcp(tpl)
    if mss > 0:
        _push_tcp_option(tpl, struct.pack("!BBH", TCP_OPT_MSS, 4, mss))
        _push_tcp_option(tpl, bytes((TCP_OPT_NOP, TCP_OPT_WSCALE, 3, DEFAULT_WSCALE)))
    _push_data(tpl, data)
    return tpl


def build_udp_template(
    local_mac: MacLike,
    gateway_mac: MacLike,
    ipv6: bool = False,
    source_ip: AddressLike = None,
    destination_ip: AddressLike = None,
    tos: int = 0,
    data: Optional[PayloadLike] = None,
) -> FrameTemplate:
    """Template of a UDP frame whose length field covers the payload.

    The addresses are written for IPv6 only; IPv4 addresses are left zero.
    Raises ValueError when the frame would not fit in MBUF_DATA_SIZE bytes.
    """
    tpl = FrameTemplate(ipv6=bool(ipv6))
    _push_l2(tpl, local_mac, gateway_mac)
    _push_ip(tpl, source_ip, destination_ip, tos)
    tpl.l4_len = UDP_HDR_LEN
    tpl._set_protocol(IPPROTO_UDP)
    tpl._grow_ip_length(tpl.l4_len)
    tpl._push(struct.pack("!HHHH", 0, 0, UDP_HDR_LEN, 0))
    _push_data(tpl, data)
    struct.pack_into("!H", tpl.data, tpl._l4_offset + 4, tpl.l4_len + tpl.data_len)
    return tpl