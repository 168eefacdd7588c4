"""Answers to ICMP and ICMPv6 packets, and neighbour solicitations for the gateway.

Frames are raw Ethernet frames. A function that answers a packet returns the
reply frame, or None when the packet is to be dropped.
"""

from __future__ import annotations

import ipaddress
import struct
from typing import Iterable, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview]
MacLike = Union[bytes, bytearray, memoryview, str]
AddressLike = Union[ipaddress.IPv6Address, str, int, bytes]

ETH_HDR_LEN = 14
IPV4_HDR_LEN = 20
IPV6_HDR_LEN = 40

ETHER_TYPE_IPV4 = 0x0800
ETHER_TYPE_IPV6 = 0x86DD

IPPROTO_ICMP = 1
IPPROTO_ICMPV6 = 58

DEFAULT_TTL = 64
ND_TTL = 255

ICMP_ECHOREPLY = 0
ICMP_ECHO = 8

ICMP6_ECHO_REQUEST = 128
ICMP6_ECHO_REPLY = 129
ND_NEIGHBOR_SOLICIT = 135
ND_NEIGHBOR_ADVERT = 136

ND_OPT_SOURCE_LINKADDR = 1
ND_OPT_TARGET_LINKADDR = 2

ND_NA_FLAG_SOLICITED = 0x40000000
ND_NA_FLAG_OVERRIDE = 0x20000000

_IP6 = ETH_HDR_LEN
_ICMP6 = ETH_HDR_LEN + IPV6_HDR_LEN
_ND_LEN = 24
_ND_OPT_LEN = 8


def _need(frame: BytesLike, size: int, what: str) -> None:
    if len(frame) < size:
        raise ValueError(f"frame of {len(frame)} bytes too short for {what}")


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
    if isinstance(address, (bytes, bytearray, memoryview)):
        value = bytes(address)
        if len(value) != 16:
            raise ValueError(f"IPv6 address must be 16 bytes, got {len(value)}")
        return value
    return ipaddress.IPv6Address(address).packed


def internet_checksum(data: BytesLike) -> int:
    """The 16-bit one's complement checksum of ``data``."""
    data = bytes(data)
    if len(data) % 2:
        data += b"\x00"
    total = sum(struct.unpack(f"!{len(data) // 2}H", data))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


def _icmp6_checksum(src: bytes, dst: bytes, next_header: int, payload: bytes) -> int:
    pseudo = src + dst + struct.pack("!I3xB", len(payload), next_header)
    checksum = internet_checksum(pseudo + payload)
    return checksum or 0xFFFF


def _set_icmp6_checksum(frame: bytearray) -> None:
    plen = struct.unpack_from("!H", frame, _IP6 + 4)[0]
    frame[_ICMP6 + 2:_ICMP6 + 4] = b"\x00\x00"
    payload = bytes(frame[_ICMP6:_ICMP6 + plen])
    checksum = _icmp6_checksum(
        bytes(frame[_IP6 + 8:_IP6 + 24]),
        bytes(frame[_IP6 + 24:_IP6 + 40]),
        frame[_IP6 + 6],
        payload,
    )
    struct.pack_into("!H", frame, _ICMP6 + 2, checksum)


def icmp_echo_reply(frame: BytesLike, tos: int = 0) -> Optional[bytes]:
    """Turn an ICMP echo request into its reply; other ICMP messages give None."""
    frame = bytearray(frame)
    _need(frame, ETH_HDR_LEN + IPV4_HDR_LEN, "an IPv4 header")
    if struct.unpack_from("!H", frame, 12)[0] != ETHER_TYPE_IPV4:
        raise ValueError("not an IPv4 frame")
    ip = ETH_HDR_LEN
    if frame[ip + 9] != IPPROTO_ICMP:
        raise ValueError("not an ICMP packet")
    ihl = (frame[ip] & 0x0F) * 4
    icmp = ip + ihl
    _need(frame, icmp + 4, "an ICMP header")

    if frame[icmp] != ICMP_ECHO:
        return None

    frame[icmp] = ICMP_ECHOREPLY
    # The type went from 8 to 0: adjust the checksum instead of recomputing it.
    checksum = struct.unpack_from("!H", frame, icmp + 2)[0] + 0x0800
    checksum = (checksum & 0xFFFF) + (checksum >> 16)
    struct.pack_into("!H", frame, icmp + 2, checksum & 0xFFFF)

    saddr = bytes(frame[ip + 12:ip + 16])
    frame[ip + 12:ip + 16] = frame[ip + 16:ip + 20]
    frame[ip + 16:ip + 20] = saddr
    frame[ip + 1] = tos & 0xFF
    frame[ip + 8] = DEFAULT_TTL
    frame[ip + 10:ip + 12] = b"\x00\x00"
    struct.pack_into("!H", frame, ip + 10, internet_checksum(frame[ip:ip + ihl]))

    dmac = bytes(frame[0:6])
    frame[0:6] = frame[6:12]
    frame[6:12] = dmac
    return bytes(frame)


def solicited_node_address(address: AddressLike) -> ipaddress.IPv6Address:
    """The solicited-node multicast address ff02::1:ffXX:XXXX of ``address``."""
    unicast = _ip6(address)
    return ipaddress.IPv6Address(
        bytes((0xFF, 0x02)) + bytes(9) + bytes((0x01, 0xFF)) + unicast[13:16]
    )


def multicast_mac(address: AddressLike) -> bytes:
    """The Ethernet address the solicited-node group of ``address`` maps to."""
    group = solicited_node_address(address).packed
    return bytes((0x33, 0x33)) + group[12:16]


def _echo6_reply(frame: bytearray, local_mac: bytes, local: set, tos: int) -> Optional[bytes]:
    if bytes(frame[_IP6 + 24:_IP6 + 40]) not in local:
        return None
    frame[0:6] = frame[6:12]
    frame[6:12] = local_mac

    src = bytes(frame[_IP6 + 8:_IP6 + 24])
    frame[_IP6 + 8:_IP6 + 24] = frame[_IP6 + 24:_IP6 + 40]
    frame[_IP6 + 24:_IP6 + 40] = src
    word = struct.unpack_from("!I", frame, _IP6)[0]
    struct.pack_into("!I", frame, _IP6, (word | ((tos & 0xFF) << 20)) & 0xFFFFFFFF)

    frame[_ICMP6] = ICMP6_ECHO_REPLY
    frame[_ICMP6 + 1] = 0
    _set_icmp6_checksum(frame)
    return bytes(frame)


def _solicit_reply(frame: bytearray, local_mac: bytes, local: set) -> Optional[bytes]:
    _need(frame, _ICMP6 + _ND_LEN, "a neighbour solicitation")
    target = bytes(frame[_ICMP6 + 8:_ICMP6 + 24])
    if target not in local or frame[_IP6 + 7] != ND_TTL:
        return None

    reply = bytearray(frame[:_ICMP6])
    reply[0:6] = frame[6:12]
    reply[6:12] = local_mac
    reply[_IP6 + 24:_IP6 + 40] = frame[_IP6 + 8:_IP6 + 24]
    reply[_IP6 + 8:_IP6 + 24] = target
    struct.pack_into("!H", reply, _IP6 + 4, _ND_LEN + _ND_OPT_LEN)

    reply += struct.pack(
        "!BBHI", ND_NEIGHBOR_ADVERT, 0, 0, ND_NA_FLAG_SOLICITED | ND_NA_FLAG_OVERRIDE
    )
    reply += target
    reply += bytes((ND_OPT_TARGET_LINKADDR, 1)) + local_mac
    _set_icmp6_checksum(reply)
    return bytes(reply)


def icmp6_reply(
    frame: BytesLike,
    local_mac: MacLike,
    local_addresses: Iterable[AddressLike],
    tos: int = 0,
) -> Optional[bytes]:
    """Answer an ICMPv6 echo request or neighbour solicitation.

    Echo requests to a local address get an echo reply; solicitations for a
    local address with hop limit 255 get a solicited neighbour advertisement.
    Everything else, and any message with a non-zero code, gives None.
    """
    frame = bytearray(frame)
    _need(frame, _ICMP6 + 4, "an ICMPv6 header")
    if struct.unpack_from("!H", frame, 12)[0] != ETHER_TYPE_IPV6:
        raise ValueError("not an IPv6 frame")
    if frame[_IP6 + 6] != IPPROTO_ICMPV6:
        raise ValueError("not an ICMPv6 packet")

    mac = _mac(local_mac)
    local = {_ip6(address) for address in local_addresses}
    icmp_type, code = frame[_ICMP6], frame[_ICMP6 + 1]
    if code != 0:
        return None
    if icmp_type == ICMP6_ECHO_REQUEST:
        return _echo6_reply(frame, mac, local, tos)
    if icmp_type == ND_NEIGHBOR_SOLICIT:
        return _solicit_reply(frame, mac, local)
    return None


def build_neighbor_solicit(
    local_mac: MacLike, local_ip: AddressLike, gateway_ip: AddressLike
) -> bytes:
    """A neighbour solicitation asking for the gateway's MAC address."""
    mac = _mac(local_mac)
    src = _ip6(local_ip)
    gateway = _ip6(gateway_ip)
    plen = _ND_LEN + _ND_OPT_LEN

    frame = bytearray(multicast_mac(gateway) + mac + struct.pack("!H", ETHER_TYPE_IPV6))
    frame += struct.pack("!IHBB", 6 << 28, plen, IPPROTO_ICMPV6, ND_TTL)
    frame += src + solicited_node_address(gateway).packed
    frame += struct.pack("!BBHI", ND_NEIGHBOR_SOLICIT, 0, 0, 0) + gateway
    frame += bytes((ND_OPT_SOURCE_LINKADDR, 1)) + mac
    _set_icmp6_checksum(frame)
    return bytes(frame)