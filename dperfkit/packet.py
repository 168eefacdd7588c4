"""Inspection of raw Ethernet frames: neighbour detection and log lines."""

from __future__ import annotations

import struct
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

ETH_HDR_LEN = 14
IPV4_HDR_LEN = 20
IPV6_HDR_LEN = 40
TCP_HDR_LEN = 20

ETHER_TYPE_IPV4 = 0x0800
ETHER_TYPE_ARP = 0x0806
ETHER_TYPE_IPV6 = 0x86DD

IPPROTO_TCP = 6
IPPROTO_ICMPV6 = 58

ND_NEIGHBOR_SOLICIT = 135
ND_NEIGHBOR_ADVERT = 136

TH_FIN = 0x01
TH_SYN = 0x02
TH_RST = 0x04
TH_PUSH = 0x08
TH_ACK = 0x10


def _need(frame: bytes, size: int, what: str) -> None:
    if len(frame) < size:
        raise ValueError(f"frame of {len(frame)} bytes too short for {what}")


def format_mac(mac: BytesLike) -> str:
    """Colon-separated lower-case hex form of a 6-byte MAC address."""
    value = bytes(mac)
    if len(value) != 6:
        raise ValueError(f"MAC address must be 6 bytes, got {len(value)}")
    return ":".join(f"{byte:02x}" for byte in value)


def _ether_type(frame: bytes) -> int:
    _need(frame, ETH_HDR_LEN, "an Ethernet header")
    return struct.unpack_from("!H", frame, 12)[0]


def is_neighbor_packet(frame: BytesLike) -> bool:
    """True for ARP and for IPv6 neighbour solicitations and advertisements."""
    frame = bytes(frame)
    ether_type = _ether_type(frame)
    if ether_type == ETHER_TYPE_ARP:
        return True
    if ether_type == ETHER_TYPE_IPV6:
        _need(frame, ETH_HDR_LEN + IPV6_HDR_LEN, "an IPv6 header")
        if frame[ETH_HDR_LEN + 6] == IPPROTO_ICMPV6:
            _need(frame, ETH_HDR_LEN + IPV6_HDR_LEN + 1, "an ICMPv6 header")
            return frame[ETH_HDR_LEN + IPV6_HDR_LEN] in (
                ND_NEIGHBOR_SOLICIT,
                ND_NEIGHBOR_ADVERT,
            )
    return False


def _ipv4(raw: bytes) -> str:
    return ".".join(str(byte) for byte in raw)


def _ipv6(raw: bytes) -> str:
    return ":".join(f"{group:04x}" for group in struct.unpack("!8H", raw))


def describe_frame(frame: BytesLike, tag: str, seconds: int = 0, ticks: int = 0) -> str:
    """One log line describing the frame, ending with a newline."""
    frame = bytes(frame)
    ether_type = _ether_type(frame)
    dmac = format_mac(frame[0:6])
    smac = format_mac(frame[6:12])

    if ether_type == ETHER_TYPE_IPV4:
        ip = ETH_HDR_LEN
        _need(frame, ip + IPV4_HDR_LEN, "an IPv4 header")
        version_ihl, tos, tot_len, ip_id = struct.unpack_from("!BBHH", frame, ip)
        # The fragment field is shown as read in host (little-endian) order.
        frag_off = int.from_bytes(frame[ip + 6:ip + 8], "little")
        ttl, protocol = frame[ip + 8], frame[ip + 9]
        saddr = _ipv4(frame[ip + 12:ip + 16])
        daddr = _ipv4(frame[ip + 16:ip + 20])
        if protocol != IPPROTO_TCP:
            return (
                f"sec {seconds} ticks {ticks} {tag} muf: {smac} -> {dmac} "
                f"{saddr} ->{daddr} proto {protocol}\n"
            )
        tcp = ip + IPV4_HDR_LEN
        _need(frame, tcp + TCP_HDR_LEN, "a TCP header")
        sport, dport, seq, ack_num, off_byte, flags = struct.unpack_from(
            "!HHIIBB", frame, tcp
        )
        th_off = off_byte >> 4
        length = tot_len - IPV4_HDR_LEN - th_off * 4
        return (
            f"sec {seconds} ticks {ticks} {tag} mbuf:  {smac} -> {dmac} "
            f"{saddr}:{sport} -> {daddr}:{dport} "
            f"version {version_ihl >> 4} ihl {version_ihl & 0xF} tos {tos:x} "
            f"ttl {ttl} frg_off {frag_off:x} ip.id {ip_id} "
            f"syn {int(bool(flags & TH_SYN))} fin {int(bool(flags & TH_FIN))} "
            f"push {int(bool(flags & TH_PUSH))} ack {int(bool(flags & TH_ACK))} "
            f"rst {int(bool(flags & TH_RST))} seq {seq} ack {ack_num} "
            f"th_off {th_off} iplen {tot_len} len = {length}\n"
        )

    if ether_type == ETHER_TYPE_IPV6:
        ip = ETH_HDR_LEN
        _need(frame, ip + IPV6_HDR_LEN, "an IPv6 header")
        return (
            f"muf: {smac} -> {dmac} {_ipv6(frame[ip + 8:ip + 24])} "
            f"->{_ipv6(frame[ip + 24:ip + 40])} proto {frame[ip + 6]}\n"
        )

    if ether_type == ETHER_TYPE_ARP:
        return f"muf: {smac} -> {dmac} arp\n"

    return f"muf: {smac} -> {dmac} type {ether_type:x}\n"