"""LLDP frames that keep the members of an 802.3ad bond busy."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Union

MacLike = Union[bytes, bytearray, memoryview, str]

LLDP_ETHER_TYPE = 0x88CC
LLDP_DMAC = bytes((0x01, 0x80, 0xC2, 0x00, 0x00, 0x0E))
LLDP_TEXT = b"dpdk-dperf-hello"
LLDP_TEXT_SIZE = 16
LLDP_TTL_SECONDS = 120

BONDING_MODE_8023AD = 4

CHASSIS_ID_MAC_ADDRESS = 4
PORT_ID_MAC_ADDRESS = 3


class TLVType(IntEnum):
    """LLDP TLV types."""

    END_OF_LLDPDU = 0
    CHASSIS_ID = 1
    PORT_ID = 2
    TIME_TO_LIVE = 3
    PORT_DESCRIPTION = 4
    SYSTEM_NAME = 5
    SYSTEM_DESCRIPTION = 6
    SYSTEM_CAPABILITIES = 7
    MANAGEMENT_ADDRESS = 8
    ORG_SPECIFIC = 127


def _mac_bytes(mac: MacLike) -> bytes:
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


def _tlv(tlv_type: TLVType, value: bytes) -> bytes:
    # Seven bits of type, nine bits of length.
    return struct.pack("!H", (int(tlv_type) << 9) | len(value)) + value


def lldp_enabled(bond: bool, bond_mode: int) -> bool:
    """LLDP is sent only on a bond in 802.3ad mode."""
    return bool(bond) and bond_mode == BONDING_MODE_8023AD


def build_lldp_frame(local_mac: MacLike) -> bytes:
    """The complete Ethernet frame announcing ``local_mac``."""
    src = _mac_bytes(local_mac)
    text = LLDP_TEXT[:LLDP_TEXT_SIZE]
    return b"".join(
        (
            LLDP_DMAC,
            src,
            struct.pack("!H", LLDP_ETHER_TYPE),
            _tlv(TLVType.CHASSIS_ID, bytes((CHASSIS_ID_MAC_ADDRESS,)) + src),
            _tlv(TLVType.PORT_ID, bytes((PORT_ID_MAC_ADDRESS,)) + src),
            _tlv(TLVType.TIME_TO_LIVE, struct.pack("!H", LLDP_TTL_SECONDS)),
            _tlv(TLVType.PORT_DESCRIPTION, text),
            _tlv(TLVType.SYSTEM_NAME, text),
            _tlv(TLVType.SYSTEM_DESCRIPTION, text),
            _tlv(TLVType.END_OF_LLDPDU, b""),
        )
    )


def lldp_burst(local_mac: MacLike, pci_num: int) -> list[bytes]:
    """The frames sent in one round: two for every bond member."""
    frame = build_lldp_frame(local_mac)
    return [frame for _ in range(pci_num * 2)]