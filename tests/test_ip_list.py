import ipaddress
import socket

import pytest

from dperfkit.ip_list import IP_LIST_NUM_MAX, IPList


def _v4(n):
    return [ipaddress.IPv4Address(f"10.0.0.{i}") for i in range(1, n + 1)]


def _filled(addresses, family=socket.AF_INET):
    ip_list = IPList()
    for address in addresses:
        ip_list.add(family, address)
    return ip_list


def test_add_sets_family():
    ip_list = _filled(_v4(2))
    assert ip_list.family == socket.AF_INET
    assert list(ip_list) == _v4(2)


def test_add_family_mismatch():
    ip_list = _filled(_v4(1))
    with pytest.raises(ValueError):
        ip_list.add(socket.AF_INET6, ipaddress.IPv6Address("::1"))


def test_add_bad_family():
    with pytest.raises(ValueError):
        IPList().add(socket.AF_UNIX, ipaddress.IPv4Address("1.2.3.4"))


def test_add_none():
    with pytest.raises(TypeError):
        IPList().add(socket.AF_INET, None)


def test_add_full():
    address = ipaddress.IPv4Address("10.0.0.1")
    ip_list = IPList()
    for _ in range(IP_LIST_NUM_MAX):
        ip_list.add(socket.AF_INET, address)
    assert len(ip_list) == IP_LIST_NUM_MAX
    with pytest.raises(OverflowError):
        ip_list.add(socket.AF_INET, address)


def test_split_strided():
    addresses = _v4(5)
    sub = _filled(addresses).split(1, 2)
    assert list(sub) == [addresses[1], addresses[3]]
    assert sub.family == socket.AF_INET
    assert sub.position == 0


def test_split_partitions():
    addresses = _v4(7)
    ip_list = _filled(addresses)
    parts = [ip_list.split(i, 3) for i in range(3)]
    assert sorted(a for p in parts for a in p) == addresses


@pytest.mark.parametrize("start,step", [(-1, 1), (0, 0), (0, -2)])
def test_split_errors(start, step):
    with pytest.raises(ValueError):
        _filled(_v4(3)).split(start, step)


def test_next_ipv4_cycles():
    addresses = _v4(3)
    ip_list = _filled(addresses)
    assert [ip_list.next_ipv4() for _ in range(7)] == (addresses * 3)[:7]


def test_next_ipv6_cycles():
    addresses = [ipaddress.IPv6Address("2001:db8::1"), ipaddress.IPv6Address("2001:db8::2")]
    ip_list = _filled(addresses, socket.AF_INET6)
    assert [ip_list.next_ipv6() for _ in range(4)] == addresses * 2


def test_next_ipv4_of_ipv6_is_low_bits():
    address = ipaddress.IPv6Address("2001:db8::a00:5")
    ip_list = _filled([address], socket.AF_INET6)
    assert int(ip_list.next_ipv4()) == int(address) & 0xFFFFFFFF


def test_next_empty():
    with pytest.raises(IndexError):
        IPList().next_ipv4()