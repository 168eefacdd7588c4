import pytest

from dperfkit.net_stats import (
    INCREASING_FIELDS,
    MUTABLE_FIELDS,
    THREAD_NUM_MAX,
    NetStats,
    StatsCollector,
)


def test_field_groups_cover_all_counters():
    stats = NetStats()
    names = set(vars(stats))
    assert names == set(INCREASING_FIELDS) | set(MUTABLE_FIELDS)
    assert all(value == 0 for value in vars(stats).values())


def test_add_sums_every_field_in_place():
    a = NetStats(pkt_rx=5, byte_tx=100, rtt_num=2, cpusage=30)
    b = NetStats(pkt_rx=7, byte_tx=50, rtt_num=1, socket_current=4)
    result = a.add(b)
    assert result is a
    assert a.pkt_rx == 5 + 7
    assert a.byte_tx == 100 + 50
    assert a.rtt_num == 2 + 1
    assert a.cpusage == 30
    assert a.socket_current == 4
    assert b.pkt_rx == 7


def test_since_saturates_at_zero():
    now = NetStats(pkt_rx=10, pkt_tx=3)
    before = NetStats(pkt_rx=4, pkt_tx=9)
    delta = now.since(before)
    assert delta.pkt_rx == 10 - 4
    assert delta.pkt_tx == 0
    assert now.pkt_rx == 10


def test_since_of_itself_is_all_zero():
    stats = NetStats(pkt_rx=8, http_get=3, rtt_tsc=1000)
    assert stats.since(stats) == NetStats()


def test_clear_mutable_keeps_rtt_and_counters():
    stats = NetStats(cpusage=50, socket_current=9, rtt_tsc=123, rtt_num=4, pkt_rx=6)
    stats.clear_mutable()
    assert stats.cpusage == 0
    assert stats.socket_current == 0
    assert stats.rtt_tsc == 123
    assert stats.rtt_num == 4
    assert stats.pkt_rx == 6


def test_total_of_empty_collector_is_zero():
    assert StatsCollector().total() == NetStats()


def test_total_sums_workers():
    collector = StatsCollector()
    a = collector.register(0, NetStats(tcp_rx=3, arp_tx=1))
    b = collector.register(1, NetStats(tcp_rx=4))
    total = collector.total()
    assert total.tcp_rx == a.tcp_rx + b.tcp_rx
    assert total.arp_tx == a.arp_tx


def test_register_creates_default_and_replaces():
    collector = StatsCollector()
    first = collector.register(2)
    assert first == NetStats()
    first.pkt_rx = 11
    collector.register(2, NetStats(pkt_rx=1))
    assert collector.total().pkt_rx == 1


def test_workers_are_ordered_by_id():
    collector = StatsCollector()
    late = collector.register(5, NetStats(cpusage=2))
    early = collector.register(0, NetStats(cpusage=1))
    assert collector.workers == [early, late]
    assert collector.workers[0] is early


@pytest.mark.parametrize("worker_id", [-1, THREAD_NUM_MAX])
def test_register_rejects_bad_worker_id(worker_id):
    with pytest.raises(ValueError):
        StatsCollector().register(worker_id)


def test_speed_reports_growth_between_calls():
    collector = StatsCollector()
    stats = collector.register(0)
    stats.pkt_rx = 100
    first = collector.speed()
    assert first.pkt_rx == 100

    stats.pkt_rx = 250
    second = collector.speed()
    assert second.pkt_rx == 250 - 100

    third = collector.speed()
    assert third.pkt_rx == 0


def test_speed_reports_gauges_as_current_values():
    collector = StatsCollector()
    stats = collector.register(0)
    stats.cpusage = 40
    stats.socket_current = 7
    collector.speed()
    second = collector.speed()
    assert second.cpusage == stats.cpusage
    assert second.socket_current == stats.socket_current


def test_speed_diffs_rtt_sums():
    collector = StatsCollector()
    stats = collector.register(0, NetStats(rtt_tsc=500, rtt_num=5))
    collector.speed()
    stats.rtt_tsc = 800
    stats.rtt_num = 8
    delta = collector.speed()
    assert delta.rtt_tsc == 800 - 500
    assert delta.rtt_num == 8 - 5