import pytest

from dperfkit.net_stats import NetStats, StatsCollector
from dperfkit.stats_report import (
    ERROR_OFF,
    ERROR_ON,
    StatsOptions,
    format_count,
    format_cpu_usage,
    format_field,
    format_report,
    format_rtt,
    speed_report,
    total_report,
)


def test_format_count_zero():
    assert format_count(0) == "0"


def test_format_count_groups():
    assert format_count(1234567) == "1,234,567"


@pytest.mark.parametrize("value", [0, 7, 999, 1000, 65536, 10**12 + 3, 10**15 - 1])
def test_format_count_digits_round_trip(value):
    assert int(format_count(value).replace(",", "")) == value


def test_format_count_drops_digits_beyond_five_groups():
    assert format_count(10**15 + 42) == format_count(42)


def test_format_field_pads_to_width():
    text = format_field(5, 18, False)
    assert len(text) == 18
    assert text.strip() == format_count(5)


def test_format_field_error_highlight():
    text = format_field(5, 18, True)
    assert text.startswith(ERROR_ON)
    plain = text.replace(ERROR_ON, "").replace(ERROR_OFF, "")
    assert len(plain) == 18


def test_format_field_error_zero_not_highlighted():
    assert ERROR_ON not in format_field(0, 10, True)


def test_format_field_no_padding_when_too_wide():
    assert format_field(10**12, 5, False) == format_count(10**12)


def test_format_rtt_average():
    stats = NetStats(rtt_tsc=15_000, rtt_num=10)
    assert format_rtt(stats, 1_000_000) == "1,500.0   "


def test_format_rtt_without_samples():
    text = format_rtt(NetStats(), 1_000_000)
    assert len(text) == 10
    assert text.rstrip() == format_count(0) + ".0"


def test_format_rtt_rejects_slow_clock():
    with pytest.raises(ValueError):
        format_rtt(NetStats(rtt_tsc=10, rtt_num=1), 1000)


def test_format_cpu_usage():
    line = format_cpu_usage([NetStats(cpusage=12), NetStats(cpusage=3)])
    assert line.startswith(" cpuUsage ")
    assert line.endswith("\n")
    assert line.split() == ["cpuUsage", "12", "3"]


def test_report_tcp_sections():
    report = format_report(NetStats(), StatsOptions())
    assert "synRx" in report
    assert "tcpReq" in report
    assert "rtt(us)" in report
    assert "kniRx" not in report


def test_report_udp_sections():
    report = format_report(NetStats(), StatsOptions(tcp=False))
    assert "synRx" not in report
    assert "udpRt" in report
    assert "tcpReq" not in report


def test_report_http_and_kni():
    report = format_report(NetStats(), StatsOptions(kni=True, stats_http=True))
    assert "httpGet" in report
    assert "kniRx" in report
    assert "tcpReq" not in report


def test_report_server_has_no_rtt():
    assert "rtt(us)" not in format_report(NetStats(), StatsOptions(server=True))


def test_speed_report_quiet_is_empty():
    collector = StatsCollector()
    collector.register(0, NetStats(pkt_rx=5))
    assert speed_report(collector, 1, StatsOptions(quiet=True)) == ""


def test_speed_report_header_and_port_errors():
    collector = StatsCollector()
    collector.register(0, NetStats())
    text = speed_report(collector, 3, StatsOptions(port_errors=(1, 0, 0)))
    assert text.startswith("\nseconds 3")
    assert "ierrors " + ERROR_ON in text
    assert text.endswith("\n\n")


def test_total_report_sums_workers():
    collector = StatsCollector()
    collector.register(0, NetStats(pkt_rx=1500))
    collector.register(1, NetStats(pkt_rx=2500))
    text = total_report(collector, StatsOptions(), "9.9.9")
    assert "Version: 9.9.9" in text
    assert "Total Numbers:" in text
    assert "4,000" in text