"""Text reports of traffic counters, as printed once a second and at the end."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from dperfkit.net_stats import NetStats, StatsCollector

VERSION = "1.9.0-dev"

ERROR_ON = "\033[41;37m"
ERROR_OFF = "\033[0m"

WIDE = 18
NARROW = 10

_UINT64 = 1 << 64
# Only five groups of three digits are ever shown.
_DISPLAY_LIMIT = 10**15


@dataclass
class StatsOptions:
    """Settings that decide which lines a report holds."""

    server: bool = False
    keepalive: bool = False
    kni: bool = False
    tcp: bool = True
    stats_http: bool = False
    quiet: bool = False
    tsc_per_sec: int = 1_000_000_000
    port_errors: tuple[int, int, int] = (0, 0, 0)


def format_count(value: int) -> str:
    """Format a counter with thousands separators, at most five groups."""
    value %= _UINT64
    return f"{value % _DISPLAY_LIMIT:,}"


def format_field(value: int, width: int, error: bool) -> str:
    """Format a counter padded to ``width`` visible characters.

    Error counters that are not zero are highlighted.
    """
    text = format_count(value)
    shown = f"{ERROR_ON}{text}{ERROR_OFF}" if error and value % _UINT64 else text
    return shown + " " * max(width - len(text), 0)


def _wide(value: int) -> str:
    return format_field(value, WIDE, False)


def _wide_err(value: int) -> str:
    return format_field(value, WIDE, True)


def _short_err(value: int) -> str:
    return format_field(value, NARROW, True)


def format_rtt(stats: NetStats, tsc_per_sec: int) -> str:
    """Average round-trip time in microseconds with one decimal, width 10."""
    whole = 0
    tenth = 0
    if stats.rtt_num > 0:
        tsc_per_us = tsc_per_sec // 1_000_000
        if tsc_per_us <= 0:
            raise ValueError(f"tsc_per_sec {tsc_per_sec} is below one tick per microsecond")
        divisor = stats.rtt_num * tsc_per_us
        whole = stats.rtt_tsc // divisor
        tenth = (stats.rtt_tsc % divisor) * 10 // divisor
    return f"{format_count(whole)}.{tenth}".ljust(NARROW)


def format_cpu_usage(workers: Iterable[NetStats]) -> str:
    """One line with the CPU usage of every worker."""
    return " cpuUsage " + "".join(f"{s.cpusage % _UINT64:<4}" for s in workers) + "\n"


def _packets(stats: NetStats) -> str:
    return (
        f"pktRx   {_wide(stats.pkt_rx)} pktTx    {_wide(stats.pkt_tx)} "
        f"bitsRx   {_wide(stats.byte_rx * 8)} bitsTx  {_wide(stats.byte_tx * 8)} "
        f"dropTx  {_wide_err(stats.tx_drop)}\n"
    )


def _kni(stats: NetStats) -> str:
    return f"kniRx   {_wide(stats.kni_rx)} kniTx    {_wide(stats.kni_tx)}\n"


def _protocols(stats: NetStats) -> str:
    return (
        f"tcpRx   {_wide(stats.tcp_rx)} tcpTx    {_wide(stats.tcp_tx)} "
        f"udpRx    {_wide(stats.udp_rx)} udpTx   {_wide(stats.udp_tx)}\n"
        f"arpRx   {_wide(stats.arp_rx)} arpTx    {_wide(stats.arp_tx)} "
        f"icmpRx   {_wide(stats.icmp_rx)} icmpTx  {_wide(stats.icmp_tx)}\n"
        f"tosRx   {_wide(stats.tos_rx)} otherRx  {_wide(stats.other_rx)} "
        f"badRx    {_wide_err(stats.rx_bad)}\n"
    )


def _tcp_flags(stats: NetStats) -> str:
    return (
        f"synRx   {_wide(stats.syn_rx)} synTx    {_wide(stats.syn_tx)} "
        f"finRx    {_wide(stats.fin_rx)} finTx   {_wide(stats.fin_tx)} "
        f"rstRx   {_short_err(stats.rst_rx)} rstTx {_short_err(stats.rst_tx)}\n"
    )


def _retransmits(stats: NetStats, options: StatsOptions) -> str:
    tcp_drop = _wide_err(stats.tcp_drop)
    udp_drop = _wide_err(stats.udp_drop)
    if options.tcp:
        return (
            f"synRt   {_wide_err(stats.syn_rt)} finRt    {_wide_err(stats.fin_rt)} "
            f"ackRt    {_wide_err(stats.ack_rt)} pushRt  {_wide_err(stats.push_rt)}\n"
            f"tcpDrop {tcp_drop} udpDrop  {udp_drop} ackDup   {_wide_err(stats.ack_dup)}\n"
        )
    return f"udpRt   {_wide_err(stats.udp_rt)} udpDrop  {udp_drop} tcpDrop  {tcp_drop}\n"


def _sockets(stats: NetStats, options: StatsOptions) -> str:
    opened = stats.socket_open - stats.socket_dup
    closed = stats.socket_close
    if closed >= stats.socket_dup:
        closed -= stats.socket_dup
    line = (
        f"skOpen  {_wide(opened)} skClose  {_wide(closed)} "
        f"skCon    {_wide(stats.socket_current)} skErr   {_wide_err(stats.socket_error)}"
    )
    if options.server or options.keepalive:
        return line + "\n"
    return line + f" rtt(us) {format_rtt(stats, options.tsc_per_sec)}\n"


def _http(stats: NetStats) -> str:
    return (
        f"httpGet {_wide(stats.http_get)} httpPost {_wide(stats.http_post)} "
        f"http2XX  {_wide(stats.http_2xx)} httpErr {_wide_err(stats.http_error)}\n"
    )


def _requests(stats: NetStats) -> str:
    return f"tcpReq  {_wide(stats.tcp_req)} tcpRsp   {_wide(stats.tcp_rsp)}\n"


def _port_errors(options: StatsOptions) -> str:
    ierrors, oerrors, imissed = options.port_errors
    return (
        f"ierrors {_wide_err(ierrors)} oerrors  {_wide_err(oerrors)} "
        f"imissed  {_wide_err(imissed)}\n\n"
    )


def format_report(stats: NetStats, options: StatsOptions) -> str:
    """All counter lines of one report."""
    parts = [_packets(stats)]
    if options.kni:
        parts.append(_kni(stats))
    parts.append(_protocols(stats))
    if options.tcp:
        parts.append(_tcp_flags(stats))
    parts.append(_retransmits(stats, options))
    parts.append(_sockets(stats, options))
    if options.tcp:
        parts.append(_http(stats) if options.stats_http else _requests(stats))
    return "".join(parts)


def speed_report(collector: StatsCollector, seconds: int, options: StatsOptions) -> str:
    """Report of what changed since the previous report; empty when quiet."""
    if options.quiet:
        return ""
    speed = collector.speed()
    return (
        f"\nseconds {seconds:<18}"
        + format_cpu_usage(collector.workers)
        + format_report(speed, options)
        + _port_errors(options)
    )


def total_report(collector: StatsCollector, options: StatsOptions, version: str = VERSION) -> str:
    """Final report with the totals over the whole test."""
    rule = "-----------------------\n"
    return (
        "\n"
        + rule
        + "Test Finished\n"
        + f"Version: {version}\n"
        + rule
        + "\nTotal Numbers:\n"
        + format_report(collector.total(), options)
        + _port_errors(options)
    )