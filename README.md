# dperfkit

Building blocks for a stateful network load generator: per-worker
traffic counters and their console report, IPv4/IPv6 address helpers,
an incremental HTTP/1.1 response parser, and builders for the raw
Ethernet frames such a tool sends and answers (LLDP keep-alives,
ICMP/ICMPv6 echo and neighbour discovery, TCP and UDP frame templates).

Everything works on plain Python values and `bytes`; no network access
or special privileges are needed.

## Installation

```
pip install dperfkit
```

The package has no runtime dependencies. To run the test suite:

```
pip install "dperfkit[test]"
pytest
```

## Modules

| Module | What it provides |
| --- | --- |
| `dperfkit.net_stats` | `NetStats` counters with `add`, `since` (growth, never negative) and `clear_mutable`; `StatsCollector` with `register`, `workers`, `total` and `speed` (growth since the previous call) |
| `dperfkit.stats_report` | The text report: `format_count`, `format_field`, `format_rtt`, `format_cpu_usage`, `format_report`, `speed_report`, `total_report`, configured by `StatsOptions` |
| `dperfkit.ip` | `parse_ipaddr`, `increment_ipv4`, `join_address`, `last_byte` |
| `dperfkit.ip_list` | `IPList`: up to 65536 addresses of one family, `split` across workers and handed out round-robin with `next_ipv4` / `next_ipv6` |
| `dperfkit.http_parse` | `HttpParser`, fed segment by segment, following `Content-Length`, chunked `Transfer-Encoding` and `Connection` headers; `classify_response` and `classify_request` for quick counting into a `NetStats`; `HttpState`, `HttpFlags`, `ParseResult`, `HttpParseError` |
| `dperfkit.lldp` | `lldp_enabled`, `build_lldp_frame`, `lldp_burst` for keeping 802.3ad bond members active |
| `dperfkit.packet` | `format_mac`, `is_neighbor_packet` and `describe_frame` for one-line frame logs |
| `dperfkit.icmp` | `internet_checksum`, `icmp_echo_reply`, `icmp6_reply`, `solicited_node_address`, `multicast_mac`, `build_neighbor_solicit` |
| `dperfkit.mbuf_cache` | `FrameTemplate` (with `set_destination_mac`) and `build_tcp_template` / `build_udp_template`: prebuilt header stacks with lengths and protocol fields filled in |

## Examples

Counters are grouped by thousands; non-zero error counters are
highlighted with terminal colour codes:

```python
from dperfkit.stats_report import format_count, format_field

format_count(1234567)              # '1,234,567'
format_field(42, 18, error=False)  # '42' padded to 18 columns
```

Gathering counters from workers and printing a per-second report:

```python
from dperfkit.net_stats import StatsCollector
from dperfkit.stats_report import StatsOptions, speed_report

collector = StatsCollector()
stats = collector.register(0)
stats.pkt_rx += 10
print(speed_report(collector, 1, StatsOptions()))
```

Parsing an HTTP response as it arrives:

```python
from dperfkit.http_parse import HttpParser, ParseResult

parser = HttpParser()
result = parser.feed(b"HTTP/1.1 200 OK\r\nContent-Length:5\r\n\r\nhello")
assert result is ParseResult.END
```

A malformed response raises `HttpParseError`.

Addresses:

```python
from dperfkit.ip import parse_ipaddr, increment_ipv4

address = parse_ipaddr("192.0.2.1")
increment_ipv4(address, 1)  # IPv4Address('192.0.2.2')
```

Frame builders take MAC addresses as 6 bytes or as colon-separated hex;
examples use made-up, locally administered ones such as
`02:00:00:00:00:01`:

```python
from dperfkit.lldp import build_lldp_frame

frame = build_lldp_frame("02:00:00:00:00:01")
```

## What this package does not do

It builds, inspects and answers frames as `bytes`, and formats counters
as text, but it does not send or receive anything on a network. There is
no command to run and no traffic-generating client or server loop; it
does not build HTTP request or response payloads either. Those are left
to the program that uses these pieces.