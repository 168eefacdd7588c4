"""Per-worker traffic counters and their aggregation."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace

THREAD_NUM_MAX = 64

#: Counters that only ever grow while a test runs.
INCREASING_FIELDS = (
    "pkt_rx", "pkt_tx", "byte_rx", "byte_tx",
    "tx_drop", "pkt_lost", "rx_bad",
    "tos_rx",
    "socket_dup", "socket_open", "socket_close", "socket_error",
    "tcp_rx", "tcp_tx",
    "syn_rx", "syn_tx",
    "fin_rx", "fin_tx",
    "rst_rx", "rst_tx",
    "syn_rt", "fin_rt", "ack_rt", "push_rt", "ack_dup",
    "http_2xx", "tcp_req", "http_get", "http_post", "tcp_rsp", "http_error",
    "tcp_drop",
    "udp_rx", "udp_tx", "udp_rt", "udp_drop",
    "arp_rx", "arp_tx",
    "icmp_rx", "icmp_tx",
    "kni_rx", "kni_tx",
    "other_rx",
)

#: Values that are gauges or running sums and may be reset between reports.
MUTABLE_FIELDS = ("rtt_tsc", "rtt_num", "cpusage", "socket_current")


@dataclass
class NetStats:
    """Counters kept by one worker, or the sum over several workers."""

    pkt_rx: int = 0
    pkt_tx: int = 0
    byte_rx: int = 0
    byte_tx: int = 0

    tx_drop: int = 0
    pkt_lost: int = 0
    rx_bad: int = 0

    tos_rx: int = 0

    socket_dup: int = 0
    socket_open: int = 0
    socket_close: int = 0
    socket_error: int = 0

    tcp_rx: int = 0
    tcp_tx: int = 0

    syn_rx: int = 0
    syn_tx: int = 0

    fin_rx: int = 0
    fin_tx: int = 0

    rst_rx: int = 0
    rst_tx: int = 0

    syn_rt: int = 0
    fin_rt: int = 0
    ack_rt: int = 0
    push_rt: int = 0
    ack_dup: int = 0

    http_2xx: int = 0
    tcp_req: int = 0
    http_get: int = 0
    http_post: int = 0
    tcp_rsp: int = 0
    http_error: int = 0

    tcp_drop: int = 0

    udp_rx: int = 0
    udp_tx: int = 0
    udp_rt: int = 0
    udp_drop: int = 0

    arp_rx: int = 0
    arp_tx: int = 0

    icmp_rx: int = 0
    icmp_tx: int = 0

    kni_rx: int = 0
    kni_tx: int = 0

    other_rx: int = 0

    rtt_tsc: int = 0
    rtt_num: int = 0

    cpusage: int = 0
    socket_current: int = 0

    def add(self, other: NetStats) -> NetStats:
        """Add every counter of ``other`` into this one; return self."""
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
        return self

    def since(self, previous: NetStats) -> NetStats:
        """Return the per-counter growth from ``previous`` to self.

        A counter that did not grow yields zero rather than a negative value.
        """
        result = NetStats()
        for f in fields(self):
            now = getattr(self, f.name)
            before = getattr(previous, f.name)
            setattr(result, f.name, now - before if now > before else 0)
        return result

    def clear_mutable(self) -> None:
        """Reset the gauges; the round-trip time sums are kept."""
        self.cpusage = 0
        self.socket_current = 0


class StatsCollector:
    """Holds the counters of all workers and derives totals and rates."""

    def __init__(self) -> None:
        self._workers: dict[int, NetStats] = {}
        self._last_total = NetStats()

    def register(self, worker_id: int, stats: NetStats | None = None) -> NetStats:
        """Attach the counters of a worker, replacing any earlier ones."""
        if not 0 <= worker_id < THREAD_NUM_MAX:
            raise ValueError(
                f"worker id {worker_id} out of range 0..{THREAD_NUM_MAX - 1}"
            )
        if stats is None:
            stats = NetStats()
        self._workers[worker_id] = stats
        return stats

    @property
    def workers(self) -> list[NetStats]:
        """Registered counters, ordered by worker id."""
        return [self._workers[key] for key in sorted(self._workers)]

    def total(self) -> NetStats:
        """Sum of the counters of every registered worker."""
        result = NetStats()
        for stats in self.workers:
            result.add(stats)
        return result

    def speed(self) -> NetStats:
        """Growth of the total since the previous call.

        Gauges are reset in the remembered total, so they come out as the
        current value rather than a difference.
        """
        current = self.total()
        delta = current.since(self._last_total)
        self._last_total = replace(current)
        self._last_total.clear_mutable()
        return delta