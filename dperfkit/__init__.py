"""Traffic counters, reports, address helpers, an HTTP response parser and raw frame builders."""

__version__ = "0.1.0"