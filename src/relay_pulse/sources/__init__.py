"""Status source implementations."""

from relay_pulse.sources.http_source import HttpStatusSource, parse_status_payload

__all__ = ["HttpStatusSource", "parse_status_payload"]
