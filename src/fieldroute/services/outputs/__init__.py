"""Output serializers."""

from .routing_formatter import format_clock, snapshot_to_csv, snapshot_to_json

__all__ = ["format_clock", "snapshot_to_csv", "snapshot_to_json"]
