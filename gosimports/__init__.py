"""Structured event telemetry, agent wire messages, and a concurrent directory walker."""

__version__ = "0.1.0"

__all__ = [
    "core",
    "event",
    "export",
    "fastwalk",
    "keys",
    "label",
    "metric",
    "wire",
]