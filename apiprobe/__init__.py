"""API security tester: probes a live HTTP API for common weaknesses."""

__version__ = "1.0.0"
