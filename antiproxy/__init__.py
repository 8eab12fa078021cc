"""Anti-Proxy: serializing, rate-limited forwarder for the Cloud Code API."""

__version__ = "1.0.0"
