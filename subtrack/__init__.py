"""SubTrack: access-gated sync gateway and client for substitute-teaching records."""

__version__ = "1.0.0"
