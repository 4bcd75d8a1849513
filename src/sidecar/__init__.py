"""One-shot sidecar process supervisor."""

__version__ = "0.1.0"
