"""Localify - self-hosted music library indexing and streaming server."""

__version__ = "0.1.0"
