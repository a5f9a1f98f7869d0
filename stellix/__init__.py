"""Stellix - IPTV channel catalog: staging, deduplication and filtered views."""

from stellix.config import VERSION

__version__ = VERSION
