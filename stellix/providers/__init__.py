"""Providers - playlist parsing and stream probing."""

from stellix.providers.m3u import (
    convert_to_channel_records,
    fetch_playlist,
    infer_language_country,
    load_playlist,
    parse_catalog_export,
    parse_channel_json,
    parse_m3u,
    parse_playlist,
)
from stellix.providers.stream_probe import ProbeResult, StreamProbe

__all__ = [
    # Playlists
    "convert_to_channel_records",
    "fetch_playlist",
    "infer_language_country",
    "load_playlist",
    "parse_catalog_export",
    "parse_channel_json",
    "parse_m3u",
    "parse_playlist",
    # Probing
    "ProbeResult",
    "StreamProbe",
]
