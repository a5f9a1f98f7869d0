"""Playlist parsing: M3U text and JSON channel exports.

parse_m3u() turns playlist text into RawChannel entries. The language and
country of a channel are filled from explicit tvg-* attributes when present,
otherwise from a short ordered list of inference rules. Inference is
best-effort only and can be wrong.
"""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from stellix.config import Config
from stellix.core.exceptions import ValidationError
from stellix.core.types import DEFAULT_GROUP, ChannelRecord, RawChannel

logger = logging.getLogger(__name__)

_ATTRIBUTE = re.compile(r'([\w-]+)="([^"]*)"')
_TRAILING_NAME = re.compile(r",([^,]+)$")

# Substring of the playlist's group-title -> catalog category, first match wins
GROUP_MAPPING: list[tuple[str, str]] = [
    ("новости", "news"),
    ("news", "news"),
    ("спорт", "sports"),
    ("sport", "sports"),
    ("кино", "movies"),
    ("фильмы", "movies"),
    ("movie", "movies"),
    ("детск", "kids"),
    ("детям", "kids"),
    ("kids", "kids"),
    ("музык", "music"),
    ("music", "music"),
    ("познават", "documentary"),
    ("documentary", "documentary"),
    ("развлекат", "entertainment"),
    ("entertainment", "entertainment"),
    ("общие", "entertainment"),
    ("general", "entertainment"),
]


def map_group(group: str | None) -> str:
    lowered = (group or "").lower()
    for needle, category in GROUP_MAPPING:
        if needle in lowered:
            return category
    return DEFAULT_GROUP


# =============================================================================
# LANGUAGE / COUNTRY INFERENCE
# =============================================================================


@dataclass(frozen=True)
class InferenceRule:
    """Fill language and/or country when predicate(name, tvg_id) holds."""

    predicate: Callable[[str, str], bool]
    language: str | None = None
    country: str | None = None


def _suffix(*tags: str) -> Callable[[str, str], bool]:
    pattern = re.compile(r"[\s(\[](" + "|".join(tags) + r")[)\]]?$", re.IGNORECASE)
    return lambda name, tvg_id: bool(pattern.search(name))


def _tvg_domain(*domains: str) -> Callable[[str, str], bool]:
    return lambda name, tvg_id: tvg_id.lower().endswith(tuple(f".{d}" for d in domains))


def _script(pattern: str) -> Callable[[str, str], bool]:
    compiled = re.compile(pattern)
    return lambda name, tvg_id: bool(compiled.search(name))


# Evaluated top to bottom; the first rule that matches sets each still-empty field
INFERENCE_RULES: list[InferenceRule] = [
    InferenceRule(_suffix("UK", "GB"), language="en", country="GB"),
    InferenceRule(_suffix("US", "USA"), language="en", country="US"),
    InferenceRule(_suffix("RU"), language="ru", country="RU"),
    InferenceRule(_suffix("UA"), language="uk", country="UA"),
    InferenceRule(_suffix("DE"), language="de", country="DE"),
    InferenceRule(_suffix("FR"), language="fr", country="FR"),
    InferenceRule(_suffix("ES"), language="es", country="ES"),
    InferenceRule(_suffix("IT"), language="it", country="IT"),
    InferenceRule(_tvg_domain("uk"), language="en", country="GB"),
    InferenceRule(_tvg_domain("us"), language="en", country="US"),
    InferenceRule(_tvg_domain("ru"), language="ru", country="RU"),
    InferenceRule(_tvg_domain("de"), language="de", country="DE"),
    InferenceRule(_tvg_domain("fr"), language="fr", country="FR"),
    InferenceRule(_script(r"[Ѐ-ӿ]"), language="ru"),
    InferenceRule(_script(r"[؀-ۿ]"), language="ar"),
    InferenceRule(_script(r"[֐-׿]"), language="he"),
    InferenceRule(_script(r"[぀-ヿ]"), language="ja"),
    InferenceRule(_script(r"[가-힯]"), language="ko"),
]


def infer_language_country(
    name: str, tvg_id: str = "", language: str | None = None, country: str | None = None
) -> tuple[str | None, str | None]:
    """Fill whichever of language/country is missing from INFERENCE_RULES."""
    for rule in INFERENCE_RULES:
        if language and country:
            break
        if not rule.predicate(name, tvg_id):
            continue
        language = language or rule.language
        country = country or rule.country
    return language, country


# =============================================================================
# M3U
# =============================================================================


def parse_m3u(content: str) -> list[RawChannel]:
    """Parse M3U playlist text.

    An #EXTINF line carries the attributes and (after the last comma) the
    name; the next http(s) line is the stream URL. Entries without a name
    are dropped.
    """
    channels: list[RawChannel] = []
    current: dict | None = None

    for line in content.splitlines():
        line = line.strip()
        if line.startswith("#EXTINF:"):
            attributes = dict(_ATTRIBUTE.findall(line))
            name_match = _TRAILING_NAME.search(line)
            current = {
                "name": name_match.group(1).strip() if name_match else "",
                "logo": attributes.get("tvg-logo") or None,
                "group": attributes.get("group-title") or None,
                "language": (attributes.get("tvg-language") or "").lower() or None,
                "country": (attributes.get("tvg-country") or "").upper() or None,
                "tvg_id": attributes.get("tvg-id", ""),
            }
        elif line.startswith(("http://", "https://")):
            if current and current["name"]:
                language, country = infer_language_country(
                    current["name"], current["tvg_id"], current["language"], current["country"]
                )
                channels.append(
                    RawChannel(
                        name=current["name"],
                        url=line,
                        logo=current["logo"],
                        group=current["group"],
                        language=language,
                        country=country,
                    )
                )
            current = None

    logger.debug("[M3U] Parsed %d channels", len(channels))
    return channels


def parse_playlist(content: str, fmt: str = "m3u") -> list[RawChannel]:
    """Parse playlist text in either supported format, groups mapped to categories.

    Raises:
        ValidationError: Unknown format, malformed JSON or no channels found
    """
    if fmt == "m3u":
        channels = parse_m3u(content)
    elif fmt == "json":
        channels = parse_channel_json(content)
    else:
        raise ValidationError(f"Unsupported playlist format: {fmt}")
    if not channels:
        raise ValidationError("No channels found in playlist")
    for channel in channels:
        channel.group = map_group(channel.group)
    return channels


def convert_to_channel_records(raw_channels: list[RawChannel], source_id: str) -> list[ChannelRecord]:
    """Turn parsed entries into user-imported catalog records.

    Ids are "<source_id>-<index>"; groups are mapped onto catalog categories.
    """
    return [
        ChannelRecord(
            id=f"{source_id}-{index}",
            name=raw.name,
            url=raw.url,
            logo=raw.logo,
            group=map_group(raw.group),
            language=raw.language,
            country=raw.country,
            labels=["Live"],
            enabled=True,
            is_custom=True,
            playlist_id=source_id,
        )
        for index, raw in enumerate(raw_channels)
    ]


# =============================================================================
# JSON
# =============================================================================


def _load_channel_list(content: str) -> list:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e.msg} (line {e.lineno})") from e

    if isinstance(data, dict) and isinstance(data.get("channels"), list):
        data = data["channels"]
    if not isinstance(data, list):
        raise ValidationError("Expected a list of channels or an object with a channels list")
    if not data:
        raise ValidationError("No channels found")
    return data


def parse_channel_json(content: str) -> list[RawChannel]:
    """Parse a JSON channel list for import.

    Accepts a list of channel objects or {"channels": [...]}. Every entry
    needs a name and a url.

    Raises:
        ValidationError: Malformed JSON or entries, nothing is returned partially
    """
    channels = []
    for index, entry in enumerate(_load_channel_list(content)):
        if not isinstance(entry, dict):
            raise ValidationError(f"Channel {index} is not an object")
        name = str(entry.get("name") or "").strip()
        url = str(entry.get("url") or "").strip()
        if not name or not url:
            raise ValidationError(f"Channel {index} needs both name and url")
        channels.append(
            RawChannel(
                name=name,
                url=url,
                logo=entry.get("logo") or None,
                group=entry.get("group") or None,
                language=entry.get("language") or None,
                country=entry.get("country") or None,
            )
        )
    return channels


def parse_catalog_export(content: str) -> list[ChannelRecord]:
    """Parse a full-record export (ids, statuses, flags) for migration.

    Raises:
        ValidationError: Malformed JSON or an entry without an id
    """
    records = []
    for index, entry in enumerate(_load_channel_list(content)):
        if not isinstance(entry, dict) or not entry.get("id"):
            raise ValidationError(f"Channel {index} has no id")
        records.append(ChannelRecord.from_dict(entry))
    return records


# =============================================================================
# FETCH
# =============================================================================


def fetch_playlist(url: str, timeout: float | None = None, client: httpx.Client | None = None) -> str:
    """Download playlist text.

    Raises:
        ValidationError: The URL could not be fetched
    """
    timeout = Config.PROBE_TIMEOUT_SECONDS * 6 if timeout is None else timeout
    try:
        if client is not None:
            response = client.get(url)
            response.raise_for_status()
            return response.text
        with httpx.Client(timeout=timeout, follow_redirects=True) as http:
            response = http.get(url)
            response.raise_for_status()
            return response.text
    except httpx.HTTPError as e:
        logger.warning("[M3U] Failed to fetch %s: %s", url, e)
        raise ValidationError(f"Failed to fetch playlist: {e}") from e


def load_playlist(content: str | None, url: str | None, fmt: str = "m3u") -> list[RawChannel]:
    """Parse inline playlist text, downloading it from url when none is given.

    Raises:
        ValidationError: Neither content nor url, download failure or bad playlist
    """
    if not content:
        if not url:
            raise ValidationError("Provide playlist content or a url")
        content = fetch_playlist(url)
    return parse_playlist(content, fmt)
