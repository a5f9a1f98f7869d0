"""HTTP reachability probe for stream URLs.

HLS manifests (.m3u8) are fetched and their first bytes checked for playlist
tags, since many dead hosts still answer 200 with an error page. Other
streams get a HEAD, falling back to a small ranged GET when HEAD errors.
"""

import logging
from dataclasses import dataclass

import httpx

from stellix.config import Config

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
HLS_SNIFF_BYTES = 2048
HLS_MARKERS = ("#EXT-X-", "#EXTINF")


@dataclass
class ProbeResult:
    reachable: bool
    status_code: int = 0


def looks_like_hls(content: str) -> bool:
    """True if text looks like the start of an HLS playlist."""
    trimmed = content.strip()
    return trimmed.startswith("#EXTM3U") or any(marker in trimmed for marker in HLS_MARKERS)


class StreamProbe:
    """Check whether a stream URL answers.

    Usage:
        probe = StreamProbe()
        probe.check("https://example.com/live.m3u8").reachable
    """

    def __init__(self, timeout: float | None = None, client: httpx.Client | None = None):
        """Initialize the probe.

        Args:
            timeout: Per-request timeout in seconds (default: Config.PROBE_TIMEOUT_SECONDS)
            client: Preconfigured client, mainly for tests
        """
        self.timeout = Config.PROBE_TIMEOUT_SECONDS if timeout is None else timeout
        self._client = client or httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT, "Accept": "*/*"},
        )

    def close(self) -> None:
        self._client.close()

    def check(self, url: str) -> ProbeResult:
        """Probe a URL. Network errors count as unreachable, never raise."""
        try:
            if ".m3u8" in url.lower():
                return self._check_hls(url)
            return self._check_stream(url)
        except httpx.HTTPError as e:
            logger.debug("[PROBE] %s unreachable: %s", url, e)
            return ProbeResult(reachable=False)

    def _check_hls(self, url: str) -> ProbeResult:
        with self._client.stream("GET", url) as response:
            if not response.is_success:
                return ProbeResult(reachable=False, status_code=response.status_code)

            content = b""
            for chunk in response.iter_bytes():
                content += chunk
                if len(content) >= HLS_SNIFF_BYTES:
                    break

        text = content[:HLS_SNIFF_BYTES].decode("utf-8", errors="ignore")
        return ProbeResult(reachable=looks_like_hls(text), status_code=response.status_code)

    def _check_stream(self, url: str) -> ProbeResult:
        try:
            response = self._client.head(url)
            return ProbeResult(reachable=response.is_success, status_code=response.status_code)
        except httpx.HTTPError:
            logger.debug("[PROBE] HEAD failed for %s, retrying with ranged GET", url)

        with self._client.stream("GET", url, headers={"Range": "bytes=0-512"}) as response:
            return ProbeResult(reachable=response.is_success, status_code=response.status_code)
