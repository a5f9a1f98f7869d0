"""Tests for the batched health check runner and the HTTP stream probe."""

import threading

import httpx
import pytest

from stellix.consumers.health_check import HealthCheckRunner
from stellix.providers.stream_probe import ProbeResult, StreamProbe, looks_like_hls


class FakeProbe:
    """Probe answering from a set of dead URLs."""

    def __init__(self, dead=(), broken=()):
        self.dead = set(dead)
        self.broken = set(broken)
        self.checked = []
        self._lock = threading.Lock()

    def check(self, url):
        with self._lock:
            self.checked.append(url)
        if url in self.broken:
            raise RuntimeError("probe crashed")
        return ProbeResult(reachable=url not in self.dead, status_code=200)


class TestRunner:
    def test_collects_offline_ids(self, make_channel):
        channels = [make_channel(f"u{i}", id=f"c{i}") for i in range(5)]
        probe = FakeProbe(dead={"u1", "u4"}, broken={"u2"})
        runner = HealthCheckRunner(probe, batch_size=2, delay_seconds=0)

        result = runner.run(channels)

        assert result.checked == 5
        assert result.offline_ids == {"c1", "c2", "c4"}
        assert result.online == 2
        assert result.cancelled is False

    def test_channels_without_url_are_skipped(self, make_channel):
        probe = FakeProbe()
        runner = HealthCheckRunner(probe, batch_size=3, delay_seconds=0)

        result = runner.run([make_channel(""), make_channel("u1")])

        assert result.checked == 1
        assert probe.checked == ["u1"]

    def test_pauses_between_batches_only(self, make_channel):
        sleeps = []
        channels = [make_channel(f"u{i}") for i in range(7)]
        runner = HealthCheckRunner(FakeProbe(), batch_size=3, delay_seconds=1.5, sleep=sleeps.append)

        runner.run(channels)

        assert sleeps == [1.5, 1.5]

    def test_cancel_stops_after_current_batch(self, make_channel):
        channels = [make_channel(f"u{i}") for i in range(9)]
        runner = HealthCheckRunner(FakeProbe(), batch_size=3, delay_seconds=0)
        seen = []

        def on_result(channel, reachable):
            seen.append(channel.id)
            runner.cancel()

        result = runner.run(channels, on_result=on_result)

        assert result.cancelled is True
        assert result.checked == 3
        assert len(seen) == 3

    def test_new_run_clears_cancel(self, make_channel):
        runner = HealthCheckRunner(FakeProbe(), batch_size=2, delay_seconds=0)
        runner.cancel()

        result = runner.run([make_channel("u1")])

        assert result.checked == 1
        assert runner.cancelled is False

    def test_empty_input(self):
        result = HealthCheckRunner(FakeProbe(), delay_seconds=0).run([])

        assert (result.checked, result.offline_ids) == (0, set())


def probe_with(handler) -> StreamProbe:
    return StreamProbe(timeout=1, client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestStreamProbe:
    def test_hls_manifest_is_reachable(self):
        probe = probe_with(lambda request: httpx.Response(200, text="#EXTM3U\n#EXT-X-VERSION:3\n"))

        assert probe.check("https://cdn.example.com/live.m3u8").reachable is True

    def test_hls_error_page_is_unreachable(self):
        probe = probe_with(lambda request: httpx.Response(200, text="<html>Stream offline</html>"))

        result = probe.check("https://cdn.example.com/live.m3u8")

        assert result.reachable is False
        assert result.status_code == 200

    def test_hls_http_error_is_unreachable(self):
        probe = probe_with(lambda request: httpx.Response(403))

        assert probe.check("https://cdn.example.com/live.M3U8").reachable is False

    def test_plain_stream_uses_head(self):
        methods = []

        def handler(request):
            methods.append(request.method)
            return httpx.Response(200)

        assert probe_with(handler).check("http://cdn.example.com/stream.ts").reachable is True
        assert methods == ["HEAD"]

    def test_head_failure_falls_back_to_ranged_get(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.headers.get("Range")))
            if request.method == "HEAD":
                raise httpx.ConnectError("HEAD not allowed", request=request)
            return httpx.Response(206, content=b"\x47" * 64)

        result = probe_with(handler).check("http://cdn.example.com/stream.ts")

        assert result.reachable is True
        assert seen == [("HEAD", None), ("GET", "bytes=0-512")]

    def test_network_failure_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        assert probe_with(handler).check("http://cdn.example.com/stream.ts") == ProbeResult(False)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("#EXTM3U\n", True),
            ("  \n#EXTINF:-1,\nseg.ts", True),
            ("#EXT-X-STREAM-INF:BANDWIDTH=1", True),
            ("<html></html>", False),
            ("", False),
        ],
    )
    def test_looks_like_hls(self, text, expected):
        assert looks_like_hls(text) is expected
