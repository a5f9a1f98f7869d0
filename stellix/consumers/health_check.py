"""Batched stream health checks.

Channels are probed in small batches with a pause between batches to bound
load on stream hosts. Probes inside a batch run in parallel. cancel() is
cooperative: it is checked between batches, and probes already dispatched
finish normally.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Protocol

from stellix.config import Config
from stellix.core.types import ChannelRecord
from stellix.providers.stream_probe import ProbeResult

logger = logging.getLogger(__name__)


class Probe(Protocol):
    def check(self, url: str) -> ProbeResult: ...


@dataclass
class HealthCheckResult:
    """Outcome of one run; offline_ids feeds ClientState.offline_ids."""

    checked: int = 0
    offline_ids: set[str] = field(default_factory=set)
    cancelled: bool = False

    @property
    def online(self) -> int:
        return self.checked - len(self.offline_ids)


class HealthCheckRunner:
    """Probe channels batch by batch.

    Usage:
        runner = HealthCheckRunner(StreamProbe())
        result = runner.run(channels)
        state = ClientState(offline_ids=frozenset(result.offline_ids))
    """

    def __init__(
        self,
        probe: Probe,
        batch_size: int | None = None,
        delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._probe = probe
        self._batch_size = max(1, batch_size or Config.HEALTH_BATCH_SIZE)
        self._delay = Config.HEALTH_BATCH_DELAY_SECONDS if delay_seconds is None else delay_seconds
        self._sleep = sleep
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Stop after the batch in flight."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _check(self, channel: ChannelRecord) -> bool:
        try:
            return self._probe.check(channel.url).reachable
        except Exception as e:
            logger.debug("[HEALTH] Probe error for %s: %s", channel.id, e)
            return False

    def run(
        self,
        channels: list[ChannelRecord],
        on_result: Callable[[ChannelRecord, bool], None] | None = None,
    ) -> HealthCheckResult:
        """Probe every channel with a URL.

        Args:
            channels: Channels to check; ones without a URL are skipped
            on_result: Called with (channel, reachable) as each probe finishes

        Returns:
            HealthCheckResult with the ids found offline
        """
        self._cancel.clear()
        targets = [ch for ch in channels if ch.url]
        result = HealthCheckResult()
        total_batches = (len(targets) + self._batch_size - 1) // self._batch_size

        for batch_index in range(total_batches):
            if self._cancel.is_set():
                result.cancelled = True
                logger.info(
                    "[HEALTH] Cancelled after %d/%d channels", result.checked, len(targets)
                )
                break
            if batch_index and self._delay > 0:
                self._sleep(self._delay)

            start = batch_index * self._batch_size
            batch = targets[start : start + self._batch_size]
            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                futures = {executor.submit(self._check, ch): ch for ch in batch}
                for future in as_completed(futures):
                    channel = futures[future]
                    reachable = future.result()
                    result.checked += 1
                    if not reachable:
                        result.offline_ids.add(channel.id)
                    if on_result:
                        on_result(channel, reachable)

        logger.info(
            "[HEALTH] Checked %d channels, %d offline", result.checked, len(result.offline_ids)
        )
        return result
