"""Document store operation bookkeeping.

Counts reads, writes, deletes, queries and batches per named caller so the
cost shape of the aggregate-document design stays visible. Stats persist to a
local JSON file and reset at the start of each day.

Nothing here may influence control flow: persistence failures are logged at
debug level and otherwise ignored.
"""

import json
import logging
import threading
import time
from datetime import date
from pathlib import Path
from typing import Any, Callable, Literal

from stellix.config import Config

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 1000  # Keep last 1000 operations

Operation = Literal["read", "write", "delete", "query", "batch"]


def _empty_stats() -> dict[str, Any]:
    return {
        "reads": 0,
        "writes": 0,
        "deletes": 0,
        "queries": 0,
        "batches": 0,
        "total_operations": 0,
        "by_function": {},
        "history": [],
    }


class QuotaTracker:
    """Per-process operation counter with daily-reset local persistence.

    Usage:
        tracker = QuotaTracker("/app/data/quota_stats.json")
        tracker.track_read("load_catalog")
        tracker.get_summary()["reads"]
    """

    def __init__(
        self,
        stats_path: Path | str | None = None,
        clock: Callable[[], float] = time.time,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the tracker and load any stats saved earlier today.

        Args:
            stats_path: JSON file for persistence; None disables persistence
            clock: Epoch-seconds source for history timestamps
            today: Calendar-day source for the daily reset
        """
        self._path = Path(stats_path) if stats_path else None
        self._clock = clock
        self._today = today
        self._lock = threading.Lock()
        self._stats = _empty_stats()
        self._day = today().isoformat()
        self._load()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        if not self._path or not self._path.exists():
            return
        try:
            stored = json.loads(self._path.read_text())
            if stored.get("date") == self._day:
                self._stats = {**_empty_stats(), **stored["stats"]}
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug("[QUOTA] Discarding unreadable stats file: %s", e)
            self._stats = _empty_stats()

    def _save(self) -> None:
        if not self._path:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps({"date": self._day, "stats": self._stats}))
        except (OSError, TypeError) as e:
            logger.debug("[QUOTA] Could not persist stats: %s", e)

    def _roll_day(self) -> None:
        today = self._today().isoformat()
        if today != self._day:
            self._day = today
            self._stats = _empty_stats()

    # -------------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------------

    def _record(
        self,
        operation: Operation,
        function_name: str,
        count: int,
        field_name: str | None,
    ) -> None:
        try:
            with self._lock:
                self._roll_day()
                stats = self._stats

                if field_name:
                    stats[field_name] += count
                    per_function = stats["by_function"].setdefault(
                        function_name, {"reads": 0, "writes": 0, "deletes": 0}
                    )
                    per_function[field_name] += count
                stats["total_operations"] += count

                stats["history"].append(
                    {
                        "timestamp": self._clock(),
                        "operation": operation,
                        "function": function_name,
                        "count": count,
                    }
                )
                if len(stats["history"]) > HISTORY_LIMIT:
                    stats["history"] = stats["history"][-HISTORY_LIMIT:]

                self._save()
        except Exception as e:
            logger.debug("[QUOTA] Tracking failed for %s: %s", function_name, e)
            return

        logger.debug(
            "[QUOTA] %s %s (%d docs) total: R=%d W=%d D=%d",
            operation.upper(),
            function_name,
            count,
            self._stats["reads"],
            self._stats["writes"],
            self._stats["deletes"],
        )

    def track_read(self, function_name: str, count: int = 1) -> None:
        """Record single-document reads."""
        self._record("read", function_name, count, "reads")

    def track_write(self, function_name: str, count: int = 1) -> None:
        """Record document writes."""
        self._record("write", function_name, count, "writes")

    def track_delete(self, function_name: str, count: int = 1) -> None:
        """Record document deletes."""
        self._record("delete", function_name, count, "deletes")

    def track_query(self, function_name: str, docs_returned: int) -> None:
        """Record a collection scan; every returned document costs a read."""
        with self._lock:
            self._stats["queries"] += 1
        self._record("query", function_name, docs_returned, "reads")

    def track_batch(
        self,
        function_name: str,
        operations_count: int,
        batch_type: Literal["write", "delete"],
    ) -> None:
        """Record one batch commit carrying several writes or deletes."""
        with self._lock:
            self._stats["batches"] += 1
        field_name = "writes" if batch_type == "write" else "deletes"
        self._record("batch", function_name, operations_count, field_name)

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Snapshot of the raw counters."""
        with self._lock:
            self._roll_day()
            return json.loads(json.dumps(self._stats))

    def get_summary(self) -> dict[str, Any]:
        """Display summary: totals, top callers, recent activity."""
        stats = self.get_stats()
        now = self._clock()

        top_functions = sorted(
            (
                {
                    "name": name,
                    "total": data["reads"] + data["writes"] + data["deletes"],
                    **data,
                }
                for name, data in stats["by_function"].items()
            ),
            key=lambda item: item["total"],
            reverse=True,
        )[:10]

        return {
            "total": stats["total_operations"],
            "reads": stats["reads"],
            "writes": stats["writes"],
            "deletes": stats["deletes"],
            "queries": stats["queries"],
            "batches": stats["batches"],
            "top_functions": top_functions,
            "last_hour": sum(h["count"] for h in stats["history"] if h["timestamp"] > now - 3600),
            "last_5_minutes": sum(
                h["count"] for h in stats["history"] if h["timestamp"] > now - 300
            ),
        }

    def reset(self) -> None:
        """Clear all counters."""
        with self._lock:
            self._stats = _empty_stats()
            self._day = self._today().isoformat()
            self._save()


# =============================================================================
# DEFAULT INSTANCE
# =============================================================================

_tracker: QuotaTracker | None = None
_tracker_lock = threading.Lock()


def get_tracker() -> QuotaTracker:
    """Get the process-wide tracker, creating it from Config on first use."""
    global _tracker
    with _tracker_lock:
        if _tracker is None:
            _tracker = QuotaTracker(Config.QUOTA_STATS_PATH)
        return _tracker


def set_tracker(tracker: QuotaTracker | None) -> None:
    """Replace the process-wide tracker (None recreates it lazily)."""
    global _tracker
    with _tracker_lock:
        _tracker = tracker


def track_read(function_name: str, count: int = 1) -> None:
    get_tracker().track_read(function_name, count)


def track_write(function_name: str, count: int = 1) -> None:
    get_tracker().track_write(function_name, count)


def track_delete(function_name: str, count: int = 1) -> None:
    get_tracker().track_delete(function_name, count)


def track_query(function_name: str, docs_returned: int) -> None:
    get_tracker().track_query(function_name, docs_returned)


def track_batch(function_name: str, operations_count: int, batch_type: Literal["write", "delete"]) -> None:
    get_tracker().track_batch(function_name, operations_count, batch_type)
