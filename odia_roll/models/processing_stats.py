"""
Processing statistics and timing models.

Tracks diagnostic counters for a roll run: which detection strategy won on
each page, crop failures, rejected records and translation cache behaviour.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Any
from datetime import datetime


@dataclass
class TranslationUsage:
    """Translation cache counters (thread-safe)."""
    engine: str = ""
    hits: int = 0
    misses: int = 0
    external_calls: int = 0
    failures: int = 0
    skipped: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add(self, counter: str, amount: int = 1) -> None:
        """Increment one counter by name (thread-safe)."""
        with self._lock:
            setattr(self, counter, getattr(self, counter) + amount)

    def to_dict(self) -> dict[str, Any]:
        return {
            "engine": self.engine,
            "hits": self.hits,
            "misses": self.misses,
            "external_calls": self.external_calls,
            "failures": self.failures,
            "skipped": self.skipped,
        }


@dataclass
class PageTiming:
    """Timing and counts for a single page."""
    page_number: int = 0
    strategy: str = ""
    blocks_detected: int = 0
    blocks_extracted: int = 0
    crop_failures: int = 0

    detection_time_sec: float = 0.0
    extraction_time_sec: float = 0.0

    per_block_times_sec: List[float] = field(default_factory=list)

    @property
    def total_time_sec(self) -> float:
        return self.detection_time_sec + self.extraction_time_sec

    @property
    def avg_time_per_block_ms(self) -> float:
        if not self.per_block_times_sec:
            return 0.0
        return sum(self.per_block_times_sec) / len(self.per_block_times_sec) * 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_number": self.page_number,
            "strategy": self.strategy,
            "blocks_detected": self.blocks_detected,
            "blocks_extracted": self.blocks_extracted,
            "crop_failures": self.crop_failures,
            "detection_time_sec": round(self.detection_time_sec, 4),
            "extraction_time_sec": round(self.extraction_time_sec, 4),
            "avg_time_per_block_ms": round(self.avg_time_per_block_ms, 2),
        }


@dataclass
class ExtractionStats:
    """
    Diagnostic counters for a roll run.

    Never part of the roll data itself; the roll notes carry a summary.
    """

    started_at: str = ""
    completed_at: str = ""
    status: str = "pending"  # pending, processing, completed, failed
    error_message: str = ""

    pages_processed: int = 0
    strategy_counts: Counter = field(default_factory=Counter)
    blocks_detected: int = 0
    crop_failures: int = 0

    candidates_seen: int = 0
    records_accepted: int = 0
    rejections: Counter = field(default_factory=Counter)

    translation: TranslationUsage = field(default_factory=TranslationUsage)
    page_timings: List[PageTiming] = field(default_factory=list)

    def start(self) -> None:
        self.started_at = datetime.utcnow().isoformat() + "Z"
        self.status = "processing"

    def complete(self) -> None:
        self.completed_at = datetime.utcnow().isoformat() + "Z"
        self.status = "completed"

    def fail(self, error: str) -> None:
        self.completed_at = datetime.utcnow().isoformat() + "Z"
        self.status = "failed"
        self.error_message = error

    def add_page_timing(self, page_timing: PageTiming) -> None:
        """Add timing for a processed page and fold its counts in."""
        self.page_timings.append(page_timing)
        self.pages_processed += 1
        if page_timing.strategy:
            self.strategy_counts[page_timing.strategy] += 1
        self.blocks_detected += page_timing.blocks_detected
        self.crop_failures += page_timing.crop_failures

    def reject(self, reason: str) -> None:
        self.rejections[reason] += 1

    @property
    def records_rejected(self) -> int:
        return sum(self.rejections.values())

    @property
    def total_time_sec(self) -> float:
        return sum(pt.total_time_sec for pt in self.page_timings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "status": self.status,
            "error_message": self.error_message,
            "counts": {
                "pages_processed": self.pages_processed,
                "blocks_detected": self.blocks_detected,
                "crop_failures": self.crop_failures,
                "candidates_seen": self.candidates_seen,
                "records_accepted": self.records_accepted,
                "records_rejected": self.records_rejected,
            },
            "strategies": dict(self.strategy_counts),
            "rejections": dict(self.rejections),
            "translation": self.translation.to_dict(),
            "timing": {
                "total_time_sec": round(self.total_time_sec, 4),
            },
            "page_timings": [pt.to_dict() for pt in self.page_timings],
        }

    def summary_str(self) -> str:
        """Generate a human-readable summary string."""
        lines = [
            f"  Status: {self.status}",
            f"  Pages: {self.pages_processed}",
            f"  Blocks: {self.blocks_detected} (crop failures: {self.crop_failures})",
            f"  Records: {self.records_accepted} accepted, {self.records_rejected} rejected",
            f"  Total time: {self.total_time_sec:.2f}s",
        ]
        if self.strategy_counts:
            strategies = ", ".join(f"{k}={v}" for k, v in sorted(self.strategy_counts.items()))
            lines.append(f"  Strategies: {strategies}")
        if self.translation.external_calls or self.translation.hits:
            lines.append(
                f"  Translation: {self.translation.external_calls} calls, "
                f"{self.translation.hits} cache hits, {self.translation.failures} failures"
            )
        if self.error_message:
            lines.append(f"  Error: {self.error_message}")
        return "\n".join(lines)
