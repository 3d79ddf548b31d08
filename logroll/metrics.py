"""Thread-safe counters for writes, rotations, pruning, and compression."""

import threading
import time


class RotatorMetrics:
    """Tracks rotator activity.

    Updated from the writer thread and the compression worker, so every
    mutation goes through the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._bytes_written = 0
        self._rotations = 0
        self._files_pruned = 0
        self._compressions = 0
        self._compression_failures = 0
        self._bytes_before_compression = 0
        self._bytes_after_compression = 0
        self._compression_time_ms = 0.0
        self._start_time = time.monotonic()

    def record_write(self, nbytes: int):
        with self._lock:
            self._bytes_written += nbytes

    def record_rotation(self):
        with self._lock:
            self._rotations += 1

    def record_pruned(self, count: int):
        with self._lock:
            self._files_pruned += count

    def record_compression(self, original_size: int, compressed_size: int, time_ms: float):
        with self._lock:
            self._compressions += 1
            self._bytes_before_compression += original_size
            self._bytes_after_compression += compressed_size
            self._compression_time_ms += time_ms

    def record_compression_failure(self):
        with self._lock:
            self._compression_failures += 1

    def snapshot(self) -> dict:
        with self._lock:
            elapsed = time.monotonic() - self._start_time
            ratio = (
                self._bytes_before_compression / self._bytes_after_compression
                if self._bytes_after_compression > 0
                else 0.0
            )
            return {
                "bytes_written": self._bytes_written,
                "rotations": self._rotations,
                "files_pruned": self._files_pruned,
                "compressions": self._compressions,
                "compression_failures": self._compression_failures,
                "bytes_before_compression": self._bytes_before_compression,
                "bytes_after_compression": self._bytes_after_compression,
                "compression_ratio": round(ratio, 2),
                "compression_time_ms": round(self._compression_time_ms, 2),
                "elapsed_seconds": round(elapsed, 1),
            }
