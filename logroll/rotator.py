"""Size-triggered log rotation with numbered backups.

A Rotator appends input to an active file. Once the file reaches the size
threshold at a line boundary it is renamed to ``<path>.<N>``, old backups
beyond the retention count are deleted, a fresh active file is opened, and
the new backup is handed to a background worker for compression.

A Rotator assumes a single writer thread: ``write`` and ``run`` must not be
used concurrently, and nothing else may write to the active path.
"""

import logging
import os
import sys

from logroll.compression import Compressor, CompressionWorker, GzipCompressor
from logroll.metrics import RotatorMetrics

logger = logging.getLogger(__name__)

READ_CHUNK = 4096
NEWLINE = b"\n"


def parse_sequence(name: str, basename: str, suffix: str) -> int | None:
    """Return the backup sequence number encoded in *name*, or None.

    ``app.log.3`` and ``app.log.3.gz`` both yield 3 for basename ``app.log``
    and suffix ``gz``.
    """
    prefix = basename + "."
    if not name.startswith(prefix):
        return None
    parts = name[len(prefix):].split(".")
    idx = len(parts) - 1
    if parts[idx] == suffix and idx > 0:
        idx -= 1
    if not (parts[idx].isascii() and parts[idx].isdigit()):
        return None
    return int(parts[idx])


def find_max_sequence(path: str, suffix: str) -> int:
    """Highest backup sequence number on disk for *path*, 0 if there are none."""
    directory = os.path.dirname(path) or "."
    basename = os.path.basename(path)
    max_num = 0
    for name in os.listdir(directory):
        num = parse_sequence(name, basename, suffix)
        if num is not None and num > max_num:
            max_num = num
    return max_num


class Rotator:
    """Writes to a file, rolling it into numbered backups by size.

    ``threshold_kb`` is in decimal kilobytes (1 KB = 1000 bytes).
    ``max_rolls`` of 0 or less keeps every backup. With ``tee`` enabled all
    input is also copied to ``tee_stream`` (standard output by default) on a
    best-effort basis.
    """

    def __init__(self, path: str, threshold_kb: int, tee: bool = False, max_rolls: int = 0,
                 *, tee_stream=None, metrics: RotatorMetrics | None = None):
        self._path = path
        self._threshold = 1000 * threshold_kb
        self._tee = tee
        self._tee_stream = tee_stream
        self._max_rolls = max_rolls
        self._metrics = metrics or RotatorMetrics()
        self._compressor: Compressor | None = GzipCompressor()
        self._suffix = "gz"
        self._worker: CompressionWorker | None = None

        self._file = self._open()
        try:
            self._size = os.fstat(self._file.fileno()).st_size
        except OSError:
            self._file.close()
            raise

    @property
    def path(self) -> str:
        return self._path

    @property
    def size(self) -> int:
        return self._size

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def metrics(self) -> RotatorMetrics:
        return self._metrics

    def set_compressor(self, compressor: Compressor | None, suffix: str):
        """Change how rotated backups are compressed. ``None`` disables compression.

        Must be called before the first write or run.
        """
        self._compressor = compressor
        self._suffix = suffix.removeprefix(".")

    def _open(self):
        return open(self._path, "ab")

    def _append(self, data: bytes) -> int:
        n = self._file.write(data)
        self._file.flush()
        self._size += n
        self._metrics.record_write(n)
        if self._tee:
            self._write_tee(data)
        return n

    def _write_tee(self, data: bytes):
        stream = self._tee_stream
        if stream is None:
            stream = getattr(sys.stdout, "buffer", None)
        if stream is None:
            return
        try:
            stream.write(data)
            stream.flush()
        except Exception as e:
            logger.debug("Tee write failed: %s", e)

    def write(self, data: bytes) -> int:
        """Append *data*. Rotates if the threshold is reached and *data* ends a line."""
        n = self._append(data)
        if self._size >= self._threshold and data.endswith(NEWLINE):
            self.rotate()
        return n

    def run(self, stream):
        """Copy lines from a binary *stream* until it is exhausted.

        Raises EOFError once the stream returns no more data; read errors
        propagate as they are raised.
        """
        if self._size >= self._threshold:
            self.rotate()

        while True:
            line = stream.readline(READ_CHUNK)
            if not line:
                raise EOFError(f"end of input for {self._path}")

            if not line.endswith(NEWLINE):
                if len(line) == READ_CHUNK:
                    # Partial line, rotation waits for its terminator.
                    self._append(line)
                    continue
                line += NEWLINE

            self._append(line)
            if self._size >= self._threshold:
                self.rotate()

    def rotate(self):
        """Roll the active file into the next numbered backup."""
        max_num = find_max_sequence(self._path, self._suffix)

        self._file.close()
        rotated = f"{self._path}.{max_num + 1}"
        os.rename(self._path, rotated)

        if self._max_rolls > 0:
            self._prune(max_num + 1 - self._max_rolls)

        self._file = self._open()
        self._size = 0
        self._metrics.record_rotation()
        logger.info("Rotated %s -> %s", self._path, rotated)

        if self._compressor is not None:
            if self._worker is None:
                self._worker = CompressionWorker(self._compressor, self._suffix, self._metrics)
                self._worker.start()
            self._worker.submit(rotated)

    def _backup_names(self, num: int) -> list[str]:
        name = f"{self._path}.{num}"
        if self._suffix:
            return [name, f"{name}.{self._suffix}"]
        return [name]

    def _prune(self, oldest: int):
        """Delete backups from *oldest* downwards until one is already gone."""
        pruned = 0
        for num in range(oldest, 0, -1):
            removed = False
            for name in self._backup_names(num):
                try:
                    os.remove(name)
                except OSError:
                    continue
                removed = True
                pruned += 1
                logger.debug("Pruned %s", name)
            if not removed:
                break
        if pruned:
            self._metrics.record_pruned(pruned)

    def close(self):
        """Close the active file, then wait for pending compression to finish."""
        try:
            self._file.close()
        finally:
            if self._worker is not None:
                self._worker.drain()
                self._worker = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
