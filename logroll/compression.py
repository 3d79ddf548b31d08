"""Backup compression: pluggable compressors and a serial background worker."""

import gzip
import logging
import os
import queue
import shutil
import threading
import time
import zlib
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

COPY_CHUNK = 64 * 1024

_STOP = object()


class Compressor(ABC):
    """Writes a compressed stream to a target binary file object.

    The same instance is reused for every rotated file: ``reset`` points it
    at a fresh target and discards any previous compression state. ``close``
    finishes the stream but leaves the target open.
    """

    @abstractmethod
    def reset(self, target):
        ...

    @abstractmethod
    def write(self, data: bytes) -> int:
        ...

    @abstractmethod
    def flush(self):
        ...

    @abstractmethod
    def close(self):
        ...


class GzipCompressor(Compressor):
    def __init__(self, level: int = 6):
        self._level = level
        self._stream = None

    def reset(self, target):
        self._stream = gzip.GzipFile(fileobj=target, mode="wb", compresslevel=self._level)

    def write(self, data: bytes) -> int:
        return self._stream.write(data)

    def flush(self):
        self._stream.flush()

    def close(self):
        if self._stream is not None:
            self._stream.close()
            self._stream = None


class ZlibCompressor(Compressor):
    def __init__(self, level: int = 6):
        self._level = level
        self._target = None
        self._compressobj = None

    def reset(self, target):
        self._target = target
        self._compressobj = zlib.compressobj(self._level)

    def write(self, data: bytes) -> int:
        self._target.write(self._compressobj.compress(data))
        return len(data)

    def flush(self):
        self._target.write(self._compressobj.flush(zlib.Z_SYNC_FLUSH))
        self._target.flush()

    def close(self):
        if self._compressobj is not None:
            self._target.write(self._compressobj.flush(zlib.Z_FINISH))
            self._target.flush()
            self._compressobj = None
            self._target = None


def get_compressor(algorithm: str = "gzip", level: int = 6) -> tuple[Compressor | None, str]:
    """Return ``(compressor, suffix)`` for an algorithm name.

    ``"none"`` yields ``(None, "gz")``: compression is disabled but gzip
    backups left by earlier runs still count for numbering and retention.
    """
    algo = algorithm.lower()
    level = max(1, min(9, level))
    if algo == "gzip":
        return GzipCompressor(level), "gz"
    elif algo == "zlib":
        return ZlibCompressor(level), "zz"
    elif algo == "none":
        return None, "gz"
    else:
        raise ValueError(f"Unsupported algorithm: {algo}")


def compress_backup(path: str, compressor: Compressor, suffix: str) -> str:
    """Compress *path* into ``<path>.<suffix>`` and delete *path*.

    The target is created exclusively, so an existing artifact raises
    FileExistsError instead of being overwritten. On any failure the
    original is left in place. Returns the compressed path.
    """
    target = f"{path}.{suffix}"
    with open(path, "rb") as src, open(target, "xb") as dst:
        compressor.reset(dst)
        try:
            shutil.copyfileobj(src, compressor, COPY_CHUNK)
            compressor.flush()
        finally:
            compressor.close()
    os.remove(path)
    return target


class CompressionWorker(threading.Thread):
    """Compresses rotated backups one at a time, in submission order."""

    def __init__(self, compressor: Compressor, suffix: str, metrics=None):
        super().__init__(name="logroll-compress", daemon=True)
        self._compressor = compressor
        self._suffix = suffix
        self._metrics = metrics
        self._queue: queue.Queue = queue.Queue()
        self._stopping = False

    def submit(self, path: str):
        self._queue.put(path)

    def run(self):
        while True:
            path = self._queue.get()
            if path is _STOP:
                return
            self._compress(path)

    def _compress(self, path: str):
        start = time.monotonic()
        try:
            original_size = os.path.getsize(path)
            target = compress_backup(path, self._compressor, self._suffix)
            compressed_size = os.path.getsize(target)
        except Exception:
            logger.exception("Compression of %s failed, keeping uncompressed backup", path)
            if self._metrics is not None:
                self._metrics.record_compression_failure()
            return

        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info("Compressed %s (%d -> %d bytes, %.1fms)",
                    target, original_size, compressed_size, elapsed_ms)
        if self._metrics is not None:
            self._metrics.record_compression(original_size, compressed_size, elapsed_ms)

    def drain(self):
        """Wait for every submitted job to finish, then stop the thread."""
        if not self._stopping:
            self._stopping = True
            self._queue.put(_STOP)
        self.join()
