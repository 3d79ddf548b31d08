"""Tests for logroll/compression.py — compressors, compress_backup, CompressionWorker."""

import gzip
import logging
import os
import zlib

import pytest

from logroll.compression import (
    CompressionWorker,
    Compressor,
    GzipCompressor,
    ZlibCompressor,
    compress_backup,
    get_compressor,
)
from logroll.metrics import RotatorMetrics


def _make_backup(tmp_path, name: str = "app.log.1", n_lines: int = 200) -> tuple[str, bytes]:
    content = b"".join(
        f"2026-02-17 12:00:{i % 60:02d} [INFO] [auth-api] request #{i} ok\n".encode()
        for i in range(n_lines)
    )
    path = tmp_path / name
    path.write_bytes(content)
    return str(path), content


# ── Factory ─────────────────────────────────────────────────────────

class TestGetCompressor:
    def test_gzip_default(self):
        compressor, suffix = get_compressor()
        assert isinstance(compressor, GzipCompressor)
        assert suffix == "gz"

    def test_zlib(self):
        compressor, suffix = get_compressor("zlib", 9)
        assert isinstance(compressor, ZlibCompressor)
        assert suffix == "zz"

    def test_none_disables(self):
        assert get_compressor("none") == (None, "gz")

    def test_name_is_case_insensitive(self):
        compressor, _ = get_compressor("GZIP")
        assert isinstance(compressor, GzipCompressor)

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError, match="Unsupported algorithm"):
            get_compressor("lz4")

    def test_compressor_is_abstract(self):
        with pytest.raises(TypeError):
            Compressor()


# ── compress_backup ─────────────────────────────────────────────────

class TestCompressBackup:
    def test_gzip_replaces_original(self, tmp_path):
        path, content = _make_backup(tmp_path)
        target = compress_backup(path, GzipCompressor(), "gz")

        assert target == path + ".gz"
        assert not os.path.exists(path)
        with gzip.open(target, "rb") as f:
            assert f.read() == content
        assert os.path.getsize(target) < len(content)

    def test_zlib_replaces_original(self, tmp_path):
        path, content = _make_backup(tmp_path)
        target = compress_backup(path, ZlibCompressor(), "zz")

        assert not os.path.exists(path)
        with open(target, "rb") as f:
            assert zlib.decompress(f.read()) == content

    def test_compressor_is_reusable(self, tmp_path):
        compressor = GzipCompressor()
        first, first_content = _make_backup(tmp_path, "app.log.1", 10)
        second, second_content = _make_backup(tmp_path, "app.log.2", 20)

        with gzip.open(compress_backup(first, compressor, "gz"), "rb") as f:
            assert f.read() == first_content
        with gzip.open(compress_backup(second, compressor, "gz"), "rb") as f:
            assert f.read() == second_content

    def test_existing_target_is_not_clobbered(self, tmp_path):
        path, content = _make_backup(tmp_path)
        with open(path + ".gz", "wb") as f:
            f.write(b"earlier artifact")

        with pytest.raises(FileExistsError):
            compress_backup(path, GzipCompressor(), "gz")

        with open(path + ".gz", "rb") as f:
            assert f.read() == b"earlier artifact"
        with open(path, "rb") as f:
            assert f.read() == content

    def test_missing_source_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            compress_backup(str(tmp_path / "app.log.9"), GzipCompressor(), "gz")
        assert not os.path.exists(tmp_path / "app.log.9.gz")


# ── CompressionWorker ───────────────────────────────────────────────

class TestCompressionWorker:
    def test_processes_all_jobs_before_drain_returns(self, tmp_path):
        metrics = RotatorMetrics()
        worker = CompressionWorker(GzipCompressor(), "gz", metrics)
        worker.start()
        paths = [_make_backup(tmp_path, f"app.log.{n}")[0] for n in range(1, 4)]
        for path in paths:
            worker.submit(path)
        worker.drain()

        assert not worker.is_alive()
        for path in paths:
            assert os.path.exists(path + ".gz")
            assert not os.path.exists(path)
        snap = metrics.snapshot()
        assert snap["compressions"] == 3
        assert snap["compression_ratio"] > 1.0

    def test_failure_is_logged_and_counted(self, tmp_path, caplog):
        metrics = RotatorMetrics()
        worker = CompressionWorker(GzipCompressor(), "gz", metrics)
        worker.start()
        missing = str(tmp_path / "app.log.5")
        good, _ = _make_backup(tmp_path, "app.log.6")

        with caplog.at_level(logging.ERROR, logger="logroll.compression"):
            worker.submit(missing)
            worker.submit(good)
            worker.drain()

        assert "Compression of" in caplog.text
        assert os.path.exists(good + ".gz")
        snap = metrics.snapshot()
        assert snap["compression_failures"] == 1
        assert snap["compressions"] == 1

    def test_drain_is_idempotent(self):
        worker = CompressionWorker(GzipCompressor(), "gz")
        worker.start()
        worker.drain()
        worker.drain()
        assert not worker.is_alive()
