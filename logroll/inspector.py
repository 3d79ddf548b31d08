"""Inspector logic: list rotated backups and read them back."""

import gzip
import os
import zlib
from dataclasses import dataclass

from logroll.rotator import parse_sequence


@dataclass(frozen=True)
class Backup:
    sequence: int
    filename: str
    compressed: bool


def list_backups(path: str, suffix: str = "gz") -> list[Backup]:
    """Return the backups of *path* ordered oldest-first by sequence number."""
    directory = os.path.dirname(path) or "."
    basename = os.path.basename(path)
    backups = []
    for name in os.listdir(directory):
        num = parse_sequence(name, basename, suffix)
        if num is None:
            continue
        compressed = bool(suffix) and name.endswith("." + suffix)
        backups.append(Backup(sequence=num, filename=name, compressed=compressed))
    backups.sort(key=lambda b: (b.sequence, b.compressed))
    return backups


def _decompress(data: bytes, suffix: str) -> bytes:
    if suffix == "gz":
        return gzip.decompress(data)
    elif suffix == "zz":
        return zlib.decompress(data)
    else:
        raise ValueError(f"Unsupported suffix: {suffix}")


def read_backup(path: str, sequence: int, suffix: str = "gz") -> bytes:
    """Read backup *sequence* of *path*, decompressing it when needed."""
    raw = f"{path}.{sequence}"
    if suffix:
        compressed = f"{raw}.{suffix}"
        if os.path.exists(compressed):
            with open(compressed, "rb") as f:
                return _decompress(f.read(), suffix)
    if not os.path.exists(raw):
        raise FileNotFoundError(f"Backup not found: {raw}")
    with open(raw, "rb") as f:
        return f.read()
