"""Configuration module — frozen dataclass loaded from env vars and CLI args."""

import argparse
import os
from dataclasses import dataclass


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    log_file: str = "./logs/application.log"
    threshold_kb: int = 10000
    tee: bool = False
    max_rolls: int = 0
    compression: str = "gzip"
    compression_level: int = 6
    log_level: str = "INFO"


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Append standard input to a log file, rotating it by size"
    )
    parser.add_argument("--log-file", type=str, default=None,
                        help="Path of the active log file")
    parser.add_argument("--threshold-kb", type=int, default=None,
                        help="Rotate once the file reaches this many kilobytes (1 KB = 1000 bytes)")
    parser.add_argument("--tee", action="store_true", default=False,
                        help="Also copy input to standard output")
    parser.add_argument("--max-rolls", type=int, default=None,
                        help="Number of backups to keep (0 keeps all)")
    parser.add_argument("--compression", type=str, default=None,
                        help="Backup compression: gzip, zlib, or none")
    parser.add_argument("--compression-level", type=int, default=None)
    parser.add_argument("--log-level", type=str, default=None)
    return parser


def load_config(argv: list[str] | None = None) -> Config:
    """Build Config from defaults <- env vars <- CLI args (highest priority)."""
    env_log_file = os.environ.get("LOG_FILE", Config.log_file)
    env_threshold_kb = int(os.environ.get("THRESHOLD_KB", str(Config.threshold_kb)))
    env_tee = _parse_bool(os.environ.get("TEE", "false"))
    env_max_rolls = int(os.environ.get("MAX_ROLLS", str(Config.max_rolls)))
    env_compression = os.environ.get("COMPRESSION", Config.compression)
    env_compression_level = int(
        os.environ.get("COMPRESSION_LEVEL", str(Config.compression_level))
    )
    env_log_level = os.environ.get("LOG_LEVEL", Config.log_level)

    args = build_cli_parser().parse_args(argv)

    threshold_kb = args.threshold_kb if args.threshold_kb is not None else env_threshold_kb
    if threshold_kb <= 0:
        raise ValueError(f"threshold_kb must be positive, got {threshold_kb}")

    return Config(
        log_file=args.log_file if args.log_file is not None else env_log_file,
        threshold_kb=threshold_kb,
        tee=args.tee or env_tee,
        max_rolls=args.max_rolls if args.max_rolls is not None else env_max_rolls,
        compression=(args.compression if args.compression is not None else env_compression).lower(),
        compression_level=(
            args.compression_level if args.compression_level is not None else env_compression_level
        ),
        log_level=(args.log_level if args.log_level is not None else env_log_level).upper(),
    )
