"""CLI log inspector — list and read rotated backups."""

import argparse
import os
import sys

from logroll.inspector import list_backups, read_backup


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect rotated log backups")
    parser.add_argument("--log-file", default=os.environ.get("LOG_FILE", "./logs/application.log"),
                        help="Path of the active log file")
    parser.add_argument("--suffix", default="gz", help="Suffix of compressed backups")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list", action="store_true", help="List all backups")
    group.add_argument("--read", metavar="N", type=int, help="Print backup number N")
    args = parser.parse_args(argv)

    if args.list:
        backups = list_backups(args.log_file, args.suffix)
        if not backups:
            print("No backups found.")
            return 0
        directory = os.path.dirname(args.log_file) or "."
        for backup in backups:
            size = os.path.getsize(os.path.join(directory, backup.filename))
            print(f"  {backup.sequence:>4}  {backup.filename}  ({_format_size(size)})")
        return 0

    try:
        content = read_backup(args.log_file, args.read, args.suffix)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    sys.stdout.buffer.write(content)
    return 0


if __name__ == "__main__":
    sys.exit(main())
