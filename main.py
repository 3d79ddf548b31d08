"""Log rotator — appends standard input to a log file with size-based rotation."""

import logging
import os
import sys

from logroll.compression import get_compressor
from logroll.config import load_config
from logroll.rotator import Rotator

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    config = load_config(argv)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [logroll] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger.info(
        "Config: log_file=%s, threshold=%dKB, max_rolls=%d, compression=%s, tee=%s",
        config.log_file, config.threshold_kb, config.max_rolls,
        config.compression, config.tee,
    )

    directory = os.path.dirname(config.log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    compressor, suffix = get_compressor(config.compression, config.compression_level)
    rotator = Rotator(config.log_file, config.threshold_kb, config.tee, config.max_rolls)
    rotator.set_compressor(compressor, suffix)

    status = 0
    try:
        rotator.run(sys.stdin.buffer)
    except (EOFError, KeyboardInterrupt):
        pass
    except OSError as e:
        logger.error("Stopped: %s", e)
        status = 1
    finally:
        rotator.close()

    logger.info("Shut down cleanly. Metrics: %s", rotator.metrics.snapshot())
    return status


if __name__ == "__main__":
    sys.exit(main())
