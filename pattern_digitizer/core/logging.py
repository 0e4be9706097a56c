"""Logging setup and FlightLogger circular-buffer handler for post-mortem dumps of failed digitizations."""

import logging
import sys
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

from pattern_digitizer.core.config import get_config

FLIGHT_LOG_CAPACITY = 5_000
# Relative to cwd when no config is provided.
DEFAULT_FORENSICS_DIR = Path.cwd() / "logs" / "forensics"


_flight_logger: "FlightLogger | None" = None


class FlightLogger(logging.Handler):
    """
    Circular buffer handler: keeps the last records (all levels) in memory.
    dump(label) writes the buffer to {forensics_dir}/{label}_{timestamp}.log.
    """

    def __init__(
        self,
        capacity: int = FLIGHT_LOG_CAPACITY,
        forensics_dir: str | Path | None = None,
    ) -> None:
        super().__init__(level=logging.DEBUG)
        self._buffer: deque[logging.LogRecord] = deque(maxlen=capacity)
        self._forensics_dir = Path(forensics_dir if forensics_dir is not None else DEFAULT_FORENSICS_DIR)

    def emit(self, record: logging.LogRecord) -> None:
        self._buffer.append(record)

    def dump(self, label: str) -> str:
        """Write buffer to forensics dir; return path to the written file."""
        self._forensics_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        filepath = self._forensics_dir / f"{label}_{timestamp}.log"
        formatter = self.formatter or logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        with open(filepath, "w", encoding="utf-8") as f:
            for record in self._buffer:
                f.write(formatter.format(record) + "\n")
        return str(filepath)

    def __len__(self) -> int:
        return len(self._buffer)


def get_flight_logger() -> FlightLogger | None:
    """Return the global FlightLogger handler created by setup_logging(), if any."""
    return _flight_logger


def dump_flight_log(label: str) -> str | None:
    """
    Dump the flight buffer after a failed digitization. Returns the path, or None when
    logging was never set up or the dump itself failed.
    """
    flight = get_flight_logger()
    if flight is None:
        return None
    try:
        return flight.dump(label)
    except OSError:
        logging.getLogger(__name__).warning("Could not write flight log dump", exc_info=True)
        return None


def setup_logging() -> None:
    """
    Configure application logging.

    Invariants:
    - The root logger is set to DEBUG so that all records reach handlers.
    - Console handler logs at the configured log_level, never below WARNING for noisy
      third-party loggers (urllib3, multipart).
    - A FlightLogger handler captures all levels at DEBUG into an in-memory circular buffer.
    """
    global _flight_logger
    cfg = get_config()

    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt, datefmt=datefmt)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    # Remove existing handlers so we don't duplicate when called again
    for h in root.handlers[:]:
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.getLevelName(cfg.log_level.upper()))
    console.setFormatter(formatter)
    root.addHandler(console)

    for noisy in ("urllib3", "multipart", "python_multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    flight = FlightLogger(
        capacity=FLIGHT_LOG_CAPACITY,
        forensics_dir=cfg.forensics_dir,
    )
    flight.setLevel(logging.DEBUG)
    flight.setFormatter(formatter)
    root.addHandler(flight)
    _flight_logger = flight
