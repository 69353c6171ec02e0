"""Logging setup and small file helpers shared by the session bookkeeping."""

import csv
import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from shutil import move
from typing import IO, Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_dir: Path, log_level: str = "INFO") -> logging.Logger:
    """Send CodecLab logs to a timestamped file in *log_dir* and to stderr.

    Args:
        log_dir: Directory for ``codeclab_<timestamp>.log``
        log_level: DEBUG, INFO, WARNING or ERROR

    Returns:
        The ``codeclab`` package logger
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"codeclab_{datetime.now():%Y%m%d_%H%M%S}.log"

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
    )
    return logging.getLogger("codeclab")


@contextmanager
def atomic_write(target_path: Path, mode: str = "w") -> Iterator[IO[Any]]:
    """Write *target_path* through a sibling temporary file.

    The target only appears once the block completes; on error the temporary
    file is removed and *target_path* is left untouched.

    Example:
        with atomic_write(test_dir / "session.json") as f:
            json.dump(record, f)
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        mode=mode, dir=target_path.parent, prefix=f".{target_path.name}.", delete=False
    )
    temp_path = Path(handle.name)
    try:
        with handle:
            yield handle
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    # Renamed after close so it also works where open files cannot be replaced
    move(temp_path, target_path)


def append_csv_row(csv_path: Path, row_data: dict[str, Any], fieldnames: list[str]) -> None:
    """Append *row_data* to *csv_path*, writing the header when the file is new or empty."""
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with open(csv_path, "a", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        if f.seek(0, os.SEEK_END) == 0:
            writer.writeheader()
        writer.writerow(row_data)


def read_csv_as_dicts(csv_path: Path) -> list[dict[str, Any]]:
    with open(csv_path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def save_json(data: dict[str, Any], json_path: Path) -> None:
    """Atomically write *data* as indented JSON; paths and datetimes become strings."""
    with atomic_write(json_path) as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)


def load_json(json_path: Path) -> dict[str, Any]:
    """Raises OSError if unreadable, json.JSONDecodeError if malformed."""
    with open(json_path, encoding="utf-8") as f:
        return json.load(f)
