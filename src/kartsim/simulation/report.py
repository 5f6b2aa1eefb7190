"""Encoding and persistence of the final race report."""

from __future__ import annotations

import time
from pathlib import Path

import msgspec

from kartsim.core.errors import ReportWriteError
from kartsim.engine.turn_log import RaceReport

REPORT_DIR = Path("logs")

_encoder = msgspec.json.Encoder()


def encode_report(report: RaceReport) -> bytes:
    return _encoder.encode(report)


def decode_report(data: bytes | str) -> RaceReport:
    return msgspec.json.decode(data, type=RaceReport)


def report_path(directory: Path, timestamp: float) -> Path:
    return directory / f"logs_{int(timestamp)}.json"


def write_report(
    report: RaceReport,
    directory: Path = REPORT_DIR,
    now: float | None = None,
) -> Path:
    """
    Persist the report as `logs_<unix-seconds>.json` inside `directory`.

    Raises ReportWriteError if the directory or file cannot be written.
    """
    path = report_path(directory, time.time() if now is None else now)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encode_report(report))
    except OSError as e:
        raise ReportWriteError(str(path), e.strerror or str(e)) from e
    return path
