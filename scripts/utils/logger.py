"""Unified log output: console + a separate log file"""
import os
from typing import Literal

from .paths import get_log_file, ensure_dirs

LogLevel = Literal["INFO", "WARN", "OK", "ERR"]

_PREFIX = {"INFO": "  ", "WARN": "⚠️ ", "OK": "✅ ", "ERR": "❌ "}

# Module-level file handle, opened (append) on first write
_log_file_handle = None
_log_file_path = None


def _get_log_stream():
    """Open the log file on first use; reopen if AKI_LOG_FILE changed since."""
    global _log_file_handle, _log_file_path
    log_path = get_log_file()
    if _log_file_handle is None or log_path != _log_file_path:
        if _log_file_handle is not None:
            _log_file_handle.close()
        ensure_dirs(os.path.dirname(log_path))
        _log_file_handle = open(log_path, "a", encoding="utf-8")
        _log_file_path = log_path
    return _log_file_handle


def _write_log(line: str) -> None:
    print(line)
    try:
        stream = _get_log_stream()
        stream.write(line + "\n")
        stream.flush()
    except OSError:
        pass  # console output still goes through


def log(msg: str, level: LogLevel = "INFO") -> None:
    prefix = _PREFIX.get(level, "  ")
    _write_log(f"{prefix}{msg}")


def log_header(title: str, width: int = 70) -> None:
    """Step banner"""
    sep = "=" * width
    _write_log(sep)
    _write_log(title)
    _write_log(sep)
