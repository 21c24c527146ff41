"""
Stage timing and log capture for brochure generation.
Every stage (image fetch, page composition, serialization) reports here.
"""
import time
import functools
import threading
from collections import deque
from datetime import datetime
from typing import Dict, List, Optional, Callable

# Bounded in-memory log and per-stage timings (most recent runs only)
_logs = deque(maxlen=1000)
_timings = {}
MAX_TIMINGS_PER_STAGE = 200
_log_lock = threading.Lock()
_timing_lock = threading.Lock()


class LogCapture:
    """Keep recent brochure log lines and echo them to the terminal."""

    def __init__(self):
        self.original_print = print
        self.enabled = True

    def enable(self):
        self.enabled = True

    def disable(self):
        """Stop echoing to the terminal. Entries are still recorded."""
        self.enabled = False

    def log(self, message: str, level: str = "INFO", silent: bool = False):
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        log_entry = {
            "timestamp": timestamp,
            "level": level,
            "message": message,
            "datetime": datetime.now().isoformat()
        }

        with _log_lock:
            _logs.append(log_entry)

        if self.enabled and not silent:
            self.original_print(f"[{timestamp}] [{level}] {message}")

    def info(self, message: str):
        self.log(message, "INFO")

    def warning(self, message: str):
        self.log(message, "WARNING")

    def error(self, message: str):
        self.log(message, "ERROR")

    def get_logs(self, since: Optional[str] = None) -> List[Dict]:
        """Get logs recorded at or after an ISO timestamp."""
        with _log_lock:
            if since:
                return [entry for entry in _logs if entry.get("datetime") >= since]
            return list(_logs)

    def clear_logs(self):
        with _log_lock:
            _logs.clear()


log_capture = LogCapture()


def track_time(func_name: Optional[str] = None):
    """
    Decorator recording how long a generation stage takes.

    Usage:
        @track_time("compose_cover_page")
        def _compose_cover(...):
            ...
    """
    def decorator(func: Callable):
        name = func_name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            log_capture.log(f"Starting: {name}", "TIMING", silent=True)

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.time() - start_time
                _record(name, elapsed, success=False, error=str(e))
                log_capture.log(f"Failed: {name} ({elapsed:.2f}s) - {e}", "ERROR")
                raise

            elapsed = time.time() - start_time
            _record(name, elapsed, success=True)
            log_capture.log(f"Completed: {name} ({elapsed:.2f}s)", "TIMING", silent=True)
            return result

        return wrapper
    return decorator


def _record(name: str, elapsed: float, success: bool, error: Optional[str] = None):
    entry = {
        "duration": elapsed,
        "timestamp": datetime.now().isoformat(),
        "success": success,
    }
    if error is not None:
        entry["error"] = error
    with _timing_lock:
        if name not in _timings:
            _timings[name] = deque(maxlen=MAX_TIMINGS_PER_STAGE)
        _timings[name].append(entry)


def get_timings() -> Dict:
    """Summaries of successful runs per stage."""
    with _timing_lock:
        result = {}
        for func_name, times in _timings.items():
            durations = [t["duration"] for t in times if t.get("success")]
            if durations:
                result[func_name] = {
                    "count": len(durations),
                    "total": sum(durations),
                    "average": sum(durations) / len(durations),
                    "min": min(durations),
                    "max": max(durations),
                    "last": times[-1]
                }
        return result


def clear_timings():
    with _timing_lock:
        _timings.clear()


def get_recent_logs(count: int = 100) -> List[Dict]:
    with _log_lock:
        return list(_logs)[-count:]
